from __future__ import annotations
# Published-sheet catalog loader with a TTL cache.
# Fetch (requests) -> parse_csv -> header contract -> ResourceRecord tuple.

import logging
import time
from dataclasses import dataclass, fields
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import requests

from ..errors import EmptyCatalogFailure, FetchFailure, MissingColumnFailure
from ..retriever.text import normalize_header
from .csv_parser import parse_csv

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = (
    "id", "title", "description", "best_for", "when_to_use",
    "not_for", "fatherlessness_connection", "url",
)
OPTIONAL_COLUMNS = ("how_to_start",)

DEFAULT_TTL_SECONDS = 120.0


@dataclass(frozen=True)
class ResourceRecord:
    id: str
    title: str
    url: str
    description: str = ""
    best_for: str = ""
    when_to_use: str = ""
    not_for: str = ""
    fatherlessness_connection: str = ""
    how_to_start: str = ""

    def as_writer_dict(self) -> Dict[str, str]:
        """Only the fields the text rewriter is allowed to see."""
        return {
            "title": self.title,
            "url": self.url,
            "description": self.description,
            "best_for": self.best_for,
            "when_to_use": self.when_to_use,
        }


_RECORD_FIELDS = tuple(f.name for f in fields(ResourceRecord))


@dataclass(frozen=True)
class _Snapshot:
    loaded_at: float
    items: Tuple[ResourceRecord, ...]


class CatalogCache:
    """
    Process-wide catalog snapshot.
    Readers see the old or the new snapshot, never a mix: replace() swaps one attribute.
    """

    def __init__(self, ttl: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl = float(ttl)
        self.clock = clock
        self._snapshot = _Snapshot(loaded_at=0.0, items=())

    @property
    def loaded_at(self) -> float:
        return self._snapshot.loaded_at

    @property
    def items(self) -> Tuple[ResourceRecord, ...]:
        return self._snapshot.items

    def get(self) -> Optional[Tuple[ResourceRecord, ...]]:
        snap = self._snapshot
        if not snap.items:
            return None
        if self.clock() - snap.loaded_at >= self.ttl:
            return None
        return snap.items

    def replace(self, items: Sequence[ResourceRecord], loaded_at: float) -> None:
        self._snapshot = _Snapshot(loaded_at=loaded_at, items=tuple(items))

    def clear(self) -> None:
        self._snapshot = _Snapshot(loaded_at=0.0, items=())


# (url, timeout) -> (status_code, body_text)
Fetcher = Callable[[str, float], Tuple[int, str]]


def requests_fetcher(session: requests.Session | None = None) -> Fetcher:
    ses = session or requests.Session()

    def _fetch(url: str, timeout: float) -> Tuple[int, str]:
        try:
            r = ses.get(url, timeout=timeout)
        except requests.RequestException as e:
            raise FetchFailure(None, str(e)) from e
        return r.status_code, r.text

    return _fetch


def records_from_rows(rows: List[List[str]]) -> List[ResourceRecord]:
    """Apply the header contract and map data rows to records."""
    if not rows:
        raise EmptyCatalogFailure()

    headers = [normalize_header(h) for h in rows[0]]
    index: Dict[str, int] = {}
    for i, h in enumerate(headers):
        index.setdefault(h, i)

    for col in REQUIRED_COLUMNS:
        if col not in index:
            raise MissingColumnFailure(col)

    wanted = [c for c in _RECORD_FIELDS if c in index]
    items: List[ResourceRecord] = []
    for r in rows[1:]:
        values = {}
        for col in wanted:
            pos = index[col]
            values[col] = (r[pos] if pos < len(r) else "").strip()
        if not (values["id"] and values["title"] and values["url"]):
            continue
        items.append(ResourceRecord(**values))
    return items


class CatalogLoader:
    def __init__(
        self,
        source_url: str,
        *,
        cache: CatalogCache | None = None,
        fetcher: Fetcher | None = None,
        timeout: float = 20.0,
    ):
        self.source_url = source_url
        self.cache = cache or CatalogCache()
        self.fetcher = fetcher or requests_fetcher()
        self.timeout = float(timeout)

    def load(self, *, force: bool = False) -> Tuple[ResourceRecord, ...]:
        if not force:
            cached = self.cache.get()
            if cached is not None:
                logger.debug("Catalog cache hit (%d records)", len(cached))
                return cached

        logger.debug("Catalog cache miss; fetching sheet")
        status, body = self.fetcher(self.source_url, self.timeout)
        if not 200 <= int(status) < 300:
            raise FetchFailure(status, body)

        items = tuple(records_from_rows(parse_csv(body)))
        self.cache.replace(items, self.cache.clock())
        logger.info("Catalog loaded: %d records", len(items))
        return items
