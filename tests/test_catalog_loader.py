"""
Catalog loader: header contract, row mapping, fetch failures, TTL cache.
The fetcher and clock are fakes from conftest; nothing touches the network.
"""

import pytest

from navigator.catalog.loader import REQUIRED_COLUMNS, records_from_rows
from navigator.errors import EmptyCatalogFailure, FetchFailure, MissingColumnFailure
from navigator.retriever.text import normalize_header

from conftest import SAMPLE_SHEET


def test_header_cells_are_normalized():
    assert normalize_header(" Best For ") == "best_for"
    assert normalize_header("Fatherlessness-Connection") == "fatherlessness_connection"
    assert normalize_header("URL") == "url"
    assert normalize_header("How to start?") == "how_to_start"


def test_load_maps_rows_to_records(loader):
    items = loader.load()
    assert [r.id for r in items] == ["g1", "c1", "h1", "w1", "m1"]
    grief = items[0]
    assert grief.title == "Teen Grief Circle"
    assert grief.best_for == "teens processing grief"
    assert grief.fatherlessness_connection == "helps fatherless teens with loss"
    assert grief.url == "https://example.org/grief"
    assert items[2].how_to_start == "Call"


@pytest.mark.parametrize("missing", REQUIRED_COLUMNS)
def test_missing_required_column_fails_loud(missing):
    header = [c for c in REQUIRED_COLUMNS if c != missing]
    rows = [header, ["x"] * len(header)]
    with pytest.raises(MissingColumnFailure) as exc:
        records_from_rows(rows)
    assert exc.value.column == missing
    assert missing in str(exc.value)


def test_optional_column_and_short_rows_default_to_empty():
    rows = [
        list(REQUIRED_COLUMNS),
        ["1", "Title", "", "", "", "", "", "https://u.example"],
        ["2", "Short row"],  # no url -> dropped
        ["  ", "No id", "", "", "", "", "", "https://v.example"],  # blank id -> dropped
    ]
    items = records_from_rows(rows)
    assert len(items) == 1
    assert items[0].how_to_start == ""
    assert items[0].description == ""


def test_non_success_status_is_fetch_failure(loader, fetcher):
    fetcher.status = 503
    fetcher.body = "x" * 1000
    with pytest.raises(FetchFailure) as exc:
        loader.load()
    assert exc.value.status == 503
    assert len(exc.value.body) == 200


def test_empty_sheet_is_empty_catalog_failure(loader, fetcher):
    fetcher.body = "\n\n"
    with pytest.raises(EmptyCatalogFailure):
        loader.load()


def test_cache_serves_within_ttl_and_refetches_once_after(loader, fetcher, clock):
    loader.load()
    assert len(fetcher.calls) == 1

    clock.advance(120 - 0.1)
    loader.load()
    assert len(fetcher.calls) == 1

    clock.advance(0.2)
    loader.load()
    loader.load()
    assert len(fetcher.calls) == 2


def test_failed_refresh_keeps_previous_snapshot(loader, fetcher, clock):
    first = loader.load()
    clock.advance(500)
    fetcher.status = 500
    with pytest.raises(FetchFailure):
        loader.load()
    assert loader.cache.items == first


def test_force_bypasses_fresh_cache(loader, fetcher):
    loader.load()
    loader.load(force=True)
    assert len(fetcher.calls) == 2


def test_sample_sheet_header_has_all_required_columns():
    header = [normalize_header(h) for h in SAMPLE_SHEET.splitlines()[0].split(",")]
    assert set(REQUIRED_COLUMNS) <= set(header)


def test_requests_fetcher_wraps_transport_errors():
    import requests

    from navigator.catalog.loader import requests_fetcher

    class DownSession:
        def get(self, url, timeout):
            raise requests.ConnectionError("connection refused")

    fetch = requests_fetcher(DownSession())
    with pytest.raises(FetchFailure) as exc:
        fetch("https://sheet.example/csv", 1.0)
    assert exc.value.status is None
    assert "connection refused" in exc.value.body


def test_requests_fetcher_returns_status_and_text():
    from navigator.catalog.loader import requests_fetcher

    class Response:
        status_code = 503
        text = "maintenance"

    class Session:
        def __init__(self):
            self.calls = []

        def get(self, url, timeout):
            self.calls.append((url, timeout))
            return Response()

    ses = Session()
    assert requests_fetcher(ses)("https://sheet.example/csv", 7.0) == (503, "maintenance")
    assert ses.calls == [("https://sheet.example/csv", 7.0)]
