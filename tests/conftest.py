"""
Pytest configuration for the Resource Navigator
- Ensures project root is on sys.path
- Optionally loads .env if present
- Sets safe defaults: no model backend, rule classifier
- Shared fakes: a sample sheet, a counting fetcher, a settable clock
"""

import os
import sys
import pathlib
import logging

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dotenv import load_dotenv

env_path = ROOT / ".env"
if env_path.exists():
    load_dotenv(dotenv_path=env_path)

# Defaults: model backend off, deterministic rule mode
os.environ["STRANDS_ENABLED"] = "false"
os.environ.setdefault("NAVIGATOR_CLASSIFIER", "RULE")
os.environ.setdefault("PYTHONHASHSEED", "0")

# Keep test logs calm
logging.basicConfig(level=logging.WARNING)
logging.getLogger("urllib3").setLevel(logging.WARNING)

SHEET_URL = "https://sheets.example.test/resources.csv"

SAMPLE_SHEET = (
    "ID,Title,Description,Best For,When To Use,Not For,Fatherlessness Connection,URL,How To Start\n"
    "g1,Teen Grief Circle,Weekly peer support group,teens processing grief,after a loss,,"
    "helps fatherless teens with loss,https://example.org/grief,\n"
    "c1,Coding Club,Learn to build apps,curious makers,after school,,,https://example.org/code,\n"
    "h1,Teen Crisis Hotline,Talk to a trained counselor any time,teens in distress,"
    "when you feel unsafe,,,https://example.org/hotline,Call\n"
    "w1,Girls Mentoring Circle,Mentoring for young women,girls who want a mentor,,,,"
    "https://example.org/girls,\n"
    "m1,Mentor Match,Find a mentor,teens,,,,https://example.org/mentor,\n"
)


class Clock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingFetcher:
    """Stands in for the HTTP GET; records every call."""

    def __init__(self, body: str = SAMPLE_SHEET, status: int = 200):
        self.body = body
        self.status = status
        self.calls = []

    def __call__(self, url, timeout):
        self.calls.append((url, timeout))
        return self.status, self.body


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def fetcher():
    return CountingFetcher()


@pytest.fixture
def loader(clock, fetcher):
    from navigator.catalog.loader import CatalogCache, CatalogLoader

    return CatalogLoader(SHEET_URL, cache=CatalogCache(ttl=120, clock=clock), fetcher=fetcher)


@pytest.fixture
def settings():
    from navigator.config import Settings

    return Settings(sheet_csv_url=SHEET_URL)
