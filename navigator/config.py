# navigator/config.py
# Purpose: one place to read environment configuration.
# • Loads an optional .env (python-dotenv) before reading os.environ
# • Bad numeric values fall back to defaults instead of crashing startup
# ─────────────────────────────────────────────
from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 1200
MAX_HISTORY_ITEMS = 20


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower().strip() == "true"


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r; using %s", name, raw, default)
        return default


@dataclass(frozen=True)
class Settings:
    sheet_csv_url: str
    catalog_ttl_seconds: float = 120.0
    fetch_timeout_seconds: float = 20.0
    strands_enabled: bool = False
    strands_timeout_seconds: float = 20.0
    classifier_mode: str = "RULE"        # RULE | LLM
    empty_policy: str = "NO_MATCH"       # NO_MATCH | FALLBACK
    debug_trace: bool = False


def load_settings(*, dotenv: bool = True) -> Settings:
    if dotenv:
        load_dotenv()

    strands_enabled = _env_flag("STRANDS_ENABLED")
    default_mode = "LLM" if strands_enabled else "RULE"

    return Settings(
        sheet_csv_url=(os.getenv("GOOGLE_SHEET_CSV_URL") or "").strip(),
        catalog_ttl_seconds=_env_float("NAVIGATOR_CATALOG_TTL_SECONDS", 120.0),
        fetch_timeout_seconds=_env_float("NAVIGATOR_FETCH_TIMEOUT", 20.0),
        strands_enabled=strands_enabled,
        strands_timeout_seconds=_env_float("STRANDS_TIMEOUT_SECONDS", 20.0),
        classifier_mode=(os.getenv("NAVIGATOR_CLASSIFIER") or default_mode).upper().strip(),
        empty_policy=(os.getenv("NAVIGATOR_EMPTY_POLICY") or "NO_MATCH").upper().strip(),
        debug_trace=os.getenv("NAVIGATOR_DEBUG_TRACE") == "1",
    )
