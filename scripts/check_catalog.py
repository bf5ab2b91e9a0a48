# scripts/check_catalog.py
from __future__ import annotations
import sys, pathlib
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from navigator.catalog.loader import CatalogLoader
from navigator.config import load_settings
from navigator.errors import CatalogError
from navigator.retriever.scorer import has_mission_connection, is_crisis_resource, targeted_demographic


def main():
    settings = load_settings()
    if not settings.sheet_csv_url:
        print("GOOGLE_SHEET_CSV_URL is not set")
        raise SystemExit(2)

    loader = CatalogLoader(settings.sheet_csv_url, timeout=settings.fetch_timeout_seconds)
    try:
        items = loader.load(force=True)
    except CatalogError as e:
        print(f"Catalog check FAILED: {e}")
        raise SystemExit(1)

    print(f"=== Catalog Sanity Check ({len(items)} records) ===")
    for r in items:
        flags = []
        if is_crisis_resource(r):
            flags.append("crisis")
        group = targeted_demographic(r)
        if group:
            flags.append(f"targets:{group}")
        if has_mission_connection(r):
            flags.append("mission")
        print(f"{r.id:>8}  {r.title[:48]:48}  {', '.join(flags)}")
    if not items:
        print("No usable rows (every row is missing id, title or url).")
        raise SystemExit(1)
    print("Catalog OK.")


if __name__ == "__main__":
    main()
