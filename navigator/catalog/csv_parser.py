# navigator/catalog/csv_parser.py
"""
Tolerant CSV reader for the published resource sheet.

The sheet is edited by hand, so the parser never raises:
- quoted fields may hold delimiters and newlines
- "" inside quotes is one literal quote
- a stray quote just toggles quoting
- rows where every field is empty are skipped (blank lines)
"""

from __future__ import annotations

from typing import List


def parse_csv(text: str, delimiter: str = ",", quote: str = '"') -> List[List[str]]:
    rows: List[List[str]] = []
    row: List[str] = []
    field: List[str] = []
    in_quotes = False

    def _end_row() -> None:
        row.append("".join(field))
        if any(v != "" for v in row):
            rows.append(list(row))
        row.clear()
        field.clear()

    src = text or ""
    i = 0
    n = len(src)
    while i < n:
        c = src[i]
        nxt = src[i + 1] if i + 1 < n else ""

        if c == quote and in_quotes and nxt == quote:
            field.append(quote)
            i += 2
            continue
        if c == quote:
            in_quotes = not in_quotes
            i += 1
            continue
        if c == delimiter and not in_quotes:
            row.append("".join(field))
            field.clear()
            i += 1
            continue
        if c in ("\n", "\r") and not in_quotes:
            if c == "\r" and nxt == "\n":
                i += 1
            _end_row()
            i += 1
            continue

        field.append(c)
        i += 1

    _end_row()
    return rows
