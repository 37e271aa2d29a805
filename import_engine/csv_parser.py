"""
import_engine.csv_parser - Low-level CSV reading and cleaning.

Responsibilities:
  • BOM removal (UTF-8 / UTF-8-SIG)
  • Blank-line filtering
  • Quote-aware field splitting (commas inside "…" are kept)
  • Whitespace trimming of every header and field

Escaped quotes inside a quoted field ("") are not supported; the
reference CSVs never contain them.
"""

from __future__ import annotations


def parse_rows(raw: str | bytes) -> list[dict[str, str]]:
    """
    Parse raw file content into a list of {header: value} rows.

    The first non-blank line is the header.  Missing trailing fields
    become "", rows whose every field is blank are dropped.
    """
    text = _decode(raw)
    lines = [ln for ln in text.split("\n") if ln.strip()]
    if not lines:
        return []

    headers = [h.strip() for h in lines[0].split(",")]
    rows: list[dict[str, str]] = []

    for line in lines[1:]:
        values = split_line(line)
        row = {h: (values[i] if i < len(values) else "")
               for i, h in enumerate(headers)}
        if any(v for v in row.values()):
            rows.append(row)

    return rows


def split_line(line: str) -> list[str]:
    """Split one CSV line on unquoted commas and trim each field."""
    values: list[str] = []
    current: list[str] = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            values.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    values.append("".join(current).strip())
    return values


def _decode(raw: str | bytes) -> str:
    if isinstance(raw, bytes):
        # Strip UTF-8 BOM
        if raw.startswith(b"\xef\xbb\xbf"):
            raw = raw[3:]
        return raw.decode("utf-8", errors="replace")
    if raw.startswith("\ufeff"):
        return raw[1:]
    return raw
