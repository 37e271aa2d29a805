"""
import_engine.grouping - Row grouping and category ordering.

Pure functions: no database access, so both steps are testable on
plain lists.
"""

from __future__ import annotations

from typing import Iterable, Sequence


def group_rows(
    rows: Iterable[dict[str, str]],
    category_col: str,
    item_col: str,
) -> dict[str, list[str]]:
    """
    Group rows into {category: [item, …]} keeping file order.

    Rows with a blank category or item are skipped.  Duplicate item
    names stay as separate entries.
    """
    grouped: dict[str, list[str]] = {}
    for row in rows:
        category = (row.get(category_col) or "").strip()
        item = (row.get(item_col) or "").strip()
        if not category or not item:
            continue
        grouped.setdefault(category, []).append(item)
    return grouped


def order_categories(
    present: Iterable[str],
    canonical: Sequence[str],
) -> list[tuple[int, str]]:
    """
    Return [(display_order, name), …] with 1-based gapless orders.

    Canonical names present in the data come first, in canonical order;
    unknown names follow in the order they were first seen.
    """
    seen: list[str] = []
    for name in present:
        if name not in seen:
            seen.append(name)

    ordered = [name for name in canonical if name in seen]
    ordered += [name for name in seen if name not in canonical]
    return list(enumerate(ordered, start=1))
