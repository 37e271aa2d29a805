"""
tuning.projection - Group and order build entries for display.

Pure functions of (items, grouping key) → ordered groups, so the view
shape can be tested without a database or a template.
"""

from __future__ import annotations

from typing import Callable, Hashable, Iterable, Optional, TypeVar

T = TypeVar("T")

TRANSMISSION_SECTION = "Transmission"
FINAL_DRIVE = "Final Drive"
_UNORDERED = 999


def group_ordered(
    items: Iterable[T],
    key: Callable[[T], Hashable],
    group_order: Optional[Callable[[Hashable], int]] = None,
) -> list[tuple[Hashable, list[T]]]:
    """
    Group items by key.  Groups follow group_order (when given) and
    first appearance otherwise; items keep their input order.
    """
    groups: dict[Hashable, list[T]] = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)

    ordered = list(groups.items())
    if group_order is not None:
        first_seen = {g: i for i, (g, _) in enumerate(ordered)}
        ordered.sort(key=lambda kv: (group_order(kv[0]), first_seen[kv[0]]))
    return ordered


def sort_section_entries(
    section: str,
    entries: list[dict],
) -> list[dict]:
    """
    Transmission keeps setting display order with Final Drive last;
    every other section is alphabetical by name.

    Entries are dicts with at least "name" and "display_order".
    """
    if section == TRANSMISSION_SECTION:
        return sorted(entries, key=lambda e: (
            e["name"] == FINAL_DRIVE,
            e.get("display_order") or _UNORDERED,
        ))
    return sorted(entries, key=lambda e: e["name"].lower())
