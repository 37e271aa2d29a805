"""
tuning.gears - Gear ratio fields on a build.

Gear ratios are not tuning settings rows: each gear is its own text
column (gear_1 … gear_20) plus final_drive.  Display order is fixed:
gears ascending by number, Final Drive last.
"""

from __future__ import annotations

import re
from typing import Mapping, Optional

import config

FINAL_DRIVE_FIELD = "final_drive"
FINAL_DRIVE_LABEL = "Final Drive"

# Accepts gear_3 as well as the camelCase gear3 some clients send
_GEAR_FIELD = re.compile(r"^gear_?(\d+)$")
_FINAL_DRIVE_ALIASES = frozenset({"final_drive", "finalDrive"})


def ordinal(n: int) -> str:
    """1 → "1st", 2 → "2nd", 11 → "11th", 21 → "21st"."""
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def gear_field_names() -> list[str]:
    return [f"gear_{n}" for n in range(1, config.GEAR_COUNT + 1)] + [FINAL_DRIVE_FIELD]


def gear_number(key: str) -> Optional[int]:
    """gear_7 / gear7 → 7; anything else → None."""
    m = _GEAR_FIELD.match(key)
    return int(m.group(1)) if m else None


def gear_label(key: str) -> str:
    if key in _FINAL_DRIVE_ALIASES:
        return FINAL_DRIVE_LABEL
    n = gear_number(key)
    if n is None:
        raise ValueError(f"not a gear field: {key}")
    return f"{ordinal(n)} Gear"


def normalize_gear_updates(data: Mapping[str, object]) -> dict[str, Optional[str]]:
    """
    Pick gear keys out of a request body and map them to column names.

    Raises ValueError for a gear number outside 1..GEAR_COUNT.
    Blank values clear the column.
    """
    out: dict[str, Optional[str]] = {}
    for key, raw in data.items():
        if key in _FINAL_DRIVE_ALIASES:
            column = FINAL_DRIVE_FIELD
        else:
            n = gear_number(key)
            if n is None:
                continue
            if not 1 <= n <= config.GEAR_COUNT:
                raise ValueError(f"gear {n} out of range 1..{config.GEAR_COUNT}")
            column = f"gear_{n}"
        text = "" if raw is None else str(raw).strip()
        out[column] = text or None
    return out


def ordered_gears(values: Mapping[str, Optional[str]]) -> list[dict]:
    """
    [{field, label, value}, …] for every non-blank gear, numeric order,
    Final Drive always last.
    """
    gears: list[tuple[int, str, str]] = []
    final: Optional[tuple[str, str]] = None

    for key, value in values.items():
        if value is None or not str(value).strip():
            continue
        if key in _FINAL_DRIVE_ALIASES:
            final = (key, str(value))
            continue
        n = gear_number(key)
        if n is not None:
            gears.append((n, key, str(value)))

    gears.sort(key=lambda g: g[0])
    out = [{"field": key, "label": f"{ordinal(n)} Gear", "value": value}
           for n, key, value in gears]
    if final:
        out.append({"field": final[0], "label": FINAL_DRIVE_LABEL, "value": final[1]})
    return out
