"""
tuning.display - Read-only presentation rules for a finished build.

  • zero suppression   - untouched settings are left out of the summary
  • visibility rules   - settings that only apply when another choice is made
  • display lines      - human text per input type
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from tuning.values import (
    InputType, SettingSpec, DUAL_TYPES,
    DualValue, ToeAngle, BallastPosition, decode, split_dual,
)

ZERO_SENTINELS = frozenset({"0", "0.00", "-0.00"})


def is_zero_value(input_type: InputType | str | None, text: Optional[str]) -> bool:
    """
    True when the stored value is the "untouched" sentinel for its type.
    Dual-valued types count as zero only when both sides are.
    """
    kind = input_type if isinstance(input_type, InputType) else InputType.parse(input_type)
    text = (text or "").strip()
    if kind in DUAL_TYPES:
        front, rear = split_dual(text)
        return front in ZERO_SENTINELS and rear in ZERO_SENTINELS
    return text in ZERO_SENTINELS


# ── Conditional visibility ─────────────────────────────────────────────

@dataclass(frozen=True)
class VisibilityRule:
    dependent: str
    controlling: str
    required_value: str


VISIBILITY_RULES: tuple[VisibilityRule, ...] = (
    VisibilityRule("Wing Height", "Wing", "Custom"),
    VisibilityRule("Wing Endplate", "Wing", "Custom"),
)


def is_visible(
    name: str,
    values_by_name: Mapping[str, Optional[str]],
    rules: tuple[VisibilityRule, ...] = VISIBILITY_RULES,
) -> bool:
    """A name governed by a rule is shown only when its controller matches."""
    for rule in rules:
        if rule.dependent == name and values_by_name.get(rule.controlling) != rule.required_value:
            return False
    return True


# ── Display text ───────────────────────────────────────────────────────

def display_lines(spec: SettingSpec, text: Optional[str]) -> list[str]:
    """Lines shown for one stored value, unit appended where present."""
    unit = f" {spec.unit}" if spec.unit else ""
    value = decode(spec, text)

    if isinstance(value, ToeAngle):
        return [f"Front: {value.front.display}", f"Rear: {value.rear.display}"]
    if isinstance(value, DualValue):
        return [f"Front: {value.front}{unit}", f"Rear: {value.rear}{unit}"]
    if isinstance(value, BallastPosition):
        return [value.display]
    return [f"{value.text}{unit}"]
