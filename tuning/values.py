"""
tuning.values - Encode/decode of persisted tuning value text.

A build stores one text value per tuning setting.  How that text is laid
out depends on the setting's input_type:

    text / number / decimal / gradientSlider / singleSlider
                                    raw text            → Scalar
    select                          one option          → Scalar
    dual / ratio / sliderDual       "<front>:<rear>"    → DualValue
    toeAngle                        "<front>:<rear>",   → ToeAngle
                                    signed, 3 decimals
    ballastSlider                   signed integer      → BallastPosition

Structured values are used everywhere in the application; the colon
strings exist only at the storage boundary (decode on read, encode on
write).  Partial edits go through apply_update(), which decodes the
current text once, replaces one field, and encodes once, so the other
side of a dual value is always carried from the same decoded state.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Optional, Union

import config


class InputType(str, Enum):
    TEXT            = "text"
    NUMBER          = "number"
    DECIMAL         = "decimal"
    SELECT          = "select"
    DUAL            = "dual"
    RATIO           = "ratio"
    SLIDER_DUAL     = "sliderDual"
    TOE_ANGLE       = "toeAngle"
    BALLAST_SLIDER  = "ballastSlider"
    GRADIENT_SLIDER = "gradientSlider"
    SINGLE_SLIDER   = "singleSlider"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "InputType":
        """Unknown or missing types render as plain text."""
        try:
            return cls(raw) if raw else cls.TEXT
        except ValueError:
            return cls.TEXT


# Types stored as "<front>:<rear>"
DUAL_TYPES = frozenset({
    InputType.DUAL, InputType.RATIO, InputType.SLIDER_DUAL, InputType.TOE_ANGLE,
})

SLIDER_TYPES = frozenset({
    InputType.SLIDER_DUAL, InputType.GRADIENT_SLIDER, InputType.SINGLE_SLIDER,
})


class Direction(str, Enum):
    IN       = "In"
    OUT      = "Out"
    STRAIGHT = "Straight"


class Position(str, Enum):
    FRONT  = "Front"
    CENTER = "Center"
    REAR   = "Rear"


# ── Setting metadata ───────────────────────────────────────────────────

@dataclass(frozen=True)
class SettingSpec:
    """The subset of a TuningSetting the codec needs."""
    input_type: InputType = InputType.TEXT
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    step: Optional[float] = None
    default_value: Optional[str] = None
    options: tuple[str, ...] = field(default_factory=tuple)
    unit: Optional[str] = None

    @classmethod
    def from_setting(cls, setting) -> "SettingSpec":
        """Build from a db.models.TuningSetting (or anything shaped like it)."""
        options = getattr(setting, "option_list", None)
        if options is None:
            options = getattr(setting, "options", None) or ()
        return cls(
            input_type=InputType.parse(getattr(setting, "input_type", None)),
            min_value=getattr(setting, "min_value", None),
            max_value=getattr(setting, "max_value", None),
            step=getattr(setting, "step", None),
            default_value=getattr(setting, "default_value", None),
            options=tuple(options),
            unit=getattr(setting, "unit", None),
        )


# ── Decoded shapes ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class Scalar:
    text: str = ""


@dataclass(frozen=True)
class DualValue:
    front: str = ""
    rear: str = ""


@dataclass(frozen=True)
class ToeSide:
    value: float = 0.0

    @property
    def direction(self) -> Direction:
        if self.value > config.TOE_DEAD_ZONE:
            return Direction.IN
        if self.value < -config.TOE_DEAD_ZONE:
            return Direction.OUT
        return Direction.STRAIGHT

    @property
    def magnitude(self) -> str:
        return f"{abs(self.value):.3f}"

    @property
    def display(self) -> str:
        if self.direction is Direction.STRAIGHT:
            return self.magnitude
        return f"{self.magnitude} {self.direction.value}"


@dataclass(frozen=True)
class ToeAngle:
    front: ToeSide = field(default_factory=ToeSide)
    rear: ToeSide = field(default_factory=ToeSide)


@dataclass(frozen=True)
class BallastPosition:
    offset: int = 0

    @property
    def position(self) -> Position:
        if self.offset < 0:
            return Position.FRONT
        if self.offset > 0:
            return Position.REAR
        return Position.CENTER

    @property
    def display(self) -> str:
        if self.offset < 0:
            return f"{self.offset} {self.position.value}"
        if self.offset > 0:
            return f"+{self.offset} {self.position.value}"
        return f"0 {self.position.value}"


TuningValue = Union[Scalar, DualValue, ToeAngle, BallastPosition]


# ── Number helpers ─────────────────────────────────────────────────────

_LEADING_FLOAT = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")


def parse_number(text: Optional[str]) -> Optional[float]:
    """Leading-number parse: "12.5 mm" → 12.5, "abc" → None."""
    if not text:
        return None
    m = _LEADING_FLOAT.match(text)
    if not m:
        return None
    value = float(m.group(1))
    return value if math.isfinite(value) else None


def format_number(value: float) -> str:
    """Shortest text for a number: 3.0 → "3", 2.5 → "2.5"."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def decimal_places(step: Optional[float]) -> int:
    """Decimal places implied by a slider step (0.01 → 2, 1 → 0)."""
    if not step or step >= 1:
        return 0
    digits = f"{step:f}".rstrip("0").split(".")
    return len(digits[1]) if len(digits) > 1 else 0


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def split_dual(text: Optional[str]) -> tuple[str, str]:
    """Split "<front>:<rear>"; a missing side is ""."""
    parts = (text or "").split(":")
    front = parts[0].strip()
    rear = parts[1].strip() if len(parts) > 1 else ""
    return front, rear


# ── Decode ─────────────────────────────────────────────────────────────

def decode(spec: SettingSpec | InputType | str, text: Optional[str]) -> TuningValue:
    """Persisted text → structured value."""
    spec = _as_spec(spec)
    text = text or ""
    kind = spec.input_type

    if kind is InputType.TOE_ANGLE:
        front, rear = split_dual(text)
        return ToeAngle(
            front=ToeSide(parse_number(front) or 0.0),
            rear=ToeSide(parse_number(rear) or 0.0),
        )

    if kind in DUAL_TYPES:
        front, rear = split_dual(text)
        return DualValue(front=front, rear=rear)

    if kind is InputType.BALLAST_SLIDER:
        return BallastPosition(_round_half_up(parse_number(text) or 0.0))

    if kind is InputType.SELECT:
        if text.strip():
            return Scalar(text)
        if spec.default_value:
            return Scalar(spec.default_value)
        return Scalar(spec.options[0] if spec.options else "")

    return Scalar(text)


def ratio_numbers(value: DualValue) -> tuple[float, float]:
    """Numeric view of a ratio (torque split); missing sides are 0 / 100."""
    front = parse_number(value.front)
    rear = parse_number(value.rear)
    return (front if front is not None else 0.0,
            rear if rear is not None else 100.0)


# ── Encode ─────────────────────────────────────────────────────────────

def encode(value: TuningValue) -> str:
    """Structured value → persisted text."""
    if isinstance(value, ToeAngle):
        return f"{_toe_text(value.front.value)}:{_toe_text(value.rear.value)}"
    if isinstance(value, DualValue):
        return f"{value.front}:{value.rear}"
    if isinstance(value, BallastPosition):
        return str(value.offset)
    return value.text


def _toe_text(value: float) -> str:
    text = f"{value:.3f}"
    return "0.000" if text == "-0.000" else text


# ── Typed input normalisation ──────────────────────────────────────────

def clamp_input(spec: SettingSpec, raw: str) -> str:
    """
    Parse typed slider input, clamp to the setting range and format
    with the step's decimal places.  Unparseable input → "".
    """
    parsed = parse_number(raw)
    if parsed is None:
        return ""

    if spec.input_type is InputType.BALLAST_SLIDER:
        lo = spec.min_value if spec.min_value is not None else config.BALLAST_MIN
        hi = spec.max_value if spec.max_value is not None else config.BALLAST_MAX
        return str(_round_half_up(min(max(parsed, lo), hi)))

    lo = spec.min_value if spec.min_value is not None else config.SLIDER_DEFAULT_MIN
    hi = spec.max_value if spec.max_value is not None else config.SLIDER_DEFAULT_MAX
    clamped = min(max(parsed, lo), hi)
    places = decimal_places(spec.step)
    return f"{clamped:.{places}f}" if places else format_number(clamped)


def parse_toe_input(raw: str) -> str:
    """
    Typed toe input → stored text.  "0.25 In" / "0.1 out" set the sign,
    the result is clamped to ±TOE_LIMIT with 3 decimals.
    """
    raw = raw or ""
    cleaned = re.sub(r"\s*(in|out)$", "", raw.strip(), flags=re.IGNORECASE)
    is_out = re.search(r"out", raw, re.IGNORECASE) is not None
    is_in = not is_out and re.search(r"in", raw, re.IGNORECASE) is not None

    parsed = parse_number(cleaned)
    if parsed is None:
        return "0.000"
    if is_out:
        parsed = -abs(parsed)
    elif is_in:
        parsed = abs(parsed)

    limit = config.TOE_LIMIT
    return _toe_text(min(max(parsed, -limit), limit))


def normalize_side(spec: SettingSpec, raw: Any) -> str:
    """Normalise one typed value for the setting's input type."""
    raw = "" if raw is None else str(raw)
    kind = spec.input_type

    if kind is InputType.TOE_ANGLE:
        return parse_toe_input(raw)
    if kind in SLIDER_TYPES or kind is InputType.BALLAST_SLIDER:
        return clamp_input(spec, raw)
    if kind is InputType.SELECT and spec.options and raw not in spec.options:
        raise ValueError(f"{raw!r} is not one of {list(spec.options)}")
    return raw.strip()


# ── Partial updates ────────────────────────────────────────────────────

def apply_update(
    spec: SettingSpec | InputType | str,
    current: Optional[str],
    update: Mapping[str, Any],
) -> str:
    """
    Apply a partial edit to the current stored text and return the new
    stored text.

    ``update`` holds "front" and/or "rear" for dual-valued types, or
    "value" for everything else.  The untouched side keeps its current
    value; a side that was never set stays "" ("0.000" for toe).
    """
    spec = _as_spec(spec)
    decoded = decode(spec, current)

    if isinstance(decoded, ToeAngle):
        sides = {}
        for side in ("front", "rear"):
            if side in update:
                sides[side] = ToeSide(float(parse_toe_input(str(update[side]))))
        return encode(replace(decoded, **sides))

    if isinstance(decoded, DualValue):
        sides = {side: normalize_side(spec, update[side])
                 for side in ("front", "rear") if side in update}
        return encode(replace(decoded, **sides))

    if "value" not in update:
        return current or ""

    value = normalize_side(spec, update["value"])
    if isinstance(decoded, BallastPosition):
        return value
    return encode(Scalar(value))


def _as_spec(spec: SettingSpec | InputType | str) -> SettingSpec:
    if isinstance(spec, SettingSpec):
        return spec
    if isinstance(spec, InputType):
        return SettingSpec(input_type=spec)
    return SettingSpec(input_type=InputType.parse(spec))
