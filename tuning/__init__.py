"""
tuning - Tuning value codec and display rules.

Public API:
    values.decode / encode / apply_update   → stored text ⇄ structured value
    display.is_zero_value / is_visible      → summary filtering
    gears.ordinal / ordered_gears           → gear ratio presentation
    projection.group_ordered                → view grouping
"""

from tuning.values import (                                    # noqa: F401
    InputType,
    SettingSpec,
    Scalar,
    DualValue,
    ToeSide,
    ToeAngle,
    BallastPosition,
    Direction,
    Position,
    decode,
    encode,
    apply_update,
)
from tuning.display import is_zero_value, is_visible, display_lines   # noqa: F401
from tuning.gears import ordinal, ordered_gears                       # noqa: F401
from tuning.projection import group_ordered, sort_section_entries      # noqa: F401
