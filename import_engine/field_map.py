"""
import_engine.field_map - CSV columns and canonical category orders.

Each reference CSV has exactly two columns: the owning category/section
and the item name.  The canonical lists fix the display order of the
names the game knows about; anything else found in a CSV is appended
after them in first-seen order.
"""

# CSV header names  (category column, item column)
PARTS_COLUMNS:  tuple[str, str] = ("Category", "Part")
TUNING_COLUMNS: tuple[str, str] = ("Section", "Setting")

# Parts shop tiers, entry level to extreme
PART_CATEGORY_ORDER: tuple[str, ...] = (
    "Sports",
    "Club Sports",
    "Semi-Racing",
    "Racing",
    "Extreme",
)

# Tuning sections in in-game menu order
TUNING_SECTION_ORDER: tuple[str, ...] = (
    "Tyres",
    "Suspension",
    "Differential Gear",
    "Aerodynamics",
    "ECU",
    "Performance Adjustment",
    "Transmission",
    "Nitrous/Overtake",
    "Supercharger",
    "Intake & Exhaust",
    "Brakes",
    "Steering",
    "Drivetrain",
    "Engine Tuning",
    "Bodywork",
)
