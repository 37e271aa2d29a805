"""
GT7DB - Centralised configuration.

All tunables live here.  Every other module imports from config
instead of reading os.environ directly.
"""

from __future__ import annotations
import os
from pathlib import Path


# ── Paths ──────────────────────────────────────────────────────────────
BASE_DIR         = Path(__file__).resolve().parent
DATA_DIR         = Path(os.environ.get("GT7DB_DATA_DIR", BASE_DIR / "gt7data"))
PARTS_CSV_PATH   = Path(os.environ.get("GT7DB_PARTS_CSV",  DATA_DIR / "gt7_parts_shop.csv"))
TUNING_CSV_PATH  = Path(os.environ.get("GT7DB_TUNING_CSV", DATA_DIR / "gt7_tuning_settings.csv"))
CARS_CSV_PATH    = Path(os.environ.get("GT7DB_CARS_CSV",   DATA_DIR / "gt7_cars.csv"))
TRACKS_CSV_PATH  = Path(os.environ.get("GT7DB_TRACKS_CSV", DATA_DIR / "gt7_tracks.csv"))

# ── Database ───────────────────────────────────────────────────────────
DB_URL = os.environ.get("GT7DB_DB", f"sqlite:///{BASE_DIR / 'gt7db.sqlite'}")

# ── Server ─────────────────────────────────────────────────────────────
HOST   = os.environ.get("GT7DB_HOST", "0.0.0.0")
PORT   = int(os.environ.get("GT7DB_PORT", "5000"))
DEBUG  = os.environ.get("GT7DB_DEBUG", "0") == "1"
SECRET = os.environ.get("GT7DB_SECRET", "gt7db-dev-key-change-in-prod")

# ── Logging ────────────────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("GT7DB_LOG_LEVEL", "INFO").upper()

# ── Reference-data listings ────────────────────────────────────────────
# Sections, categories, parts and settings change only on import.
REFERENCE_CACHE_SECONDS = 3600

# ── Tuning value rules ─────────────────────────────────────────────────
TOE_DEAD_ZONE   = 0.0005
TOE_LIMIT       = 5.0
BALLAST_MIN     = -50
BALLAST_MAX     = 50
SLIDER_DEFAULT_MIN = 0.0
SLIDER_DEFAULT_MAX = 100.0
GEAR_COUNT      = 20

# ── Lap times ──────────────────────────────────────────────────────────
LAP_TIME_MIN_MS = 10_000          # 10 seconds
LAP_TIME_MAX_MS = 1_800_000       # 30 minutes

# ── Builds ─────────────────────────────────────────────────────────────
BUILD_NAME_MAX        = 100
BUILD_DESCRIPTION_MAX = 500
