#!/usr/bin/env python3
"""
migrate_reference_data - Import GT7 reference data from CSV.

    python migrate_reference_data.py [--parts FILE] [--tuning FILE]
                                     [--cars FILE] [--tracks FILE] [--db URL]

Upserts cars and tracks (when a catalogue CSV is found), replaces part
categories/parts, reconciles tuning sections/settings,
links existing builds to the new rows and prints a summary.  Exits 1
only when the run cannot start (missing CSV, no database URL).
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import config
from db import init_db, session_scope
from import_engine import run_migration, read_source, ImportSetupError

logger = logging.getLogger("migrate_reference_data")


def _optional_source(path: str | None, default: Path) -> bytes | None:
    """An explicit path must exist; the default catalogue is used only if present."""
    if path:
        return read_source(path)
    if default.is_file():
        return read_source(default)
    logger.info("No catalogue at %s, skipping", default)
    return None


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Import GT7 reference data from CSV")
    parser.add_argument("--parts", default=str(config.PARTS_CSV_PATH),
                        help="Parts shop CSV (Category,Part)")
    parser.add_argument("--tuning", default=str(config.TUNING_CSV_PATH),
                        help="Tuning settings CSV (Section,Setting)")
    parser.add_argument("--cars", default=None,
                        help="Car catalogue CSV (Make,Model,Year,PP,...)")
    parser.add_argument("--tracks", default=None,
                        help="Track catalogue CSV (Course Name,Country,...)")
    parser.add_argument("--db", default=config.DB_URL, help="SQLAlchemy database URL")
    args = parser.parse_args(argv)

    logging.basicConfig(level=config.LOG_LEVEL, format="%(levelname)-7s %(message)s")

    # Fail before any writes
    try:
        if not args.db:
            raise ImportSetupError("No database URL configured (set GT7DB_DB or --db)")
        parts = read_source(args.parts)
        tuning = read_source(args.tuning)
        cars = _optional_source(args.cars, config.CARS_CSV_PATH)
        tracks = _optional_source(args.tracks, config.TRACKS_CSV_PATH)
    except ImportSetupError as exc:
        logger.error("%s", exc)
        return 1

    print("Starting GT7 reference data migration …")
    init_db(args.db)
    with session_scope() as session:
        report = run_migration(session, parts, tuning, cars, tracks)

    report.print_summary()
    return 0


if __name__ == "__main__":
    sys.exit(main())
