"""
import_engine - Reference-data import pipeline.

Public API:
    run_migration(session, parts_csv, tuning_csv[, cars_csv, tracks_csv]) → MigrationReport
    run_import(session, kind, csv)                → MigrationReport
    read_source(path)                             → bytes (or ImportSetupError)
"""

from import_engine.importer import (                 # noqa: F401
    run_import,
    run_migration,
    read_source,
    import_reference,
    backfill_legacy,
    verify,
    ImportSetupError,
    KINDS,
    IMPORT_KINDS,
    PARTS,
    TUNING,
)
from import_engine.catalog import import_catalog, CARS, TRACKS   # noqa: F401
from import_engine.report import MigrationReport     # noqa: F401
