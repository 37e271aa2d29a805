"""
import_engine.importer - Top-level orchestrator.

Coordinates csv_parser → grouping → DB insert for each reference kind,
then backfills the legacy build tables and counts the result.  Cars
and tracks go through import_engine.catalog first.

Every database write is its own short transaction.  A failed category
insert is logged and skipped (its items are never inserted); a failed
item batch is logged and the run moves on.  Only setup problems
(missing file, missing database URL) raise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models import (
    Base,
    PartCategory, Part, TuningSection, TuningSetting,
    Car, Track, CarBuildUpgrade, CarBuildSetting,
)
from import_engine.catalog import CATALOGS, CARS, TRACKS, import_catalog
from import_engine.csv_parser import parse_rows
from import_engine.field_map import (
    PARTS_COLUMNS, TUNING_COLUMNS, PART_CATEGORY_ORDER, TUNING_SECTION_ORDER,
)
from import_engine.grouping import group_rows, order_categories
from import_engine.report import (
    ImportReport, BackfillReport, VerifyReport, MigrationReport,
)

logger = logging.getLogger(__name__)


class ImportSetupError(Exception):
    """Raised when the run cannot start (no file, no database)."""
    pass


@dataclass(frozen=True)
class ReferenceKind:
    """Everything that differs between the parts and tuning imports."""
    key: str
    columns: tuple[str, str]
    canonical_order: tuple[str, ...]
    category_model: type[Base]
    item_model: type[Base]
    item_fk: str                 # item column pointing at its category
    legacy_model: type[Base]
    legacy_item_col: str         # free-text item column on the legacy table
    legacy_fk: str               # nullable FK column to backfill
    reconcile: bool              # keep existing rows instead of delete-all


PARTS = ReferenceKind(
    key="parts",
    columns=PARTS_COLUMNS,
    canonical_order=PART_CATEGORY_ORDER,
    category_model=PartCategory,
    item_model=Part,
    item_fk="category_id",
    legacy_model=CarBuildUpgrade,
    legacy_item_col="part",
    legacy_fk="part_id",
    reconcile=False,
)

TUNING = ReferenceKind(
    key="tuning",
    columns=TUNING_COLUMNS,
    canonical_order=TUNING_SECTION_ORDER,
    category_model=TuningSection,
    item_model=TuningSetting,
    item_fk="section_id",
    legacy_model=CarBuildSetting,
    legacy_item_col="setting",
    legacy_fk="setting_id",
    reconcile=True,
)

KINDS: dict[str, ReferenceKind] = {PARTS.key: PARTS, TUNING.key: TUNING}

# Every kind the import endpoint accepts
IMPORT_KINDS: tuple[str, ...] = (*KINDS, *CATALOGS)


# ── Setup ──────────────────────────────────────────────────────────────

def read_source(path: str | Path) -> bytes:
    """Read one CSV file or raise ImportSetupError."""
    path = Path(path)
    if not path.is_file():
        raise ImportSetupError(f"CSV not found: {path}")
    try:
        return path.read_bytes()
    except OSError as exc:
        raise ImportSetupError(f"Cannot read {path}: {exc}") from exc


# ── Stage 1/2: CSV → Category/Item ─────────────────────────────────────

def import_reference(
    session: Session,
    kind: ReferenceKind,
    file_content: str | bytes,
) -> ImportReport:
    """Insert one reference kind from CSV content."""
    report = ImportReport(stage=kind.key)
    rows = parse_rows(file_content)
    report.total_rows = len(rows)

    grouped = group_rows(rows, *kind.columns)
    report.skipped = report.total_rows - sum(len(v) for v in grouped.values())
    logger.info("%s: %d rows, %d categories", kind.key, len(rows), len(grouped))

    if not kind.reconcile:
        _clear(session, kind)

    ordered = order_categories(grouped, kind.canonical_order)
    for display_order, name in ordered:
        category = _save_category(session, kind, name, display_order, report)
        if category is None:
            continue
        report.categories += 1
        _insert_items(session, kind, category, grouped[name], report)

    if kind.reconcile:
        _renumber_leftovers(session, kind, [name for _, name in ordered], report)

    return report


def _clear(session: Session, kind: ReferenceKind) -> None:
    """Delete every item and category of this kind before re-inserting."""
    legacy_fk = getattr(kind.legacy_model, kind.legacy_fk)
    try:
        # Legacy rows hold FKs into the items; the backfill restores them.
        session.query(kind.legacy_model).filter(legacy_fk.isnot(None)).update(
            {legacy_fk: None}, synchronize_session=False,
        )
        session.query(kind.item_model).delete(synchronize_session=False)
        session.query(kind.category_model).delete(synchronize_session=False)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        raise


def _save_category(
    session: Session,
    kind: ReferenceKind,
    name: str,
    display_order: int,
    report: ImportReport,
):
    model = kind.category_model
    try:
        category = None
        if kind.reconcile:
            category = session.query(model).filter(model.name == name).one_or_none()
        if category is None:
            category = model(name=name, display_order=display_order)
            session.add(category)
        else:
            category.display_order = display_order
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Error inserting category %r: %s", name, exc)
        report.add_error(name, f"category insert failed: {exc}")
        return None

    logger.info("Inserted category: %s", name)
    return category


def _renumber_leftovers(
    session: Session,
    kind: ReferenceKind,
    names: list[str],
    report: ImportReport,
) -> None:
    """
    Categories kept from earlier imports but absent from this CSV go
    after the CSV ones, in their previous relative order.
    """
    model = kind.category_model
    try:
        leftovers = (
            session.query(model)
            .filter(model.name.notin_(names))
            .order_by(model.display_order, model.name)
            .all()
        )
        for display_order, category in enumerate(leftovers, start=len(names) + 1):
            category.display_order = display_order
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Error renumbering %s categories: %s", kind.key, exc)
        report.add_error(kind.key, f"category renumber failed: {exc}")
        return

    if leftovers:
        logger.info("Kept %d %s categories not in the CSV", len(leftovers), kind.key)


def _insert_items(
    session: Session,
    kind: ReferenceKind,
    category,
    names: list[str],
    report: ImportReport,
) -> None:
    model = kind.item_model
    fk = getattr(model, kind.item_fk)

    positions = list(enumerate(names, start=1))
    if kind.reconcile:
        positions = _reconcile_items(session, kind, category, names)

    items = []
    for pos, name in positions:
        item = model(name=name, is_active=True, **{kind.item_fk: category.id})
        if hasattr(model, "display_order"):
            item.display_order = pos
        items.append(item)

    try:
        session.add_all(items)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Error inserting items for %r: %s", category.name, exc)
        report.add_error(category.name, f"item insert failed: {exc}")
        return

    if items:
        report.items += len(items)
        logger.info("  Inserted %d items into %s", len(items), category.name)


def _reconcile_items(session: Session, kind: ReferenceKind, category, names: list[str]):
    """
    Move existing items to their CSV position and return the
    (position, name) pairs still to insert.  Items missing from the CSV
    keep their relative order after the CSV ones.
    """
    model = kind.item_model
    fk = getattr(model, kind.item_fk)
    ordered = hasattr(model, "display_order")
    unique = list(dict.fromkeys(names))

    existing = {item.name: item for item in session.query(model).filter(fk == category.id)}
    fresh = []
    for pos, name in enumerate(unique, start=1):
        item = existing.pop(name, None)
        if item is None:
            fresh.append((pos, name))
        elif ordered:
            item.display_order = pos

    if ordered:
        leftovers = sorted(existing.values(),
                           key=lambda i: (i.display_order or 0, i.name))
        for pos, item in enumerate(leftovers, start=len(unique) + 1):
            item.display_order = pos
    return fresh


# ── Stage 3/4: legacy build rows → FK ──────────────────────────────────

def backfill_legacy(session: Session, kind: ReferenceKind) -> BackfillReport:
    """
    Point every legacy build row at the item with the same
    (category name, item name).  Misses keep a NULL FK and are counted.
    """
    legacy = kind.legacy_model
    item = kind.item_model
    category = kind.category_model
    legacy_item = getattr(legacy, kind.legacy_item_col)
    legacy_fk = getattr(legacy, kind.legacy_fk)

    report = BackfillReport(table=legacy.__tablename__)

    try:
        rows = session.query(legacy.id, legacy.category, legacy_item).all()
        items = (
            session.query(item.id, item.name, category.name)
            .join(category, getattr(item, kind.item_fk) == category.id)
            .filter(item.is_active.is_(True))
            .all()
        )
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Error fetching %s rows: %s", legacy.__tablename__, exc)
        report.error = str(exc)
        return report

    lookup: dict[tuple[str, str], str] = {
        (cat_name, item_name): item_id for item_id, item_name, cat_name in items
    }

    for row_id, cat_name, item_name in rows:
        report.total += 1
        item_id = lookup.get((cat_name, item_name))
        if item_id is None:
            key = f"{cat_name}:{item_name}"
            logger.warning("No matching %s found for: %s", kind.key, key)
            report.failed += 1
            report.unmatched.append(key)
            continue

        try:
            session.query(legacy).filter(legacy.id == row_id).update(
                {legacy_fk: item_id}, synchronize_session=False,
            )
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Error updating %s %s: %s", legacy.__tablename__, row_id, exc)
            report.failed += 1
            continue
        report.migrated += 1

    return report


# ── Stage 5: verification ──────────────────────────────────────────────

def verify(session: Session) -> VerifyReport:
    """Count rows in every affected table.  Never raises."""
    report = VerifyReport()
    tables = (Car, Track, PartCategory, Part, TuningSection, TuningSetting)
    try:
        for model in tables:
            report.counts[model.__tablename__] = session.query(func.count(model.id)).scalar() or 0
        for kind in (PARTS, TUNING):
            legacy = kind.legacy_model
            fk = getattr(legacy, kind.legacy_fk)
            name = legacy.__tablename__
            report.counts[name] = session.query(func.count(legacy.id)).scalar() or 0
            report.linked[name] = (
                session.query(func.count(legacy.id)).filter(fk.isnot(None)).scalar() or 0
            )
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Verification query failed: %s", exc)
    return report


# ── Full run ───────────────────────────────────────────────────────────

def run_import(
    session: Session,
    kind_key: str,
    file_content: str | bytes,
) -> MigrationReport:
    """Import one kind; parts and tuning also backfill their legacy table."""
    report = MigrationReport()
    if kind_key in CATALOGS:
        report.catalogs.append(import_catalog(session, CATALOGS[kind_key], file_content))
    else:
        kind = KINDS[kind_key]
        report.imports.append(import_reference(session, kind, file_content))
        report.backfills.append(backfill_legacy(session, kind))
    report.verify = verify(session)
    return report


def run_migration(
    session: Session,
    parts_content: str | bytes,
    tuning_content: str | bytes,
    cars_content: str | bytes | None = None,
    tracks_content: str | bytes | None = None,
) -> MigrationReport:
    """Cars and tracks (when given), parts, tuning, both backfills, then verification."""
    report = MigrationReport()
    for kind, content in ((CARS, cars_content), (TRACKS, tracks_content)):
        if content is not None:
            report.catalogs.append(import_catalog(session, kind, content))
    report.imports.append(import_reference(session, PARTS, parts_content))
    report.imports.append(import_reference(session, TUNING, tuning_content))
    report.backfills.append(backfill_legacy(session, PARTS))
    report.backfills.append(backfill_legacy(session, TUNING))
    report.verify = verify(session)
    return report
