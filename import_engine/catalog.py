"""
import_engine.catalog - Car and track catalogue import.

Unlike parts and tuning, cars and tracks are flat lists: one CSV row is
one row in the table.  Rows are matched on their slug, so a re-import
updates cars and tracks in place and builds, lap times and races that
point at them keep their links.

Car CSV columns:   Make, Model, Year, PP  (optional: Category, Drive,
                   Power, Weight)
Track CSV columns: Course Name, Country  (optional: Location, Layout,
                   Length)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models import Base, Car, Track
from import_engine.csv_parser import parse_rows
from import_engine.report import CatalogReport

logger = logging.getLogger(__name__)

BATCH_SIZE = 50
SLUG_MAX = 200

# Race category markers in car model names, checked in order
_CAR_CATEGORIES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("gr.1", "gr1"), "GR1"),
    (("gr.2", "gr2"), "GR2"),
    (("gr.3", "gr3"), "GR3"),
    (("gr.4", "gr4"), "GR4"),
    (("gr.b", "grb", "rally"), "RALLY"),
    (("vision gt", "vgt"), "VISION_GT"),
    (("kart",), "KART"),
)


@dataclass(frozen=True)
class CatalogKind:
    key: str
    model: type[Base]
    fields: Callable[[dict[str, str]], Optional[dict]]   # row → column values


# ── Field helpers ──────────────────────────────────────────────────────

def slugify(text: str) -> str:
    """ "Suzuka Circuit - East Course" → "suzuka-circuit-east-course" """
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"\s+", "-", slug.strip())
    slug = re.sub(r"-+", "-", slug)
    return slug[:SLUG_MAX]


def car_slug(make: str, model: str, year: Optional[int]) -> str:
    """Make + model (make not repeated) + year."""
    if model.lower().startswith(make.lower()):
        model = model[len(make):].strip()
    parts = [make, model] + ([str(year)] if year else [])
    return slugify(" ".join(p for p in parts if p))


def parse_year(text: str) -> Optional[int]:
    """ "97" → 1997, "21" → 2021, "2026" → 2026, "" → None """
    try:
        year = int(text.strip())
    except ValueError:
        return None
    if year < 100:
        return 1900 + year if year >= 50 else 2000 + year
    return year


def car_category(model: str) -> str:
    name = model.lower()
    for markers, category in _CAR_CATEGORIES:
        if any(m in name for m in markers):
            return category
    return "OTHER"


def _number(text: str) -> Optional[float]:
    try:
        return float(text.replace(",", "").strip())
    except ValueError:
        return None


def _whole(text: str) -> Optional[int]:
    value = _number(text)
    return None if value is None else int(round(value))


def car_fields(row: dict[str, str]) -> Optional[dict]:
    model = row.get("Model", "")
    if not model:
        return None
    make = row.get("Make", "")
    year = parse_year(row.get("Year", ""))
    return {
        "slug": car_slug(make, model, year),
        "name": model,
        "manufacturer": make,
        "year": year,
        "category": row.get("Category") or car_category(model),
        "drive_type": row.get("Drive") or None,
        "max_power": _whole(row.get("Power", "")),
        "weight": _whole(row.get("Weight", "")),
        "pp": _number(row.get("PP", "")),
    }


def track_fields(row: dict[str, str]) -> Optional[dict]:
    # The course name carries the layout, which keeps names unique
    name = row.get("Course Name", "")
    if not name:
        return None
    country = row.get("Country") or None
    return {
        "slug": slugify(name),
        "name": name,
        "location": row.get("Location") or country,
        "layout": row.get("Layout") or None,
        "country": country,
        "length": _number(row.get("Length", "")),
    }


CARS = CatalogKind(key="cars", model=Car, fields=car_fields)
TRACKS = CatalogKind(key="tracks", model=Track, fields=track_fields)

CATALOGS: dict[str, CatalogKind] = {CARS.key: CARS, TRACKS.key: TRACKS}


# ── Import ─────────────────────────────────────────────────────────────

def import_catalog(
    session: Session,
    kind: CatalogKind,
    file_content: str | bytes,
) -> CatalogReport:
    """Insert new rows and update existing ones, matched by slug."""
    report = CatalogReport(stage=kind.key)
    rows = parse_rows(file_content)
    report.total_rows = len(rows)

    model = kind.model
    existing = {obj.slug: obj for obj in session.query(model)}
    seen: set[str] = set()
    pending: list[tuple[str, dict]] = []

    for row in rows:
        values = kind.fields(row)
        if values is None or not values["slug"]:
            report.skipped += 1
            continue
        if values["slug"] in seen:
            report.add_error(values["name"], f"duplicate slug: {values['slug']}")
            continue
        seen.add(values["slug"])
        pending.append((values["slug"], values))

    logger.info("%s: %d rows, %d unique", kind.key, len(rows), len(pending))

    for start in range(0, len(pending), BATCH_SIZE):
        _save_batch(session, kind, existing, pending[start:start + BATCH_SIZE], report)

    return report


def _save_batch(session, kind, existing, batch, report) -> None:
    created = updated = 0
    try:
        for slug, values in batch:
            obj = existing.get(slug)
            if obj is None:
                session.add(kind.model(**values))
                created += 1
            else:
                for column, value in values.items():
                    setattr(obj, column, value)
                updated += 1
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Error saving %s batch: %s", kind.key, exc)
        report.add_error(batch[0][1]["name"], f"batch of {len(batch)} failed: {exc}")
        return

    report.created += created
    report.updated += updated
    logger.info("  Saved %d %s (%d new)", created + updated, kind.key, created)
