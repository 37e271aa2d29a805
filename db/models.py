"""
db.models - SQLAlchemy ORM declarations.

Tables
------
part_categories / parts         - parts-shop tiers and the parts in each.
tuning_sections / tuning_settings
                                - tuning menu sections and their settings.
                                  Each setting carries the input_type that
                                  decides how its value text is encoded.
cars / tracks                   - game reference data.
car_builds                      - one user build of one car.  Gear ratios
                                  are direct text columns, not settings rows.
car_build_upgrades / car_build_settings
                                - per-build part and setting choices.  The
                                  free-text category/part/setting columns are
                                  the pre-migration form; part_id/setting_id
                                  are backfilled by the importer.
lap_times, races, run_lists, run_list_entries
                                - session planning and results.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Integer, Float, Boolean, DateTime, Text, ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime | None) -> str:
    return value.isoformat() if value else ""


class Base(DeclarativeBase):
    pass


# ═══════════════════════════════════════════════════════════════════════
#  Reference data
# ═══════════════════════════════════════════════════════════════════════

class PartCategory(Base):
    __tablename__ = "part_categories"

    id            = Column(String(36), primary_key=True, default=_uuid)
    name          = Column(String(50), nullable=False, unique=True)
    display_order = Column(Integer, nullable=False)
    created_at    = Column(DateTime, default=_now)
    updated_at    = Column(DateTime, default=_now, onupdate=_now)

    parts = relationship("Part", back_populates="category")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "display_order": self.display_order,
        }


class Part(Base):
    __tablename__ = "parts"

    id          = Column(String(36), primary_key=True, default=_uuid)
    category_id = Column(String(36), ForeignKey("part_categories.id"),
                         nullable=False, index=True)
    name        = Column(String(100), nullable=False, index=True)
    description = Column(Text, default="")
    is_active   = Column(Boolean, nullable=False, default=True, index=True)
    created_at  = Column(DateTime, default=_now)
    updated_at  = Column(DateTime, default=_now, onupdate=_now)

    category = relationship("PartCategory", back_populates="parts", lazy="joined")

    __table_args__ = (
        UniqueConstraint("category_id", "name", name="uq_part_category_name"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category_id": self.category_id,
            "name": self.name,
            "description": self.description or "",
            "is_active": bool(self.is_active),
            "category": self.category.to_dict() if self.category else None,
        }


class TuningSection(Base):
    __tablename__ = "tuning_sections"

    id            = Column(String(36), primary_key=True, default=_uuid)
    name          = Column(String(50), nullable=False, unique=True)
    display_order = Column(Integer, nullable=False)
    created_at    = Column(DateTime, default=_now)
    updated_at    = Column(DateTime, default=_now, onupdate=_now)

    settings = relationship("TuningSetting", back_populates="section")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "display_order": self.display_order,
        }


class TuningSetting(Base):
    __tablename__ = "tuning_settings"

    id            = Column(String(36), primary_key=True, default=_uuid)
    section_id    = Column(String(36), ForeignKey("tuning_sections.id"),
                           nullable=False, index=True)
    name          = Column(String(100), nullable=False, index=True)
    description   = Column(Text, default="")

    # ── Value encoding metadata ────────────────────────────────────────
    input_type    = Column(String(30), nullable=False, default="text")
    unit          = Column(String(30), nullable=True)
    min_value     = Column(Float, nullable=True)
    max_value     = Column(Float, nullable=True)
    step          = Column(Float, nullable=True)
    default_value = Column(String(100), nullable=True)
    options       = Column(Text, nullable=True)        # JSON list of strings

    display_order = Column(Integer, nullable=True)
    is_active     = Column(Boolean, nullable=False, default=True, index=True)
    created_at    = Column(DateTime, default=_now)
    updated_at    = Column(DateTime, default=_now, onupdate=_now)

    section = relationship("TuningSection", back_populates="settings", lazy="joined")

    __table_args__ = (
        UniqueConstraint("section_id", "name", name="uq_setting_section_name"),
    )

    @property
    def option_list(self) -> list[str]:
        if not self.options:
            return []
        try:
            data = json.loads(self.options)
        except (json.JSONDecodeError, TypeError):
            return []
        return [str(o) for o in data] if isinstance(data, list) else []

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "section_id": self.section_id,
            "name": self.name,
            "description": self.description or "",
            "input_type": self.input_type or "text",
            "unit": self.unit,
            "min_value": self.min_value,
            "max_value": self.max_value,
            "step": self.step,
            "default_value": self.default_value,
            "options": self.option_list,
            "display_order": self.display_order,
            "is_active": bool(self.is_active),
            "section": self.section.to_dict() if self.section else None,
        }


class Car(Base):
    __tablename__ = "cars"

    id           = Column(String(36), primary_key=True, default=_uuid)
    slug         = Column(String(200), nullable=False, unique=True)
    name         = Column(String(200), nullable=False)
    manufacturer = Column(String(100), default="")
    year         = Column(Integer, nullable=True)
    category     = Column(String(50), nullable=True)
    drive_type   = Column(String(10), nullable=True)
    max_power    = Column(Integer, nullable=True)
    weight       = Column(Integer, nullable=True)
    pp           = Column(Float, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "manufacturer": self.manufacturer or "",
            "year": self.year,
            "category": self.category,
            "drive_type": self.drive_type,
            "max_power": self.max_power,
            "weight": self.weight,
            "pp": self.pp,
        }


class Track(Base):
    __tablename__ = "tracks"

    id         = Column(String(36), primary_key=True, default=_uuid)
    slug       = Column(String(200), nullable=False, unique=True)
    name       = Column(String(200), nullable=False)
    location   = Column(String(200), nullable=True)
    layout     = Column(String(200), nullable=True)
    country    = Column(String(100), nullable=True)
    length     = Column(Float, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "location": self.location,
            "layout": self.layout,
            "country": self.country,
            "length": self.length,
        }


# ═══════════════════════════════════════════════════════════════════════
#  Builds
# ═══════════════════════════════════════════════════════════════════════

class CarBuild(Base):
    __tablename__ = "car_builds"

    id          = Column(String(36), primary_key=True, default=_uuid)
    car_id      = Column(String(36), ForeignKey("cars.id"), nullable=False, index=True)
    name        = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    is_public   = Column(Boolean, nullable=False, default=True)

    # ── Gear ratios (text keeps the typed precision, e.g. "3.500") ─────
    final_drive = Column(String(20), nullable=True)
    gear_1  = Column(String(20), nullable=True)
    gear_2  = Column(String(20), nullable=True)
    gear_3  = Column(String(20), nullable=True)
    gear_4  = Column(String(20), nullable=True)
    gear_5  = Column(String(20), nullable=True)
    gear_6  = Column(String(20), nullable=True)
    gear_7  = Column(String(20), nullable=True)
    gear_8  = Column(String(20), nullable=True)
    gear_9  = Column(String(20), nullable=True)
    gear_10 = Column(String(20), nullable=True)
    gear_11 = Column(String(20), nullable=True)
    gear_12 = Column(String(20), nullable=True)
    gear_13 = Column(String(20), nullable=True)
    gear_14 = Column(String(20), nullable=True)
    gear_15 = Column(String(20), nullable=True)
    gear_16 = Column(String(20), nullable=True)
    gear_17 = Column(String(20), nullable=True)
    gear_18 = Column(String(20), nullable=True)
    gear_19 = Column(String(20), nullable=True)
    gear_20 = Column(String(20), nullable=True)

    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    car = relationship("Car", lazy="joined")
    upgrades = relationship(
        "CarBuildUpgrade", back_populates="build",
        cascade="all, delete-orphan", lazy="selectin",
    )
    settings = relationship(
        "CarBuildSetting", back_populates="build",
        cascade="all, delete-orphan", lazy="selectin",
    )

    def gear_values(self) -> dict[str, str | None]:
        """Return {"gear_1": …, …, "final_drive": …} for every gear column."""
        from tuning.gears import gear_field_names
        return {f: getattr(self, f) for f in gear_field_names()}

    def to_dict(self) -> dict:
        d = {
            "id": self.id,
            "car_id": self.car_id,
            "name": self.name,
            "description": self.description or "",
            "is_public": bool(self.is_public),
            "car": self.car.to_dict() if self.car else None,
            "upgrades": [u.to_dict() for u in self.upgrades],
            "settings": [s.to_dict() for s in self.settings],
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        d.update(self.gear_values())
        return d


class CarBuildUpgrade(Base):
    __tablename__ = "car_build_upgrades"

    id       = Column(String(36), primary_key=True, default=_uuid)
    build_id = Column(String(36), ForeignKey("car_builds.id", ondelete="CASCADE"),
                      nullable=False, index=True)

    # ── Pre-migration free text ────────────────────────────────────────
    category = Column(String(50), nullable=True)
    part     = Column(String(100), nullable=True)

    part_id  = Column(String(36), ForeignKey("parts.id"), nullable=True, index=True)
    value    = Column(String(100), nullable=True)

    build = relationship("CarBuild", back_populates="upgrades")
    part_ref = relationship("Part", lazy="joined")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "build_id": self.build_id,
            "category": self.category,
            "part": self.part,
            "part_id": self.part_id,
            "value": self.value,
        }


class CarBuildSetting(Base):
    __tablename__ = "car_build_settings"

    id       = Column(String(36), primary_key=True, default=_uuid)
    build_id = Column(String(36), ForeignKey("car_builds.id", ondelete="CASCADE"),
                      nullable=False, index=True)

    # ── Pre-migration free text ────────────────────────────────────────
    category = Column(String(50), nullable=True)
    setting  = Column(String(100), nullable=True)

    setting_id = Column(String(36), ForeignKey("tuning_settings.id"),
                        nullable=True, index=True)
    value      = Column(Text, nullable=False, default="")

    build = relationship("CarBuild", back_populates="settings")
    setting_ref = relationship("TuningSetting", lazy="joined")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "build_id": self.build_id,
            "category": self.category,
            "setting": self.setting,
            "setting_id": self.setting_id,
            "value": self.value or "",
        }


# ═══════════════════════════════════════════════════════════════════════
#  Lap times and session planning
# ═══════════════════════════════════════════════════════════════════════

class LapTime(Base):
    __tablename__ = "lap_times"

    id           = Column(String(36), primary_key=True, default=_uuid)
    car_id       = Column(String(36), ForeignKey("cars.id"), nullable=False, index=True)
    track_id     = Column(String(36), ForeignKey("tracks.id"), nullable=False, index=True)
    build_id     = Column(String(36), ForeignKey("car_builds.id", ondelete="SET NULL"),
                          nullable=True)
    time_ms      = Column(Integer, nullable=False)
    session_type = Column(String(1), nullable=False, default="R")
    conditions   = Column(String(200), nullable=True)
    notes        = Column(Text, nullable=True)
    created_at   = Column(DateTime, default=_now)

    def to_dict(self) -> dict:
        from services.lap_times_service import format_lap_time
        return {
            "id": self.id,
            "car_id": self.car_id,
            "track_id": self.track_id,
            "build_id": self.build_id,
            "time_ms": self.time_ms,
            "time": format_lap_time(self.time_ms),
            "session_type": self.session_type,
            "conditions": self.conditions,
            "notes": self.notes,
            "created_at": _iso(self.created_at),
        }


class Race(Base):
    __tablename__ = "races"

    id          = Column(String(36), primary_key=True, default=_uuid)
    track_id    = Column(String(36), ForeignKey("tracks.id"), nullable=False, index=True)
    name        = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    laps        = Column(Integer, nullable=True)
    weather     = Column(String(10), nullable=True)
    is_active   = Column(Boolean, nullable=False, default=True)
    created_at  = Column(DateTime, default=_now)
    updated_at  = Column(DateTime, default=_now, onupdate=_now)

    track = relationship("Track", lazy="joined")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "track_id": self.track_id,
            "name": self.name,
            "description": self.description,
            "laps": self.laps,
            "weather": self.weather,
            "is_active": bool(self.is_active),
            "track": self.track.to_dict() if self.track else None,
        }


class RunList(Base):
    __tablename__ = "run_lists"

    id          = Column(String(36), primary_key=True, default=_uuid)
    name        = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    is_active   = Column(Boolean, nullable=False, default=False)
    created_at  = Column(DateTime, default=_now)
    updated_at  = Column(DateTime, default=_now, onupdate=_now)

    entries = relationship(
        "RunListEntry", back_populates="run_list",
        cascade="all, delete-orphan", lazy="selectin",
        order_by="RunListEntry.order",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "is_active": bool(self.is_active),
            "entries": [e.to_dict() for e in self.entries],
            "created_at": _iso(self.created_at),
        }


class RunListEntry(Base):
    __tablename__ = "run_list_entries"

    id          = Column(String(36), primary_key=True, default=_uuid)
    run_list_id = Column(String(36), ForeignKey("run_lists.id", ondelete="CASCADE"),
                         nullable=False, index=True)
    race_id     = Column(String(36), ForeignKey("races.id"), nullable=False)
    order       = Column(Integer, nullable=False)
    notes       = Column(Text, nullable=True)

    run_list = relationship("RunList", back_populates="entries")
    race = relationship("Race", lazy="joined")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "run_list_id": self.run_list_id,
            "race_id": self.race_id,
            "order": self.order,
            "notes": self.notes,
            "race": self.race.to_dict() if self.race else None,
        }
