"""
services.reference_service - Read-only listings of reference data.

Parts, part categories, tuning sections and settings, cars and tracks.
Item listings come back already ordered by their owning category's
display order, so callers never regroup or resort them.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from db.models import (
    PartCategory, Part, TuningSection, TuningSetting, Car, Track,
)

_UNORDERED = 999


def active_filter(active: Optional[str], include_inactive: bool) -> Optional[bool]:
    """
    Resolve the active-status query params.

    active=true / active=false win; include_inactive=true shows both;
    the default is active rows only.  Returns None for "no filter".
    """
    if active == "true":
        return True
    if active == "false":
        return False
    if include_inactive:
        return None
    return True


class ReferenceService:

    # ── Parts ──────────────────────────────────────────────────────────

    @staticmethod
    def list_part_categories(session: Session) -> list[PartCategory]:
        return session.query(PartCategory).order_by(PartCategory.display_order).all()

    @staticmethod
    def list_parts(
        session: Session,
        category_id: str = "",
        is_active: Optional[bool] = True,
    ) -> list[Part]:
        """Parts by category display order, then name."""
        q = session.query(Part).join(PartCategory, Part.category_id == PartCategory.id)
        if category_id:
            q = q.filter(Part.category_id == category_id)
        if is_active is not None:
            q = q.filter(Part.is_active.is_(is_active))
        return q.order_by(PartCategory.display_order, Part.name).all()

    @staticmethod
    def get_part(session: Session, part_id: str) -> Part | None:
        return session.get(Part, part_id)

    # ── Tuning ─────────────────────────────────────────────────────────

    @staticmethod
    def list_sections(session: Session) -> list[TuningSection]:
        return session.query(TuningSection).order_by(TuningSection.display_order).all()

    @staticmethod
    def list_settings(
        session: Session,
        section_id: str = "",
        is_active: Optional[bool] = True,
    ) -> list[TuningSetting]:
        """Settings by section display order, then setting display order."""
        q = session.query(TuningSetting).join(
            TuningSection, TuningSetting.section_id == TuningSection.id,
        )
        if section_id:
            q = q.filter(TuningSetting.section_id == section_id)
        if is_active is not None:
            q = q.filter(TuningSetting.is_active.is_(is_active))
        settings = q.all()
        settings.sort(key=lambda s: (
            s.section.display_order,
            s.display_order if s.display_order is not None else _UNORDERED,
            s.name,
        ))
        return settings

    @staticmethod
    def get_setting(session: Session, setting_id: str) -> TuningSetting | None:
        return session.get(TuningSetting, setting_id)

    # ── Cars / tracks ──────────────────────────────────────────────────

    @staticmethod
    def list_cars(session: Session, q: str = "") -> list[Car]:
        query = session.query(Car)
        if q:
            like = f"%{q}%"
            query = query.filter(Car.name.ilike(like) | Car.manufacturer.ilike(like))
        return query.order_by(Car.manufacturer, Car.name).all()

    @staticmethod
    def get_car(session: Session, slug_or_id: str) -> Car | None:
        return (session.query(Car)
                .filter((Car.slug == slug_or_id) | (Car.id == slug_or_id))
                .first())

    @staticmethod
    def list_tracks(session: Session, q: str = "") -> list[Track]:
        query = session.query(Track)
        if q:
            query = query.filter(Track.name.ilike(f"%{q}%"))
        return query.order_by(Track.name).all()

    @staticmethod
    def get_track(session: Session, slug_or_id: str) -> Track | None:
        return (session.query(Track)
                .filter((Track.slug == slug_or_id) | (Track.id == slug_or_id))
                .first())
