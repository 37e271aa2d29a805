"""
services.run_lists_service - Races and ordered run lists.

A run list is an ordered sequence of races.  Entry order is always
1..n with no gaps; every mutation renumbers.  At most one run list is
active at a time.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from db.models import Race, RunList, RunListEntry, Track
from services.validation import (
    ValidationError, require_text, optional_text, positive_int, one_of, as_bool,
)

logger = logging.getLogger(__name__)

WEATHER = ("dry", "wet")


def _renumber(entries: list[RunListEntry]) -> None:
    for i, entry in enumerate(entries, start=1):
        entry.order = i


class RunListsService:

    # ── Races ──────────────────────────────────────────────────────────

    @staticmethod
    def create_race(session: Session, data: dict) -> Race:
        track_id = str(data.get("track_id") or "").strip()
        if not track_id or session.get(Track, track_id) is None:
            raise ValidationError("Track not found")

        laps = None
        if data.get("laps") not in (None, ""):
            laps = positive_int(data["laps"], "Laps must be a positive number")
        weather = None
        if data.get("weather"):
            weather = one_of(str(data["weather"]).lower(), WEATHER, "Weather")

        race = Race(
            track_id=track_id,
            name=optional_text(data, "name", "Race name", 100),
            description=optional_text(data, "description", "Description"),
            laps=laps,
            weather=weather,
            is_active=as_bool(data.get("is_active"), default=True),
        )
        session.add(race)
        session.flush()
        return race

    @staticmethod
    def list_races(session: Session, track_id: str = "") -> list[Race]:
        q = session.query(Race).filter(Race.is_active.is_(True))
        if track_id:
            q = q.filter(Race.track_id == track_id)
        return q.order_by(Race.created_at).all()

    # ── Run lists ──────────────────────────────────────────────────────

    @staticmethod
    def create(session: Session, data: dict) -> RunList:
        run_list = RunList(
            name=require_text(data, "name", "Run list name", 100),
            description=optional_text(data, "description", "Description"),
        )
        session.add(run_list)
        session.flush()
        if as_bool(data.get("is_active")):
            RunListsService.set_active(session, run_list)
        return run_list

    
    def update(session: Session, run_list: RunList, data: dict) -> RunList:
        if "name" in data:
            run_list.name = require_text(data, "name", "Run list name", 100)
        if "description" in data:
            run_list.description = optional_text(data, "description", "Description")
        if "is_active" in data:
            if as_bool(data["is_active"]):
                RunListsService.set_active(session, run_list)
            else:
                run_list.is_active = False
        session.flush()
        return run_list

    
    def set_active(session: Session, run_list: RunList) -> None:
        """Make run_list the only active one."""
        others = (
            session.query(RunList)
            .filter(RunList.is_active.is_(True), RunList.id != run_list.id)
            .all()
        )
        for other in others:
            other.is_active = False
        run_list.is_active = True
        session.flush()
        if others:
            logger.info("Run list %s active, %d deactivated", run_list.id, len(others))

    
    def get_active(session: Session) -> RunList | None:
        return (
            session.query(RunList)
            .filter(RunList.is_active.is_(True))
            .order_by(RunList.updated_at.desc())
            .first()
        )

    @staticmethod
    def list(session: Session) -> list[RunList]:
        return session.query(RunList).order_by(RunList.created_at.desc()).all()

    @staticmethod
    def get(session: Session, run_list_id: str) -> RunList | None:
        return session.get(RunList, run_list_id)

    @staticmethod
    def delete(session: Session, run_list: RunList) -> None:
        session.delete(run_list)
        session.flush()

    # ── Entries ────────────────────────────────────────────────────────

    @staticmethod
    def add_entry(session: Session, run_list: RunList, data: dict) -> RunListEntry:
        """Append a race at the end of the list."""
        race_id = str(data.get("race_id") or "").strip()
        if not race_id or session.get(Race, race_id) is None:
            raise ValidationError("Race not found")

        entry = RunListEntry(
            race_id=race_id,
            order=len(run_list.entries) + 1,
            notes=optional_text(data, "notes", "Notes"),
        )
        run_list.entries.append(entry)
        session.flush()
        return entry

    @staticmethod
    def remove_entry(session: Session, run_list: RunList, entry_id: str) -> None:
        entries = sorted(run_list.entries, key=lambda e: e.order)
        entry = next((e for e in entries if e.id == entry_id), None)
        if entry is None:
            raise ValidationError("Entry not found")
        entries.remove(entry)
        run_list.entries.remove(entry)
        _renumber(entries)
        session.flush()

    @staticmethod
    def reorder(
        session: Session,
        run_list: RunList,
        entry_id: str,
        new_order,
    ) -> list[RunListEntry]:
        """
        Move one entry to position new_order (1-based, clamped to the
        list length) and renumber the rest 1..n.
        """
        entries = sorted(run_list.entries, key=lambda e: e.order)
        entry = next((e for e in entries if e.id == entry_id), None)
        if entry is None:
            raise ValidationError("Entry not found")

        target = positive_int(new_order, "Order must be a positive number")
        target = min(target, len(entries))

        entries.remove(entry)
        entries.insert(target - 1, entry)
        _renumber(entries)
        run_list.entries = entries
        session.flush()
        logger.debug("Run list %s reordered: %s → %d", run_list.id, entry_id, target)
        return entries
