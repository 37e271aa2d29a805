"""
services.lap_times_service - Lap time parsing, formatting and CRUD.

Times are stored as integer milliseconds and typed as "m:ss.sss",
"ss.sss" or whole seconds.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from sqlalchemy.orm import Session

import config
from db.models import LapTime, Car, Track, CarBuild
from services.validation import ValidationError, one_of, optional_text

logger = logging.getLogger(__name__)

SESSION_TYPES = ("Q", "R")

_LAP_TIME = re.compile(r"^(?:(\d+):)?(\d+)(?:\.(\d{1,3}))?$")


def parse_lap_time(text: str) -> int:
    """
    "1:23.456" → 83456 ms.  Fractions shorter than three digits are
    right-padded ("1:23.4" → 83400).

    Raises ValidationError for malformed text or seconds >= 60 when a
    minutes part is present.
    """
    m = _LAP_TIME.match((text or "").strip())
    if not m:
        raise ValidationError("Invalid time format")
    minutes = int(m.group(1) or 0)
    seconds = int(m.group(2))
    millis = int((m.group(3) or "0").ljust(3, "0"))
    if m.group(1) is not None and seconds >= 60:
        raise ValidationError("Invalid time format")
    return (minutes * 60 + seconds) * 1000 + millis


def format_lap_time(ms: Optional[int]) -> str:
    """83456 → "1:23.456"."""
    if ms is None:
        return ""
    minutes, rest = divmod(int(ms), 60_000)
    seconds, millis = divmod(rest, 1000)
    return f"{minutes}:{seconds:02d}.{millis:03d}"


def check_bounds(ms: int) -> int:
    if not config.LAP_TIME_MIN_MS <= ms <= config.LAP_TIME_MAX_MS:
        raise ValidationError("Lap time must be between 10 seconds and 30 minutes")
    return ms


class LapTimesService:

    @staticmethod
    def list(
        session: Session,
        car_id: str = "",
        track_id: str = "",
    ) -> list[LapTime]:
        """Fastest first."""
        q = session.query(LapTime)
        if car_id:
            q = q.filter(LapTime.car_id == car_id)
        if track_id:
            q = q.filter(LapTime.track_id == track_id)
        return q.order_by(LapTime.time_ms, LapTime.created_at).all()

    @staticmethod
    def get(session: Session, lap_id: str) -> LapTime | None:
        return session.get(LapTime, lap_id)

    @staticmethod
    def create(session: Session, data: dict) -> LapTime:
        """
        JSON body: {car_id, track_id, time | time_ms, session_type?,
                    build_id?, conditions?, notes?}
        """
        car_id = str(data.get("car_id") or "").strip()
        track_id = str(data.get("track_id") or "").strip()
        if not car_id or session.get(Car, car_id) is None:
            raise ValidationError("Car not found")
        if not track_id or session.get(Track, track_id) is None:
            raise ValidationError("Track not found")

        build_id = str(data.get("build_id") or "").strip() or None
        if build_id and session.get(CarBuild, build_id) is None:
            raise ValidationError("Build not found")

        if data.get("time") not in (None, ""):
            time_ms = parse_lap_time(str(data["time"]))
        elif data.get("time_ms") not in (None, ""):
            try:
                time_ms = int(data["time_ms"])
            except (TypeError, ValueError):
                raise ValidationError("Invalid time format") from None
        else:
            raise ValidationError("Lap time is required")
        check_bounds(time_ms)

        lap = LapTime(
            car_id=car_id,
            track_id=track_id,
            build_id=build_id,
            time_ms=time_ms,
            session_type=one_of(data.get("session_type") or "R", SESSION_TYPES,
                                "Session type"),
            conditions=optional_text(data, "conditions", "Conditions", 200),
            notes=optional_text(data, "notes", "Notes"),
        )
        session.add(lap)
        session.flush()
        logger.info("Lap time %s recorded for car %s", format_lap_time(time_ms), car_id)
        return lap

    @staticmethod
    def delete(session: Session, lap: LapTime) -> None:
        session.delete(lap)
        session.flush()
