"""
db - Database layer.

Public API:
    init_db()       → create engine + tables
    get_session()   → new Session
    session_scope() → closing context manager around get_session()
    PartCategory, Part, TuningSection, TuningSetting,
    Car, Track, CarBuild, CarBuildUpgrade, CarBuildSetting,
    LapTime, Race, RunList, RunListEntry → ORM models
"""

from db.engine import init_db, get_session, session_scope   # noqa: F401
from db.models import (                             # noqa: F401
    Base,
    PartCategory,
    Part,
    TuningSection,
    TuningSetting,
    Car,
    Track,
    CarBuild,
    CarBuildUpgrade,
    CarBuildSetting,
    LapTime,
    Race,
    RunList,
    RunListEntry,
)
