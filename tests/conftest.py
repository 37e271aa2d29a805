"""
Shared fixtures: a throwaway SQLite database per test, the Flask test
client, and small reference CSVs.
"""

import json

import pytest

from db import init_db, get_session, Car, Track, TuningSetting
from import_engine import run_migration
from main import create_app


PARTS_CSV = (
    "Category,Part\n"
    "Racing,Racing Brakes\n"
    "Sports,Sports Air Filter\n"
    "Sports,Sports Computer\n"
    "Extreme,Ballast\n"
    "Club Sports,Engine Balance Tuning\n"
)

TUNING_CSV = (
    "Section,Setting\n"
    "Transmission,Final Drive\n"
    "Transmission,Top Speed\n"
    "Suspension,Toe Angle\n"
    "Suspension,Anti-Roll Bar\n"
    "Suspension,Body Height Adjustment\n"
    "Tyres,Tyres Front\n"
    "Aerodynamics,Wing\n"
    "Aerodynamics,Wing Height\n"
    "Performance Adjustment,Ballast Position\n"
    "Differential Gear,Front/Rear Torque Distribution\n"
)

CARS_CSV = (
    "Make,Model,Year,PP,Drive,Power,Weight\n"
    "Toyota,GR86 RZ,21,428.93,FR,231,1270\n"
    "Toyota,Toyota Supra RZ,97,464.36,FR,276,1510\n"
    "BMW,M4 Gr.4,,560.00,FR,490,1250\n"
    "Honda,,92,502.04,MR,280,1230\n"
)

TRACKS_CSV = (
    "Course Name,Country,Layout,Length\n"
    "Suzuka Circuit,Japan,Full Course,5.807\n"
    "Suzuka Circuit East Course,Japan,East Course,2.243\n"
    "\"Tokyo Expressway - Central Outer Loop\",Japan,Central Outer Loop,4.396\n"
)

# input_type metadata the CSVs do not carry
SETTING_META = {
    "Toe Angle": {"input_type": "toeAngle"},
    "Anti-Roll Bar": {"input_type": "sliderDual", "min_value": 0, "max_value": 10, "step": 1},
    "Body Height Adjustment": {"input_type": "dual", "unit": "mm"},
    "Tyres Front": {"input_type": "select",
                    "options": json.dumps(["Comfort: Hard", "Sports: Soft", "Racing: Soft"])},
    "Wing": {"input_type": "select", "options": json.dumps(["Standard", "Custom"])},
    "Wing Height": {"input_type": "singleSlider", "min_value": 0, "max_value": 10, "step": 0.1},
    "Ballast Position": {"input_type": "ballastSlider", "min_value": -50, "max_value": 50},
    "Front/Rear Torque Distribution": {"input_type": "ratio"},
}


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'test.sqlite'}"


@pytest.fixture
def session(db_url):
    init_db(db_url)
    s = get_session()
    yield s
    s.close()


@pytest.fixture
def parts_csv():
    return PARTS_CSV.encode("utf-8")


@pytest.fixture
def tuning_csv():
    return TUNING_CSV.encode("utf-8")


@pytest.fixture
def cars_csv():
    return CARS_CSV.encode("utf-8")


@pytest.fixture
def tracks_csv():
    return TRACKS_CSV.encode("utf-8")


def annotate_settings(session):
    for setting in session.query(TuningSetting):
        for key, value in SETTING_META.get(setting.name, {}).items():
            setattr(setting, key, value)
    session.commit()


@pytest.fixture
def seeded(session, parts_csv, tuning_csv):
    """Reference data imported, settings annotated, one car and track."""
    run_migration(session, parts_csv, tuning_csv)
    annotate_settings(session)
    car = Car(slug="gr86-rz-21", name="GR86 RZ '21", manufacturer="Toyota")
    track = Track(slug="suzuka", name="Suzuka Circuit", country="Japan")
    session.add_all([car, track])
    session.commit()
    return {"session": session, "car": car, "track": track}


def setting_by_name(session, name):
    return session.query(TuningSetting).filter(TuningSetting.name == name).one()


@pytest.fixture
def app(db_url):
    application = create_app(db_url=db_url)
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    return app.test_client()
