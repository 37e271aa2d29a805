"""
Tests for the car and track catalogue import (import_engine.catalog).
"""

import pytest

from db.models import Car, Track, CarBuild
from import_engine import import_catalog, run_import, run_migration, CARS, TRACKS
from import_engine.catalog import slugify, car_slug, parse_year, car_category


class TestFieldHelpers:
    """Tests for slug, year and category derivation."""

    @pytest.mark.parametrize("raw, year", [
        ("97", 1997), ("50", 1950), ("21", 2021), ("02", 2002), ("2026", 2026),
        ("", None), ("n/a", None),
    ])
    def test_parse_year(self, raw, year):
        assert parse_year(raw) == year

    def test_slugify(self):
        assert slugify("Tokyo Expressway - Central Outer Loop") == \
            "tokyo-expressway-central-outer-loop"
        assert slugify("Nürburgring GP") == "nürburgring-gp"

    def test_car_slug_drops_repeated_make(self):
        assert car_slug("Ford", "Ford GT", 2017) == "ford-gt-2017"
        assert car_slug("Mazda", "RX-7 Spirit R", None) == "mazda-rx-7-spirit-r"

    def test_car_category_from_name(self):
        assert car_category("M4 Gr.4") == "GR4"
        assert car_category("WRX Gr.B Rally Car") == "RALLY"
        assert car_category("GR86 RZ") == "OTHER"


class TestImportCatalog:
    """Tests for CSV → cars / tracks."""

    def test_cars_created(self, session, cars_csv):
        report = import_catalog(session, CARS, cars_csv)

        assert report.total_rows == 4
        assert report.skipped == 1
        assert report.created == 3
        assert report.errors == []

        supra = session.query(Car).filter(Car.slug == "toyota-supra-rz-1997").one()
        assert supra.name == "Toyota Supra RZ"
        assert supra.manufacturer == "Toyota"
        assert (supra.year, supra.drive_type, supra.max_power, supra.weight) == \
            (1997, "FR", 276, 1510)
        assert supra.pp == pytest.approx(464.36)

        m4 = session.query(Car).filter(Car.slug == "bmw-m4-gr4").one()
        assert m4.year is None
        assert m4.category == "GR4"

    def test_tracks_created(self, session, tracks_csv):
        report = import_catalog(session, TRACKS, tracks_csv)

        assert report.created == 3
        tokyo = session.query(Track).filter(
            Track.slug == "tokyo-expressway-central-outer-loop").one()
        assert tokyo.name == "Tokyo Expressway - Central Outer Loop"
        assert (tokyo.country, tokyo.location, tokyo.layout) == \
            ("Japan", "Japan", "Central Outer Loop")
        assert tokyo.length == pytest.approx(4.396)

    def test_reimport_updates_in_place(self, session, cars_csv):
        import_catalog(session, CARS, cars_csv)
        gr86 = session.query(Car).filter(Car.slug == "toyota-gr86-rz-2021").one()
        session.add(CarBuild(car=gr86, name="Daily"))
        session.commit()
        car_id = gr86.id

        changed = cars_csv.replace(b"428.93", b"431.10")
        report = import_catalog(session, CARS, changed)

        assert (report.created, report.updated) == (0, 3)
        assert session.query(Car).count() == 3
        session.expire_all()
        gr86 = session.get(Car, car_id)
        assert gr86.pp == pytest.approx(431.10)
        assert session.query(CarBuild).one().car_id == car_id

    def test_duplicate_slug_reported(self, session):
        csv = b"Course Name,Country\nSuzuka Circuit,Japan\nSuzuka  Circuit,Japan\n"
        report = import_catalog(session, TRACKS, csv)

        assert report.created == 1
        assert len(report.errors) == 1
        assert "suzuka-circuit" in report.errors[0]["reason"]


class TestCatalogRuns:
    """Tests for catalogues inside the full run."""

    def test_run_import_cars(self, session, cars_csv):
        report = run_import(session, "cars", cars_csv)
        assert [c.stage for c in report.catalogs] == ["cars"]
        assert report.imports == []
        assert report.verify.counts["cars"] == 3

    def test_migration_with_catalogues(self, session, parts_csv, tuning_csv,
                                       cars_csv, tracks_csv):
        report = run_migration(session, parts_csv, tuning_csv, cars_csv, tracks_csv)

        assert [c.stage for c in report.catalogs] == ["cars", "tracks"]
        assert report.verify.counts["cars"] == 3
        assert report.verify.counts["tracks"] == 3
        assert report.verify.counts["parts"] == 5

    def test_summary_lists_catalogues(self, session, parts_csv, tuning_csv, cars_csv):
        lines = []
        run_migration(session, parts_csv, tuning_csv, cars_csv).print_summary(lines.append)
        assert "  cars: 3 created, 0 updated (4 rows, 1 skipped, 0 errors)" in lines
