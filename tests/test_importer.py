"""
Tests for the reference-data import pipeline (import_engine.importer).
"""

import pytest
from sqlalchemy import update

from db.models import (
    PartCategory, Part, TuningSection, TuningSetting,
    Car, CarBuild, CarBuildUpgrade, CarBuildSetting,
)
from import_engine import (
    run_import, run_migration, read_source, import_reference, backfill_legacy,
    verify, ImportSetupError, PARTS, TUNING,
)


def make_build(session, upgrades=(), settings=()):
    car = Car(slug="supra-rz-97", name="Supra RZ '97", manufacturer="Toyota")
    build = CarBuild(car=car, name="Legacy build")
    for category, part in upgrades:
        build.upgrades.append(CarBuildUpgrade(category=category, part=part))
    for section, setting in settings:
        build.settings.append(CarBuildSetting(category=section, setting=setting, value=""))
    session.add(build)
    session.commit()
    return build


def orders(session, model):
    return {c.name: c.display_order for c in session.query(model)}


class TestImportReference:
    """Tests for CSV → category/item insertion."""

    def test_parts_categories_in_canonical_order(self, session, parts_csv):
        report = import_reference(session, PARTS, parts_csv)

        assert report.total_rows == 5
        assert report.categories == 4
        assert report.items == 5
        assert report.errors == []
        assert orders(session, PartCategory) == {
            "Sports": 1, "Club Sports": 2, "Racing": 3, "Extreme": 4,
        }

    def test_tuning_sections_in_canonical_order(self, session, tuning_csv):
        import_reference(session, TUNING, tuning_csv)
        assert orders(session, TuningSection) == {
            "Tyres": 1,
            "Suspension": 2,
            "Differential Gear": 3,
            "Aerodynamics": 4,
            "Performance Adjustment": 5,
            "Transmission": 6,
        }

    def test_unknown_category_appended(self, session):
        csv = b"Category,Part\nVintage,Old Carburettor\nSports,Sports Exhaust\n"
        import_reference(session, PARTS, csv)
        assert orders(session, PartCategory) == {"Sports": 1, "Vintage": 2}

    def test_setting_display_order_follows_file(self, session, tuning_csv):
        import_reference(session, TUNING, tuning_csv)
        suspension = [s.name for s in session.query(TuningSetting)
                      .join(TuningSection).filter(TuningSection.name == "Suspension")
                      .order_by(TuningSetting.display_order)]
        assert suspension == ["Toe Angle", "Anti-Roll Bar", "Body Height Adjustment"]

    def test_blank_rows_counted_as_skipped(self, session):
        csv = b"Category,Part\nSports,\n,Orphan\nSports,Sports Brakes\n"
        report = import_reference(session, PARTS, csv)
        assert report.total_rows == 3
        assert report.skipped == 2
        assert report.items == 1

    def test_items_are_active(self, session, parts_csv):
        import_reference(session, PARTS, parts_csv)
        assert all(p.is_active for p in session.query(Part))

    def test_parts_reimport_is_idempotent(self, session, parts_csv):
        import_reference(session, PARTS, parts_csv)
        import_reference(session, PARTS, parts_csv)
        assert session.query(PartCategory).count() == 4
        assert session.query(Part).count() == 5

    def test_duplicate_part_fails_batch_not_run(self, session):
        csv = b"Category,Part\nSports,Sports Brakes\nSports,Sports Brakes\nRacing,Racing Brakes\n"
        report = import_reference(session, PARTS, csv)

        assert report.categories == 2
        assert len(report.errors) == 1
        assert report.errors[0]["row"] == "Sports"
        assert [p.name for p in session.query(Part)] == ["Racing Brakes"]

    def test_tuning_reimport_keeps_existing_rows(self, session, tuning_csv):
        import_reference(session, TUNING, tuning_csv)
        toe = session.query(TuningSetting).filter(TuningSetting.name == "Toe Angle").one()
        toe.input_type = "toeAngle"
        session.commit()
        toe_id = toe.id

        report = import_reference(session, TUNING, tuning_csv + b"Brakes,Brake Balance\n")

        assert report.items == 1
        assert session.query(TuningSetting).count() == 11
        session.expire_all()
        toe = session.get(TuningSetting, toe_id)
        assert toe.input_type == "toeAngle"
        assert orders(session, TuningSection)["Transmission"] == 6
        assert orders(session, TuningSection)["Brakes"] == 7

    def test_tuning_reimport_moves_missing_sections_last(self, session):
        import_reference(session, TUNING, b"Section,Setting\nTyres,Tyres Front\nVintage,Choke\n")
        import_reference(session, TUNING, b"Section,Setting\nTyres,Tyres Front\nBrakes,Brake Balance\n")

        session.expire_all()
        ranked = sorted((c.display_order, c.name) for c in session.query(TuningSection))
        assert ranked == [(1, "Tyres"), (2, "Brakes"), (3, "Vintage")]

    def test_tuning_reimport_follows_new_setting_order(self, session):
        import_reference(session, TUNING,
                         b"Section,Setting\nSuspension,Toe Angle\nSuspension,Anti-Roll Bar\n")
        import_reference(session, TUNING,
                         b"Section,Setting\nSuspension,Anti-Roll Bar\nSuspension,Natural Frequency\n")

        session.expire_all()
        ranked = [(s.display_order, s.name)
                  for s in session.query(TuningSetting).order_by(TuningSetting.display_order)]
        assert ranked == [(1, "Anti-Roll Bar"), (2, "Natural Frequency"), (3, "Toe Angle")]


class TestBackfillLegacy:
    """Tests for linking legacy build rows to imported items."""

    def test_exact_match_linked_miss_reported(self, session, parts_csv):
        make_build(session, upgrades=[
            ("Sports", "Sports Computer"),
            ("Sports", "Turbo Kit"),
        ])
        import_reference(session, PARTS, parts_csv)
        report = backfill_legacy(session, PARTS)

        assert report.total == 2
        assert report.migrated == 1
        assert report.failed == 1
        assert report.unmatched == ["Sports:Turbo Kit"]

        linked = dict(session.query(CarBuildUpgrade.part, CarBuildUpgrade.part_id))
        computer = session.query(Part).filter(Part.name == "Sports Computer").one()
        assert linked["Sports Computer"] == computer.id
        assert linked["Turbo Kit"] is None

    def test_category_must_match_too(self, session, parts_csv):
        make_build(session, upgrades=[("Racing", "Sports Computer")])
        import_reference(session, PARTS, parts_csv)
        report = backfill_legacy(session, PARTS)
        assert report.migrated == 0
        assert report.unmatched == ["Racing:Sports Computer"]

    def test_inactive_items_not_matched(self, session, parts_csv):
        make_build(session, upgrades=[("Sports", "Sports Computer")])
        import_reference(session, PARTS, parts_csv)
        session.execute(update(Part).values(is_active=False))
        session.commit()
        assert backfill_legacy(session, PARTS).migrated == 0

    def test_tuning_settings_linked(self, session, tuning_csv):
        make_build(session, settings=[("Suspension", "Toe Angle")])
        import_reference(session, TUNING, tuning_csv)
        report = backfill_legacy(session, TUNING)
        assert report.table == "car_build_settings"
        assert report.migrated == 1

    def test_parts_reimport_relinks(self, session, parts_csv):
        make_build(session, upgrades=[("Extreme", "Ballast")])
        first = run_import(session, "parts", parts_csv)
        second = run_import(session, "parts", parts_csv)

        assert first.backfills[0].migrated == 1
        assert second.backfills[0].migrated == 1
        assert second.verify.linked["car_build_upgrades"] == 1

    def test_no_legacy_rows(self, session, parts_csv):
        import_reference(session, PARTS, parts_csv)
        report = backfill_legacy(session, PARTS)
        assert (report.total, report.migrated, report.failed) == (0, 0, 0)


class TestMigration:
    """Tests for the full run and its report."""

    def test_verify_counts(self, session, parts_csv, tuning_csv):
        make_build(session,
                   upgrades=[("Sports", "Sports Air Filter"), ("Sports", "Missing")],
                   settings=[("Transmission", "Final Drive")])
        report = run_migration(session, parts_csv, tuning_csv)

        assert [r.stage for r in report.imports] == ["parts", "tuning"]
        assert report.verify.counts == {
            "cars": 1,
            "tracks": 0,
            "part_categories": 4,
            "parts": 5,
            "tuning_sections": 6,
            "tuning_settings": 10,
            "car_build_upgrades": 2,
            "car_build_settings": 1,
        }
        assert report.verify.linked == {"car_build_upgrades": 1, "car_build_settings": 1}

    def test_verify_on_empty_database(self, session):
        report = verify(session)
        assert report.counts["parts"] == 0
        assert report.linked["car_build_settings"] == 0

    def test_print_summary(self, session, parts_csv, tuning_csv):
        make_build(session, upgrades=[("Sports", "Sports Air Filter"), ("Sports", "Missing")])
        report = run_migration(session, parts_csv, tuning_csv)

        lines = []
        report.print_summary(out=lines.append)
        text = "\n".join(lines)
        assert "Migration Summary:" in text
        assert "1 / 2 migrated" in text
        assert "parts: 4 categories, 5 items" in text

    def test_to_dict_is_json_shaped(self, session, parts_csv, tuning_csv):
        data = run_migration(session, parts_csv, tuning_csv).to_dict()
        assert set(data) == {"imports", "backfills", "verify"}
        assert data["backfills"][0]["table"] == "car_build_upgrades"


class TestReadSource:
    """Tests for setup failures."""

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ImportSetupError):
            read_source(tmp_path / "nope.csv")

    def test_reads_bytes(self, tmp_path):
        path = tmp_path / "parts.csv"
        path.write_bytes(b"Category,Part\n")
        assert read_source(path) == b"Category,Part\n"
