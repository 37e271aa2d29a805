"""
Tests for races and run list ordering (RunListsService).
"""

import pytest

from services.run_lists_service import RunListsService
from services.validation import ValidationError


def make_races(seeded, n):
    s = seeded["session"]
    races = [RunListsService.create_race(s, {"track_id": seeded["track"].id, "name": f"Race {i}"})
             for i in range(1, n + 1)]
    s.commit()
    return races


def race_names(run_list):
    return [e.race.name for e in sorted(run_list.entries, key=lambda e: e.order)]


class TestRaces:
    """Tests for race validation."""

    def test_create(self, seeded):
        race = RunListsService.create_race(seeded["session"], {
            "track_id": seeded["track"].id, "laps": "12", "weather": "Wet",
        })
        assert (race.laps, race.weather) == (12, "wet")

    @pytest.mark.parametrize("laps", [0, -3, "2.5", "abc", True])
    def test_laps_must_be_positive(self, seeded, laps):
        with pytest.raises(ValidationError, match="Laps must be a positive number"):
            RunListsService.create_race(seeded["session"], {
                "track_id": seeded["track"].id, "laps": laps,
            })

    def test_weather_choices(self, seeded):
        with pytest.raises(ValidationError, match="Weather must be one of: dry, wet"):
            RunListsService.create_race(seeded["session"], {
                "track_id": seeded["track"].id, "weather": "sunny",
            })

    def test_track_required(self, seeded):
        with pytest.raises(ValidationError, match="Track not found"):
            RunListsService.create_race(seeded["session"], {})


class TestRunListEntries:
    """Tests for entry ordering."""

    def _list(self, seeded, n=3):
        s = seeded["session"]
        run_list = RunListsService.create(s, {"name": "Sunday league"})
        for race in make_races(seeded, n):
            RunListsService.add_entry(s, run_list, {"race_id": race.id})
        s.commit()
        return run_list

    def test_name_required(self, seeded):
        with pytest.raises(ValidationError, match="Run list name is required"):
            RunListsService.create(seeded["session"], {"name": " "})

    def test_entries_appended_in_order(self, seeded):
        run_list = self._list(seeded)
        assert [e.order for e in run_list.entries] == [1, 2, 3]
        assert race_names(run_list) == ["Race 1", "Race 2", "Race 3"]

    def test_move_last_to_first(self, seeded):
        run_list = self._list(seeded)
        last = run_list.entries[2]
        entries = RunListsService.reorder(seeded["session"], run_list, last.id, 1)
        assert [e.order for e in entries] == [1, 2, 3]
        assert race_names(run_list) == ["Race 3", "Race 1", "Race 2"]

    def test_move_first_down(self, seeded):
        run_list = self._list(seeded, 4)
        first = run_list.entries[0]
        RunListsService.reorder(seeded["session"], run_list, first.id, "3")
        assert race_names(run_list) == ["Race 2", "Race 3", "Race 1", "Race 4"]

    def test_order_past_end_clamped(self, seeded):
        run_list = self._list(seeded)
        first = run_list.entries[0]
        RunListsService.reorder(seeded["session"], run_list, first.id, 99)
        assert race_names(run_list) == ["Race 2", "Race 3", "Race 1"]

    def test_reorder_persists(self, seeded):
        s = seeded["session"]
        run_list = self._list(seeded)
        RunListsService.reorder(s, run_list, run_list.entries[1].id, 1)
        s.commit()
        s.expire_all()
        assert race_names(RunListsService.get(s, run_list.id)) == ["Race 2", "Race 1", "Race 3"]

    def test_reorder_unknown_entry(self, seeded):
        run_list = self._list(seeded)
        with pytest.raises(ValidationError, match="Entry not found"):
            RunListsService.reorder(seeded["session"], run_list, "nope", 1)

    def test_reorder_bad_position(self, seeded):
        run_list = self._list(seeded)
        with pytest.raises(ValidationError):
            RunListsService.reorder(seeded["session"], run_list, run_list.entries[0].id, 0)

    def test_remove_renumbers(self, seeded):
        run_list = self._list(seeded)
        RunListsService.remove_entry(seeded["session"], run_list, run_list.entries[1].id)
        assert [e.order for e in run_list.entries] == [1, 2]
        assert race_names(run_list) == ["Race 1", "Race 3"]

    def test_unknown_race(self, seeded):
        run_list = self._list(seeded, 0)
        with pytest.raises(ValidationError, match="Race not found"):
            RunListsService.add_entry(seeded["session"], run_list, {"race_id": "nope"})


class TestActiveRunList:
    """Tests for the single active run list."""

    def test_new_list_inactive_by_default(self, seeded):
        s = seeded["session"]
        RunListsService.create(s, {"name": "Practice"})
        assert RunListsService.get_active(s) is None

    def test_creating_active_list_deactivates_others(self, seeded):
        s = seeded["session"]
        first = RunListsService.create(s, {"name": "Week 1", "is_active": True})
        second = RunListsService.create(s, {"name": "Week 2", "is_active": True})
        s.commit()

        assert first.is_active is False
        assert second.is_active is True
        assert RunListsService.get_active(s).id == second.id

    def test_update_activates_one(self, seeded):
        s = seeded["session"]
        first = RunListsService.create(s, {"name": "Week 1", "is_active": True})
        second = RunListsService.create(s, {"name": "Week 2"})

        RunListsService.update(s, second, {"is_active": "true"})
        s.commit()

        assert [r.name for r in RunListsService.list(s) if r.is_active] == ["Week 2"]
        assert first.is_active is False

    def test_update_deactivates(self, seeded):
        s = seeded["session"]
        run_list = RunListsService.create(s, {"name": "Week 1", "is_active": True})
        RunListsService.update(s, run_list, {"is_active": False, "name": "Week 1 (done)"})

        assert run_list.name == "Week 1 (done)"
        assert RunListsService.get_active(s) is None
