"""
Tests for gear ratio fields (tuning.gears) and view grouping (tuning.projection).
"""

import pytest

from tuning.gears import (
    ordinal, gear_label, gear_field_names, normalize_gear_updates, ordered_gears,
)
from tuning.projection import group_ordered, sort_section_entries


class TestOrdinal:
    """Tests for ordinal suffixes."""

    @pytest.mark.parametrize("n, text", [
        (1, "1st"), (2, "2nd"), (3, "3rd"), (4, "4th"),
        (11, "11th"), (12, "12th"), (13, "13th"),
        (21, "21st"), (22, "22nd"), (23, "23rd"), (101, "101st"), (111, "111th"),
    ])
    def test_suffix(self, n, text):
        assert ordinal(n) == text

    def test_labels(self):
        assert gear_label("gear_2") == "2nd Gear"
        assert gear_label("gear11") == "11th Gear"
        assert gear_label("finalDrive") == "Final Drive"


class TestGearFields:
    """Tests for gear request normalisation."""

    def test_field_names(self):
        names = gear_field_names()
        assert names[0] == "gear_1"
        assert names[-2:] == ["gear_20", "final_drive"]

    def test_aliases_mapped_and_blank_cleared(self):
        out = normalize_gear_updates({
            "gear1": "3.500", "gear_2": " 2.100 ", "finalDrive": "4.1",
            "gear_3": "", "name": "ignored",
        })
        assert out == {"gear_1": "3.500", "gear_2": "2.100",
                       "final_drive": "4.1", "gear_3": None}

    def test_out_of_range_gear(self):
        with pytest.raises(ValueError):
            normalize_gear_updates({"gear_21": "1.0"})
        with pytest.raises(ValueError):
            normalize_gear_updates({"gear_0": "1.0"})


class TestOrderedGears:
    """Tests for gear display order."""

    def test_numeric_order_final_drive_last(self):
        values = {"final_drive": "4.100", "gear_10": "0.700", "gear_2": "2.100",
                  "gear_1": "3.500", "gear_3": None, "gear_4": " "}
        labels = [g["label"] for g in ordered_gears(values)]
        assert labels == ["1st Gear", "2nd Gear", "10th Gear", "Final Drive"]

    def test_no_final_drive(self):
        assert ordered_gears({"gear_1": "3.0"}) == [
            {"field": "gear_1", "label": "1st Gear", "value": "3.0"},
        ]


class TestProjection:
    """Tests for grouping build entries for display."""

    def test_groups_follow_group_order(self):
        items = [("Racing", "a"), ("Sports", "b"), ("Racing", "c")]
        order = {"Sports": 1, "Racing": 2}
        groups = group_ordered(items, key=lambda i: i[0], group_order=order.get)
        assert [(g, [i[1] for i in members]) for g, members in groups] == [
            ("Sports", ["b"]), ("Racing", ["a", "c"]),
        ]

    def test_groups_first_seen_without_order(self):
        groups = group_ordered(["bb", "a", "cc"], key=len)
        assert [g for g, _ in groups] == [2, 1]

    def test_transmission_final_drive_last(self):
        entries = [
            {"name": "Final Drive", "display_order": 1},
            {"name": "Top Speed", "display_order": 2},
        ]
        names = [e["name"] for e in sort_section_entries("Transmission", entries)]
        assert names == ["Top Speed", "Final Drive"]

    def test_other_sections_alphabetical(self):
        entries = [
            {"name": "Toe Angle", "display_order": 1},
            {"name": "anti-Roll Bar", "display_order": 2},
        ]
        names = [e["name"] for e in sort_section_entries("Suspension", entries)]
        assert names == ["anti-Roll Bar", "Toe Angle"]
