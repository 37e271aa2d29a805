"""
Tests for import_engine.csv_parser.
"""

from import_engine.csv_parser import parse_rows, split_line


class TestParseRows:
    """Tests for header/row parsing."""

    def test_strips_utf8_bom_from_bytes(self):
        rows = parse_rows(b"\xef\xbb\xbfCategory,Part\nSports,Sports Air Filter\n")
        assert rows == [{"Category": "Sports", "Part": "Sports Air Filter"}]

    def test_strips_bom_from_text(self):
        rows = parse_rows("\ufeffSection,Setting\nTyres,Tyres Front")
        assert list(rows[0]) == ["Section", "Setting"]

    def test_trims_headers_and_fields(self):
        rows = parse_rows(" Category , Part \n  Racing ,  Racing Brakes  \n")
        assert rows == [{"Category": "Racing", "Part": "Racing Brakes"}]

    def test_blank_lines_and_blank_rows_dropped(self):
        rows = parse_rows("Category,Part\n\n   \n , \nSports,Sports Computer\n\n")
        assert rows == [{"Category": "Sports", "Part": "Sports Computer"}]

    def test_missing_trailing_field_is_empty(self):
        rows = parse_rows("Category,Part\nSports\n")
        assert rows == [{"Category": "Sports", "Part": ""}]

    def test_crlf_line_endings(self):
        rows = parse_rows(b"Category,Part\r\nSports,Sports Exhaust\r\n")
        assert rows == [{"Category": "Sports", "Part": "Sports Exhaust"}]

    def test_empty_input(self):
        assert parse_rows(b"") == []
        assert parse_rows("\n\n") == []

    def test_header_only(self):
        assert parse_rows("Category,Part\n") == []


class TestSplitLine:
    """Tests for quote-aware field splitting."""

    def test_plain_split(self):
        assert split_line("a, b ,c") == ["a", "b", "c"]

    def test_comma_inside_quotes_kept(self):
        assert split_line('Intake & Exhaust,"Sports Exhaust, Titanium"') == [
            "Intake & Exhaust", "Sports Exhaust, Titanium",
        ]

    def test_trailing_comma_gives_empty_field(self):
        assert split_line("Sports,") == ["Sports", ""]
