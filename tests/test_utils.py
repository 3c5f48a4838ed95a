"""Tests for text encodings and renderings."""

from utils import (
    format_percent,
    frame_rows,
    get_color,
    page_table_rows,
    parse_refs,
    parse_seg_address,
    parse_segments,
    segment_rows,
)


class TestParsing:
    """Textual encodings."""

    def test_refs_split_on_commas_spaces_tabs(self) -> None:
        """Separators may be mixed and repeated."""
        assert parse_refs("1, 2  3\t4,,5") == [1, 2, 3, 4, 5]

    def test_refs_keep_symbols(self) -> None:
        """Non-numeric tokens stay as string keys."""
        assert parse_refs("a 1 b2 1.5") == ["a", 1, "b2", 1.5]

    def test_refs_empty(self) -> None:
        """Blank input gives no references."""
        assert parse_refs("") == []
        assert parse_refs(None) == []

    def test_segments(self) -> None:
        """Malformed segment entries are silently dropped."""
        raw = "code:0:499, data : 500 : 299, bad:1, :1:2, x:a:3"
        assert parse_segments(raw) == [("code", 0, 499), ("data", 500, 299)]

    def test_seg_address(self) -> None:
        """'name:offset' parses; a bad offset becomes None."""
        assert parse_seg_address("code:12") == ("code", 12)
        assert parse_seg_address("code:x") == ("code", None)
        assert parse_seg_address("code") == ("code", None)
        assert parse_seg_address("code:1:2") == ("code", 1)
        assert parse_seg_address("") is None


class TestTableRows:
    """Rows handed to st.table."""

    def test_frame_rows(self) -> None:
        """Empty slots show '-', stamps are added when given."""
        assert frame_rows([1, None]) == [{"frame": 0, "value": 1}, {"frame": 1, "value": "-"}]
        assert frame_rows([4], stamps=[2]) == [{"frame": 0, "value": 4, "last_used": 2}]

    def test_page_table_rows(self) -> None:
        """Unmapped pages are invalid with frame -1, sorted by page."""
        assert page_table_rows({2: 1, 0: None}) == [
            {"page": 0, "valid": False, "frame": -1},
            {"page": 2, "valid": True, "frame": 1},
        ]

    def test_segment_rows(self) -> None:
        """Each segment shows base and limit."""
        assert segment_rows([("code", 0, 9)]) == [{"segment": "code", "base": 0, "limit": 9}]

    def test_percent_and_color(self) -> None:
        """Small display helpers."""
        assert format_percent(0.25) == "25.0%"
        assert get_color(False) == "lightgray"
        assert get_color(True, "fault") == "#ff6b6b"
