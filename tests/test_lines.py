"""
Tests for line ranges, numbering and line edits.
"""

import pytest

from agent_workspace.filesystem.lines import (
    LineRange,
    add_line_numbers,
    count_lines,
    delete_lines,
    detect_newline,
    extract_lines,
    get_context_lines,
    insert_after_line,
    insert_before_line,
    parse_line_range,
    replace_lines,
    split_lines,
)


class TestParseLineRange:
    """Test parse_line_range."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("10", LineRange(10, 10)),
            ("10-50", LineRange(10, 50)),
            (" 3 - 4 ", LineRange(3, 4)),
            ("7-7", LineRange(7, 7)),
        ],
    )
    def test_valid(self, value, expected):
        assert parse_line_range(value) == expected

    @pytest.mark.parametrize("value", ["", "abc", "0", "5-3", "1-", "-1", "1-2-3", "0-4"])
    def test_invalid(self, value):
        """Test that malformed or reversed ranges are rejected."""
        assert parse_line_range(value) is None

    def test_none(self):
        assert parse_line_range(None) is None


class TestLineCounting:
    """Test the line model."""

    def test_trailing_newline_is_not_a_line(self):
        assert split_lines("a\nb\n") == ["a", "b"]
        assert count_lines("a\nb\n") == 2

    def test_no_trailing_newline(self):
        assert count_lines("a\nb") == 2

    def test_empty(self):
        assert split_lines("") == []
        assert count_lines("") == 0

    def test_blank_lines_count(self):
        assert count_lines("\n\n") == 2

    def test_detect_newline(self):
        """Test that CRLF is reported only when every line break uses it."""
        assert detect_newline("a\r\nb\r\n") == "\r\n"
        assert detect_newline("a\nb\n") == "\n"
        assert detect_newline("a\r\nb\n") == "\n"
        assert detect_newline("no breaks") == "\n"


class TestNumbering:
    """Test line numbering and extraction."""

    def test_add_line_numbers(self):
        assert add_line_numbers("a\nb") == "1|a\n2|b"

    def test_numbers_right_aligned(self):
        """Test that numbers are padded to the widest number shown."""
        numbered = add_line_numbers("x\ny\nz", start_line=9).split("\n")
        assert numbered == [" 9|x", "10|y", "11|z"]

    def test_extract_lines(self):
        extracted = extract_lines("a\nb\nc\nd\n", 2, 3)
        assert extracted.text == "b\nc"
        assert (extracted.start, extracted.end) == (2, 3)

    def test_extract_clamped(self):
        extracted = extract_lines("a\nb\n", 1, 10)
        assert extracted.text == "a\nb"
        assert extracted.end == 2

    def test_context_lines(self):
        before, after = get_context_lines("1\n2\n3\n4\n5\n", 3, 1, 2)
        assert before == ["2"]
        assert after == ["4", "5"]

    def test_context_at_edges(self):
        before, after = get_context_lines("1\n2\n", 1, 3, 3)
        assert before == []
        assert after == ["2"]


class TestLineEdits:
    """Test line-level edits keep the trailing newline."""

    def test_replace_lines(self):
        assert replace_lines("a\nb\nc\n", 2, 2, "B") == "a\nB\nc\n"

    def test_replace_with_more_lines(self):
        assert replace_lines("a\nb\nc", 1, 2, "x\ny\nz") == "x\ny\nz\nc"

    def test_replace_end_clamped(self):
        assert replace_lines("a\nb\nc\n", 2, 50, "X") == "a\nX\n"

    def test_insert_before(self):
        assert insert_before_line("a\nb\n", 1, "start") == "start\na\nb\n"

    def test_insert_after(self):
        assert insert_after_line("a\nb\n", 1, "mid") == "a\nmid\nb\n"

    def test_insert_after_last_appends(self):
        assert insert_after_line("a\nb\n", 2, "c") == "a\nb\nc\n"

    def test_insert_into_empty(self):
        assert insert_before_line("", 1, "first") == "first"
        assert insert_after_line("", 1, "first") == "first"

    def test_delete_lines(self):
        assert delete_lines("a\nb\nc\n", 2, 2) == "a\nc\n"

    def test_delete_everything(self):
        assert delete_lines("a\nb\n", 1, 2) == ""
