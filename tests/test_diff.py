"""
Tests for diff previews and content checksums.
"""

import hashlib

import pytest

from agent_workspace.filesystem.checksum import compute_checksum, verify_checksum
from agent_workspace.filesystem.diff import (
    NO_CHANGES,
    apply_diff,
    count_diff_lines,
    generate_diff,
)


class TestGenerateDiff:
    """Test generate_diff."""

    def test_identical(self):
        """Test that identical content yields the sentinel."""
        assert generate_diff("a\nb\n", "a\nb\n") == NO_CHANGES

    def test_headers_and_hunk(self):
        diff = generate_diff("a\nb\nc\n", "a\nB\nc\n", "x.md")
        lines = diff.split("\n")
        assert lines[0] == "--- a/x.md"
        assert lines[1] == "+++ b/x.md"
        assert lines[2].startswith("@@ -1,")
        assert "-b" in lines
        assert "+B" in lines
        assert " a" in lines

    def test_context_limited(self):
        """Test that distant changes get separate hunks."""
        old = "\n".join(str(i) for i in range(1, 31))
        new = old.replace("2\n", "two\n", 1).replace("\n29", "\ntwenty-nine")
        diff = generate_diff(old, new)
        assert diff.count("@@ -") == 2
        assert " 10" not in diff.split("\n")

    def test_count_diff_lines(self):
        diff = generate_diff("a\nb\nc", "a\nx\ny\nc")
        stats = count_diff_lines(diff)
        assert stats.added == 2
        assert stats.removed == 1

    def test_count_no_changes(self):
        stats = count_diff_lines(NO_CHANGES)
        assert (stats.added, stats.removed) == (0, 0)


class TestApplyDiff:
    """Test that diffs reproduce the new content."""

    @pytest.mark.parametrize(
        "old,new",
        [
            ("a\nb\nc\n", "a\nB\nc\n"),
            ("", "hello\n"),
            ("one\ntwo\n", ""),
            ("x\n" * 40, "x\n" * 10 + "y\n" + "x\n" * 29 + "z\n"),
        ],
    )
    def test_apply_generated_diff(self, old, new):
        assert apply_diff(old, generate_diff(old, new)) == new

    def test_apply_no_changes(self):
        assert apply_diff("same", NO_CHANGES) == "same"

    def test_context_mismatch(self):
        """Test that a diff for other content is rejected."""
        diff = generate_diff("a\nb\nc\n", "a\nB\nc\n")
        with pytest.raises(ValueError):
            apply_diff("q\nr\ns\n", diff)


class TestChecksum:
    """Test content checksums."""

    def test_format(self):
        """Test that checksums are the first 12 hex digits of SHA-256."""
        checksum = compute_checksum("hello\n")
        assert checksum == hashlib.sha256(b"hello\n").hexdigest()[:12]
        assert len(checksum) == 12

    def test_empty_content(self):
        assert compute_checksum("") == "e3b0c44298fc"

    def test_unicode(self):
        assert compute_checksum("héllo") == hashlib.sha256("héllo".encode("utf-8")).hexdigest()[:12]

    def test_sensitive_to_line_endings(self):
        assert compute_checksum("a\n") != compute_checksum("a\r\n")

    def test_verify(self):
        checksum = compute_checksum("data")
        assert verify_checksum("data", checksum) is True
        assert verify_checksum("data", checksum.upper()) is True
        assert verify_checksum("other", checksum) is False
        assert verify_checksum("data", None) is False
