"""
Tests for path resolution, ignore rules and file type detection.
"""

import os
import tempfile
from pathlib import Path

import pytest

from agent_workspace.filesystem.config import WorkspaceConfig
from agent_workspace.filesystem.exceptions import ErrorCode, InvalidPathError
from agent_workspace.filesystem.filetypes import (
    is_text_file,
    matches_glob,
    matches_type,
    read_text_file,
    should_exclude,
    write_text_file,
)
from agent_workspace.filesystem.ignore import (
    IgnoreMatcher,
    compile_rule,
    glob_to_regex,
    parse_ignore_patterns,
)
from agent_workspace.filesystem.paths import (
    PathResolver,
    has_escape_attempt,
    is_absolute_path,
    normalize_virtual_path,
)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def resolver(temp_dir):
    return PathResolver(WorkspaceConfig(root=temp_dir))


class TestPathHelpers:
    """Test the path predicates."""

    @pytest.mark.parametrize("path", ["/etc/passwd", "C:\\Windows", "d:/data"])
    def test_absolute(self, path):
        assert is_absolute_path(path) is True

    @pytest.mark.parametrize("path", ["src/main.py", "notes.md", "c_file.txt"])
    def test_relative(self, path):
        assert is_absolute_path(path) is False

    def test_escape_segments(self):
        """Test that only whole ``..`` segments count as escapes."""
        assert has_escape_attempt("../x") is True
        assert has_escape_attempt("a\\..\\b") is True
        assert has_escape_attempt("a..b/c") is False
        assert has_escape_attempt("..hidden") is False

    def test_normalize(self):
        assert normalize_virtual_path("./src//main.py") == "src/main.py"
        assert normalize_virtual_path("src\\lib\\a.py") == "src/lib/a.py"
        assert normalize_virtual_path("./") == "."


class TestPathResolver:
    """Test PathResolver."""

    @pytest.mark.parametrize("path", ["", ".", "/", None, "  "])
    def test_root_aliases(self, resolver, temp_dir, path):
        """Test that root aliases resolve to the workspace root."""
        resolved = resolver.resolve(path)
        assert resolved.absolute_path == temp_dir
        assert resolved.virtual_path == "."
        assert resolved.is_root

    def test_resolve_relative(self, resolver, temp_dir):
        resolved = resolver.resolve("src/main.py")
        assert resolved.absolute_path == temp_dir / "src" / "main.py"
        assert resolved.virtual_path == "src/main.py"

    def test_resolve_missing_path(self, resolver, temp_dir):
        """Test that paths need not exist."""
        resolved = resolver.resolve("new/dir/file.md")
        assert resolved.absolute_path == temp_dir / "new" / "dir" / "file.md"

    def test_reject_absolute(self, resolver):
        with pytest.raises(InvalidPathError, match="Absolute paths not allowed") as exc_info:
            resolver.resolve("/etc/passwd")
        assert exc_info.value.code == ErrorCode.INVALID_PATH

    def test_reject_parent_segments(self, resolver):
        with pytest.raises(InvalidPathError, match=r'"\.\." segments'):
            resolver.resolve("src/../../secret")

    def test_reject_null_byte(self, resolver):
        """Test that NUL bytes raise InvalidPathError rather than ValueError."""
        with pytest.raises(InvalidPathError, match="null bytes") as exc_info:
            resolver.resolve("a\x00b.md")
        assert exc_info.value.code == ErrorCode.INVALID_PATH

    def test_entry_path_keeps_symlink(self, resolver, temp_dir):
        (temp_dir / "real.txt").write_text("x")
        os.symlink(temp_dir / "real.txt", temp_dir / "link.txt")
        resolved = resolver.resolve("link.txt")
        assert resolved.absolute_path == temp_dir / "real.txt"
        assert resolver.entry_path(resolved) == temp_dir / "link.txt"

    def test_reject_symlink_escape(self, resolver, temp_dir):
        """Test that symlinks leading outside the root are rejected."""
        with tempfile.TemporaryDirectory() as outside:
            os.symlink(outside, temp_dir / "link")
            with pytest.raises(InvalidPathError, match="outside workspace"):
                resolver.resolve("link/file.txt")

    def test_symlink_inside_root(self, resolver, temp_dir):
        (temp_dir / "real").mkdir()
        os.symlink(temp_dir / "real", temp_dir / "alias")
        resolved = resolver.resolve("alias")
        assert resolved.absolute_path == temp_dir / "real"

    def test_to_virtual(self, resolver, temp_dir):
        assert resolver.to_virtual(temp_dir) == "."
        assert resolver.to_virtual(temp_dir / "a" / "b.md") == "a/b.md"
        assert resolver.to_virtual(temp_dir.parent) is None

    def test_sibling_prefix_is_outside(self, resolver, temp_dir):
        """Test that a sibling sharing the root's prefix is not inside."""
        assert resolver.is_within_root(Path(str(temp_dir) + "-other")) is False


class TestIgnoreRules:
    """Test gitignore-style matching."""

    def test_parse_patterns(self):
        content = "# comment\n\nbuild/\n  *.log  \n!keep.log\n"
        assert parse_ignore_patterns(content) == ["build/", "*.log", "!keep.log"]

    def test_glob_to_regex(self):
        assert glob_to_regex("*.py") == r"[^/]*\.py"
        assert glob_to_regex("src/**") == "src/.*"
        assert glob_to_regex("a?c") == "a[^/]c"

    def test_defaults(self):
        """Test the default rules for dotfiles and editor debris."""
        matcher = IgnoreMatcher()
        assert matcher.is_ignored(".git", is_dir=True)
        assert matcher.is_ignored(".env")
        assert matcher.is_ignored("node_modules", is_dir=True)
        assert matcher.is_ignored("src/file.py~")
        assert matcher.is_ignored("notes.md.swp")
        assert not matcher.is_ignored("src/main.py")

    def test_without_defaults(self):
        assert IgnoreMatcher(include_defaults=False).is_ignored(".env") is False

    def test_directory_only(self):
        """Test that a trailing slash only matches directories."""
        matcher = IgnoreMatcher(["build/"], include_defaults=False)
        assert matcher.is_ignored("build", is_dir=True)
        assert matcher.is_ignored("build/out.txt")
        assert matcher.is_ignored("sub/build", is_dir=True)
        assert not matcher.is_ignored("build")

    def test_anchored(self):
        matcher = IgnoreMatcher(["/todo.txt"], include_defaults=False)
        assert matcher.is_ignored("todo.txt")
        assert not matcher.is_ignored("docs/todo.txt")

    def test_negation_last_rule_wins(self):
        """Test that a later negated rule un-ignores."""
        matcher = IgnoreMatcher(["*.log", "!keep.log"], include_defaults=False)
        assert matcher.is_ignored("debug.log")
        assert not matcher.is_ignored("keep.log")

    def test_compile_rule(self):
        rule = compile_rule("!dist/")
        assert rule.negated is True
        assert rule.directory_only is True

    def test_for_directory(self, temp_dir):
        """Test loading .gitignore and .ignore files."""
        (temp_dir / ".gitignore").write_text("*.tmp\n")
        (temp_dir / ".ignore").write_text("secret/\n")
        matcher = IgnoreMatcher.for_directory(temp_dir, extra=["*.bak"])
        assert matcher.is_ignored("a.tmp")
        assert matcher.is_ignored("secret", is_dir=True)
        assert matcher.is_ignored("old.bak")
        assert not matcher.is_ignored("a.txt")


class TestFileTypes:
    """Test text detection and filters."""

    def test_text_by_extension(self, temp_dir):
        path = temp_dir / "a.py"
        path.write_text("x = 1\n")
        assert is_text_file(path) is True

    def test_binary_by_extension(self, temp_dir):
        path = temp_dir / "img.png"
        path.write_text("not really a png")
        assert is_text_file(path) is False

    def test_well_known_names(self, temp_dir):
        path = temp_dir / "Makefile"
        path.write_text("all:\n")
        assert is_text_file(path) is True

    def test_sniff_unknown_extension(self, temp_dir):
        """Test content sniffing for unknown extensions."""
        text = temp_dir / "notes.unknown"
        text.write_text("plain words\n")
        binary = temp_dir / "data.unknown"
        binary.write_bytes(b"\x00\x01\x02")
        assert is_text_file(text) is True
        assert is_text_file(binary) is False

    def test_empty_unknown_is_text(self, temp_dir):
        path = temp_dir / "empty.unknown"
        path.write_bytes(b"")
        assert is_text_file(path) is True

    def test_matches_type(self):
        assert matches_type("main.py", ["py"])
        assert matches_type("App.tsx", ["ts"])
        assert matches_type("notes.md", ["doc"])
        assert matches_type("data.parquet", ["parquet"])
        assert matches_type("data.parquet", [".parquet"])
        assert not matches_type("main.py", ["js", "md"])

    def test_globs(self):
        assert matches_glob("src/main.py", "src/*.py")
        assert not matches_glob("src/lib/main.py", "src/*.py")
        assert matches_glob("src/lib/main.py", "src/**")
        assert should_exclude("dist/app.js", ["*.md", "dist/**"])
        assert not should_exclude("app.js", ["*.md"])

    def test_text_io_preserves_line_endings(self, temp_dir):
        path = temp_dir / "crlf.txt"
        write_text_file(path, "a\r\nb\r\n")
        assert path.read_bytes() == b"a\r\nb\r\n"
        assert read_text_file(path) == "a\r\nb\r\n"
