"""
Tests for fuzzy name search, auto-resolution and directory walking.
"""

import os
import re
import tempfile
from pathlib import Path

import pytest

from agent_workspace.filesystem.config import WorkspaceConfig
from agent_workspace.filesystem.exceptions import NotTextError
from agent_workspace.filesystem.paths import PathResolver
from agent_workspace.filesystem.search import FuzzySearchIndex, fuzzy_score
from agent_workspace.filesystem.walker import DirectoryWalker, WalkOutcome, format_size


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def workspace(temp_dir):
    """A small project tree."""
    files = {
        "README.md": "# Project\n",
        "src/config.js": "export default {}\n",
        "src/app.js": "// TODO: start\n",
        "src/lib/helpers.py": "def helper():\n    pass  # TODO\n",
        "docs/guide.md": "Guide\n",
        "node_modules/pkg/config.js": "x\n",
        ".cache/config.js": "x\n",
    }
    for relative, content in files.items():
        path = temp_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return temp_dir


@pytest.fixture
def config(workspace):
    return WorkspaceConfig(root=workspace)


@pytest.fixture
def resolver(config):
    return PathResolver(config)


class TestFuzzyScore:
    """Test fuzzy_score."""

    def test_exact(self):
        match = fuzzy_score("abc", "abc")
        assert match.indices == [0, 1, 2]
        assert match.score == 5 + 10 + 10 - 2

    def test_subsequence(self):
        match = fuzzy_score("cfg", "config")
        assert match.indices == [0, 3, 5]
        assert match.score == 5 - 2

    def test_no_match(self):
        """Test that every query character must appear in order."""
        assert fuzzy_score("xyz", "config") is None
        assert fuzzy_score("gc", "cg") is None

    def test_case_insensitive(self):
        assert fuzzy_score("READ", "readme.md") is not None

    def test_boundary_bonus(self):
        """Test that matches after separators score higher."""
        boundary = fuzzy_score("b", "a_b")
        inner = fuzzy_score("b", "acb")
        assert boundary.score > inner.score

    def test_depth_penalty(self):
        shallow = fuzzy_score("x", "x.md")
        deep = fuzzy_score("x", "a/b/x.md")
        assert shallow.score > deep.score


class TestFuzzySearchIndex:
    """Test FuzzySearchIndex."""

    def test_search_by_name(self, config, resolver):
        index = FuzzySearchIndex(config, resolver)
        results = index.search(resolver.resolve("."), "config")
        assert [r.virtual_path for r in results] == ["src/config.js"]
        assert results[0].extension == "js"
        assert results[0].depth == 2

    def test_excludes_hidden_and_always_excluded(self, config, resolver):
        """Test that dot directories and excluded names are never candidates."""
        index = FuzzySearchIndex(config, resolver)
        paths = [c.virtual_path for c in index.collect(resolver.resolve("."), 10)]
        assert not any(p.startswith("node_modules") for p in paths)
        assert not any(p.startswith(".cache") for p in paths)

    def test_ranking(self, config, resolver):
        """Test that results are sorted by descending score."""
        index = FuzzySearchIndex(config, resolver)
        results = index.search(resolver.resolve("."), "ap")
        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)
        assert results[0].virtual_path == "src/app.js"

    def test_include_directories(self, config, resolver):
        index = FuzzySearchIndex(config, resolver)
        without = index.search(resolver.resolve("."), "docs")
        with_dirs = index.search(resolver.resolve("."), "docs", include_directories=True)
        assert "docs" not in [r.virtual_path for r in without]
        assert with_dirs[0].virtual_path == "docs"
        assert with_dirs[0].is_directory

    def test_empty_query_prefers_shallow(self, config, resolver):
        index = FuzzySearchIndex(config, resolver)
        results = index.search(resolver.resolve("."), "")
        assert results[0].virtual_path == "README.md"
        assert results[0].score == 90
        assert results[-1].depth >= results[0].depth

    def test_max_results(self, config, resolver):
        index = FuzzySearchIndex(config, resolver)
        assert len(index.search(resolver.resolve("."), "", max_results=2)) == 2

    def test_max_depth(self, config, resolver):
        """Test that max_depth 0 only considers immediate children."""
        index = FuzzySearchIndex(config, resolver)
        results = index.search(resolver.resolve("."), "", max_depth=0)
        assert [r.virtual_path for r in results] == ["README.md"]

    def test_search_subdirectory(self, config, resolver):
        index = FuzzySearchIndex(config, resolver)
        results = index.search(resolver.resolve("src"), "help")
        assert results[0].virtual_path == "src/lib/helpers.py"
        assert results[0].relative_path == "lib/helpers.py"


class TestAutoResolve:
    """Test FuzzySearchIndex.auto_resolve."""

    def test_unique(self, config):
        resolution = FuzzySearchIndex(config).auto_resolve("guide.md")
        assert resolution.resolved is True
        assert resolution.resolved_path == "docs/guide.md"

    def test_uses_file_name_only(self, config):
        resolution = FuzzySearchIndex(config).auto_resolve("wrong/place/helpers.py")
        assert resolution.resolved_path == "src/lib/helpers.py"

    def test_excluded_copies_do_not_count(self, config):
        """Test that copies under excluded directories do not make a name ambiguous."""
        resolution = FuzzySearchIndex(config).auto_resolve("config.js")
        assert resolution.resolved is True
        assert resolution.ambiguous is False

    def test_ambiguous(self, workspace, config):
        (workspace / "docs" / "config.js").write_text("x\n")
        resolution = FuzzySearchIndex(config).auto_resolve("config.js")
        assert resolution.resolved is False
        assert resolution.ambiguous is True
        assert resolution.candidates == ["docs/config.js", "src/config.js"]

    def test_no_match(self, config):
        resolution = FuzzySearchIndex(config).auto_resolve("missing.txt")
        assert resolution.resolved is False
        assert resolution.ambiguous is False
        assert resolution.candidates == []

    def test_partial_name_is_not_enough(self, config):
        assert FuzzySearchIndex(config).auto_resolve("guide").resolved is False


class TestDirectoryWalker:
    """Test DirectoryWalker."""

    def test_format_size(self):
        assert format_size(512) == "512B"
        assert format_size(2048) == "2.0KB"
        assert format_size(3 * 1024 * 1024) == "3.0MB"

    def test_walk_order(self, config, resolver):
        """Test depth-first, name-sorted traversal."""
        walker = DirectoryWalker(config, resolver)
        items = list(walker.walk(resolver.resolve("."), 3, WalkOutcome()))
        assert [i.virtual_path for i in items] == [
            "README.md",
            "docs",
            "docs/guide.md",
            "src",
            "src/app.js",
            "src/config.js",
            "src/lib",
            "src/lib/helpers.py",
        ]

    def test_walk_without_ignore(self, workspace):
        """Test that respect_ignore=False shows ignored entries."""
        config = WorkspaceConfig(root=workspace, respect_ignore=False)
        walker = DirectoryWalker(config)
        paths = [i.virtual_path for i in walker.walk(PathResolver(config).resolve("."), 1, WalkOutcome())]
        assert ".cache" in paths
        assert "node_modules" in paths

    def test_extra_ignore_patterns(self, workspace):
        config = WorkspaceConfig(root=workspace, extra_ignore_patterns=["*.md"])
        walker = DirectoryWalker(config)
        paths = [i.virtual_path for i in walker.walk(PathResolver(config).resolve("."), 3, WalkOutcome())]
        assert "README.md" not in paths
        assert "docs/guide.md" not in paths

    def test_symlink_outside_is_skipped(self, workspace, config, resolver):
        """Test that symlinks leaving the workspace are reported as skipped."""
        with tempfile.TemporaryDirectory() as outside:
            os.symlink(outside, workspace / "escape")
            outcome = WalkOutcome()
            paths = [i.virtual_path for i in DirectoryWalker(config, resolver).walk(resolver.resolve("."), 1, outcome)]
            assert "escape" not in paths
            assert outcome.skipped[0].path == "escape"

    def test_list_tree(self, config, resolver):
        listing = DirectoryWalker(config, resolver).list_tree(resolver.resolve("src"))
        assert [(e.path, e.kind.value) for e in listing.entries] == [
            ("src/app.js", "file"),
            ("src/config.js", "file"),
            ("src/lib", "directory"),
        ]
        assert listing.entries[2].children == 1
        assert listing.truncated is False

    def test_search_content(self, config, resolver):
        found = DirectoryWalker(config, resolver).search_content(resolver.resolve("."), re.compile("TODO"))
        assert [(m.file, m.line) for m in found.matches] == [
            ("src/app.js", 1),
            ("src/lib/helpers.py", 2),
        ]
        assert found.files_scanned == 5
        assert found.truncated is False

    def test_search_content_types(self, config, resolver):
        found = DirectoryWalker(config, resolver).search_content(
            resolver.resolve("."), re.compile("TODO"), types=["py"]
        )
        assert [m.file for m in found.matches] == ["src/lib/helpers.py"]

    def test_search_binary_file(self, workspace, config, resolver):
        (workspace / "blob.bin").write_bytes(b"\x00TODO")
        with pytest.raises(NotTextError):
            DirectoryWalker(config, resolver).search_file(resolver.resolve("blob.bin"), re.compile("TODO"))

    def test_depth_zero_yields_nothing(self, config, resolver):
        """Test that an explicit depth of 0 is honored, not replaced by the default."""
        walker = DirectoryWalker(config, resolver)
        assert list(walker.walk(resolver.resolve("."), 0, WalkOutcome())) == []
        assert walker.list_tree(resolver.resolve("."), depth=0).entries == []
        assert walker.search_content(resolver.resolve("."), re.compile("TODO"), depth=0).matches == []
