"""
Bounded directory traversal for listings and content search.

Traversal uses an explicit stack of (path, relative path, depth) entries
instead of recursion. Entries that cannot be read are recorded as
``SkippedEntry`` outcomes and never abort the walk.
"""

import logging
import os
import re
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, Optional

from agent_workspace.filesystem.config import WorkspaceConfig
from agent_workspace.filesystem.exceptions import NotTextError
from agent_workspace.filesystem.filetypes import (
    is_text_file,
    matches_type,
    read_text_file,
    should_exclude,
)
from agent_workspace.filesystem.ignore import IgnoreMatcher
from agent_workspace.filesystem.lines import get_context_lines, split_lines
from agent_workspace.filesystem.models import (
    ContentMatch,
    DirectoryEntry,
    EntryKind,
    MatchContext,
)
from agent_workspace.filesystem.paths import PathResolver, ResolvedPath
from agent_workspace.filesystem.patterns import SearchMatch, find_matches

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkippedEntry:
    """An entry the walk could not visit, and why."""

    path: str
    reason: str


@dataclass
class WalkItem:
    """One visited file or directory."""

    absolute_path: Path
    relative_path: str  # relative to the walk base
    virtual_path: str  # relative to the workspace root
    depth: int
    is_dir: bool
    size: int

    @property
    def name(self) -> str:
        return self.absolute_path.name


@dataclass
class WalkOutcome:
    """Entries skipped during a walk."""

    skipped: list[SkippedEntry] = field(default_factory=list)

    def skip(self, path: str, reason: str) -> None:
        logger.debug(f"Skipping {path}: {reason}")
        self.skipped.append(SkippedEntry(path=path, reason=reason))


@dataclass
class TreeListing(WalkOutcome):
    entries: list[DirectoryEntry] = field(default_factory=list)
    truncated: bool = False


@dataclass
class ContentSearch(WalkOutcome):
    matches: list[ContentMatch] = field(default_factory=list)
    truncated: bool = False
    files_scanned: int = 0


def format_size(size: int) -> str:
    """Human readable size: ``512B``, ``1.2KB``, ``3.4MB``."""
    if size < 1024:
        return f"{size}B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f}KB"
    return f"{size / (1024 * 1024):.1f}MB"


def _join_virtual(base_virtual: str, relative: str) -> str:
    if base_virtual == ".":
        return relative
    return f"{base_virtual}/{relative}"


def build_content_matches(
    content: str, virtual_path: str, found: list[SearchMatch], context: int
) -> list[ContentMatch]:
    """Attach numbered context lines to raw matches."""
    lines = split_lines(content)
    results = []
    for match in found:
        before, after = get_context_lines(content, match.line, context, context)
        first_before = match.line - len(before)
        match_text = lines[match.line - 1] if match.line <= len(lines) else ""
        results.append(
            ContentMatch(
                file=virtual_path,
                line=match.line,
                column=match.column,
                text=match.text,
                context=MatchContext(
                    before=[f"{first_before + i}|{text}" for i, text in enumerate(before)],
                    match=[f"{match.line}|{match_text}"],
                    after=[f"{match.line + 1 + i}|{text}" for i, text in enumerate(after)],
                ),
            )
        )
    return results


class DirectoryWalker:
    """
    Depth- and ignore-aware traversal of workspace directories.

    Usage:
        walker = DirectoryWalker(config)
        listing = walker.list_tree(resolver.resolve("src"), depth=2)
        found = walker.search_content(resolver.resolve("."), re.compile("TODO"))
    """

    def __init__(self, config: WorkspaceConfig, resolver: Optional[PathResolver] = None):
        self.config = config
        self.resolver = resolver or PathResolver(config)

    def ignore_matcher(self, directory: Path) -> Optional[IgnoreMatcher]:
        """Ignore rules for a walk rooted at ``directory`` (None if disabled)."""
        if not self.config.respect_ignore:
            return None
        return IgnoreMatcher.for_directory(directory, extra=self.config.extra_ignore_patterns)

    def walk(
        self,
        base: ResolvedPath,
        max_depth: int,
        outcome: WalkOutcome,
        *,
        exclude: Iterable[str] = (),
        exclude_names: Iterable[str] = (),
        skip_hidden: bool = False,
    ) -> Iterator[WalkItem]:
        """
        Yield entries below ``base`` in depth-first, name-sorted order.

        Depth 1 yields the immediate children of ``base``. Depth 0 yields
        nothing. Ignored and excluded directories are pruned before descending
        into them.

        Args:
            base: Directory to walk
            max_depth: Deepest level to yield
            outcome: Collects entries that could not be visited
            exclude: Globs matched against paths relative to ``base``
            exclude_names: Entry names never yielded or descended into
            skip_hidden: Skip entries whose name starts with a dot
        """
        if max_depth < 1:
            return

        matcher = self.ignore_matcher(base.absolute_path)
        exclude = list(exclude)
        exclude_names = set(exclude_names)

        stack: list[tuple[Path, str, int]] = []
        self._push_children(stack, base, base.absolute_path, "", 1, outcome)

        while stack:
            path, relative, depth = stack.pop()
            virtual = _join_virtual(base.virtual_path, relative)

            if path.name in exclude_names or (skip_hidden and path.name.startswith(".")):
                continue

            try:
                if path.is_symlink() and not self.resolver.is_within_root(path.resolve()):
                    outcome.skip(virtual, "symlink points outside workspace")
                    continue
                st = path.stat()
            except (OSError, RuntimeError) as e:
                outcome.skip(virtual, str(e))
                continue

            is_dir = stat.S_ISDIR(st.st_mode)
            if not is_dir and not stat.S_ISREG(st.st_mode):
                continue

            if matcher is not None and matcher.is_ignored(relative, is_dir=is_dir):
                continue
            if exclude and should_exclude(relative, exclude):
                continue

            yield WalkItem(
                absolute_path=path,
                relative_path=relative,
                virtual_path=virtual,
                depth=depth,
                is_dir=is_dir,
                size=st.st_size,
            )

            if is_dir and depth < max_depth:
                self._push_children(stack, base, path, relative, depth + 1, outcome)

    def _push_children(
        self,
        stack: list[tuple[Path, str, int]],
        base: ResolvedPath,
        directory: Path,
        relative: str,
        depth: int,
        outcome: WalkOutcome,
    ) -> None:
        try:
            names = sorted(os.listdir(directory))
        except OSError as e:
            virtual = _join_virtual(base.virtual_path, relative) if relative else base.virtual_path
            outcome.skip(virtual, str(e))
            return

        for name in reversed(names):
            child_relative = f"{relative}/{name}" if relative else name
            stack.append((directory / name, child_relative, depth))

    def list_tree(
        self,
        base: ResolvedPath,
        depth: Optional[int] = None,
        *,
        exclude: Iterable[str] = (),
        types: Iterable[str] = (),
        max_entries: Optional[int] = None,
    ) -> TreeListing:
        """
        List a directory tree.

        Directories report their child count, files a human readable size.
        Stops and sets ``truncated`` once ``max_entries`` entries are listed.
        """
        depth = self.config.list_depth if depth is None else depth
        max_entries = max_entries or self.config.max_list_entries
        types = list(types)
        listing = TreeListing()

        for item in self.walk(base, depth, listing, exclude=exclude):
            if not item.is_dir and types and not matches_type(item.name, types):
                continue

            if len(listing.entries) >= max_entries:
                listing.truncated = True
                break

            if item.is_dir:
                try:
                    children = len(os.listdir(item.absolute_path))
                except OSError as e:
                    listing.skip(item.virtual_path, str(e))
                    children = 0
                listing.entries.append(
                    DirectoryEntry(path=item.virtual_path, kind=EntryKind.DIRECTORY, children=children)
                )
            else:
                listing.entries.append(
                    DirectoryEntry(path=item.virtual_path, kind=EntryKind.FILE, size=format_size(item.size))
                )

        logger.debug(
            f"Listed {len(listing.entries)} entries under {base.virtual_path} "
            f"(truncated={listing.truncated}, skipped={len(listing.skipped)})"
        )
        return listing

    def search_file(
        self,
        file: ResolvedPath,
        regex: re.Pattern,
        *,
        context: Optional[int] = None,
        max_matches: Optional[int] = None,
    ) -> ContentSearch:
        """
        Search a single file.

        Raises:
            NotTextError: If the file is not text
            OSError: If the file cannot be read
        """
        context = self.config.context_lines if context is None else context
        max_matches = max_matches or self.config.max_search_matches

        if not is_text_file(file.absolute_path):
            raise NotTextError("Cannot search in binary files", path=file.virtual_path)
        try:
            content = read_text_file(file.absolute_path)
        except UnicodeDecodeError:
            raise NotTextError("File is not valid UTF-8 text", path=file.virtual_path)

        found = find_matches(content, regex, max_matches + 1)
        result = ContentSearch(files_scanned=1)
        if len(found) > max_matches:
            result.truncated = True
            found = found[:max_matches]
        result.matches = build_content_matches(content, file.virtual_path, found, context)
        return result

    def search_content(
        self,
        base: ResolvedPath,
        regex: re.Pattern,
        *,
        context: Optional[int] = None,
        max_matches: Optional[int] = None,
        depth: Optional[int] = None,
        exclude: Iterable[str] = (),
        types: Iterable[str] = (),
    ) -> ContentSearch:
        """
        Search every text file below a directory.

        Non-text and unreadable files are skipped. Stops once ``max_matches``
        matches are collected and sets ``truncated`` if more exist.
        """
        context = self.config.context_lines if context is None else context
        max_matches = max_matches or self.config.max_search_matches
        depth = self.config.search_depth if depth is None else depth
        types = list(types)
        result = ContentSearch()

        for item in self.walk(base, depth, result, exclude=exclude):
            if item.is_dir:
                continue
            if len(result.matches) >= max_matches:
                result.truncated = True
                break
            if types and not matches_type(item.name, types):
                continue
            if not is_text_file(item.absolute_path):
                continue

            try:
                content = read_text_file(item.absolute_path)
            except (OSError, UnicodeDecodeError) as e:
                result.skip(item.virtual_path, str(e))
                continue

            result.files_scanned += 1
            remaining = max_matches - len(result.matches)
            found = find_matches(content, regex, remaining + 1)
            if len(found) > remaining:
                result.truncated = True
                found = found[:remaining]
            result.matches.extend(
                build_content_matches(content, item.virtual_path, found, context)
            )

        logger.debug(
            f"Searched {result.files_scanned} files under {base.virtual_path}: "
            f"{len(result.matches)} matches (truncated={result.truncated})"
        )
        return result
