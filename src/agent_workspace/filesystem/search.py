"""
Fuzzy file name search and auto-resolution of partial paths.
"""

import logging
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Iterable, Optional

from agent_workspace.filesystem.config import WorkspaceConfig
from agent_workspace.filesystem.paths import PathResolver, ResolvedPath
from agent_workspace.filesystem.walker import DirectoryWalker, WalkOutcome

logger = logging.getLogger(__name__)

CONSECUTIVE_BONUS = 10
BOUNDARY_BONUS = 5
DEPTH_PENALTY = 2
BOUNDARY_CHARS = "/_-"
NO_NAME_MATCH_SCORE = -1000


@dataclass
class FuzzyMatch:
    """Score and matched character positions of a fuzzy match."""

    score: int
    indices: list[int] = field(default_factory=list)


@dataclass
class FileCandidate:
    """A file or directory ranked against a query."""

    relative_path: str  # relative to the searched directory
    virtual_path: str  # relative to the workspace root
    file_name: str
    is_directory: bool
    score: int = 0
    match_indices: list[int] = field(default_factory=list)

    @property
    def extension(self) -> str:
        return "" if self.is_directory else PurePosixPath(self.file_name).suffix.lstrip(".").lower()

    @property
    def depth(self) -> int:
        return self.relative_path.count("/") + 1


@dataclass
class AutoResolution:
    """Outcome of resolving a missing path by file name."""

    resolved: bool = False
    resolved_path: Optional[str] = None
    candidates: list[str] = field(default_factory=list)
    ambiguous: bool = False


def fuzzy_score(query: str, target: str) -> Optional[FuzzyMatch]:
    """
    Score ``target`` against ``query`` as a case-insensitive subsequence.

    Every query character must appear in order; otherwise returns None.
    Consecutive matches earn +10, matches at a boundary (start of string or
    after ``/``, ``_``, ``-``) earn +5, and each path segment costs 2.
    """
    query_lower = query.lower()
    target_lower = target.lower()

    indices = []
    query_index = 0
    for i, char in enumerate(target_lower):
        if query_index >= len(query_lower):
            break
        if char == query_lower[query_index]:
            indices.append(i)
            query_index += 1

    if query_index != len(query_lower):
        return None

    score = 0
    for position, index in enumerate(indices):
        if position > 0 and indices[position - 1] == index - 1:
            score += CONSECUTIVE_BONUS
        if index == 0 or target_lower[index - 1] in BOUNDARY_CHARS:
            score += BOUNDARY_BONUS

    score -= len(target.split("/")) * DEPTH_PENALTY
    return FuzzyMatch(score=score, indices=indices)


class FuzzySearchIndex:
    """
    Rank workspace files by fuzzy name/path similarity.

    Candidates exclude dotfiles, the configured always-exclude directories
    and anything matched by ignore rules.

    Usage:
        index = FuzzySearchIndex(config)
        results = index.search(resolver.resolve("."), "cfgjs")
        resolution = index.auto_resolve("src/config.js")
    """

    def __init__(
        self,
        config: WorkspaceConfig,
        resolver: Optional[PathResolver] = None,
        walker: Optional[DirectoryWalker] = None,
    ):
        self.config = config
        self.resolver = resolver or PathResolver(config)
        self.walker = walker or DirectoryWalker(config, self.resolver)

    def collect(
        self,
        base: ResolvedPath,
        max_depth: int,
        include_directories: bool = False,
        exclude: Iterable[str] = (),
    ) -> list[FileCandidate]:
        """
        Enumerate candidates below ``base``.

        ``max_depth`` counts directory levels below ``base`` to descend into;
        0 only considers the immediate children.
        """
        outcome = WalkOutcome()
        candidates = []
        for item in self.walker.walk(
            base,
            max_depth + 1,
            outcome,
            exclude=exclude,
            exclude_names=self.config.always_exclude,
            skip_hidden=True,
        ):
            if item.is_dir and not include_directories:
                continue
            candidates.append(
                FileCandidate(
                    relative_path=item.relative_path,
                    virtual_path=item.virtual_path,
                    file_name=item.name,
                    is_directory=item.is_dir,
                )
            )
        if outcome.skipped:
            logger.debug(f"Fuzzy index skipped {len(outcome.skipped)} entries under {base.virtual_path}")
        return candidates

    def search(
        self,
        base: ResolvedPath,
        query: str,
        *,
        max_results: Optional[int] = None,
        include_directories: bool = False,
        max_depth: Optional[int] = None,
        exclude: Iterable[str] = (),
    ) -> list[FileCandidate]:
        """
        Search files (optionally directories) by fuzzy name.

        The name score counts double and is added to the relative path score.
        An empty query ranks shallow paths first.

        Args:
            base: Directory to search in
            query: Fuzzy query
            max_results: Maximum number of results (default from config)
            include_directories: Also rank directories
            max_depth: Directory levels to descend (default from config)
            exclude: Globs relative to ``base`` to leave out

        Returns:
            Candidates sorted by descending score
        """
        max_results = max_results or self.config.find_max_results
        max_depth = self.config.auto_resolve_depth if max_depth is None else max_depth
        query_lower = (query or "").strip().lower()

        scored = []
        for candidate in self.collect(base, max_depth, include_directories, exclude):
            if not query_lower:
                candidate.score = 100 - candidate.depth * 10
                scored.append(candidate)
                continue

            name_match = fuzzy_score(query_lower, candidate.file_name)
            path_match = fuzzy_score(query_lower, candidate.relative_path)
            if name_match is None and path_match is None:
                continue

            name_score = name_match.score if name_match else NO_NAME_MATCH_SCORE
            path_score = path_match.score if path_match else 0
            candidate.score = name_score * 2 + path_score
            candidate.match_indices = (name_match or path_match).indices
            scored.append(candidate)

        scored.sort(key=lambda c: c.score, reverse=True)
        logger.debug(f"Fuzzy search {query!r} under {base.virtual_path}: {len(scored)} candidates")
        return scored[:max_results]

    def auto_resolve(self, virtual_path: str) -> AutoResolution:
        """
        Resolve a missing path by looking for files with the same name.

        Exact, case-insensitive file name matches anywhere under the
        workspace root decide the outcome: none (not resolved), exactly one
        (resolved) or several (ambiguous, with all candidates).
        """
        file_name = PurePosixPath(virtual_path.replace("\\", "/")).name
        if not file_name or file_name == ".":
            return AutoResolution()

        root = self.resolver.resolve(".")
        file_name_lower = file_name.lower()
        matches = [
            c.virtual_path
            for c in self.collect(root, self.config.auto_resolve_depth)
            if not c.is_directory and c.file_name.lower() == file_name_lower
        ]

        if not matches:
            return AutoResolution()

        if len(matches) == 1:
            logger.info(f"Auto-resolved {virtual_path!r} to {matches[0]!r}")
            return AutoResolution(
                resolved=True, resolved_path=matches[0], candidates=matches
            )

        logger.info(f"Auto-resolve of {virtual_path!r} is ambiguous: {matches}")
        return AutoResolution(candidates=matches, ambiguous=True)
