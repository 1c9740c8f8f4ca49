"""
Sandboxed workspace filesystem for agent access.

This module confines every read and write to a single workspace root and
provides line-numbered reads, content search, fuzzy file lookup and
checksum-guarded edits with diff previews.
"""

from agent_workspace.filesystem.checksum import compute_checksum, verify_checksum
from agent_workspace.filesystem.config import WorkspaceConfig
from agent_workspace.filesystem.diff import NO_CHANGES, apply_diff, generate_diff
from agent_workspace.filesystem.exceptions import (
    AmbiguousPathError,
    ChecksumMismatchError,
    ErrorCode,
    FileSystemError,
    InvalidPathError,
    InvalidPatternError,
    MultipleMatchesError,
    NotFoundError,
    NotTextError,
)
from agent_workspace.filesystem.models import (
    ReadRequest,
    ReadResult,
    WriteRequest,
    WriteResult,
)
from agent_workspace.filesystem.paths import PathResolver, ResolvedPath
from agent_workspace.filesystem.patterns import PatternMode, Preset
from agent_workspace.filesystem.reader import WorkspaceReader
from agent_workspace.filesystem.search import FuzzySearchIndex
from agent_workspace.filesystem.tools import WorkspaceTools
from agent_workspace.filesystem.walker import DirectoryWalker
from agent_workspace.filesystem.writer import WorkspaceWriter

__all__ = [
    "WorkspaceConfig",
    "ErrorCode",
    "FileSystemError",
    "InvalidPathError",
    "AmbiguousPathError",
    "NotFoundError",
    "NotTextError",
    "InvalidPatternError",
    "MultipleMatchesError",
    "ChecksumMismatchError",
    "ReadRequest",
    "ReadResult",
    "WriteRequest",
    "WriteResult",
    "PathResolver",
    "ResolvedPath",
    "PatternMode",
    "Preset",
    "DirectoryWalker",
    "FuzzySearchIndex",
    "WorkspaceReader",
    "WorkspaceWriter",
    "WorkspaceTools",
    "compute_checksum",
    "verify_checksum",
    "generate_diff",
    "apply_diff",
    "NO_CHANGES",
]
