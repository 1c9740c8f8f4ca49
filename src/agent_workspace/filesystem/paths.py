"""
Virtual path resolution confined to the workspace root.
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from agent_workspace.filesystem.config import WorkspaceConfig
from agent_workspace.filesystem.exceptions import InvalidPathError

logger = logging.getLogger(__name__)

ROOT_ALIASES = {"", ".", "/"}

_DRIVE_LETTER = re.compile(r"^[a-zA-Z]:[/\\]")


@dataclass(frozen=True)
class ResolvedPath:
    """A real path inside the workspace paired with its virtual form."""

    absolute_path: Path
    virtual_path: str

    @property
    def is_root(self) -> bool:
        return self.virtual_path == "."


def is_absolute_path(path: str) -> bool:
    """Check for POSIX or Windows absolute path syntax."""
    return path.startswith("/") or bool(_DRIVE_LETTER.match(path))


def has_escape_attempt(path: str) -> bool:
    """Check whether any path segment is ``..``."""
    return any(segment == ".." for segment in re.split(r"[/\\]", path))


def normalize_virtual_path(path: str) -> str:
    """Normalize separators and drop empty or ``.`` segments."""
    segments = [s for s in path.replace("\\", "/").split("/") if s not in ("", ".")]
    return "/".join(segments) or "."


class PathResolver:
    """
    Translate caller-supplied virtual paths into verified real paths.

    Usage:
        resolver = PathResolver(config)
        resolved = resolver.resolve("src/main.py")
        resolved.absolute_path  # /workspace/src/main.py
        resolved.virtual_path   # "src/main.py"
    """

    def __init__(self, config: WorkspaceConfig):
        self.config = config
        self.root = config.root

    def resolve(self, raw_path: Optional[str]) -> ResolvedPath:
        """
        Resolve a virtual path.

        Args:
            raw_path: Path relative to the workspace root

        Returns:
            ResolvedPath inside the workspace

        Raises:
            InvalidPathError: If the path is absolute, contains ``..`` or
                resolves outside the workspace (e.g. through a symlink)
        """
        trimmed = (raw_path or "").strip()

        if trimmed in ROOT_ALIASES:
            return ResolvedPath(absolute_path=self.root, virtual_path=".")

        if is_absolute_path(trimmed):
            raise InvalidPathError(
                trimmed,
                "Absolute paths not allowed. Use relative paths within workspace",
            )

        if has_escape_attempt(trimmed):
            raise InvalidPathError(trimmed, 'Path cannot contain ".." segments')

        if "\x00" in trimmed:
            raise InvalidPathError(trimmed.replace("\x00", "\\x00"), "Path cannot contain null bytes")

        virtual_path = normalize_virtual_path(trimmed)
        if virtual_path == ".":
            return ResolvedPath(absolute_path=self.root, virtual_path=".")

        try:
            absolute_path = (self.root / virtual_path).resolve()
        except (OSError, RuntimeError, ValueError) as e:
            raise InvalidPathError(trimmed, f"Cannot resolve path: {e}")

        if not self.is_within_root(absolute_path):
            logger.warning(f"Rejected path outside workspace: {trimmed} -> {absolute_path}")
            raise InvalidPathError(trimmed, "Path is outside workspace")

        return ResolvedPath(absolute_path=absolute_path, virtual_path=virtual_path)

    def is_within_root(self, path: Path) -> bool:
        """Check that a real path is the root or strictly below it."""
        path_str = str(path)
        root_str = str(self.root)
        return path_str == root_str or path_str.startswith(root_str.rstrip(os.sep) + os.sep)

    def entry_path(self, resolved: ResolvedPath) -> Path:
        """
        The unresolved path of an entry, for acting on a symlink itself.

        Raises:
            InvalidPathError: If the entry's parent directory resolves
                outside the workspace
        """
        if resolved.is_root:
            return self.root
        entry = self.root / resolved.virtual_path
        if not self.is_within_root(entry.parent.resolve()):
            raise InvalidPathError(resolved.virtual_path, "Path is outside workspace")
        return entry

    def to_virtual(self, absolute_path: Path) -> Optional[str]:
        """Convert a real path back to a virtual path (None if outside)."""
        if not self.is_within_root(absolute_path):
            return None
        if absolute_path == self.root:
            return "."
        return absolute_path.relative_to(self.root).as_posix()
