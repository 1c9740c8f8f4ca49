"""
Gitignore-style ignore rules (.gitignore, .ignore).
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

DEFAULT_IGNORE = [
    ".*",
    "node_modules",
    "Thumbs.db",
    "*.swp",
    "*.swo",
    "*~",
]

IGNORE_FILES = (".gitignore", ".ignore")


@dataclass(frozen=True)
class IgnoreRule:
    """A compiled ignore pattern."""

    pattern: str
    regex: re.Pattern
    negated: bool
    directory_only: bool


def parse_ignore_patterns(content: str) -> list[str]:
    """Strip blank lines and comments from ignore file content."""
    patterns = []
    for line in content.splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            patterns.append(line)
    return patterns


def glob_to_regex(glob: str) -> str:
    """
    Translate a glob into a regex source.

    ``**`` matches anything, ``*`` anything but ``/``, ``?`` one non-separator
    character. Everything else is matched literally.
    """
    parts = []
    i = 0
    while i < len(glob):
        char = glob[i]
        if glob.startswith("**", i):
            parts.append(".*")
            i += 2
            continue
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(char))
        i += 1
    return "".join(parts)


def compile_rule(pattern: str) -> IgnoreRule:
    """Compile one ignore line into an anchored rule."""
    negated = pattern.startswith("!")
    body = pattern[1:] if negated else pattern

    directory_only = body.endswith("/")
    body = body.rstrip("/")

    anchored = body.startswith("/")
    body = body.lstrip("/")

    prefix = "^" if anchored else "(^|/)"
    if directory_only:
        # Matched against "path/" for directories, so the directory itself
        # and everything beneath it hit; a plain file of that name does not.
        source = f"{prefix}{glob_to_regex(body)}/.*$"
    else:
        source = f"{prefix}{glob_to_regex(body)}(/.*)?$"

    return IgnoreRule(
        pattern=pattern,
        regex=re.compile(source),
        negated=negated,
        directory_only=directory_only,
    )


def load_ignore_patterns(directory: Path) -> list[str]:
    """
    Load patterns from ``.gitignore`` and ``.ignore`` in a directory.

    Missing or unreadable files are not errors.
    """
    patterns: list[str] = []
    for filename in IGNORE_FILES:
        ignore_file = directory / filename
        try:
            content = ignore_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            continue
        patterns.extend(parse_ignore_patterns(content))
        logger.debug(f"Loaded ignore rules from {ignore_file}")
    return patterns


class IgnoreMatcher:
    """
    Predicate over relative paths built from ignore rules.

    Rules are evaluated in order; the last rule that matches a path decides
    whether it is ignored (negated rules un-ignore).

    Usage:
        matcher = IgnoreMatcher.for_directory(Path("/workspace"))
        matcher.is_ignored("node_modules/react/index.js")  # True
        matcher.is_ignored("build", is_dir=True)
    """

    def __init__(self, patterns: Iterable[str] = (), include_defaults: bool = True):
        all_patterns = list(DEFAULT_IGNORE) if include_defaults else []
        all_patterns.extend(patterns)
        self.rules = [compile_rule(p) for p in all_patterns]

    @classmethod
    def for_directory(cls, directory: Path, extra: Iterable[str] = ()) -> "IgnoreMatcher":
        """Build a matcher from the ignore files of ``directory`` plus extras."""
        patterns = load_ignore_patterns(directory)
        patterns.extend(extra)
        return cls(patterns)

    def is_ignored(self, relative_path: str, is_dir: bool = False) -> bool:
        """Check whether a path (relative to the matcher's directory) is ignored."""
        path = relative_path.replace("\\", "/").strip("/")
        dir_form = f"{path}/"

        ignored = False
        for rule in self.rules:
            if rule.directory_only:
                matched = bool(rule.regex.search(dir_form if is_dir else path))
            else:
                matched = bool(rule.regex.search(path))
            if matched:
                ignored = not rule.negated
        return ignored
