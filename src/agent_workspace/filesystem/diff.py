"""
Unified diff generation for change previews.
"""

import difflib
import re
from dataclasses import dataclass

NO_CHANGES = "(no changes)"
CONTEXT_LINES = 3

_HUNK_HEADER = re.compile(r"^@@ -(\d+),(\d+) \+(\d+),(\d+) @@$")


@dataclass(frozen=True)
class DiffStats:
    added: int
    removed: int


def generate_diff(old_content: str, new_content: str, filename: str = "file") -> str:
    """
    Generate a unified diff between two strings.

    Lines are compared after splitting on ``\\n``. Each hunk carries up to
    three lines of context on both sides and a ``@@ -a,b +c,d @@`` header with
    1-indexed starts. Identical inputs yield ``NO_CHANGES``.
    """
    if old_content == new_content:
        return NO_CHANGES

    old_lines = old_content.split("\n")
    new_lines = new_content.split("\n")
    matcher = difflib.SequenceMatcher(None, old_lines, new_lines, autojunk=False)

    hunks = []
    for group in matcher.get_grouped_opcodes(CONTEXT_LINES):
        old_start, old_end = group[0][1], group[-1][2]
        new_start, new_end = group[0][3], group[-1][4]

        body = []
        for tag, i1, i2, j1, j2 in group:
            if tag == "equal":
                body.extend(f" {line}" for line in old_lines[i1:i2])
                continue
            if tag in ("replace", "delete"):
                body.extend(f"-{line}" for line in old_lines[i1:i2])
            if tag in ("replace", "insert"):
                body.extend(f"+{line}" for line in new_lines[j1:j2])

        header = (
            f"@@ -{old_start + 1},{old_end - old_start} "
            f"+{new_start + 1},{new_end - new_start} @@"
        )
        hunks.append("\n".join([header, *body]))

    if not hunks:
        return NO_CHANGES

    return "\n".join([f"--- a/{filename}", f"+++ b/{filename}", *hunks])


def _diff_body(diff: str) -> list[str]:
    """Diff lines without the two file header lines."""
    lines = diff.split("\n")
    if len(lines) >= 2 and lines[0].startswith("--- ") and lines[1].startswith("+++ "):
        return lines[2:]
    return lines


def count_diff_lines(diff: str) -> DiffStats:
    """Count added and removed lines in a diff produced by ``generate_diff``."""
    if diff == NO_CHANGES:
        return DiffStats(added=0, removed=0)

    added = removed = 0
    for line in _diff_body(diff):
        if _HUNK_HEADER.match(line):
            continue
        if line.startswith("+"):
            added += 1
        elif line.startswith("-"):
            removed += 1
    return DiffStats(added=added, removed=removed)


def apply_diff(old_content: str, diff: str) -> str:
    """
    Apply a diff produced by ``generate_diff`` to the original content.

    Raises:
        ValueError: If the diff is malformed or its context does not match
    """
    if diff == NO_CHANGES:
        return old_content

    old_lines = old_content.split("\n")
    result: list[str] = []
    cursor = 0
    in_hunk = False

    for line in _diff_body(diff):
        header = _HUNK_HEADER.match(line)
        if header:
            start = int(header.group(1)) - 1
            if start < cursor or start > len(old_lines):
                raise ValueError(f"Hunk out of order or out of bounds: {line}")
            result.extend(old_lines[cursor:start])
            cursor = start
            in_hunk = True
            continue

        if not in_hunk or not line:
            raise ValueError(f"Unexpected diff line: {line!r}")

        marker, text = line[0], line[1:]
        if marker == "+":
            result.append(text)
        elif marker in (" ", "-"):
            if cursor >= len(old_lines) or old_lines[cursor] != text:
                raise ValueError(f"Diff context does not match line {cursor + 1}")
            if marker == " ":
                result.append(text)
            cursor += 1
        else:
            raise ValueError(f"Unexpected diff line: {line!r}")

    result.extend(old_lines[cursor:])
    return "\n".join(result)
