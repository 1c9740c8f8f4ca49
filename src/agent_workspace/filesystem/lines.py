"""
Line-based content manipulation.

All functions treat lines as 1-indexed and ranges as inclusive. A trailing
newline terminates the last line rather than opening a new one, so
``"a\\nb\\n"`` has two lines and edits keep that final newline in place.
"""

import re
from dataclasses import dataclass
from typing import Optional

_SINGLE_LINE = re.compile(r"^\d+$")
_LINE_RANGE = re.compile(r"^(\d+)\s*-\s*(\d+)$")


@dataclass(frozen=True)
class LineRange:
    start: int
    end: int


@dataclass(frozen=True)
class ExtractedLines:
    text: str
    start: int
    end: int


def parse_line_range(value: Optional[str]) -> Optional[LineRange]:
    """Parse ``"10"`` or ``"10-50"``; returns None for anything else."""
    if value is None:
        return None
    trimmed = str(value).strip()

    if _SINGLE_LINE.match(trimmed):
        line = int(trimmed)
        return LineRange(line, line) if line >= 1 else None

    match = _LINE_RANGE.match(trimmed)
    if match:
        start, end = int(match.group(1)), int(match.group(2))
        if 1 <= start <= end:
            return LineRange(start, end)

    return None


def _split(content: str) -> tuple[list[str], bool]:
    """Split into lines, reporting whether a trailing newline was dropped."""
    lines = content.split("\n")
    if len(lines) > 1 and lines[-1] == "":
        return lines[:-1], True
    return lines, False


def _join(lines: list[str], trailing_newline: bool) -> str:
    text = "\n".join(lines)
    if trailing_newline and lines:
        text += "\n"
    return text


def split_lines(content: str) -> list[str]:
    """The numbered lines of content (no phantom line after a final newline)."""
    if content == "":
        return []
    return _split(content)[0]


def count_lines(content: str) -> int:
    return len(split_lines(content))


def detect_newline(content: str) -> str:
    """``"\\r\\n"`` when every line break in content is CRLF, else ``"\\n"``."""
    breaks = content.count("\n")
    if breaks and content.count("\r\n") == breaks:
        return "\r\n"
    return "\n"


def add_line_numbers(text: str, start_line: int = 1) -> str:
    """Prefix each line with its right-aligned number: ``" 9|foo"``."""
    lines = text.split("\n")
    width = len(str(start_line + len(lines) - 1))
    return "\n".join(
        f"{str(start_line + i).rjust(width)}|{line}" for i, line in enumerate(lines)
    )


def extract_lines(content: str, start: int, end: int) -> ExtractedLines:
    """Extract an inclusive range, clamped to the content bounds."""
    lines = split_lines(content)
    actual_start = max(1, start)
    actual_end = min(len(lines), end)
    return ExtractedLines(
        text="\n".join(lines[actual_start - 1 : actual_end]),
        start=actual_start,
        end=actual_end,
    )


def get_context_lines(
    content: str, line: int, before: int, after: int
) -> tuple[list[str], list[str]]:
    """Lines immediately before and after ``line``."""
    lines = split_lines(content)
    index = line - 1
    start = max(0, index - before)
    end = min(len(lines), index + 1 + after)
    return lines[start:index], lines[index + 1 : end]


def replace_lines(content: str, start: int, end: int, replacement: str) -> str:
    """Replace lines ``start..end`` with replacement (which may span lines)."""
    lines, trailing = _split(content)
    end = min(end, len(lines))
    new_lines = lines[: start - 1] + [replacement] + lines[end:]
    return _join(new_lines, trailing)


def insert_before_line(content: str, line: int, insertion: str) -> str:
    if content == "":
        return insertion
    lines, trailing = _split(content)
    index = max(0, line - 1)
    lines.insert(index, insertion)
    return _join(lines, trailing)


def insert_after_line(content: str, line: int, insertion: str) -> str:
    """Insert after ``line``; after the last line this appends."""
    if content == "":
        return insertion
    lines, trailing = _split(content)
    index = min(len(lines), line)
    lines.insert(index, insertion)
    return _join(lines, trailing)


def delete_lines(content: str, start: int, end: int) -> str:
    lines, trailing = _split(content)
    end = min(end, len(lines))
    remaining = lines[: start - 1] + lines[end:]
    return _join(remaining, trailing)
