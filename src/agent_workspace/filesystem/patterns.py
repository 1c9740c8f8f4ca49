"""
Pattern matching shared by search and replace.

Three user modes (literal, regex, fuzzy) compile to a regular expression;
named presets provide fixed expressions for common Markdown constructs.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from agent_workspace.filesystem.exceptions import InvalidPatternError

logger = logging.getLogger(__name__)

DEFAULT_MAX_MATCHES = 1000
REPLACE_MAX_MATCHES = 10_000


class PatternMode(str, Enum):
    """How a caller-supplied pattern is interpreted."""

    LITERAL = "literal"
    REGEX = "regex"
    FUZZY = "fuzzy"

    @classmethod
    def parse(cls, value: Union[str, "PatternMode", None]) -> "PatternMode":
        """Map a caller string to a mode (``None`` means literal)."""
        if value is None:
            return cls.LITERAL
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise InvalidPatternError(f"Unknown pattern mode: {value!r} (expected {valid})")


class Preset(str, Enum):
    """Named preset patterns."""

    WIKILINKS = "wikilinks"
    TAGS = "tags"
    TASKS = "tasks"
    TASKS_OPEN = "tasks_open"
    TASKS_DONE = "tasks_done"
    HEADINGS = "headings"
    CODEBLOCKS = "codeblocks"
    FRONTMATTER = "frontmatter"


PRESET_PATTERNS: dict[Preset, tuple[str, int]] = {
    Preset.WIKILINKS: (r"\[\[([^\]|]+)(\|[^\]]+)?\]\]", 0),
    Preset.TAGS: (r"(?:(?<=\s)|^)#[a-zA-Z][a-zA-Z0-9_/]*", re.MULTILINE),
    Preset.TASKS: (r"^[ \t]*-[ \t]*\[([ xX])\][ \t]+(.*)$", re.MULTILINE),
    Preset.TASKS_OPEN: (r"^[ \t]*-[ \t]*\[ \][ \t]+(.*)$", re.MULTILINE),
    Preset.TASKS_DONE: (r"^[ \t]*-[ \t]*\[[xX]\][ \t]+(.*)$", re.MULTILINE),
    Preset.HEADINGS: (r"^(#{1,6})[ \t]+(.+)$", re.MULTILINE),
    Preset.CODEBLOCKS: (r"```[\s\S]*?```", 0),
    Preset.FRONTMATTER: (r"\A---\n[\s\S]*?\n---", 0),
}


@dataclass
class MatchOptions:
    """Modifiers applied when compiling a user pattern."""

    case_insensitive: bool = False
    whole_word: bool = False
    multiline: bool = False
    max_matches: int = DEFAULT_MAX_MATCHES


@dataclass
class SearchMatch:
    """A match located in content (line and column are 1-based)."""

    index: int
    text: str
    line: int
    column: int

    @property
    def end(self) -> int:
        return self.index + len(self.text)

    @property
    def line_span(self) -> int:
        """Number of lines the matched text covers."""
        return self.text.count("\n") + 1


@dataclass
class UniqueMatch:
    """Outcome of looking for exactly one match."""

    match: Optional[SearchMatch] = None
    error: Optional[str] = None  # "not_found" | "multiple"
    count: int = 0
    lines: list[int] = field(default_factory=list)


@dataclass
class ReplaceResult:
    """Outcome of substituting every match."""

    new_content: str
    count: int
    affected_lines: list[int] = field(default_factory=list)


def is_preset(name: Optional[str]) -> bool:
    """Check whether a string names a preset."""
    return name is not None and name in {p.value for p in Preset}


def compile_preset(name: Union[str, Preset]) -> re.Pattern:
    """Compile a preset pattern by name."""
    try:
        preset = Preset(name)
    except ValueError:
        valid = ", ".join(p.value for p in Preset)
        raise InvalidPatternError(f"Unknown preset: {name!r} (expected one of {valid})")
    source, flags = PRESET_PATTERNS[preset]
    return re.compile(source, flags)


def normalize_whitespace(text: str) -> str:
    """Collapse horizontal whitespace and trim around line breaks."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[ \t]+", " ", text)
    text = text.replace("\n ", "\n").replace(" \n", "\n")
    return text.strip()


def _fuzzy_source(pattern: str) -> str:
    lines = normalize_whitespace(pattern).split("\n")
    return r"\s*\n\s*".join(
        r"\s+".join(re.escape(token) for token in line.split(" ")) for line in lines
    )


def compile_pattern(
    pattern: str,
    mode: Union[str, PatternMode, None] = PatternMode.LITERAL,
    options: Optional[MatchOptions] = None,
) -> re.Pattern:
    """
    Compile a user pattern into a regular expression.

    Args:
        pattern: Pattern text
        mode: literal (escaped verbatim), regex (used as-is) or fuzzy
            (whitespace-insensitive literal)
        options: Case, whole-word and dot-matches-newline modifiers

    Returns:
        Compiled regular expression

    Raises:
        InvalidPatternError: For an unknown mode, an empty pattern or
            invalid regex syntax
    """
    options = options or MatchOptions()
    mode = PatternMode.parse(mode)

    if pattern is None or pattern == "":
        raise InvalidPatternError("Pattern must not be empty")

    if mode is PatternMode.LITERAL:
        source = re.escape(pattern)
    elif mode is PatternMode.REGEX:
        source = pattern
    elif mode is PatternMode.FUZZY:
        source = _fuzzy_source(pattern)
    else:
        raise InvalidPatternError(f"Unsupported pattern mode: {mode}")

    if options.whole_word:
        source = rf"\b(?:{source})\b"

    flags = 0
    if options.multiline:
        flags |= re.DOTALL
    if options.case_insensitive:
        flags |= re.IGNORECASE

    try:
        return re.compile(source, flags)
    except re.error as e:
        raise InvalidPatternError(f"Invalid regex pattern: {e}")


def line_and_column(content: str, index: int) -> tuple[int, int]:
    """1-based line and column of an offset."""
    line = content.count("\n", 0, index) + 1
    column = index - (content.rfind("\n", 0, index) + 1) + 1
    return line, column


def find_matches(
    content: str, regex: re.Pattern, max_matches: int = DEFAULT_MAX_MATCHES
) -> list[SearchMatch]:
    """
    Scan content for every match, up to ``max_matches``.

    A match that does not advance the cursor (zero width) moves it forward by
    one character so the scan always terminates.
    """
    matches: list[SearchMatch] = []
    position = 0
    length = len(content)

    while position <= length and len(matches) < max_matches:
        found = regex.search(content, position)
        if found is None:
            break

        line, column = line_and_column(content, found.start())
        matches.append(
            SearchMatch(index=found.start(), text=found.group(0), line=line, column=column)
        )

        position = found.end()
        if found.end() == found.start():
            position += 1

    return matches


def search(
    content: str,
    pattern: str,
    mode: Union[str, PatternMode, None] = PatternMode.LITERAL,
    options: Optional[MatchOptions] = None,
) -> list[SearchMatch]:
    """Compile a user pattern and return its matches in content."""
    options = options or MatchOptions()
    return find_matches(content, compile_pattern(pattern, mode, options), options.max_matches)


def search_preset(
    content: str, preset: Union[str, Preset], max_matches: int = DEFAULT_MAX_MATCHES
) -> list[SearchMatch]:
    """Return the matches of a preset pattern in content."""
    return find_matches(content, compile_preset(preset), max_matches)


def find_unique_match(
    content: str, regex: re.Pattern, max_matches: int = DEFAULT_MAX_MATCHES
) -> UniqueMatch:
    """
    Look for exactly one match.

    Returns a UniqueMatch whose ``error`` is ``"not_found"`` for zero matches
    or ``"multiple"`` (with count and line numbers) for more than one.
    """
    matches = find_matches(content, regex, max_matches)

    if not matches:
        return UniqueMatch(error="not_found")

    if len(matches) > 1:
        return UniqueMatch(
            error="multiple",
            count=len(matches),
            lines=[m.line for m in matches],
        )

    return UniqueMatch(match=matches[0], count=1, lines=[matches[0].line])


def replace_all_matches(
    content: str,
    regex: re.Pattern,
    replacement: str,
    max_matches: int = REPLACE_MAX_MATCHES,
) -> ReplaceResult:
    """
    Substitute every match with literal replacement text.

    Matches are rewritten from the last to the first so earlier offsets stay
    valid. ``affected_lines`` holds the starting line of each match.
    """
    matches = find_matches(content, regex, max_matches)
    if not matches:
        return ReplaceResult(new_content=content, count=0)

    new_content = content
    affected = set()
    for match in reversed(matches):
        new_content = new_content[: match.index] + replacement + new_content[match.end :]
        affected.add(match.line)

    logger.debug(f"Replaced {len(matches)} matches on {len(affected)} lines")
    return ReplaceResult(
        new_content=new_content,
        count=len(matches),
        affected_lines=sorted(affected),
    )
