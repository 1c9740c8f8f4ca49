"""
Exceptions for workspace filesystem operations.

Every exception carries an :class:`ErrorCode` so the orchestrators can turn
it into the structured error envelope returned to callers.
"""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Stable error codes reported in result envelopes."""

    INVALID_PATH = "INVALID_PATH"
    NOT_FOUND = "NOT_FOUND"
    AMBIGUOUS = "AMBIGUOUS"
    NOT_TEXT = "NOT_TEXT"
    IO_ERROR = "IO_ERROR"
    INVALID_RANGE = "INVALID_RANGE"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    PATTERN_NOT_FOUND = "PATTERN_NOT_FOUND"
    MULTIPLE_MATCHES = "MULTIPLE_MATCHES"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    MISSING_ACTION = "MISSING_ACTION"
    MISSING_CONTENT = "MISSING_CONTENT"
    CHECKSUM_MISMATCH = "CHECKSUM_MISMATCH"
    INVALID_ACTION = "INVALID_ACTION"
    INVALID_OPERATION = "INVALID_OPERATION"
    INVALID_TYPE = "INVALID_TYPE"
    INVALID_PATTERN = "INVALID_PATTERN"
    NO_TARGET = "NO_TARGET"


class FileSystemError(Exception):
    """Base exception for workspace filesystem operations."""

    code: ErrorCode = ErrorCode.IO_ERROR

    def __init__(
        self,
        message: str,
        *,
        code: Optional[ErrorCode] = None,
        path: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.path = path
        self.hint = hint

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} (path={self.path})"
        return self.message


class InvalidPathError(FileSystemError):
    """Raised when a path is malformed or escapes the workspace."""

    code = ErrorCode.INVALID_PATH

    def __init__(self, path: str, reason: str = "Invalid path"):
        super().__init__(reason, path=path)
        self.reason = reason


class NotFoundError(FileSystemError):
    """Raised when a file or directory does not exist."""

    code = ErrorCode.NOT_FOUND


class AmbiguousPathError(FileSystemError):
    """Raised when a missing path matches several files by name."""

    code = ErrorCode.AMBIGUOUS

    def __init__(self, path: str, candidates: list[str]):
        super().__init__(
            f"Multiple files match: {', '.join(candidates)}",
            path=path,
            hint="Retry with one of the candidate paths.",
        )
        self.candidates = candidates


class NotTextError(FileSystemError):
    """Raised when a binary file is read, searched or modified."""

    code = ErrorCode.NOT_TEXT


class InvalidRangeError(FileSystemError):
    """Raised when a line range cannot be parsed."""

    code = ErrorCode.INVALID_RANGE


class OutOfRangeError(FileSystemError):
    """Raised when a line range starts beyond the end of the file."""

    code = ErrorCode.OUT_OF_RANGE


class InvalidPatternError(FileSystemError):
    """Raised when a pattern mode, preset or regex is invalid."""

    code = ErrorCode.INVALID_PATTERN


class PatternNotFoundError(FileSystemError):
    """Raised when an edit pattern does not occur in the file."""

    code = ErrorCode.PATTERN_NOT_FOUND


class MultipleMatchesError(FileSystemError):
    """Raised when an edit pattern matches more than once."""

    code = ErrorCode.MULTIPLE_MATCHES

    def __init__(self, count: int, lines: list[int], path: Optional[str] = None):
        super().__init__(
            f"Pattern matched {count} times at lines {', '.join(str(n) for n in lines)}",
            path=path,
            hint='Use replaceAll=true or specify lines="N" to target a specific match.',
        )
        self.count = count
        self.lines = lines


class ChecksumMismatchError(FileSystemError):
    """Raised when a write is based on a stale read."""

    code = ErrorCode.CHECKSUM_MISMATCH

    def __init__(self, expected: str, current: str, path: Optional[str] = None):
        super().__init__(
            f"File changed. Current checksum: {current}",
            path=path,
            hint="Re-read the file to get current content.",
        )
        self.expected = expected
        self.current = current
