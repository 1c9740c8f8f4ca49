"""
Request and result models for workspace read/write operations.

Fields use snake_case in Python and camelCase on the wire; requests accept
either form. Results are converted to plain dicts/JSON only at the edge
(``to_dict`` / ``to_json``), dropping unset optional fields.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from agent_workspace.filesystem.exceptions import ErrorCode, FileSystemError

# Request field -> error code reported when that field fails validation
FIELD_ERROR_CODES = {
    "path": ErrorCode.INVALID_PATH,
    "operation": ErrorCode.INVALID_OPERATION,
    "action": ErrorCode.INVALID_ACTION,
    "lines": ErrorCode.INVALID_RANGE,
    "depth": ErrorCode.INVALID_RANGE,
    "context": ErrorCode.INVALID_RANGE,
    "pattern": ErrorCode.INVALID_PATTERN,
    "preset": ErrorCode.INVALID_PATTERN,
    "patternMode": ErrorCode.INVALID_PATTERN,
    "pattern_mode": ErrorCode.INVALID_PATTERN,
}


class WireModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys, omitting unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self, indent: Optional[int] = None) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)


class Operation(str, Enum):
    """Write operations."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class EditAction(str, Enum):
    """Update actions applied to the resolved target."""

    REPLACE = "replace"
    INSERT_BEFORE = "insert_before"
    INSERT_AFTER = "insert_after"
    DELETE_LINES = "delete_lines"


class ResultType(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"
    SEARCH = "search"


class EntryKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


# =============================================================================
# Requests
# =============================================================================


class ReadRequest(WireModel):
    """Read a file, list a directory, find files by name or search content."""

    model_config = {**WireModel.model_config, "extra": "ignore"}

    path: str = Field(default=".", description="Virtual path relative to the workspace root")
    pattern: Optional[str] = Field(default=None, description="Content search pattern")
    preset: Optional[str] = Field(default=None, description="Named preset pattern")
    pattern_mode: Optional[str] = Field(default=None, description="literal | regex | fuzzy")
    find: Optional[str] = Field(default=None, description="Fuzzy file name query")
    lines: Optional[str] = Field(default=None, description='Line range: "10" or "10-50"')
    depth: Optional[int] = Field(default=None, ge=0, description="Traversal depth")
    context: Optional[int] = Field(default=None, ge=0, description="Context lines per match")
    case_insensitive: bool = False
    whole_word: bool = False
    multiline: bool = False
    exclude: list[str] = Field(default_factory=list, description="Exclusion globs")
    types: list[str] = Field(default_factory=list, description="Type aliases or extensions")

    @field_validator("lines", mode="before")
    @classmethod
    def lines_as_string(cls, v):
        """Accept integer line numbers."""
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @field_validator("path", mode="before")
    @classmethod
    def path_default(cls, v):
        return "." if v is None else v


class WriteRequest(WireModel):
    """Create, update or delete a file."""

    model_config = {**WireModel.model_config, "extra": "ignore"}

    path: str = Field(description="Virtual path relative to the workspace root")
    operation: Optional[str] = Field(default=None, description="create | update | delete")
    action: Optional[str] = Field(
        default=None, description="replace | insert_before | insert_after | delete_lines"
    )
    content: Optional[str] = Field(default=None, description="Content to write")
    lines: Optional[str] = Field(default=None, description='Target lines: "10" or "10-15"')
    pattern: Optional[str] = Field(default=None, description="Target content by pattern")
    pattern_mode: Optional[str] = Field(default=None, description="literal | regex | fuzzy")
    replace_all: bool = False
    case_insensitive: bool = False
    checksum: Optional[str] = Field(default=None, description="Checksum from a previous read")
    dry_run: bool = False

    @field_validator("lines", mode="before")
    @classmethod
    def lines_as_string(cls, v):
        """Accept integer line numbers."""
        if v is None or isinstance(v, str):
            return v
        return str(v)


# =============================================================================
# Results
# =============================================================================


class ErrorInfo(WireModel):
    code: ErrorCode
    message: str


class LineSpan(WireModel):
    start: int
    end: int


class FileContent(WireModel):
    """Line-numbered file content plus its checksum."""

    text: str
    checksum: str
    total_lines: int
    range: Optional[LineSpan] = None
    truncated: bool = False


class DirectoryEntry(WireModel):
    path: str
    kind: EntryKind
    size: Optional[str] = None
    children: Optional[int] = None
    score: Optional[int] = None


class DirectoryTree(WireModel):
    entries: list[DirectoryEntry] = Field(default_factory=list)
    summary: str = ""


class MatchContext(WireModel):
    """Context lines around a match, each rendered as ``"<line>|<text>"``."""

    before: list[str] = Field(default_factory=list)
    match: list[str] = Field(default_factory=list)
    after: list[str] = Field(default_factory=list)


class ContentMatch(WireModel):
    file: str
    line: int
    column: int
    text: str
    context: MatchContext


class ReadResult(WireModel):
    """Uniform result of a read/search call."""

    success: bool
    path: str
    type: Optional[ResultType] = None
    content: Optional[FileContent] = None
    tree: Optional[DirectoryTree] = None
    matches: Optional[list[ContentMatch]] = None
    match_count: Optional[int] = None
    truncated: Optional[bool] = None
    skipped: Optional[int] = None
    candidates: Optional[list[str]] = None
    error: Optional[ErrorInfo] = None
    hint: Optional[str] = None

    @classmethod
    def failure(
        cls,
        path: str,
        error: FileSystemError,
        result_type: Optional[ResultType] = None,
    ) -> "ReadResult":
        return cls(
            success=False,
            path=path,
            type=result_type,
            error=ErrorInfo(code=error.code, message=error.message),
            candidates=getattr(error, "candidates", None),
            hint=error.hint,
        )


class WriteOutcome(WireModel):
    """What a write did (or would do under dry run)."""

    action: str
    lines_affected: Optional[int] = None
    replacements: Optional[int] = None
    new_checksum: Optional[str] = None
    diff: Optional[str] = None


class WriteResult(WireModel):
    """Uniform result of a write call."""

    success: bool
    path: str
    operation: Optional[str] = None
    applied: bool = False
    result: Optional[WriteOutcome] = None
    error: Optional[ErrorInfo] = None
    hint: Optional[str] = None

    @classmethod
    def failure(
        cls, path: str, operation: Optional[str], error: FileSystemError
    ) -> "WriteResult":
        return cls(
            success=False,
            path=path,
            operation=operation,
            applied=False,
            error=ErrorInfo(code=error.code, message=error.message),
            hint=error.hint,
        )


def validation_failure(error: ValidationError) -> FileSystemError:
    """Turn the first request validation error into a FileSystemError."""
    first = error.errors()[0]
    field = str(first["loc"][0]) if first.get("loc") else ""
    code = FIELD_ERROR_CODES.get(field, ErrorCode.INVALID_OPERATION)
    message = f"Invalid {field}: {first['msg']}" if field else first["msg"]
    return FileSystemError(message, code=code)


def raw_path(request: Any, default: str) -> str:
    """Best-effort path of a request that failed validation."""
    if isinstance(request, dict) and isinstance(request.get("path"), str):
        return request["path"]
    return default
