"""
Read orchestrator: read files, list directories, find files and search content.
"""

import logging
import stat
from typing import Any, Optional, Union

from pydantic import ValidationError

from agent_workspace.filesystem.checksum import compute_checksum
from agent_workspace.filesystem.config import WorkspaceConfig
from agent_workspace.filesystem.exceptions import (
    AmbiguousPathError,
    ErrorCode,
    FileSystemError,
    InvalidRangeError,
    NotFoundError,
    NotTextError,
    OutOfRangeError,
)
from agent_workspace.filesystem.filetypes import is_text_file, matches_type, read_text_file
from agent_workspace.filesystem.lines import (
    add_line_numbers,
    count_lines,
    extract_lines,
    parse_line_range,
)
from agent_workspace.filesystem.models import (
    DirectoryEntry,
    DirectoryTree,
    EntryKind,
    FileContent,
    LineSpan,
    ReadRequest,
    ReadResult,
    ResultType,
    raw_path,
    validation_failure,
)
from agent_workspace.filesystem.paths import PathResolver, ResolvedPath
from agent_workspace.filesystem.patterns import MatchOptions, compile_pattern, compile_preset
from agent_workspace.filesystem.search import FuzzySearchIndex
from agent_workspace.filesystem.walker import DirectoryWalker

logger = logging.getLogger(__name__)


class WorkspaceReader:
    """
    Read-side entry point of the workspace.

    One ``read`` call covers four modes, chosen from the request:

    - ``find`` set: fuzzy file name search under a directory
    - ``pattern`` or ``preset`` set: content search in a file or directory
    - path is a directory: tree listing
    - path is a file: line-numbered content plus checksum

    A path that does not exist is looked up by file name anywhere in the
    workspace; a unique hit is read transparently. Failures never raise,
    they come back as ``ReadResult`` with ``success=False``.

    Usage:
        reader = WorkspaceReader(WorkspaceConfig(root=Path("/tmp/workspace")))

        result = reader.read({"path": "notes/todo.md", "lines": "1-20"})
        if result.success:
            print(result.content.text)
            checksum = result.content.checksum
    """

    def __init__(
        self,
        config: WorkspaceConfig,
        resolver: Optional[PathResolver] = None,
        walker: Optional[DirectoryWalker] = None,
        index: Optional[FuzzySearchIndex] = None,
    ):
        """
        Initialize the reader.

        Args:
            config: Workspace configuration
            resolver: Path resolver (created from config if omitted)
            walker: Directory walker (created from config if omitted)
            index: Fuzzy search index (created from config if omitted)
        """
        self.config = config
        self.resolver = resolver or PathResolver(config)
        self.walker = walker or DirectoryWalker(config, self.resolver)
        self.index = index or FuzzySearchIndex(config, self.resolver, self.walker)

    def read(self, request: Union[ReadRequest, dict[str, Any]]) -> ReadResult:
        """
        Execute a read request.

        Args:
            request: ReadRequest or a dict with the same (camelCase or
                snake_case) fields

        Returns:
            ReadResult describing content, listing, matches or the error
        """
        if not isinstance(request, ReadRequest):
            try:
                request = ReadRequest.model_validate(request)
            except ValidationError as e:
                error = validation_failure(e)
                logger.warning(f"Invalid read request: [{error.code.value}] {error.message}")
                return ReadResult.failure(raw_path(request, "."), error)

        try:
            return self._read(request, auto_resolve=True)
        except FileSystemError as e:
            logger.warning(f"Read of {request.path!r} failed: [{e.code.value}] {e.message}")
            return ReadResult.failure(e.path or request.path, e)
        except OSError as e:
            logger.error(f"I/O error reading {request.path!r}: {e}")
            return ReadResult.failure(
                request.path, FileSystemError(str(e), code=ErrorCode.IO_ERROR)
            )

    def read_text(self, path: str) -> str:
        """
        Return the raw content of a text file (no line numbers).

        Raises:
            FileSystemError: If the path is invalid, missing or not text
        """
        resolved = self.resolver.resolve(path)
        if resolved.absolute_path.is_dir():
            raise FileSystemError(
                f"Not a file: {resolved.virtual_path}",
                code=ErrorCode.INVALID_TYPE,
                path=resolved.virtual_path,
            )
        if not resolved.absolute_path.is_file():
            raise NotFoundError(f"File does not exist: {resolved.virtual_path}", path=resolved.virtual_path)
        return self._load_text(resolved)

    def _read(self, request: ReadRequest, auto_resolve: bool) -> ReadResult:
        resolved = self.resolver.resolve(request.path)

        try:
            st = resolved.absolute_path.stat()
        except (FileNotFoundError, NotADirectoryError):
            if not auto_resolve:
                raise NotFoundError(
                    f"Path does not exist: {resolved.virtual_path}", path=resolved.virtual_path
                )
            return self._auto_resolve(request, resolved)
        except OSError as e:
            raise FileSystemError(str(e), code=ErrorCode.IO_ERROR, path=resolved.virtual_path)

        is_dir = stat.S_ISDIR(st.st_mode)
        is_file = stat.S_ISREG(st.st_mode)

        if request.find:
            if not is_dir:
                raise FileSystemError(
                    "find requires a directory path",
                    code=ErrorCode.INVALID_TYPE,
                    path=resolved.virtual_path,
                    hint='Use the parent directory as path, e.g. {"path": ".", "find": "name"}.',
                )
            return self._find(resolved, request)

        if request.pattern or request.preset:
            if not (is_dir or is_file):
                raise FileSystemError(
                    "Not a file or directory", code=ErrorCode.INVALID_TYPE, path=resolved.virtual_path
                )
            return self._search(resolved, request, is_dir)

        if is_dir:
            return self._list(resolved, request)

        if is_file:
            return self._read_file(resolved, request)

        raise FileSystemError(
            "Not a file or directory", code=ErrorCode.INVALID_TYPE, path=resolved.virtual_path
        )

    def _auto_resolve(self, request: ReadRequest, resolved: ResolvedPath) -> ReadResult:
        resolution = self.index.auto_resolve(resolved.virtual_path)

        if resolution.resolved:
            redirected = request.model_copy(update={"path": resolution.resolved_path})
            result = self._read(redirected, auto_resolve=False)
            result.hint = f'Auto-resolved to "{resolution.resolved_path}". {result.hint or ""}'.rstrip()
            return result

        if resolution.ambiguous:
            raise AmbiguousPathError(resolved.virtual_path, resolution.candidates)

        raise NotFoundError(
            f"Path does not exist: {resolved.virtual_path}",
            path=resolved.virtual_path,
            hint="Use fs_read on the parent directory to see available files.",
        )

    def _load_text(self, resolved: ResolvedPath) -> str:
        if not is_text_file(resolved.absolute_path):
            raise NotTextError(
                "Cannot read binary files",
                path=resolved.virtual_path,
                hint="Only text files can be read.",
            )
        try:
            return read_text_file(resolved.absolute_path)
        except UnicodeDecodeError:
            raise NotTextError("File is not valid UTF-8 text", path=resolved.virtual_path)

    def _read_file(self, resolved: ResolvedPath, request: ReadRequest) -> ReadResult:
        content = self._load_text(resolved)
        checksum = compute_checksum(content)
        total_lines = count_lines(content)
        preview = self.config.preview_lines

        span = None
        truncated = False

        if request.lines:
            line_range = parse_line_range(request.lines)
            if line_range is None:
                raise InvalidRangeError(
                    f"Invalid line range: {request.lines}",
                    path=resolved.virtual_path,
                    hint='Use "N" or "N-M" with 1 <= N <= M.',
                )
            if total_lines and line_range.start > total_lines:
                raise OutOfRangeError(
                    f"Line {line_range.start} beyond file end ({total_lines} lines)",
                    path=resolved.virtual_path,
                )
            extracted = extract_lines(content, line_range.start, line_range.end)
        elif total_lines > preview:
            extracted = extract_lines(content, 1, preview)
            truncated = True
        else:
            extracted = extract_lines(content, 1, total_lines)

        if extracted.end >= extracted.start:
            text = add_line_numbers(extracted.text, extracted.start)
            if request.lines or truncated:
                span = LineSpan(start=extracted.start, end=extracted.end)
        else:
            text = ""

        if truncated:
            hint = (
                f"Large file ({total_lines} lines), showing 1-{preview}. "
                f'Use lines="{preview + 1}-{preview * 2}" for more. Checksum: {checksum}'
            )
        else:
            hint = f"Checksum: {checksum} (required for fs_write)"

        logger.debug(f"Read {resolved.virtual_path} ({total_lines} lines, checksum {checksum})")
        return ReadResult(
            success=True,
            path=resolved.virtual_path,
            type=ResultType.FILE,
            content=FileContent(
                text=text,
                checksum=checksum,
                total_lines=total_lines,
                range=span,
                truncated=truncated,
            ),
            hint=hint,
        )

    def _list(self, resolved: ResolvedPath, request: ReadRequest) -> ReadResult:
        listing = self.walker.list_tree(
            resolved,
            request.depth,
            exclude=request.exclude,
            types=request.types,
        )

        files = sum(1 for e in listing.entries if e.kind == EntryKind.FILE)
        directories = len(listing.entries) - files
        summary = f"{len(listing.entries)} items ({files} files, {directories} directories)"

        hint = None
        if listing.truncated:
            hint = (
                f"Listing stopped at {len(listing.entries)} entries. "
                "Use a narrower path, a lower depth or exclude patterns."
            )

        return ReadResult(
            success=True,
            path=resolved.virtual_path,
            type=ResultType.DIRECTORY,
            tree=DirectoryTree(entries=listing.entries, summary=summary),
            truncated=listing.truncated,
            skipped=len(listing.skipped) or None,
            hint=hint,
        )

    def _find(self, resolved: ResolvedPath, request: ReadRequest) -> ReadResult:
        depth = self.config.search_depth if request.depth is None else request.depth
        candidates = self.index.search(
            resolved,
            request.find,
            max_results=self.config.find_max_results,
            include_directories=True,
            max_depth=depth,
            exclude=request.exclude,
        )
        if request.types:
            candidates = [
                c for c in candidates if c.is_directory or matches_type(c.file_name, request.types)
            ]

        entries = [
            DirectoryEntry(
                path=c.virtual_path,
                kind=EntryKind.DIRECTORY if c.is_directory else EntryKind.FILE,
                score=c.score,
            )
            for c in candidates
        ]

        return ReadResult(
            success=True,
            path=resolved.virtual_path,
            type=ResultType.DIRECTORY,
            tree=DirectoryTree(
                entries=entries,
                summary=f'Found {len(entries)} items matching "{request.find}"',
            ),
        )

    def _search(self, resolved: ResolvedPath, request: ReadRequest, is_dir: bool) -> ReadResult:
        if request.pattern:
            label = request.pattern
            regex = compile_pattern(
                request.pattern,
                request.pattern_mode,
                MatchOptions(
                    case_insensitive=request.case_insensitive,
                    whole_word=request.whole_word,
                    multiline=request.multiline,
                ),
            )
        else:
            label = request.preset
            regex = compile_preset(request.preset)

        if is_dir:
            found = self.walker.search_content(
                resolved,
                regex,
                context=request.context,
                depth=request.depth,
                exclude=request.exclude,
                types=request.types,
            )
        else:
            try:
                found = self.walker.search_file(resolved, regex, context=request.context)
            except NotTextError as e:
                return ReadResult.failure(resolved.virtual_path, e, ResultType.SEARCH)

        count = len(found.matches)
        if count == 0:
            hint = f'No matches found for "{label}"'
        elif found.truncated:
            hint = f"Found {count} matches (more exist, narrow the search)"
        else:
            hint = f"Found {count} matches"

        return ReadResult(
            success=True,
            path=resolved.virtual_path,
            type=ResultType.SEARCH,
            matches=found.matches,
            match_count=count,
            truncated=found.truncated,
            skipped=len(found.skipped) or None,
            hint=hint,
        )
