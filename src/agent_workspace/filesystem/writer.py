"""
Write orchestrator: create, update and delete files behind a checksum guard.
"""

import logging
import os
import stat
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import ValidationError

from agent_workspace.filesystem.checksum import compute_checksum, verify_checksum
from agent_workspace.filesystem.config import WorkspaceConfig
from agent_workspace.filesystem.diff import generate_diff
from agent_workspace.filesystem.exceptions import (
    ChecksumMismatchError,
    ErrorCode,
    FileSystemError,
    InvalidRangeError,
    MultipleMatchesError,
    NotFoundError,
    NotTextError,
    OutOfRangeError,
    PatternNotFoundError,
)
from agent_workspace.filesystem.filetypes import is_text_file, read_text_file, write_text_file
from agent_workspace.filesystem.lines import (
    count_lines,
    delete_lines,
    detect_newline,
    insert_after_line,
    insert_before_line,
    parse_line_range,
    replace_lines,
)
from agent_workspace.filesystem.models import (
    EditAction,
    Operation,
    WriteOutcome,
    WriteRequest,
    WriteResult,
    raw_path,
    validation_failure,
)
from agent_workspace.filesystem.paths import PathResolver, ResolvedPath
from agent_workspace.filesystem.patterns import (
    MatchOptions,
    SearchMatch,
    compile_pattern,
    find_unique_match,
    replace_all_matches,
)

logger = logging.getLogger(__name__)

DRY_RUN_HINT = "DRY RUN: run with dryRun=false to apply."

ACTION_RESULTS = {
    EditAction.REPLACE: "replaced",
    EditAction.INSERT_BEFORE: "inserted_before",
    EditAction.INSERT_AFTER: "inserted_after",
    EditAction.DELETE_LINES: "deleted_lines",
}

NEEDS_CONTENT = {EditAction.REPLACE, EditAction.INSERT_BEFORE, EditAction.INSERT_AFTER}


@dataclass
class EditTarget:
    """Lines an update applies to, and the single pattern match if any."""

    start: int
    end: int
    match: Optional[SearchMatch] = None


def _line_content(content: str) -> str:
    """Content spliced in as whole lines; one trailing newline is implied."""
    return content[:-1] if content.endswith("\n") else content


class WorkspaceWriter:
    """
    Write-side entry point of the workspace.

    Operations:
        create: New file (fails if the path exists)
        update: Edit an existing text file by line range or pattern
        delete: Remove a file

    Every update may carry the checksum from a previous read; if the file
    changed since, the write is rejected with CHECKSUM_MISMATCH. With
    ``dryRun`` the diff is computed and returned but nothing is written.

    Usage:
        writer = WorkspaceWriter(WorkspaceConfig(root=Path("/tmp/workspace")))

        result = writer.write({
            "path": "notes/todo.md",
            "operation": "update",
            "action": "replace",
            "lines": "2",
            "content": "- [x] done",
            "checksum": checksum,
        })
    """

    def __init__(self, config: WorkspaceConfig, resolver: Optional[PathResolver] = None):
        self.config = config
        self.resolver = resolver or PathResolver(config)

    def write(self, request: Union[WriteRequest, dict[str, Any]]) -> WriteResult:
        """
        Execute a write request.

        Args:
            request: WriteRequest or a dict with the same (camelCase or
                snake_case) fields

        Returns:
            WriteResult with the applied (or previewed) outcome or the error
        """
        if not isinstance(request, WriteRequest):
            try:
                request = WriteRequest.model_validate(request)
            except ValidationError as e:
                error = validation_failure(e)
                logger.warning(f"Invalid write request: [{error.code.value}] {error.message}")
                operation = request.get("operation") if isinstance(request, dict) else None
                return WriteResult.failure(
                    raw_path(request, ""),
                    operation if isinstance(operation, str) else None,
                    error,
                )

        try:
            operation = self._parse_operation(request.operation)
            resolved = self.resolver.resolve(request.path)

            if operation is Operation.CREATE:
                return self._create(resolved, request)
            if operation is Operation.DELETE:
                return self._delete(resolved, request)
            return self._update(resolved, request)

        except FileSystemError as e:
            logger.warning(
                f"{request.operation or 'write'} of {request.path!r} rejected: "
                f"[{e.code.value}] {e.message}"
            )
            return WriteResult.failure(e.path or request.path, request.operation, e)
        except OSError as e:
            logger.error(f"I/O error writing {request.path!r}: {e}")
            return WriteResult.failure(
                request.path,
                request.operation,
                FileSystemError(str(e), code=ErrorCode.IO_ERROR),
            )

    @staticmethod
    def _parse_operation(value: Optional[str]) -> Operation:
        try:
            return Operation(value)
        except ValueError:
            valid = ", ".join(o.value for o in Operation)
            raise FileSystemError(
                f"Unknown operation: {value!r} (expected one of {valid})",
                code=ErrorCode.INVALID_OPERATION,
            )

    @staticmethod
    def _parse_action(value: Optional[str], path: str) -> EditAction:
        if not value:
            raise FileSystemError(
                "action is required for update",
                code=ErrorCode.MISSING_ACTION,
                path=path,
                hint="Use action=replace, insert_before, insert_after or delete_lines.",
            )
        try:
            return EditAction(value)
        except ValueError:
            raise FileSystemError(
                f"Unknown action: {value}", code=ErrorCode.INVALID_ACTION, path=path
            )

    # =========================================================================
    # Operations
    # =========================================================================

    def _create(self, resolved: ResolvedPath, request: WriteRequest) -> WriteResult:
        path = resolved.virtual_path
        content = request.content
        if content is None:
            raise FileSystemError(
                "content is required for create", code=ErrorCode.MISSING_CONTENT, path=path
            )

        if os.path.lexists(resolved.absolute_path):
            raise FileSystemError(
                f"File already exists: {path}",
                code=ErrorCode.ALREADY_EXISTS,
                path=path,
                hint='Use operation="update" to modify existing files.',
            )

        lines = count_lines(content)
        if request.dry_run:
            return WriteResult(
                success=True,
                path=path,
                operation=Operation.CREATE.value,
                applied=False,
                result=WriteOutcome(
                    action="would_create",
                    lines_affected=lines,
                    diff=generate_diff("", content, path),
                ),
                hint=DRY_RUN_HINT,
            )

        resolved.absolute_path.parent.mkdir(parents=True, exist_ok=True)
        write_text_file(resolved.absolute_path, content)
        checksum = compute_checksum(content)
        logger.info(f"Created {path} ({lines} lines, checksum {checksum})")

        return WriteResult(
            success=True,
            path=path,
            operation=Operation.CREATE.value,
            applied=True,
            result=WriteOutcome(action="created", lines_affected=lines, new_checksum=checksum),
            hint=f"File created. New checksum: {checksum}",
        )

    def _delete(self, resolved: ResolvedPath, request: WriteRequest) -> WriteResult:
        path = resolved.virtual_path
        # A symlink is removed itself, not the file it points to
        entry = self.resolver.entry_path(resolved)
        try:
            st = entry.lstat()
        except (FileNotFoundError, NotADirectoryError):
            raise NotFoundError(f"File does not exist: {path}", path=path)

        if stat.S_ISDIR(st.st_mode):
            raise FileSystemError(
                f"Cannot delete a directory: {path}", code=ErrorCode.INVALID_TYPE, path=path
            )

        if request.dry_run:
            return WriteResult(
                success=True,
                path=path,
                operation=Operation.DELETE.value,
                applied=False,
                result=WriteOutcome(action="would_delete"),
                hint="DRY RUN: run with dryRun=false to delete.",
            )

        entry.unlink()
        logger.info(f"Deleted {path}")

        return WriteResult(
            success=True,
            path=path,
            operation=Operation.DELETE.value,
            applied=True,
            result=WriteOutcome(action="deleted"),
            hint="File deleted.",
        )

    def _update(self, resolved: ResolvedPath, request: WriteRequest) -> WriteResult:
        path = resolved.virtual_path

        try:
            st = resolved.absolute_path.stat()
        except (FileNotFoundError, NotADirectoryError):
            raise NotFoundError(
                f"File does not exist: {path}",
                path=path,
                hint='Use operation="create" to create new files.',
            )
        if not stat.S_ISREG(st.st_mode):
            raise FileSystemError(
                f"Not a regular file: {path}", code=ErrorCode.INVALID_TYPE, path=path
            )
        if not is_text_file(resolved.absolute_path):
            raise NotTextError("Cannot modify binary files", path=path)

        action = self._parse_action(request.action, path)
        if action in NEEDS_CONTENT and request.content is None:
            raise FileSystemError(
                f"content is required for action={action.value}",
                code=ErrorCode.MISSING_CONTENT,
                path=path,
            )

        try:
            current = read_text_file(resolved.absolute_path)
        except UnicodeDecodeError:
            raise NotTextError("File is not valid UTF-8 text", path=path)

        current_checksum = compute_checksum(current)
        if request.checksum and not verify_checksum(current, request.checksum):
            raise ChecksumMismatchError(request.checksum, current_checksum, path=path)

        if request.pattern and request.replace_all and action is EditAction.REPLACE:
            return self._replace_all(resolved, request, current)

        target = self._resolve_target(request, current, path)
        new_content, lines_affected = self._apply(action, target, current, request.content or "")
        return self._finish(
            resolved,
            request,
            current,
            new_content,
            ACTION_RESULTS[action],
            lines_affected,
        )

    # =========================================================================
    # Targets and edits
    # =========================================================================

    def _resolve_target(self, request: WriteRequest, content: str, path: str) -> EditTarget:
        if request.lines:
            line_range = parse_line_range(request.lines)
            if line_range is None:
                raise InvalidRangeError(
                    f"Invalid line range: {request.lines}",
                    path=path,
                    hint='Use "N" or "N-M" with 1 <= N <= M.',
                )
            # An empty file still accepts edits at line 1
            last_line = max(count_lines(content), 1)
            if line_range.start > last_line:
                raise OutOfRangeError(
                    f"Line {line_range.start} beyond file end ({last_line} lines)", path=path
                )
            return EditTarget(start=line_range.start, end=min(line_range.end, last_line))

        if request.pattern:
            regex = compile_pattern(
                request.pattern,
                request.pattern_mode,
                MatchOptions(case_insensitive=request.case_insensitive),
            )
            unique = find_unique_match(content, regex)
            if unique.error == "not_found":
                raise PatternNotFoundError(f'Pattern not found: "{request.pattern}"', path=path)
            if unique.error == "multiple":
                raise MultipleMatchesError(unique.count, unique.lines, path=path)

            match = unique.match
            return EditTarget(start=match.line, end=match.line + match.line_span - 1, match=match)

        raise FileSystemError(
            "Either lines or pattern must be specified",
            code=ErrorCode.NO_TARGET,
            path=path,
            hint='Read the file first, then target lines="N" or a pattern.',
        )

    @staticmethod
    def _apply(
        action: EditAction, target: EditTarget, current: str, content: str
    ) -> tuple[str, int]:
        """Return the new content and the number of affected lines."""
        if action is EditAction.REPLACE and target.match is not None:
            match = target.match
            new_content = current[: match.index] + content + current[match.end :]
            return new_content, max(match.line_span, content.count("\n") + 1)

        # Line edits run on LF text; a CRLF file gets its line endings back
        newline = detect_newline(current)
        if newline != "\n":
            current = current.replace(newline, "\n")
            content = content.replace(newline, "\n")

        if action is EditAction.REPLACE:
            new_content = replace_lines(current, target.start, target.end, _line_content(content))
            affected = target.end - target.start + 1
        elif action is EditAction.INSERT_BEFORE:
            inserted = _line_content(content)
            new_content = insert_before_line(current, target.start, inserted)
            affected = inserted.count("\n") + 1
        elif action is EditAction.INSERT_AFTER:
            inserted = _line_content(content)
            new_content = insert_after_line(current, target.end, inserted)
            affected = inserted.count("\n") + 1
        else:
            new_content = delete_lines(current, target.start, target.end)
            affected = target.end - target.start + 1

        if newline != "\n":
            new_content = new_content.replace("\n", newline)
        return new_content, affected

    def _replace_all(self, resolved: ResolvedPath, request: WriteRequest, current: str) -> WriteResult:
        path = resolved.virtual_path
        regex = compile_pattern(
            request.pattern,
            request.pattern_mode,
            MatchOptions(case_insensitive=request.case_insensitive),
        )
        replaced = replace_all_matches(current, regex, request.content)
        if replaced.count == 0:
            raise PatternNotFoundError(f'Pattern not found: "{request.pattern}"', path=path)

        diff = generate_diff(current, replaced.new_content, path)
        lines_affected = len(replaced.affected_lines)

        if request.dry_run:
            return WriteResult(
                success=True,
                path=path,
                operation=Operation.UPDATE.value,
                applied=False,
                result=WriteOutcome(
                    action="would_replace_all",
                    lines_affected=lines_affected,
                    replacements=replaced.count,
                    diff=diff,
                ),
                hint=f"DRY RUN: would replace {replaced.count} occurrences.",
            )

        write_text_file(resolved.absolute_path, replaced.new_content)
        checksum = compute_checksum(replaced.new_content)
        logger.info(f"Replaced {replaced.count} occurrences in {path} (checksum {checksum})")

        return WriteResult(
            success=True,
            path=path,
            operation=Operation.UPDATE.value,
            applied=True,
            result=WriteOutcome(
                action="replaced_all",
                lines_affected=lines_affected,
                replacements=replaced.count,
                new_checksum=checksum,
                diff=diff,
            ),
            hint=f"Replaced {replaced.count} occurrences. New checksum: {checksum}",
        )

    def _finish(
        self,
        resolved: ResolvedPath,
        request: WriteRequest,
        current: str,
        new_content: str,
        action: str,
        lines_affected: int,
    ) -> WriteResult:
        path = resolved.virtual_path
        diff = generate_diff(current, new_content, path)

        if request.dry_run:
            return WriteResult(
                success=True,
                path=path,
                operation=Operation.UPDATE.value,
                applied=False,
                result=WriteOutcome(action=f"would_{action}", lines_affected=lines_affected, diff=diff),
                hint=DRY_RUN_HINT,
            )

        write_text_file(resolved.absolute_path, new_content)
        checksum = compute_checksum(new_content)
        logger.info(f"Updated {path}: {action} {lines_affected} line(s), checksum {checksum}")

        return WriteResult(
            success=True,
            path=path,
            operation=Operation.UPDATE.value,
            applied=True,
            result=WriteOutcome(
                action=action,
                lines_affected=lines_affected,
                new_checksum=checksum,
                diff=diff,
            ),
            hint=f"{action} {lines_affected} line(s). New checksum: {checksum}",
        )
