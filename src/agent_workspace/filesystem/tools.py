"""
Workspace tools for LLM function calling.

Exposes the read and write orchestrators as two tools, ``fs_read`` and
``fs_write``, in OpenAI function calling format.
"""

import asyncio
import logging
from typing import Any, Optional

from agent_workspace.filesystem.config import WorkspaceConfig
from agent_workspace.filesystem.exceptions import FileSystemError
from agent_workspace.filesystem.models import EditAction, Operation
from agent_workspace.filesystem.paths import PathResolver
from agent_workspace.filesystem.patterns import PatternMode, Preset
from agent_workspace.filesystem.reader import WorkspaceReader
from agent_workspace.filesystem.writer import WorkspaceWriter

logger = logging.getLogger(__name__)

FS_READ_DESCRIPTION = """Read files, list directories, find files by name, or search content.

MODES:
1. DIRECTORY - path to directory: returns tree structure
2. FILE - path to file: returns content with line numbers and checksum
3. FIND - path + find: fuzzy search for files by name
4. SEARCH - path + pattern/preset: search content in files

Examples:
- { "path": "." } - list workspace root
- { "path": "src/index.js" } - read file
- { "path": ".", "find": "config" } - find files named config
- { "path": ".", "pattern": "TODO" } - search for TODO in all files"""

FS_WRITE_DESCRIPTION = """Create, modify, or delete files.

OPERATIONS:
- create: Make new file (fails if exists)
- update: Modify existing file (requires action)
- delete: Remove file permanently

ACTIONS (for update):
- replace: Replace target lines/pattern with new content
- insert_before: Add content before target
- insert_after: Add content after target
- delete_lines: Remove target lines

SAFETY: Use dryRun=true first to preview changes, and pass the checksum
from fs_read so stale edits are rejected."""


class WorkspaceTools:
    """
    Workspace interface for LLM function calling.

    Usage:
        config = WorkspaceConfig(root=Path("/tmp/workspace"))
        tools = WorkspaceTools(config)

        # Get tool schemas for LLM
        schemas = tools.get_tool_schemas()

        # Execute tool call
        result = await tools.execute_tool(
            tool_name="fs_read",
            arguments={"path": "notes/todo.md"}
        )
    """

    def __init__(self, config: WorkspaceConfig):
        """
        Initialize workspace tools.

        Args:
            config: Workspace configuration
        """
        self.config = config
        self.resolver = PathResolver(config)
        self.reader = WorkspaceReader(config, self.resolver)
        self.writer = WorkspaceWriter(config, self.resolver)

    def get_tool_schemas(self) -> list[dict[str, Any]]:
        """
        Get OpenAI function calling schemas for all available tools.

        Returns:
            List of tool schemas in OpenAI format
        """
        pattern_modes = [m.value for m in PatternMode]
        return [
            {
                "type": "function",
                "function": {
                    "name": "fs_read",
                    "description": FS_READ_DESCRIPTION,
                    "parameters": {
                        "type": "object",
                        "properties": {
                            "path": {
                                "type": "string",
                                "description": "Relative path to file or directory",
                            },
                            "pattern": {
                                "type": "string",
                                "description": "Search pattern to find within files",
                            },
                            "preset": {
                                "type": "string",
                                "enum": [p.value for p in Preset],
                                "description": "Preset pattern for common Markdown searches",
                            },
                            "patternMode": {
                                "type": "string",
                                "enum": pattern_modes,
                                "description": "How to interpret pattern. Default: literal",
                            },
                            "find": {
                                "type": "string",
                                "description": "Fuzzy find files by name",
                            },
                            "lines": {
                                "type": "string",
                                "description": 'Limit file reading to specific lines. Format: "10" or "10-50"',
                            },
                            "depth": {
                                "type": "integer",
                                "description": "Directory traversal depth. Default: 1 for listing, 5 for search",
                            },
                            "context": {
                                "type": "integer",
                                "description": "Lines of context around search matches. Default: 3",
                            },
                            "caseInsensitive": {
                                "type": "boolean",
                                "description": "Case-insensitive search (default: false)",
                            },
                            "wholeWord": {
                                "type": "boolean",
                                "description": "Match whole words only (default: false)",
                            },
                            "multiline": {
                                "type": "boolean",
                                "description": "Let . match newlines in regex mode (default: false)",
                            },
                            "exclude": {
                                "type": "array",
                                "items": {"type": "string"},
                                "description": "Glob patterns to exclude (e.g. 'build/**')",
                            },
                            "types": {
                                "type": "array",
                                "items": {"type": "string"},
                                "description": "File types or extensions to include (e.g. 'py', 'md')",
                            },
                        },
                        "required": ["path"],
                    },
                },
            },
            {
                "type": "function",
                "function": {
                    "name": "fs_write",
                    "description": FS_WRITE_DESCRIPTION,
                    "parameters": {
                        "type": "object",
                        "properties": {
                            "path": {
                                "type": "string",
                                "description": "Relative path to the file",
                            },
                            "operation": {
                                "type": "string",
                                "enum": [o.value for o in Operation],
                                "description": "Operation type",
                            },
                            "action": {
                                "type": "string",
                                "enum": [a.value for a in EditAction],
                                "description": "Action for update operation",
                            },
                            "content": {
                                "type": "string",
                                "description": "Content to write (required for create/replace/insert)",
                            },
                            "lines": {
                                "type": "string",
                                "description": 'Target lines for update. Format: "10" or "10-15"',
                            },
                            "pattern": {
                                "type": "string",
                                "description": "Target content by pattern",
                            },
                            "patternMode": {
                                "type": "string",
                                "enum": pattern_modes,
                                "description": "Pattern interpretation mode",
                            },
                            "replaceAll": {
                                "type": "boolean",
                                "description": "Replace all occurrences (only with action=replace)",
                            },
                            "caseInsensitive": {
                                "type": "boolean",
                                "description": "Case-insensitive pattern matching (default: false)",
                            },
                            "checksum": {
                                "type": "string",
                                "description": "Expected checksum from previous fs_read",
                            },
                            "dryRun": {
                                "type": "boolean",
                                "description": "Preview changes without applying",
                            },
                        },
                        "required": ["path", "operation"],
                    },
                },
            },
        ]

    async def execute_tool(
        self, tool_name: str, arguments: dict[str, Any]
    ) -> dict[str, Any]:
        """
        Execute a tool call from an LLM.

        Args:
            tool_name: Name of the tool to execute
            arguments: Tool arguments (from LLM function call)

        Returns:
            Tool execution result as a dict (camelCase keys)

        Raises:
            ValueError: If tool name is unknown
        """
        if tool_name == "fs_read":
            return await self._fs_read(arguments)
        elif tool_name == "fs_write":
            return await self._fs_write(arguments)
        else:
            raise ValueError(f"Unknown tool: {tool_name}")

    async def _fs_read(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """fs_read tool implementation."""
        result = await asyncio.to_thread(self.reader.read, arguments)
        return result.to_dict()

    async def _fs_write(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """fs_write tool implementation."""
        result = await asyncio.to_thread(self.writer.write, arguments)
        return result.to_dict()

    def read_raw(self, path: str) -> Optional[str]:
        """
        Return the raw text of a workspace file, or None if it cannot be read.

        Used to inline workspace files (e.g. ``@workspace:notes.md``
        references) into prompts without line numbers.
        """
        try:
            return self.reader.read_text(path)
        except (FileSystemError, OSError) as e:
            logger.debug(f"Failed to read raw workspace file {path}: {e}")
            return None

    def get_summary(self) -> dict[str, Any]:
        """
        Get a summary of the workspace configuration.

        Returns:
            Dict with configuration summary
        """
        return {
            "root": str(self.config.root),
            "tools": [schema["function"]["name"] for schema in self.get_tool_schemas()],
            "respect_ignore": self.config.respect_ignore,
            "always_exclude": list(self.config.always_exclude),
            "max_list_entries": self.config.max_list_entries,
            "max_search_matches": self.config.max_search_matches,
            "preview_lines": self.config.preview_lines,
            "search_depth": self.config.search_depth,
        }
