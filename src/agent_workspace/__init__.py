"""
Agent Workspace - sandboxed file access for AI agents.

This package confines an agent's file reads, searches and edits to a single
workspace directory, with checksum-guarded writes and diff previews.
"""

__version__ = "0.1.0"

from agent_workspace.filesystem import (
    ErrorCode,
    FileSystemError,
    ReadRequest,
    ReadResult,
    WorkspaceConfig,
    WorkspaceReader,
    WorkspaceTools,
    WorkspaceWriter,
    WriteRequest,
    WriteResult,
)

from agent_workspace.settings import WorkspaceSettings

__all__ = [
    # Version
    "__version__",
    # Configuration
    "WorkspaceConfig",
    "WorkspaceSettings",
    # Operations
    "WorkspaceReader",
    "WorkspaceWriter",
    "WorkspaceTools",
    # Requests and results
    "ReadRequest",
    "ReadResult",
    "WriteRequest",
    "WriteResult",
    # Errors
    "ErrorCode",
    "FileSystemError",
]
