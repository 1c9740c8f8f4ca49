"""
CLI module for agent-workspace.

Provides a command-line interface to the fs_read and fs_write tools.
"""

from agent_workspace.cli.main import cli

__all__ = ["cli"]
