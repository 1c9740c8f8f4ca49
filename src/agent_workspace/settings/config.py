"""
Agent workspace settings.

Settings are read from (in order of precedence) explicit values, a YAML or
JSON settings file, ``AGENT_WORKSPACE_*`` environment variables and a local
``.env`` file.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from agent_workspace.filesystem.config import DEFAULT_ALWAYS_EXCLUDE, WorkspaceConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "AGENT_WORKSPACE_"


class WorkspaceSettings(BaseSettings):
    """
    User-facing settings for the workspace.

    Example:
        ```python
        # From environment (AGENT_WORKSPACE_ROOT=/srv/agent/workspace)
        settings = WorkspaceSettings()

        # From a file
        settings = WorkspaceSettings.from_file("~/.agent-workspace.yaml")

        config = settings.to_workspace_config()
        ```

    File format (YAML):
        ```yaml
        workspace:
          root: ./workspace
          create_root: true
          respect_ignore: true
          extra_ignore_patterns:
            - "*.tmp"
          max_search_matches: 200
        ```
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    root: Path = Field(
        default=Path("workspace"),
        description="Workspace root directory",
    )
    create_root: bool = Field(
        default=False,
        description="Create the root directory if it does not exist",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level for the CLI (DEBUG, INFO, WARNING, ERROR)",
    )
    respect_ignore: bool = True
    extra_ignore_patterns: list[str] = Field(default_factory=list)
    always_exclude: list[str] = Field(default_factory=lambda: list(DEFAULT_ALWAYS_EXCLUDE))
    max_list_entries: int = Field(default=500, ge=1)
    max_search_matches: int = Field(default=100, ge=1)
    context_lines: int = Field(default=3, ge=0)
    preview_lines: int = Field(default=100, ge=1)
    search_depth: int = Field(default=5, ge=1)
    find_max_results: int = Field(default=50, ge=1)

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    def __repr__(self) -> str:
        return f"WorkspaceSettings(root={str(self.root)!r}, log_level={self.log_level})"

    @classmethod
    def from_file(cls, path: Union[str, Path], **overrides: Any) -> "WorkspaceSettings":
        """
        Load settings from a YAML or JSON file.

        Settings may sit at the top level or under a ``workspace`` key.
        Keyword overrides take precedence over the file.

        Args:
            path: Path to settings file
            **overrides: Values that replace those from the file

        Returns:
            Loaded WorkspaceSettings instance

        Raises:
            FileNotFoundError: If the settings file doesn't exist
            ValueError: If the file does not contain a mapping
        """
        path = Path(path).expanduser().resolve()

        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")

        content = path.read_text(encoding="utf-8")

        if path.suffix == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)

        return cls.from_dict(data or {}, **overrides)

    @classmethod
    def from_dict(cls, data: dict, **overrides: Any) -> "WorkspaceSettings":
        """
        Create settings from a dictionary.

        Args:
            data: Settings dictionary (optionally nested under ``workspace``)
            **overrides: Values that replace those from the dictionary

        Returns:
            WorkspaceSettings instance
        """
        if not isinstance(data, dict):
            raise ValueError("Settings must be a mapping")
        if isinstance(data.get("workspace"), dict):
            data = data["workspace"]

        values = {**data, **{k: v for k, v in overrides.items() if v is not None}}
        return cls(**values)

    def to_workspace_config(self, root: Optional[Union[str, Path]] = None) -> WorkspaceConfig:
        """
        Build the engine configuration.

        Args:
            root: Overrides the configured root

        Returns:
            WorkspaceConfig for the readers and writers
        """
        root_path = Path(root if root is not None else self.root).expanduser()
        if self.create_root and not root_path.exists():
            logger.info(f"Creating workspace root {root_path}")
            root_path.mkdir(parents=True, exist_ok=True)

        return WorkspaceConfig(
            root=root_path,
            respect_ignore=self.respect_ignore,
            extra_ignore_patterns=self.extra_ignore_patterns,
            always_exclude=self.always_exclude,
            max_list_entries=self.max_list_entries,
            max_search_matches=self.max_search_matches,
            context_lines=self.context_lines,
            preview_lines=self.preview_lines,
            search_depth=self.search_depth,
            find_max_results=self.find_max_results,
        )
