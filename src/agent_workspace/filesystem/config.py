"""
Configuration for the sandboxed workspace filesystem.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

DEFAULT_ALWAYS_EXCLUDE = [
    ".git",
    "node_modules",
    ".svelte-kit",
    ".next",
    ".nuxt",
    "__pycache__",
    "target",
    "dist",
    ".agent-data",
]


class WorkspaceConfig(BaseModel):
    """
    Engine context for workspace filesystem access.

    Built once and passed to every component. The sandbox root is resolved
    to an absolute real path at construction time, so all containment checks
    compare against the same value.

    Usage:
        config = WorkspaceConfig(root=Path("/srv/agent/workspace"))
        reader = WorkspaceReader(config)
        writer = WorkspaceWriter(config)
    """

    model_config = {"frozen": True}

    root: Path = Field(
        description="Sandbox root; no operation may touch anything outside it",
    )

    respect_ignore: bool = Field(
        default=True,
        description="Honor .gitignore/.ignore files and the default ignore list",
    )

    extra_ignore_patterns: list[str] = Field(
        default_factory=list,
        description="Additional gitignore-style patterns applied to every walk",
    )

    always_exclude: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ALWAYS_EXCLUDE),
        description="Directory names never offered as fuzzy search candidates",
    )

    max_list_entries: int = Field(
        default=500,
        ge=1,
        le=100_000,
        description="Maximum number of entries returned by a directory listing",
    )

    max_search_matches: int = Field(
        default=100,
        ge=1,
        le=10_000,
        description="Maximum number of content matches returned by a search",
    )

    context_lines: int = Field(
        default=3,
        ge=0,
        le=50,
        description="Lines of context shown before and after each match",
    )

    preview_lines: int = Field(
        default=100,
        ge=1,
        description="Lines shown when a file is read without an explicit range",
    )

    list_depth: int = Field(
        default=1,
        ge=1,
        description="Default traversal depth for directory listings",
    )

    search_depth: int = Field(
        default=5,
        ge=1,
        description="Default traversal depth for content and name searches",
    )

    find_max_results: int = Field(
        default=50,
        ge=1,
        description="Maximum number of results for a fuzzy name search",
    )

    auto_resolve_depth: int = Field(
        default=10,
        ge=0,
        description="Traversal depth used when auto-resolving a missing path",
    )

    @field_validator("root", mode="before")
    @classmethod
    def resolve_root(cls, v):
        """Resolve the root to an absolute real path."""
        if v is None or str(v).strip() == "":
            raise ValueError("Workspace root must not be empty")
        return Path(v).expanduser().resolve()

    @field_validator("root")
    @classmethod
    def root_must_be_directory(cls, v: Path) -> Path:
        """The root must be an existing directory."""
        if not v.is_dir():
            raise ValueError(f"Workspace root is not a directory: {v}")
        return v

    @field_validator("always_exclude", mode="before")
    @classmethod
    def strip_excludes(cls, v):
        """Drop blanks and surrounding slashes from directory names."""
        return [name.strip().strip("/") for name in v if name and name.strip()]

    def __repr__(self) -> str:
        return (
            f"WorkspaceConfig("
            f"root={str(self.root)!r}, "
            f"respect_ignore={self.respect_ignore}, "
            f"max_list_entries={self.max_list_entries})"
        )
