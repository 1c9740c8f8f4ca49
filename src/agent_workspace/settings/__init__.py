"""
Settings for the agent workspace.

Example:
    ```python
    from agent_workspace.settings import WorkspaceSettings

    settings = WorkspaceSettings.from_file("~/.agent-workspace.yaml")
    config = settings.to_workspace_config()
    ```
"""

from agent_workspace.settings.config import ENV_PREFIX, WorkspaceSettings

__all__ = [
    "ENV_PREFIX",
    "WorkspaceSettings",
]
