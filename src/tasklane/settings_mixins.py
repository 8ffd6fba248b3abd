"""Settings mixins for application identity, board layout and logging.

AppSettingsMixin: Application identity and disk layout (app_name, workspace, default board file).
CLISettingsMixin: Logging and display settings.

These live outside cli/ so that config.py can compose Settings
without importing the cli package.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator


class AppSettingsMixin:
    """Settings for application identity and disk layout.

    Mixin class that provides:
    - Application name and workspace directory
    - Path expansion for workspace_dir
    - Board selection overrides
    - Derived default database path

    Should be composed with pydantic-settings BaseSettings via multiple inheritance.
    """

    app_name: str = Field(
        default="tasklane",
        title="App Name",
        description="Application name, also used for config directories",
    )

    workspace_dir: Path = Field(
        default_factory=lambda: Path.home() / ".tasklane",
        title="Workspace Directory",
        description="Directory holding board databases and the current-board marker",
    )

    board: str | None = Field(
        default=None,
        title="Board",
        description="Board to open instead of the persisted current board",
    )

    board_id: int = Field(
        default=1,
        ge=1,
        title="Board ID",
        description="Board scope inside a board database",
    )

    @field_validator("workspace_dir", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        """Expand ~ and environment variables in paths."""
        if isinstance(v, str):
            return Path(v).expanduser()
        return v

    @property
    def default_db_path(self) -> Path:
        """Database file of the default board."""
        return self.workspace_dir / f"{self.app_name}.db"


class CLISettingsMixin:
    """Settings for CLI/UI configuration.

    Note: This is a mixin, not a BaseSettings subclass, to avoid
    MRO issues when composed with other settings classes.
    """

    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="warning",
        title="Log Level",
        description="Logging verbosity level",
    )
    log_format: Literal["console", "json"] = Field(
        default="console",
        title="Log Format",
        description="Log output format (console for dev, json for production)",
    )
