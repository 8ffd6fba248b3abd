"""Shared test fixtures and utilities for tasklane tests.

Provides:
- MockContext for isolating tests from global settings and TASKLANE_* variables
- In-memory database and task service fixtures
- A board registry rooted in a temporary workspace
- An application wired to in-memory consoles
- A board opened into the tool context
"""

import io
import os
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from rich.console import Console

from tasklane.boards.registry import BoardHandle, BoardRegistry
from tasklane.cli.app import TasklaneApp
from tasklane.config import (
    Settings,
    reload_settings,
    set_context_settings,
    set_settings,
)
from tasklane.context import set_context_board_handle, set_context_board_registry
from tasklane.persistence.database import Database
from tasklane.tasks.service import TaskService


class MockContext:
    """Context manager for isolating tests from global state.

    Handles:
    - Resetting global settings singleton
    - Providing a temporary workspace directory
    - Hiding TASKLANE_* environment variables
    - Cleaning up after tests

    Usage:
        with MockContext() as ctx:
            settings = ctx.settings
            workspace = ctx.workspace_dir
    """

    def __init__(self, **settings_kwargs):
        """Initialize mock context.

        Args:
            **settings_kwargs: Settings overrides
        """
        self._settings_kwargs = settings_kwargs
        self._temp_dir: tempfile.TemporaryDirectory | None = None
        self._settings: Settings | None = None
        self._original_env: dict[str, str] = {}

    def __enter__(self) -> "MockContext":
        """Enter the mock context."""
        self._temp_dir = tempfile.TemporaryDirectory()
        workspace_dir = Path(self._temp_dir.name)

        for var in [v for v in os.environ if v.startswith("TASKLANE_")]:
            self._original_env[var] = os.environ.pop(var)

        self._settings = Settings(
            workspace_dir=workspace_dir,
            **self._settings_kwargs,
        )
        set_settings(self._settings)

        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit the mock context and clean up."""
        set_context_settings(None)
        os.environ.update(self._original_env)
        reload_settings()

        if self._temp_dir:
            self._temp_dir.cleanup()

    @property
    def settings(self) -> Settings:
        """Get the test settings instance."""
        if self._settings is None:
            raise RuntimeError("MockContext not entered")
        return self._settings

    @property
    def workspace_dir(self) -> Path:
        """Get the temporary workspace directory."""
        if self._temp_dir is None:
            raise RuntimeError("MockContext not entered")
        return Path(self._temp_dir.name)


def make_console() -> Console:
    """A console that records plain text."""
    return Console(file=io.StringIO(), width=200, color_system=None, force_terminal=False)


@pytest.fixture
def mock_context() -> Generator[MockContext, None, None]:
    """Fixture providing an isolated test context."""
    with MockContext() as ctx:
        yield ctx


@pytest.fixture
def temp_workspace(tmp_path: Path) -> Path:
    """Fixture providing a temporary workspace directory."""
    workspace = tmp_path / "workspace"
    workspace.mkdir(parents=True)
    return workspace


@pytest.fixture
def database() -> Generator[Database, None, None]:
    """Fixture providing a fresh in-memory database."""
    db = Database.memory()
    yield db
    db.close()


@pytest.fixture
def service(database: Database) -> TaskService:
    """Fixture providing a task service over the in-memory database."""
    return TaskService(database)


@pytest.fixture
def board_registry(temp_workspace: Path) -> BoardRegistry:
    """Fixture providing a registry rooted in the temporary workspace."""
    return BoardRegistry(temp_workspace)


@pytest.fixture
def app(mock_context: MockContext) -> Generator[TasklaneApp, None, None]:
    """Fixture providing an application with recording consoles."""
    application = TasklaneApp(
        mock_context.settings,
        console=make_console(),
        err_console=make_console(),
    )
    yield application
    application.close()


@pytest.fixture
def tool_board(board_registry: BoardRegistry) -> Generator[BoardHandle, None, None]:
    """Fixture opening the default board into the tool context."""
    handle = board_registry.open_board()
    set_context_board_registry(board_registry)
    set_context_board_handle(handle)
    yield handle

    from tasklane.context import get_context_board_handle

    current = get_context_board_handle()
    if current is not None and current is not handle:
        current.close()
    handle.close()
    set_context_board_handle(None)
    set_context_board_registry(None)
