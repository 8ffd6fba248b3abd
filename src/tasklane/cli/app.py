"""tasklane application: command dispatch for the CLI and the text UI.

Usage:
    tasklane [--board NAME] <command> [args]
    tasklane                      # opens the interactive board

The board is chosen once per invocation (``--board``, ``TASKLANE_BOARD`` or
the persisted current board) and opened on first use.
"""

import asyncio
import sys
from typing import Any

from rich.console import Console
from rich.text import Text

from tasklane.boards.registry import BoardHandle, BoardRegistry
from tasklane.cli.board_commands import BOARD_COMMANDS
from tasklane.cli.builtin_commands import BUILTIN_COMMANDS
from tasklane.cli.commands import CommandRegistry
from tasklane.cli.task_commands import TASK_COMMANDS
from tasklane.config import Settings, get_settings
from tasklane.errors import TasklaneError
from tasklane.logging import Loggers, bind_context, configure_logging

logger = Loggers.cli()


class TasklaneApp:
    """Holds settings, output consoles, the board registry and the open board."""

    def __init__(
        self,
        settings: Settings | None = None,
        console: Console | None = None,
        err_console: Console | None = None,
        registry: BoardRegistry | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        configure_logging(self._settings)

        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)
        self.registry = registry or BoardRegistry.from_settings(self._settings)

        self.command_registry = CommandRegistry()
        for command_cls in (*TASK_COMMANDS, *BOARD_COMMANDS, *BUILTIN_COMMANDS):
            self.command_registry.register(command_cls())

        self._board_name: str | None = self._settings.board
        self._board: BoardHandle | None = None
        self.should_exit = False

    @property
    def settings(self) -> Settings:
        """Get the application settings."""
        return self._settings

    # ---- board ----

    @property
    def board(self) -> BoardHandle:
        """The open board, opened on first access."""
        if self._board is None:
            self._board = self.registry.open_board(
                self._board_name,
                board_id=self._settings.board_id,
            )
            bind_context(board=self._board.name)
            logger.debug("board_selected", board=self._board.name, path=str(self._board.path))
        return self._board

    @property
    def has_open_board(self) -> bool:
        return self._board is not None

    def switch_board(self, name: str | None) -> None:
        """Close the open board; the next access opens ``name`` (None: current board)."""
        if self._board is not None:
            self._board.close()
        self._board = None
        self._board_name = name

    def adopt_board(self, handle: BoardHandle | None) -> None:
        """Take ownership of a handle opened elsewhere."""
        if handle is None or handle is self._board:
            return
        if self._board is not None:
            self._board.close()
        self._board = handle
        self._board_name = handle.name

    def close(self) -> None:
        if self._board is not None:
            self._board.close()
            self._board = None

    def stop(self) -> None:
        """Stop the interactive loop."""
        self.should_exit = True

    # ---- output ----

    def print_message(self, message: str) -> None:
        self.console.print(Text(message))

    def print_success(self, message: str) -> None:
        self.console.print(Text(message, style="green"))

    def print_error(self, message: str) -> None:
        self.err_console.print(Text(f"Error: {message}", style="bold red"))

    def print_rich(self, renderable: Any) -> None:
        self.console.print(renderable)

    # ---- dispatch ----

    async def run_command(self, argv: list[str]) -> int:
        """Run one CLI command; returns the process exit code."""
        if not argv:
            argv = ["ui"]

        name, args = argv[0], argv[1:]
        command = self.command_registry.get(name)
        if command is None:
            self.print_error(f"unknown command: {name}")
            self.print_message("Run 'tasklane help' to see available commands")
            return 1

        logger.debug("executing_command", command=command.name, args=args)
        try:
            await command.execute(args, self)
        except TasklaneError as e:
            logger.info("command_failed", command=command.name, code=e.code, error=e.message)
            self.print_error(e.message)
            return 1
        logger.debug("command_completed", command=command.name)
        return 0

    async def process_input(self, user_input: str) -> None:
        """Run one line typed into the text UI; errors are reported, not raised."""
        user_input = user_input.strip().removeprefix("/").strip()
        if not user_input:
            return

        parts = user_input.split(maxsplit=1)
        command_name = parts[0]
        args = parts[1] if len(parts) > 1 else ""

        command = self.command_registry.get(command_name)
        if command is None:
            self.print_error(f"unknown command: {command_name}")
            self.print_message("Type help to see available commands")
            return
        if command.name in ("ui", "mcp"):
            self.print_error(f"'{command.name}' cannot be run from the interactive board")
            return

        logger.debug("executing_command", command=command.name, args=args)
        try:
            await command.execute(args, self)
        except TasklaneError as e:
            logger.info("command_failed", command=command.name, code=e.code, error=e.message)
            self.print_error(e.message)


def _split_global_options(argv: list[str]) -> tuple[dict[str, Any], list[str]]:
    """Pull ``--board NAME`` / ``--board=NAME`` off the front of argv."""
    overrides: dict[str, Any] = {}
    rest = list(argv)
    while rest:
        head = rest[0]
        if head.startswith("--board="):
            overrides["board"] = head.split("=", 1)[1]
            rest = rest[1:]
        elif head == "--board" and len(rest) > 1:
            overrides["board"] = rest[1]
            rest = rest[2:]
        else:
            break
    return overrides, rest


def main(argv: list[str] | None = None) -> int:
    """CLI entry point; returns the exit code."""
    overrides, rest = _split_global_options(sys.argv[1:] if argv is None else argv)
    settings = get_settings()
    if overrides:
        settings = settings.model_copy(update=overrides)

    app = TasklaneApp(settings)
    try:
        return asyncio.run(app.run_command(rest))
    finally:
        app.close()


def run() -> None:
    """Console script wrapper around main()."""
    sys.exit(main())
