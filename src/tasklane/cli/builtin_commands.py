"""Built-in commands: help, version, exit and the two long-running front ends."""

import asyncio
from typing import Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from tasklane.cli.commands import Command, CommandCategory
from tasklane.constants import VERSION


class HelpCommand(Command):
    """Display help information about available commands."""

    def __init__(self) -> None:
        super().__init__(
            name="help",
            description="Show available commands and usage information",
            aliases=["?"],
            usage="help [command]",
            examples=["help", "help move"],
            category=CommandCategory.GENERAL,
        )

    async def execute(self, args: Any, app: Any) -> None:
        """Display the command table, or one command's details."""
        parsed = self.parse_args(args)
        if parsed.positional:
            command = app.command_registry.get(parsed.positional[0])
            if command is None:
                app.print_error(f"Unknown command: {parsed.positional[0]}")
                return
            app.print_rich(self._command_help(command))
            return

        table = Table(show_header=False, box=None, padding=(0, 2, 0, 0))
        table.add_column("Command", style="bold cyan", no_wrap=True)
        table.add_column("Aliases", style="dim", no_wrap=True)
        table.add_column("Description")

        for category in CommandCategory:
            for cmd in sorted(app.command_registry.by_category(category), key=lambda c: c.name):
                aliases = ", ".join(cmd.aliases) if cmd.aliases else ""
                table.add_row(cmd.name, aliases, cmd.description)

        panel = Panel(table, title="[bold]Available Commands[/bold]", border_style="cyan")
        app.print_rich(panel)

    @staticmethod
    def _command_help(command: Command) -> Panel:
        body = Text()
        body.append(f"{command.description}\n\n")
        body.append("Usage: ", style="bold")
        body.append(f"tasklane {command.usage}\n")
        if command.aliases:
            body.append("Aliases: ", style="bold")
            body.append(", ".join(command.aliases) + "\n")
        if command.examples:
            body.append("Examples:\n", style="bold")
            for example in command.examples:
                body.append(f"  tasklane {example}\n")
        return Panel(body, title=Text(command.name, style="bold"), border_style="cyan")


class VersionCommand(Command):
    """Print the version."""

    def __init__(self) -> None:
        super().__init__(
            name="version",
            description="Show the tasklane version",
            aliases=["--version"],
            category=CommandCategory.GENERAL,
        )

    async def execute(self, args: Any, app: Any) -> None:
        app.print_message(f"tasklane {VERSION}")


class ExitCommand(Command):
    """Leave the text UI."""

    def __init__(self) -> None:
        super().__init__(
            name="exit",
            description="Leave the interactive board",
            aliases=["quit"],
            category=CommandCategory.GENERAL,
        )

    async def execute(self, args: Any, app: Any) -> None:
        app.stop()


class UiCommand(Command):
    """Start the interactive text UI."""

    def __init__(self) -> None:
        super().__init__(
            name="ui",
            description="Open the interactive board (default when no command is given)",
            category=CommandCategory.GENERAL,
        )

    async def execute(self, args: Any, app: Any) -> None:
        from tasklane.cli.shell import BoardShell

        await BoardShell(app).run()


class McpCommand(Command):
    """Serve the tool-call protocol on stdio."""

    def __init__(self) -> None:
        super().__init__(
            name="mcp",
            description="Run the JSON-RPC tool server on stdin/stdout",
            aliases=["serve"],
            category=CommandCategory.GENERAL,
        )

    async def execute(self, args: Any, app: Any) -> None:
        from tasklane.context import (
            get_context_board_handle,
            set_context_board_handle,
            set_context_board_registry,
        )
        from tasklane.rpc import RpcServer

        set_context_board_registry(app.registry)
        set_context_board_handle(app.board)

        def serve() -> Any:
            RpcServer().serve()
            # change_board may have replaced the open board
            return get_context_board_handle()

        app.adopt_board(await asyncio.to_thread(serve))


BUILTIN_COMMANDS: tuple[type[Command], ...] = (
    HelpCommand,
    VersionCommand,
    ExitCommand,
    UiCommand,
    McpCommand,
)
