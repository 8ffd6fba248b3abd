"""Board commands: initialize, list and switch boards."""

from rich.table import Table
from rich.text import Text

from tasklane.cli.commands import Command, CommandCategory


class InitCommand(Command):
    """Initialize the current board, or a board for the project directory."""

    def __init__(self) -> None:
        super().__init__(
            name="init",
            description="Create the board database (--project: board named after this project)",
            usage="init [--project]",
            examples=["init", "init --project", "--board work init"],
            category=CommandCategory.BOARDS,
            flags=("project",),
        )

    async def execute(self, args, app) -> None:
        parsed = self.parse_args(args)
        if parsed.has_flag("project"):
            registry = app.registry
            name = registry.detect_project_board()
            if not registry.board_path(name).exists():
                registry.create_board(name)
            registry.set_current_board(name)
            app.switch_board(name)

        handle = app.board
        app.print_success(f"Board '{handle.name}' initialized at: {handle.path}")


class BoardsCommand(Command):
    """List boards."""

    def __init__(self) -> None:
        super().__init__(
            name="boards",
            description="List available boards",
            usage="boards",
            category=CommandCategory.BOARDS,
        )

    async def execute(self, args, app) -> None:
        boards = app.registry.list_boards()
        if not boards:
            app.print_message("No boards found")
            return

        table = Table(show_header=False, box=None, padding=(0, 2, 0, 0))
        table.add_column("Current", no_wrap=True)
        table.add_column("Board", style="bold cyan", no_wrap=True)
        table.add_column("Path", style="dim")
        for board in boards:
            table.add_row("*" if board.is_current else "", Text(board.name), str(board.path))
        app.print_rich(table)


class BoardCommand(Command):
    """Show, switch, create or delete boards."""

    def __init__(self) -> None:
        super().__init__(
            name="board",
            description="Show the current board, or use/create/delete/detect a board",
            usage="board [use|create|delete NAME | detect]",
            examples=["board", "board use work", "board create work", "board delete work", "board detect"],
            category=CommandCategory.BOARDS,
        )

    async def execute(self, args, app) -> None:
        parsed = self.parse_args(args)
        registry = app.registry

        if not parsed.positional:
            handle = app.board
            stats = handle.service.board_stats(handle.board_id)
            app.print_message(
                f"Current board: {handle.name} ({handle.path})\n"
                f"todo {stats['todo']}, doing {stats['doing']}, done {stats['done']}"
            )
            return

        action, rest = parsed.positional[0], parsed.positional[1:]

        if action == "detect" and not rest:
            app.print_message(registry.detect_project_board())
            return
        if action not in ("use", "create", "delete") or len(rest) != 1:
            raise self.usage_error()

        name = rest[0]
        if action == "use":
            board = registry.get_board(name)
            registry.set_current_board(name)
            app.switch_board(name)
            app.print_success(f"Changed to board: {board.name}")
        elif action == "create":
            board = registry.create_board(name)
            app.print_success(f"Created board '{board.name}' at {board.path}")
        else:
            if app.has_open_board and app.board.path == registry.board_path(name):
                app.switch_board(None)
            registry.delete_board(name)
            app.print_success(f"Deleted board '{name}'")


BOARD_COMMANDS: tuple[type[Command], ...] = (
    InitCommand,
    BoardsCommand,
    BoardCommand,
)
