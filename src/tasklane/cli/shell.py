"""Interactive text UI: renders the board, reads commands, re-renders."""

from typing import TYPE_CHECKING, Iterable

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document
from prompt_toolkit.history import InMemoryHistory

from tasklane.cli.board_view import render_board
from tasklane.logging import Loggers

if TYPE_CHECKING:
    from tasklane.cli.app import TasklaneApp

logger = Loggers.cli()


class CommandCompleter(Completer):
    """Completes the command word at the start of the line."""

    def __init__(self, commands: list[str]) -> None:
        """Initialize with a list of command names and aliases."""
        self.commands = sorted(commands)

    def get_completions(self, document: Document, complete_event) -> Iterable[Completion]:
        text = document.text_before_cursor
        if " " in text.lstrip():
            return

        partial = text.lstrip().lstrip("/").lower()
        for cmd in self.commands:
            if cmd.lower().startswith(partial):
                yield Completion(
                    text=cmd,
                    start_position=-len(text.lstrip().lstrip("/")),
                    display=cmd,
                )


class BoardShell:
    """The ``tasklane ui`` loop.

    Ctrl+D or ``exit`` leaves; Ctrl+C clears the current line.
    """

    def __init__(self, app: "TasklaneApp", session: PromptSession | None = None) -> None:
        self.app = app
        self.session = session or PromptSession(
            history=InMemoryHistory(),
            completer=CommandCompleter(app.command_registry.get_completions()),
            complete_while_typing=True,
        )

    def render(self) -> None:
        """Draw the open board as three columns."""
        handle = self.app.board
        tasks = handle.service.list_tasks(handle.board_id)
        stats = handle.service.board_stats(handle.board_id)
        self.app.print_rich(render_board(handle.name, tasks, stats))

    async def run(self) -> None:
        """Run until exit or end of input."""
        logger.info("ui_starting")
        self.app.print_message("Type help for commands, exit to leave.")
        self.render()

        while not self.app.should_exit:
            try:
                line = await self.session.prompt_async(f"{self.app.board.name}> ")
            except KeyboardInterrupt:
                continue
            except EOFError:
                break

            await self.app.process_input(line)
            if line.strip() and not self.app.should_exit:
                self.render()

        logger.info("ui_ending")
