"""Command registry and base command class.

The same commands serve the one-shot CLI (``tasklane add "Fix bug"``) and
the text UI prompt (``add "Fix bug"``). The CLI hands over its argv list;
the text UI hands over the raw line, which is tokenized respecting quotes.

Example of creating a command:

    class StatsCommand(Command):
        '''Show task counts.'''

        def __init__(self):
            super().__init__(
                name="stats",
                description="Show task counts per column",
                usage="stats [--board-id=N]",
                category=CommandCategory.TASKS,
            )

        async def execute(self, args, app) -> None:
            parsed = self.parse_args(args)
            board_id = parsed.get_option("board-id", app.board.board_id, int)
            app.print_message(str(app.board.service.board_stats(board_id)))
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, TypeVar
import re

from tasklane.errors import ValidationError

if TYPE_CHECKING:
    from tasklane.cli.app import TasklaneApp

T = TypeVar("T")


class CommandCategory(Enum):
    """Categories for organizing commands."""

    GENERAL = "general"
    TASKS = "tasks"
    LINKS = "links"
    BOARDS = "boards"


@dataclass
class ParsedArgs:
    """Parsed command arguments.

    Provides easy access to positional arguments and options.
    """

    positional: list[str] = field(default_factory=list)
    """Positional arguments (everything not an option), in order."""

    options: dict[str, str] = field(default_factory=dict)
    """Named options (--key=value, --key value or --flag)."""

    @property
    def text(self) -> str:
        """Positional arguments joined with single spaces."""
        return " ".join(self.positional)

    def get_option(
        self,
        name: str,
        default: T = None,
        type_converter: Callable[[str], T] = str,
    ) -> T:
        """Get an option value with type conversion.

        Args:
            name: Option name (without --)
            default: Default value if option not provided
            type_converter: Function to convert string value to desired type

        Raises:
            ValidationError: If the value cannot be converted.
        """
        value = self.options.get(name)
        if value is None:
            return default
        try:
            return type_converter(value)
        except (ValueError, TypeError) as e:
            raise ValidationError(
                f"invalid value for --{name}: {value}",
                details={"field": name, "value": value},
            ) from e

    def has_flag(self, name: str) -> bool:
        """Check if a flag option is present."""
        return name in self.options


class Command(ABC):
    """Base class for commands.

    Subclass this and override execute(). Options listed in ``flags`` are
    boolean and never consume the following token.
    """

    def __init__(
        self,
        name: str,
        description: str,
        aliases: list[str] | None = None,
        usage: str | None = None,
        examples: list[str] | None = None,
        category: CommandCategory = CommandCategory.GENERAL,
        flags: tuple[str, ...] = (),
    ) -> None:
        """Initialize the command.

        Args:
            name: Command name
            description: Short description of what the command does
            aliases: Alternative names for the command
            usage: Usage string showing syntax (e.g., "move <task> <status>")
            examples: List of example usages
            category: Category for organizing in help
            flags: Boolean options (without --)
        """
        self.name = name
        self.description = description
        self.aliases = aliases or []
        self.usage = usage or name
        self.examples = examples or []
        self.category = category
        self.flags = flags

    @abstractmethod
    async def execute(self, args: str | list[str], app: "TasklaneApp") -> None:
        """Execute the command.

        Args:
            args: Raw argument string (text UI) or argument list (CLI)
            app: The application instance
        """

    def parse_args(self, args: str | list[str]) -> ParsedArgs:
        """Parse command arguments into structured form.

        Parses options in the forms:
        - --key=value
        - --key value
        - --flag (boolean flag)

        A bare ``--`` ends option parsing. Everything else is positional.
        """
        options: dict[str, str] = {}
        positional: list[str] = []

        parts = self._tokenize(args) if isinstance(args, str) else list(args)

        i = 0
        while i < len(parts):
            part = parts[i]

            if part == "--":
                positional.extend(parts[i + 1:])
                break
            if part.startswith("--") and len(part) > 2:
                key = part[2:]

                if "=" in key:
                    key, value = key.split("=", 1)
                    options[key] = value
                elif key in self.flags:
                    options[key] = "true"
                elif i + 1 < len(parts) and not parts[i + 1].startswith("--"):
                    options[key] = parts[i + 1]
                    i += 1
                else:
                    options[key] = "true"
            else:
                positional.append(part)

            i += 1

        return ParsedArgs(positional=positional, options=options)

    def _tokenize(self, args: str) -> list[str]:
        """Tokenize argument string respecting quotes."""
        pattern = r'"[^"]*"|\'[^\']*\'|\S+'
        tokens = re.findall(pattern, args)

        def strip_quotes(token: str) -> str:
            if len(token) >= 2 and token[0] in "\"'" and token[0] == token[-1]:
                return token[1:-1]
            return token

        return [strip_quotes(token) for token in tokens]

    def usage_error(self) -> ValidationError:
        """Error for a call that does not match the usage string."""
        return ValidationError(f"usage: tasklane {self.usage}", details={"command": self.name})


class CommandRegistry:
    """Registry for managing commands."""

    def __init__(self) -> None:
        self._commands: dict[str, Command] = {}
        self._categories: dict[CommandCategory, list[Command]] = {
            cat: [] for cat in CommandCategory
        }

    def register(self, command: Command) -> None:
        """Register a command and its aliases."""
        self._commands[command.name] = command
        for alias in command.aliases:
            self._commands[alias] = command

        if command not in self._categories[command.category]:
            self._categories[command.category].append(command)

    def get(self, name: str) -> Command | None:
        """Get a command by name or alias."""
        return self._commands.get(name)

    def all_commands(self) -> list[Command]:
        """Get all unique commands (excluding aliases)."""
        seen: set[str] = set()
        commands: list[Command] = []
        for cmd in self._commands.values():
            if cmd.name not in seen:
                seen.add(cmd.name)
                commands.append(cmd)
        return commands

    def by_category(self, category: CommandCategory) -> list[Command]:
        """Get commands in a specific category."""
        return self._categories.get(category, [])

    def get_completions(self) -> list[str]:
        """Get all command names and aliases for auto-completion."""
        return list(self._commands.keys())
