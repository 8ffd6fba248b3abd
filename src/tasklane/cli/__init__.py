"""Command-line interface and interactive board for tasklane."""

from tasklane.cli.app import TasklaneApp, main
from tasklane.cli.commands import Command, CommandCategory, CommandRegistry, ParsedArgs

__all__ = [
    "Command",
    "CommandCategory",
    "CommandRegistry",
    "ParsedArgs",
    "TasklaneApp",
    "main",
]
