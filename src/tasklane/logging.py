"""Structured logging configuration for tasklane.

Uses structlog for structured, context-rich logging that supports
both human-readable console output and machine-readable JSON format.
All output goes to stderr: stdout belongs to the CLI and the RPC channel.
"""

import logging
import sys
from typing import TYPE_CHECKING

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from tasklane.config import Settings


def configure_logging(settings: "Settings | None" = None) -> None:
    """Configure structured logging based on settings.

    Args:
        settings: Application settings. If None, uses defaults.
    """
    log_level = logging.WARNING
    log_format = "console"

    if settings is not None:
        log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
        log_format = settings.log_format

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(message)s",
        level=log_level,
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger instance.

    Args:
        name: Optional logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name) if name else structlog.get_logger()


def bind_context(**kwargs: object) -> None:
    """Bind context variables to all subsequent log calls in the current context.

    Example:
        bind_context(board="work")
        logger.info("task_created")  # Will include board

    Args:
        **kwargs: Key-value pairs to bind to logging context
    """
    structlog.contextvars.bind_contextvars(**kwargs)


class Loggers:
    """Pre-configured logger instances for tasklane components."""

    @staticmethod
    def cli() -> structlog.stdlib.BoundLogger:
        """Logger for CLI and text UI."""
        return get_logger("tasklane.cli")

    @staticmethod
    def storage() -> structlog.stdlib.BoundLogger:
        """Logger for the SQLite gateway."""
        return get_logger("tasklane.storage")

    @staticmethod
    def tasks() -> structlog.stdlib.BoundLogger:
        """Logger for the task core."""
        return get_logger("tasklane.tasks")

    @staticmethod
    def boards() -> structlog.stdlib.BoundLogger:
        """Logger for the board registry."""
        return get_logger("tasklane.boards")

    @staticmethod
    def rpc() -> structlog.stdlib.BoundLogger:
        """Logger for the tool-call server."""
        return get_logger("tasklane.rpc")
