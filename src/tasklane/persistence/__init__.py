"""Persistence module: the SQLite gateway used by every board."""

from tasklane.persistence.database import (
    DEFAULT_BOARD_ID,
    Database,
    format_timestamp,
    parse_timestamp,
)

__all__ = [
    "DEFAULT_BOARD_ID",
    "Database",
    "format_timestamp",
    "parse_timestamp",
]
