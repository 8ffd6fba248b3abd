"""Board registry: naming, the current board and opening boards."""

from tasklane.boards.registry import (
    DEFAULT_BOARD,
    Board,
    BoardHandle,
    BoardRegistry,
    sanitize_board_name,
)

__all__ = [
    "DEFAULT_BOARD",
    "Board",
    "BoardHandle",
    "BoardRegistry",
    "sanitize_board_name",
]
