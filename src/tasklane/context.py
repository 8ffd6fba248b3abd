"""Context variables for tool execution.

Front ends set the opened board and the registry before dispatching tool
calls; tools read them through the getter functions.
"""

from contextvars import ContextVar, Token
from typing import Any, Callable


def _make_context_accessors(name: str) -> tuple[Callable[..., Token], Callable[..., Any]]:
    """Create a (setter, getter) pair backed by a ContextVar."""
    var: ContextVar[Any] = ContextVar(f"{name}_context", default=None)

    def setter(value: Any) -> Token:
        return var.set(value)

    def getter() -> Any:
        return var.get()

    setter.__name__ = setter.__qualname__ = f"set_context_{name}"
    getter.__name__ = getter.__qualname__ = f"get_context_{name}"
    return setter, getter


set_context_board_handle, get_context_board_handle = _make_context_accessors("board_handle")
set_context_board_registry, get_context_board_registry = _make_context_accessors("board_registry")
