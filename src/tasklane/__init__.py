"""tasklane - a single-user kanban task store.

Tasks live in per-board SQLite files and move through todo, doing and done.
The same core is driven by:

- a command-line interface (``tasklane add "Fix login bug"``)
- an interactive board rendered with rich (``tasklane ui``)
- a JSON-RPC tool server for AI agents (``tasklane mcp``)
"""

from tasklane.config import (
    Settings,
    SettingsContext,
    get_settings,
    reload_settings,
    set_context_settings,
    set_settings,
)
from tasklane.constants import VERSION
from tasklane.errors import (
    AmbiguousError,
    ConflictError,
    NotFoundError,
    StorageError,
    TasklaneError,
    ValidationError,
)

__all__ = [
    "AmbiguousError",
    "ConflictError",
    "NotFoundError",
    "Settings",
    "SettingsContext",
    "StorageError",
    "TasklaneError",
    "ValidationError",
    "get_settings",
    "reload_settings",
    "set_context_settings",
    "set_settings",
]

__version__ = VERSION
