"""Tools module: task core operations exposed as callable tools.

Tool System:
    - ToolDefinition: Tool function plus its strict argument model
    - ToolError / ToolArgumentError / UnknownToolError: Tool-layer failures
    - ToolRegistry: Registry for tool discovery and dispatch
    - register_tool: Decorator registering with the default registry

Importing this package registers every tool in ``task_tools``.
"""

from tasklane.tools.registry import (
    ToolArgumentError,
    ToolCategory,
    ToolDefinition,
    ToolError,
    ToolRegistry,
    UnknownToolError,
    get_registry,
    register_tool,
)
from tasklane.tools import task_tools  # noqa: F401

__all__ = [
    "ToolArgumentError",
    "ToolCategory",
    "ToolDefinition",
    "ToolError",
    "ToolRegistry",
    "UnknownToolError",
    "get_registry",
    "register_tool",
]
