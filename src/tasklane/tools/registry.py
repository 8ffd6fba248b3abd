"""Tool registry for the tool-call protocol.

Provides:
- ToolDefinition: A tool function plus the argument model derived from its signature
- ToolError: Base error raised by the tool layer
- ToolArgumentError: Arguments that do not fit a tool's signature
- UnknownToolError: Call to a tool that is not registered
- ToolRegistry: Registry for tool discovery and dispatch
"""

import inspect
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, get_type_hints

from pydantic import BaseModel, ConfigDict, Field, create_model
from pydantic import ValidationError as PydanticValidationError

from tasklane.errors import ErrorCode, TasklaneError


class ToolCategory(Enum):
    """Categories for organizing tools."""

    TASKS = "tasks"
    LINKS = "links"
    SEARCH = "search"
    BOARDS = "boards"


class ToolError(TasklaneError):
    """Error raised by the tool layer itself (not by the task core).

    Attributes:
        tool_name: Name of the tool that failed
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        tool_name: str | None = None,
    ):
        super().__init__(message, code=code, details=details)
        self.tool_name = tool_name

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["tool_name"] = self.tool_name
        return data


class ToolArgumentError(ToolError):
    """Raised when tool arguments are missing, mistyped or malformed."""

    default_code = ErrorCode.INVALID_ARGUMENTS


class UnknownToolError(ToolError):
    """Raised when a call names a tool that is not registered."""

    default_code = ErrorCode.UNKNOWN_TOOL


_ARGS_SECTION = re.compile(r"^\s*Args:\s*$")
_ARG_LINE = re.compile(r"^\s+(\w+):\s*(.+)$")


def _arg_descriptions(doc: str | None) -> dict[str, str]:
    """Pull ``name: description`` pairs out of a Google-style Args section."""
    descriptions: dict[str, str] = {}
    in_args = False
    for line in (doc or "").splitlines():
        if _ARGS_SECTION.match(line):
            in_args = True
            continue
        if not in_args:
            continue
        if not line.strip():
            break
        match = _ARG_LINE.match(line)
        if match:
            descriptions[match.group(1)] = match.group(2).strip()
    return descriptions


def _build_args_model(name: str, func: Callable[..., Any]) -> type[BaseModel]:
    """Create a strict pydantic model mirroring ``func``'s keyword parameters."""
    hints = get_type_hints(func)
    docs = _arg_descriptions(func.__doc__)
    fields: dict[str, Any] = {}

    for param in inspect.signature(func).parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        annotation = hints.get(param.name, Any)
        default = ... if param.default is param.empty else param.default
        fields[param.name] = (
            annotation,
            Field(default, description=docs.get(param.name)),
        )

    model_name = "".join(part.title() for part in name.split("_")) + "Args"
    return create_model(
        model_name,
        __config__=ConfigDict(strict=True, extra="ignore"),
        **fields,
    )


def _format_validation_error(error: PydanticValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "arguments"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


@dataclass
class ToolDefinition:
    """A registered tool.

    Attributes:
        name: Tool name (defaults to function name)
        description: Human-readable description
        func: The tool function; it receives validated keyword arguments
        category: Tool category for organization
        args_model: Strict pydantic model of the tool's arguments
    """

    name: str
    description: str
    func: Callable[..., Any]
    category: ToolCategory = ToolCategory.TASKS
    metadata: dict[str, Any] = field(default_factory=dict)
    args_model: type[BaseModel] | None = None

    def __post_init__(self):
        if self.args_model is None:
            self.args_model = _build_args_model(self.name, self.func)

    @property
    def input_schema(self) -> dict[str, Any]:
        """JSON schema of the tool's arguments."""
        schema = self.args_model.model_json_schema()
        schema.pop("title", None)
        return schema

    def validate_arguments(self, arguments: Any) -> dict[str, Any]:
        """Check raw call arguments and return them as keyword arguments.

        Unknown keys are dropped; missing optional keys take their defaults.

        Raises:
            ToolArgumentError: If the arguments do not fit the signature.
        """
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ToolArgumentError(
                f"arguments for {self.name} must be an object",
                tool_name=self.name,
            )
        try:
            model = self.args_model.model_validate(arguments)
        except PydanticValidationError as e:
            raise ToolArgumentError(
                f"invalid arguments for {self.name}: {_format_validation_error(e)}",
                details={"errors": e.errors(include_url=False, include_context=False)},
                tool_name=self.name,
            ) from e
        return {key: getattr(model, key) for key in type(model).model_fields}

    def to_dict(self) -> dict[str, Any]:
        """Describe the tool for ``tools/list``."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


class ToolRegistry:
    """Registry for managing, discovering and calling tools."""

    def __init__(self):
        self._tools: dict[str, ToolDefinition] = {}

    def register(
        self,
        func: Callable[..., Any] | None = None,
        *,
        name: str | None = None,
        description: str | None = None,
        category: ToolCategory = ToolCategory.TASKS,
        **metadata,
    ) -> Callable[..., Any]:
        """Register a tool function.

        Can be used as a decorator:
            @registry.register(category=ToolCategory.TASKS)
            def get_task(task_id: int) -> dict:
                ...

        Or called directly:
            registry.register(get_task, category=ToolCategory.TASKS)
        """

        def decorator(f: Callable[..., Any]) -> Callable[..., Any]:
            tool_name = name or f.__name__
            tool_desc = description or (f.__doc__ or "").split("\n")[0].strip()

            self._tools[tool_name] = ToolDefinition(
                name=tool_name,
                description=tool_desc,
                func=f,
                category=category,
                metadata=metadata,
            )
            return f

        if func is not None:
            return decorator(func)
        return decorator

    def get(self, name: str) -> ToolDefinition | None:
        """Get a tool definition by name."""
        return self._tools.get(name)

    def list_tools(self) -> list[ToolDefinition]:
        """List all registered tools in registration order."""
        return list(self._tools.values())

    def list_by_category(self, category: ToolCategory) -> list[ToolDefinition]:
        """List tools by category."""
        return [t for t in self._tools.values() if t.category == category]

    def call(self, name: str, arguments: Any = None) -> Any:
        """Validate arguments and invoke a tool.

        Raises:
            UnknownToolError: If no tool has this name.
            ToolArgumentError: If the arguments are invalid.
            TasklaneError: Whatever the task core raises, unchanged.
        """
        definition = self._tools.get(name)
        if definition is None:
            raise UnknownToolError(f"unknown tool: {name}", tool_name=name)
        kwargs = definition.validate_arguments(arguments)
        return definition.func(**kwargs)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools


# Global registry instance
_default_registry = ToolRegistry()


def get_registry() -> ToolRegistry:
    """Get the default tool registry."""
    return _default_registry


def register_tool(
    func: Callable[..., Any] | None = None,
    *,
    name: str | None = None,
    description: str | None = None,
    category: ToolCategory = ToolCategory.TASKS,
    **metadata,
) -> Callable[..., Any]:
    """Register a tool with the default registry.

    Decorator for registering tools:
        @register_tool(category=ToolCategory.SEARCH)
        def search_tasks(query: str) -> dict:
            '''Search tasks by title.'''
            ...
    """
    return _default_registry.register(
        func,
        name=name,
        description=description,
        category=category,
        **metadata,
    )
