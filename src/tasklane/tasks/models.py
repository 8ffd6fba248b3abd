"""Task and link entities plus their vocabularies.

Status, priority and link type are closed sets. Every value entering the
core passes through one of the ``parse_*`` functions, which raise
ValidationError for anything outside the set.
"""

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any

from tasklane.errors import ValidationError
from tasklane.persistence.database import format_timestamp, parse_timestamp

TITLE_MAX_LENGTH = 255


class TaskStatus(str, Enum):
    """Kanban column of a task."""

    TODO = "todo"
    DOING = "doing"
    DONE = "done"


class Priority(IntEnum):
    """Task priority, stored as its integer level."""

    NONE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        """Lower-case name, e.g. ``"high"``."""
        return self.name.lower()


class LinkType(str, Enum):
    """Relationship carried by a directed link."""

    BLOCKS = "blocks"
    BLOCKED_BY = "blocked_by"
    RELATED = "related"
    DEPENDS_ON = "depends_on"


def _safe_enum(enum_cls, value, default):
    """Convert a stored value to enum, returning default if unrecognized."""
    try:
        return enum_cls(value)
    except ValueError:
        return default


def validate_title(title: str) -> str:
    """Check a title and return it with surrounding whitespace removed.

    Raises:
        ValidationError: If the trimmed title is empty or longer than 255 characters.
    """
    if not isinstance(title, str):
        raise ValidationError("task title must be a string", details={"field": "title"})
    trimmed = title.strip()
    if not trimmed:
        raise ValidationError("task title cannot be empty", details={"field": "title"})
    if len(trimmed) > TITLE_MAX_LENGTH:
        raise ValidationError(
            f"task title cannot exceed {TITLE_MAX_LENGTH} characters",
            details={"field": "title", "length": len(trimmed)},
        )
    return trimmed


def parse_status(value: TaskStatus | str) -> TaskStatus:
    """Normalize a status name (case-insensitive)."""
    if isinstance(value, TaskStatus):
        return value
    if isinstance(value, str):
        try:
            return TaskStatus(value.strip().lower())
        except ValueError:
            pass
    valid = ", ".join(s.value for s in TaskStatus)
    raise ValidationError(
        f"invalid status: {value!r} (must be one of {valid})",
        details={"field": "status", "value": str(value)},
    )


def parse_priority(value: Priority | int | float | str) -> Priority:
    """Normalize a priority given as a level (0-4) or a name.

    Names are case-insensitive. Whole-number floats (as decoded from JSON)
    count as levels. Booleans, fractional floats and every other type are
    rejected.

    Raises:
        ValidationError: For out-of-range levels, unknown names or bad types.
    """
    if isinstance(value, Priority):
        return value
    if isinstance(value, bool):
        raise ValidationError(
            "priority must be an integer level or a name",
            details={"field": "priority", "value": str(value)},
        )
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(
                "priority must be a whole number",
                details={"field": "priority", "value": value},
            )
        value = int(value)
    if isinstance(value, int):
        try:
            return Priority(value)
        except ValueError:
            raise ValidationError(
                f"invalid priority level: {value} (must be 0-4)",
                details={"field": "priority", "value": value},
            ) from None
    if isinstance(value, str):
        try:
            return Priority[value.strip().upper()]
        except KeyError:
            names = ", ".join(p.label for p in Priority)
            raise ValidationError(
                f"invalid priority name: {value} (must be {names})",
                details={"field": "priority", "value": value},
            ) from None
    raise ValidationError(
        "priority must be an integer level or a name",
        details={"field": "priority", "value": repr(value)},
    )


def parse_link_type(value: LinkType | str) -> LinkType:
    """Normalize a link type name."""
    if isinstance(value, LinkType):
        return value
    if isinstance(value, str):
        try:
            return LinkType(value.strip().lower())
        except ValueError:
            pass
    valid = ", ".join(t.value for t in LinkType)
    raise ValidationError(
        f"invalid link type: {value!r} (must be one of {valid})",
        details={"field": "link_type", "value": str(value)},
    )


@dataclass
class Task:
    """A task row."""

    id: int
    board_id: int
    title: str
    description: str
    status: TaskStatus
    priority: Priority
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "board_id": self.board_id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": int(self.priority),
            "priority_name": self.priority.label,
            "deleted_at": format_timestamp(self.deleted_at) if self.deleted_at else None,
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
        }

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Task":
        return cls(
            id=int(row["id"]),
            board_id=int(row["board_id"]),
            title=row["title"],
            description=row["description"] or "",
            status=_safe_enum(TaskStatus, row["status"], TaskStatus.TODO),
            priority=_safe_enum(Priority, row["priority"] or 0, Priority.NONE),
            created_at=parse_timestamp(row["created_at"]),
            updated_at=parse_timestamp(row["updated_at"]),
            deleted_at=parse_timestamp(row["deleted_at"]),
        )


@dataclass
class TaskLink:
    """A typed, directed edge between two tasks."""

    id: int
    from_task_id: int
    to_task_id: int
    link_type: LinkType
    created_at: datetime

    def describe(self, task_id: int) -> str:
        """Phrase the link from the point of view of ``task_id``."""
        if self.from_task_id == task_id:
            return f"{self.link_type.value} task {self.to_task_id}"
        return f"{self.link_type.value} by task {self.from_task_id}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "from_task_id": self.from_task_id,
            "to_task_id": self.to_task_id,
            "link_type": self.link_type.value,
            "created_at": format_timestamp(self.created_at),
        }

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "TaskLink":
        return cls(
            id=int(row["id"]),
            from_task_id=int(row["from_task_id"]),
            to_task_id=int(row["to_task_id"]),
            link_type=_safe_enum(LinkType, row["link_type"], LinkType.RELATED),
            created_at=parse_timestamp(row["created_at"]),
        )
