"""Task entities, the task service and fuzzy task resolution."""

from tasklane.tasks.models import (
    TITLE_MAX_LENGTH,
    LinkType,
    Priority,
    Task,
    TaskLink,
    TaskStatus,
    parse_link_type,
    parse_priority,
    parse_status,
    validate_title,
)
from tasklane.tasks.search import fuzzy_match_score, parse_task_id, rank_tasks, resolve_task
from tasklane.tasks.service import TaskService

__all__ = [
    "TITLE_MAX_LENGTH",
    "LinkType",
    "Priority",
    "Task",
    "TaskLink",
    "TaskService",
    "TaskStatus",
    "fuzzy_match_score",
    "parse_link_type",
    "parse_priority",
    "parse_status",
    "parse_task_id",
    "rank_tasks",
    "resolve_task",
    "validate_title",
]
