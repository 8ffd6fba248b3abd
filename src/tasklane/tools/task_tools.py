"""Task, link and board tools exposed over the tool-call protocol.

Every tool works on the board opened by the front end (see
``tasklane.context``). Results carry the affected entity or list plus
MCP-style ``content`` text blocks. Errors from the task core propagate
unchanged; the RPC server maps them to protocol errors.
"""

from typing import Any

from tasklane.boards.registry import BoardHandle, BoardRegistry
from tasklane.context import (
    get_context_board_handle,
    get_context_board_registry,
    set_context_board_handle,
)
from tasklane.tasks.models import Task, TaskStatus, parse_link_type, parse_status
from tasklane.tools.registry import ToolCategory, ToolError, register_tool


def _board() -> BoardHandle:
    handle = get_context_board_handle()
    if handle is None:
        raise ToolError("no board is open", code="NO_BOARD")
    return handle


def _registry() -> BoardRegistry:
    registry = get_context_board_registry()
    if registry is None:
        raise ToolError("board registry not available", code="NO_REGISTRY")
    return registry


def _text(*lines: str) -> list[dict[str, str]]:
    return [{"type": "text", "text": line} for line in lines]


def _bullet(task: Task) -> str:
    priority = f" [{task.priority.label}]" if task.priority else ""
    return f"• #{task.id}{priority} {task.title}"


def _scope(handle: BoardHandle, board_id: int | None) -> int:
    return handle.board_id if board_id is None else board_id


# ---- tasks ----


@register_tool(category=ToolCategory.TASKS)
def create_task(
    title: str,
    description: str = "",
    priority: int | float | str = 0,
    board_id: int | None = None,
) -> dict[str, Any]:
    """Create a new task in the todo column of the current board.

    Args:
        title: The title of the task (1-255 characters)
        description: The description of the task
        priority: Priority level (none, low, medium, high, critical or 0-4)
        board_id: The board ID (defaults to the current board scope)
    """
    handle = _board()
    task = handle.service.create_task(_scope(handle, board_id), title, description, priority)
    priority_text = f" [{task.priority.label}]" if task.priority else ""
    return {
        "task": task.to_dict(),
        "content": _text(f"Created task #{task.id}{priority_text}: {task.title}"),
    }


@register_tool(category=ToolCategory.TASKS)
def list_tasks(status: str | None = None, board_id: int | None = None) -> dict[str, Any]:
    """List active tasks grouped by status, highest priority first.

    Args:
        status: Filter by status (todo, doing, done)
        board_id: The board ID (defaults to the current board scope)
    """
    handle = _board()
    scope = _scope(handle, board_id)
    if status is not None:
        tasks = handle.service.list_tasks_by_status(scope, status)
        columns = [parse_status(status)]
    else:
        tasks = handle.service.list_tasks(scope)
        columns = list(TaskStatus)

    if not tasks:
        return {"tasks": [], "content": _text("No tasks found in current board")}

    lines: list[str] = []
    for column in columns:
        in_column = [t for t in tasks if t.status == column]
        if not in_column:
            continue
        lines.append(f"\n{column.value.upper()}:")
        lines.extend(_bullet(t) for t in in_column)

    return {"tasks": [t.to_dict() for t in tasks], "content": _text(*lines)}


@register_tool(category=ToolCategory.TASKS)
def get_task(task_id: int) -> dict[str, Any]:
    """Get a task by ID.

    Args:
        task_id: The task ID
    """
    task = _board().service.get_task(task_id)
    return {
        "task": task.to_dict(),
        "content": _text(f"#{task.id} [{task.status.value}] {task.title}\n{task.description}"),
    }


@register_tool(category=ToolCategory.TASKS)
def update_task_status(task_id: int, status: str) -> dict[str, Any]:
    """Move a task to another column.

    Args:
        task_id: The task ID
        status: The new status (todo, doing, done)
    """
    service = _board().service
    service.update_task_status(task_id, status)
    task = service.get_task(task_id)
    return {
        "task": task.to_dict(),
        "content": _text(f"Updated task #{task.id} status to {task.status.value}"),
    }


@register_tool(category=ToolCategory.TASKS)
def update_task(task_id: int, title: str, description: str = "") -> dict[str, Any]:
    """Replace a task's title and description.

    Args:
        task_id: The task ID
        title: The new title
        description: The new description
    """
    service = _board().service
    service.update_task(task_id, title, description)
    task = service.get_task(task_id)
    return {
        "task": task.to_dict(),
        "content": _text(f"Updated task #{task.id}: {task.title}"),
    }


@register_tool(category=ToolCategory.TASKS)
def update_task_priority(task_id: int, priority: int | float | str) -> dict[str, Any]:
    """Change a task's priority.

    Args:
        task_id: Task ID to update
        priority: Priority level (none, low, medium, high, critical or 0-4)
    """
    service = _board().service
    service.update_task_priority(task_id, priority)
    task = service.get_task(task_id)
    return {
        "task": task.to_dict(),
        "content": _text(
            f"Task #{task.id} priority updated to {task.priority.label} ({int(task.priority)})"
        ),
    }


@register_tool(category=ToolCategory.TASKS)
def delete_task(task_id: int, hard_delete: bool = False) -> dict[str, Any]:
    """Delete a task; soft by default, permanently with hard_delete.

    Args:
        task_id: The task ID to delete
        hard_delete: Whether to permanently delete the task and its links
    """
    service = _board().service
    if hard_delete:
        service.hard_delete_task(task_id)
        outcome = "permanently deleted"
    else:
        service.soft_delete_task(task_id)
        outcome = "deleted (can be restored)"
    return {
        "task_id": task_id,
        "hard_delete": hard_delete,
        "content": _text(f"Task {task_id} {outcome}"),
    }


@register_tool(category=ToolCategory.TASKS)
def restore_task(task_id: int) -> dict[str, Any]:
    """Restore a soft-deleted task.

    Args:
        task_id: The task ID to restore
    """
    service = _board().service
    service.restore_task(task_id)
    task = service.get_task(task_id)
    return {"task": task.to_dict(), "content": _text(f"Task {task_id} restored")}


# ---- links ----


@register_tool(category=ToolCategory.LINKS)
def link_tasks(from_task_id: int, to_task_id: int, link_type: str) -> dict[str, Any]:
    """Create a directed link between two tasks.

    Args:
        from_task_id: The ID of the source task
        to_task_id: The ID of the target task
        link_type: Type of link (blocks, blocked_by, related, depends_on)
    """
    link = _board().service.link_tasks(from_task_id, to_task_id, link_type)
    return {
        "link": link.to_dict(),
        "content": _text(
            f"Linked task {from_task_id} {link.link_type.value} task {to_task_id}"
        ),
    }


@register_tool(category=ToolCategory.LINKS)
def unlink_tasks(from_task_id: int, to_task_id: int, link_type: str) -> dict[str, Any]:
    """Remove a link between two tasks.

    Args:
        from_task_id: The ID of the source task
        to_task_id: The ID of the target task
        link_type: Type of link to remove (blocks, blocked_by, related, depends_on)
    """
    _board().service.unlink_tasks(from_task_id, to_task_id, link_type)
    kind = parse_link_type(link_type).value
    return {
        "from_task_id": from_task_id,
        "to_task_id": to_task_id,
        "link_type": kind,
        "content": _text(f"Unlinked task {from_task_id} {kind} task {to_task_id}"),
    }


@register_tool(category=ToolCategory.LINKS)
def get_task_links(task_id: int) -> dict[str, Any]:
    """Get every link touching a task, newest first.

    Args:
        task_id: The task ID to get links for
    """
    links = _board().service.get_task_links(task_id)
    if not links:
        text = f"Task {task_id} has no links"
    else:
        text = f"Task {task_id} links:\n" + "\n".join(
            f"• {link.describe(task_id)}" for link in links
        )
    return {"links": [link.to_dict() for link in links], "content": _text(text)}


# ---- search ----


@register_tool(category=ToolCategory.SEARCH)
def search_tasks(query: str, board_id: int | None = None) -> dict[str, Any]:
    """Fuzzy-search active task titles, best match first.

    Args:
        query: Text to look for in task titles
        board_id: The board ID (defaults to the current board scope)
    """
    handle = _board()
    tasks = handle.service.search_tasks(_scope(handle, board_id), query)
    if not tasks:
        lines = [f"No tasks found matching '{query}'"]
    else:
        lines = [f"Found {len(tasks)} task(s) matching '{query}':"]
        lines.extend(_bullet(t) for t in tasks)
    return {"tasks": [t.to_dict() for t in tasks], "content": _text("\n".join(lines))}


@register_tool(category=ToolCategory.SEARCH)
def resolve_task(identifier: str, board_id: int | None = None) -> dict[str, Any]:
    """Resolve a task ID or a fragment of its title to exactly one task.

    Args:
        identifier: Task ID or text matching the task title
        board_id: The board ID (defaults to the current board scope)
    """
    handle = _board()
    task = handle.service.resolve_task(_scope(handle, board_id), identifier)
    return {
        "task": task.to_dict(),
        "content": _text(f"#{task.id} [{task.status.value}] {task.title}"),
    }


# ---- boards ----


@register_tool(category=ToolCategory.BOARDS)
def list_boards() -> dict[str, Any]:
    """List all available boards."""
    boards = _registry().list_boards()
    if not boards:
        return {"boards": [], "content": _text("No boards found")}
    lines = ["Available boards:"]
    lines.extend(f"• {b.name}{' (current)' if b.is_current else ''}" for b in boards)
    return {"boards": [b.to_dict() for b in boards], "content": _text(*lines)}


@register_tool(category=ToolCategory.BOARDS)
def change_board(board_name: str) -> dict[str, Any]:
    """Switch to another existing board.

    Args:
        board_name: The name of the board to switch to
    """
    registry = _registry()
    board = registry.get_board(board_name)
    registry.set_current_board(board_name)

    old_handle = get_context_board_handle()
    if old_handle is not None:
        new_handle = registry.open_board(board_name, board_id=old_handle.board_id)
    else:
        new_handle = registry.open_board(board_name)
    set_context_board_handle(new_handle)
    if old_handle is not None:
        old_handle.close()

    return {"board": board.name, "content": _text(f"Changed to board: {board_name}")}
