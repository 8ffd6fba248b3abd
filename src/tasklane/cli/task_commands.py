"""Task and link commands.

Task references accept a numeric ID or any fragment of the title; see
``tasklane.tasks.search.resolve_task``.
"""

from typing import TYPE_CHECKING

from tasklane.cli.board_view import render_task_detail, render_task_table
from tasklane.cli.commands import Command, CommandCategory
from tasklane.errors import ValidationError
from tasklane.tasks.models import Task, parse_link_type, parse_status
from tasklane.tasks.search import parse_task_id

if TYPE_CHECKING:
    from tasklane.cli.app import TasklaneApp


def resolve(app: "TasklaneApp", reference: str) -> Task:
    """Resolve a task reference on the open board."""
    handle = app.board
    return handle.service.resolve_task(handle.board_id, reference)


def resolve_id(app: "TasklaneApp", reference: str) -> int:
    """Numeric references are taken as-is; anything else is resolved."""
    task_id = parse_task_id(reference)
    if task_id is not None:
        return task_id
    return resolve(app, reference).id


def priority_arg(value: str) -> int | str:
    """Priority from the command line: digits become a level, anything else a name."""
    level = parse_task_id(value)
    return value if level is None else level


def _priority_suffix(task: Task) -> str:
    return f" [{task.priority.label}]" if task.priority else ""


class AddCommand(Command):
    """Create a task."""

    def __init__(self) -> None:
        super().__init__(
            name="add",
            description="Create a task in the todo column",
            aliases=["new"],
            usage='add <title> [--description TEXT] [--priority LEVEL]',
            examples=[
                'add "Fix login bug"',
                'add "Write tests" --priority high --description "cover the resolver"',
            ],
            category=CommandCategory.TASKS,
        )

    async def execute(self, args, app) -> None:
        parsed = self.parse_args(args)
        if not parsed.positional:
            raise self.usage_error()

        handle = app.board
        task = handle.service.create_task(
            handle.board_id,
            parsed.text,
            parsed.get_option("description", ""),
            parsed.get_option("priority", 0, priority_arg),
        )
        app.print_success(f"Created task #{task.id}{_priority_suffix(task)}: {task.title}")


class ListCommand(Command):
    """List active tasks."""

    def __init__(self) -> None:
        super().__init__(
            name="list",
            description="List active tasks, highest priority first",
            aliases=["ls"],
            usage="list [--status STATUS]",
            examples=["list", "list --status doing"],
            category=CommandCategory.TASKS,
        )

    async def execute(self, args, app) -> None:
        parsed = self.parse_args(args)
        handle = app.board
        status = parsed.get_option("status")
        if status is not None:
            tasks = handle.service.list_tasks_by_status(handle.board_id, status)
        else:
            tasks = handle.service.list_tasks(handle.board_id)

        if not tasks:
            app.print_message("No tasks found in current board")
            return
        app.print_rich(render_task_table(tasks, title=f"Board: {handle.name}"))


class GetCommand(Command):
    """Show one task."""

    def __init__(self) -> None:
        super().__init__(
            name="get",
            description="Show a task with its links",
            aliases=["show"],
            usage="get <task>",
            examples=["get 3", 'get "login bug"'],
            category=CommandCategory.TASKS,
        )

    async def execute(self, args, app) -> None:
        parsed = self.parse_args(args)
        if not parsed.positional:
            raise self.usage_error()

        task = resolve(app, parsed.text)
        links = app.board.service.get_task_links(task.id)
        app.print_rich(render_task_detail(task, links))


class MoveCommand(Command):
    """Change a task's column."""

    def __init__(self) -> None:
        super().__init__(
            name="move",
            description="Move a task to todo, doing or done",
            aliases=["mv"],
            usage="move <task> <status>",
            examples=["move 3 doing", 'move "login bug" done'],
            category=CommandCategory.TASKS,
        )

    async def execute(self, args, app) -> None:
        parsed = self.parse_args(args)
        if len(parsed.positional) < 2:
            raise self.usage_error()

        status = parse_status(parsed.positional[-1])
        task = resolve(app, " ".join(parsed.positional[:-1]))
        app.board.service.update_task_status(task.id, status)
        app.print_success(f"Moved task #{task.id} to {status.value}")


class UpdateCommand(Command):
    """Edit a task's title and/or description."""

    def __init__(self) -> None:
        super().__init__(
            name="update",
            description="Change a task's title and/or description",
            aliases=["edit"],
            usage="update <task> [--title TEXT] [--description TEXT]",
            examples=['update 3 --title "Fix OAuth login"', 'update 3 --description ""'],
            category=CommandCategory.TASKS,
        )

    async def execute(self, args, app) -> None:
        parsed = self.parse_args(args)
        title = parsed.get_option("title")
        description = parsed.get_option("description")
        if not parsed.positional or (title is None and description is None):
            raise self.usage_error()

        task = resolve(app, parsed.text)
        app.board.service.update_task(
            task.id,
            task.title if title is None else title,
            task.description if description is None else description,
        )
        app.print_success(f"Updated task #{task.id}")


class PriorityCommand(Command):
    """Change a task's priority."""

    def __init__(self) -> None:
        super().__init__(
            name="priority",
            description="Set a task's priority (none, low, medium, high, critical or 0-4)",
            aliases=["prio"],
            usage="priority <task> <level>",
            examples=["priority 3 high", "priority 3 4"],
            category=CommandCategory.TASKS,
        )

    async def execute(self, args, app) -> None:
        parsed = self.parse_args(args)
        if len(parsed.positional) < 2:
            raise self.usage_error()

        task = resolve(app, " ".join(parsed.positional[:-1]))
        service = app.board.service
        service.update_task_priority(task.id, priority_arg(parsed.positional[-1]))
        updated = service.get_task(task.id)
        app.print_success(
            f"Task #{updated.id} priority updated to {updated.priority.label} ({int(updated.priority)})"
        )


class DeleteCommand(Command):
    """Soft- or hard-delete a task."""

    def __init__(self) -> None:
        super().__init__(
            name="delete",
            description="Delete a task (restorable unless --hard)",
            aliases=["rm"],
            usage="delete <task> [--hard]",
            examples=["delete 3", "delete 3 --hard"],
            category=CommandCategory.TASKS,
            flags=("hard",),
        )

    async def execute(self, args, app) -> None:
        parsed = self.parse_args(args)
        if not parsed.positional:
            raise self.usage_error()

        service = app.board.service
        if parsed.has_flag("hard"):
            task_id = resolve_id(app, parsed.text)
            service.hard_delete_task(task_id)
            app.print_success(f"Task {task_id} permanently deleted")
        else:
            task = resolve(app, parsed.text)
            service.soft_delete_task(task.id)
            app.print_success(f"Task {task.id} deleted (can be restored)")


class RestoreCommand(Command):
    """Restore a soft-deleted task."""

    def __init__(self) -> None:
        super().__init__(
            name="restore",
            description="Restore a soft-deleted task by ID",
            usage="restore <task-id>",
            examples=["restore 3"],
            category=CommandCategory.TASKS,
        )

    async def execute(self, args, app) -> None:
        parsed = self.parse_args(args)
        if len(parsed.positional) != 1:
            raise self.usage_error()

        task_id = parse_task_id(parsed.positional[0])
        if task_id is None:
            raise ValidationError(
                f"restore needs a numeric task ID, got '{parsed.positional[0]}'",
                details={"field": "task_id"},
            )
        app.board.service.restore_task(task_id)
        app.print_success(f"Task {task_id} restored")


class LinkCommand(Command):
    """Link two tasks."""

    def __init__(self) -> None:
        super().__init__(
            name="link",
            description="Link two tasks (blocks, blocked_by, related, depends_on)",
            usage="link <from-task> <type> <to-task>",
            examples=["link 2 depends_on 1", 'link "write tests" blocks "release"'],
            category=CommandCategory.LINKS,
        )

    async def execute(self, args, app) -> None:
        parsed = self.parse_args(args)
        if len(parsed.positional) != 3:
            raise self.usage_error()

        source, kind, target = parsed.positional
        link_type = parse_link_type(kind)
        from_id = resolve(app, source).id
        to_id = resolve(app, target).id
        app.board.service.link_tasks(from_id, to_id, link_type)
        app.print_success(f"Linked task {from_id} {link_type.value} task {to_id}")


class UnlinkCommand(Command):
    """Remove a link."""

    def __init__(self) -> None:
        super().__init__(
            name="unlink",
            description="Remove a link between two tasks",
            usage="unlink <from-task> <type> <to-task>",
            examples=["unlink 2 depends_on 1"],
            category=CommandCategory.LINKS,
        )

    async def execute(self, args, app) -> None:
        parsed = self.parse_args(args)
        if len(parsed.positional) != 3:
            raise self.usage_error()

        source, kind, target = parsed.positional
        link_type = parse_link_type(kind)
        from_id = resolve_id(app, source)
        to_id = resolve_id(app, target)
        app.board.service.unlink_tasks(from_id, to_id, link_type)
        app.print_success(f"Unlinked task {from_id} {link_type.value} task {to_id}")


class LinksCommand(Command):
    """Show a task's links."""

    def __init__(self) -> None:
        super().__init__(
            name="links",
            description="Show every link touching a task",
            usage="links <task>",
            examples=["links 1"],
            category=CommandCategory.LINKS,
        )

    async def execute(self, args, app) -> None:
        parsed = self.parse_args(args)
        if not parsed.positional:
            raise self.usage_error()

        task_id = resolve_id(app, parsed.text)
        links = app.board.service.get_task_links(task_id)
        if not links:
            app.print_message(f"Task {task_id} has no links")
            return
        lines = [f"Task {task_id} links:"]
        lines.extend(f"• {link.describe(task_id)}" for link in links)
        app.print_message("\n".join(lines))


class SearchCommand(Command):
    """Fuzzy title search."""

    def __init__(self) -> None:
        super().__init__(
            name="search",
            description="Search active tasks by title, best match first",
            aliases=["find"],
            usage="search <query>",
            examples=["search auth", "search login bug"],
            category=CommandCategory.TASKS,
        )

    async def execute(self, args, app) -> None:
        parsed = self.parse_args(args)
        if not parsed.positional:
            raise self.usage_error()

        handle = app.board
        tasks = handle.service.search_tasks(handle.board_id, parsed.text)
        if not tasks:
            app.print_message(f"No tasks found matching '{parsed.text}'")
            return
        app.print_rich(render_task_table(tasks, title=f"Matches for '{parsed.text}'"))


TASK_COMMANDS: tuple[type[Command], ...] = (
    AddCommand,
    ListCommand,
    GetCommand,
    MoveCommand,
    UpdateCommand,
    PriorityCommand,
    DeleteCommand,
    RestoreCommand,
    LinkCommand,
    UnlinkCommand,
    LinksCommand,
    SearchCommand,
)
