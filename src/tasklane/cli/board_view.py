"""Rich renderables for boards, task lists and task details."""

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from tasklane.constants import CARD_TITLE_LENGTH, truncate
from tasklane.tasks.models import Priority, Task, TaskLink, TaskStatus

PRIORITY_STYLES = {
    Priority.NONE: "dim",
    Priority.LOW: "blue",
    Priority.MEDIUM: "yellow",
    Priority.HIGH: "red",
    Priority.CRITICAL: "bold red",
}

STATUS_STYLES = {
    TaskStatus.TODO: "cyan",
    TaskStatus.DOING: "yellow",
    TaskStatus.DONE: "green",
}


def task_line(task: Task, max_title: int | None = None) -> Text:
    """One-line card: ``#id [priority] title``."""
    line = Text()
    line.append(f"#{task.id}", style="bold")
    if task.priority:
        line.append(f" [{task.priority.label}]", style=PRIORITY_STYLES[task.priority])
    title = truncate(task.title, max_title) if max_title else task.title
    line.append(f" {title}")
    return line


def render_board(name: str, tasks: list[Task], stats: dict[str, int]) -> Panel:
    """Three-column kanban view of a board's active tasks."""
    table = Table(expand=True, show_lines=False, padding=(0, 1))
    columns: dict[TaskStatus, list[Text]] = {status: [] for status in TaskStatus}

    for status in TaskStatus:
        table.add_column(
            f"{status.value.upper()} ({stats.get(status.value, 0)})",
            header_style=f"bold {STATUS_STYLES[status]}",
            ratio=1,
        )
    for task in tasks:
        columns[task.status].append(task_line(task, CARD_TITLE_LENGTH))

    table.add_row(*(Group(*cards) if cards else Text("-", style="dim") for cards in columns.values()))

    return Panel(
        table,
        title=Text(name, style="bold"),
        subtitle=f"{stats.get('total', 0)} active task(s)",
        border_style="cyan",
    )


def render_task_table(tasks: list[Task], title: str | None = None) -> Table:
    """Tabular listing used by ``list`` and ``search``."""
    table = Table(title=Text(title) if title else None, show_lines=False, padding=(0, 1))
    table.add_column("ID", style="bold", no_wrap=True, justify="right")
    table.add_column("Status", no_wrap=True)
    table.add_column("Priority", no_wrap=True)
    table.add_column("Title")

    for task in tasks:
        table.add_row(
            str(task.id),
            Text(task.status.value, style=STATUS_STYLES[task.status]),
            Text(task.priority.label, style=PRIORITY_STYLES[task.priority]),
            Text(task.title),
        )
    return table


def render_task_detail(task: Task, links: list[TaskLink]) -> Panel:
    """Full view of one task, including its links."""
    table = Table(show_header=False, box=None, padding=(0, 2, 0, 0))
    table.add_column("Key", style="bold cyan", no_wrap=True)
    table.add_column("Value")

    table.add_row("Status", Text(task.status.value, style=STATUS_STYLES[task.status]))
    table.add_row(
        "Priority",
        Text(f"{task.priority.label} ({int(task.priority)})", style=PRIORITY_STYLES[task.priority]),
    )
    table.add_row("Created", task.created_at.strftime("%Y-%m-%d %H:%M:%S"))
    table.add_row("Updated", task.updated_at.strftime("%Y-%m-%d %H:%M:%S"))
    if task.description:
        table.add_row("Description", Text(task.description))
    if links:
        table.add_row("Links", Text("\n".join(link.describe(task.id) for link in links)))

    return Panel(
        table,
        title=Text(f"#{task.id} {task.title}", style="bold"),
        border_style="cyan",
    )
