"""Task and link operations over a board database.

Every read hides soft-deleted rows. Every mutation except restore and hard
delete acts on active rows only, and refreshes ``updated_at``.

Example:
    >>> service = TaskService(Database.memory())
    >>> task = service.create_task(1, "Fix login bug", priority="high")
    >>> service.update_task_status(task.id, "doing")
    >>> [t.title for t in service.list_tasks(1)]
    ['Fix login bug']
"""

from tasklane.errors import ConflictError, NotFoundError, StorageError, ValidationError
from tasklane.logging import Loggers
from tasklane.persistence.database import Database
from tasklane.tasks.models import (
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
from tasklane.tasks.search import rank_tasks, resolve_task

logger = Loggers.tasks()

_TASK_COLUMNS = (
    "id, board_id, title, description, status, priority, "
    "deleted_at, created_at, updated_at"
)
_ACTIVE_ORDER = "ORDER BY priority DESC, created_at ASC"


class TaskService:
    """Task and link operations for one board database.

    The service holds no state besides the database handle; each call runs
    its own statements against it.
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    @property
    def database(self) -> Database:
        return self._db

    # ---- helpers ----

    def _require_active(self, task_id: int, operation: str) -> None:
        row = self._db.query_one(
            "SELECT 1 FROM tasks WHERE id = ? AND deleted_at IS NULL",
            (task_id,),
            operation=operation,
        )
        if row is None:
            raise NotFoundError(
                f"task with id {task_id} not found",
                details={"operation": operation, "task_id": task_id},
            )

    def _update_active(self, task_id: int, assignments: str, params: tuple, operation: str) -> None:
        cursor = self._db.execute(
            f"UPDATE tasks SET {assignments}, updated_at = ? "
            "WHERE id = ? AND deleted_at IS NULL",
            (*params, self._db.now(), task_id),
            operation=operation,
        )
        if cursor.rowcount == 0:
            raise NotFoundError(
                f"task with id {task_id} not found",
                details={"operation": operation, "task_id": task_id},
            )

    # ---- tasks ----

    def create_task(
        self,
        board_id: int,
        title: str,
        description: str = "",
        priority: Priority | int | float | str = Priority.NONE,
    ) -> Task:
        """Create an active ``todo`` task and return it as stored.

        Raises:
            ValidationError: For a bad title or priority.
        """
        title = validate_title(title)
        level = parse_priority(priority)
        now = self._db.now()

        cursor = self._db.execute(
            """
            INSERT INTO tasks (board_id, title, description, status, priority, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (board_id, title, description or "", TaskStatus.TODO.value, int(level), now, now),
            operation="create task",
        )
        task_id = cursor.lastrowid
        if task_id is None:
            raise StorageError(
                "failed to create task: SQLite did not return a row id",
                details={"operation": "create task"},
            )
        logger.info("task_created", task_id=task_id, board_id=board_id, priority=level.label)
        return self.get_task(task_id)

    def get_task(self, task_id: int) -> Task:
        """Fetch an active task.

        Raises:
            NotFoundError: If the task never existed, was hard-deleted or is soft-deleted.
        """
        row = self._db.query_one(
            f"SELECT {_TASK_COLUMNS} FROM tasks WHERE id = ? AND deleted_at IS NULL",
            (task_id,),
            operation="get task",
        )
        if row is None:
            raise NotFoundError(
                f"task with id {task_id} not found",
                details={"operation": "get task", "task_id": task_id},
            )
        return Task.from_row(row)

    def list_tasks(self, board_id: int) -> list[Task]:
        """Active tasks of a board, highest priority first, then oldest first."""
        rows = self._db.query(
            f"SELECT {_TASK_COLUMNS} FROM tasks "
            f"WHERE board_id = ? AND deleted_at IS NULL {_ACTIVE_ORDER}",
            (board_id,),
            operation="list tasks",
        )
        return [Task.from_row(row) for row in rows]

    def list_tasks_by_status(self, board_id: int, status: TaskStatus | str) -> list[Task]:
        """Active tasks of a board in one column, same ordering as list_tasks."""
        status = parse_status(status)
        rows = self._db.query(
            f"SELECT {_TASK_COLUMNS} FROM tasks "
            f"WHERE board_id = ? AND status = ? AND deleted_at IS NULL {_ACTIVE_ORDER}",
            (board_id, status.value),
            operation="list tasks by status",
        )
        return [Task.from_row(row) for row in rows]

    def update_task_status(self, task_id: int, status: TaskStatus | str) -> None:
        """Move a task to any column (no transition rules, no-ops allowed)."""
        status = parse_status(status)
        self._update_active(task_id, "status = ?", (status.value,), "update task status")
        logger.info("task_status_updated", task_id=task_id, status=status.value)

    def update_task(self, task_id: int, title: str, description: str) -> None:
        """Replace title and description together."""
        title = validate_title(title)
        self._update_active(
            task_id,
            "title = ?, description = ?",
            (title, description or ""),
            "update task",
        )
        logger.info("task_updated", task_id=task_id)

    def update_task_priority(self, task_id: int, priority: Priority | int | float | str) -> None:
        """Change the priority of an active task."""
        level = parse_priority(priority)
        self._update_active(task_id, "priority = ?", (int(level),), "update task priority")
        logger.info("task_priority_updated", task_id=task_id, priority=level.label)

    def soft_delete_task(self, task_id: int) -> None:
        """Hide a task; links are left untouched.

        Raises:
            ConflictError: If the task does not exist or is already deleted.
        """
        now = self._db.now()
        cursor = self._db.execute(
            "UPDATE tasks SET deleted_at = ?, updated_at = ? WHERE id = ? AND deleted_at IS NULL",
            (now, now, task_id),
            operation="soft delete task",
        )
        if cursor.rowcount == 0:
            raise ConflictError(
                f"task {task_id} not found or already deleted",
                details={"operation": "soft delete task", "task_id": task_id},
            )
        logger.info("task_soft_deleted", task_id=task_id)

    def restore_task(self, task_id: int) -> None:
        """Bring back a soft-deleted task.

        Raises:
            ConflictError: If the task does not exist or is not deleted.
        """
        cursor = self._db.execute(
            "UPDATE tasks SET deleted_at = NULL, updated_at = ? "
            "WHERE id = ? AND deleted_at IS NOT NULL",
            (self._db.now(), task_id),
            operation="restore task",
        )
        if cursor.rowcount == 0:
            raise ConflictError(
                f"task {task_id} not found or not deleted",
                details={"operation": "restore task", "task_id": task_id},
            )
        logger.info("task_restored", task_id=task_id)

    def hard_delete_task(self, task_id: int) -> None:
        """Permanently remove a task (active or soft-deleted) and every link touching it.

        Raises:
            NotFoundError: If no row with this id exists.
        """
        with self._db.transaction():
            links = self._db.execute(
                "DELETE FROM task_links WHERE from_task_id = ? OR to_task_id = ?",
                (task_id, task_id),
                operation="delete task links",
            )
            cursor = self._db.execute(
                "DELETE FROM tasks WHERE id = ?",
                (task_id,),
                operation="hard delete task",
            )
            if cursor.rowcount == 0:
                raise NotFoundError(
                    f"task {task_id} not found",
                    details={"operation": "hard delete task", "task_id": task_id},
                )
        logger.info("task_hard_deleted", task_id=task_id, links_removed=links.rowcount)

    def search_tasks(self, board_id: int, query: str) -> list[Task]:
        """Active tasks whose titles fuzzily match ``query``, best match first.

        Raises:
            ValidationError: If the query is empty.
        """
        ranked = rank_tasks(self.list_tasks(board_id), query)
        return [task for task, _ in ranked]

    def resolve_task(self, board_id: int, identifier: str) -> Task:
        """Resolve an ID or free-text reference to exactly one task."""
        return resolve_task(self, board_id, identifier)

    def board_stats(self, board_id: int) -> dict[str, int]:
        """Active task counts per status, plus ``total``."""
        counts = {status.value: 0 for status in TaskStatus}
        rows = self._db.query(
            "SELECT status, COUNT(*) AS n FROM tasks "
            "WHERE board_id = ? AND deleted_at IS NULL GROUP BY status",
            (board_id,),
            operation="count tasks",
        )
        for row in rows:
            if row["status"] in counts:
                counts[row["status"]] = row["n"]
        counts["total"] = sum(counts.values())
        return counts

    # ---- links ----

    def link_tasks(self, from_task_id: int, to_task_id: int, link_type: LinkType | str) -> TaskLink:
        """Create a directed, typed link between two active tasks.

        Raises:
            ValidationError: Unknown link type, or a task linked to itself.
            NotFoundError: Either endpoint is not an active task.
            ConflictError: The same (from, to, type) link already exists.
        """
        link_type = parse_link_type(link_type)
        if from_task_id == to_task_id:
            raise ValidationError(
                "cannot link task to itself",
                details={"operation": "link tasks", "task_id": from_task_id},
            )
        self._require_active(from_task_id, "link tasks")
        self._require_active(to_task_id, "link tasks")

        existing = self._db.query_one(
            "SELECT id FROM task_links WHERE from_task_id = ? AND to_task_id = ? AND link_type = ?",
            (from_task_id, to_task_id, link_type.value),
            operation="link tasks",
        )
        if existing is not None:
            raise ConflictError(
                f"task {from_task_id} already {link_type.value} task {to_task_id}",
                details={
                    "operation": "link tasks",
                    "from_task_id": from_task_id,
                    "to_task_id": to_task_id,
                    "link_type": link_type.value,
                },
            )

        cursor = self._db.execute(
            "INSERT INTO task_links (from_task_id, to_task_id, link_type, created_at) "
            "VALUES (?, ?, ?, ?)",
            (from_task_id, to_task_id, link_type.value, self._db.now()),
            operation="link tasks",
        )
        row = self._db.query_one(
            "SELECT id, from_task_id, to_task_id, link_type, created_at FROM task_links WHERE id = ?",
            (cursor.lastrowid,),
            operation="link tasks",
        )
        logger.info(
            "tasks_linked",
            from_task_id=from_task_id,
            to_task_id=to_task_id,
            link_type=link_type.value,
        )
        return TaskLink.from_row(row)

    def unlink_tasks(self, from_task_id: int, to_task_id: int, link_type: LinkType | str) -> None:
        """Delete exactly the matching link.

        Raises:
            NotFoundError: If no such link exists.
        """
        link_type = parse_link_type(link_type)
        cursor = self._db.execute(
            "DELETE FROM task_links WHERE from_task_id = ? AND to_task_id = ? AND link_type = ?",
            (from_task_id, to_task_id, link_type.value),
            operation="unlink tasks",
        )
        if cursor.rowcount == 0:
            raise NotFoundError(
                f"no link found between tasks {from_task_id} and {to_task_id} "
                f"with type {link_type.value}",
                details={
                    "operation": "unlink tasks",
                    "from_task_id": from_task_id,
                    "to_task_id": to_task_id,
                    "link_type": link_type.value,
                },
            )
        logger.info(
            "tasks_unlinked",
            from_task_id=from_task_id,
            to_task_id=to_task_id,
            link_type=link_type.value,
        )

    def get_task_links(self, task_id: int) -> list[TaskLink]:
        """Links in either direction, most recent first."""
        rows = self._db.query(
            """
            SELECT id, from_task_id, to_task_id, link_type, created_at
            FROM task_links
            WHERE from_task_id = ? OR to_task_id = ?
            ORDER BY created_at DESC, id DESC
            """,
            (task_id, task_id),
            operation="get task links",
        )
        return [TaskLink.from_row(row) for row in rows]
