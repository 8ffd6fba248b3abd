"""SQLite gateway for board databases.

Owns the schema (boards, tasks, task_links), applies additive migrations
and exposes a small execute/query surface plus a transaction scope to the
task core. One connection per opened board, usable from the thread that
serves tool calls; SQLite serializes writers.

Example:
    >>> db = Database.open(Path("~/.tasklane/tasklane.db").expanduser())
    >>> rows = db.query("SELECT id, title FROM tasks WHERE board_id = ?", (1,))
    >>> with db.transaction():
    ...     db.execute("DELETE FROM task_links WHERE from_task_id = ?", (3,))
"""

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterator, Sequence

from tasklane.errors import StorageError
from tasklane.logging import Loggers

logger = Loggers.storage()

MEMORY_PATH = ":memory:"

DEFAULT_BOARD_ID = 1

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS boards (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tasks (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        board_id INTEGER NOT NULL,
        title TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        status TEXT NOT NULL DEFAULT 'todo',
        priority INTEGER NOT NULL DEFAULT 0,
        deleted_at TEXT,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS task_links (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        from_task_id INTEGER NOT NULL REFERENCES tasks(id),
        to_task_id INTEGER NOT NULL REFERENCES tasks(id),
        link_type TEXT NOT NULL,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        CHECK (from_task_id != to_task_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_tasks_board_id ON tasks(board_id)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status)",
    "CREATE INDEX IF NOT EXISTS idx_task_links_from ON task_links(from_task_id)",
    "CREATE INDEX IF NOT EXISTS idx_task_links_to ON task_links(to_task_id)",
    """
    CREATE UNIQUE INDEX IF NOT EXISTS idx_task_links_unique
    ON task_links(from_task_id, to_task_id, link_type)
    """,
)

# Columns added after the first release, in the order they were introduced.
_MIGRATIONS: dict[str, tuple[tuple[str, str], ...]] = {
    "tasks": (
        ("priority", "INTEGER NOT NULL DEFAULT 0"),
        ("deleted_at", "TEXT"),
    ),
}


def format_timestamp(value: datetime) -> str:
    """Format a timestamp the way it is stored (UTC ISO-8601, microseconds)."""
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a stored timestamp.

    Rows written by SQLite's CURRENT_TIMESTAMP default carry no offset and
    are UTC.
    """
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Database:
    """A single SQLite connection with the tasklane schema applied.

    Use ``Database.open(path)`` for a board file and ``Database.memory()``
    for throwaway stores. Statements run in autocommit mode unless wrapped
    in ``transaction()``.
    """

    def __init__(self, conn: sqlite3.Connection, path: str) -> None:
        self._conn = conn
        self._path = path
        self._last_timestamp: datetime | None = None

    # ---- lifecycle ----

    @classmethod
    def open(cls, path: str | Path) -> "Database":
        """Open (creating if needed) a board database and bring its schema up to date.

        Raises:
            StorageError: If the directory cannot be created, the file cannot
                be opened, or the schema cannot be applied.
        """
        db_path = Path(path)
        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(
                f"failed to create database directory {db_path.parent}: {e}",
                details={"operation": "open", "path": str(db_path)},
            ) from e

        db = cls(cls._connect(str(db_path)), str(db_path))
        try:
            db.execute("PRAGMA journal_mode = WAL", operation="enable WAL")
            db.initialize()
            db.migrate()
        except StorageError:
            db.close()
            raise
        logger.debug("database_opened", path=str(db_path))
        return db

    @classmethod
    def memory(cls) -> "Database":
        """Open an in-memory database with the schema applied."""
        db = cls(cls._connect(MEMORY_PATH), MEMORY_PATH)
        db.initialize()
        db.migrate()
        return db

    @staticmethod
    def _connect(target: str) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(
                target, timeout=30.0, isolation_level=None, check_same_thread=False
            )
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error as e:
            raise StorageError(
                f"failed to open database {target}: {e}",
                details={"operation": "open", "path": target},
            ) from e
        return conn

    def close(self) -> None:
        """Close the underlying connection."""
        self._conn.close()

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def path(self) -> str:
        """Database file path (``:memory:`` for in-memory stores)."""
        return self._path

    # ---- schema ----

    def initialize(self) -> None:
        """Create tables, indexes and the default board row if missing.

        Safe to call on an already-initialized store.
        """
        with self.transaction():
            for statement in _SCHEMA:
                self.execute(statement, operation="initialize schema")
            self.execute(
                "INSERT OR IGNORE INTO boards (id, name, description) VALUES (?, ?, ?)",
                (DEFAULT_BOARD_ID, "Default Board", "Default kanban board"),
                operation="create default board",
            )

    def table_columns(self, table: str) -> set[str]:
        """Names of the columns currently present on ``table``."""
        rows = self.query(f"PRAGMA table_info({table})", operation="inspect schema")
        return {row["name"] for row in rows}

    def migrate(self) -> list[str]:
        """Add columns introduced by later versions.

        A no-op when every column already exists.

        Returns:
            Names of the columns that were added, as ``table.column``.
        """
        added: list[str] = []
        with self.transaction():
            for table, columns in _MIGRATIONS.items():
                existing = self.table_columns(table)
                for name, decl in columns:
                    if name in existing:
                        continue
                    self.execute(
                        f"ALTER TABLE {table} ADD COLUMN {name} {decl}",
                        operation="migrate schema",
                    )
                    added.append(f"{table}.{name}")
                    logger.info("schema_column_added", table=table, column=name)
        return added

    # ---- statements ----

    def execute(
        self,
        sql: str,
        params: Sequence[Any] = (),
        operation: str = "execute statement",
    ) -> sqlite3.Cursor:
        """Run one statement and return its cursor.

        Raises:
            StorageError: Wrapping any sqlite3 failure or an integer parameter
                too large for SQLite, naming ``operation``.
        """
        try:
            return self._conn.execute(sql, tuple(params))
        except (sqlite3.Error, OverflowError) as e:
            raise StorageError(
                f"failed to {operation}: {e}",
                details={"operation": operation},
            ) from e

    def query(
        self,
        sql: str,
        params: Sequence[Any] = (),
        operation: str = "run query",
    ) -> list[sqlite3.Row]:
        """Run a SELECT and fetch every row."""
        cursor = self.execute(sql, params, operation=operation)
        try:
            return cursor.fetchall()
        except sqlite3.Error as e:
            raise StorageError(
                f"failed to {operation}: {e}",
                details={"operation": operation},
            ) from e

    def query_one(
        self,
        sql: str,
        params: Sequence[Any] = (),
        operation: str = "run query",
    ) -> sqlite3.Row | None:
        """Run a SELECT and fetch the first row, or None."""
        cursor = self.execute(sql, params, operation=operation)
        try:
            return cursor.fetchone()
        except sqlite3.Error as e:
            raise StorageError(
                f"failed to {operation}: {e}",
                details={"operation": operation},
            ) from e

    @contextmanager
    def transaction(self) -> Iterator["Database"]:
        """Run the enclosed statements as one atomic unit.

        Nested use joins the outer transaction.
        """
        if self._conn.in_transaction:
            yield self
            return

        self.execute("BEGIN IMMEDIATE", operation="begin transaction")
        try:
            yield self
        except BaseException:
            self._conn.rollback()
            raise
        try:
            self._conn.commit()
        except sqlite3.Error as e:
            raise StorageError(
                f"failed to commit transaction: {e}",
                details={"operation": "commit transaction"},
            ) from e

    # ---- clock ----

    def now(self) -> str:
        """Current UTC timestamp, strictly increasing for this handle.

        Two rows written within the same clock tick still get distinct,
        correctly ordered timestamps.
        """
        current = datetime.now(timezone.utc)
        if self._last_timestamp is not None and current <= self._last_timestamp:
            current = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = current
        return format_timestamp(current)
