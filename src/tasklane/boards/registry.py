"""Board registry: board names, database files and the current board.

Layout under the workspace directory::

    <workspace>/tasklane.db          the "default" board
    <workspace>/boards/<safe>.db     every other board
    <workspace>/current-board        name of the current board (absent = default)
"""

from dataclasses import dataclass
from pathlib import Path

from tasklane.errors import ConflictError, NotFoundError, StorageError, ValidationError
from tasklane.logging import Loggers
from tasklane.persistence._utils import atomic_write_text, sanitize_filename
from tasklane.persistence.database import DEFAULT_BOARD_ID, Database
from tasklane.tasks.service import TaskService

logger = Loggers.boards()

DEFAULT_BOARD = "default"
CURRENT_BOARD_FILE = "current-board"
BOARDS_DIR = "boards"
DB_SUFFIX = ".db"


def sanitize_board_name(name: str) -> str:
    """Map a board name to a safe filename stem (``unnamed`` if nothing is left)."""
    return sanitize_filename(name, placeholder="unnamed")


def _is_default(name: str | None) -> bool:
    return not name or name == DEFAULT_BOARD


@dataclass
class Board:
    """A board known to the registry."""

    name: str
    path: Path
    description: str = ""
    is_current: bool = False

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "path": str(self.path),
            "description": self.description,
            "is_current": self.is_current,
        }


@dataclass
class BoardHandle:
    """An opened board: its database, a task service over it and the board scope."""

    name: str
    path: Path
    database: Database
    service: TaskService
    board_id: int = DEFAULT_BOARD_ID

    def close(self) -> None:
        self.database.close()

    def __enter__(self) -> "BoardHandle":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class BoardRegistry:
    """Maps board names to database files and tracks the current board.

    Example:
        >>> registry = BoardRegistry(Path("~/.tasklane").expanduser())
        >>> registry.set_current_board("work")
        >>> with registry.open_board() as handle:
        ...     handle.service.list_tasks(handle.board_id)
    """

    def __init__(self, config_dir: Path, default_db_name: str = "tasklane.db") -> None:
        self._config_dir = Path(config_dir)
        self._default_db_name = default_db_name

    @classmethod
    def from_settings(cls, settings) -> "BoardRegistry":
        """Build a registry rooted at ``settings.workspace_dir``."""
        return cls(settings.workspace_dir, default_db_name=settings.default_db_path.name)

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    @property
    def boards_dir(self) -> Path:
        return self._config_dir / BOARDS_DIR

    @property
    def _current_file(self) -> Path:
        return self._config_dir / CURRENT_BOARD_FILE

    # ---- naming ----

    def board_path(self, name: str | None) -> Path:
        """Database file for a board; ``default`` or empty maps to the default board."""
        if _is_default(name):
            return self._config_dir / self._default_db_name
        return self.boards_dir / f"{sanitize_board_name(name)}{DB_SUFFIX}"

    # ---- current board ----

    def current_board(self) -> str:
        """Name of the current board, ``default`` when none was chosen."""
        try:
            name = self._current_file.read_text().strip()
        except FileNotFoundError:
            return DEFAULT_BOARD
        except OSError as e:
            raise StorageError(
                f"failed to read current board: {e}",
                details={"operation": "read current board", "path": str(self._current_file)},
            ) from e
        return name or DEFAULT_BOARD

    def set_current_board(self, name: str | None) -> None:
        """Persist the current board; choosing ``default`` removes the marker file."""
        try:
            if _is_default(name):
                self._current_file.unlink(missing_ok=True)
            else:
                atomic_write_text(self._current_file, name)
        except OSError as e:
            raise StorageError(
                f"failed to set current board: {e}",
                details={"operation": "set current board", "board": name},
            ) from e
        logger.info("current_board_set", board=name or DEFAULT_BOARD)

    # ---- listing ----

    def list_boards(self) -> list[Board]:
        """Boards that have a database file, default first, the rest by name."""
        current_path = self.board_path(self.current_board())
        boards: list[Board] = []

        default_path = self.board_path(DEFAULT_BOARD)
        if default_path.exists():
            boards.append(
                Board(
                    name=DEFAULT_BOARD,
                    path=default_path,
                    description="Default kanban board",
                    is_current=default_path == current_path,
                )
            )

        if self.boards_dir.is_dir():
            try:
                entries = sorted(self.boards_dir.iterdir())
            except OSError as e:
                raise StorageError(
                    f"failed to read boards directory: {e}",
                    details={"operation": "list boards", "path": str(self.boards_dir)},
                ) from e
            for entry in entries:
                if not entry.is_file() or entry.suffix != DB_SUFFIX:
                    continue
                boards.append(
                    Board(name=entry.stem, path=entry, is_current=entry == current_path)
                )

        return boards

    def get_board(self, name: str) -> Board:
        """Look up an existing board.

        Raises:
            NotFoundError: If the board has no database file.
        """
        path = self.board_path(name)
        for board in self.list_boards():
            if board.path == path:
                return board
        raise NotFoundError(
            f"board '{name}' not found",
            details={"operation": "get board", "board": name},
        )

    # ---- lifecycle ----

    def create_board(self, name: str) -> Board:
        """Create a board's database file.

        Raises:
            ValidationError: If the name is empty.
            ConflictError: If the board already exists.
        """
        if not name or not name.strip():
            raise ValidationError("board name cannot be empty", details={"field": "name"})
        name = name.strip()

        path = self.board_path(name)
        if path.exists():
            raise ConflictError(
                f"board '{name}' already exists",
                details={"operation": "create board", "board": name, "path": str(path)},
            )

        Database.open(path).close()
        logger.info("board_created", board=name, path=str(path))
        return Board(
            name=DEFAULT_BOARD if _is_default(name) else path.stem,
            path=path,
            is_current=self.board_path(self.current_board()) == path,
        )

    def delete_board(self, name: str) -> None:
        """Delete a board's database file.

        When the deleted board is current, the default board becomes current.

        Raises:
            ValidationError: For the default board.
            NotFoundError: If the board does not exist.
        """
        if _is_default(name):
            raise ValidationError(
                "cannot delete default board",
                details={"operation": "delete board", "board": DEFAULT_BOARD},
            )

        path = self.board_path(name)
        if not path.exists():
            raise NotFoundError(
                f"board '{name}' does not exist",
                details={"operation": "delete board", "board": name},
            )

        if self.board_path(self.current_board()) == path:
            self.set_current_board(DEFAULT_BOARD)

        try:
            for sidecar in (path, path.with_name(path.name + "-wal"), path.with_name(path.name + "-shm")):
                sidecar.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(
                f"failed to delete board '{name}': {e}",
                details={"operation": "delete board", "board": name},
            ) from e
        logger.info("board_deleted", board=name)

    def detect_project_board(self, cwd: Path | None = None) -> str:
        """Suggest a board name for a project directory.

        Uses the repository name from the first remote URL in ``.git/config``,
        else the directory name, else ``default``.
        """
        cwd = Path(cwd) if cwd is not None else Path.cwd()

        git_config = cwd / ".git" / "config"
        if git_config.is_file():
            try:
                lines = git_config.read_text().splitlines()
            except OSError:
                lines = []
            for line in lines:
                line = line.strip()
                if "url = " not in line:
                    continue
                repo = line.rsplit("/", 1)[-1].rsplit(":", 1)[-1]
                repo = repo.removesuffix(".git")
                if repo:
                    return repo

        if cwd.name in ("", ".", "/"):
            return DEFAULT_BOARD
        return cwd.name

    def open_board(self, name: str | None = None, board_id: int = DEFAULT_BOARD_ID) -> BoardHandle:
        """Open a board (the current one when ``name`` is None), creating its file if needed."""
        name = name or self.current_board()
        path = self.board_path(name)
        database = Database.open(path)
        logger.debug("board_opened", board=name, path=str(path))
        return BoardHandle(
            name=name,
            path=path,
            database=database,
            service=TaskService(database),
            board_id=board_id,
        )
