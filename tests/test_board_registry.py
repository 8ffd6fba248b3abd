"""Tests for board naming, the current board and board lifecycle."""

from pathlib import Path

import pytest

from tasklane.boards.registry import (
    CURRENT_BOARD_FILE,
    DEFAULT_BOARD,
    BoardRegistry,
    sanitize_board_name,
)
from tasklane.errors import ConflictError, NotFoundError, ValidationError
from tasklane.persistence._utils import atomic_write_text


class TestSanitizeBoardName:
    """Board names map to safe filename stems."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("work", "work"),
            ("my-board_2", "my-board_2"),
            ("my board", "my_board"),
            ("../etc/passwd", "___etc_passwd"),
            ("café", "caf_"),
            ("", "unnamed"),
        ],
    )
    def test_sanitize(self, name, expected):
        assert sanitize_board_name(name) == expected


class TestBoardPath:
    """Board names resolve to database files."""

    def test_default_board(self, board_registry: BoardRegistry, temp_workspace: Path):
        assert board_registry.board_path("default") == temp_workspace / "tasklane.db"
        assert board_registry.board_path("") == temp_workspace / "tasklane.db"
        assert board_registry.board_path(None) == temp_workspace / "tasklane.db"

    def test_named_board(self, board_registry: BoardRegistry, temp_workspace: Path):
        assert board_registry.board_path("work") == temp_workspace / "boards" / "work.db"

    def test_unsafe_name_stays_inside_boards_dir(self, board_registry: BoardRegistry):
        path = board_registry.board_path("../../escape")
        assert path.parent == board_registry.boards_dir

    def test_custom_default_db_name(self, temp_workspace: Path):
        registry = BoardRegistry(temp_workspace, default_db_name="kanban.db")
        assert registry.board_path(DEFAULT_BOARD) == temp_workspace / "kanban.db"

    def test_from_settings(self, mock_context):
        registry = BoardRegistry.from_settings(mock_context.settings)

        assert registry.config_dir == mock_context.workspace_dir
        assert registry.board_path(DEFAULT_BOARD) == mock_context.settings.default_db_path


class TestCurrentBoard:
    """The current board is persisted as a marker file."""

    def test_defaults_to_default(self, board_registry: BoardRegistry):
        assert board_registry.current_board() == DEFAULT_BOARD

    def test_set_and_read(self, board_registry: BoardRegistry, temp_workspace: Path):
        board_registry.set_current_board("work")

        assert board_registry.current_board() == "work"
        assert (temp_workspace / CURRENT_BOARD_FILE).read_text() == "work"

    def test_setting_default_removes_marker(self, board_registry: BoardRegistry, temp_workspace: Path):
        board_registry.set_current_board("work")
        board_registry.set_current_board(DEFAULT_BOARD)

        assert not (temp_workspace / CURRENT_BOARD_FILE).exists()
        assert board_registry.current_board() == DEFAULT_BOARD

    def test_blank_marker_means_default(self, board_registry: BoardRegistry, temp_workspace: Path):
        (temp_workspace / CURRENT_BOARD_FILE).write_text("  \n")
        assert board_registry.current_board() == DEFAULT_BOARD

    def test_marker_is_trimmed(self, board_registry: BoardRegistry, temp_workspace: Path):
        (temp_workspace / CURRENT_BOARD_FILE).write_text("work\n")
        assert board_registry.current_board() == "work"

    def test_atomic_write_leaves_no_temp_file(self, tmp_path: Path):
        target = tmp_path / "sub" / "marker"
        atomic_write_text(target, "value")

        assert target.read_text() == "value"
        assert list(target.parent.iterdir()) == [target]


class TestBoardLifecycle:
    """Creating, listing and deleting boards."""

    def test_empty_workspace_has_no_boards(self, board_registry: BoardRegistry):
        assert board_registry.list_boards() == []

    def test_create_and_list(self, board_registry: BoardRegistry):
        board_registry.create_board(DEFAULT_BOARD)
        board_registry.create_board("zeta")
        created = board_registry.create_board("alpha")

        assert created.name == "alpha"
        assert created.path.exists()

        boards = board_registry.list_boards()
        assert [b.name for b in boards] == ["default", "alpha", "zeta"]
        assert [b.is_current for b in boards] == [True, False, False]

    def test_list_marks_current(self, board_registry: BoardRegistry):
        board_registry.create_board("work")
        board_registry.set_current_board("work")

        current = [b.name for b in board_registry.list_boards() if b.is_current]
        assert current == ["work"]

    def test_list_ignores_other_files(self, board_registry: BoardRegistry):
        board_registry.create_board("work")
        (board_registry.boards_dir / "notes.txt").write_text("hi")
        (board_registry.boards_dir / "nested.db").mkdir()

        assert [b.name for b in board_registry.list_boards()] == ["work"]

    def test_create_duplicate(self, board_registry: BoardRegistry):
        board_registry.create_board("work")
        with pytest.raises(ConflictError, match="board 'work' already exists"):
            board_registry.create_board("work")

    def test_create_empty_name(self, board_registry: BoardRegistry):
        with pytest.raises(ValidationError):
            board_registry.create_board("   ")

    def test_get_board(self, board_registry: BoardRegistry):
        board_registry.create_board("work")

        assert board_registry.get_board("work").name == "work"
        with pytest.raises(NotFoundError, match="board 'play' not found"):
            board_registry.get_board("play")

    def test_delete_board(self, board_registry: BoardRegistry):
        created = board_registry.create_board("work")
        board_registry.delete_board("work")

        assert not created.path.exists()
        assert board_registry.list_boards() == []

    def test_delete_current_board_falls_back_to_default(self, board_registry: BoardRegistry):
        board_registry.create_board("work")
        board_registry.set_current_board("work")

        board_registry.delete_board("work")

        assert board_registry.current_board() == DEFAULT_BOARD

    def test_delete_default_refused(self, board_registry: BoardRegistry):
        board_registry.create_board(DEFAULT_BOARD)
        with pytest.raises(ValidationError, match="cannot delete default board"):
            board_registry.delete_board(DEFAULT_BOARD)

    def test_delete_missing(self, board_registry: BoardRegistry):
        with pytest.raises(NotFoundError, match="board 'ghost' does not exist"):
            board_registry.delete_board("ghost")


class TestOpenBoard:
    """Opening boards yields isolated stores."""

    def test_open_current_board(self, board_registry: BoardRegistry, temp_workspace: Path):
        with board_registry.open_board() as handle:
            assert handle.name == DEFAULT_BOARD
            assert handle.path == temp_workspace / "tasklane.db"
            assert handle.board_id == 1

        assert (temp_workspace / "tasklane.db").exists()

    def test_boards_are_isolated(self, board_registry: BoardRegistry):
        with board_registry.open_board("work") as work:
            work.service.create_task(work.board_id, "Work item")

        with board_registry.open_board("home") as home:
            assert home.service.list_tasks(home.board_id) == []

        with board_registry.open_board("work") as work:
            titles = [t.title for t in work.service.list_tasks(work.board_id)]
        assert titles == ["Work item"]

    def test_open_follows_current_board(self, board_registry: BoardRegistry):
        board_registry.set_current_board("work")
        with board_registry.open_board() as handle:
            assert handle.name == "work"
            assert handle.path == board_registry.boards_dir / "work.db"


class TestDetectProjectBoard:
    """Project board names come from git remotes or the directory name."""

    def _git_config(self, root: Path, url: str) -> None:
        (root / ".git").mkdir()
        (root / ".git" / "config").write_text(
            "[core]\n"
            "\tbare = false\n"
            '[remote "origin"]\n'
            f"\turl = {url}\n"
            "\tfetch = +refs/heads/*:refs/remotes/origin/*\n"
        )

    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/acme/rocket.git",
            "git@github.com:acme/rocket.git",
            "https://github.com/acme/rocket",
        ],
    )
    def test_remote_url(self, board_registry: BoardRegistry, tmp_path: Path, url):
        project = tmp_path / "checkout"
        project.mkdir()
        self._git_config(project, url)

        assert board_registry.detect_project_board(project) == "rocket"

    def test_scp_style_without_slash(self, board_registry: BoardRegistry, tmp_path: Path):
        project = tmp_path / "checkout"
        project.mkdir()
        self._git_config(project, "host:rocket.git")

        assert board_registry.detect_project_board(project) == "rocket"

    def test_directory_name_without_git(self, board_registry: BoardRegistry, tmp_path: Path):
        project = tmp_path / "my-project"
        project.mkdir()

        assert board_registry.detect_project_board(project) == "my-project"

    def test_git_without_remote(self, board_registry: BoardRegistry, tmp_path: Path):
        project = tmp_path / "local-only"
        project.mkdir()
        (project / ".git").mkdir()
        (project / ".git" / "config").write_text("[core]\n\tbare = false\n")

        assert board_registry.detect_project_board(project) == "local-only"

    def test_filesystem_root(self, board_registry: BoardRegistry):
        assert board_registry.detect_project_board(Path("/")) == DEFAULT_BOARD
