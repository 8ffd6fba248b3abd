"""Tests for task links."""

import pytest

from tasklane.errors import ConflictError, NotFoundError, ValidationError
from tasklane.tasks.models import LinkType
from tasklane.tasks.service import TaskService


@pytest.fixture
def pair(service: TaskService):
    a = service.create_task(1, "Task A")
    b = service.create_task(1, "Task B")
    return a, b


class TestLinkTasks:
    """Tests for link creation."""

    def test_link_created(self, service: TaskService, pair):
        a, b = pair
        link = service.link_tasks(a.id, b.id, "blocks")

        assert link.from_task_id == a.id
        assert link.to_task_id == b.id
        assert link.link_type == LinkType.BLOCKS

    def test_link_type_is_case_insensitive(self, service: TaskService, pair):
        a, b = pair
        assert service.link_tasks(a.id, b.id, "Depends_On").link_type == LinkType.DEPENDS_ON

    def test_invalid_link_type(self, service: TaskService, pair):
        a, b = pair
        with pytest.raises(ValidationError, match="invalid link type"):
            service.link_tasks(a.id, b.id, "duplicates")

    @pytest.mark.parametrize("create_first", [True, False])
    def test_self_link_rejected_whether_or_not_task_exists(self, service: TaskService, create_first):
        if create_first:
            for i in range(5):
                service.create_task(1, f"Task {i}")

        with pytest.raises(ValidationError, match="cannot link task to itself"):
            service.link_tasks(5, 5, "blocks")

    def test_duplicate_rejected_other_type_allowed(self, service: TaskService, pair):
        a, b = pair
        service.link_tasks(a.id, b.id, "blocks")

        with pytest.raises(ConflictError):
            service.link_tasks(a.id, b.id, "blocks")

        related = service.link_tasks(a.id, b.id, "related")
        assert related.link_type == LinkType.RELATED

    def test_reverse_direction_is_a_different_link(self, service: TaskService, pair):
        a, b = pair
        service.link_tasks(a.id, b.id, "related")
        service.link_tasks(b.id, a.id, "related")

        assert len(service.get_task_links(a.id)) == 2

    def test_endpoints_must_exist(self, service: TaskService, pair):
        a, _ = pair
        with pytest.raises(NotFoundError):
            service.link_tasks(a.id, 999, "blocks")
        with pytest.raises(NotFoundError):
            service.link_tasks(999, a.id, "blocks")

    def test_endpoints_must_be_active(self, service: TaskService, pair):
        a, b = pair
        service.soft_delete_task(b.id)

        with pytest.raises(NotFoundError):
            service.link_tasks(a.id, b.id, "blocks")


class TestUnlinkTasks:
    """Tests for link removal."""

    def test_unlink(self, service: TaskService, pair):
        a, b = pair
        service.link_tasks(a.id, b.id, "blocks")
        service.link_tasks(a.id, b.id, "related")

        service.unlink_tasks(a.id, b.id, "blocks")

        remaining = service.get_task_links(a.id)
        assert [link.link_type for link in remaining] == [LinkType.RELATED]

    def test_unlink_missing(self, service: TaskService, pair):
        a, b = pair
        with pytest.raises(
            NotFoundError,
            match=f"no link found between tasks {a.id} and {b.id} with type depends_on",
        ):
            service.unlink_tasks(a.id, b.id, "depends_on")


class TestGetTaskLinks:
    """Tests for link listing."""

    def test_both_directions_newest_first(self, service: TaskService, pair):
        a, b = pair
        c = service.create_task(1, "Task C")
        first = service.link_tasks(a.id, b.id, "blocks")
        second = service.link_tasks(c.id, a.id, "depends_on")

        links = service.get_task_links(a.id)

        assert [link.id for link in links] == [second.id, first.id]
        assert links[0].describe(a.id) == f"depends_on by task {c.id}"
        assert links[1].describe(a.id) == f"blocks task {b.id}"

    def test_no_links(self, service: TaskService, pair):
        a, _ = pair
        assert service.get_task_links(a.id) == []

    def test_soft_delete_keeps_links(self, service: TaskService, pair):
        a, b = pair
        service.link_tasks(a.id, b.id, "blocks")
        service.soft_delete_task(a.id)

        assert len(service.get_task_links(b.id)) == 1

    def test_hard_delete_cascades(self, service: TaskService, pair):
        a, b = pair
        c = service.create_task(1, "Task C")
        service.link_tasks(a.id, b.id, "blocks")
        service.link_tasks(c.id, a.id, "related")
        service.link_tasks(b.id, c.id, "related")

        service.hard_delete_task(a.id)

        assert [link.to_task_id for link in service.get_task_links(b.id)] == [c.id]
        assert service.get_task_links(a.id) == []
        with pytest.raises(ConflictError):
            service.restore_task(a.id)

    def test_failed_hard_delete_keeps_links(self, service: TaskService, pair, database):
        a, b = pair
        service.link_tasks(a.id, b.id, "blocks")
        # An orphaned link row whose source task does not exist
        database.execute("PRAGMA foreign_keys = OFF")
        database.execute(
            "INSERT INTO task_links (from_task_id, to_task_id, link_type, created_at) "
            "VALUES (500, ?, 'related', ?)",
            (b.id, database.now()),
        )
        database.execute("PRAGMA foreign_keys = ON")

        with pytest.raises(NotFoundError):
            service.hard_delete_task(500)

        assert len(service.get_task_links(b.id)) == 2
