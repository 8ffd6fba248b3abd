"""Tests for fuzzy scoring, search and task resolution."""

import pytest

from tasklane.errors import AmbiguousError, NotFoundError, ValidationError
from tasklane.tasks.search import fuzzy_match_score, parse_task_id, rank_tasks
from tasklane.tasks.service import TaskService


class TestFuzzyMatchScore:
    """Scoring rules."""

    def test_exact_match(self):
        assert fuzzy_match_score("Fix login bug", "fix LOGIN bug") == 1000

    def test_substring(self):
        assert fuzzy_match_score("Implement user authentication", "auth") == 500 + 10 * 4

    def test_multi_word_substring_is_still_a_substring(self):
        assert fuzzy_match_score("Implement user authentication", "implement user") == 500 + 10 * 14

    def test_word_prefixes_with_multi_word_bonus(self):
        # "user" prefixes "user", "implement" prefixes "implement"
        assert fuzzy_match_score("Implement user authentication", "user implement") == 5 * 4 + 5 * 9 + 50

    def test_word_contains(self):
        # only "auth" contributes, contained in "reauthenticate"
        assert fuzzy_match_score("Reauthenticate users", "xyz auth") == 2 * 4 + 50

    def test_unmatched_words_contribute_nothing(self):
        assert fuzzy_match_score("alpha beta", "betamax alp") == 5 * 3 + 50
        assert fuzzy_match_score("alpha beta", "zzz") == 0

    def test_pairs_are_summed(self):
        # "test" prefixes both title words
        assert fuzzy_match_score("testing tests", "test x") == 5 * 4 * 2 + 50

    def test_no_match(self):
        assert fuzzy_match_score("Write docs", "deploy server") == 0


class TestRankTasks:
    """Ranking and query validation."""

    def test_empty_query_rejected(self, service: TaskService):
        tasks = [service.create_task(1, "Anything")]
        for query in ("", "   "):
            with pytest.raises(ValidationError):
                rank_tasks(tasks, query)

    def test_ordering_and_ties(self, service: TaskService):
        exact = service.create_task(1, "login")
        first_tie = service.create_task(1, "Fix login page")
        second_tie = service.create_task(1, "Audit login flow")
        service.create_task(1, "Unrelated")

        ranked = rank_tasks(service.list_tasks(1), "login")

        assert [task.id for task, _ in ranked] == [exact.id, first_tie.id, second_tie.id]
        assert [score for _, score in ranked] == [1000, 550, 550]

    def test_search_tasks_hides_deleted(self, service: TaskService):
        keep = service.create_task(1, "Fix login bug")
        gone = service.create_task(1, "Fix login page")
        service.soft_delete_task(gone.id)

        assert [t.id for t in service.search_tasks(1, "login")] == [keep.id]

    def test_search_tasks_rejects_blank_query(self, service: TaskService):
        with pytest.raises(ValidationError):
            service.search_tasks(1, " ")


class TestParseTaskId:
    """Numeric identifier recognition."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("7", 7),
            (" 12 ", 12),
            ("+3", 3),
            ("-2", -2),
            ("007", 7),
            ("9223372036854775807", 2**63 - 1),
            ("-9223372036854775808", -(2**63)),
        ],
    )
    def test_numeric(self, text, expected):
        assert parse_task_id(text) == expected

    @pytest.mark.parametrize(
        "text",
        ["", "1a", "one", "1.5", "#3", "٣", "9223372036854775808", "99999999999999999999"],
    )
    def test_not_numeric(self, text):
        assert parse_task_id(text) is None


class TestResolveTask:
    """Resolution of IDs and free text."""

    def test_numeric_id_wins_over_title_match(self, service: TaskService):
        decoy = service.create_task(1, "Upgrade to v7")
        for i in range(2, 7):
            service.create_task(1, f"Filler {i}")
        seventh = service.create_task(1, "Seventh task")
        assert seventh.id == 7

        assert service.resolve_task(1, "7").id == 7
        assert service.resolve_task(1, "v7").id == decoy.id

    def test_numeric_miss_falls_back_to_search(self, service: TaskService):
        task = service.create_task(1, "Port 99 bugs")
        assert service.resolve_task(1, "99").id == task.id

    def test_unique_text_match(self, service: TaskService):
        service.create_task(1, "Write tests")
        target = service.create_task(1, "Fix login bug")

        assert service.resolve_task(1, "login").id == target.id

    def test_deleted_task_not_resolvable_by_id(self, service: TaskService):
        task = service.create_task(1, "Temporary")
        service.soft_delete_task(task.id)

        with pytest.raises(NotFoundError):
            service.resolve_task(1, str(task.id))

    def test_not_found_text(self, service: TaskService):
        service.create_task(1, "Something")
        with pytest.raises(NotFoundError, match="no tasks found matching 'zzz'"):
            service.resolve_task(1, "zzz")

    def test_oversized_number_is_searched_as_text(self, service: TaskService):
        with pytest.raises(NotFoundError, match="no tasks found matching '99999999999999999999'"):
            service.resolve_task(1, "99999999999999999999")

        task = service.create_task(1, "Ticket 99999999999999999999 follow-up")
        assert service.resolve_task(1, "99999999999999999999").id == task.id

    def test_not_found_numeric(self, service: TaskService):
        with pytest.raises(NotFoundError) as exc_info:
            service.resolve_task(1, "42")
        assert "no task found with ID 42" in str(exc_info.value)
        assert "no tasks found matching '42'" in str(exc_info.value)

    def test_ambiguous(self, service: TaskService):
        a = service.create_task(1, "Fix login bug")
        b = service.create_task(1, "Login page redesign")

        with pytest.raises(AmbiguousError) as exc_info:
            service.resolve_task(1, "login")

        error = exc_info.value
        assert error.identifier == "login"
        assert error.suggestions == [f"#{a.id} Fix login bug", f"#{b.id} Login page redesign"]
        assert "multiple tasks match 'login'" in error.message
        assert "Please be more specific or use the task ID" in error.message

    def test_ambiguous_suggestions_capped_at_five(self, service: TaskService):
        for i in range(8):
            service.create_task(1, f"Deploy service {i}")

        with pytest.raises(AmbiguousError) as exc_info:
            service.resolve_task(1, "deploy")

        assert len(exc_info.value.suggestions) == 5

    def test_blank_identifier(self, service: TaskService):
        with pytest.raises(ValidationError):
            service.resolve_task(1, "  ")

    def test_scoped_to_board(self, service: TaskService):
        service.create_task(2, "Other board login")
        with pytest.raises(NotFoundError):
            service.resolve_task(1, "login")
