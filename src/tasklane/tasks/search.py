"""Fuzzy title matching and task reference resolution.

Scoring is deliberately simple and non-linguistic (no stemming, no edit
distance) so that results are predictable:

- exact title match: 1000
- query is a substring of the title: 500 + 10 * len(query)
- otherwise, summed over every (query word, title word) pair:
  5 * len(query word) when it prefixes the title word,
  2 * len(query word) when it is merely contained in it,
  plus a flat 50 when the query has several words and anything matched.
"""

import re
from typing import TYPE_CHECKING, Iterable

from tasklane.errors import AmbiguousError, NotFoundError, ValidationError
from tasklane.logging import Loggers
from tasklane.tasks.models import Task

if TYPE_CHECKING:
    from tasklane.tasks.service import TaskService

logger = Loggers.tasks()

EXACT_MATCH_SCORE = 1000
SUBSTRING_BASE_SCORE = 500
SUBSTRING_CHAR_WEIGHT = 10
PREFIX_CHAR_WEIGHT = 5
CONTAINS_CHAR_WEIGHT = 2
MULTI_WORD_BONUS = 50
MAX_SUGGESTIONS = 5

_NUMERIC_ID = re.compile(r"[+-]?[0-9]+")
# SQLite INTEGER range
_MIN_ID = -(2**63)
_MAX_ID = 2**63 - 1


def fuzzy_match_score(title: str, query: str) -> int:
    """Score how well ``query`` matches ``title``; 0 means no match.

    Both strings are trimmed and compared case-insensitively.
    """
    title = title.strip().lower()
    query = query.strip().lower()

    if title == query:
        return EXACT_MATCH_SCORE

    if query in title:
        return SUBSTRING_BASE_SCORE + SUBSTRING_CHAR_WEIGHT * len(query)

    title_words = title.split()
    query_words = query.split()

    score = 0
    for q_word in query_words:
        for t_word in title_words:
            if t_word.startswith(q_word):
                score += PREFIX_CHAR_WEIGHT * len(q_word)
            elif q_word in t_word:
                score += CONTAINS_CHAR_WEIGHT * len(q_word)

    if len(query_words) > 1 and score > 0:
        score += MULTI_WORD_BONUS

    return score


def rank_tasks(tasks: Iterable[Task], query: str) -> list[tuple[Task, int]]:
    """Score tasks against a query, dropping non-matches.

    The result is sorted by descending score; equal scores keep their
    input order.

    Raises:
        ValidationError: If the query is empty.
    """
    if not query or not query.strip():
        raise ValidationError(
            "search query cannot be empty",
            details={"field": "query"},
        )

    scored = []
    for task in tasks:
        score = fuzzy_match_score(task.title, query)
        if score > 0:
            scored.append((task, score))

    return sorted(scored, key=lambda pair: pair[1], reverse=True)


def parse_task_id(identifier: str) -> int | None:
    """Return the integer ID spelled by ``identifier``, or None.

    Numbers outside the storable range are treated as text.
    """
    text = identifier.strip()
    if _NUMERIC_ID.fullmatch(text):
        value = int(text)
        if _MIN_ID <= value <= _MAX_ID:
            return value
    return None


def resolve_task(service: "TaskService", board_id: int, identifier: str) -> Task:
    """Turn a user-supplied reference into exactly one active task.

    A numeric identifier naming an active task wins outright; otherwise
    (or when that lookup fails) the identifier is used as a search query.

    Raises:
        NotFoundError: Nothing matched.
        AmbiguousError: More than one task matched; carries up to five
            "#id title" suggestions, best first.
        ValidationError: The identifier is empty.
    """
    task_id = parse_task_id(identifier)
    if task_id is not None:
        try:
            return service.get_task(task_id)
        except NotFoundError:
            logger.debug("resolve_numeric_miss", identifier=identifier)

    matches = service.search_tasks(board_id, identifier)

    if not matches:
        if task_id is not None:
            message = (
                f"no task found with ID {identifier} "
                f"and no tasks found matching '{identifier}'"
            )
        else:
            message = f"no tasks found matching '{identifier}'"
        raise NotFoundError(message, details={"identifier": identifier})

    if len(matches) == 1:
        return matches[0]

    suggestions = [f"#{task.id} {task.title}" for task in matches[:MAX_SUGGESTIONS]]
    raise AmbiguousError(identifier, suggestions)
