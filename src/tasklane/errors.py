"""Error taxonomy shared by the task core and every front end.

Provides:
- TasklaneError: Base class carrying a machine-readable code and details
- ValidationError: Malformed input, always caller-fixable
- NotFoundError: Referenced task or link does not exist or is not visible
- ConflictError: Valid request that is inconsistent with current state
- AmbiguousError: Fuzzy resolution matched more than one task
- StorageError: The underlying SQLite store failed
"""

from typing import Any


class ErrorCode:
    """Machine-readable error codes."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    AMBIGUOUS = "AMBIGUOUS"
    STORAGE_ERROR = "STORAGE_ERROR"
    INVALID_ARGUMENTS = "INVALID_ARGUMENTS"
    UNKNOWN_TOOL = "UNKNOWN_TOOL"


class TasklaneError(Exception):
    """Base error for task core failures.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context (operation, offending ids, ...)
    """

    default_code = "TASKLANE_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }


class ValidationError(TasklaneError):
    """Raised for empty/too-long titles, bad priorities, statuses, link types."""

    default_code = ErrorCode.VALIDATION_FAILED


class NotFoundError(TasklaneError):
    """Raised when a task or link is missing or soft-deleted."""

    default_code = ErrorCode.NOT_FOUND


class ConflictError(TasklaneError):
    """Raised when an operation contradicts the current state of a row."""

    default_code = ErrorCode.CONFLICT


class AmbiguousError(TasklaneError):
    """Raised when an identifier matches several tasks.

    Attributes:
        identifier: The text the caller supplied
        suggestions: Up to five "#id title" strings, best match first
    """

    default_code = ErrorCode.AMBIGUOUS

    def __init__(self, identifier: str, suggestions: list[str]):
        message = (
            f"multiple tasks match '{identifier}':\n"
            + "\n".join(suggestions)
            + "\nPlease be more specific or use the task ID"
        )
        super().__init__(
            message,
            details={"identifier": identifier, "suggestions": suggestions},
        )
        self.identifier = identifier
        self.suggestions = suggestions


class StorageError(TasklaneError):
    """Raised when SQLite fails (I/O, schema, migration, transaction)."""

    default_code = ErrorCode.STORAGE_ERROR
