"""Shared constants for tasklane."""

VERSION = "0.1.0"

# Tool-call protocol revision announced by ``initialize``
PROTOCOL_VERSION = "2024-11-05"

# Board view truncation limits
CARD_TITLE_LENGTH = 40
DESCRIPTION_PREVIEW_LENGTH = 200


def truncate(text: str, max_length: int = DESCRIPTION_PREVIEW_LENGTH) -> str:
    """Truncate text with ellipsis if it exceeds max_length."""
    if len(text) > max_length:
        return text[:max_length] + "..."
    return text
