"""Shared persistence utilities."""

from pathlib import Path

_SAFE_PUNCTUATION = "-_"


def sanitize_filename(name: str, placeholder: str = "unnamed") -> str:
    """Sanitize a string for use as a filename component.

    Keeps ASCII letters, digits, hyphen and underscore; every other
    character becomes an underscore. An empty result becomes ``placeholder``.
    """
    safe = "".join(
        c if (c.isascii() and c.isalnum()) or c in _SAFE_PUNCTUATION else "_"
        for c in name
    )
    return safe or placeholder


def atomic_write_text(path: Path, content: str) -> None:
    """Write text to a file atomically.

    Writes to a temporary file first, then renames to the target path.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(content)
    tmp_path.replace(path)
