"""Helpers that derive format tags from file paths."""

from __future__ import annotations

from pathlib import Path

from .errors import NoExtensionError


def format_from_path(path: str | Path) -> str:
    """Return the format tag for ``path``: the text after the last dot in its name.

    Args:
        path: File path whose name carries the extension.

    Returns:
        str: Extension without the leading dot (``report.tar.gz`` gives ``gz``).

    Raises:
        NoExtensionError: If the file name has no dot or nothing follows it.
    """

    name = Path(path).name
    stem, dot, extension = name.rpartition(".")
    if not dot or not extension:
        raise NoExtensionError(
            f"The file {str(path)!r} does not contain a file extension "
            "(expecting a dot '.' in the name of the file)."
        )
    return extension


def require_format(format_name: str | None) -> str:
    """Validate an explicit format tag.

    Raises:
        NoExtensionError: If the tag is empty or would escape the store directory.
    """

    if format_name is None or not format_name.strip():
        raise NoExtensionError("A non-empty format name is required.")
    tag = format_name.strip()
    if "/" in tag or "\\" in tag or tag in {".", ".."}:
        raise NoExtensionError(f"Invalid format name {tag!r}.")
    return tag


__all__ = ["format_from_path", "require_format"]
