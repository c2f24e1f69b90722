"""Materialized folder paths.

A folder's path is the slash-joined chain of its ancestors' names ending in
its own name; a root folder's path is just its name.
"""
from typing import Optional

from app.core.exceptions import InvalidInputError

PATH_SEPARATOR = "/"
LIKE_ESCAPE = "\\"


def normalize_name(name) -> str:
    """Trim a folder or image name and reject empty ones."""
    if not isinstance(name, str) or not name.strip():
        raise InvalidInputError("Name is required")
    name = name.strip()
    if PATH_SEPARATOR in name:
        raise InvalidInputError(f"Name cannot contain '{PATH_SEPARATOR}'")
    return name


def compute_path(name: str, parent_path: Optional[str] = None) -> str:
    name = normalize_name(name)
    if parent_path is None:
        return name
    return f"{parent_path}{PATH_SEPARATOR}{name}"


def is_descendant_path(candidate_path: str, ancestor_path: str) -> bool:
    """True for the ancestor itself and anything below it.

    ``"Foo2"`` is not below ``"Foo"``: the match is anchored on the separator.
    """
    if candidate_path == ancestor_path:
        return True
    return candidate_path.startswith(ancestor_path + PATH_SEPARATOR)


def replace_path_prefix(path: str, old_prefix: str, new_prefix: str) -> str:
    """Swap the leading ``old_prefix`` of ``path`` for ``new_prefix``.

    Only the leading prefix changes; a later segment that happens to equal
    part of the old prefix is left alone.
    """
    if not is_descendant_path(path, old_prefix):
        raise ValueError(f"{path!r} is not under {old_prefix!r}")
    return new_prefix + path[len(old_prefix):]


def escape_like(value: str) -> str:
    """Escape ``value`` for use inside a SQL LIKE pattern."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
