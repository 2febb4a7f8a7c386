"""Dot-path lookup into nested mappings.

``get_path({"user": {"email": "a@b.c"}}, "user.email")`` → ``"a@b.c"``.
Only mappings are walked; sequences are not indexed.
"""

from collections.abc import Mapping
from typing import Any, Final


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()


def get_path(data: Any, path: str, default: Any = None) -> Any:
    """Return the value at *path*, or *default* if any segment is missing."""
    target = data
    for segment in path.split("."):
        if isinstance(target, Mapping) and segment in target:
            target = target[segment]
        else:
            return default
    return target


def has_path(data: Any, path: str) -> bool:
    """True if every segment of *path* exists, even when the value is ``None``."""
    return get_path(data, path, MISSING) is not MISSING
