"""
Ignore patterns handling (activeGitChangesIgnoreFiles globs)
"""
from fnmatch import fnmatchcase
from typing import Iterable

from .logging import echo


def normalize_path(path: str) -> str:
    return path.replace("\\", "/")


def is_ignored(path: str, patterns: Iterable[str], show_message: bool = True) -> bool:
    """
    Check if a path matches any ignore pattern.

    Patterns are shell globs where ``*`` also crosses ``/``, so ``*.env``
    matches ``config/.env``.  The first matching pattern wins.
    """
    norm = normalize_path(path)
    for pattern in patterns:
        if fnmatchcase(norm, pattern):
            if show_message:
                echo(f"IGNORING {norm}\n", "grey")
            return True
    return False
