"""
Local path enumeration (directory uploads and local removals)
"""
import enum
import os
from dataclasses import dataclass
from typing import Iterator

from ..errors import UsageError
from ..utils.logging import echo


class Order(enum.Enum):
    PARENTS_FIRST = "parents-first"    # uploads: create directories before contents
    CHILDREN_FIRST = "children-first"  # deletions: empty directories before removal


@dataclass(frozen=True)
class PathEntry:
    path: str        # as given, relative to the working directory, '/' separated
    is_dir: bool
    relative: str    # relative to the enumerated root ('' for the root itself)


def check_relative_path(path: str, kind: str = "Directory") -> str:
    """
    Reject paths that could escape the project directory.
    Raises UsageError for an empty path or one starting with '/' or '.'.
    """
    path = (path or "").strip().replace("\\", "/")
    if not path or path.startswith("/") or path.startswith("."):
        raise UsageError(f"{kind} path cannot start with a / or .")
    return path


def _walk(path: str, rel: str, order: Order) -> Iterator[PathEntry]:
    with os.scandir(path) as it:
        entries = sorted(it, key=lambda e: e.name)
    for entry in entries:
        child = f"{path}/{entry.name}"
        child_rel = f"{rel}/{entry.name}" if rel else entry.name
        if entry.is_dir(follow_symlinks=False):
            node = PathEntry(child, True, child_rel)
            if order is Order.PARENTS_FIRST:
                yield node
            yield from _walk(child, child_rel, order)
            if order is Order.CHILDREN_FIRST:
                yield node
        else:
            yield PathEntry(child, False, child_rel)


def enumerate_paths(root: str, order: Order = Order.PARENTS_FIRST) -> list[PathEntry]:
    """
    List *root* and everything below it, the root included.
    Returns [] (after reporting) when *root* is not a local directory.
    """
    root = check_relative_path(root).rstrip("/")
    if not os.path.isdir(root):
        echo(f"Directory does not exist: {root}\n", "grey")
        return []

    top = PathEntry(root, True, "")
    entries = list(_walk(root, "", order))
    if order is Order.PARENTS_FIRST:
        return [top] + entries
    return entries + [top]
