"""
Version-control change detection (git status / git diff --name-status)
"""
import re
import subprocess
from typing import Callable

from ..utils.logging import vlog

Runner = Callable[[str], str]

# Order matters: changes are turned into commands modified → added → deleted
CHANGE_TYPES = ("modified", "added", "deleted")

_LINE_RE = re.compile(r"^(\?\?|\S+)\s+(.*)$")


def run_local(command: str) -> str:
    """Run a shell command synchronously and return its stdout ("" on failure)."""
    vlog(f"[local] {command}")
    result = subprocess.run(command, shell=True, capture_output=True, text=True,
                            encoding="utf-8", errors="replace")
    return result.stdout or ""


def empty_changes() -> dict[str, list[str]]:
    return {kind: [] for kind in CHANGE_TYPES}


def classify(token: str):
    """Map a status token to a change type, or None for tokens we don't act on."""
    if token == "??" or token.startswith("A"):
        return "added"
    if token.startswith("M"):
        return "modified"
    if token.startswith("D"):
        return "deleted"
    return None


def parse_status(output: str) -> dict[str, list[str]]:
    """
    Classify `git status --porcelain` / `git diff --name-status` lines.

    Lines whose token is not ??, A*, M* or D* (renames, copies, unmerged …)
    are skipped.
    """
    changes = empty_changes()
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        m = _LINE_RE.match(line)
        if not m:
            continue
        kind = classify(m.group(1))
        if kind is None:
            continue
        path = m.group(2).strip()
        if len(path) > 1 and path.startswith('"') and path.endswith('"'):
            path = path[1:-1]
        if path:
            changes[kind].append(path)
    return changes


def has_changes(changes: dict) -> bool:
    return any(changes.get(kind) for kind in CHANGE_TYPES)


def detect_changes(status_command: str, runner: Runner = run_local) -> dict[str, list[str]]:
    """Run *status_command* and classify its output."""
    return parse_status(runner(status_command))


def list_branches(runner: Runner = run_local) -> list[str]:
    """Local branch names, last-listed first, without the current-branch marker."""
    branches = []
    for line in reversed(runner("git branch").splitlines()):
        name = line.replace("*", "").strip()
        if name:
            branches.append(name)
    return branches


def list_commits(branch: str, runner: Runner = run_local) -> list[str]:
    """`<hash> <subject>` lines for *branch*, newest first."""
    out = runner(f"git log --pretty=oneline {branch}")
    return [line.strip() for line in out.splitlines() if line.strip()]


def commit_diff_command(commit_hash: str) -> str:
    """Command listing the files changed by *commit_hash* and everything after it."""
    return f"git diff --name-status {commit_hash}^"
