"""
Interactive selectors (environment, local path, branch, commit, command list)

Each selector runs a loop of steps; a step returns a Selection that either
carries the chosen value, asks for another round, or cancels.
"""
import enum
import math
import os
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .. import config as _cfg
from ..utils.logging import color, echo
from ..utils.prompt import Prompter


class Status(enum.Enum):
    SELECTED = "selected"
    RETRY = "retry"
    CANCEL = "cancel"


@dataclass(frozen=True)
class Selection:
    status: Status
    value: Any = None


RETRY = Selection(Status.RETRY)
CANCEL = Selection(Status.CANCEL)


def selected(value) -> Selection:
    return Selection(Status.SELECTED, value)


def select_loop(step: Callable[[], Selection]):
    """Call *step* until it selects (returns the value) or cancels (returns None)."""
    while True:
        result = step()
        if result.status is Status.SELECTED:
            return result.value
        if result.status is Status.CANCEL:
            return None


def unix_path(path: str) -> str:
    return path.replace("\\", "/")


def remove_prefix(prefix: str, value: str) -> str:
    return value[len(prefix):] if value.startswith(prefix) else value


# ── environment ──────────────────────────────────────────────────────────────

def select_environment(names: list[str], prompter: Prompter, preset: Optional[str] = None) -> Optional[str]:
    """Pick an environment; a single one is chosen without asking."""
    if len(names) == 1:
        return names[0]

    pending = [preset.strip()] if preset else []

    def step() -> Selection:
        if pending:
            choice = pending.pop()
        else:
            echo("\nConfig file contains the following environments:\n", "grey")
            for name in names:
                echo(f" - {name}\n", "white")
            choice = prompter.ask(f"Which environment would you like to use? ({', '.join(names)})", "")
        if choice is None:
            return CANCEL
        if choice in names:
            return selected(choice)
        echo("Invalid selection\n", "red")
        return RETRY

    return select_loop(step)


# ── local path ───────────────────────────────────────────────────────────────

class PathMode(enum.Enum):
    FILE = "file"
    FOLDER = "folder"


def _list_dir(cwd: str, base: str):
    folders, files = [], []
    names = os.listdir(cwd)
    if cwd != base:
        names.append("..")
    for name in names:
        full = unix_path(f"{cwd}/{name}")
        (folders if os.path.isdir(full) else files).append(full)
    return sorted(folders), sorted(files)


def interactive_path_selector(base: str, prompter: Prompter, mode: PathMode = PathMode.FILE,
                              start: Optional[str] = None) -> Optional[str]:
    """
    Browse from *start* (default *base*) and return the chosen path relative
    to *base*, or None when the operator exits.
    """
    base = unix_path(os.path.abspath(base))
    state = {"cwd": unix_path(os.path.abspath(start)) if start else base}
    noun = "file" if mode is PathMode.FILE else "folder"

    def step() -> Selection:
        cwd = state["cwd"]
        folders, files = _list_dir(cwd, base)
        echo(f"\nDIR: {color(cwd, 'white')}\n", "grey")
        visible_folders = [f for f in folders if not f.endswith("/..")]
        echo(f"FOLDERS: {color(len(visible_folders), 'green')}, FILES: {color(len(files), 'green')}\n", "grey")
        echo("-" * 38 + "\n", "grey")

        choices = folders if mode is PathMode.FOLDER else folders + files
        for i, entry in enumerate(choices):
            is_dir = os.path.isdir(entry)
            shown = os.path.basename(entry) + ("/" if is_dir else "")
            shade = "grey" if mode is PathMode.FILE and is_dir else "white"
            echo(f"[{color(i, 'blue')}] {color(shown, shade)}\n", "grey")
        if mode is PathMode.FOLDER:
            echo(f"[{color(':this', 'blue')}] >> Select this directory (:this or :select)\n", "grey")
            echo(f"[{color(':show', 'blue')}] >> Show files in this directory (:show or :files)\n", "grey")
        echo(f"[{color(':exit', 'blue')}] >> Exit {noun} selector (:exit)\n", "grey")

        answer = prompter.ask(f"Select a {noun}", "")
        if answer is None or answer == ":exit":
            return CANCEL

        if mode is PathMode.FOLDER and answer in (":this", ":select"):
            return selected(cwd)
        if mode is PathMode.FOLDER and answer in (":show", ":files"):
            echo(f"\nFiles in ({cwd}):\n", "grey")
            echo("-" * 38 + "\n", "grey")
            for f in files:
                echo(os.path.basename(f) + "\n", "white")
            return RETRY

        if answer.isdigit():
            index = int(answer)
        else:
            names = [os.path.basename(c) for c in choices]
            wanted = answer.strip("/")
            index = names.index(wanted) if wanted in names else -1

        if not 0 <= index < len(choices):
            echo("Invalid selection\n", "red")
            return RETRY

        chosen = choices[index]
        if os.path.isdir(chosen):
            state["cwd"] = unix_path(os.path.realpath(chosen))
            return RETRY

        echo(f"You selected: {color(chosen, 'green')}\n", "grey")
        return selected(chosen)

    path = select_loop(step)
    if path is None or path == base:
        return None
    return remove_prefix(base + "/", path)


# ── git branch / commit ──────────────────────────────────────────────────────

def select_branch(branches: list[str], prompter: Prompter) -> Optional[str]:
    """Pick a branch by 1-based index or by name; 'cancel' gives up."""
    if not branches:
        echo("No branches found\n", "red")
        return None

    def step() -> Selection:
        for i, branch in enumerate(branches, 1):
            echo(f"{i}. {branch}\n")
        answer = prompter.ask("Select a branch by index (default 1)", "1")
        if answer is None or answer == "cancel":
            return CANCEL
        if answer.isdigit() and 1 <= int(answer) <= len(branches):
            return selected(branches[int(answer) - 1])
        if answer in branches:
            return selected(answer)
        echo("Invalid branch index selected\n\n", "red")
        return RETRY

    return select_loop(step)


def select_commit(commits: list[str], prompter: Prompter,
                  per_page: int = _cfg.COMMITS_PER_PAGE) -> Optional[str]:
    """
    Page through `<hash> <subject>` lines and return the chosen hash.
    '>' / '<' turn pages, 'cancel' gives up.
    """
    if not commits:
        echo("No commits found\n", "red")
        return None

    total_pages = max(1, math.ceil(len(commits) / per_page))
    state = {"page": 1}

    def step() -> Selection:
        page = state["page"]
        echo("\n")
        for i in range((page - 1) * per_page, min(page * per_page, len(commits))):
            echo(f"{i + 1}. {commits[i]}\n")
        if total_pages > 1:
            echo(f"\nPage #{page} of {total_pages} (Change page with '>' or '<', or leave with 'cancel')\n",
                 "grey")

        answer = prompter.ask("Select a commit by index", "")
        if answer is None or answer == "cancel":
            return CANCEL
        if answer == ">":
            state["page"] = min(page + 1, total_pages)
            return RETRY
        if answer == "<":
            state["page"] = max(page - 1, 1)
            return RETRY
        if not answer.isdigit() or not 1 <= int(answer) <= len(commits):
            echo(f"Invalid commit index selected (Tried to select {answer})\n\n", "red")
            return RETRY
        return selected(commits[int(answer) - 1].split(" ")[0])

    return select_loop(step)


# ── replayable command lists ─────────────────────────────────────────────────

def select_command_list(commands: dict, prompter: Prompter, preset: Optional[str] = None) -> Optional[str]:
    """
    Pick a key of the config's commands section by name or 1-based index.
    An unknown *preset* is reported and gives None; typed answers are asked again.
    """
    keys = list(commands)
    if not keys:
        echo("No commands found in config->commands\n", "red")
        return None

    def resolve(choice: str) -> Optional[str]:
        if choice.isdigit() and 1 <= int(choice) <= len(keys):
            return keys[int(choice) - 1]
        return choice if choice in commands else None

    if preset is not None:
        key = resolve(preset)
        if key is None:
            echo("Command index or key not found in commands list\n", "red")
        return key

    def step() -> Selection:
        echo("\nAvailable commands:\n", "yellow")
        for i, key in enumerate(keys, 1):
            echo(f"{i}: {color(key, 'white')}\n", "yellow")
        choice = prompter.ask("Enter command index or name to run", "")
        if choice is None:
            echo("\nNo command key entered\n", "red")
            return CANCEL
        key = resolve(choice)
        if key is None:
            echo("Command index or key not found in commands list\n", "red")
            return RETRY
        return selected(key)

    return select_loop(step)
