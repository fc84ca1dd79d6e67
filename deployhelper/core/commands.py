"""
Deferred commands

A command is a small frozen record describing one operation.  execute()
runs it in the session's current mode (dry: describe and validate, real:
perform) and returns Keep(command) or DROP; DROP tells the batching step
not to queue it.

Paths are stored relative to the working directory and resolved against
the active environment when the command runs.
"""
import os
import shlex
from dataclasses import dataclass
from functools import singledispatch

from ..operations.transfer import delete_path, upload_path
from ..utils.ignore_patterns import is_ignored
from ..utils.logging import echo


@dataclass(frozen=True)
class UploadEntry:
    """Upload a local file, or create the remote directory for a local one."""
    path: str


@dataclass(frozen=True)
class SyncChange:
    """Mirror one version-control change (modified / added / deleted)."""
    kind: str
    path: str


@dataclass(frozen=True)
class RemoveLocalEntry:
    """Remove a local file or (already emptied) directory."""
    path: str


@dataclass(frozen=True)
class RemoteExec:
    """Run a shell command on the remote host, inside the application directory."""
    command: str


@dataclass(frozen=True)
class Keep:
    command: object


class Drop:
    __slots__ = ()

    def __repr__(self):
        return "DROP"


DROP = Drop()

_CHANGE_LABELS = {
    "modified": ("MOD ", "blue"),
    "added": ("ADD ", "green"),
    "deleted": ("DEL ", "red"),
}


def _dry_tag(session):
    if session.dry_run:
        echo("DRY RUN: ", "grey")


@singledispatch
def execute(command, session):
    raise TypeError(f"not a deferred command: {command!r}")


@execute.register
def _(command: UploadEntry, session):
    if not os.path.exists(command.path):
        echo("PATH DOES NOT EXIST ", "red")
        echo(command.path + "\n", "white")
        return DROP

    remote = session.env.remote_path(command.path)
    _dry_tag(session)
    echo("UPLOAD ", "green")
    echo(command.path, "white")
    echo(" -> ", "green")
    echo(remote, "white")
    if not session.dry_run:
        upload_path(session.connection, command.path, remote)
    echo("\n")
    return Keep(command)


@execute.register
def _(command: SyncChange, session):
    if is_ignored(command.path, session.env.ignore_patterns):
        return DROP

    remote = session.env.remote_path(command.path)
    _dry_tag(session)
    label, shade = _CHANGE_LABELS.get(command.kind, ("??? ", "grey"))
    echo(label, shade)
    echo(command.path, "white")
    echo(" -> ", "green")
    echo(remote, "white")
    if not session.dry_run:
        if command.kind == "deleted":
            delete_path(session.connection, remote)
        else:
            upload_path(session.connection, command.path, remote)
    echo("\n")
    return Keep(command)


@execute.register
def _(command: RemoveLocalEntry, session):
    is_dir = os.path.isdir(command.path)
    if not is_dir and not os.path.isfile(command.path):
        echo("PATH DOES NOT EXIST ", "red")
        echo(command.path + "\n", "white")
        return DROP if session.dry_run else Keep(command)

    _dry_tag(session)
    echo("RMDIR " if is_dir else "DEL ", "red")
    echo(command.path + "\n")
    if not session.dry_run:
        try:
            if is_dir:
                os.rmdir(command.path)
            else:
                os.unlink(command.path)
        except OSError as exc:
            echo(f"ERROR: Could not remove {command.path}: {exc}\n", "red")
    return Keep(command)


@execute.register
def _(command: RemoteExec, session):
    cwd = session.env.application_path
    _dry_tag(session)
    echo("EXEC ", "magenta")
    echo(command.command, "white")
    echo(" @ ", "green")
    echo(cwd, "white")
    echo("\n")
    if not session.dry_run:
        try:
            out, err = session.connection.exec(f"cd {shlex.quote(cwd)} && {command.command}")
        except RuntimeError as exc:
            echo(f"{exc}\n", "red")
        else:
            for text in (out, err):
                if text.strip():
                    echo(text if text.endswith("\n") else text + "\n")
    return Keep(command)
