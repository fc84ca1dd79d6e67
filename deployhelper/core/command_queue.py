"""
Command queue engine

prepare_batch() dry-runs a freshly produced batch, shows the preview, asks
for confirmation and appends what survived to the session queue.
run_queue() replays the queue in dry or real mode.
"""
import io
from contextlib import redirect_stdout
from typing import Callable, Sequence

from ..errors import FatalError
from ..utils.logging import color, echo, warn
from .commands import DROP, Drop, Keep, execute
from .session import Session

Producer = Callable[[], Sequence]


def _number(i: int, total: int) -> str:
    return f"{i}. ".ljust(len(str(total)) + 2)


def prepare_batch(session: Session, producer: Producer, auto_confirm: bool = False) -> int:
    """Dry-run the commands from *producer* and queue the ones that are kept. Returns the count queued."""
    commands = producer()
    if not isinstance(commands, (list, tuple)):
        echo("ERROR: Command producer did not return a list.\n", "red")
        return 0
    if not commands:
        echo("No commands passed to add to queue.\n", "red")
        return 0

    session.dry_run = True
    retained = []
    buf = io.StringIO()
    with redirect_stdout(buf):
        for i, command in enumerate(commands, 1):
            echo(_number(i, len(commands)))
            try:
                result = execute(command, session)
            except FatalError:
                raise
            except Exception as exc:
                echo(f"ERROR: {exc}\n", "red")
                result = DROP
            if isinstance(result, Keep):
                retained.append(result.command)
    preview = buf.getvalue()

    echo(preview)
    if not retained:
        echo("No valid commands to add to queue\n", "red")
        return 0

    if not auto_confirm:
        count = color(f"({len(retained)})", "green")
        if not session.prompter.ask_continue(f"Prepare above commands {count}?"):
            echo("Aborting\n", "red")
            return 0

    session.queue.extend(retained)
    return len(retained)


def run_queue(session: Session, dry_run: bool = True) -> int:
    """Execute the queued commands in order. Returns how many were executed."""
    session.dry_run = dry_run
    total = len(session.queue)
    executed = 0
    try:
        echo("\nRUNNING PREPARED COMMANDS ", "yellow")
        echo(f"({total})", "green")
        echo(": ", "yellow")
        echo(" (DRY RUN)" if dry_run else "", "blue")
        echo("\n--------------------------\n", "yellow")

        if not total:
            echo("\nNo commands found to run", "red")
        else:
            for i, command in enumerate(list(session.queue), 1):
                if isinstance(command, Drop):
                    continue
                echo(_number(i, total))
                try:
                    execute(command, session)
                except FatalError:
                    raise
                except Exception as exc:
                    echo("\n")
                    warn(f"command {i} failed: {exc}")
                executed += 1

            if not dry_run and not session.keep_mode:
                session.queue.clear()
        echo("\n")
    finally:
        session.dry_run = True
    return executed


def clear_queue(session: Session):
    session.queue.clear()
    echo("Commands cleared\n", "green")
