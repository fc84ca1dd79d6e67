"""
Operator prompts

Every prompt accepts a default used when the operator submits an empty
line.  A queue of "simulated" lines can be loaded (the ``command`` menu
option does this); while it is non-empty, ask() consumes from it instead
of reading stdin and echoes each line as if it had been typed.
"""
import time
from collections import deque
from typing import Callable, Iterable, Optional

from .logging import color, echo

TYPING_DELAY = 0.015


class Prompter:
    def __init__(self, reader: Callable[[], str] = input, typing_delay: float = TYPING_DELAY):
        self._reader = reader
        self._simulated: deque = deque()
        self.typing_delay = typing_delay
        # set once the last simulated line has been handed out
        self.simulated_completed = False

    # ── simulated input ────────────────────────────────────────────────────

    def simulate(self, lines: Iterable[str]):
        self._simulated.extend(str(line) for line in lines)
        self.simulated_completed = False

    @property
    def simulating(self) -> bool:
        return bool(self._simulated)

    def _next_simulated(self) -> str:
        line = self._simulated.popleft()
        self.type_out(line)
        echo("\n")
        if not self._simulated:
            self.simulated_completed = True
        return line

    def type_out(self, text: str, name: str = "white"):
        for ch in text:
            echo(ch, name)
            if self.typing_delay:
                time.sleep(self.typing_delay)

    # ── prompts ─────────────────────────────────────────────────────────────

    def ask(self, question: str, default: Optional[str] = None, suffix: str = ": ") -> Optional[str]:
        """Ask a question; empty answer gives *default*, EOF gives None."""
        echo(f"\n{question}{suffix}", "yellow")
        if self._simulated:
            return self._next_simulated()
        try:
            line = self._reader()
        except EOFError:
            return None
        line = line.strip()
        return line if line else default

    def ask_continue(self, message: str = "Continue?") -> bool:
        answer = self.ask(f"{message} (y/n)", "n")
        return (answer or "").lower() in ("y", "yes")

    def helper_bot(self, message: str, icon: str = ""):
        echo("\n🤖  HELPER BOT: ", "yellow")
        self.type_out(message, "green")
        echo(f" {icon}\n\n" if icon else "\n\n")

    def announce(self, lines: Iterable[str]):
        """Show the lines about to be replayed."""
        self.helper_bot("Ready to run the following commands!", "💻")
        for line in lines:
            echo(f"➡️   {color(line, 'white')}\n")
