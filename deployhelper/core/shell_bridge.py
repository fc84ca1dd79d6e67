"""
Remote interactive shell bridge

A raw shell stream has no "command finished" signal, so every statement
sent is followed by `; echo <marker>` with a fresh marker, and output is
read line by line until the marker shows up.  Terminal noise (echoed
input, prompts, login banners) is filtered out before forwarding.
"""
import enum
import re
import shlex
import uuid
from typing import Callable, Optional, Protocol

from ..utils.logging import color, echo

EXIT_KEYWORD = "exit"
MARKER_PREFIX = "__DH_END_OF_OUTPUT_"
BANNER_PREFIXES = ("Last login: ",)
PROMPT_RE = re.compile(r"\[[^\]]+\]\$")


class ShellStream(Protocol):
    def write(self, text: str) -> None: ...

    def readline(self) -> str: ...

    def close(self) -> None: ...


class ShellState(enum.Enum):
    IDLE = "idle"
    AWAITING_COMMAND_ECHO = "awaiting-command-echo"
    AWAITING_CWD_ECHO = "awaiting-cwd-echo"
    CLOSED = "closed"


def new_marker() -> str:
    return f"{MARKER_PREFIX}{uuid.uuid4().hex}__"


class ShellBridge:
    def __init__(self, stream: ShellStream, cwd: str,
                 output: Callable[[str], None] = None,
                 marker_factory: Callable[[], str] = new_marker):
        self.stream = stream
        self.cwd = cwd
        self.state = ShellState.IDLE
        self._output = output or (lambda line: echo(line + "\n"))
        self._new_marker = marker_factory

    # ── framing ─────────────────────────────────────────────────────────────

    def _cd_statement(self) -> str:
        return f"cd {shlex.quote(self.cwd)}"

    def _send(self, statement: str) -> tuple[str, str]:
        marker = self._new_marker()
        trailer = f"; echo {marker}"
        self.stream.write(f"{statement} {trailer}\n")
        return marker, trailer

    def _is_noise(self, line: str, sent: str, trailer: str) -> bool:
        if not line or line == self._cd_statement():
            return True
        if trailer in line:
            return True
        if line.startswith(BANNER_PREFIXES) or line.startswith(sent):
            return True
        return bool(PROMPT_RE.search(line))

    def run_command(self, user_input: str) -> list[str]:
        """Send one operator line and return the output lines forwarded to the operator."""
        self.state = ShellState.AWAITING_COMMAND_ECHO
        marker, trailer = self._send(user_input)
        forwarded = []
        while True:
            raw = self.stream.readline()
            if not raw:
                self.state = ShellState.CLOSED
                return forwarded
            line = raw.strip()
            if self._is_noise(line, user_input, trailer):
                continue
            if marker in line:
                break
            forwarded.append(line)
            self._output(line)
        self.state = ShellState.IDLE
        return forwarded

    def refresh_cwd(self) -> str:
        """Silently ask the remote for its working directory."""
        self.state = ShellState.AWAITING_CWD_ECHO
        marker, trailer = self._send("pwd")
        found = ""
        while True:
            raw = self.stream.readline()
            if not raw:
                self.state = ShellState.CLOSED
                break
            if trailer in raw:
                continue
            if marker in raw:
                self.state = ShellState.IDLE
                break
            if raw.strip():
                found = raw.strip()
        if found:
            self.cwd = found
        return self.cwd

    # ── session ─────────────────────────────────────────────────────────────

    def start(self):
        self.stream.write(self._cd_statement() + "\n")

    def close(self):
        self.stream.close()
        self.state = ShellState.CLOSED

    def interact(self, ask: Callable[..., Optional[str]]):
        """Read operator lines with *ask* until the exit keyword (or EOF)."""
        self.start()
        try:
            while self.state is not ShellState.CLOSED:
                user_input = ask(color(f"['{EXIT_KEYWORD}' to return] ", "grey") + color(self.cwd, "green"),
                                 "", " >> ")
                if user_input is None or user_input == EXIT_KEYWORD:
                    break
                if not user_input:
                    continue
                self.run_command(user_input)
                if self.state is ShellState.CLOSED:
                    echo("Remote shell closed the connection\n", "red")
                    break
                self.refresh_cwd()
        finally:
            self.close()
