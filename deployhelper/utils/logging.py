"""
Logging and console output utilities for deployhelper
"""
import sys
from datetime import datetime

_verbose = False
_color = False

_COLORS = {
    "white": 37,
    "red": 31,
    "green": 32,
    "yellow": 33,
    "blue": 34,
    "magenta": 35,
    "cyan": 36,
    "grey": 90,
}


def set_verbose(verbose: bool):
    """Set the verbose flag"""
    global _verbose
    _verbose = verbose


def set_color(enabled: bool):
    """Enable or disable ANSI colours in echo()/color()"""
    global _color
    _color = enabled


def color(text, name: str) -> str:
    """Wrap *text* in an ANSI colour code (no-op when colours are off)."""
    if not _color:
        return str(text)
    code = _COLORS.get(name, 37)
    return f"\033[1;{code}m{text}\033[0m"


def echo(text: str = "", name: str = None):
    """Write raw text to stdout, no newline added."""
    if name:
        text = color(text, name)
    sys.stdout.write(text)
    sys.stdout.flush()


def heading(title: str) -> str:
    return color(f"\n{title}\n" + "-" * 38 + "\n", "grey")


def log(msg: str):
    """Log a message with timestamp"""
    ts = datetime.now().strftime("%H:%M:%S")
    print(f"[{ts}] {msg}", flush=True)


def vlog(msg: str):
    """Log a verbose message (only if verbose mode is enabled)"""
    if _verbose:
        log(msg)


def warn(msg: str):
    """Log a warning message"""
    log(f"⚠  {msg}")
