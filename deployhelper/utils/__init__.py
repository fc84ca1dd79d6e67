"""Utilities (logging, prompts, ignore patterns)"""
from .logging import log, vlog, warn, echo, color, heading, set_verbose, set_color
from .ignore_patterns import is_ignored, normalize_path
from .prompt import Prompter

__all__ = [
    "log", "vlog", "warn", "echo", "color", "heading", "set_verbose", "set_color",
    "is_ignored", "normalize_path",
    "Prompter",
]
