"""
Exception hierarchy for deployhelper

FatalError and its subclasses end the process: cli.main prints the message
and exits.  Everything else is caught where it happens and reported.
"""
from typing import Optional


class DeployHelperError(Exception):
    """Base exception for all deployhelper errors."""

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(self.format_message())

    def format_message(self) -> str:
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message


class FatalError(DeployHelperError):
    """Raised when the session cannot continue."""


class ConfigError(FatalError):
    """Raised when the config file is missing, unparsable or incomplete."""


class ConnectionFailed(FatalError):
    """Raised when the SSH/SFTP connection or login fails."""


class UsageError(FatalError):
    """Raised for paths that would escape the project directory."""
