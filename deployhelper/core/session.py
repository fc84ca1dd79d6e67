"""
Session context shared by the queue engine, commands and menu options
"""
from dataclasses import dataclass, field
from typing import Optional

from ..config import EnvironmentConfig
from ..utils.prompt import Prompter
from .ssh_manager import SSHManager


@dataclass
class Session:
    env: EnvironmentConfig
    connection: SSHManager
    prompter: Prompter = field(default_factory=Prompter)
    queue: list = field(default_factory=list)
    # Dry is the resting state; run_queue flips it for the length of a real run
    dry_run: bool = True
    keep_mode: bool = False
    config_data: dict = field(default_factory=dict)
    config_path: Optional[str] = None

    @classmethod
    def for_environment(cls, env: EnvironmentConfig, **kw) -> "Session":
        return cls(env=env, connection=SSHManager(env), **kw)

    def switch_environment(self, env: EnvironmentConfig):
        """Make *env* active and force the connection to be rebuilt."""
        self.env = env
        self.connection.reset(env)
