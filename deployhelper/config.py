"""
Configuration for deployhelper

A project carries one config file (deployhelper.json, or a YAML twin) with
named environments and optional replayable command lists:

    {
      "environments": {
        "staging": {
          "remoteBasePath": "/var/www/site/",
          "localPrivateKeyPath": "~/.ssh/id_rsa",
          "host": "staging.example.com",
          "user": "deploy",
          "pass": "key-passphrase",
          "port": 22,
          "applicationDirectory": "app",
          "buildDirectory": "public/build",
          "activeGitChangesIgnoreFiles": ["*.env", "node_modules/*"]
        }
      },
      "commands": {"migrate": ["shell", "php artisan migrate", "exit"]}
    }
"""
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .errors import ConfigError

# ══════════════════════════════════════════════════════════════════════════════
#  DEFAULTS
# ══════════════════════════════════════════════════════════════════════════════

CONFIG_FILE_NAMES = ("deployhelper.json", "deployhelper.yaml", "deployhelper.yml")

REQUIRED_PROPERTIES = (
    "remoteBasePath",
    "localPrivateKeyPath",
    "host",
    "user",
    "pass",
    "port",
    "applicationDirectory",
    "buildDirectory",
    "activeGitChangesIgnoreFiles",
)

IGNORE_PROPERTY = "activeGitChangesIgnoreFiles"

# SSH timeouts (seconds)
CONNECT_TIMEOUT = 20
BANNER_TIMEOUT = 30
AUTH_TIMEOUT = 30
KEEPALIVE_INTERVAL = 30

# Mode used for created remote directories and uploaded files
REMOTE_MODE = 0o775

# Interactive shell terminal
SHELL_TERM = "vanilla"
SHELL_WIDTH = 200

GIT_STATUS_COMMAND = "git status --short --porcelain --untracked-files"
COMMITS_PER_PAGE = 10


@dataclass(frozen=True)
class EnvironmentConfig:
    name: str
    remote_base_path: str
    private_key_path: str
    host: str
    user: str
    password: str
    port: int
    application_directory: str
    build_directory: str
    ignore_patterns: tuple = field(default_factory=tuple)

    def remote_path(self, rel: str) -> str:
        """Join *rel* onto the remote base path."""
        rel = rel.replace("\\", "/").lstrip("/")
        base = self.remote_base_path
        if not base.endswith("/"):
            base += "/"
        return base + rel

    @property
    def application_path(self) -> str:
        return self.remote_path(self.application_directory)

    def as_display_dict(self) -> dict:
        """Config values keyed the way the config file names them."""
        return {
            "remoteBasePath": self.remote_base_path,
            "localPrivateKeyPath": self.private_key_path,
            "host": self.host,
            "user": self.user,
            "pass": "*" * len(self.password),
            "port": self.port,
            "applicationDirectory": self.application_directory,
            "buildDirectory": self.build_directory,
            IGNORE_PROPERTY: list(self.ignore_patterns),
        }


# ══════════════════════════════════════════════════════════════════════════════
#  CONFIG FILE  ── deployhelper.json (searched upward)
# ══════════════════════════════════════════════════════════════════════════════

def find_config(start: Optional[Path] = None) -> Optional[Path]:
    """
    Search upward from *start* (default: cwd) for a deployhelper config file.
    Returns the Path if found, or None if none exists in any parent.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        for name in CONFIG_FILE_NAMES:
            candidate = current / name
            if candidate.is_file():
                return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config_file(path: Path) -> dict:
    """Parse a JSON or YAML config file and return its contents as a dict."""
    path = Path(path)
    if not path.is_file():
        raise ConfigError(
            f"{path} config file not found. Create one with `deployhelper init`."
        )
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        import yaml
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Error parsing {path} config file. Please check the file is valid YAML.",
                              context=str(exc))
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Error parsing {path} config file. Please check the file is valid JSON.",
                              context=str(exc))
    if not isinstance(data, dict):
        raise ConfigError(f"{path} config file must contain an object at the top level.")
    return data


def environment_names(data: dict) -> list[str]:
    envs = data.get("environments") or {}
    if not isinstance(envs, dict) or not envs:
        raise ConfigError("Config file has no 'environments' defined.")
    return list(envs)


def get_commands(data: dict) -> dict:
    """Return the replayable command lists keyed by name."""
    commands = data.get("commands") or {}
    return commands if isinstance(commands, dict) else {}


def build_environment(data: dict, name: str, source: str = "config") -> EnvironmentConfig:
    """Validate the named environment and return it as an EnvironmentConfig."""
    envs = data.get("environments") or {}
    raw = envs.get(name)
    if not isinstance(raw, dict):
        raise ConfigError(f"Environment '{name}' not found in {source} file.")

    for prop in REQUIRED_PROPERTIES:
        if prop not in raw or raw[prop] is None or raw[prop] == "":
            raise ConfigError(f"Missing required property '{prop}' in {source} config file.")
    if not isinstance(raw[IGNORE_PROPERTY], list):
        raise ConfigError(f"Property '{IGNORE_PROPERTY}' in {source} config file must be an array.")

    try:
        port = int(raw["port"])
    except (TypeError, ValueError):
        raise ConfigError(f"Property 'port' in {source} config file must be a number.")

    return EnvironmentConfig(
        name=name,
        remote_base_path=str(raw["remoteBasePath"]),
        private_key_path=str(raw["localPrivateKeyPath"]),
        host=str(raw["host"]),
        user=str(raw["user"]),
        password=str(raw["pass"]),
        port=port,
        application_directory=str(raw["applicationDirectory"]),
        build_directory=str(raw["buildDirectory"]),
        ignore_patterns=tuple(str(p) for p in raw[IGNORE_PROPERTY]),
    )


# ══════════════════════════════════════════════════════════════════════════════
#  SCAFFOLD  ── written by `deployhelper init`
# ══════════════════════════════════════════════════════════════════════════════

def scaffold_config(name: str = "production", host: str = "example.com", user: str = "deploy",
                    port: int = 22, remote_base_path: str = "/var/www/html/",
                    private_key_path: str = "~/.ssh/id_rsa") -> dict:
    return {
        "environments": {
            name: {
                "remoteBasePath": remote_base_path,
                "localPrivateKeyPath": private_key_path,
                "host": host,
                "user": user,
                "pass": "change-me",
                "port": port,
                "applicationDirectory": "app",
                "buildDirectory": "public/build",
                IGNORE_PROPERTY: ["*.env", "*.log", "node_modules/*", "vendor/*"],
            }
        },
        "commands": {
            "status": ["shell", "git status", "exit"],
        },
    }
