"""
SSH connection manager: lazy connect, forced refresh on environment switch
"""
import socket
import stat as _stat
from pathlib import Path, PurePosixPath
from typing import NamedTuple, Optional

import paramiko

from .. import config as _cfg
from ..config import EnvironmentConfig
from ..errors import ConnectionFailed
from ..utils.logging import color, echo, log, vlog, warn

_TRANSPORT_ERRORS = (IOError, OSError, paramiko.SSHException)


class RemoteStat(NamedTuple):
    size: int
    mode: int

    @property
    def is_dir(self) -> bool:
        return _stat.S_ISDIR(self.mode)


class ChannelStream:
    """Line-oriented text stream over a paramiko shell channel."""

    def __init__(self, channel: paramiko.Channel):
        self._channel = channel
        self._reader = channel.makefile("rb")

    def write(self, text: str):
        self._channel.sendall(text.encode("utf-8"))

    def readline(self) -> str:
        line = self._reader.readline()
        return line.decode("utf-8", errors="replace") if line else ""

    def close(self):
        try:
            self._reader.close()
        finally:
            self._channel.close()


class SSHManager:
    """
    Wraps paramiko SSHClient + SFTPClient for the active environment.

    Nothing connects until a real (non-dry) operation needs the network.
    reset() swaps the environment and forces the next use to reconnect.
    """

    def __init__(self, env: EnvironmentConfig):
        self.env = env
        self._ssh: Optional[paramiko.SSHClient] = None
        self._sftp: Optional[paramiko.SFTPClient] = None
        self._force_refresh = False

    @property
    def connected(self) -> bool:
        return self._ssh is not None

    # ── connection ─────────────────────────────────────────────────────────

    def connect(self):
        """Open the SSH + SFTP session; any failure is fatal."""
        self._close_quietly()
        self._force_refresh = False
        env = self.env

        log(f"[SSH] connecting to {env.user}@{env.host}:{env.port} …")
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        kw: dict = dict(hostname=env.host, port=env.port, username=env.user,
                        timeout=_cfg.CONNECT_TIMEOUT, banner_timeout=_cfg.BANNER_TIMEOUT,
                        auth_timeout=_cfg.AUTH_TIMEOUT)
        key_path = Path(env.private_key_path).expanduser()
        if key_path.is_file():
            kw["key_filename"] = str(key_path)
            kw["passphrase"] = env.password or None
        if env.password:
            kw["password"] = env.password

        try:
            client.connect(**kw)
        except paramiko.AuthenticationException as exc:
            client.close()
            raise ConnectionFailed("Error: Could not login to SFTP server.", context=str(exc))
        except (paramiko.SSHException, socket.error) as exc:
            client.close()
            raise ConnectionFailed("Error: Could not connect to SFTP server.", context=str(exc))

        transport = client.get_transport()
        transport.set_keepalive(_cfg.KEEPALIVE_INTERVAL)

        self._ssh = client
        self._sftp = client.open_sftp()
        echo("Connected to SFTP server: " + color(env.host, "white")
             + color(", as user: ", "green") + color(env.user, "white") + "\n", "green")

    def _close_quietly(self):
        try:
            if self._sftp:
                self._sftp.close()
        except Exception:
            pass
        try:
            if self._ssh:
                self._ssh.close()
        except Exception:
            pass
        self._ssh = None
        self._sftp = None

    def disconnect(self):
        if self._ssh:
            self._close_quietly()
            log("[SSH] disconnected.")

    def reset(self, env: EnvironmentConfig):
        """Switch environment; the next remote operation reconnects."""
        self.env = env
        self._force_refresh = True

    def _is_alive(self) -> bool:
        transport = self._ssh.get_transport() if self._ssh else None
        return transport is not None and transport.is_active()

    def ensure_connected(self):
        """Call before any real remote operation."""
        if self._force_refresh:
            self.connect()
        elif not self._is_alive():
            if self._ssh:
                warn("[SSH] connection lost, reconnecting …")
            self.connect()

    # ── raw exec ────────────────────────────────────────────────────────────

    def exec(self, cmd: str, timeout: int = 60) -> tuple[str, str]:
        """Run a command; return (stdout, stderr). Raises on non-zero exit."""
        self.ensure_connected()
        _, stdout, stderr = self._ssh.exec_command(cmd, timeout=timeout)
        out = stdout.read().decode("utf-8", errors="replace")
        err = stderr.read().decode("utf-8", errors="replace")
        rc = stdout.channel.recv_exit_status()
        if rc != 0:
            raise RuntimeError(f"remote command exited {rc}: {cmd!r}\nstderr: {err.strip()}")
        return out, err

    def open_shell(self) -> ChannelStream:
        self.ensure_connected()
        channel = self._ssh.invoke_shell(term=_cfg.SHELL_TERM, width=_cfg.SHELL_WIDTH)
        return ChannelStream(channel)

    # ── sftp ops ────────────────────────────────────────────────────────────

    def stat(self, remote: str) -> Optional[RemoteStat]:
        """Return size + mode of *remote*, or None when it does not exist."""
        self.ensure_connected()
        try:
            attrs = self._sftp.stat(remote)
        except _TRANSPORT_ERRORS:
            return None
        size = attrs.st_size if attrs.st_size is not None else -1
        return RemoteStat(size=size, mode=attrs.st_mode or 0)

    def mkdir(self, remote: str, mode: int = _cfg.REMOTE_MODE, recursive: bool = False) -> bool:
        self.ensure_connected()
        targets = [remote]
        if recursive:
            path = PurePosixPath(remote)
            targets = [str(p) for p in reversed(path.parents) if str(p) not in ("/", ".")]
            targets.append(str(path))
        try:
            for target in targets:
                if recursive and self.stat(target) is not None:
                    continue
                self._sftp.mkdir(target, mode)
        except _TRANSPORT_ERRORS as exc:
            vlog(f"[SFTP] mkdir {remote} failed: {exc}")
            return False
        return True

    def put(self, local: str, remote: str, mode: int = _cfg.REMOTE_MODE) -> bool:
        self.ensure_connected()
        try:
            self._sftp.put(local, remote)
            self._sftp.chmod(remote, mode)
        except _TRANSPORT_ERRORS as exc:
            vlog(f"[SFTP] put {local} → {remote} failed: {exc}")
            return False
        return True

    def unlink(self, remote: str) -> bool:
        self.ensure_connected()
        try:
            self._sftp.remove(remote)
        except _TRANSPORT_ERRORS as exc:
            vlog(f"[SFTP] remove {remote} failed: {exc}")
            return False
        return True
