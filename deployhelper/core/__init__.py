"""Core functionality (connection, session, command queue, shell bridge)"""
from .ssh_manager import SSHManager, RemoteStat
from .session import Session

__all__ = ["SSHManager", "RemoteStat", "Session"]
