"""
File transfer operations (upload file / directory entry, delete remote file)

Transport failures come back as booleans and an inline status tag; only a
failed remote delete is fatal.
"""
import os
from pathlib import PurePosixPath

from ..core.ssh_manager import SSHManager
from ..errors import FatalError
from ..utils.logging import echo


def upload_path(mgr: SSHManager, local: str, remote: str) -> bool:
    """Upload one local file, or create the remote counterpart of a local directory."""
    if os.path.isdir(local):
        if mgr.stat(remote) is not None:
            echo(" [DIRECTORY EXISTS]", "yellow")
            return True
        if mgr.mkdir(remote):
            echo(" [CREATED DIRECTORY]", "green")
            return True
        echo(" [ERROR CREATING DIRECTORY]", "red")
        return False

    if mgr.put(local, remote):
        echo(" [OK]", "green")
        return True

    # Most failures are a missing remote parent: create it and retry once
    if mgr.stat(remote) is None:
        remote_dir = str(PurePosixPath(remote).parent)
        if not mgr.mkdir(remote_dir, recursive=True):
            echo(f"\n[ERROR CREATING DIRECTORY ({remote_dir})]", "red")
            return False
        echo(f"\n[CREATED DIRECTORY ({remote_dir})]", "green")
        echo(f"\nRetrying '{local}'", "white")
        if mgr.put(local, remote):
            echo(" [OK]", "green")
            return True

    echo(f" ERROR: Could not upload file: {local}", "red")
    return False


def delete_path(mgr: SSHManager, remote: str) -> bool:
    """Delete one remote file. Returns False for no-ops, raises FatalError if unlink fails."""
    st = mgr.stat(remote)
    if st is None or st.size == -1:
        echo(" [DOES NOT EXIST]", "yellow")
        return False

    if st.is_dir:
        echo(" [CANNOT DELETE REMOTE DIRECTORY]", "yellow")
        return False

    if not mgr.unlink(remote):
        raise FatalError(f"ERROR: Could not delete file: {remote}")
    echo(" [OK]", "green")
    return True
