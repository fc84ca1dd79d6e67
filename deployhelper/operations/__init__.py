"""Operations (transfer, path enumeration, git changes, selectors)"""
from .transfer import upload_path, delete_path
from .scanner import Order, PathEntry, enumerate_paths
from .git_changes import detect_changes, parse_status

__all__ = [
    "upload_path", "delete_path",
    "Order", "PathEntry", "enumerate_paths",
    "detect_changes", "parse_status",
]
