"""
Data models for the repository installer.
"""

from .repository import RepoSpec, derive_local_dir, normalize_extras
from .sync_state import SyncState, SyncOptions, SyncResult

__all__ = [
    "RepoSpec",
    "derive_local_dir",
    "normalize_extras",
    "SyncState",
    "SyncOptions",
    "SyncResult"
]
