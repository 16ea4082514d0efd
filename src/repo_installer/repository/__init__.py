"""
Repository synchronization: git operations and the sync routine.
"""

from .git_client import GitClient
from .repo_sync import RepoSync, ORIGIN

__all__ = [
    "GitClient",
    "RepoSync",
    "ORIGIN"
]
