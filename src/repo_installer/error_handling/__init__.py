"""
Error types and retry helpers for the repository installer.
"""

from .exceptions import (
    InstallerError, SyncError, CloneError, VersionControlError,
    InstallError, PrerequisiteError, ConfigurationError
)
from .retry_decorator import retry, RetryConfig

__all__ = [
    "InstallerError",
    "SyncError",
    "CloneError",
    "VersionControlError",
    "InstallError",
    "PrerequisiteError",
    "ConfigurationError",
    "retry",
    "RetryConfig"
]
