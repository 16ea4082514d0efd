"""
Configuration management for the repository installer.
"""

from .config_manager import (
    ConfigManager, AppConfig, InstallConfig, RepositoryEntry,
    PrerequisitesConfig, LoggingConfig
)

__all__ = [
    "ConfigManager",
    "AppConfig",
    "InstallConfig",
    "RepositoryEntry",
    "PrerequisitesConfig",
    "LoggingConfig"
]
