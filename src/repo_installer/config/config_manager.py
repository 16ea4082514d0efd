"""
Configuration management system for the repository installer.
"""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, Union, List
from dataclasses import dataclass, field, asdict
import logging

from ..error_handling import ConfigurationError
from ..models import RepoSpec, SyncOptions, derive_local_dir

logger = logging.getLogger(__name__)


def _is_root() -> bool:
    return hasattr(os, "getuid") and os.getuid() == 0


@dataclass
class InstallConfig:
    """Install mode and target configuration."""
    install_source: Optional[bool] = None  # None: source install unless running as root
    use_virtualenv: Optional[bool] = None  # None: virtualenv unless running as root
    install_dir: Optional[str] = None
    fork_name: Optional[str] = None
    canonical_organization: str = "RedHatInsights"
    keep_stash: bool = False
    command_name: str = "insights-cli"
    link_dir: str = "~/bin"


@dataclass
class RepositoryEntry:
    """One managed repository as written in the configuration file."""
    url: str
    branch: str = "master"
    extras: Optional[str] = None
    fork_remote: bool = False


@dataclass
class PrerequisitesConfig:
    """Host prerequisites checked before anything is installed."""
    min_python_version: str = "3.8"
    binaries: Dict[str, Optional[str]] = field(default_factory=lambda: {
        "sudo": None,
        "git": None,
    })
    packages: List[str] = field(default_factory=lambda: ["libyaml-devel"])
    git_host: Optional[str] = "github.com"
    host_timeout: int = 10
    package_manager: List[str] = field(default_factory=lambda: ["yum", "install", "-y"])
    preinstall: List[str] = field(default_factory=list)


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_file_size: int = 10  # MB
    backup_count: int = 5


@dataclass
class AppConfig:
    """Complete application configuration."""
    install: InstallConfig = field(default_factory=InstallConfig)
    repositories: List[RepositoryEntry] = field(default_factory=list)
    prerequisites: PrerequisitesConfig = field(default_factory=PrerequisitesConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    
    @property
    def install_source(self) -> bool:
        if self.install.install_source is None:
            return not _is_root()
        return self.install.install_source
    
    @property
    def use_virtualenv(self) -> bool:
        if self.install.use_virtualenv is None:
            return not _is_root()
        return self.install.use_virtualenv
    
    def repo_specs(self) -> List[RepoSpec]:
        """Build the ordered list of repositories to synchronize."""
        return [RepoSpec.from_dict(asdict(entry)) for entry in self.repositories]
    
    def sync_options(self, verbose: bool = False) -> SyncOptions:
        """Freeze the sync-relevant settings into an options object."""
        return SyncOptions(
            install_source=self.install_source,
            verbose=verbose,
            fork_name=self.install.fork_name or None,
            canonical_organization=self.install.canonical_organization,
            keep_stash=self.install.keep_stash
        )
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "install": asdict(self.install),
            "repositories": [asdict(entry) for entry in self.repositories],
            "prerequisites": asdict(self.prerequisites),
            "logging": asdict(self.logging)
        }


DEFAULT_REPOSITORIES = [
    {
        "url": "https://github.com/RedHatInsights/insights-core.git",
        "branch": "1.x",
        "extras": "[develop]",
        "fork_remote": True
    },
    {"url": "https://github.com/RedHatInsights/insights-cli.git"},
    {"url": "https://github.com/RedHatInsights/insights-plugins-demo.git"},
]


class ConfigManager:
    """
    Manages application configuration from multiple sources.
    
    Configuration is loaded in the following order (later sources override earlier):
    1. Default configuration
    2. Configuration file
    3. Environment variables
    4. Command-line arguments (applied by the caller via ``apply_overrides``)
    """
    
    # Environment values are strings; these config paths take another type
    BOOL_KEYS = {"install.install_source", "install.use_virtualenv", "install.keep_stash"}
    INT_KEYS = {"prerequisites.host_timeout", "logging.max_file_size", "logging.backup_count"}
    LIST_KEYS = {"prerequisites.packages", "prerequisites.preinstall"}
    
    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        """
        Initialize configuration manager.
        
        Args:
            config_file: Path to configuration file
        """
        self.config_file = Path(config_file) if config_file else None
        self._config: Optional[AppConfig] = None
        self._env_var_mapping = self._create_env_var_mapping()
    
    def _create_env_var_mapping(self) -> Dict[str, str]:
        """Create mapping of environment variables to config paths."""
        return {
            # Install configuration
            "INSTALLER_SOURCE": "install.install_source",
            "INSTALLER_VIRTUALENV": "install.use_virtualenv",
            "INSTALLER_INSTALL_DIR": "install.install_dir",
            "INSTALLER_FORK": "install.fork_name",
            "INSTALLER_ORGANIZATION": "install.canonical_organization",
            "INSTALLER_KEEP_STASH": "install.keep_stash",
            "INSTALLER_COMMAND": "install.command_name",
            "INSTALLER_LINK_DIR": "install.link_dir",
            
            # Prerequisites configuration
            "INSTALLER_MIN_PYTHON": "prerequisites.min_python_version",
            "INSTALLER_GIT_HOST": "prerequisites.git_host",
            "INSTALLER_HOST_TIMEOUT": "prerequisites.host_timeout",
            "INSTALLER_PACKAGES": "prerequisites.packages",
            "INSTALLER_PREINSTALL": "prerequisites.preinstall",
            
            # Logging configuration
            "LOG_LEVEL": "logging.level",
            "LOG_FILE": "logging.file",
            "LOG_FORMAT": "logging.format",
            "LOG_MAX_SIZE": "logging.max_file_size",
            "LOG_BACKUP_COUNT": "logging.backup_count",
        }
    
    def load_config(self) -> AppConfig:
        """
        Load configuration from all sources.
        
        Returns:
            Complete application configuration
        """
        if self._config is not None:
            return self._config
        
        config_dict = self._get_default_config()
        
        if self.config_file and self.config_file.exists():
            file_config = self._load_config_file(self.config_file)
            config_dict = self._merge_configs(config_dict, file_config)
        
        env_config = self._load_env_config()
        config_dict = self._merge_configs(config_dict, env_config)
        
        config_dict = self._substitute_env_vars(config_dict)
        
        self._validate_config(config_dict)
        
        self._config = self._dict_to_config(config_dict)
        
        return self._config
    
    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values."""
        return {
            "install": asdict(InstallConfig()),
            "repositories": copy.deepcopy(DEFAULT_REPOSITORIES),
            "prerequisites": asdict(PrerequisitesConfig()),
            "logging": asdict(LoggingConfig())
        }
    
    def _load_config_file(self, config_path: Path) -> Dict[str, Any]:
        """
        Load configuration from YAML file.
        
        A file that exists but cannot be parsed is a configuration error,
        not something to silently ignore.
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Failed to load config file {config_path}", cause=e
            )
        
        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")
        
        logger.info(f"Loaded configuration from {config_path}")
        return config
    
    def _load_env_config(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        env_config = {}
        
        for env_var, config_path in self._env_var_mapping.items():
            value = os.getenv(env_var)
            if value is not None:
                value = self._convert_env_value(env_var, value, config_path)
                self._set_nested_value(env_config, config_path, value)
        
        return env_config
    
    def _convert_env_value(self, env_var: str, value: str, config_path: str) -> Any:
        """
        Convert an environment variable string to the type of its config key.
        
        Args:
            env_var: Name of the environment variable, for error messages
            value: String value from environment variable
            config_path: Dotted configuration path the variable maps to
            
        Returns:
            Converted value; keys that take a string keep the raw string
            
        Raises:
            ConfigurationError: If the value cannot be converted
        """
        section, key = config_path.split('.', 1)
        
        if config_path in self.BOOL_KEYS:
            if value.lower() in ('true', 'yes', 'on', '1'):
                return True
            if value.lower() in ('false', 'no', 'off', '0'):
                return False
            raise ConfigurationError(
                f"{env_var} must be true or false, got '{value}'",
                config_section=section, config_key=key
            )
        
        if config_path in self.INT_KEYS:
            if not value.strip().isdigit():
                raise ConfigurationError(
                    f"{env_var} must be a whole number, got '{value}'",
                    config_section=section, config_key=key
                )
            return int(value)
        
        if config_path in self.LIST_KEYS:
            return [item.strip() for item in value.split(',') if item.strip()]
        
        return value
    
    def _set_nested_value(self, config: Dict[str, Any], path: str, value: Any) -> None:
        """Set a nested configuration value using dot notation."""
        keys = path.split('.')
        current = config
        
        for key in keys[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]
        
        current[keys[-1]] = value
    
    def _substitute_env_vars(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Replace ``${VAR}`` string values with the environment variable's value."""
        def substitute_recursive(obj):
            if isinstance(obj, dict):
                return {k: substitute_recursive(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [substitute_recursive(item) for item in obj]
            elif isinstance(obj, str) and obj.startswith('${') and obj.endswith('}'):
                env_var = obj[2:-1]
                return os.getenv(env_var, obj)
            else:
                return obj
        
        return substitute_recursive(config)
    
    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge two configuration dictionaries.
        
        Nested mappings merge key by key; anything else (including the
        repositories list) is replaced wholesale by the override.
        """
        result = base.copy()
        
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value
        
        return result
    
    def _validate_config(self, config: Dict[str, Any]) -> None:
        """
        Validate configuration values.
        
        Raises:
            ConfigurationError: If configuration is invalid
        """
        repositories = config.get("repositories")
        if not isinstance(repositories, list) or not repositories:
            raise ConfigurationError(
                "At least one repository must be configured", config_section="repositories"
            )
        for index, entry in enumerate(repositories):
            if not isinstance(entry, dict) or not entry.get("url"):
                raise ConfigurationError(
                    f"Repository entry {index} has no url",
                    config_section="repositories", config_key=str(index)
                )
            try:
                derive_local_dir(str(entry["url"]))
            except ValueError as e:
                raise ConfigurationError(
                    f"Repository entry {index} has an unusable url: {entry['url']!r}",
                    config_section="repositories", config_key=str(index), cause=e
                )
        
        install = config.get("install")
        if not isinstance(install, dict):
            raise ConfigurationError("install must be a mapping", config_section="install")
        for key in ("install_dir", "fork_name", "canonical_organization", "command_name", "link_dir"):
            value = install.get(key)
            if value is not None and not isinstance(value, str):
                raise ConfigurationError(
                    f"install.{key} must be a string, got {type(value).__name__}",
                    config_section="install", config_key=key
                )
        
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        log_level = str(config.get("logging", {}).get("level", "INFO")).upper()
        if log_level not in valid_levels:
            raise ConfigurationError(
                f"Invalid log level: {log_level}. Valid levels: {sorted(valid_levels)}",
                config_section="logging", config_key="level"
            )
        
        min_version = str(config.get("prerequisites", {}).get("min_python_version", "3"))
        if not all(part.isdigit() for part in min_version.split('.')):
            raise ConfigurationError(
                f"Invalid minimum python version: {min_version}",
                config_section="prerequisites", config_key="min_python_version"
            )
        
        package_manager = config.get("prerequisites", {}).get("package_manager")
        if not package_manager or not isinstance(package_manager, list):
            raise ConfigurationError(
                "package_manager must be a non-empty command list",
                config_section="prerequisites", config_key="package_manager"
            )
    
    def _dict_to_config(self, config_dict: Dict[str, Any]) -> AppConfig:
        """Convert configuration dictionary to AppConfig object."""
        try:
            prerequisites = dict(config_dict.get("prerequisites", {}))
            # A single value from the environment arrives as a plain string
            for key in ("packages", "preinstall"):
                if isinstance(prerequisites.get(key), str):
                    prerequisites[key] = [prerequisites[key]]
            prerequisites["min_python_version"] = str(prerequisites.get("min_python_version", "3.8"))
            
            return AppConfig(
                install=InstallConfig(**config_dict.get("install", {})),
                repositories=[RepositoryEntry(**entry) for entry in config_dict["repositories"]],
                prerequisites=PrerequisitesConfig(**prerequisites),
                logging=LoggingConfig(**config_dict.get("logging", {}))
            )
        except TypeError as e:
            raise ConfigurationError(f"Unknown configuration key: {e}", cause=e)
    
    def apply_overrides(self, overrides: Dict[str, Any]) -> AppConfig:
        """
        Apply command-line overrides on top of the loaded configuration.
        
        Keys are ``InstallConfig`` field names; None values are ignored so
        that unset CLI options leave file and environment settings alone.
        """
        config = self.get_config()
        for key, value in overrides.items():
            if value is None:
                continue
            if not hasattr(config.install, key):
                raise ConfigurationError(f"Unknown install option: {key}", config_section="install")
            setattr(config.install, key, value)
        return config
    
    def get_config(self) -> AppConfig:
        """Get the current configuration, loading it on first use."""
        if self._config is None:
            return self.load_config()
        return self._config
