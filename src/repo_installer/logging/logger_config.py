"""
Logger configuration and setup for the repository installer.
"""

import logging
from typing import Optional, Dict
from dataclasses import dataclass

from .log_formatter import ColoredFormatter
from .log_handler import RotatingFileHandler, ConsoleHandler


@dataclass
class LoggerConfig:
    """Configuration for logging system."""
    level: str = "INFO"
    file_path: Optional[str] = None
    format_string: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_file_size: int = 10  # MB
    backup_count: int = 5
    enable_console: bool = True
    enable_colors: bool = True
    quiet_third_party: bool = True


class LoggingManager:
    """
    Centralized logging manager for the installer.
    
    Configures the root logger once per process with a console handler and,
    when a log file is configured, a rotating file handler.
    """
    
    THIRD_PARTY_LOGGERS = ('git', 'urllib3', 'requests')
    
    def __init__(self):
        self._handlers: Dict[str, logging.Handler] = {}
        self._configured = False
        self.config: Optional[LoggerConfig] = None
    
    def setup_logging(self, config: Optional[LoggerConfig] = None) -> None:
        """
        Set up the logging system with the specified configuration.
        
        Calling it again replaces the previous handlers, so the CLI can set
        up logging early and again once the config file has been read.
        
        Args:
            config: Logging configuration (defaults to LoggerConfig())
        """
        if self._configured:
            self.close_handlers()
        
        config = config or LoggerConfig()
        self.config = config
        level = self._get_log_level(config.level)
        
        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        
        if config.enable_console:
            console_handler = ConsoleHandler()
            console_handler.setLevel(level)
            if config.enable_colors and console_handler.is_tty():
                console_handler.setFormatter(ColoredFormatter(config.format_string))
            else:
                console_handler.setFormatter(logging.Formatter(config.format_string))
            self._add_handler('console', console_handler)
        
        if config.file_path:
            file_handler = RotatingFileHandler(
                filename=config.file_path,
                maxBytes=config.max_file_size * 1024 * 1024,
                backupCount=config.backup_count,
                encoding='utf-8'
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(logging.Formatter(config.format_string))
            self._add_handler('file', file_handler)
        
        # git and urllib3 are chatty at DEBUG; keep them quiet unless asked
        for name in self.THIRD_PARTY_LOGGERS:
            logging.getLogger(name).setLevel(
                logging.WARNING if config.quiet_third_party else level
            )
        
        logging.getLogger(__name__).debug(f"Logging system initialized with level: {config.level}")
        self._configured = True
    
    def _add_handler(self, name: str, handler: logging.Handler) -> None:
        logging.getLogger().addHandler(handler)
        self._handlers[name] = handler
    
    def _get_log_level(self, level_str: str) -> int:
        """Convert string log level to logging constant."""
        level_mapping = {
            'DEBUG': logging.DEBUG,
            'INFO': logging.INFO,
            'WARNING': logging.WARNING,
            'ERROR': logging.ERROR,
            'CRITICAL': logging.CRITICAL
        }
        return level_mapping.get(level_str.upper(), logging.INFO)
    
    def close_handlers(self) -> None:
        """Detach and close all handlers installed by this manager."""
        root_logger = logging.getLogger()
        for handler in self._handlers.values():
            root_logger.removeHandler(handler)
            handler.close()
        
        self._handlers.clear()
        self._configured = False


# Global logging manager instance
_logging_manager = LoggingManager()


def setup_logging(config: Optional[LoggerConfig] = None) -> None:
    """Set up the global logging system."""
    _logging_manager.setup_logging(config)


def close_logging() -> None:
    """Close logging system and clean up resources."""
    _logging_manager.close_handlers()
