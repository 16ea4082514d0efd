"""
Logging system for the repository installer.
"""

from .logger_config import setup_logging, close_logging, LoggerConfig
from .log_formatter import ColoredFormatter
from .log_handler import RotatingFileHandler, ConsoleHandler

__all__ = [
    "setup_logging",
    "close_logging",
    "LoggerConfig",
    "ColoredFormatter",
    "RotatingFileHandler",
    "ConsoleHandler"
]
