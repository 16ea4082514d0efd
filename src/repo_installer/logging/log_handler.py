"""
Log handlers used by the installer.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, TextIO


class RotatingFileHandler(logging.handlers.RotatingFileHandler):
    """
    Rotating file handler that creates the log directory on demand.
    
    Install runs are usually started from a fresh checkout directory, so the
    configured log path may point into a directory that does not exist yet.
    """
    
    def __init__(
        self,
        filename: str,
        mode: str = 'a',
        maxBytes: int = 0,
        backupCount: int = 0,
        encoding: Optional[str] = None,
        delay: bool = False
    ):
        log_path = Path(filename).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        
        super().__init__(str(log_path), mode, maxBytes, backupCount, encoding, delay)


class ConsoleHandler(logging.StreamHandler):
    """
    Console handler writing to stderr by default.
    
    stdout is left to the command's own output (results summary, config dump).
    """
    
    def __init__(self, stream: Optional[TextIO] = None):
        super().__init__(stream if stream is not None else sys.stderr)
    
    def is_tty(self) -> bool:
        isatty = getattr(self.stream, 'isatty', None)
        return bool(isatty and isatty())
