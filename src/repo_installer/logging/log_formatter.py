"""
Console log formatter with ANSI colors.
"""

import logging


class ColoredFormatter(logging.Formatter):
    """
    Colors each console line by its level.

    Progress lines ("...Cloning", "...Updating") are green and warnings
    yellow, so a branch or stash left behind stands out.
    """

    LEVEL_COLORS = {
        logging.DEBUG: '\033[36m',     # cyan
        logging.INFO: '\033[32m',      # green
        logging.WARNING: '\033[33m',   # yellow
        logging.ERROR: '\033[31m',     # red
        logging.CRITICAL: '\033[1;31m',  # bold red
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        color = self.LEVEL_COLORS.get(record.levelno)
        if not color:
            return formatted
        return f"{color}{formatted}{self.RESET}"
