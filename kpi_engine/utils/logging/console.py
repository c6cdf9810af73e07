"""
Console output wrapper.

ConsoleOutput prints human-readable progress lines for interactive use and
forwards every message to a standard logger, so the same call ends up both on
the terminal and in the JSON log files.
"""

import logging
import sys
from typing import Optional


class ConsoleOutput:
    """
    Wrap a logger with console-friendly output helpers.

    Console lines respect the logger's effective level, so a quiet run
    (WARNING) prints only warnings and errors.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _emit(self, level: int, message: str, emoji: Optional[str] = None, indent: int = 0):
        # Log without decoration
        self.logger.log(level, message)

        if not self.logger.isEnabledFor(level):
            return

        prefix = " " * indent
        if emoji:
            prefix += f"{emoji} "

        stream = sys.stderr if level >= logging.WARNING else sys.stdout
        print(f"{prefix}{message}", file=stream)

    def debug(self, message: str, emoji: Optional[str] = None, indent: int = 0):
        # Debug lines only go to the log files
        self.logger.debug(message)

    def info(self, message: str, emoji: Optional[str] = None, indent: int = 0):
        self._emit(logging.INFO, message, emoji=emoji, indent=indent)

    def success(self, message: str, indent: int = 0):
        self._emit(logging.INFO, message, emoji="✅", indent=indent)

    def warning(self, message: str, indent: int = 0):
        self._emit(logging.WARNING, message, emoji="⚠️", indent=indent)

    def error(self, message: str, indent: int = 0):
        self._emit(logging.ERROR, message, emoji="❌", indent=indent)

    def section(self, title: str):
        """Print a section header"""
        self.logger.info(title)
        if self.logger.isEnabledFor(logging.INFO):
            print("")
            print("=" * 60)
            print(title)
            print("=" * 60)
