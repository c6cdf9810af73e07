"""
Rotating log handlers with gzip compression.

Keeps the KPI engine's log directory bounded: files rotate at a size limit and
rotated files are compressed.
"""

import gzip
import logging
import os
import shutil
from logging.handlers import RotatingFileHandler
from typing import Optional


class CompressingRotatingFileHandler(RotatingFileHandler):
    """
    Rotating file handler that gzips rotated files.

    Backups are named ``<file>.1.gz``, ``<file>.2.gz``, ... and shifted by the
    base class on every rollover.
    """

    def __init__(
        self,
        filename: str,
        mode: str = "a",
        maxBytes: int = 0,
        backupCount: int = 0,
        encoding: Optional[str] = None,
        delay: bool = False,
        compress: bool = True,
    ):
        super().__init__(filename, mode, maxBytes, backupCount, encoding, delay)
        self.compress = compress
        if compress:
            self.namer = self._compressed_name
            self.rotator = self._compress_rotate

    @staticmethod
    def _compressed_name(name: str) -> str:
        return f"{name}.gz"

    @staticmethod
    def _compress_rotate(source: str, dest: str):
        """Compress the current log file into its rotated name and remove it."""
        if not os.path.exists(source):
            return

        try:
            with open(source, "rb") as f_in:
                with gzip.open(dest, "wb") as f_out:
                    shutil.copyfileobj(f_in, f_out)
        except OSError as e:
            # Keep the uncompressed file rather than losing log lines
            print(f"Warning: Failed to compress {source}: {e}")
            return

        os.remove(source)


def create_rotating_handler(
    log_file: str,
    max_bytes: int = 5242880,  # 5MB
    backup_count: int = 5,
    compress: bool = True,
    formatter: Optional[logging.Formatter] = None,
) -> CompressingRotatingFileHandler:
    """
    Create a rotating file handler, creating the log directory if needed.

    Args:
        log_file: Path to the log file
        max_bytes: Maximum file size in bytes before rotation (default: 5MB)
        backup_count: Number of rotated files to keep (default: 5)
        compress: Whether to gzip rotated files (default: True)
        formatter: Log formatter to use

    Returns:
        CompressingRotatingFileHandler instance
    """
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    handler = CompressingRotatingFileHandler(
        filename=log_file, maxBytes=max_bytes, backupCount=backup_count, compress=compress, encoding="utf-8"
    )

    if formatter:
        handler.setFormatter(formatter)

    return handler
