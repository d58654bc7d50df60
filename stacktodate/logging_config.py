"""
Logging setup for the stacktodate CLI.

Diagnostics go to stderr so that command output on stdout (tables, JSON
check reports) stays machine-readable.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from .common import is_debug_enabled

LOGGER_NAME = "stacktodate"


def setup_logging(
    level: str = "WARNING",
    log_file: Optional[str] = None,
    verbose: bool = False,
    quiet: bool = False,
    propagate: bool = False,
) -> logging.Logger:
    """
    Configure the stacktodate logger.

    Args:
        level: Console level when neither verbose nor STD_DEBUG is set
        log_file: Optional file that receives every record at DEBUG
        verbose: Show debug messages on stderr (same as STD_DEBUG=1)
        quiet: No console handler at all
        propagate: Pass records to the root logger (used by tests)

    Returns:
        Configured logger instance
    """
    console_level = logging.DEBUG if verbose or is_debug_enabled() else getattr(logging, level.upper())

    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(logging.DEBUG if log_file else console_level)

    if not quiet:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(console_level)
        console.setFormatter(ColoredFormatter("%(levelname_colored)s %(message)s", use_colors=sys.stderr.isatty()))
        logger.addHandler(console)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(file_handler)

    logger.propagate = propagate
    return logger


class ColoredFormatter(logging.Formatter):
    """Prefix messages with an ANSI-colored level name."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, fmt: str, use_colors: bool = True):
        super().__init__(fmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        if self.use_colors and record.levelname in self.COLORS:
            record.levelname_colored = f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}"
        else:
            record.levelname_colored = record.levelname
        return super().format(record)
