"""
Logging configuration for hedlib.

Every module logs through a child of the ``hedlib`` package logger. When used
as a library nothing is printed unless the host application configures
logging; the command-line tool calls :func:`setup_logging` once at startup.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from .paths import get_log_file_path, get_old_log_file_path


PACKAGE_LOGGER = "hedlib"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CONSOLE_FORMAT = "%(levelname)s: %(message)s"

logging.getLogger(PACKAGE_LOGGER).addHandler(logging.NullHandler())


def rotate_log_files(log_file: Optional[Path] = None, old_log_file: Optional[Path] = None) -> None:
    """
    Move the previous session's log aside before a new session starts.

    Only the current and the previous session are kept: an existing
    log.old.txt is replaced by log.txt.

    Args:
        log_file: Current log file. Defaults to log.txt in the data directory.
        old_log_file: Where the previous log goes. Defaults to log.old.txt.
    """
    log_file = log_file or get_log_file_path()
    old_log_file = old_log_file or get_old_log_file_path()

    if not log_file.exists():
        return

    try:
        log_file.replace(old_log_file)
    except OSError as e:
        print(f"Warning: Could not rotate log file {log_file}: {e}", file=sys.stderr)


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    log_to_file: bool = True,
    file_level: int = logging.DEBUG
) -> logging.Logger:
    """
    Attach console and file handlers to the hedlib package logger.

    Calling this again replaces the handlers installed by a previous call,
    so the CLI can be invoked repeatedly in one process.

    Args:
        level: Level for the stderr console handler.
        log_file: Log file path. If None, log.txt in the persistent data
            directory is used and rotated to log.old.txt first.
        log_to_file: Whether to write a log file at all.
        file_level: Level for the file handler.

    Returns:
        The configured package logger.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    # stdout is reserved for command output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    package_logger.addHandler(console_handler)

    effective_level = level
    if log_to_file:
        if log_file is None:
            log_file = get_log_file_path()
            rotate_log_files(log_file)

        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8', mode='w')
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        package_logger.addHandler(file_handler)
        effective_level = min(level, file_level)

    package_logger.setLevel(effective_level)
    package_logger.propagate = False
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module (typically ``get_logger(__name__)``).

    Names outside the package are nested under the package logger so that
    their records reach the handlers installed by :func:`setup_logging`.
    """
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
