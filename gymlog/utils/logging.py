"""
Logging for GymLog.

Everything logs under the ``gymlog`` namespace. Nothing is configured on
import; the CLI (or a host application) calls ``setup_logging`` once.
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal, Mapping

ROOT_LOGGER_NAME = "gymlog"
DEFAULT_LOG_FILE = "gymlog.log"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]

_LEVEL_COLORS = {
    logging.DEBUG: "\033[2m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[1;31m",
}
_RESET = "\033[0m"


class GymLogFormatter(logging.Formatter):
    """One line per record: UTC time, level, short logger name, message.

    Example:
        2026-01-31 07:30:00Z WARNING  storage.checkpoint   Recovered 12 events ...
    """

    def __init__(self, color: bool = False):
        super().__init__()
        self.color = color

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        return datetime.fromtimestamp(record.created, UTC).strftime("%Y-%m-%d %H:%M:%SZ")

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:<8}"
        if self.color:
            level = f"{_LEVEL_COLORS.get(record.levelno, '')}{level}{_RESET}"

        line = f"{self.formatTime(record)} {level} [{short_name(record.name):<20}] {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def short_name(name: str) -> str:
    """Strip the package prefix from a logger name."""
    prefix = f"{ROOT_LOGGER_NAME}."
    return name[len(prefix):] if name.startswith(prefix) else name


def setup_logging(
    level: LogLevel = "INFO",
    log_dir: str | Path | None = None,
    console_output: bool = True,
    log_filename: str = DEFAULT_LOG_FILE,
) -> logging.Logger:
    """(Re)configure the ``gymlog`` logger.

    Existing handlers are closed and replaced, so calling this again is
    how a caller switches level or releases the log file.

    Args:
        level: Minimum level for every handler
        log_dir: Write ``log_filename`` here as well; no file when None
        console_output: Log to stderr, colored when it is a terminal
        log_filename: Log file name inside ``log_dir``

    Returns:
        The configured package logger
    """
    numeric = logging.getLevelName(level)
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(numeric)
    root.propagate = False

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = []
    if console_output:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(GymLogFormatter(color=sys.stderr.isatty()))
        handlers.append(console)
    if log_dir is not None:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(directory / log_filename, encoding="utf-8")
        file_handler.setFormatter(GymLogFormatter())
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(numeric)
        root.addHandler(handler)
    return root


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``gymlog`` namespace, e.g. ``get_logger("core.store")``."""
    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def _details(values: Mapping[str, Any] | None) -> str:
    if not values:
        return ""
    return " " + " ".join(f"{key}={value}" for key, value in values.items())


def log_operation(
    logger: logging.Logger,
    operation: str,
    details: Mapping[str, Any] | None = None,
    level: int = logging.INFO,
) -> None:
    """Log a completed operation followed by ``key=value`` details."""
    logger.log(level, f"{operation}{_details(details)}")


def log_error(
    logger: logging.Logger,
    operation: str,
    error: BaseException,
    context: Mapping[str, Any] | None = None,
) -> None:
    """Log a failed operation before its exception is raised to the caller."""
    logger.error(f"{operation} failed ({type(error).__name__}: {error}){_details(context)}")
