"""Logging setup for Docker Ops Manager.

Every log line carries the operation and subject it concerns, matching the
format of the daily log files:

    [2024-01-01 12:00:00] [INFO] [START] [web] - Container started successfully
"""

import logging
import sys
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Optional

from ..core.constants import LOG_FILE_PREFIX

PACKAGE_LOGGER = "docker_ops_manager"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(operation)s] [%(subject)s] - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Handlers installed by setup_logging, so repeated setup replaces them
_installed_handlers: list[logging.Handler] = []


class StderrHandler(logging.StreamHandler):
    """Stream handler that always writes to the current sys.stderr."""

    def __init__(self, level: int = logging.NOTSET):
        logging.Handler.__init__(self, level)

    @property
    def stream(self):
        return sys.stderr


class OperationContextFilter(logging.Filter):
    """Fill in empty operation/subject fields for records logged without them."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "operation"):
            record.operation = record.name.rsplit(".", 1)[-1].upper()
        if not hasattr(record, "subject"):
            record.subject = ""
        return True


def log_operation(logger: logging.Logger, level: int, operation: str,
                  subject: Optional[str], message: str) -> None:
    """Log a message tagged with an operation and the unit it concerns."""
    logger.log(level, message, extra={"operation": operation, "subject": subject or ""})


def log_file_for(log_dir: Path, day: Optional[date] = None) -> Path:
    """Path of the daily log file for the given day."""
    day = day or date.today()
    return log_dir / f"{LOG_FILE_PREFIX}{day.strftime('%Y-%m-%d')}.log"


def rotate_logs(log_dir: Path, max_days: int, today: Optional[date] = None) -> list[Path]:
    """Delete daily log files older than max_days.

    Args:
        log_dir: Directory holding the daily log files
        max_days: Number of days to keep
        today: Reference day (defaults to today)

    Returns:
        List of removed log files
    """
    if not log_dir.exists():
        return []

    cutoff = (today or date.today()) - timedelta(days=max_days)
    removed = []
    for log_file in sorted(log_dir.glob(f"{LOG_FILE_PREFIX}*.log")):
        stamp = log_file.stem[len(LOG_FILE_PREFIX):]
        try:
            file_day = datetime.strptime(stamp, "%Y-%m-%d").date()
        except ValueError:
            continue
        if file_day < cutoff:
            log_file.unlink(missing_ok=True)
            removed.append(log_file)
    return removed


def setup_logging(log_dir: Path, level: str = "INFO", rotation_days: int = 7,
                  stderr: bool = True) -> logging.Logger:
    """Configure the package logger.

    Writes to the daily log file at the configured level and echoes
    warnings and errors to stderr.

    Args:
        log_dir: Directory for daily log files
        level: Minimum level for the log file
        rotation_days: Days of log files to keep
        stderr: Echo WARNING and above to stderr

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in _installed_handlers:
        logger.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    level_name = "WARNING" if level.upper() == "WARN" else level.upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    context_filter = OperationContextFilter()

    log_dir.mkdir(parents=True, exist_ok=True)
    removed = rotate_logs(log_dir, rotation_days)

    file_handler = logging.FileHandler(log_file_for(log_dir), encoding="utf-8")
    file_handler.setFormatter(formatter)
    file_handler.addFilter(context_filter)
    _installed_handlers.append(file_handler)

    if stderr:
        stream_handler = StderrHandler(logging.WARNING)
        stream_handler.setFormatter(formatter)
        stream_handler.addFilter(context_filter)
        _installed_handlers.append(stream_handler)

    for handler in _installed_handlers:
        logger.addHandler(handler)

    for log_file in removed:
        log_operation(logger, logging.DEBUG, "LOGGING", "", f"Removed old log file: {log_file}")
    log_operation(logger, logging.DEBUG, "LOGGING", "", f"Logging initialized with level: {level_name}")
    return logger
