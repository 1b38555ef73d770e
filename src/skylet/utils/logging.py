"""
Logging utilities for skylet.
Provides structured logging with rotation, systemd journal integration and
flight-cycle correlation.
"""

import logging
import logging.handlers
import sys
import uuid
from contextvars import ContextVar
from pathlib import Path
from typing import Any

# Context variable for the flight cycle currently in progress
flight_cycle_id: ContextVar[str | None] = ContextVar("flight_cycle_id", default=None)


class FlightCycleFilter(logging.Filter):
    """Add the flight cycle ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add cycle ID to the log record."""
        record.cycle_id = flight_cycle_id.get() or "no-cycle"
        return True


class StructuredFormatter(logging.Formatter):
    """Formatter that prefixes messages with the flight cycle ID."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with cycle ID."""
        if hasattr(record, "cycle_id") and record.cycle_id != "no-cycle":
            original_msg = record.getMessage()
            record.msg = f"[cycle {record.cycle_id}] {original_msg}"
            record.args = ()  # Clear args to prevent re-formatting

        return super().format(record)


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    log_file_path: str | None = None,
    log_file_max_bytes: int = 10485760,  # 10 MB
    log_file_backup_count: int = 5,
    enable_console: bool = True,
    enable_file: bool = True,
    enable_journal: bool = False,
) -> None:
    """
    Set up logging configuration with multiple handlers.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log message format string
        log_file_path: Path to log file
        log_file_max_bytes: Maximum size of log file before rotation
        log_file_backup_count: Number of backup files to keep
        enable_console: Enable console logging
        enable_file: Enable file logging
        enable_journal: Enable systemd journal logging
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.handlers.clear()

    formatter = StructuredFormatter(log_format)
    cycle_filter = FlightCycleFilter()

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.addFilter(cycle_filter)
        root_logger.addHandler(console_handler)

    if enable_file and log_file_path:
        log_path = Path(log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file_path, maxBytes=log_file_max_bytes, backupCount=log_file_backup_count
        )
        file_handler.setFormatter(formatter)
        file_handler.addFilter(cycle_filter)
        root_logger.addHandler(file_handler)

    if enable_journal:
        try:
            from systemd.journal import JournalHandler

            journal_handler = JournalHandler(SYSLOG_IDENTIFIER="skylet")
            journal_handler.setFormatter(formatter)
            journal_handler.addFilter(cycle_filter)
            root_logger.addHandler(journal_handler)
        except ImportError:
            # systemd-python not installed or not on Linux
            if sys.platform.startswith("linux"):
                logging.warning("systemd-python not installed, journal logging disabled")

    logging.info(f"Logging configured with level: {log_level}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def start_flight_cycle(cycle_id: str | None = None) -> str:
    """
    Set the flight cycle ID for the current context.

    Tasks created afterwards from this context inherit the ID.

    Args:
        cycle_id: Optional cycle ID. If not provided, generates a short UUID.

    Returns:
        The cycle ID that was set
    """
    if cycle_id is None:
        cycle_id = uuid.uuid4().hex[:8]

    flight_cycle_id.set(cycle_id)
    return cycle_id


def get_flight_cycle() -> str | None:
    """Get the current flight cycle ID."""
    return flight_cycle_id.get()


def end_flight_cycle() -> None:
    """Clear the current flight cycle ID."""
    flight_cycle_id.set(None)


def log_with_context(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """
    Log a message with additional context fields.

    Args:
        logger: Logger instance
        level: Log level
        message: Log message
        **context: Additional context fields to include
    """
    if context:
        context_str = " ".join([f"{k}={v}" for k, v in context.items()])
        full_message = f"{message} | {context_str}"
    else:
        full_message = message

    logger.log(level, full_message)


# Convenience functions for structured logging
def log_debug(logger: logging.Logger, message: str, **context: Any) -> None:
    """Log debug message with context."""
    log_with_context(logger, logging.DEBUG, message, **context)


def log_info(logger: logging.Logger, message: str, **context: Any) -> None:
    """Log info message with context."""
    log_with_context(logger, logging.INFO, message, **context)


def log_warning(logger: logging.Logger, message: str, **context: Any) -> None:
    """Log warning message with context."""
    log_with_context(logger, logging.WARNING, message, **context)


def log_error(logger: logging.Logger, message: str, **context: Any) -> None:
    """Log error message with context."""
    log_with_context(logger, logging.ERROR, message, **context)
