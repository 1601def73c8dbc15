"""Structured logging configuration for the commit assistant.

This module provides structured logging with JSON format, run ID tracking
and git operation logging. Components never configure logging themselves;
they receive a logger at construction time and default to ``null_logger()``.
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


# Context variable for run ID tracking
run_id_var: ContextVar[Optional[str]] = ContextVar("run_id", default=None)

NULL_LOGGER_NAME = "commit_assistant.null"


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Formats log records as JSON with consistent fields including:
    - timestamp: ISO 8601 formatted timestamp
    - level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - logger: Logger name
    - message: Log message
    - run_id: Run ID from context (if available)
    - Additional fields from extra parameter
    """

    # Standard LogRecord attributes that are not copied as extra fields
    SKIP_ATTRS = {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "message", "pathname", "process", "processName", "relativeCreated",
        "thread", "threadName", "exc_info", "exc_text", "stack_info",
        "taskName",
    }

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        run_id = run_id_var.get()
        if run_id:
            log_entry["run_id"] = run_id

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in self.SKIP_ATTRS and not key.startswith("_"):
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class PlainFormatter(logging.Formatter):
    """Human readable formatter that appends extra fields as ``key=value``."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-7s %(message)s", datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = [
            f"{key}={value}"
            for key, value in record.__dict__.items()
            if key not in StructuredFormatter.SKIP_ATTRS
            and key not in ("asctime", "run_id")
            and not key.startswith("_")
        ]
        if extras:
            line = f"{line} {' '.join(extras)}"
        return line


class RunIDFilter(logging.Filter):
    """Filter that adds the current run ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        run_id = run_id_var.get()
        if run_id:
            record.run_id = run_id
        return True


def setup_logging(
    log_level: str = "INFO",
    use_json: bool = False,
    log_file: Optional[str] = None,
    stream: str = "stderr",
) -> None:
    """Configure logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        use_json: If True, use JSON formatter; otherwise use plain text
        log_file: Optional file path for logging output
        stream: "stderr" or "stdout"; stdio tool servers must use stderr
    """
    level = getattr(logging, log_level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter: logging.Formatter = StructuredFormatter() if use_json else PlainFormatter()

    console_handler = logging.StreamHandler(sys.stdout if stream == "stdout" else sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(RunIDFilter())
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(RunIDFilter())
        root_logger.addHandler(file_handler)


def set_run_id(run_id: Optional[str] = None) -> str:
    """Set the run ID in context, generating a new one when omitted."""
    if run_id is None:
        run_id = str(uuid.uuid4())
    run_id_var.set(run_id)
    return run_id


def get_run_id() -> Optional[str]:
    return run_id_var.get()


def clear_run_id() -> None:
    run_id_var.set(None)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a specific component."""
    return logging.getLogger(name)


def null_logger() -> logging.Logger:
    """Return a logger that discards everything.

    Used as the default for components constructed without a logger.
    """
    logger = logging.getLogger(NULL_LOGGER_NAME)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    logger.propagate = False
    return logger


git_logger = get_logger("commit_assistant.git_operations")


def log_git_operation(
    operation: str,
    repository: str,
    success: bool,
    duration: float,
    details: Optional[Dict[str, Any]] = None,
    error: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Log a git operation with structured data.

    Args:
        operation: Type of operation (commit, push, tag, ...)
        repository: Repository path
        success: Whether operation succeeded
        duration: Operation duration in seconds
        details: Additional operation details
        error: Error message if operation failed
        logger: Logger to write to, defaults to the git operations logger
    """
    log = logger or git_logger
    log_data: Dict[str, Any] = {
        "operation": operation,
        "repository": repository,
        "success": success,
        "duration_seconds": round(duration, 3),
    }

    if details:
        log_data.update(details)

    if error:
        log_data["error"] = error

    if success:
        log.info(f"Git operation completed: {operation}", extra=log_data)
    else:
        log.error(f"Git operation failed: {operation}", extra=log_data)
