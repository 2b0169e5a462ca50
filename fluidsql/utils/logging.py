"""Centralized logging configuration for FluidSQL.

Library code only ever calls :func:`get_logger`; applications that want the
structured output call :func:`configure_logging` once.

Executor records carry their context (command text, elapsed time, stage) in an
``extra_fields`` attribute built by :func:`log_fields`. Both formatters render it.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

from fluidsql._serialization import encode_json

if TYPE_CHECKING:
    from logging import LogRecord

__all__ = ("KeyValueFormatter", "StructuredFormatter", "configure_logging", "get_logger", "log_fields")

ROOT_LOGGER_NAME = "fluidsql"
SIMPLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def log_fields(**fields: Any) -> dict[str, dict[str, Any]]:
    """Build the ``extra`` argument for a logging call.

    Fields whose value is None are left out.

    Returns:
        ``{"extra_fields": {...}}``
    """
    return {"extra_fields": {key: value for key, value in fields.items() if value is not None}}


class StructuredFormatter(logging.Formatter):
    """Structured JSON formatter."""

    def format(self, record: LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if hasattr(record, "extra_fields"):
            log_entry.update(record.extra_fields)  # pyright: ignore

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return encode_json(log_entry)


class KeyValueFormatter(logging.Formatter):
    """Plain text formatter that appends ``extra_fields`` as ``key=value`` pairs."""

    def __init__(self, fmt: str | None = SIMPLE_FORMAT, datefmt: str | None = None) -> None:
        super().__init__(fmt, datefmt)

    def format(self, record: LogRecord) -> str:
        message = super().format(record)
        fields: dict[str, Any] = getattr(record, "extra_fields", {})
        if not fields:
            return message
        pairs = " ".join(f"{key}={value!r}" for key, value in fields.items())
        return f"{message} [{pairs}]"


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance with standardized configuration.

    Args:
        name: Logger name. If not provided, returns the root fluidsql logger.

    Returns:
        Configured logger instance
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)

    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    return logging.getLogger(name)


def configure_logging(
    level: str = "INFO",
    format_style: str = "structured",
    log_to_file: str | None = None,
    extra_handlers: list[logging.Handler] | None = None,
) -> None:
    """Configure logging for the whole library.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_style: Log format style ("structured" for JSON, "simple" for text)
        log_to_file: Optional file path to log to
        extra_handlers: Additional handlers to add
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    formatter: logging.Formatter = StructuredFormatter() if format_style == "structured" else KeyValueFormatter()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_to_file:
        file_handler = logging.FileHandler(log_to_file)
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    for handler in extra_handlers or []:
        root_logger.addHandler(handler)

    root_logger.propagate = False

    root_logger.info(
        "FluidSQL logging configured",
        extra=log_fields(level=level, format_style=format_style, handlers_count=len(root_logger.handlers)),
    )
