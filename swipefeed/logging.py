"""Structured logging configuration."""

import logging
import sys
from datetime import datetime, timezone
from typing import TextIO

# LogRecord attributes appended as key=value when passed via ``extra``
CONTEXT_FIELDS = ("session_key", "region", "fallback_level")

QUIET_LOGGERS = ("sqlalchemy.pool", "aiosqlite")


class StructuredFormatter(logging.Formatter):
    """Pipe-separated log lines with optional feed context."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        timestamp = created.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
        parts = [timestamp, record.levelname.ljust(8), record.name, record.getMessage()]

        context = [
            f"{name}={getattr(record, name)}"
            for name in CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        ]
        if context:
            parts.append(" ".join(context))

        line = " | ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(level: str = "INFO", stream: TextIO | None = None) -> logging.Handler:
    """Install the structured handler on the root logger.

    Calling it again replaces the previously installed structured handler
    and leaves any other handlers alone.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        stream: Output stream (defaults to stdout)

    Returns:
        The installed handler
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for existing in list(root_logger.handlers):
        if isinstance(existing.formatter, StructuredFormatter):
            root_logger.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(StructuredFormatter())
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return handler


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name.

    Args:
        name: Logger name, typically __name__ of the calling module
    """
    return logging.getLogger(name)
