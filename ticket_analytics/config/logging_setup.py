"""Stdlib logging configuration for analytics runtime surfaces.

Guard violation records carry their audit payload in the `analytics` extra
attribute; the formatter renders it as sorted `key=value` pairs.
"""

from __future__ import annotations

import logging
import sys

GUARD_LOGGER_NAME = "ticket_analytics.guard"


class AnalyticsLogFormatter(logging.Formatter):
    """Formatter appending the structured analytics payload to each line."""

    def __init__(self):
        super().__init__(fmt="%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        base_line = super().format(record)
        payload = getattr(record, "analytics", None)
        if not isinstance(payload, dict) or not payload:
            return base_line
        rendered_fields = " ".join(f"{key}={payload[key]}" for key in sorted(payload))
        return f"{base_line} | {rendered_fields}"


def config_configure_logging(level: str = "INFO") -> None:
    """Install one stderr handler with the analytics formatter on the root logger.

    Args:
        level: Logging level name.

    Raises:
        ValueError: Raised when level is not a known logging level name.
    """

    numeric_level = logging.getLevelName(level.strip().upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"unsupported log level={level}")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(AnalyticsLogFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)


def config_get_guard_logger() -> logging.Logger:
    """Return the logger injected into the analytics guard."""

    return logging.getLogger(GUARD_LOGGER_NAME)
