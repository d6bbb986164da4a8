"""Structured key=value logging for the grant agent."""

import logging
import sys
from typing import Any

# Identifiers promoted to record attributes and printed before other context
CONTEXT_FIELDS = ("profile_id", "grant_id", "field")

_ROOT_LOGGER = "grant_agent"


class StructuredFormatter(logging.Formatter):
    """Render a record as ``key=value`` pairs, context identifiers first."""

    def format(self, record: logging.LogRecord) -> str:
        parts = [
            f"timestamp={self.formatTime(record, self.datefmt)}",
            f"level={record.levelname}",
            f"logger={record.name}",
        ]
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                parts.append(f"{field}={value}")

        for key, value in getattr(record, "extra_data", {}).items():
            parts.append(f"{key}={value}")

        parts.append(f"message={record.getMessage()}")
        if record.exc_info:
            parts.append(f"exc={self.formatException(record.exc_info)!r}")
        return " ".join(parts)


def _configure_root() -> logging.Logger:
    root = logging.getLogger(_ROOT_LOGGER)
    if root.handlers:
        return root

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())
    root.addHandler(handler)

    try:
        from grant_agent.core.config import get_settings

        dev = get_settings().GRANT_AGENT_ENV == "dev"
    except Exception:
        # Credentials may be missing at import time
        dev = False
    root.setLevel(logging.DEBUG if dev else logging.INFO)
    return root


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the ``grant_agent`` hierarchy.

    The package logger owns the single stdout handler; module loggers
    propagate to it.
    """
    _configure_root()
    if name != _ROOT_LOGGER and not name.startswith(f"{_ROOT_LOGGER}."):
        name = f"{_ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def log_with_context(logger: logging.Logger, level: int, msg: str, **context: Any) -> None:
    """
    Log with context fields.

    ``profile_id``, ``grant_id`` and ``field`` become record attributes;
    anything else is carried in ``extra_data``.
    """
    extra: dict[str, Any] = {field: context.pop(field) for field in CONTEXT_FIELDS if field in context}
    extra["extra_data"] = context
    logger.log(level, msg, extra=extra)
