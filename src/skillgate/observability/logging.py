"""Logging setup for skillgate."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any

from skillgate.config.logging_config import LoggingConfig

LOGGER_NAME = "skillgate"

# LogRecord attributes that are not user-supplied ``extra`` fields.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}


class StructuredFormatter(logging.Formatter):
    """Format records as one JSON object per line.

    Every record carries ``timestamp``, ``level``, ``logger`` and
    ``message``. Values passed through ``extra=`` are added as top-level
    keys; exception text goes under ``exception``.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, ensure_ascii=False)


def setup_logging(
    config: LoggingConfig | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Configure the ``skillgate`` logger.

    Replaces handlers installed by an earlier call, so it is safe to call
    again after the configuration changes.

    Args:
        config: Logging configuration. Uses defaults if ``None``.
        stream: Output stream; ``sys.stderr`` when ``None``.

    Returns:
        The configured ``skillgate`` logger.
    """
    config = config or LoggingConfig()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, config.level))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handler = logging.StreamHandler(stream or sys.stderr)
    if config.structured:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(config.format))
    logger.addHandler(handler)

    return logger
