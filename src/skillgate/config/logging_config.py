"""Logging configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingConfig(BaseModel):
    """Configuration for the ``skillgate`` logger.

    Attributes:
        level: Minimum level emitted.
        structured: Emit one JSON object per line instead of text.
        format: ``logging.Formatter`` format string for text output.
    """

    level: LogLevel = Field(default="INFO", description="Minimum log level")
    structured: bool = Field(default=False, description="Emit JSON lines")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Format string for text output",
    )
