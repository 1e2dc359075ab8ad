"""Logging utilities.

Exports:
- setup_logging: Configure the ``skillgate`` logger
- StructuredFormatter: JSON-lines formatter
"""

from skillgate.observability.logging import StructuredFormatter, setup_logging

__all__ = [
    "StructuredFormatter",
    "setup_logging",
]
