"""Configuration system for skillgate.

Main exports:
- SkillgateSettings: Root configuration class
- LoggingConfig: Logging configuration
- WatchConfig, ScannerConfig, TestingConfig: Per-component sections
"""

from skillgate.config.logging_config import LoggingConfig
from skillgate.config.settings import (
    ScannerConfig,
    SkillgateSettings,
    TestingConfig,
    WatchConfig,
)

__all__ = [
    "LoggingConfig",
    "ScannerConfig",
    "SkillgateSettings",
    "TestingConfig",
    "WatchConfig",
]
