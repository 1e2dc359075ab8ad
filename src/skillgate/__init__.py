"""
skillgate - Discover, validate, gate, audit and test agent skill bundles.

Quick Start:
    >>> from skillgate import SkillManager, SkillgateSettings
    >>> settings = SkillgateSettings()  # Loads from env, .env, skillgate.toml
    >>> manager = SkillManager(settings.skills, scanner=settings.scanner.build_scanner())
    >>> result = manager.load()
    >>> print(result.prompt)

Testing skills:
    >>> from skillgate import SkillTestRunner, format_test_results
    >>> run = SkillTestRunner(Path("skills")).run()
    >>> print(format_test_results(run.reports))
"""

from importlib.metadata import PackageNotFoundError, version

from skillgate.config import LoggingConfig, SkillgateSettings
from skillgate.observability import setup_logging
from skillgate.skills import (
    Skill,
    SkillConfig,
    SkillManager,
    SkillScanner,
    SkillTestFramework,
    SkillTestRunner,
    SkillWatcher,
    TestOptions,
    format_test_results,
)

try:
    __version__ = version("skillgate")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "LoggingConfig",
    "Skill",
    "SkillConfig",
    "SkillManager",
    "SkillScanner",
    "SkillTestFramework",
    "SkillTestRunner",
    "SkillWatcher",
    "SkillgateSettings",
    "TestOptions",
    "__version__",
    "format_test_results",
    "setup_logging",
]
