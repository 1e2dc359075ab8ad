"""Skills subsystem: discovery, validation, gating, auditing and testing.

A skill is a folder holding a ``SKILL.md`` file (front matter plus a
markdown body) and optionally supporting code. The ``SkillManager`` facade
runs the whole pipeline and keeps the result current.

Quick Start:
    >>> from skillgate.skills import SkillConfig, SkillManager
    >>> manager = SkillManager(SkillConfig(workspace_dir=Path.cwd()))
    >>> result = manager.load()
    >>> print(result.prompt)

Classes:
    SkillManager: Top-level facade for the skills subsystem.
    Skill: A parsed SKILL.md with its source tag.
    SkillConfig: Discovery roots and limits.
    SkillEntryConfig: Per-skill enable switch and environment.
    SkillScanner: Static security scanner for skill code.
    SkillWatcher: Debounced live reload watcher.
    SkillTestFramework, SkillTestRunner: Static skill test suite.

Exceptions:
    SkillError: Base exception for all skill-related errors.
    SkillNotFoundError: SKILL.md does not exist.
    SkillParseError: Front matter is malformed.
    SkillLoadError: Read failures (permissions, size, encoding).
    ConfigurationError: Invalid configuration value.
"""

from __future__ import annotations

from skillgate.skills.config import (
    DiagnosticSeverity,
    DiscoveryResult,
    EligibilityResult,
    Skill,
    SkillConfig,
    SkillEntryConfig,
    SkillFrontmatter,
    SkillRoot,
    SkillSource,
    ValidationDiagnostic,
    ValidationResult,
)
from skillgate.skills.discovery import (
    discover_from_config,
    discover_from_multiple,
    discover_skills,
    load_skill_from_file,
    merge_discovery_results,
)
from skillgate.skills.eligibility import (
    LocalEligibilityContext,
    StaticEligibilityContext,
    check_eligibility,
    filter_eligible_skills,
    get_eligibility_diagnostics,
)
from skillgate.skills.entries import (
    filter_enabled_skills,
    get_skill_environment,
    is_skill_enabled,
    resolve_skill_entry,
)
from skillgate.skills.errors import (
    ConfigurationError,
    SkillError,
    SkillLoadError,
    SkillNotFoundError,
    SkillParseError,
)
from skillgate.skills.manager import SkillLoadResult, SkillManager
from skillgate.skills.prompt import (
    format_skill_detail,
    format_skills_for_prompt,
    format_skills_list,
    format_skills_summary,
)
from skillgate.skills.reporting import (
    exit_code,
    format_test_results,
    format_test_results_json,
    format_test_results_tap,
    print_test_results,
)
from skillgate.skills.scanner import (
    ScanSummary,
    SecurityFinding,
    Severity,
    SkillScanner,
    collect_skill_install_warnings,
    format_scan_summary,
    scan_skill_directory,
)
from skillgate.skills.testing import (
    SkillTestFramework,
    SkillTestReport,
    SkillTestRunner,
    TestOptions,
    TestResult,
    TestStatus,
)
from skillgate.skills.validator import (
    validate_all_skills,
    validate_description,
    validate_metadata,
    validate_name,
    validate_skill,
)
from skillgate.skills.watcher import SkillWatcher, create_watcher_for_manager

__all__ = [
    "ConfigurationError",
    "DiagnosticSeverity",
    "DiscoveryResult",
    "EligibilityResult",
    "LocalEligibilityContext",
    "ScanSummary",
    "SecurityFinding",
    "Severity",
    "Skill",
    "SkillConfig",
    "SkillEntryConfig",
    "SkillError",
    "SkillFrontmatter",
    "SkillLoadError",
    "SkillLoadResult",
    "SkillManager",
    "SkillNotFoundError",
    "SkillParseError",
    "SkillRoot",
    "SkillScanner",
    "SkillSource",
    "SkillTestFramework",
    "SkillTestReport",
    "SkillTestRunner",
    "SkillWatcher",
    "StaticEligibilityContext",
    "TestOptions",
    "TestResult",
    "TestStatus",
    "ValidationDiagnostic",
    "ValidationResult",
    "check_eligibility",
    "collect_skill_install_warnings",
    "create_watcher_for_manager",
    "discover_from_config",
    "discover_from_multiple",
    "discover_skills",
    "exit_code",
    "filter_eligible_skills",
    "filter_enabled_skills",
    "format_scan_summary",
    "format_skill_detail",
    "format_skills_for_prompt",
    "format_skills_list",
    "format_skills_summary",
    "format_test_results",
    "format_test_results_json",
    "format_test_results_tap",
    "get_eligibility_diagnostics",
    "get_skill_environment",
    "is_skill_enabled",
    "load_skill_from_file",
    "merge_discovery_results",
    "print_test_results",
    "resolve_skill_entry",
    "scan_skill_directory",
    "validate_all_skills",
    "validate_description",
    "validate_metadata",
    "validate_name",
    "validate_skill",
]
