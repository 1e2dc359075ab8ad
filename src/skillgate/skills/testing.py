"""Skill test framework and runner.

``SkillTestFramework.test_skill`` runs a fixed set of static checks against
one skill directory (format, dependencies, security, metadata, examples)
and rolls them into a ``SkillTestReport``. ``SkillTestRunner`` enumerates a
skills root with the discovery engine and tests every skill in it.

Nothing here executes skill code; example blocks are only checked for
obvious shell syntax errors.
"""

from __future__ import annotations

import logging
import re
import shlex
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from skillgate.skills.config import SKILL_FILE_NAME, Skill, SkillFrontmatter, SkillSource
from skillgate.skills.discovery import discover_skills
from skillgate.skills.eligibility import EligibilityContext, LocalEligibilityContext
from skillgate.skills.errors import SkillError
from skillgate.skills.frontmatter import parse_frontmatter, read_skill_file, split_frontmatter
from skillgate.skills.scanner import Severity, SkillScanner

logger = logging.getLogger(__name__)

#: Bodies shorter than this produce a format warning.
MIN_BODY_LENGTH = 10

# Fences open and close at the start of a line.
_CODE_BLOCK_PATTERN = re.compile(r"^[ \t]*```([^\n`]*)\n(.*?)^[ \t]*```", re.DOTALL | re.MULTILINE)
_QUOTED_PATTERN = re.compile(r"'[^']*'|\"(?:\\.|[^\"\\])*\"")
_SHELL_LANGUAGES = frozenset({"bash", "sh", "shell", "zsh"})

# Install spec kind -> field it must carry.
_INSTALL_REQUIRED_FIELDS: dict[str, str] = {
    "brew": "formula",
    "npm": "package",
    "pnpm": "package",
    "yarn": "package",
    "bun": "package",
    "uv": "package",
    "pip": "package",
    "go": "module",
}


class TestStatus(str, Enum):
    """Outcome of a single check."""

    __test__ = False

    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"
    SKIP = "skip"


@dataclass
class TestResult:
    """Result of one check.

    Attributes:
        name: Check name (``SKILL.md format``, ``Dependencies``...).
        status: Outcome.
        message: One-line summary.
        details: Supporting lines.
        duration_ms: Wall time spent in the check.
    """

    __test__ = False

    name: str
    status: TestStatus
    message: str = ""
    details: list[str] = field(default_factory=list)
    duration_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "details": list(self.details),
            "duration_ms": round(self.duration_ms, 3),
        }


@dataclass
class TestSummary:
    """Counts of check outcomes in one report."""

    __test__ = False

    total: int = 0
    passed: int = 0
    failed: int = 0
    warnings: int = 0
    skipped: int = 0

    @classmethod
    def from_results(cls, results: list[TestResult]) -> TestSummary:
        statuses = [result.status for result in results]
        return cls(
            total=len(statuses),
            passed=statuses.count(TestStatus.PASS),
            failed=statuses.count(TestStatus.FAIL),
            warnings=statuses.count(TestStatus.WARN),
            skipped=statuses.count(TestStatus.SKIP),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "warnings": self.warnings,
            "skipped": self.skipped,
        }


@dataclass
class SkillTestReport:
    """All check results for one skill.

    Attributes:
        skill_name: Directory name of the skill.
        skill_path: Skill directory.
        timestamp: Epoch seconds when the report was created.
        results: Check results in execution order.
        summary: Outcome counts.
        passed: No failing check (and, in strict mode, no warning).
    """

    skill_name: str
    skill_path: Path
    timestamp: float
    results: list[TestResult]
    summary: TestSummary
    passed: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "skill_name": self.skill_name,
            "skill_path": str(self.skill_path),
            "timestamp": self.timestamp,
            "results": [result.to_dict() for result in self.results],
            "summary": self.summary.to_dict(),
            "passed": self.passed,
        }


@dataclass
class TestOptions:
    """Which checks run and how results roll up.

    Attributes:
        skip_security: Do not run the security scan.
        skip_deps: Do not check declared dependencies.
        skip_examples: Do not check code examples.
        strict: Warnings fail a report.
        context: Eligibility probe for dependency checks.
        scanner: Scanner for the security check.
    """

    __test__ = False

    skip_security: bool = False
    skip_deps: bool = False
    skip_examples: bool = False
    strict: bool = False
    context: EligibilityContext | None = None
    scanner: SkillScanner | None = None


@dataclass
class TestRunResult:
    """Reports for every skill under a root; ``passed`` is their conjunction."""

    __test__ = False

    reports: list[SkillTestReport] = field(default_factory=list)
    passed: bool = True


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


def _finish(
    name: str,
    started: float,
    status: TestStatus,
    message: str,
    details: list[str] | None = None,
) -> TestResult:
    return TestResult(name, status, message, list(details or []), _elapsed_ms(started))


def extract_code_blocks(content: str) -> list[tuple[str, str]]:
    """Return ``(language, code)`` for every fenced block; language defaults to ``text``."""
    return [
        ((match.group(1).split() or ["text"])[0], match.group(2).strip())
        for match in _CODE_BLOCK_PATTERN.finditer(content)
    ]


def check_shell_syntax(code: str) -> str | None:
    """Return an error description for obviously broken shell code, else ``None``.

    Detects unterminated quotes and unbalanced parentheses outside quotes.
    """
    try:
        shlex.split(code, comments=True)
    except ValueError as exc:
        return f"Unclosed quote ({exc})"

    for line in code.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        unquoted = _QUOTED_PATTERN.sub("", stripped)
        if unquoted.count("(") != unquoted.count(")"):
            return f"Mismatched parentheses: {stripped}"

    return None


def validate_install_spec(spec: Any) -> str | None:
    """Return a problem description for a malformed install spec, else ``None``."""
    if not isinstance(spec, dict):
        return f"Install spec must be a mapping, got {type(spec).__name__}"

    kind = spec.get("kind")
    if not kind:
        return "Install spec missing 'kind' field"

    required = _INSTALL_REQUIRED_FIELDS.get(str(kind))
    if required and not spec.get(required):
        return f"{kind} installer missing '{required}' field"

    return None


class SkillTestFramework:
    """Runs static checks on skill directories.

    Example::

        framework = SkillTestFramework(TestOptions(strict=True))
        report = framework.test_skill(Path("skills/weather"))
        assert report.passed

    Args:
        options: Check selection and injected collaborators.
    """

    def __init__(self, options: TestOptions | None = None) -> None:
        self.options = options or TestOptions()
        self._context: EligibilityContext = self.options.context or LocalEligibilityContext()
        self._scanner = self.options.scanner or SkillScanner()

    def test_skill(self, skill_dir: Path) -> SkillTestReport:
        """Run every configured check on one skill directory."""
        skill_dir = Path(skill_dir)
        logger.info("Testing skill at %s", skill_dir)

        if not skill_dir.is_dir():
            return self._failure_report(skill_dir, "Skill directory not found")

        skill_md = skill_dir / SKILL_FILE_NAME
        if not skill_md.is_file():
            return self._failure_report(skill_dir, f"{SKILL_FILE_NAME} not found")

        format_result, skill = self.check_format(skill_md)
        results = [format_result]
        if skill is None:
            return self._report(skill_dir, results)

        if self.options.skip_deps:
            results.append(_skipped("Dependencies"))
        else:
            results.append(self.check_dependencies(skill))

        if self.options.skip_security:
            results.append(_skipped("Security"))
        else:
            results.append(self.check_security(skill_dir))

        results.append(self.check_metadata(skill))

        if self.options.skip_examples:
            results.append(_skipped("Examples"))
        else:
            results.append(self.check_examples(skill.content))

        return self._report(skill_dir, results)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def check_format(self, skill_md: Path) -> tuple[TestResult, Skill | None]:
        """Check that SKILL.md parses and carries the required fields.

        Returns:
            The result, plus the parsed skill when the check did not fail.
        """
        name = "SKILL.md format"
        started = time.perf_counter()

        try:
            content = read_skill_file(skill_md, self._scanner.max_file_bytes)
            block, _ = split_frontmatter(content, skill_md)
            if block is None:
                return _finish(name, started, TestStatus.FAIL, "Missing front matter"), None
            frontmatter, body = parse_frontmatter(content, skill_md)
        except SkillError as exc:
            return _finish(name, started, TestStatus.FAIL, exc.message), None

        raw = frontmatter.to_dict()
        missing = [
            f"Missing required field: {key}" for key in ("name", "description") if not raw.get(key)
        ]
        if missing:
            return (
                TestResult(
                    name,
                    TestStatus.FAIL,
                    "Missing required front matter fields",
                    details=missing,
                    duration_ms=_elapsed_ms(started),
                ),
                None,
            )

        skill = _skill_from_frontmatter(frontmatter, body, skill_md)

        if len(body) < MIN_BODY_LENGTH:
            return (
                TestResult(
                    name,
                    TestStatus.WARN,
                    "SKILL.md body is too short",
                    details=["Consider adding more detailed documentation"],
                    duration_ms=_elapsed_ms(started),
                ),
                skill,
            )

        return _finish(name, started, TestStatus.PASS, "Valid SKILL.md format"), skill

    def check_dependencies(self, skill: Skill) -> TestResult:
        """Check declared binaries, env vars and install specs."""
        name = "Dependencies"
        started = time.perf_counter()
        requires = skill.requires

        if not requires:
            return _finish(name, started, TestStatus.SKIP, "No dependencies declared")

        if not isinstance(requires, dict):
            return TestResult(
                name,
                TestStatus.FAIL,
                "Malformed requires",
                details=[f"requires must be a mapping, got {type(requires).__name__}"],
                duration_ms=_elapsed_ms(started),
            )

        details: list[str] = []
        failed = False
        warned = False

        for key in ("bins", "env", "anyBins"):
            value = requires.get(key)
            if value is not None and not (
                isinstance(value, list) and all(isinstance(item, str) for item in value)
            ):
                details.append(f"requires.{key} must be a list of strings")
                failed = True

        if not failed:
            for binary in requires.get("bins") or []:
                if self._context.has_binary(binary):
                    details.append(f"Found binary: {binary}")
                else:
                    details.append(f"Missing required binary: {binary}")
                    failed = True

            for variable in requires.get("env") or []:
                if self._context.has_env(variable):
                    details.append(f"Found environment variable: {variable}")
                else:
                    details.append(f"Missing required environment variable: {variable}")
                    failed = True

            any_bins = requires.get("anyBins") or []
            if any_bins:
                if any(self._context.has_binary(binary) for binary in any_bins):
                    details.append(f"Found at least one binary from: {', '.join(any_bins)}")
                else:
                    details.append(f"Missing binaries (need one of): {', '.join(any_bins)}")
                    failed = True

        install = skill.install
        if install is not None:
            specs = install if isinstance(install, list) else [install]
            kinds = [str(spec.get("kind", "?")) for spec in specs if isinstance(spec, dict)]
            if kinds:
                details.append(f"Available installers: {', '.join(kinds)}")
            for spec in specs:
                problem = validate_install_spec(spec)
                if problem:
                    details.append(problem)
                    warned = True

        if failed:
            status, message = TestStatus.FAIL, "Missing dependencies"
        elif warned:
            status, message = TestStatus.WARN, "Dependency warnings"
        else:
            status, message = TestStatus.PASS, "All dependencies satisfied"

        return _finish(name, started, status, message, details)

    def check_security(self, skill_dir: Path) -> TestResult:
        """Run the security scanner over the skill directory."""
        name = "Security"
        started = time.perf_counter()

        try:
            summary = self._scanner.scan(skill_dir)
        except Exception as exc:
            logger.exception("Security scan of %s failed", skill_dir)
            return _finish(name, started, TestStatus.FAIL, f"Security scan failed: {exc}")

        details = [
            f"Critical: {summary.critical}",
            f"Warnings: {summary.warn}",
            f"Info: {summary.info}",
        ]
        details.extend(f"Could not scan {error.path}: {error.message}" for error in summary.errors)

        def describe(severity: Severity) -> list[str]:
            return [
                f"{finding.message} at {_relative(finding.file, skill_dir)}:{finding.line}"
                for finding in summary.by_severity(severity)
            ]

        if summary.critical:
            status, message = TestStatus.FAIL, "Critical security issues found"
            details.extend(describe(Severity.CRITICAL))
        elif summary.warn:
            status, message = TestStatus.WARN, "Security warnings found"
            details.extend(describe(Severity.WARNING))
        elif summary.errors:
            status, message = TestStatus.WARN, "Some files could not be scanned"
        else:
            status, message = TestStatus.PASS, "No security issues"

        return _finish(name, started, status, message, details)

    def check_metadata(self, skill: Skill) -> TestResult:
        """Check recommended metadata; never fails."""
        name = "Metadata"
        started = time.perf_counter()
        details: list[str] = []
        warned = False

        if skill.emoji:
            details.append(f"Emoji: {skill.emoji}")
        else:
            details.append("No emoji defined (recommended)")
            warned = True

        if skill.homepage:
            details.append(f"Homepage: {skill.homepage}")
        else:
            details.append("No homepage defined (recommended)")
            warned = True

        os_list = skill.frontmatter.os or skill.metadata.get("os")
        if os_list:
            supported = os_list if isinstance(os_list, list) else [os_list]
            details.append(f"Supported OS: {', '.join(str(item) for item in supported)}")

        install = skill.install
        if isinstance(install, list) and install:
            details.append(f"Installers: {len(install)} defined")

        if warned:
            status, message = TestStatus.WARN, "Metadata could be improved"
        else:
            status, message = TestStatus.PASS, "Complete metadata"

        return _finish(name, started, status, message, details)

    def check_examples(self, body: str) -> TestResult:
        """Check fenced code examples in the SKILL.md body."""
        name = "Examples"
        started = time.perf_counter()
        blocks = extract_code_blocks(body)

        if not blocks:
            return TestResult(
                name,
                TestStatus.WARN,
                "No code examples found",
                details=["Consider adding usage examples"],
                duration_ms=_elapsed_ms(started),
            )

        details = [f"Found {len(blocks)} code block(s)"]
        failed = False

        shell_blocks = [code for language, code in blocks if language.lower() in _SHELL_LANGUAGES]
        if shell_blocks:
            details.append(f"Shell examples: {len(shell_blocks)}")
            for code in shell_blocks:
                error = check_shell_syntax(code)
                if error:
                    details.append(f"Invalid syntax: {error}")
                    failed = True

        if failed:
            status, message = TestStatus.FAIL, "Invalid examples found"
        else:
            status, message = TestStatus.PASS, "Examples validated"

        return _finish(name, started, status, message, details)

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def _report(self, skill_dir: Path, results: list[TestResult]) -> SkillTestReport:
        summary = TestSummary.from_results(results)
        passed = summary.failed == 0 and (not self.options.strict or summary.warnings == 0)
        return SkillTestReport(
            skill_name=skill_dir.name or str(skill_dir),
            skill_path=skill_dir,
            timestamp=time.time(),
            results=results,
            summary=summary,
            passed=passed,
        )

    def _failure_report(self, skill_dir: Path, message: str) -> SkillTestReport:
        logger.warning("Cannot test skill at %s: %s", skill_dir, message)
        return self._report(skill_dir, [TestResult("Validation", TestStatus.FAIL, message)])


def _skipped(name: str) -> TestResult:
    return TestResult(name, TestStatus.SKIP, "Skipped by configuration")


def _relative(path: Path, base: Path) -> str:
    try:
        return path.relative_to(base).as_posix()
    except ValueError:
        return str(path)


def _skill_from_frontmatter(frontmatter: SkillFrontmatter, body: str, skill_md: Path) -> Skill:
    return Skill(
        name=str(frontmatter.name).strip(),
        description=str(frontmatter.description).strip(),
        file_path=skill_md,
        base_dir=skill_md.parent,
        source=SkillSource.WORKSPACE,
        content=body,
        frontmatter=frontmatter,
        disable_model_invocation=frontmatter.disable_model_invocation,
    )


class SkillTestRunner:
    """Tests every skill under a skills root.

    Skills are enumerated with the discovery engine. Directories whose
    SKILL.md was rejected by discovery are tested too, so they show up as
    failing reports instead of disappearing.

    Args:
        skills_dir: Root directory to enumerate.
        options: Options passed to the framework.
    """

    def __init__(self, skills_dir: Path, options: TestOptions | None = None) -> None:
        self.skills_dir = Path(skills_dir)
        self.options = options or TestOptions()
        self.framework = SkillTestFramework(self.options)

    def find_skill_directories(self) -> list[Path]:
        """Return every skill directory under the root, sorted by path."""
        discovery = discover_skills(self.skills_dir, SkillSource.WORKSPACE)
        dirs = {skill.base_dir for skill in discovery.skills}
        for diagnostic in discovery.errors:
            if diagnostic.path is not None and diagnostic.path.name == SKILL_FILE_NAME:
                dirs.add(diagnostic.path.parent)
        return sorted(dirs)

    def run(self) -> TestRunResult:
        """Test every skill and collect the reports."""
        logger.info("Running skill tests in %s", self.skills_dir)
        reports = [
            self.framework.test_skill(skill_dir) for skill_dir in self.find_skill_directories()
        ]
        return TestRunResult(reports=reports, passed=all(report.passed for report in reports))
