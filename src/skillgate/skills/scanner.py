"""Static security scan of skill directories.

Walks a skill's base directory and matches every line of each source file
against pattern tables. Findings are a heuristic trust signal only: nothing
here blocks a skill or executes its code.

Pattern tables are plain data (``ScanRuleSet``), so other ecosystems can be
covered by passing different rule sets without touching the scan loop.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from skillgate.skills.config import DEFAULT_MAX_FILE_BYTES
from skillgate.skills.errors import ConfigurationError

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    """Severity of a security finding, most severe first."""

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


_SEVERITY_RANK: dict[Severity, int] = {
    Severity.CRITICAL: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
}


@dataclass(frozen=True)
class SecurityPattern:
    """A compiled pattern with the message reported on a match."""

    regex: re.Pattern[str]
    message: str
    severity: Severity

    @classmethod
    def compile(cls, pattern: str, message: str, severity: Severity) -> SecurityPattern:
        return cls(re.compile(pattern), message, severity)


@dataclass(frozen=True)
class ScanRuleSet:
    """Patterns applied to files with one of ``extensions``.

    Attributes:
        name: Identifier used in configuration (``javascript``, ``python``).
        extensions: Lowercase file suffixes including the dot.
        patterns: Patterns in reporting order.
    """

    name: str
    extensions: frozenset[str]
    patterns: tuple[SecurityPattern, ...]

    def applies_to(self, path: Path) -> bool:
        return path.suffix.lower() in self.extensions


def _critical(pattern: str, message: str) -> SecurityPattern:
    return SecurityPattern.compile(pattern, message, Severity.CRITICAL)


def _warning(pattern: str, message: str) -> SecurityPattern:
    return SecurityPattern.compile(pattern, message, Severity.WARNING)


JAVASCRIPT_RULES = ScanRuleSet(
    name="javascript",
    extensions=frozenset({".js", ".ts", ".mjs", ".cjs", ".jsx", ".tsx"}),
    patterns=(
        _critical(r"\bexec\s*\(", "Direct command execution (exec)"),
        _critical(r"\bchild_process\.exec", "child_process.exec usage"),
        _critical(r"\beval\s*\(", "Dynamic code evaluation (eval)"),
        _critical(r"\bFunction\s*\(", "Dynamic function creation"),
        _critical(r"require\s*\(['\"]child_process['\"]\)", "child_process module import"),
        _critical(r"require\s*\(['\"]fs['\"]\)", "fs module import (file system access)"),
        _critical(r"\bfs\.writeFile", "File write operation"),
        _critical(r"\bfs\.unlink", "File deletion operation"),
        _critical(r"\bfs\.rm", "File/directory removal operation"),
        _critical(r"net\.createServer", "Network server creation"),
        _critical(r"http\.createServer", "HTTP server creation"),
        _critical(r"\bfetch\s*\(", "Network request (fetch)"),
        _critical(r"axios\.", "Network request (axios)"),
        _warning(r"process\.env", "Environment variable access"),
        _warning(r"process\.cwd", "Current working directory access"),
        _warning(r"process\.argv", "Command line argument access"),
        _warning(r"\bconsole\.", "Console output"),
        _warning(r"setTimeout\s*\(", "Timer usage (setTimeout)"),
        _warning(r"setInterval\s*\(", "Interval usage (setInterval)"),
        _warning(r"__dirname", "Directory name reference"),
        _warning(r"__filename", "Filename reference"),
    ),
)

PYTHON_RULES = ScanRuleSet(
    name="python",
    extensions=frozenset({".py"}),
    patterns=(
        _critical(r"\bsubprocess\b", "Process spawning (subprocess)"),
        _critical(r"\bos\.system\s*\(", "Shell command execution (os.system)"),
        _critical(r"\bos\.popen\s*\(", "Shell command execution (os.popen)"),
        _critical(r"\beval\s*\(", "Dynamic code evaluation (eval)"),
        _critical(r"\bexec\s*\(", "Dynamic code execution (exec)"),
        _critical(r"\bos\.(?:remove|unlink)\s*\(", "File deletion operation"),
        _critical(r"\bshutil\.rmtree", "Directory removal operation"),
        _critical(r"\bsocket\.socket", "Raw socket creation"),
        _critical(r"\brequests\.", "Network request (requests)"),
        _critical(r"\burllib\.request", "Network request (urllib)"),
        _warning(r"\bos\.environ", "Environment variable access"),
        _warning(r"\bos\.getenv\s*\(", "Environment variable access"),
        _warning(r"\bsys\.argv", "Command line argument access"),
        _warning(r"\bos\.getcwd\s*\(", "Current working directory access"),
        _warning(r"\btime\.sleep\s*\(", "Timer usage (time.sleep)"),
        _warning(r"\b__file__\b", "Filename reference"),
    ),
)

#: Rule sets selectable by name from configuration.
RULE_SETS: dict[str, ScanRuleSet] = {
    JAVASCRIPT_RULES.name: JAVASCRIPT_RULES,
    PYTHON_RULES.name: PYTHON_RULES,
}

DEFAULT_RULE_SETS: tuple[ScanRuleSet, ...] = (JAVASCRIPT_RULES, PYTHON_RULES)

DEFAULT_SKIP_DIRS: frozenset[str] = frozenset(
    {"node_modules", ".git", "dist", "build", ".next", ".nuxt", "__pycache__", ".venv"}
)


def get_rule_sets(names: Iterable[str]) -> tuple[ScanRuleSet, ...]:
    """Look up rule sets by name.

    Raises:
        ConfigurationError: If a name is not a known rule set.
    """
    selected: list[ScanRuleSet] = []
    for name in names:
        try:
            selected.append(RULE_SETS[name])
        except KeyError:
            raise ConfigurationError(
                "scanner.rule_sets",
                f"unknown rule set '{name}' (known: {', '.join(sorted(RULE_SETS))})",
            ) from None
    return tuple(selected)


@dataclass(frozen=True)
class SecurityFinding:
    """One pattern match.

    Attributes:
        severity: Severity of the matched pattern.
        message: Pattern description.
        file: File the match was found in.
        line: 1-based line number.
        matched: The matched substring.
    """

    severity: Severity
    message: str
    file: Path
    line: int
    matched: str


@dataclass(frozen=True)
class ScanError:
    """A file or directory that could not be scanned."""

    path: Path
    message: str


@dataclass
class ScanSummary:
    """Aggregated scan result for one directory.

    ``findings`` is ordered critical, then warning, then info.
    """

    findings: list[SecurityFinding] = field(default_factory=list)
    errors: list[ScanError] = field(default_factory=list)
    files_scanned: int = 0

    def _count(self, severity: Severity) -> int:
        return sum(1 for finding in self.findings if finding.severity is severity)

    @property
    def critical(self) -> int:
        return self._count(Severity.CRITICAL)

    @property
    def warn(self) -> int:
        return self._count(Severity.WARNING)

    @property
    def info(self) -> int:
        return self._count(Severity.INFO)

    def by_severity(self, severity: Severity) -> list[SecurityFinding]:
        return [finding for finding in self.findings if finding.severity is severity]


class SkillScanner:
    """Line-by-line pattern scanner for a skill directory.

    Args:
        rule_sets: Rule sets to apply; defaults to JavaScript and Python.
        skip_dirs: Directory names never descended into. Dot-named entries
            are always skipped.
        max_file_bytes: Files larger than this are recorded as scan errors.
    """

    def __init__(
        self,
        rule_sets: Sequence[ScanRuleSet] | None = None,
        skip_dirs: Iterable[str] | None = None,
        max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
    ) -> None:
        self.rule_sets = tuple(rule_sets) if rule_sets is not None else DEFAULT_RULE_SETS
        self.skip_dirs = frozenset(skip_dirs) if skip_dirs is not None else DEFAULT_SKIP_DIRS
        self.max_file_bytes = max_file_bytes

    def scan(self, directory: Path) -> ScanSummary:
        """Scan every matching file under ``directory``.

        Unreadable or oversized files become ``ScanError`` entries; the scan
        always completes.
        """
        summary = ScanSummary()

        if not directory.is_dir():
            summary.errors.append(ScanError(directory, "Directory does not exist"))
            return summary

        self._scan_directory(directory, summary)
        summary.findings.sort(key=lambda finding: _SEVERITY_RANK[finding.severity])

        if summary.critical:
            logger.warning(
                "Skill at %s has %d critical security finding(s)", directory, summary.critical
            )
        elif summary.warn:
            logger.info("Skill at %s has %d security warning(s)", directory, summary.warn)
        else:
            logger.info("Skill at %s passed security scan", directory)

        return summary

    def _scan_directory(self, directory: Path, summary: ScanSummary) -> None:
        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as exc:
            logger.warning("Failed to scan directory %s: %s", directory, exc)
            summary.errors.append(ScanError(directory, str(exc)))
            return

        for entry in entries:
            if entry.name.startswith("."):
                continue
            # Symlinks are not followed; a link can point outside the skill.
            if entry.is_symlink():
                continue
            if entry.is_dir():
                if entry.name not in self.skip_dirs:
                    self._scan_directory(entry, summary)
            elif entry.is_file():
                rule_sets = [rules for rules in self.rule_sets if rules.applies_to(entry)]
                if rule_sets:
                    self._scan_file(entry, rule_sets, summary)

    def _scan_file(
        self,
        path: Path,
        rule_sets: list[ScanRuleSet],
        summary: ScanSummary,
    ) -> None:
        try:
            size = path.stat().st_size
            if size > self.max_file_bytes:
                summary.errors.append(
                    ScanError(path, f"File is {size} bytes, limit is {self.max_file_bytes}")
                )
                return
            lines = path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Failed to scan file %s: %s", path, exc)
            summary.errors.append(ScanError(path, str(exc)))
            return

        summary.files_scanned += 1
        for rules in rule_sets:
            for pattern in rules.patterns:
                for line_number, line in enumerate(lines, start=1):
                    match = pattern.regex.search(line)
                    if match:
                        summary.findings.append(
                            SecurityFinding(
                                severity=pattern.severity,
                                message=pattern.message,
                                file=path,
                                line=line_number,
                                matched=match.group(0),
                            )
                        )


def scan_skill_directory(
    directory: Path,
    rule_sets: Sequence[ScanRuleSet] | None = None,
) -> ScanSummary:
    """Scan a skill directory with default settings."""
    return SkillScanner(rule_sets=rule_sets).scan(directory)


def format_scan_summary(summary: ScanSummary, skill_name: str) -> str:
    """Render a scan summary: counts, then critical findings, then warnings."""
    lines = [
        f'Security scan results for "{skill_name}":',
        f"  Critical: {summary.critical}",
        f"  Warnings: {summary.warn}",
        f"  Info: {summary.info}",
    ]

    if summary.findings:
        lines.append("")
        lines.append("Findings:")
        for finding in summary.by_severity(Severity.CRITICAL):
            lines.append(f"  ❌ {finding.message} at {finding.file.name}:{finding.line}")
        for finding in summary.by_severity(Severity.WARNING):
            lines.append(f"  ⚠️  {finding.message} at {finding.file.name}:{finding.line}")
        for finding in summary.by_severity(Severity.INFO):
            lines.append(f"  ℹ️  {finding.message} at {finding.file.name}:{finding.line}")

    if summary.errors:
        lines.append("")
        lines.append("Scan errors:")
        for error in summary.errors:
            lines.append(f"  {error.path}: {error.message}")

    return "\n".join(lines)


def collect_skill_install_warnings(
    directory: Path,
    skill_name: str,
    scanner: SkillScanner | None = None,
) -> list[str]:
    """Turn a scan of ``directory`` into install-time warning strings.

    Never raises and never blocks: a failed scan degrades to a warning that
    installation continues.
    """
    warnings: list[str] = []
    active = scanner if scanner is not None else SkillScanner()

    try:
        summary = active.scan(directory)
    except Exception as exc:
        logger.exception("Security scan of skill '%s' failed", skill_name)
        return [
            f'Skill "{skill_name}" code safety scan failed ({exc}). '
            "Installation continues; review the skill's code manually."
        ]

    if summary.critical:
        details = "; ".join(
            f"{finding.message} ({finding.file.name} line {finding.line})"
            for finding in summary.by_severity(Severity.CRITICAL)
        )
        warnings.append(
            f'WARNING: Skill "{skill_name}" contains dangerous code patterns: {details}'
        )
    elif summary.warn:
        warnings.append(
            f'Skill "{skill_name}" has {summary.warn} suspicious code pattern(s). '
            "Review the skill's code before use."
        )

    if summary.errors:
        failed = ", ".join(str(error.path) for error in summary.errors)
        warnings.append(
            f'Skill "{skill_name}" code safety scan failed for {failed}. '
            "Installation continues; review the skill's code manually."
        )

    return warnings
