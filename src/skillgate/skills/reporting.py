"""Renderers for skill test reports.

The ``format_*`` functions are pure and return strings: plain text with
status glyphs, JSON, or TAP version 13. ``print_test_results`` draws the
same data with Rich tables and returns the captured text.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from skillgate.skills.testing import SkillTestReport, TestResult, TestStatus

STATUS_GLYPHS: dict[TestStatus, str] = {
    TestStatus.PASS: "✓",
    TestStatus.FAIL: "✗",
    TestStatus.WARN: "⚠",
    TestStatus.SKIP: "○",
}

_STATUS_STYLES: dict[TestStatus, str] = {
    TestStatus.PASS: "green",
    TestStatus.FAIL: "bold red",
    TestStatus.WARN: "yellow",
    TestStatus.SKIP: "dim",
}

_RULE_WIDTH = 50


def _totals(reports: list[SkillTestReport]) -> dict[str, int]:
    return {
        "total": sum(r.summary.total for r in reports),
        "passed": sum(r.summary.passed for r in reports),
        "failed": sum(r.summary.failed for r in reports),
        "warnings": sum(r.summary.warnings for r in reports),
        "skipped": sum(r.summary.skipped for r in reports),
    }


def format_test_results(reports: list[SkillTestReport], verbose: bool = False) -> str:
    """Render reports as human-readable text.

    Each report gets a header (✅ passed, ❌ failed), one line per check
    prefixed with ✓ ✗ ⚠ or ○, and a summary. A grand total closes the
    output.

    Args:
        reports: Reports to render.
        verbose: Include each result's detail lines.

    Returns:
        The rendered text.
    """
    lines: list[str] = []

    for report in reports:
        icon = "✅" if report.passed else "❌"
        lines.append("")
        lines.append(f"{icon} {report.skill_name}")
        lines.append("─" * _RULE_WIDTH)

        for result in report.results:
            lines.append(f"  {STATUS_GLYPHS[result.status]} {result.name}: {result.message}")
            if verbose:
                lines.extend(f"     {detail}" for detail in result.details)

        summary = report.summary
        lines.append(f"  Summary: {summary.passed}/{summary.total} passed")
        if summary.failed:
            lines.append(f"  Failed: {summary.failed}")
        if summary.warnings:
            lines.append(f"  Warnings: {summary.warnings}")

    totals = _totals(reports)
    lines.append("")
    lines.append("=" * _RULE_WIDTH)
    lines.append(
        f"Total: {totals['total']} tests, {totals['passed']} passed, "
        f"{totals['failed']} failed, {totals['warnings']} warnings"
    )
    all_passed = all(report.passed for report in reports)
    lines.append(f"Result: {'✅ PASSED' if all_passed else '❌ FAILED'}")

    return "\n".join(lines)


def format_test_results_json(reports: list[SkillTestReport]) -> str:
    """Render reports as a JSON document with a run summary."""
    payload = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "total_skills": len(reports),
        "passed_skills": sum(1 for report in reports if report.passed),
        "reports": [report.to_dict() for report in reports],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _tap_diagnostic(result: TestResult) -> list[str]:
    block: dict[str, Any] = {"status": result.status.value, "message": result.message}
    if result.details:
        block["details"] = list(result.details)
    dumped = yaml.safe_dump(block, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return ["  ---", *(f"  {line}" for line in dumped.splitlines()), "  ..."]


def format_test_results_tap(reports: list[SkillTestReport]) -> str:
    """Render reports as TAP version 13.

    Failed checks are ``not ok``; passed, warned and skipped checks are
    ``ok``, skipped ones with a ``# SKIP`` directive. Every check that did
    not pass is followed by a YAML block with its status, message and
    details.
    """
    lines = ["TAP version 13", f"1..{sum(len(report.results) for report in reports)}"]

    number = 0
    for report in reports:
        for result in report.results:
            number += 1
            status = "not ok" if result.status is TestStatus.FAIL else "ok"
            line = f"{status} {number} - {report.skill_name}: {result.name}"
            if result.status is TestStatus.SKIP:
                line += f" # SKIP {result.message}".rstrip()
            lines.append(line)

            if result.status is not TestStatus.PASS:
                lines.extend(_tap_diagnostic(result))

    return "\n".join(lines)


def _report_table(report: SkillTestReport, verbose: bool) -> Table:
    icon = "✅" if report.passed else "❌"
    table = Table(title=f"{icon} {report.skill_name}", title_justify="left")
    table.add_column("", no_wrap=True)
    table.add_column("Check", style="bold cyan")
    table.add_column("Message", no_wrap=False)
    table.add_column("Time", justify="right", style="dim")

    for result in report.results:
        message = Text(result.message)
        if verbose and result.details:
            message.append("\n" + "\n".join(result.details), style="dim")
        table.add_row(
            Text(STATUS_GLYPHS[result.status], style=_STATUS_STYLES[result.status]),
            result.name,
            message,
            f"{result.duration_ms:.1f}ms",
        )
    return table


def print_test_results(
    reports: list[SkillTestReport],
    console: Console | None = None,
    verbose: bool = False,
) -> str:
    """Print reports as Rich tables followed by a totals panel.

    Args:
        reports: Reports to print.
        console: Console to match the width of; a new recording console is
            used for output either way.
        verbose: Include each result's detail lines.

    Returns:
        The rendered text captured from the console.
    """
    console = Console(record=True, width=console.width) if console else Console(record=True)

    if not reports:
        console.print(Panel("No skills tested", title="Skill Tests", expand=False))
        return console.export_text()

    for report in reports:
        console.print(_report_table(report, verbose))

    totals = _totals(reports)
    all_passed = all(report.passed for report in reports)
    summary = Text()
    summary.append(f"{totals['total']} tests, ")
    summary.append(f"{totals['passed']} passed", style="green")
    summary.append(", ")
    summary.append(f"{totals['failed']} failed", style="red" if totals["failed"] else "")
    summary.append(", ")
    summary.append(f"{totals['warnings']} warnings", style="yellow" if totals["warnings"] else "")
    summary.append(", ")
    summary.append(f"{totals['skipped']} skipped")
    console.print(
        Panel(
            summary,
            title="✅ PASSED" if all_passed else "❌ FAILED",
            border_style="green" if all_passed else "red",
            expand=False,
        )
    )
    return console.export_text()


def exit_code(reports: list[SkillTestReport], strict: bool = False) -> int:
    """Process exit code for a test run.

    Returns:
        ``1`` if any report has a failing check (in strict mode, also a
        warning), else ``0``.
    """
    for report in reports:
        if report.summary.failed:
            return 1
        if strict and report.summary.warnings:
            return 1
    return 0
