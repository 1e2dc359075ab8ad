"""Skill eligibility: are a skill's declared prerequisites available?

A skill may declare ``requires`` with three groups, all ANDed:

- ``bins``: every binary must resolve on ``PATH``
- ``env``: every environment variable must be set and non-empty
- ``anyBins``: at least one binary must resolve

The binary/env probe is an injectable context, so the same rules can be
evaluated against the local process or a remote host's capability set.
Results are recomputed on every call; PATH and env may change between runs.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from skillgate.skills.config import EligibilityResult, Skill, ValidationDiagnostic

logger = logging.getLogger(__name__)


class EligibilityContext(Protocol):
    """Probe for binaries and environment variables."""

    def has_binary(self, name: str) -> bool: ...

    def has_env(self, name: str) -> bool: ...


def has_binary(name: str, path: str | None = None) -> bool:
    """Return ``True`` if ``name`` is an executable file on ``PATH``.

    Args:
        name: Binary name.
        path: ``os.pathsep`` separated search path; defaults to ``$PATH``.
            ``PATHEXT`` is honoured on Windows.
    """
    if not name:
        return False
    search_path = path if path is not None else os.environ.get("PATH", "")
    if not search_path:
        return False
    return shutil.which(name, path=search_path) is not None


def has_env(name: str, environ: Mapping[str, str] | None = None) -> bool:
    """Return ``True`` if the environment variable is set and non-empty."""
    env = os.environ if environ is None else environ
    return bool(env.get(name))


class LocalEligibilityContext:
    """Eligibility probe backed by the current process.

    Args:
        path: Search path override; ``None`` reads ``$PATH`` on every call.
        environ: Environment override; ``None`` reads ``os.environ``.
    """

    def __init__(
        self,
        path: str | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._path = path
        self._environ = environ

    def has_binary(self, name: str) -> bool:
        return has_binary(name, self._path)

    def has_env(self, name: str) -> bool:
        return has_env(name, self._environ)


class StaticEligibilityContext:
    """Eligibility probe over a fixed capability set, e.g. a remote host.

    Args:
        binaries: Binary names known to be available.
        env: Environment variables known to be set. Names mapped to an
            empty string count as unset.
    """

    def __init__(
        self,
        binaries: Iterable[str] = (),
        env: Mapping[str, str] | Iterable[str] = (),
    ) -> None:
        self.binaries = frozenset(binaries)
        if isinstance(env, Mapping):
            self.env = {key: value for key, value in env.items() if value}
        else:
            self.env = {key: "1" for key in env}

    def has_binary(self, name: str) -> bool:
        return name in self.binaries

    def has_env(self, name: str) -> bool:
        return name in self.env


def _string_list(requires: Mapping[str, Any], key: str) -> list[str] | None:
    """Return ``requires[key]`` as a list, ``[]`` when absent, ``None`` when malformed."""
    value = requires.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        return None
    return value


def check_eligibility(
    skill: Skill,
    context: EligibilityContext | None = None,
) -> EligibilityResult:
    """Check whether a skill's prerequisites are met.

    Args:
        skill: Skill to check.
        context: Probe to use; defaults to ``LocalEligibilityContext()``.

    Returns:
        ``EligibilityResult``; ``reason`` names the first missing
        requirement when ineligible.
    """
    requires = skill.requires
    if not requires:
        return EligibilityResult(eligible=True)

    if not isinstance(requires, Mapping):
        return EligibilityResult(eligible=False, reason="Malformed requires: expected a mapping")

    ctx = context if context is not None else LocalEligibilityContext()

    bins = _string_list(requires, "bins")
    env = _string_list(requires, "env")
    any_bins = _string_list(requires, "anyBins")

    for key, group in (("bins", bins), ("env", env), ("anyBins", any_bins)):
        if group is None:
            return EligibilityResult(
                eligible=False,
                reason=f"Malformed requires.{key}: expected a list of strings",
            )

    for binary in bins:
        if not ctx.has_binary(binary):
            return EligibilityResult(eligible=False, reason=f"Missing required binary: {binary}")

    for variable in env:
        if not ctx.has_env(variable):
            return EligibilityResult(
                eligible=False,
                reason=f"Missing required environment variable: {variable}",
            )

    if any_bins and not any(ctx.has_binary(binary) for binary in any_bins):
        return EligibilityResult(
            eligible=False,
            reason=f"None of the binaries are available: {', '.join(any_bins)}",
        )

    return EligibilityResult(eligible=True)


def filter_eligible_skills(
    skills: Iterable[Skill],
    context: EligibilityContext | None = None,
) -> tuple[list[Skill], list[tuple[Skill, str]]]:
    """Partition skills into eligible and ``(skill, reason)`` ineligible pairs."""
    ctx = context if context is not None else LocalEligibilityContext()
    eligible: list[Skill] = []
    ineligible: list[tuple[Skill, str]] = []

    for skill in skills:
        result = check_eligibility(skill, ctx)
        if result.eligible:
            eligible.append(skill)
        else:
            logger.debug("Skill '%s' is not eligible: %s", skill.name, result.reason)
            ineligible.append((skill, result.reason or "Unknown reason"))

    return eligible, ineligible


def get_eligibility_diagnostics(
    skills: Iterable[Skill],
    context: EligibilityContext | None = None,
) -> list[ValidationDiagnostic]:
    """Return one warning per ineligible skill."""
    _, ineligible = filter_eligible_skills(skills, context)
    return [
        ValidationDiagnostic.warning(
            f"Skill '{skill.name}' is not eligible: {reason}", skill.file_path
        )
        for skill, reason in ineligible
    ]
