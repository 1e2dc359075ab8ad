"""Top-level SkillManager facade for the skills subsystem.

Runs the discovery, validation and eligibility pipeline, caches the result,
and owns the live reload watcher. The cache is replaced wholesale on every
load; nothing is persisted.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from skillgate.skills.config import Skill, SkillConfig, ValidationDiagnostic
from skillgate.skills.discovery import discover_from_config
from skillgate.skills.eligibility import EligibilityContext, filter_eligible_skills
from skillgate.skills.entries import filter_enabled_skills
from skillgate.skills.prompt import format_skills_for_prompt
from skillgate.skills.scanner import ScanSummary, SkillScanner, collect_skill_install_warnings
from skillgate.skills.validator import validate_all_skills
from skillgate.skills.watcher import (
    DEFAULT_DEBOUNCE_SECONDS,
    SkillWatcher,
    create_watcher_for_manager,
)

logger = logging.getLogger(__name__)


@dataclass
class SkillLoadResult:
    """Outcome of one load pass.

    Attributes:
        skills: Active skills (valid and eligible), in merge order.
        all_skills: Every discovered skill, including invalid and ineligible.
        disabled: Valid skills switched off in ``SkillConfig.entries``.
        ineligible: ``(skill, reason)`` for valid skills hidden by eligibility.
        diagnostics: Discovery, validation and eligibility diagnostics.
        prompt: Rendered ``<available_skills>`` block for ``skills``.
    """

    skills: list[Skill] = field(default_factory=list)
    all_skills: list[Skill] = field(default_factory=list)
    disabled: list[Skill] = field(default_factory=list)
    ineligible: list[tuple[Skill, str]] = field(default_factory=list)
    diagnostics: list[ValidationDiagnostic] = field(default_factory=list)
    prompt: str = ""


class SkillManager:
    """Facade for loading and serving skills.

    Example::

        manager = SkillManager(SkillConfig(workspace_dir=Path.cwd()))
        manager.load()
        system_prompt += manager.prompt
        manager.watch()

    Args:
        config: Skill discovery configuration. Uses defaults if ``None``.
        context: Eligibility probe; the local process when ``None``.
        scanner: Scanner used by ``scan()`` and ``install_warnings()``.
    """

    def __init__(
        self,
        config: SkillConfig | None = None,
        context: EligibilityContext | None = None,
        scanner: SkillScanner | None = None,
    ) -> None:
        self._config = config or SkillConfig()
        self._context = context
        self._scanner = scanner or SkillScanner(max_file_bytes=self._config.max_file_bytes)
        self._lock = threading.RLock()
        self._result = SkillLoadResult()
        self._by_name: dict[str, Skill] = {}
        self._last_load_time: float | None = None
        self._watcher: SkillWatcher | None = None

    @property
    def config(self) -> SkillConfig:
        return self._config

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> SkillLoadResult:
        """Run discovery, validation and eligibility, and replace the cache.

        Returns:
            The new ``SkillLoadResult``.
        """
        with self._lock:
            started = time.perf_counter()

            discovery = discover_from_config(self._config)
            validation = validate_all_skills(discovery.skills)
            enabled, disabled = filter_enabled_skills(validation.valid, self._config.entries)
            eligible, ineligible = filter_eligible_skills(enabled, self._context)

            diagnostics = [*discovery.diagnostics, *validation.diagnostics]
            diagnostics.extend(
                ValidationDiagnostic.warning(
                    f"Skill '{skill.name}' is disabled by configuration", skill.file_path
                )
                for skill in disabled
            )
            diagnostics.extend(
                ValidationDiagnostic.warning(
                    f"Skill '{skill.name}' is not eligible: {reason}", skill.file_path
                )
                for skill, reason in ineligible
            )

            result = SkillLoadResult(
                skills=eligible,
                all_skills=discovery.skills,
                disabled=disabled,
                ineligible=ineligible,
                diagnostics=diagnostics,
                prompt=format_skills_for_prompt(eligible),
            )

            self._result = result
            self._by_name = {skill.name: skill for skill in discovery.skills}
            self._last_load_time = time.time()

            logger.info(
                "Loaded %d active skill(s) of %d discovered (%d diagnostic(s)) in %.1fms",
                len(eligible),
                len(discovery.skills),
                len(diagnostics),
                (time.perf_counter() - started) * 1000,
            )
            return result

    def reload(self) -> SkillLoadResult:
        """Discard the cache and load again."""
        logger.debug("Reloading skills")
        return self.load()

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    @property
    def skills(self) -> list[Skill]:
        """Active skills: valid and eligible."""
        return list(self._result.skills)

    @property
    def all_skills(self) -> list[Skill]:
        """Every discovered skill, including invalid and ineligible ones."""
        return list(self._result.all_skills)

    @property
    def diagnostics(self) -> list[ValidationDiagnostic]:
        return list(self._result.diagnostics)

    @property
    def prompt(self) -> str:
        return self._result.prompt

    @property
    def last_load_time(self) -> float | None:
        """Epoch seconds of the last completed load, or ``None``."""
        return self._last_load_time

    def get(self, name: str) -> Skill | None:
        """Get a discovered skill by name, active or not."""
        return self._by_name.get(name)

    def list(self) -> list[Skill]:
        """List active skills."""
        return self.skills

    def is_active(self, name: str) -> bool:
        return any(skill.name == name for skill in self._result.skills)

    # ------------------------------------------------------------------
    # Security
    # ------------------------------------------------------------------

    def scan(self, name: str) -> ScanSummary | None:
        """Scan a discovered skill's directory, or ``None`` if unknown."""
        skill = self.get(name)
        if skill is None:
            return None
        return self._scanner.scan(skill.base_dir)

    def install_warnings(self, name: str) -> list[str]:
        """Install-time security warnings for a discovered skill."""
        skill = self.get(name)
        if skill is None:
            return []
        return collect_skill_install_warnings(skill.base_dir, skill.name, self._scanner)

    # ------------------------------------------------------------------
    # Live reload
    # ------------------------------------------------------------------

    @property
    def is_watching(self) -> bool:
        return self._watcher is not None and self._watcher.is_watching

    @property
    def watcher(self) -> SkillWatcher | None:
        return self._watcher

    def watch(
        self,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        observer_factory: Callable[[], Any] | None = None,
    ) -> SkillWatcher | None:
        """Start reloading on filesystem changes.

        Returns:
            The running watcher, or ``None`` if no skill root exists.
        """
        with self._lock:
            if self._watcher is not None and self._watcher.is_watching:
                return self._watcher

            kwargs: dict[str, Any] = {"debounce_seconds": debounce_seconds}
            if observer_factory is not None:
                kwargs["observer_factory"] = observer_factory
            watcher = create_watcher_for_manager(self, **kwargs)
            if watcher is None:
                return None

            watcher.start()
            self._watcher = watcher
            return watcher

    def stop_watching(self) -> None:
        """Stop the watcher if running. Idempotent."""
        watcher, self._watcher = self._watcher, None
        if watcher is not None:
            watcher.stop()
