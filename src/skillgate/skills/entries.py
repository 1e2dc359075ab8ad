"""Per-skill settings: enable switch, API key and environment overrides.

Values come from ``SkillConfig.entries`` and are overridden by environment
variables named after the skill, e.g. for ``web-search``:

- ``SKILLGATE_SKILL_WEB_SEARCH_ENABLED``: ``true``/``1`` enables, anything else disables
- ``SKILLGATE_SKILL_WEB_SEARCH_API_KEY``: replaces ``api_key``
- ``SKILLGATE_SKILL_WEB_SEARCH_ENV_<KEY>``: sets ``env[<KEY>]``
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping

from skillgate.skills.config import Skill, SkillEntryConfig

logger = logging.getLogger(__name__)

SKILL_ENV_PREFIX = "SKILLGATE_SKILL_"


def skill_env_prefix(name: str) -> str:
    """Return the environment variable prefix for a skill name."""
    return f"{SKILL_ENV_PREFIX}{name.upper().replace('-', '_')}"


def resolve_skill_entry(
    name: str,
    entries: Mapping[str, SkillEntryConfig] | None = None,
    environ: Mapping[str, str] | None = None,
) -> SkillEntryConfig:
    """Merge a skill's configured entry with its environment overrides.

    Args:
        name: Skill name.
        entries: Configured entries; usually ``SkillConfig.entries``.
        environ: Environment to read; defaults to ``os.environ``.

    Returns:
        A new ``SkillEntryConfig``; the configured entry is not modified.
    """
    env = os.environ if environ is None else environ
    base = (entries or {}).get(name)
    resolved = base.model_copy(deep=True) if base is not None else SkillEntryConfig()

    prefix = skill_env_prefix(name)

    enabled = env.get(f"{prefix}_ENABLED")
    if enabled is not None:
        resolved.enabled = enabled.lower() == "true" or enabled == "1"

    api_key = env.get(f"{prefix}_API_KEY")
    if api_key:
        resolved.api_key = api_key

    env_prefix = f"{prefix}_ENV_"
    for key, value in env.items():
        if key.startswith(env_prefix) and len(key) > len(env_prefix):
            resolved.env[key[len(env_prefix) :]] = value

    return resolved


def is_skill_enabled(
    name: str,
    entries: Mapping[str, SkillEntryConfig] | None = None,
    environ: Mapping[str, str] | None = None,
) -> bool:
    """Return ``False`` only when the skill is explicitly disabled."""
    return resolve_skill_entry(name, entries, environ).enabled is not False


def get_skill_environment(
    name: str,
    entries: Mapping[str, SkillEntryConfig] | None = None,
    base_env: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Return the environment a host should run the skill with.

    ``base_env`` (default: the process environment) is overlaid with the
    entry's ``env`` and its ``SKILLGATE_SKILL_<NAME>_ENV_*`` overrides.
    """
    env = os.environ if environ is None else environ
    result = dict(env if base_env is None else base_env)
    result.update(resolve_skill_entry(name, entries, env).env)
    return result


def filter_enabled_skills(
    skills: Iterable[Skill],
    entries: Mapping[str, SkillEntryConfig] | None = None,
    environ: Mapping[str, str] | None = None,
) -> tuple[list[Skill], list[Skill]]:
    """Partition skills into enabled and explicitly disabled."""
    enabled: list[Skill] = []
    disabled: list[Skill] = []
    for skill in skills:
        if is_skill_enabled(skill.name, entries, environ):
            enabled.append(skill)
        else:
            logger.debug("Skill '%s' is disabled by configuration", skill.name)
            disabled.append(skill)
    return enabled, disabled
