"""Skill validation against the Agent Skills specification.

All checks are pure and never raise; problems come back as structured
errors (skill is invalid) and warnings (surfaced, non-blocking).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from skillgate.skills.config import (
    MAX_SKILL_DESCRIPTION_LENGTH,
    MAX_SKILL_NAME_LENGTH,
    Skill,
    ValidationDiagnostic,
    ValidationResult,
)

# Lowercase alphanumeric + hyphens.
_NAME_CHARS_PATTERN = re.compile(r"^[a-z0-9-]+$")

VALID_CATEGORIES: tuple[str, ...] = (
    "utilities",
    "devops",
    "ai",
    "data",
    "communication",
    "media",
    "system",
)

VALID_INVOKE_MODES: tuple[str, ...] = ("tool", "command", "both")

# requires sub-fields that must be lists of strings.
_REQUIRES_LIST_FIELDS: tuple[str, ...] = ("bins", "env", "anyBins")


def validate_name(
    name: str | None,
    parent_dir_name: str | None = None,
    path: Path | None = None,
) -> ValidationResult:
    """Validate a skill name.

    Rules (errors): non-empty, at most 64 characters, only ``a-z``, ``0-9``
    and ``-``, starts with a lowercase letter, no leading or trailing hyphen,
    no consecutive hyphens. A name that differs from its parent directory
    name is only a warning.

    Args:
        name: Skill name to check.
        parent_dir_name: Name of the directory holding SKILL.md, if known.
        path: Path attached to every diagnostic.

    Returns:
        ``ValidationResult`` with the name's errors and warnings.
    """
    result = ValidationResult()

    def error(message: str) -> None:
        result.errors.append(ValidationDiagnostic.error(message, path))

    if not name:
        error("Skill name is required")
        return result

    if len(name) > MAX_SKILL_NAME_LENGTH:
        error(f"Skill name exceeds {MAX_SKILL_NAME_LENGTH} characters ({len(name)})")

    if not _NAME_CHARS_PATTERN.match(name):
        error(
            f"Skill name '{name}' contains invalid characters "
            "(must be lowercase a-z, 0-9 and hyphens only)"
        )

    if name.startswith("-") or name.endswith("-"):
        error(f"Skill name '{name}' must not start or end with a hyphen")
    elif not ("a" <= name[0] <= "z"):
        error(f"Skill name '{name}' must start with a lowercase letter")

    if "--" in name:
        error(f"Skill name '{name}' must not contain consecutive hyphens")

    if parent_dir_name is not None and name != parent_dir_name:
        result.warnings.append(
            ValidationDiagnostic.warning(
                f"Skill name '{name}' does not match parent directory '{parent_dir_name}'",
                path,
            )
        )

    return result


def validate_description(description: str | None, path: Path | None = None) -> ValidationResult:
    """Validate a skill description.

    Empty or missing is an error; longer than 1024 characters is a warning
    and the skill stays valid.
    """
    result = ValidationResult()

    if not description or not description.strip():
        result.errors.append(ValidationDiagnostic.error("Skill description is required", path))
    elif len(description) > MAX_SKILL_DESCRIPTION_LENGTH:
        result.warnings.append(
            ValidationDiagnostic.warning(
                f"Skill description exceeds {MAX_SKILL_DESCRIPTION_LENGTH} characters "
                f"({len(description)})",
                path,
            )
        )

    return result


def _lookup(skill: Skill, *keys: str) -> Any:
    """Return the first non-empty value for ``keys``, front matter before ``metadata``."""
    fm = skill.frontmatter.to_dict()
    for key in keys:
        value = fm.get(key)
        if value not in (None, ""):
            return value
    metadata = skill.metadata
    for key in keys:
        value = metadata.get(key)
        if value not in (None, ""):
            return value
    return None


def _is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def validate_metadata(skill: Skill) -> ValidationResult:
    """Validate optional metadata fields of a skill.

    Checks ``category`` and ``invoke-as`` membership (warnings listing the
    valid values), the shape of ``requires`` (errors), and flags deprecated
    fields.
    """
    result = ValidationResult()
    path = skill.file_path

    category = _lookup(skill, "category")
    if category is not None and category not in VALID_CATEGORIES:
        result.warnings.append(
            ValidationDiagnostic.warning(
                f"Unknown category '{category}'. Valid: {', '.join(VALID_CATEGORIES)}",
                path,
            )
        )

    invoke_as = _lookup(skill, "invoke-as", "invoke_as")
    if invoke_as is not None and invoke_as not in VALID_INVOKE_MODES:
        result.warnings.append(
            ValidationDiagnostic.warning(
                f"Unknown invoke-as '{invoke_as}'. Valid: {', '.join(VALID_INVOKE_MODES)}",
                path,
            )
        )

    requires = skill.requires
    if requires is not None:
        if not isinstance(requires, dict):
            result.errors.append(
                ValidationDiagnostic.error(
                    f"requires must be a mapping, got {type(requires).__name__}",
                    path,
                )
            )
        else:
            for key in _REQUIRES_LIST_FIELDS:
                if key in requires and not _is_string_list(requires[key]):
                    result.errors.append(
                        ValidationDiagnostic.error(
                            f"requires.{key} must be a list of strings", path
                        )
                    )

    if skill.frontmatter.disable_model_invocation:
        result.warnings.append(
            ValidationDiagnostic.warning(
                "'disable-model-invocation' is deprecated and may be ignored by other clients",
                path,
            )
        )

    return result


def validate_skill(skill: Skill) -> ValidationResult:
    """Run every check against one skill.

    Every diagnostic carries the skill's SKILL.md path.
    """
    path = skill.file_path
    result = ValidationResult()

    for partial in (
        validate_name(skill.name, skill.base_dir.name, path),
        validate_description(skill.description, path),
        validate_metadata(skill),
    ):
        result.errors.extend(partial.errors)
        result.warnings.extend(partial.warnings)

    return result


@dataclass
class AllValidationResult:
    """Partition of a skill set by validity.

    Attributes:
        valid: Skills without errors.
        invalid: ``(skill, result)`` pairs for skills with at least one error.
        diagnostics: Every error and warning, in skill order.
    """

    valid: list[Skill] = field(default_factory=list)
    invalid: list[tuple[Skill, ValidationResult]] = field(default_factory=list)
    diagnostics: list[ValidationDiagnostic] = field(default_factory=list)


def validate_all_skills(skills: list[Skill]) -> AllValidationResult:
    """Validate a set of skills and partition them into valid and invalid."""
    outcome = AllValidationResult()

    for skill in skills:
        result = validate_skill(skill)
        outcome.diagnostics.extend(result.diagnostics)
        if result.valid:
            outcome.valid.append(skill)
        else:
            outcome.invalid.append((skill, result))

    return outcome
