"""Shared test fixtures and configuration for skillgate tests."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from skillgate.skills.config import SkillConfig
from skillgate.skills.eligibility import StaticEligibilityContext

SkillFactory = Callable[..., Path]


def render_skill_md(
    name: str | None = "my-skill",
    description: str | None = "A test skill",
    body: str = "# Usage\n\nInstructions for using this skill.\n",
    extra: str = "",
) -> str:
    """Build SKILL.md content from parts; ``None`` omits a field."""
    lines = ["---"]
    if name is not None:
        lines.append(f"name: {name}")
    if description is not None:
        lines.append(f"description: {description}")
    if extra:
        lines.append(extra.strip("\n"))
    lines.append("---")
    return "\n".join(lines) + "\n" + body


@pytest.fixture
def make_skill() -> SkillFactory:
    """Factory fixture that writes a skill directory.

    Usage:
        def test_something(tmp_path, make_skill):
            skill_dir = make_skill(tmp_path / "skills", "weather", extra="emoji: 🌤️")

    Keyword arguments are forwarded to ``render_skill_md``; ``name`` defaults
    to the directory name. ``files`` maps relative paths to extra file
    contents, ``content`` replaces SKILL.md wholesale.
    """

    def _make(
        root: Path,
        dir_name: str,
        *,
        files: dict[str, str] | None = None,
        content: str | None = None,
        **kwargs: str | None,
    ) -> Path:
        skill_dir = root / dir_name
        skill_dir.mkdir(parents=True, exist_ok=True)
        kwargs.setdefault("name", dir_name)
        text = content if content is not None else render_skill_md(**kwargs)
        (skill_dir / "SKILL.md").write_text(text, encoding="utf-8")
        for rel, file_content in (files or {}).items():
            target = skill_dir / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(file_content, encoding="utf-8")
        return skill_dir

    return _make


@pytest.fixture
def skills_root(tmp_path: Path) -> Path:
    """Create an empty skills root directory."""
    root = tmp_path / "skills"
    root.mkdir()
    return root


@pytest.fixture
def static_context() -> StaticEligibilityContext:
    """Eligibility probe with ``git``/``curl`` on PATH and ``API_KEY`` set."""
    return StaticEligibilityContext(binaries={"git", "curl"}, env={"API_KEY": "secret"})


@pytest.fixture
def isolated_config(tmp_path: Path) -> SkillConfig:
    """SkillConfig that never touches the real home directory.

    Layout: builtin at ``tmp/builtin``, workspace skills at
    ``tmp/workspace/skills``. Neither directory is created.
    """
    return SkillConfig(
        builtin_dir=tmp_path / "builtin",
        global_dirs=[],
        workspace_dir=tmp_path / "workspace",
    )


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Remove SKILLGATE_* variables and run from an empty directory."""
    for key in list(os.environ):
        if key.startswith("SKILLGATE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
