"""Tests for the SkillManager facade."""

from __future__ import annotations

from pathlib import Path

import pytest

from skillgate.skills.config import SkillConfig, SkillSource
from skillgate.skills.eligibility import StaticEligibilityContext
from skillgate.skills.manager import SkillManager


class TestSkillManagerLoad:
    """Tests for SkillManager.load and the cached views."""

    def test_empty_before_load(self, isolated_config: SkillConfig) -> None:
        """Nothing is cached until load() runs."""
        manager = SkillManager(isolated_config)

        assert manager.skills == []
        assert manager.prompt == ""
        assert manager.last_load_time is None

    def test_load_pipeline(
        self,
        isolated_config: SkillConfig,
        make_skill,
        static_context: StaticEligibilityContext,
    ) -> None:
        """Invalid and ineligible skills are dropped from the active set."""
        root = isolated_config.workspace_skills_dir
        assert root is not None
        make_skill(root, "weather", extra='metadata: {"requires": {"bins": ["curl"]}}')
        make_skill(root, "needs-docker", extra='metadata: {"requires": {"bins": ["docker"]}}')
        make_skill(root, "Bad_Name")
        make_skill(root, "no-desc", description=None)

        manager = SkillManager(isolated_config, context=static_context)
        result = manager.load()

        assert [s.name for s in result.skills] == ["weather"]
        assert sorted(s.name for s in result.all_skills) == ["Bad_Name", "needs-docker", "weather"]
        assert [(s.name, reason) for s, reason in result.ineligible] == [
            ("needs-docker", "Missing required binary: docker")
        ]
        messages = [d.message for d in result.diagnostics]
        assert "Missing required field: description" in messages
        assert any("Bad_Name" in m and "invalid characters" in m for m in messages)
        assert any(m.startswith("Skill 'needs-docker' is not eligible") for m in messages)
        assert "<name>weather</name>" in result.prompt
        assert "needs-docker" not in result.prompt
        assert manager.last_load_time is not None

    def test_retrieval(self, isolated_config: SkillConfig, make_skill) -> None:
        """get() sees every discovered skill; is_active() only active ones."""
        root = isolated_config.workspace_skills_dir
        assert root is not None
        make_skill(root, "weather")
        make_skill(root, "Bad_Name")

        manager = SkillManager(isolated_config)
        manager.load()

        assert manager.get("weather") is not None
        assert manager.get("Bad_Name") is not None
        assert manager.get("unknown") is None
        assert manager.is_active("weather") is True
        assert manager.is_active("Bad_Name") is False
        assert [s.name for s in manager.list()] == ["weather"]

    def test_reload_replaces_cache(self, isolated_config: SkillConfig, make_skill) -> None:
        """reload() reflects skills added and removed since the last load."""
        root = isolated_config.workspace_skills_dir
        assert root is not None
        first = make_skill(root, "first")
        manager = SkillManager(isolated_config)
        manager.load()

        (first / "SKILL.md").unlink()
        make_skill(root, "second")
        manager.reload()

        assert [s.name for s in manager.skills] == ["second"]
        assert manager.get("first") is None

    def test_disabled_entry_hidden(self, tmp_path: Path, make_skill) -> None:
        """Disabled skills leave the active set and prompt but stay discoverable."""
        config = SkillConfig(
            global_dirs=[],
            workspace_dir=tmp_path,
            entries={"weather": {"enabled": False}},
        )
        make_skill(tmp_path / "skills", "weather")
        make_skill(tmp_path / "skills", "notes")

        manager = SkillManager(config)
        result = manager.load()

        assert [s.name for s in result.skills] == ["notes"]
        assert [s.name for s in result.disabled] == ["weather"]
        assert sorted(s.name for s in result.all_skills) == ["notes", "weather"]
        assert "<name>weather</name>" not in result.prompt
        assert manager.get("weather") is not None
        assert manager.is_active("weather") is False
        assert "Skill 'weather' is disabled by configuration" in [
            d.message for d in result.diagnostics
        ]

    def test_disabled_by_environment(
        self,
        isolated_config: SkillConfig,
        make_skill,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """SKILLGATE_SKILL_<NAME>_ENABLED=false disables a skill without config."""
        root = isolated_config.workspace_skills_dir
        assert root is not None
        make_skill(root, "web-search")
        monkeypatch.setenv("SKILLGATE_SKILL_WEB_SEARCH_ENABLED", "false")

        manager = SkillManager(isolated_config)
        manager.load()

        assert manager.is_active("web-search") is False

    def test_workspace_overrides_builtin(self, isolated_config: SkillConfig, make_skill) -> None:
        """A workspace skill replaces the builtin one of the same name."""
        assert isolated_config.builtin_dir is not None
        assert isolated_config.workspace_skills_dir is not None
        make_skill(isolated_config.builtin_dir, "git", description="Builtin git")
        make_skill(isolated_config.workspace_skills_dir, "git", description="Workspace git")

        manager = SkillManager(isolated_config)
        manager.load()
        skill = manager.get("git")

        assert skill is not None
        assert skill.source is SkillSource.WORKSPACE
        assert skill.description == "Workspace git"
        assert sum("collision" in d.message for d in manager.diagnostics) == 1


class TestSkillManagerSecurity:
    """Tests for scan() and install_warnings()."""

    def test_scan(self, isolated_config: SkillConfig, make_skill) -> None:
        """scan() runs the scanner on the skill's directory."""
        root = isolated_config.workspace_skills_dir
        assert root is not None
        make_skill(root, "risky", files={"index.js": "eval('x')\n"})
        manager = SkillManager(isolated_config)
        manager.load()

        summary = manager.scan("risky")

        assert summary is not None
        assert summary.critical == 1
        assert manager.scan("unknown") is None

    def test_install_warnings(self, isolated_config: SkillConfig, make_skill) -> None:
        """install_warnings() surfaces dangerous patterns by skill name."""
        root = isolated_config.workspace_skills_dir
        assert root is not None
        make_skill(root, "risky", files={"lib/run.py": "import subprocess\n"})
        manager = SkillManager(isolated_config)
        manager.load()

        warnings = manager.install_warnings("risky")

        assert len(warnings) == 1
        assert 'Skill "risky" contains dangerous code patterns' in warnings[0]
        assert manager.install_warnings("unknown") == []

    def test_defaults(self, tmp_path: Path) -> None:
        """A manager without config uses defaults."""
        manager = SkillManager()
        assert manager.config.roots()
        assert manager.is_watching is False
