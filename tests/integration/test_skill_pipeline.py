"""Integration tests for the load, prompt and test workflows.

These tests run real directories through SkillManager and SkillTestRunner
and check what a host application would see.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from skillgate.config import SkillgateSettings
from skillgate.skills import (
    SkillConfig,
    SkillManager,
    SkillSource,
    SkillTestRunner,
    TestOptions,
    exit_code,
    format_test_results,
)
from skillgate.skills.eligibility import StaticEligibilityContext

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_WEATHER_BODY = """\
# Weather

Get the current weather for a city.

```bash
curl -s "wttr.in/Paris?format=3"
```
"""

_WEATHER_EXTRA = """\
metadata: {"emoji": "🌤️", "homepage": "https://wttr.in", "requires": {"bins": ["curl"]}}
"""


@pytest.fixture
def workspace_root(isolated_config: SkillConfig) -> Path:
    root = isolated_config.workspace_skills_dir
    assert root is not None
    return root


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


class TestWeatherSkill:
    """A well-formed skill is active, advertised and passes its checks."""

    def test_active_and_in_prompt(
        self,
        isolated_config: SkillConfig,
        workspace_root: Path,
        make_skill,
        static_context: StaticEligibilityContext,
    ) -> None:
        make_skill(
            workspace_root,
            "weather",
            description="Get current weather & forecasts",
            body=_WEATHER_BODY,
            extra=_WEATHER_EXTRA,
        )

        manager = SkillManager(isolated_config, context=static_context)
        result = manager.load()

        assert [s.name for s in result.skills] == ["weather"]
        assert result.diagnostics == []
        assert "<name>weather</name>" in result.prompt
        assert "Get current weather &amp; forecasts" in result.prompt
        assert manager.is_active("weather")

    def test_passes_test_runner(
        self, workspace_root: Path, make_skill, static_context: StaticEligibilityContext
    ) -> None:
        make_skill(workspace_root, "weather", body=_WEATHER_BODY, extra=_WEATHER_EXTRA)

        run = SkillTestRunner(workspace_root, TestOptions(context=static_context)).run()

        assert run.passed is True
        assert exit_code(run.reports) == 0
        assert format_test_results(run.reports).endswith("Result: ✅ PASSED")


class TestInvalidSkill:
    """A skill with an invalid name is reported and kept out of the prompt."""

    def test_uppercase_name(
        self, isolated_config: SkillConfig, workspace_root: Path, make_skill
    ) -> None:
        make_skill(workspace_root, "WeatherPro")
        make_skill(workspace_root, "weather")

        manager = SkillManager(isolated_config)
        result = manager.load()

        errors = [d for d in result.diagnostics if d.is_error]
        assert errors
        assert all("WeatherPro" in d.message for d in errors)
        assert not manager.is_active("WeatherPro")
        assert manager.get("WeatherPro") is not None
        assert "WeatherPro" not in result.prompt
        assert [s.name for s in manager.list()] == ["weather"]

    def test_fails_test_runner(self, workspace_root: Path, make_skill) -> None:
        make_skill(workspace_root, "risky", files={"index.js": "eval(process.argv[2])\n"})

        run = SkillTestRunner(workspace_root, TestOptions(skip_deps=True)).run()

        assert run.passed is False
        assert exit_code(run.reports) == 1


class TestOverride:
    """A workspace skill shadows a builtin skill of the same name."""

    def test_workspace_wins_with_single_warning(
        self, isolated_config: SkillConfig, workspace_root: Path, make_skill
    ) -> None:
        assert isolated_config.builtin_dir is not None
        make_skill(isolated_config.builtin_dir, "git", description="Builtin git helpers")
        workspace_dir = make_skill(workspace_root, "git", description="Workspace git helpers")

        manager = SkillManager(isolated_config)
        result = manager.load()

        skill = manager.get("git")
        assert skill is not None
        assert skill.source is SkillSource.WORKSPACE
        assert skill.file_path == workspace_dir / "SKILL.md"
        collisions = [d for d in result.diagnostics if "collision" in d.message]
        assert len(collisions) == 1
        assert not collisions[0].is_error
        assert "Workspace git helpers" in result.prompt
        assert "Builtin git helpers" not in result.prompt


@pytest.mark.usefixtures("clean_env")
class TestSettingsDriven:
    """Settings loaded from a TOML file drive the manager."""

    def test_toml_configures_manager(self, tmp_path: Path, make_skill) -> None:
        workspace = tmp_path / "project"
        make_skill(workspace / "skills", "notes", files={"run.py": "import subprocess\n"})
        (tmp_path / "skillgate.toml").write_text(
            f'[skills]\nworkspace_dir = "{workspace.as_posix()}"\nglobal_dirs = []\n\n'
            '[scanner]\nrule_sets = ["javascript"]\n'
        )

        settings = SkillgateSettings(_env_file=None)
        manager = SkillManager(settings.skills, scanner=settings.scanner.build_scanner())
        manager.load()

        assert manager.is_active("notes")
        summary = manager.scan("notes")
        assert summary is not None
        assert summary.findings == []
