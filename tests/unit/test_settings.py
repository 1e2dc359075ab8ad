"""Tests for SkillgateSettings and its sections."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from skillgate.config import (
    LoggingConfig,
    ScannerConfig,
    SkillgateSettings,
    TestingConfig,
    WatchConfig,
)
from skillgate.skills.errors import ConfigurationError
from skillgate.skills.scanner import JAVASCRIPT_RULES, PYTHON_RULES


@pytest.mark.usefixtures("clean_env")
class TestSkillgateSettings:
    """Tests for settings resolution."""

    def test_defaults(self) -> None:
        """Settings construct with defaults and no configuration files."""
        settings = SkillgateSettings(_env_file=None)

        assert settings.watch.enabled is False
        assert settings.watch.debounce_seconds == 1.0
        assert settings.scanner.rule_sets == ["javascript", "python"]
        assert settings.logging.level == "INFO"
        assert settings.testing.strict is False
        assert settings.skills.workspace_dir is None

    def test_env_nested(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """SKILLGATE_ variables with __ nesting populate sections."""
        monkeypatch.setenv("SKILLGATE_WATCH__DEBOUNCE_SECONDS", "0.25")
        monkeypatch.setenv("SKILLGATE_LOGGING__LEVEL", "DEBUG")
        monkeypatch.setenv("SKILLGATE_SKILLS__WORKSPACE_DIR", str(tmp_path))

        settings = SkillgateSettings(_env_file=None)

        assert settings.watch.debounce_seconds == 0.25
        assert settings.logging.level == "DEBUG"
        assert settings.skills.workspace_skills_dir == tmp_path / "skills"

    def test_toml_file(self, tmp_path: Path) -> None:
        """skillgate.toml in the working directory is read."""
        (tmp_path / "skillgate.toml").write_text(
            '[watch]\nenabled = true\n\n[scanner]\nrule_sets = ["python"]\n'
        )

        settings = SkillgateSettings(_env_file=None)

        assert settings.watch.enabled is True
        assert settings.scanner.rule_sets == ["python"]

    def test_skill_entries_from_toml(self, tmp_path: Path) -> None:
        """Per-skill entries are read from [skills.entries.<name>] tables."""
        (tmp_path / "skillgate.toml").write_text(
            '[skills.entries.weather]\nenabled = false\n\n'
            '[skills.entries.weather.env]\nUNITS = "metric"\n'
        )

        settings = SkillgateSettings(_env_file=None)

        entry = settings.skills.entries["weather"]
        assert entry.enabled is False
        assert entry.env == {"UNITS": "metric"}

    def test_config_file_env_var(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """SKILLGATE_CONFIG_FILE points at another TOML file."""
        custom = tmp_path / "conf" / "custom.toml"
        custom.parent.mkdir()
        custom.write_text("[testing]\nstrict = true\n")
        monkeypatch.setenv("SKILLGATE_CONFIG_FILE", str(custom))

        settings = SkillgateSettings(_env_file=None)

        assert settings.testing.strict is True

    def test_env_overrides_toml(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Environment variables win over the TOML file."""
        (tmp_path / "skillgate.toml").write_text("[watch]\ndebounce_seconds = 5.0\n")
        monkeypatch.setenv("SKILLGATE_WATCH__DEBOUNCE_SECONDS", "2.0")

        assert SkillgateSettings(_env_file=None).watch.debounce_seconds == 2.0

    def test_init_overrides_everything(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Constructor arguments win over the environment."""
        monkeypatch.setenv("SKILLGATE_LOGGING__LEVEL", "DEBUG")

        settings = SkillgateSettings(_env_file=None, logging=LoggingConfig(level="ERROR"))

        assert settings.logging.level == "ERROR"


class TestSections:
    """Tests for individual configuration sections."""

    def test_negative_debounce_rejected(self) -> None:
        """Debounce must be non-negative."""
        with pytest.raises(ValidationError):
            WatchConfig(debounce_seconds=-0.5)

    def test_build_scanner(self) -> None:
        """ScannerConfig builds a scanner with the selected rule sets."""
        scanner = ScannerConfig(rule_sets=["python"], skip_dirs=["vendor"]).build_scanner()

        assert scanner.rule_sets == (PYTHON_RULES,)
        assert scanner.skip_dirs == frozenset({"vendor"})

    def test_default_scanner_rules(self) -> None:
        """The default scanner uses both rule sets."""
        assert ScannerConfig().build_scanner().rule_sets == (JAVASCRIPT_RULES, PYTHON_RULES)

    def test_unknown_rule_set(self) -> None:
        """Unknown rule set names raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            ScannerConfig(rule_sets=["cobol"]).build_scanner()

    def test_testing_to_options(self) -> None:
        """TestingConfig produces matching TestOptions."""
        options = TestingConfig(strict=True, skip_examples=True).to_options()

        assert options.strict is True
        assert options.skip_examples is True
        assert options.skip_security is False

    def test_invalid_log_level(self) -> None:
        """Unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")
