"""Tests for skill error hierarchy."""

from __future__ import annotations

import pickle
from pathlib import Path

from skillgate.skills.errors import (
    ConfigurationError,
    SkillError,
    SkillLoadError,
    SkillNotFoundError,
    SkillParseError,
)


class TestSkillError:
    """Tests for base SkillError."""

    def test_message(self) -> None:
        """Test error message stored and returned by str()."""
        error = SkillError("Something went wrong")
        assert error.message == "Something went wrong"
        assert str(error) == "Something went wrong"

    def test_repr(self) -> None:
        """Test repr produces useful debugging info."""
        error = SkillError("Something went wrong")
        assert repr(error) == "SkillError('Something went wrong')"

    def test_picklable(self) -> None:
        """Test error can be pickled and unpickled."""
        error = SkillError("pickle test")
        restored = pickle.loads(pickle.dumps(error))
        assert restored.message == error.message


class TestSkillNotFoundError:
    """Tests for SkillNotFoundError."""

    def test_basic_error(self) -> None:
        """Test error with name and path."""
        error = SkillNotFoundError("weather", "/project/skills/weather/SKILL.md")

        assert error.name == "weather"
        assert error.path == Path("/project/skills/weather/SKILL.md")
        assert "weather" in str(error)
        assert isinstance(error, SkillError)

    def test_picklable(self) -> None:
        """Test error can be pickled and unpickled."""
        error = SkillNotFoundError("weather", "/project/skills/weather")
        restored = pickle.loads(pickle.dumps(error))

        assert isinstance(restored, SkillNotFoundError)
        assert restored.name == "weather"
        assert restored.path == error.path
        assert str(restored) == str(error)


class TestSkillParseError:
    """Tests for SkillParseError."""

    def test_detail_in_message(self) -> None:
        """Test the parse detail is part of the message."""
        error = SkillParseError("broken", "/skills/broken/SKILL.md", "bad indentation")

        assert error.detail == "bad indentation"
        assert "bad indentation" in error.message
        assert "broken" in error.message

    def test_repr(self) -> None:
        """Test repr shows every constructor argument."""
        r = repr(SkillParseError("broken", "/p", "oops"))
        assert "SkillParseError" in r
        assert "detail='oops'" in r

    def test_picklable(self) -> None:
        """Test error can be pickled and unpickled."""
        error = SkillParseError("broken", "/skills/broken/SKILL.md", "bad indentation")
        restored = pickle.loads(pickle.dumps(error))

        assert restored.detail == error.detail
        assert str(restored) == str(error)


class TestSkillLoadError:
    """Tests for SkillLoadError."""

    def test_without_cause(self) -> None:
        """Test message has no trailing cause when none is given."""
        error = SkillLoadError("big", "/skills/big/SKILL.md")
        assert error.cause is None
        assert str(error).endswith("SKILL.md")

    def test_with_exception_cause(self) -> None:
        """Test an exception cause is rendered in the message."""
        cause = PermissionError("Permission denied")
        error = SkillLoadError("locked", "/skills/locked/SKILL.md", cause=cause)

        assert error.cause is cause
        assert "Permission denied" in str(error)

    def test_picklable_with_string_cause(self) -> None:
        """Test error with a string cause survives pickling."""
        error = SkillLoadError("big", "/skills/big/SKILL.md", cause="file is too large")
        restored = pickle.loads(pickle.dumps(error))

        assert isinstance(restored, SkillLoadError)
        assert restored.cause == "file is too large"
        assert str(restored) == str(error)


class TestConfigurationError:
    """Tests for ConfigurationError."""

    def test_fields(self) -> None:
        """Test the offending key is recorded."""
        error = ConfigurationError("watch.debounce_seconds", "must be >= 0")

        assert error.config_key == "watch.debounce_seconds"
        assert "watch.debounce_seconds" in str(error)
        assert "must be >= 0" in str(error)
        assert isinstance(error, SkillError)

    def test_picklable(self) -> None:
        """Test error can be pickled and unpickled."""
        error = ConfigurationError("scanner.rule_sets", "unknown rule set 'go'")
        restored = pickle.loads(pickle.dumps(error))

        assert restored.config_key == error.config_key
        assert str(restored) == str(error)
