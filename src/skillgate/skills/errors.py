"""Skill subsystem exceptions."""

from __future__ import annotations

from pathlib import Path


class SkillError(Exception):
    """Base exception for all skill-related errors.

    All custom exceptions in the skills subsystem inherit from this class,
    allowing callers to catch all skill errors with a single handler.

    Attributes:
        message: Human-readable error message.
    """

    def __init__(self, message: str) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message.
        """
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return f"{type(self).__name__}({self.message!r})"


class SkillNotFoundError(SkillError):
    """Raised when a skill directory or definition file does not exist.

    Attributes:
        name: Skill name that was not found.
        path: Filesystem path that was checked.
    """

    def __init__(self, name: str, path: str | Path) -> None:
        self.name = name
        self.path = Path(path)
        super().__init__(f"Skill '{name}' not found at path: {self.path}")

    def __reduce__(self) -> tuple:
        """Support pickling by returning constructor arguments."""
        return (type(self), (self.name, str(self.path)))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, path={str(self.path)!r})"


class SkillParseError(SkillError):
    """Raised when SKILL.md front matter cannot be parsed.

    Attributes:
        name: Skill name (usually the directory name) of the broken file.
        path: Filesystem path of the SKILL.md file.
        detail: Description of the parse error.
    """

    def __init__(self, name: str, path: str | Path, detail: str) -> None:
        self.name = name
        self.path = Path(path)
        self.detail = detail
        super().__init__(
            f"Failed to parse front matter for skill '{name}' at {self.path}: {detail}"
        )

    def __reduce__(self) -> tuple:
        """Support pickling by returning constructor arguments."""
        return (type(self), (self.name, str(self.path), self.detail))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, "
            f"path={str(self.path)!r}, detail={self.detail!r})"
        )


class SkillLoadError(SkillError):
    """Raised on permission, size-limit or disk errors while reading a skill.

    Attributes:
        name: Skill name that failed to load.
        path: Filesystem path that could not be read.
        cause: Original exception or reason string.
    """

    def __init__(self, name: str, path: str | Path, cause: Exception | str | None = None) -> None:
        self.name = name
        self.path = Path(path)
        self.cause = cause
        cause_str = f" ({cause})" if cause else ""
        super().__init__(f"Failed to load skill '{name}' from {self.path}{cause_str}")

    def __reduce__(self) -> tuple:
        """Support pickling by returning constructor arguments."""
        return (_rebuild_skill_load_error, (self.name, str(self.path), self.cause))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, "
            f"path={str(self.path)!r}, cause={self.cause!r})"
        )


class ConfigurationError(SkillError):
    """Raised when skillgate settings are inconsistent or out of range.

    Attributes:
        config_key: Dotted name of the offending setting.
    """

    def __init__(self, config_key: str, detail: str) -> None:
        self.config_key = config_key
        self.detail = detail
        super().__init__(f"Invalid configuration for '{config_key}': {detail}")

    def __reduce__(self) -> tuple:
        return (type(self), (self.config_key, self.detail))


def _rebuild_skill_load_error(
    name: str,
    path: str,
    cause: Exception | str | None,
) -> SkillLoadError:
    """Rebuild a SkillLoadError from pickled arguments."""
    return SkillLoadError(name, path, cause=cause)
