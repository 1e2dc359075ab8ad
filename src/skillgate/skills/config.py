"""Skill data models, enums, and configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

#: File name that marks a directory as a skill.
SKILL_FILE_NAME = "SKILL.md"

#: Max name length per the Agent Skills specification.
MAX_SKILL_NAME_LENGTH = 64

#: Max description length per the Agent Skills specification.
MAX_SKILL_DESCRIPTION_LENGTH = 1024

#: Default cap on the size of any file read by discovery or the scanner.
DEFAULT_MAX_FILE_BYTES = 1024 * 1024


class SkillSource(str, Enum):
    """Provenance of a discovered skill.

    The tag is informational; override priority is decided by the order of
    the configured roots, not by the enum.

    Attributes:
        BUILTIN: Skill shipped with the host application.
        WORKSPACE: Skill from the current workspace's ``skills/`` directory.
        GLOBAL: Skill from a user-level or extra directory.
    """

    BUILTIN = "builtin"
    WORKSPACE = "workspace"
    GLOBAL = "global"


class DiagnosticSeverity(str, Enum):
    """Severity of a validation diagnostic."""

    ERROR = "error"
    WARNING = "warning"


class SkillFrontmatter(BaseModel):
    """Parsed SKILL.md front matter.

    Known fields are typed so the rest of the subsystem can rely on them.
    Any other key is kept verbatim in ``extra`` and re-emitted by
    ``to_dict()``, so skills written for newer clients survive a round trip.

    Attributes:
        name: Skill name in kebab-case.
        description: What the skill does and when to use it.
        license: License identifier for the skill.
        compatibility: Free-form compatibility note.
        allowed_tools: Tool hint (``allowed-tools``), string or list.
        metadata: Open key-value map for client-specific properties.
        disable_model_invocation: Deprecated flag hiding the skill from the
            model prompt (``disable-model-invocation``).
        category: Optional skill category.
        invoke_as: Optional invocation mode (``invoke-as``).
        emoji: Display icon.
        homepage: Project homepage URL.
        os: Supported operating systems.
        requires: Declared prerequisites (``bins``, ``env``, ``anyBins``).
            Left loosely typed; the validator checks its shape.
        install: Declared dependency installers.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str | None = None
    description: str | None = None
    license: str | None = None
    compatibility: str | None = None
    allowed_tools: str | list[str] | None = Field(default=None, alias="allowed-tools")
    metadata: dict[str, Any] | None = None
    disable_model_invocation: bool = Field(default=False, alias="disable-model-invocation")
    category: str | None = None
    invoke_as: str | None = Field(
        default=None,
        validation_alias=AliasChoices("invoke-as", "invoke_as"),
        serialization_alias="invoke-as",
    )
    emoji: str | None = None
    homepage: str | None = None
    os: str | list[str] | None = None
    requires: Any = None
    install: Any = None

    @field_validator(
        "name",
        "description",
        "license",
        "compatibility",
        "category",
        "invoke_as",
        "emoji",
        "homepage",
        mode="before",
    )
    @classmethod
    def _scalar_to_str(cls, value: Any) -> Any:
        """Accept YAML numbers for text fields (``version: 1.0`` style)."""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def extra(self) -> dict[str, Any]:
        """Unknown front matter keys, exactly as written."""
        return dict(self.model_extra or {})

    def to_dict(self) -> dict[str, Any]:
        """Return the front matter as written, using the file's key names."""
        return self.model_dump(by_alias=True, exclude_unset=True)


@dataclass
class Skill:
    """A discovered skill.

    Constructed fresh on every discovery pass and never persisted.

    Attributes:
        name: Skill name (front matter ``name`` or the directory name).
        description: Trimmed description.
        file_path: Path to the SKILL.md file.
        base_dir: Directory containing the SKILL.md file.
        source: Provenance tag of the root the skill came from.
        content: Markdown body without front matter.
        frontmatter: Parsed front matter.
        disable_model_invocation: Whether the skill is hidden from the prompt.
    """

    name: str
    description: str
    file_path: Path
    base_dir: Path
    source: SkillSource
    content: str = ""
    frontmatter: SkillFrontmatter = field(default_factory=SkillFrontmatter)
    disable_model_invocation: bool = False

    @property
    def metadata(self) -> dict[str, Any]:
        return dict(self.frontmatter.metadata or {})

    @property
    def requires(self) -> Any:
        """Declared prerequisites, top-level ``requires`` first, then ``metadata.requires``."""
        if self.frontmatter.requires is not None:
            return self.frontmatter.requires
        return self.metadata.get("requires")

    @property
    def emoji(self) -> str | None:
        if self.frontmatter.emoji:
            return self.frontmatter.emoji
        value = self.metadata.get("emoji")
        return value if isinstance(value, str) else None

    @property
    def homepage(self) -> str | None:
        if self.frontmatter.homepage:
            return self.frontmatter.homepage
        value = self.metadata.get("homepage")
        return value if isinstance(value, str) else None

    @property
    def install(self) -> Any:
        if self.frontmatter.install is not None:
            return self.frontmatter.install
        return self.metadata.get("install")


@dataclass(frozen=True)
class ValidationDiagnostic:
    """A single validation error or warning.

    Attributes:
        severity: ``error`` blocks a skill, ``warning`` is informational.
        message: Human-readable description.
        path: File or directory the diagnostic refers to.
    """

    severity: DiagnosticSeverity
    message: str
    path: Path | None = None

    @property
    def is_error(self) -> bool:
        return self.severity is DiagnosticSeverity.ERROR

    @classmethod
    def error(cls, message: str, path: Path | None = None) -> ValidationDiagnostic:
        return cls(DiagnosticSeverity.ERROR, message, path)

    @classmethod
    def warning(cls, message: str, path: Path | None = None) -> ValidationDiagnostic:
        return cls(DiagnosticSeverity.WARNING, message, path)

    def __str__(self) -> str:
        location = f" ({self.path})" if self.path else ""
        return f"[{self.severity.value}] {self.message}{location}"


@dataclass
class ValidationResult:
    """Result from validating a skill.

    Attributes:
        errors: Diagnostics that make the skill invalid.
        warnings: Non-blocking diagnostics.
    """

    errors: list[ValidationDiagnostic] = field(default_factory=list)
    warnings: list[ValidationDiagnostic] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def diagnostics(self) -> list[ValidationDiagnostic]:
        return [*self.errors, *self.warnings]


@dataclass
class EligibilityResult:
    """Whether a skill's prerequisites are met in the probed environment."""

    eligible: bool
    reason: str | None = None


@dataclass
class DiscoveryResult:
    """Skills found by a discovery pass plus everything that went wrong."""

    skills: list[Skill] = field(default_factory=list)
    diagnostics: list[ValidationDiagnostic] = field(default_factory=list)

    @property
    def errors(self) -> list[ValidationDiagnostic]:
        return [d for d in self.diagnostics if d.is_error]

    @property
    def warnings(self) -> list[ValidationDiagnostic]:
        return [d for d in self.diagnostics if not d.is_error]


class SkillEntryConfig(BaseModel):
    """Per-skill settings, keyed by skill name under ``SkillConfig.entries``.

    Attributes:
        enabled: ``False`` hides the skill from the active set; ``None`` leaves
            it to the other checks.
        api_key: Credential handed to the skill's environment by the host.
        env: Extra environment variables for the skill.
    """

    model_config = ConfigDict(extra="forbid")

    enabled: bool | None = Field(default=None, description="Explicit enable/disable switch")
    api_key: str | None = Field(default=None, description="API key for the skill")
    env: dict[str, str] = Field(
        default_factory=dict,
        description="Environment variables set when the skill runs",
    )


@dataclass(frozen=True)
class SkillRoot:
    """A directory to discover skills from, tagged with its source."""

    dir: Path
    source: SkillSource


class SkillConfig(BaseModel):
    """Configuration for skill discovery.

    Roots are merged lowest to highest priority: builtin, global, extra,
    workspace. A later root overrides an earlier one on a name clash.

    Attributes:
        builtin_dir: Skills shipped with the host application.
        global_dirs: User-level skill directories (``~`` is expanded).
        workspace_dir: Workspace root; skills live in ``<workspace>/skills``.
        extra_dirs: Additional directories, tagged ``global``.
        ignore_names: Directory names never descended into.
        respect_ignore_files: Honour ``.gitignore``/``.ignore``/``.fdignore``.
        max_file_bytes: Largest SKILL.md that will be read.
        max_workers: Threads used to walk roots; ``1`` walks sequentially.
        entries: Per-skill settings (enable switch, API key, environment).
    """

    builtin_dir: Path | None = Field(
        default=None,
        description="Directory of skills shipped with the application",
    )
    global_dirs: list[Path] = Field(
        default_factory=lambda: [Path("~/.skillgate/skills")],
        description="User-level skill directories",
    )
    workspace_dir: Path | None = Field(
        default=None,
        description="Workspace root containing a skills/ directory",
    )
    extra_dirs: list[Path] = Field(
        default_factory=list,
        description="Additional skill directories",
    )
    ignore_names: set[str] = Field(
        default_factory=lambda: {"node_modules", "__pycache__"},
        description="Directory names skipped during discovery",
    )
    respect_ignore_files: bool = Field(
        default=True,
        description="Honour .gitignore/.ignore/.fdignore files",
    )
    max_file_bytes: int = Field(
        default=DEFAULT_MAX_FILE_BYTES,
        gt=0,
        description="Largest SKILL.md file that will be read",
    )
    max_workers: int = Field(
        default=1,
        ge=1,
        description="Threads used to walk skill roots",
    )
    entries: dict[str, SkillEntryConfig] = Field(
        default_factory=dict,
        description="Per-skill settings keyed by skill name",
    )

    @model_validator(mode="after")
    def _expand_user_dirs(self) -> SkillConfig:
        """Expand ``~`` in every configured directory."""
        if self.builtin_dir is not None:
            self.builtin_dir = self.builtin_dir.expanduser()
        if self.workspace_dir is not None:
            self.workspace_dir = self.workspace_dir.expanduser()
        self.global_dirs = [p.expanduser() for p in self.global_dirs]
        self.extra_dirs = [p.expanduser() for p in self.extra_dirs]
        return self

    @property
    def workspace_skills_dir(self) -> Path | None:
        if self.workspace_dir is None:
            return None
        return self.workspace_dir / "skills"

    def roots(self) -> list[SkillRoot]:
        """Return the configured roots, lowest priority first."""
        roots: list[SkillRoot] = []
        if self.builtin_dir is not None:
            roots.append(SkillRoot(self.builtin_dir, SkillSource.BUILTIN))
        for global_dir in self.global_dirs:
            roots.append(SkillRoot(global_dir, SkillSource.GLOBAL))
        for extra_dir in self.extra_dirs:
            roots.append(SkillRoot(extra_dir, SkillSource.GLOBAL))
        if self.workspace_skills_dir is not None:
            roots.append(SkillRoot(self.workspace_skills_dir, SkillSource.WORKSPACE))
        return roots
