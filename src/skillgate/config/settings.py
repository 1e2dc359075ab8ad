"""Root settings for skillgate.

Values are resolved in this order (first wins): constructor arguments,
``SKILLGATE_*`` environment variables (nested with ``__``, e.g.
``SKILLGATE_WATCH__DEBOUNCE_SECONDS=0.5``), a ``.env`` file, then a TOML
file. The TOML file is ``skillgate.toml`` in the working directory unless
``SKILLGATE_CONFIG_FILE`` points elsewhere.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from skillgate.config.logging_config import LoggingConfig
from skillgate.skills.config import DEFAULT_MAX_FILE_BYTES, SkillConfig
from skillgate.skills.scanner import (
    DEFAULT_SKIP_DIRS,
    RULE_SETS,
    SkillScanner,
    get_rule_sets,
)
from skillgate.skills.testing import TestOptions

CONFIG_FILE_ENV_VAR = "SKILLGATE_CONFIG_FILE"
DEFAULT_CONFIG_FILE = "skillgate.toml"


class WatchConfig(BaseModel):
    """Live reload settings."""

    enabled: bool = Field(default=False, description="Watch skill roots for changes")
    debounce_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Quiet period before a reload fires",
    )


class ScannerConfig(BaseModel):
    """Security scanner settings."""

    max_file_bytes: int = Field(
        default=DEFAULT_MAX_FILE_BYTES,
        gt=0,
        description="Files larger than this are reported as scan errors",
    )
    skip_dirs: list[str] = Field(
        default_factory=lambda: sorted(DEFAULT_SKIP_DIRS),
        description="Directory names never scanned",
    )
    rule_sets: list[str] = Field(
        default_factory=lambda: list(RULE_SETS),
        description="Rule sets to apply",
    )

    def build_scanner(self) -> SkillScanner:
        """Create a scanner from these settings.

        Raises:
            ConfigurationError: If a rule set name is unknown.
        """
        return SkillScanner(
            rule_sets=get_rule_sets(self.rule_sets),
            skip_dirs=self.skip_dirs,
            max_file_bytes=self.max_file_bytes,
        )


class TestingConfig(BaseModel):
    """Defaults for the skill test framework."""

    __test__ = False

    skip_security: bool = False
    skip_deps: bool = False
    skip_examples: bool = False
    strict: bool = False

    def to_options(self, scanner: SkillScanner | None = None) -> TestOptions:
        return TestOptions(
            skip_security=self.skip_security,
            skip_deps=self.skip_deps,
            skip_examples=self.skip_examples,
            strict=self.strict,
            scanner=scanner,
        )


class SkillgateSettings(BaseSettings):
    """Root configuration.

    Attributes:
        skills: Discovery roots and limits.
        watch: Live reload settings.
        scanner: Security scanner settings.
        testing: Test framework defaults.
        logging: Logging settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="SKILLGATE_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    skills: SkillConfig = Field(default_factory=SkillConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    scanner: ScannerConfig = Field(default_factory=ScannerConfig)
    testing: TestingConfig = Field(default_factory=TestingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        toml_file = Path(os.environ.get(CONFIG_FILE_ENV_VAR) or DEFAULT_CONFIG_FILE)
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            file_secret_settings,
        )
