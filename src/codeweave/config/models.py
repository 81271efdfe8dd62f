"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CODEWEAVE__SECTION__KEY)
3. Repo YAML (<codebase>/.codeweave/config.yaml)
4. Global YAML (~/.config/codeweave/config.yaml)
5. Built-in defaults (this file)

Examples:
    CODEWEAVE__LOGGING__LEVEL=DEBUG
    CODEWEAVE__DEPRECATION__MARKER_PATTERN="Use "
    CODEWEAVE__WEAVE__EXCLUSION_MODE=any
"""

from enum import StrEnum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from codeweave.config.constants import (
    ANCESTOR_WALK_DEPTH_DEFAULT,
    DEFAULT_ABSTRACT_DECORATORS,
    DEFAULT_DEPRECATION_DECORATORS,
    DEFAULT_INTERFACE_BASES,
    DEFAULT_MARKER_PATTERN,
)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ExclusionMode(StrEnum):
    """How call-site exclusion decides that a whole method is excluded."""

    ALL = "all"  # every call site must be inside the exclusion set
    ANY = "any"  # one call site inside the exclusion set is enough


class RenameMode(StrEnum):
    """Which identifiers a deprecation rename rewrites."""

    TEXTUAL = "textual"  # every same-named attribute (not bare name) in affected files
    RESOLVED = "resolved"  # only the identifiers reported as call sites


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CODEWEAVE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. INFO reports each run; DEBUG logs every located site.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class DiscoveryConfig(BaseModel):
    """Project discovery and symbol classification.

    Env vars:
        CODEWEAVE__DISCOVERY__EXTRA_EXCLUDES: JSON list of directory names to skip
    """

    extra_excludes: list[str] = Field(
        default_factory=list,
        description="Directory names skipped in addition to the built-in prune list.",
    )
    interface_bases: list[str] = Field(
        default_factory=lambda: list(DEFAULT_INTERFACE_BASES),
        description="Fully qualified base classes (or metaclasses) that make a class an interface.",
    )
    abstract_decorators: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ABSTRACT_DECORATORS),
        description="Decorators marking a method as abstract (never woven).",
    )


class WeaveConfig(BaseModel):
    """Defaults for aspect weaving.

    Env vars:
        CODEWEAVE__WEAVE__EXCLUSION_MODE: all | any
    """

    excluded_projects: list[str] = Field(
        default_factory=list,
        description="Projects whose call sites disqualify an interface method.",
    )
    excluded_classes: list[str] = Field(
        default_factory=list,
        description="Class names whose call sites disqualify an interface method.",
    )
    exclusion_mode: ExclusionMode = Field(
        default=ExclusionMode.ALL,
        description="'all': excluded only if every call site is excluded. "
        "'any': one excluded call site excludes the method.",
    )


class DeprecationConfig(BaseModel):
    """Deprecation forwarding configuration.

    Env vars:
        CODEWEAVE__DEPRECATION__MARKER_PATTERN: Text preceding the successor name
        CODEWEAVE__DEPRECATION__RENAME_MODE: textual | resolved
    """

    marker_pattern: str = Field(
        default=DEFAULT_MARKER_PATTERN,
        description="Successor name is the text after the last occurrence of this pattern.",
    )
    decorators: list[str] = Field(
        default_factory=lambda: list(DEFAULT_DEPRECATION_DECORATORS),
        description="Decorator names treated as deprecation markers.",
    )
    rename_mode: RenameMode = Field(
        default=RenameMode.TEXTUAL,
        description="'textual' renames every same-named attribute in affected files. "
        "'resolved' renames only located call sites.",
    )

    @field_validator("marker_pattern")
    @classmethod
    def validate_marker_pattern(cls, v: str) -> str:
        if not v:
            raise ValueError("Marker pattern must not be empty")
        return v


class LimitsConfig(BaseModel):
    """Safety bounds.

    Env vars:
        CODEWEAVE__LIMITS__ANCESTOR_WALK_MAX_DEPTH: Max parents visited per lookup
    """

    ancestor_walk_max_depth: int = Field(
        default=ANCESTOR_WALK_DEPTH_DEFAULT,
        description="Upper bound on parent hops when finding a call site's enclosing class.",
    )

    @field_validator("ancestor_walk_max_depth")
    @classmethod
    def validate_depth(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Depth must be positive, got {v}")
        return v


class CodeWeaveConfig(BaseModel):
    """Root configuration (for type hints; loader builds it via pydantic-settings)."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    weave: WeaveConfig = Field(default_factory=WeaveConfig)
    deprecation: DeprecationConfig = Field(default_factory=DeprecationConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
