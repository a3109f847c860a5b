"""Configuration management for SwiftSpy.

Loads and validates swiftspy.yaml configuration files.
"""

from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator


class OverloadPolicy(str, Enum):
    """What to do when two functions derive the same variable prefix."""

    DISAMBIGUATE = "disambiguate"  # Append parameter (then return) type identifiers
    KEEP = "keep"  # Keep colliding names and warn


class MemberErrorPolicy(str, Enum):
    """What to do when one member cannot be generated."""

    FAIL = "fail"  # First bad member aborts the whole spy
    SKIP = "skip"  # Leave the member out and collect the error


class GeneratorConfig(BaseModel):
    """Configuration for the generation engine."""

    overloads: OverloadPolicy = OverloadPolicy.DISAMBIGUATE
    """How overload prefix collisions are handled."""

    member_errors: MemberErrorPolicy = MemberErrorPolicy.FAIL
    """Whether one malformed member aborts generation."""

    guard: str | None = None
    """Default conditional-compilation flag when the source names none."""

    @field_validator("guard", mode="before")
    @classmethod
    def empty_guard_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class EmitterConfig(BaseModel):
    """Configuration for the Swift emitter."""

    indent_width: int = Field(default=4, ge=1, le=8)
    """Spaces per indentation level."""

    final_class: bool = False
    """Declare the spy as `final class`."""

    header: str | None = None
    """Comment line placed above the generated type."""


class SwiftSpyConfig(BaseModel):
    """Root configuration for SwiftSpy."""

    version: str = "0.1"
    """Config file version."""

    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    """Generation engine configuration."""

    emitter: EmitterConfig = Field(default_factory=EmitterConfig)
    """Swift output configuration."""

    source_paths: list[str] = Field(default_factory=lambda: ["Sources"])
    """Directories searched for protocol files."""

    output_directory: str = "Generated"
    """Directory generated spies are written to."""

    @field_validator("source_paths", mode="before")
    @classmethod
    def ensure_list(cls, v: Any) -> list[str]:
        if isinstance(v, str):
            return [v]
        return v


CONFIG_FILENAMES = (
    "swiftspy.yaml",
    "swiftspy.yml",
    ".swiftspy.yaml",
    ".swiftspy.yml",
)


def load_config(config_path: Path | None = None, project_root: Path | None = None) -> SwiftSpyConfig:
    """Load configuration from a YAML file.

    Args:
        config_path: Explicit path to config file. If None, searches for swiftspy.yaml.
        project_root: Project root directory. Defaults to cwd.

    Returns:
        Parsed configuration. Returns default config if no file found.
    """
    project_root = project_root or Path.cwd()

    # Find config file
    if config_path is None:
        for filename in CONFIG_FILENAMES:
            candidate = project_root / filename
            if candidate.exists():
                config_path = candidate
                break

    # No config file - return defaults
    if config_path is None or not config_path.exists():
        return SwiftSpyConfig()

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    return SwiftSpyConfig.model_validate(data)


def resolve_paths(config: SwiftSpyConfig, project_root: Path) -> SwiftSpyConfig:
    """Resolve relative paths in config to absolute paths.

    Args:
        config: The configuration to update.
        project_root: Base directory for relative paths.

    Returns:
        Config with resolved paths (new instance).
    """
    resolved_source_paths = [
        str((project_root / p).resolve()) if not Path(p).is_absolute() else p
        for p in config.source_paths
    ]

    output_directory = config.output_directory
    if not Path(output_directory).is_absolute():
        output_directory = str((project_root / output_directory).resolve())

    return config.model_copy(
        update={
            "source_paths": resolved_source_paths,
            "output_directory": output_directory,
        }
    )
