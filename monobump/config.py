"""Configuration loading.

Settings come from, in order of precedence, an explicit file, a
.monobump.toml at the repository root, or [tool.monobump] in the root
pyproject.toml. Anything not configured falls back to DEFAULT_RULES,
which follows the Conventional Commits convention.

Example .monobump.toml::

    default-bump = "patch"
    tag-format = "{name}@{version}"

    [commit-types]
    feat = "minor"
    docs = "ignore"

    [dependency-bumps]
    major = "minor"   # dampen cascades of breaking changes
    minor = "patch"
    patch = "patch"
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from tomlkit.exceptions import TOMLKitError

from .bumps import BumpLevel, parse_level
from .errors import ConfigError
from .models import VersionRules
from .toml import get_tool_table, load_toml

CONFIG_FILE = ".monobump.toml"
TOOL_NAME = "monobump"
DEFAULT_TAG_FORMAT = "{name}@{version}"
ROOT_TAG_FORMAT = "v{version}"

DEFAULT_RULES = VersionRules(
    default_bump=BumpLevel.PATCH,
    commit_type_bumps={
        "feat": BumpLevel.MINOR,
        "fix": BumpLevel.PATCH,
        "perf": BumpLevel.PATCH,
        "refactor": BumpLevel.PATCH,
        "docs": BumpLevel.NONE,
        "test": BumpLevel.NONE,
        "chore": BumpLevel.NONE,
        "style": BumpLevel.NONE,
        "ci": BumpLevel.NONE,
        "build": BumpLevel.NONE,
    },
    dependency_bumps={
        BumpLevel.MAJOR: BumpLevel.MAJOR,
        BumpLevel.MINOR: BumpLevel.MINOR,
        BumpLevel.PATCH: BumpLevel.PATCH,
    },
)


class ConfigFile(BaseModel):
    """Schema of the user-facing configuration table."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    default_bump: BumpLevel | None = Field(default=None, alias="default-bump")
    commit_types: dict[str, BumpLevel] = Field(
        default_factory=dict, alias="commit-types"
    )
    dependency_bumps: dict[BumpLevel, BumpLevel] | Literal["match"] | None = Field(
        default=None, alias="dependency-bumps"
    )
    adapter: str | None = None
    tag_format: str = Field(default=DEFAULT_TAG_FORMAT, alias="tag-format")

    @field_validator("default_bump", mode="before")
    @classmethod
    def _parse_default(cls, value: Any) -> Any:
        return None if value is None else parse_level(value)

    @field_validator("commit_types", mode="before")
    @classmethod
    def _parse_commit_types(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(k): parse_level(v) for k, v in value.items()}
        return value

    @field_validator("dependency_bumps", mode="before")
    @classmethod
    def _parse_dependency_bumps(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {parse_level(k): parse_level(v) for k, v in value.items()}
        return value

    @field_validator("tag_format")
    @classmethod
    def _check_tag_format(cls, value: str) -> str:
        if "{version}" not in value:
            raise ValueError("tag-format must contain '{version}'")
        return value


class Settings(BaseModel):
    """Fully resolved settings for one run."""

    model_config = ConfigDict(frozen=True)

    rules: VersionRules = DEFAULT_RULES
    adapter: str | None = None
    tag_format: str = DEFAULT_TAG_FORMAT
    source: str | None = None


def build_rules(config: ConfigFile) -> VersionRules:
    """Merge a parsed configuration table over DEFAULT_RULES."""
    if config.dependency_bumps == "match":
        dependency_bumps = {
            level: level for level in BumpLevel if level is not BumpLevel.NONE
        }
    else:
        dependency_bumps = {
            **DEFAULT_RULES.dependency_bumps,
            **(config.dependency_bumps or {}),
        }
    return VersionRules(
        default_bump=(
            DEFAULT_RULES.default_bump
            if config.default_bump is None
            else config.default_bump
        ),
        commit_type_bumps={**DEFAULT_RULES.commit_type_bumps, **config.commit_types},
        dependency_bumps=dependency_bumps,
    )


def _read_table(path: Path) -> dict[str, Any] | None:
    try:
        doc = load_toml(path)
    except TOMLKitError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc
    if path.name == "pyproject.toml":
        return get_tool_table(doc, TOOL_NAME)
    return doc.unwrap()


def parse_config(table: dict[str, Any], source: str | None = None) -> Settings:
    """Validate a raw configuration table and turn it into Settings.

    Raises:
        ConfigError: If the table does not match the schema.
    """
    try:
        config = ConfigFile.model_validate(table)
    except ValidationError as exc:
        where = f" in {source}" if source else ""
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigError(f"Invalid configuration{where}: {problems}") from exc
    return Settings(
        rules=build_rules(config),
        adapter=config.adapter,
        tag_format=config.tag_format,
        source=source,
    )


def load_config(root: Path, path: Path | None = None) -> Settings:
    """Locate and load the configuration for the repository at root.

    Args:
        root: Repository root.
        path: Explicit configuration file. Relative paths are resolved
              against root.

    Returns:
        Settings; defaults when no configuration is found.

    Raises:
        ConfigError: If an explicit file is missing, or any file found is
                     malformed.
    """
    if path is not None:
        candidate = path if path.is_absolute() else root / path
        if not candidate.is_file():
            raise ConfigError(f"Configuration file not found: {candidate}")
        table = _read_table(candidate)
        return parse_config(table or {}, str(candidate))

    for candidate in (root / CONFIG_FILE, root / "pyproject.toml"):
        if not candidate.is_file():
            continue
        table = _read_table(candidate)
        if table is not None:
            return parse_config(table, str(candidate))

    return Settings()
