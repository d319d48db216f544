"""Data models for monobump.

These Pydantic models are the in-memory contracts between the build-system
adapters, the git collaborator and the resolution engine. Inputs to a
resolution run and its results are frozen.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .bumps import BumpLevel, parse_level

ROOT_MODULE_ID = ":"
MODULE_SEPARATOR = ":"


class Module(BaseModel):
    """A versionable unit discovered by a build-system adapter.

    Attributes:
        id: Colon-delimited path. ":" is the repository root, ":a:b" is
            module b nested under a.
        path: Directory relative to the repository root ("." for root).
        version: Current semantic version string.
        deps: Ids of modules this module declares a dependency on.
        supports_snapshots: Whether the owning adapter uses the -SNAPSHOT
            convention.
        declared_version: False when the build file does not declare a
            version of its own. Such modules are resolved like any other
            but never written back.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    path: str = "."
    version: str = "0.0.0"
    deps: tuple[str, ...] = ()
    supports_snapshots: bool = False
    declared_version: bool = True

    @property
    def name(self) -> str:
        """Last segment of the id; empty for the root module."""
        return self.id.rsplit(MODULE_SEPARATOR, 1)[-1]

    @property
    def is_root(self) -> bool:
        return self.id == ROOT_MODULE_ID


class CommitInfo(BaseModel):
    """A single commit, classified by conventional-commit type.

    Attributes:
        sha: Commit hash.
        type: Conventional-commit type ("feat", "fix", ...). Empty when the
              subject does not follow the convention.
        subject: Description part of the header.
        scope: Optional conventional-commit scope.
        body: Message body, footers included.
        breaking: Explicit breaking-change marker ("!" or BREAKING CHANGE).
        modules: Ids of the modules whose files the commit touches.
    """

    model_config = ConfigDict(frozen=True)

    sha: str = ""
    type: str = ""
    subject: str = ""
    scope: str | None = None
    body: str = ""
    breaking: bool = False
    modules: tuple[str, ...] = ()

    @property
    def header(self) -> str:
        scope = f"({self.scope})" if self.scope else ""
        bang = "!" if self.breaking else ""
        prefix = f"{self.type}{scope}{bang}: " if self.type else ""
        return f"{prefix}{self.subject}"


class VersionRules(BaseModel):
    """Bump policy for a resolution run.

    Attributes:
        default_bump: Level for commit types missing from commit_type_bumps.
        commit_type_bumps: Commit type -> level. NONE means "ignore".
        dependency_bumps: A dependency's effective level -> level forced on
            each of its dependents. Levels without an entry do not cascade.
    """

    model_config = ConfigDict(frozen=True)

    default_bump: BumpLevel = BumpLevel.PATCH
    commit_type_bumps: dict[str, BumpLevel] = Field(default_factory=dict)
    dependency_bumps: dict[BumpLevel, BumpLevel] = Field(default_factory=dict)

    @field_validator("default_bump", mode="before")
    @classmethod
    def _parse_default(cls, value: Any) -> BumpLevel:
        return parse_level(value)

    @field_validator("commit_type_bumps", mode="before")
    @classmethod
    def _parse_commit_types(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        return {str(k): parse_level(v) for k, v in value.items()}

    @field_validator("dependency_bumps", mode="before")
    @classmethod
    def _parse_dependency_bumps(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        return {parse_level(k): parse_level(v) for k, v in value.items()}


class ModuleChangeResult(BaseModel):
    """Outcome of a resolution run for one module.

    Attributes:
        module_id: Id of the module.
        previous_version: Version before resolution.
        new_version: Resolved version (equal to previous_version when
                     nothing applies).
        bump_level: Effective level actually applied.
        commits: Commits that contributed to the module's direct bump.
                 Cascaded bumps are not attributed to commits.
    """

    model_config = ConfigDict(frozen=True)

    module_id: str
    previous_version: str
    new_version: str
    bump_level: BumpLevel
    commits: tuple[CommitInfo, ...] = ()

    @property
    def changed(self) -> bool:
        return self.new_version != self.previous_version
