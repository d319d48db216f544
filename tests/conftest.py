"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import tomlkit
from helpers import GRADLE_STRUCTURE

from monobump.bumps import BumpLevel
from monobump.models import VersionRules


@pytest.fixture
def rules() -> VersionRules:
    """Policy matching the shipped defaults."""
    return VersionRules(
        default_bump="patch",
        commit_type_bumps={
            "feat": "minor",
            "fix": "patch",
            "perf": "patch",
            "chore": "ignore",
            "docs": "ignore",
        },
        dependency_bumps={"major": "major", "minor": "minor", "patch": "patch"},
    )


@pytest.fixture
def dampened_rules() -> VersionRules:
    """Policy where cascades are one level weaker than the dependency bump."""
    return VersionRules(
        default_bump=BumpLevel.PATCH,
        commit_type_bumps={"feat": BumpLevel.MINOR, "fix": BumpLevel.PATCH},
        dependency_bumps={
            BumpLevel.MAJOR: BumpLevel.MINOR,
            BumpLevel.MINOR: BumpLevel.PATCH,
        },
    )


@pytest.fixture
def tmp_pyproject(tmp_path: Path) -> Path:
    """Create a temporary pyproject.toml file."""
    content = """\
[project]
name = "test-package"
version = "1.0.0"
dependencies = [
    "requests>=2.0",
    "internal-dep>=1.0",
]

[project.optional-dependencies]
dev = ["pytest>=8.0", "another-internal>=0.5"]

[dependency-groups]
test = ["pytest>=8.0", "group-internal>=0.1", {include-group = "lint"}]
lint = ["ruff"]
"""
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text(content)
    return pyproject


@pytest.fixture
def sample_toml_doc() -> tomlkit.TOMLDocument:
    """Create a sample TOML document."""
    content = """\
[project]
name = "My_Package"
version = "2.0.0"
dependencies = ["click>=8.0", "pydantic>=2.0"]

[project.optional-dependencies]
dev = ["pytest>=8.0"]
docs = ["sphinx>=7.0"]

[dependency-groups]
test = ["hypothesis>=6.0"]

[tool.uv.workspace]
members = ["packages/*", "libs/*"]

[tool.monobump]
default-bump = "minor"
"""
    return tomlkit.parse(content)


def _write_package(
    root: Path, rel: str, name: str, version: str, deps: list[str]
) -> None:
    pkg = root / rel
    pkg.mkdir(parents=True)
    deps_toml = ", ".join(f'"{d}"' for d in deps)
    (pkg / "pyproject.toml").write_text(
        f'[project]\nname = "{name}"\nversion = "{version}"\n'
        f"dependencies = [{deps_toml}]\n"
    )


@pytest.fixture
def uv_workspace(tmp_path: Path) -> Path:
    """uv workspace: app → core → utils, plus an external dependency."""
    (tmp_path / "pyproject.toml").write_text(
        '[project]\nname = "workspace"\nversion = "0.1.0"\n\n'
        '[tool.uv.workspace]\nmembers = ["packages/*"]\n'
    )
    _write_package(tmp_path, "packages/utils", "pkg-utils", "1.0.0", ["requests>=2"])
    _write_package(tmp_path, "packages/core", "pkg_core", "1.2.0", ["pkg-utils>=1.0"])
    _write_package(
        tmp_path, "packages/app", "pkg-app", "2.0.0", ["PKG-Core[fast]>=1.0", "click"]
    )
    return tmp_path


@pytest.fixture
def gradle_project(tmp_path: Path) -> Path:
    """Gradle build with a cached structure file."""
    (tmp_path / "settings.gradle.kts").write_text('include("core", "app")\n')
    (tmp_path / "gradle.properties").write_text(
        "# versions\nversion=1.0.0\ncore.version = 1.2.0\norg.gradle.jvmargs=-Xmx1g\n"
    )
    info = tmp_path / ".monobump" / "project-information.json"
    info.parent.mkdir()
    info.write_text(json.dumps(GRADLE_STRUCTURE))
    return tmp_path
