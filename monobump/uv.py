"""uv workspace adapter.

A uv workspace is a root pyproject.toml declaring
[tool.uv.workspace].members plus one pyproject.toml per member package.
Module ids mirror the member directories ("packages/core" → ":packages:core")
and internal dependencies are the PEP 508 requirements that name another
workspace member. Writing versions updates [project].version and pins
internal dependencies to the new exact versions.
"""

from __future__ import annotations

import glob
from collections.abc import Mapping
from pathlib import Path
from typing import Any, cast

import tomlkit
from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name
from tomlkit.exceptions import TOMLKitError

from .adapters import AdapterMetadata
from .errors import AdapterError
from .graph import ModuleGraph
from .models import MODULE_SEPARATOR, ROOT_MODULE_ID, Module
from .toml import (
    get_all_dependency_strings,
    get_project_name,
    get_project_version,
    get_workspace_member_globs,
    load_toml,
    save_toml,
)

UV_ID = "uv"
PYPROJECT = "pyproject.toml"


def dep_canonical_name(dep_str: str) -> str | None:
    """Canonical project name of a PEP 508 string, or None if unparsable.

    Examples:
        "requests>=2.0" → "requests"
        "My_Package[extra]~=1.0" → "my-package"
    """
    try:
        return canonicalize_name(Requirement(dep_str).name)
    except InvalidRequirement:
        return None


def pin_dep(dep_str: str, version: str) -> str:
    """Pin a PEP 508 dependency to an exact version, keeping extras and markers.

    Examples:
        pin_dep("pkg[b,a]>=1.0", "1.5.0") → "pkg[a,b]==1.5.0"
        pin_dep('pkg>=1; python_version<"3.12"', "2.0.0")
            → 'pkg==2.0.0; python_version < "3.12"'
    """
    req = Requirement(dep_str)
    extras = f"[{','.join(sorted(req.extras))}]" if req.extras else ""
    marker = f"; {req.marker}" if req.marker else ""
    return f"{req.name}{extras}=={version}{marker}"


def module_id_for_path(rel_path: str) -> str:
    """"." → ":", "packages/core" → ":packages:core"."""
    if rel_path in ("", "."):
        return ROOT_MODULE_ID
    return ROOT_MODULE_ID + rel_path.strip("/").replace("/", MODULE_SEPARATOR)


def _pin_dep_list(deps: list, versions: Mapping[str, str]) -> None:
    for i, dep_str in enumerate(deps):
        if not isinstance(dep_str, str):
            continue
        name = dep_canonical_name(str(dep_str))
        if name in versions:
            deps[i] = pin_dep(str(dep_str), versions[name])


def rewrite_pyproject(
    pyproject_path: Path,
    new_version: str,
    internal_dep_versions: Mapping[str, str],
) -> None:
    """Set [project].version and pin internal dependencies everywhere.

    Internal deps are pinned in [project].dependencies,
    [project].optional-dependencies.* and [dependency-groups].*.
    Formatting and comments are preserved.
    """
    doc = load_toml(pyproject_path)
    if "project" not in doc:
        raise AdapterError(f"No [project] table in {pyproject_path}")
    # Cast needed because tomlkit types are complex unions
    project = cast(dict[str, Any], doc["project"])
    project["version"] = new_version

    if internal_dep_versions:
        groups: list[Any] = [project.get("dependencies")]
        groups.extend((project.get("optional-dependencies") or {}).values())
        groups.extend((doc.get("dependency-groups") or {}).values())
        for group in groups:
            if isinstance(group, list):
                _pin_dep_list(group, internal_dep_versions)

    save_toml(pyproject_path, doc)


class UvWorkspaceAdapter:
    """Python monorepos managed as a uv workspace."""

    metadata = AdapterMetadata(id=UV_ID, supports_snapshots=False)

    def accept(self, root: Path) -> bool:
        pyproject = root / PYPROJECT
        if not pyproject.is_file():
            return False
        return bool(get_workspace_member_globs(load_toml(pyproject)))

    def member_dirs(self, root: Path) -> list[Path]:
        """Expand the workspace member globs into package directories."""
        root_doc = self._load(root / PYPROJECT)
        dirs: list[Path] = []
        # Overlapping globs ("packages/*", "packages/core") list a dir once
        seen = {root.resolve()}
        for pattern in get_workspace_member_globs(root_doc):
            for match in sorted(glob.glob(str(root / pattern))):
                p = Path(match)
                if (p / PYPROJECT).is_file() and p.resolve() not in seen:
                    seen.add(p.resolve())
                    dirs.append(p)
        return dirs

    def detect(self, root: Path) -> ModuleGraph:
        """Scan the workspace and build the module graph.

        The root pyproject.toml is always the root module, with version
        0.0.0 (undeclared) when it has no [project] table of its own.
        """
        members = self.member_dirs(root)
        if not members:
            raise AdapterError(
                f"No packages found matching workspace members in {root}"
            )

        # First pass: identity and raw dependency strings
        entries: list[tuple[str, str, str | None, list[str], str]] = []
        root_doc = self._load(root / PYPROJECT)
        entries.append(
            (
                ROOT_MODULE_ID,
                ".",
                get_project_version(root_doc),
                get_all_dependency_strings(root_doc),
                get_project_name(root_doc, "") if "project" in root_doc else "",
            )
        )
        for d in members:
            doc = self._load(d / PYPROJECT)
            rel = d.relative_to(root).as_posix()
            entries.append(
                (
                    module_id_for_path(rel),
                    rel,
                    get_project_version(doc),
                    get_all_dependency_strings(doc),
                    get_project_name(doc, d.name),
                )
            )

        # Second pass: keep only dependencies on workspace members
        by_name = {name: mid for mid, _, _, _, name in entries if name}
        modules: list[Module] = []
        for module_id, path, version, raw_deps, _ in entries:
            deps: dict[str, None] = {}
            for dep_str in raw_deps:
                dep_id = by_name.get(dep_canonical_name(dep_str) or "")
                if dep_id is not None and dep_id != module_id:
                    deps[dep_id] = None
            modules.append(
                Module(
                    id=module_id,
                    path=path,
                    version=version or "0.0.0",
                    deps=tuple(deps),
                    supports_snapshots=self.metadata.supports_snapshots,
                    declared_version=version is not None,
                )
            )
        return ModuleGraph(modules)

    def write_versions(
        self, root: Path, graph: ModuleGraph, versions: Mapping[str, str]
    ) -> list[Path]:
        """Rewrite each bumped package's pyproject.toml.

        Internal dependencies are pinned to the dependency's new version
        when it is being written, otherwise to its current version.
        """
        names = {m.id: self._project_name(root, m) for m in graph}
        all_versions = {
            names[m.id]: versions.get(m.id, m.version) for m in graph if names[m.id]
        }
        written: list[Path] = []
        for module_id, new_version in versions.items():
            module = graph.get(module_id)
            pyproject = root / module.path / PYPROJECT
            internal = {
                names[dep]: all_versions[names[dep]]
                for dep in module.deps
                if names[dep]
            }
            rewrite_pyproject(pyproject, new_version, internal)
            written.append(pyproject)
        return written

    def _project_name(self, root: Path, module: Module) -> str:
        doc = self._load(root / module.path / PYPROJECT)
        if "project" not in doc:
            return ""
        return get_project_name(doc, Path(module.path).name)

    @staticmethod
    def _load(path: Path) -> tomlkit.TOMLDocument:
        try:
            return load_toml(path)
        except (OSError, TOMLKitError) as exc:
            raise AdapterError(f"Could not read {path}: {exc}") from exc
