"""Builders shared by the test modules."""

from __future__ import annotations

from monobump.graph import ModuleGraph
from monobump.models import ROOT_MODULE_ID, CommitInfo, Module


def make_graph(*modules: tuple[str, str, list[str]] | Module) -> ModuleGraph:
    """Build a graph from (id, version, deps) tuples, adding a root if absent."""
    built = [
        m if isinstance(m, Module) else Module(id=m[0], version=m[1], deps=tuple(m[2]))
        for m in modules
    ]
    if not any(m.id == ROOT_MODULE_ID for m in built):
        built.insert(0, Module(id=ROOT_MODULE_ID, version="0.0.0"))
    return ModuleGraph(built)


def commit(
    type_: str, module: str = "", breaking: bool = False, sha: str = ""
) -> CommitInfo:
    return CommitInfo(
        sha=sha or f"{type_}-{module}",
        type=type_,
        subject=f"{type_} change",
        breaking=breaking,
        modules=(module,) if module else (),
    )


# Output of the Gradle structure task for a root, :core and :app → :core
GRADLE_STRUCTURE = {
    ":": {
        "name": "demo",
        "path": ".",
        "type": "root",
        "version": "1.0.0",
        "declaredVersion": True,
        "affectedModules": [],
    },
    ":core": {
        "name": "core",
        "path": "core",
        "type": "module",
        "version": "1.2.0",
        "declaredVersion": True,
        "affectedModules": [":app"],
    },
    ":app": {
        "name": "app",
        "path": "app",
        "type": "module",
        "version": "unspecified",
        "declaredVersion": False,
        "affectedModules": [],
    },
}
