"""Gradle adapter.

Module discovery runs a "structure" task, contributed by the init script
shipped in templates/, that prints the project hierarchy as JSON::

    {
      ":":     {"name": "app", "path": ".", "type": "root",
                "version": "1.0.0", "declaredVersion": true,
                "affectedModules": [":core"]},
      ":base": {"name": "base", "path": "base", "type": "module",
                "version": "1.0.0", "declaredVersion": true,
                "affectedModules": [":", ":core"]}
    }

affectedModules lists the modules that depend on the entry, i.e. the
direction bumps cascade in. Versions are stored in the root
gradle.properties, one property per module.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .adapters import AdapterMetadata
from .errors import AdapterError, UnknownModuleError
from .graph import ModuleGraph
from .models import MODULE_SEPARATOR, ROOT_MODULE_ID, Module
from .shell import run

GRADLE_ID = "gradle"
GRADLE_PROPERTIES_FILE = "gradle.properties"
GRADLE_FILES = (
    GRADLE_PROPERTIES_FILE,
    "build.gradle",
    "build.gradle.kts",
    "settings.gradle",
    "settings.gradle.kts",
)
GRADLE_WRAPPER = "gradlew"
STRUCTURE_TASK = "structure"
PROJECT_INFORMATION_FILE = Path(".monobump") / "project-information.json"
INIT_SCRIPT = Path(__file__).parent / "templates" / "structure.init.gradle.kts"

VERSION_PROPERTY = "version"
_VERSION_SUFFIX = "." + VERSION_PROPERTY


def module_id_to_property_name(module_id: str) -> str:
    """Derive the gradle.properties key holding a module's version.

    Only the last path segment is kept, so the mapping is lossy for
    nested modules sharing a name (":a:core" and ":b:core" both map to
    "core.version"). write_versions() rejects such collisions.

    Examples:
        ":" → "version"
        ":app" → "app.version"
        ":lib:core" → "core.version"
    """
    if module_id == ROOT_MODULE_ID:
        return VERSION_PROPERTY
    name = module_id.rsplit(MODULE_SEPARATOR, 1)[-1]
    if not name:
        raise AdapterError(f"Invalid module id {module_id!r}")
    return f"{name}{_VERSION_SUFFIX}"


def property_name_to_module_id(property_name: str) -> str:
    """Best-effort inverse of module_id_to_property_name().

    "x.y.version" → ":x:y". The original nesting of a module whose
    property was derived from its last segment cannot be recovered.
    """
    if property_name == VERSION_PROPERTY:
        return ROOT_MODULE_ID
    stem = property_name.removesuffix(_VERSION_SUFFIX)
    return ROOT_MODULE_ID + stem.replace(".", MODULE_SEPARATOR)


def version_properties(versions: Mapping[str, str]) -> dict[str, str]:
    """Map module id → version onto property name → version.

    Raises:
        AdapterError: If two modules map to the same property name.
    """
    properties: dict[str, str] = {}
    owners: dict[str, str] = {}
    for module_id, version in versions.items():
        key = module_id_to_property_name(module_id)
        if key in owners:
            raise AdapterError(
                f"Modules {owners[key]} and {module_id} both map to "
                f"property {key!r} in {GRADLE_PROPERTIES_FILE}"
            )
        owners[key] = module_id
        properties[key] = version
    return properties


def upsert_properties(path: Path, properties: Mapping[str, str]) -> None:
    """Update or append key=value lines in a Java properties file.

    Existing keys keep their position; new keys are appended. The file
    is created if it does not exist.
    """
    if not properties:
        return

    if not path.exists():
        path.write_text("".join(f"{k}={v}\n" for k, v in properties.items()))
        return

    content = path.read_text()
    for key, value in properties.items():
        pattern = re.compile(rf"^{re.escape(key)}\s*[=:].*$", re.MULTILINE)
        if pattern.search(content):
            content = pattern.sub(lambda _m: f"{key}={value}", content, count=1)
        else:
            if content and not content.endswith("\n"):
                content += "\n"
            content += f"{key}={value}\n"
    path.write_text(content)


def parse_project_information(
    raw: Mapping[str, Any], supports_snapshots: bool = True
) -> ModuleGraph:
    """Build a ModuleGraph from the JSON printed by the structure task.

    Raises:
        AdapterError: If the structure does not describe exactly one root.
    """
    roots = [mid for mid, info in raw.items() if info.get("type") == "root"]
    if len(roots) != 1:
        raise AdapterError(
            f"Expected exactly one root project in Gradle structure, found {len(roots)}"
        )

    deps: dict[str, list[str]] = {mid: [] for mid in raw}
    for module_id, info in raw.items():
        for dependent in info.get("affectedModules", []):
            if dependent not in deps:
                raise UnknownModuleError(dependent, referenced_by=module_id)
            deps[dependent].append(module_id)

    modules: list[Module] = []
    for module_id, info in raw.items():
        version = info.get("version")
        declared = bool(info.get("declaredVersion", version is not None))
        if version in (None, "unspecified"):
            version, declared = "0.0.0", False
        modules.append(
            Module(
                id=module_id,
                path=info.get("path", "."),
                version=str(version),
                deps=tuple(sorted(set(deps[module_id]))),
                supports_snapshots=supports_snapshots,
                declared_version=declared,
            )
        )
    return ModuleGraph(modules)


class GradleAdapter:
    """Gradle multi-project builds with versions in gradle.properties."""

    metadata = AdapterMetadata(id=GRADLE_ID, supports_snapshots=True)

    def __init__(
        self,
        init_script: Path | None = INIT_SCRIPT,
        information_file: Path = PROJECT_INFORMATION_FILE,
    ) -> None:
        self.init_script = init_script
        self.information_file = information_file

    def accept(self, root: Path) -> bool:
        if not root.is_dir():
            return False
        return any((root / name).exists() for name in GRADLE_FILES)

    def detect(self, root: Path) -> ModuleGraph:
        return parse_project_information(
            self.load_project_information(root),
            supports_snapshots=self.metadata.supports_snapshots,
        )

    def load_project_information(self, root: Path) -> dict[str, Any]:
        """Read the cached structure JSON, or run the structure task."""
        cached = root / self.information_file
        if cached.is_file():
            text = cached.read_text()
            source = str(cached)
        else:
            text = self._run_structure_task(root)
            source = f"{GRADLE_WRAPPER} {STRUCTURE_TASK}"
        try:
            data = json.loads(text.strip() or "{}")
        except json.JSONDecodeError as exc:
            raise AdapterError(
                f"Invalid project structure JSON from {source}: {exc}"
            ) from exc
        if not isinstance(data, dict) or not data:
            raise AdapterError(f"No Gradle projects reported by {source}")
        return data

    def _run_structure_task(self, root: Path) -> str:
        gradlew = root / GRADLE_WRAPPER
        if not gradlew.exists():
            raise AdapterError(f"Gradle wrapper not found at {gradlew}")
        args = [str(gradlew), "--quiet", "--console=plain"]
        if self.init_script is not None:
            if not self.init_script.is_file():
                raise AdapterError(
                    f"Gradle init script not found at {self.init_script}"
                )
            args += ["--init-script", str(self.init_script)]
        args.append(STRUCTURE_TASK)
        result = run(*args, cwd=root, capture=True)
        if result.returncode != 0:
            raise AdapterError(
                f"Gradle command failed with exit code {result.returncode}: "
                f"{result.stderr.strip()}"
            )
        return result.stdout

    def write_versions(
        self, root: Path, graph: ModuleGraph, versions: Mapping[str, str]
    ) -> list[Path]:
        for module_id in versions:
            graph.get(module_id)
        properties = version_properties(versions)
        if not properties:
            return []
        path = root / GRADLE_PROPERTIES_FILE
        upsert_properties(path, properties)
        return [path]
