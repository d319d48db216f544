"""Build-system adapters.

An adapter knows how to recognise a repository layout, discover its
modules as a ModuleGraph, and persist resolved versions back into the
build files. Adapters are selected by probing the repository root with
each registered adapter in turn; the first one that accepts wins.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from .errors import AdapterError
from .graph import ModuleGraph
from .shell import warn


class AdapterMetadata(BaseModel):
    """Identity and capabilities of an adapter.

    Attributes:
        id: Short identifier used on the command line and in config.
        supports_snapshots: Whether modules use the -SNAPSHOT convention.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    supports_snapshots: bool = False


@runtime_checkable
class Adapter(Protocol):
    """Protocol implemented by every build-system adapter."""

    metadata: AdapterMetadata

    def accept(self, root: Path) -> bool:
        """Return True if the repository at root uses this build system."""
        ...

    def detect(self, root: Path) -> ModuleGraph:
        """Discover modules and their dependencies."""
        ...

    def write_versions(
        self, root: Path, graph: ModuleGraph, versions: Mapping[str, str]
    ) -> list[Path]:
        """Persist module id → version and return the files written."""
        ...


class AdapterRegistry:
    """Chain of adapters tried in registration order."""

    def __init__(self, adapters: Iterable[Adapter]) -> None:
        self._adapters: dict[str, Adapter] = {}
        for adapter in adapters:
            self._adapters[adapter.metadata.id] = adapter

    def supported(self) -> list[str]:
        return list(self._adapters)

    def get(self, adapter_id: str) -> Adapter:
        try:
            return self._adapters[adapter_id]
        except KeyError:
            raise AdapterError(
                f"Unknown adapter {adapter_id!r} "
                f"(supported: {', '.join(self.supported())})"
            ) from None

    def identify(self, root: Path) -> Adapter | None:
        """Return the first adapter that accepts root, or None.

        An adapter whose accept() raises is treated as not matching, so one
        broken adapter cannot block detection by the others.
        """
        for adapter_id, adapter in self._adapters.items():
            try:
                if adapter.accept(root):
                    return adapter
            except Exception as exc:
                warn(f"adapter {adapter_id} failed to inspect {root}: {exc}")
        return None

    def resolve(self, root: Path, forced_id: str | None = None) -> Adapter:
        """Return the forced adapter, or identify one from the layout.

        Raises:
            AdapterError: If forced_id is unknown or nothing matches.
        """
        if forced_id:
            return self.get(forced_id)
        adapter = self.identify(root)
        if adapter is None:
            raise AdapterError(
                f"No supported build system found in {root} "
                f"(supported: {', '.join(self.supported())})"
            )
        return adapter


def default_registry() -> AdapterRegistry:
    """Registry with every adapter shipped with monobump."""
    from .gradle import GradleAdapter
    from .uv import UvWorkspaceAdapter

    return AdapterRegistry([GradleAdapter(), UvWorkspaceAdapter()])
