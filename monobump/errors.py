"""Exception hierarchy for monobump.

Resolution errors are fatal: they abort a run before any result is
produced. The CLI turns every MonobumpError into a one-line message.
"""

from __future__ import annotations

from collections.abc import Iterable


class MonobumpError(RuntimeError):
    """Base class for all errors raised by monobump."""


class ResolutionError(MonobumpError):
    """The inputs handed to the resolution engine are unusable."""


class DependencyCycleError(ResolutionError):
    """The module dependency relation is not acyclic.

    Attributes:
        cycle: Closed path through the cycle, e.g. [":a", ":b", ":a"].
        modules: Every module that could not be ordered.
    """

    def __init__(self, cycle: list[str], modules: Iterable[str] = ()) -> None:
        self.cycle = list(cycle)
        self.modules = sorted(set(modules) or set(cycle))
        path = " -> ".join(self.cycle)
        super().__init__(
            f"Dependency cycle detected: {path} "
            f"(unresolved modules: {', '.join(self.modules)})"
        )


class UnknownModuleError(ResolutionError):
    """A module id was referenced but is not part of the graph."""

    def __init__(self, module_id: str, referenced_by: str | None = None) -> None:
        self.module_id = module_id
        self.referenced_by = referenced_by
        msg = f"Unknown module {module_id!r}"
        if referenced_by:
            msg += f" (referenced by {referenced_by})"
        super().__init__(msg)


class DuplicateModuleError(ResolutionError):
    def __init__(self, module_id: str) -> None:
        self.module_id = module_id
        super().__init__(f"Duplicate module id {module_id!r}")


class MissingRootModuleError(ResolutionError):
    def __init__(self) -> None:
        super().__init__(
            "No root module found. Every module graph must contain "
            "exactly one module with id ':'."
        )


class InvalidVersionError(ResolutionError):
    """A version string is not MAJOR.MINOR.PATCH[-qualifier]."""

    def __init__(self, version: str, module_id: str | None = None) -> None:
        self.version = version
        self.module_id = module_id
        msg = f"Invalid semantic version {version!r}"
        if module_id is not None:
            msg += f" for module {module_id}"
        super().__init__(msg)


class ConfigError(MonobumpError):
    """Configuration file could not be read or failed validation."""


class AdapterError(MonobumpError):
    """A build-system adapter could not detect modules or write versions."""


class GitError(MonobumpError):
    """A required git command failed."""
