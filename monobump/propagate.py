"""Cascading bumps through the module dependency graph.

A single walk over a topological order is enough: every dependency's
effective level is final before any of its dependents is visited, and
merge() only ever raises a level. The result therefore does not depend on
how ties between unrelated modules are broken.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from .bumps import BumpLevel, merge
from .errors import UnknownModuleError
from .graph import ModuleGraph
from .models import VersionRules


def propagate(
    graph: ModuleGraph,
    direct_bumps: Mapping[str, BumpLevel],
    rules: VersionRules,
    order: Sequence[str] | None = None,
) -> dict[str, BumpLevel]:
    """Compute each module's effective bump level.

    Args:
        graph: The module graph.
        direct_bumps: Module id → level derived from its own commits.
                      Missing ids count as NONE.
        rules: Policy; only dependency_bumps is consulted. A dependency
               level without an entry does not cascade.
        order: A topological order of graph. Computed when omitted; any
               valid linearization gives the same result.

    Returns:
        Module id → effective level, for every module in the graph.

    Raises:
        DependencyCycleError: If the graph has a cycle.
        UnknownModuleError: If direct_bumps names a module not in graph.
    """
    for module_id in direct_bumps:
        if module_id not in graph:
            raise UnknownModuleError(module_id, referenced_by="direct bumps")

    if order is None:
        order = graph.topological_order()

    effective: dict[str, BumpLevel] = {}
    for module_id in order:
        level = direct_bumps.get(module_id, BumpLevel.NONE)
        for dep in graph.dependencies_of(module_id):
            if effective[dep] is BumpLevel.NONE:
                continue
            forced = rules.dependency_bumps.get(effective[dep], BumpLevel.NONE)
            level = merge(level, forced)
        effective[module_id] = level

    return {module_id: effective[module_id] for module_id in graph.ids}
