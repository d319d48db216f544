"""Version resolution: commits + dependency graph → new versions.

resolve() is the only entry point the rest of monobump uses. It is pure:
it validates every input up front, computes everything in memory and
either returns a complete result list or raises.
"""

from __future__ import annotations

import datetime
from collections.abc import Mapping, Sequence

from .bumps import BumpLevel
from .classify import contributing_commits, direct_bump_for_module
from .errors import UnknownModuleError
from .graph import ModuleGraph
from .models import CommitInfo, ModuleChangeResult, VersionRules
from .propagate import propagate
from .versions import (
    add_build_metadata,
    apply_snapshot_suffix,
    next_prerelease_version,
    next_version,
    parse_version,
    timestamp_prerelease_id,
)


def _validate(
    graph: ModuleGraph, commits_by_module: Mapping[str, Sequence[CommitInfo]]
) -> None:
    graph.root()
    for module_id, commits in commits_by_module.items():
        if module_id not in graph:
            raise UnknownModuleError(module_id, referenced_by="commit association")
        for commit in commits:
            for associated in commit.modules:
                if associated not in graph:
                    raise UnknownModuleError(
                        associated, referenced_by=f"commit {commit.sha or '?'}"
                    )
    for module in graph:
        parse_version(module.version, module.id)


def resolve(
    graph: ModuleGraph,
    commits_by_module: Mapping[str, Sequence[CommitInfo]],
    rules: VersionRules,
    *,
    snapshot: bool = False,
    prerelease_id: str | None = None,
    bump_unchanged: bool = False,
    build_metadata: str | None = None,
    timestamp: datetime.datetime | None = None,
) -> list[ModuleChangeResult]:
    """Compute the new version of every module in graph.

    Args:
        graph: Modules and their dependency edges.
        commits_by_module: Module id → commits touching it. Modules
                           without an entry have no direct bump.
        rules: Bump policy.
        snapshot: Append -SNAPSHOT to every module whose adapter supports
                  the convention, bumped or not.
        prerelease_id: When set, bumped modules get a "<id>.0" pre-release.
        bump_unchanged: With prerelease_id, also advance the pre-release
                        counter of modules that have no bump ("rc.1" →
                        "rc.2"). Otherwise unbumped modules keep their
                        version.
        build_metadata: When set, appended as "+<metadata>" to bumped
                        modules.
        timestamp: With prerelease_id, stamp the identifier with this
                   instant ("alpha" → "alpha.20251021143022").

    Returns:
        One ModuleChangeResult per module, in graph declaration order.

    Raises:
        DependencyCycleError, MissingRootModuleError, UnknownModuleError,
        InvalidVersionError: Nothing is returned in these cases.
    """
    _validate(graph, commits_by_module)

    direct: dict[str, BumpLevel] = {}
    for module_id in graph.ids:
        commits = commits_by_module.get(module_id, ())
        direct[module_id] = direct_bump_for_module(module_id, commits, rules)

    effective = propagate(graph, direct, rules)
    if prerelease_id and timestamp:
        prerelease_id = timestamp_prerelease_id(prerelease_id, timestamp)

    results: list[ModuleChangeResult] = []
    for module in graph:
        level = effective[module.id]
        if prerelease_id and (bump_unchanged or level is not BumpLevel.NONE):
            new = next_prerelease_version(module.version, level, prerelease_id)
        else:
            new = next_version(module.version, level)
        if snapshot and module.supports_snapshots:
            new = apply_snapshot_suffix(new)
        if build_metadata and level is not BumpLevel.NONE:
            new = add_build_metadata(new, build_metadata)

        results.append(
            ModuleChangeResult(
                module_id=module.id,
                previous_version=module.version,
                new_version=new,
                bump_level=level,
                commits=tuple(
                    contributing_commits(
                        module.id, commits_by_module.get(module.id, ()), rules
                    )
                ),
            )
        )

    return results
