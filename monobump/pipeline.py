"""Release pipeline: config → adapter → modules → commits → resolve → write.

This module orchestrates a monobump run:
1. Load configuration and pick the build-system adapter
2. Discover modules and their dependencies
3. Collect each module's commits since its last tag
4. Resolve new versions (pure, see resolve.py)
5. Write versions and changelogs for the modules that changed
6. Optionally commit, tag each released module and push

Planning (steps 1-4) never touches the working tree, which is what the
`plan` command and dry runs rely on.
"""

from __future__ import annotations

import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from .adapters import Adapter, AdapterRegistry, default_registry
from .changelog import write_changelogs
from .config import Settings, load_config
from .errors import GitError
from .git import (
    collect_commits,
    commit_files,
    create_tag,
    is_working_tree_clean,
    push,
    release_tags,
    short_sha,
)
from .graph import ModuleGraph
from .models import CommitInfo, ModuleChangeResult
from .resolve import resolve
from .shell import step, warn
from .versions import is_release_version

RELEASE_COMMIT_TITLE = "chore(release): publish"


class ReleasePlan(BaseModel):
    """Everything computed before any file is written.

    Attributes:
        adapter_id: Id of the adapter that detected the modules.
        settings: Resolved configuration.
        graph: Discovered modules.
        results: One result per module, in declaration order.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    adapter_id: str
    settings: Settings
    graph: ModuleGraph
    results: list[ModuleChangeResult]

    @property
    def changed(self) -> list[ModuleChangeResult]:
        return [r for r in self.results if r.changed]

    @property
    def writable(self) -> dict[str, str]:
        """New versions of the changed modules that declare a version."""
        return {
            r.module_id: r.new_version
            for r in self.changed
            if self.graph.get(r.module_id).declared_version
        }


def select_adapter(
    root: Path, forced_id: str | None, registry: AdapterRegistry
) -> Adapter:
    """Return the forced adapter or the first one that recognises root."""
    step("Detecting build system")
    adapter = registry.resolve(root, forced_id)
    print(f"  {adapter.metadata.id}")
    return adapter


def discover_modules(adapter: Adapter, root: Path) -> ModuleGraph:
    """Let the adapter scan root and print what it found."""
    step("Discovering modules")
    graph = adapter.detect(root)

    # Dependencies first, so the listing reads bottom-up
    for module_id in graph.topological_order():
        module = graph.get(module_id)
        deps = f" → [{', '.join(sorted(module.deps))}]" if module.deps else ""
        declared = "" if module.declared_version else " (undeclared)"
        print(f"  {module.id} {module.version}{declared} ({module.path}){deps}")
    return graph


def gather_commits(
    graph: ModuleGraph, tag_format: str, root: Path
) -> dict[str, list[CommitInfo]]:
    """Collect unreleased commits for every module."""
    step("Collecting commits since last release")
    commits_by_module = collect_commits(graph, tag_format, cwd=root)
    for module_id, commits in commits_by_module.items():
        if commits:
            print(f"  {module_id}: {len(commits)} commit(s)")
    if not any(commits_by_module.values()):
        print("  <none>")
    return commits_by_module


def print_plan(results: list[ModuleChangeResult]) -> None:
    for r in results:
        if r.changed:
            print(
                f"  {r.module_id}: {r.previous_version} → {r.new_version} "
                f"({r.bump_level!s})"
            )
        else:
            print(f"  {r.module_id}: {r.previous_version} (unchanged)")


def plan_release(
    root: Path,
    *,
    adapter: str | None = None,
    config_path: Path | None = None,
    snapshot: bool = False,
    prerelease_id: str | None = None,
    bump_unchanged: bool = False,
    build_metadata: bool = False,
    timestamp: bool = False,
    registry: AdapterRegistry | None = None,
) -> ReleasePlan:
    """Compute the release without writing anything.

    Args:
        root: Repository root.
        adapter: Adapter id overriding detection and configuration.
        config_path: Explicit configuration file.
        snapshot: Mark versions of snapshot-capable modules as -SNAPSHOT.
        prerelease_id: Produce "<id>.N" pre-releases for bumped modules.
        bump_unchanged: Also advance the pre-release counter of modules
                        without a bump.
        build_metadata: Append the short HEAD sha to bumped versions.
        timestamp: Stamp the pre-release id with the current UTC time
                   ("alpha.20251021143022"). Needs prerelease_id.
        registry: Adapters to choose from. Defaults to all built-in ones.
    """
    step("Loading configuration")
    settings = load_config(root, config_path)
    print(f"  {settings.source or '<defaults>'}")

    chosen = select_adapter(
        root, adapter or settings.adapter, registry or default_registry()
    )
    graph = discover_modules(chosen, root)
    commits_by_module = gather_commits(graph, settings.tag_format, root)

    step("Resolving versions")
    if timestamp and not prerelease_id:
        warn("timestamped versions need a pre-release id; ignoring")
    results = resolve(
        graph,
        commits_by_module,
        settings.rules,
        snapshot=snapshot,
        prerelease_id=prerelease_id,
        bump_unchanged=bump_unchanged,
        build_metadata=short_sha(cwd=root) if build_metadata else None,
        timestamp=datetime.datetime.now(datetime.timezone.utc) if timestamp else None,
    )
    print_plan(results)

    return ReleasePlan(
        adapter_id=chosen.metadata.id,
        settings=settings,
        graph=graph,
        results=results,
    )


def write_release(adapter: Adapter, root: Path, plan: ReleasePlan) -> list[Path]:
    """Persist versions of the changed modules that declare one."""
    step("Writing versions")
    versions = plan.writable
    skipped = [r.module_id for r in plan.changed if r.module_id not in versions]
    written = adapter.write_versions(root, plan.graph, versions)
    for path in written:
        print(f"  {path.relative_to(root) if path.is_relative_to(root) else path}")
    for module_id in skipped:
        print(f"  {module_id}: no declared version, not written")
    return written


def release_message(plan: ReleasePlan) -> str:
    summary = "\n".join(
        f"- {r.module_id}: {r.previous_version} → {r.new_version}"
        for r in plan.changed
    )
    return f"{RELEASE_COMMIT_TITLE}\n\n{summary}"


def commit_and_tag(
    root: Path, plan: ReleasePlan, files: list[Path], tags: dict[str, str]
) -> list[str]:
    """Commit written files and create the given module tags.

    Tags of pre-release versions are annotated as such.

    Returns:
        Tags created.
    """
    step("Committing release")
    commit_files(files, release_message(plan), cwd=root)
    print(f"  {len(files)} file(s) committed")

    versions = plan.writable
    for module_id, name in tags.items():
        kind = "Release" if is_release_version(versions[module_id]) else "Pre-release"
        create_tag(name, f"{kind} {name}", cwd=root)
        print(f"  tagged {name}")
    return list(tags.values())


def push_release(root: Path) -> None:
    push(cwd=root)
    print("  pushed branch and tags")


def run_release(
    root: Path | None = None,
    *,
    adapter: str | None = None,
    config_path: Path | None = None,
    dry_run: bool = False,
    snapshot: bool = False,
    prerelease_id: str | None = None,
    bump_unchanged: bool = False,
    build_metadata: bool = False,
    timestamp: bool = False,
    changelog: bool = True,
    tag: bool = False,
    push: bool = False,
    registry: AdapterRegistry | None = None,
    date: datetime.date | str | None = None,
) -> list[ModuleChangeResult]:
    """Execute the full release pipeline.

    Args:
        root: Repository root. Defaults to the current directory.
        dry_run: Plan and print only; nothing is written, committed or
                 tagged.
        changelog: Write CHANGELOG.md entries. Snapshot runs never do.
        tag: Commit the release and tag every released module.
        push: Commit the release and push branch and tags.
        date: Changelog date. Defaults to today.

    The remaining arguments are passed to plan_release().

    Returns:
        The resolution results, one per module.

    Raises:
        MonobumpError: On any configuration, adapter, git or resolution
                       failure. Planning errors leave the tree untouched.
    """
    root = (root or Path.cwd()).resolve()
    registry = registry or default_registry()
    committing = (tag or push) and not dry_run
    if committing and not is_working_tree_clean(cwd=root):
        raise GitError(
            "Working tree has uncommitted changes; commit or stash them first"
        )

    plan = plan_release(
        root,
        adapter=adapter,
        config_path=config_path,
        snapshot=snapshot,
        prerelease_id=prerelease_id,
        bump_unchanged=bump_unchanged,
        build_metadata=build_metadata,
        timestamp=timestamp,
        registry=registry,
    )

    if not plan.changed:
        print("\nNothing to release.")
        return plan.results
    if dry_run:
        print("\nDry run: no files written.")
        return plan.results

    # Checked before writing so a clash leaves the tree untouched
    tags: dict[str, str] = {}
    if committing and tag and not snapshot:
        tags = release_tags(plan.graph, plan.writable, plan.settings.tag_format)

    files = write_release(registry.get(plan.adapter_id), root, plan)
    if changelog and not snapshot:
        step("Writing changelogs")
        for path in write_changelogs(root, plan.graph, plan.results, date):
            print(f"  {path.relative_to(root)}")
            files.append(path)

    if committing and files:
        commit_and_tag(root, plan, files, tags)
        if push:
            step("Pushing")
            push_release(root)

    print(f"\n{'=' * 60}\nDone!\n{'=' * 60}")
    return plan.results