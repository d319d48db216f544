"""Markdown changelog generation.

Each changed module gets an entry prepended to the CHANGELOG.md in its
directory, grouped by commit kind. The repository root CHANGELOG.md gets
a summary of every module released in the run.
"""

from __future__ import annotations

import datetime
from collections.abc import Iterable, Sequence
from pathlib import Path

from .graph import ModuleGraph
from .models import ROOT_MODULE_ID, CommitInfo, ModuleChangeResult

CHANGELOG_FILE = "CHANGELOG.md"
CHANGELOG_HEADER = "# Changelog"
DEPENDENCY_UPDATES_LINE = "- Updated dependencies"

BREAKING = "BREAKING CHANGES"
FEATURES = "Features"
BUG_FIXES = "Bug Fixes"
PERFORMANCE = "Performance"
OTHER = "Other"
SECTION_ORDER = (BREAKING, FEATURES, BUG_FIXES, PERFORMANCE, OTHER)

_SECTION_BY_TYPE = {"feat": FEATURES, "fix": BUG_FIXES, "perf": PERFORMANCE}


def section_for(commit: CommitInfo) -> str:
    if commit.breaking:
        return BREAKING
    return _SECTION_BY_TYPE.get(commit.type, OTHER)


def format_commit(commit: CommitInfo) -> str:
    """Render one bullet, e.g. "- **api:** add endpoint (1a2b3c4)"."""
    scope = f"**{commit.scope}:** " if commit.scope else ""
    sha = f" ({commit.sha[:7]})" if commit.sha else ""
    return f"- {scope}{commit.subject}{sha}"


def group_by_section(commits: Iterable[CommitInfo]) -> dict[str, list[CommitInfo]]:
    """Bucket commits by changelog section, keeping SECTION_ORDER."""
    groups: dict[str, list[CommitInfo]] = {name: [] for name in SECTION_ORDER}
    for commit in commits:
        groups[section_for(commit)].append(commit)
    return {name: items for name, items in groups.items() if items}


def _section_lines(commits: Iterable[CommitInfo]) -> list[str]:
    lines: list[str] = []
    for section, grouped in group_by_section(commits).items():
        lines += [f"### {section}", ""]
        lines += [format_commit(c) for c in grouped]
        lines.append("")
    return lines


def render_entry(result: ModuleChangeResult, *, date: datetime.date | str) -> str:
    """Render the markdown entry for one module release.

    Modules bumped only because a dependency changed have no attributed
    commits and get a single dependency-updates line instead.
    """
    lines = [f"## {result.new_version} ({date})", ""]
    sections = _section_lines(result.commits)
    lines += sections or [DEPENDENCY_UPDATES_LINE, ""]
    return "\n".join(lines).rstrip() + "\n"


def render_summary(
    results: Sequence[ModuleChangeResult], *, date: datetime.date | str
) -> str:
    """Render the root summary listing every changed module.

    Commits attributed to the root module itself follow the list, grouped
    like a module entry.
    """
    lines = [f"## Release {date}", ""]
    root_commits: tuple[CommitInfo, ...] = ()
    for result in results:
        if not result.changed:
            continue
        lines.append(
            f"- `{result.module_id}` {result.previous_version} → "
            f"{result.new_version} ({result.bump_level!s})"
        )
        if result.module_id == ROOT_MODULE_ID:
            root_commits = result.commits
    lines.append("")
    lines += _section_lines(root_commits)
    return "\n".join(lines).rstrip() + "\n"


def update_changelog(path: Path, entry: str) -> None:
    """Insert entry at the top of the changelog at path.

    The "# Changelog" header stays first; the file is created if needed.
    """
    existing = path.read_text() if path.exists() else ""
    first, _, remainder = existing.partition("\n")
    if first.strip() == CHANGELOG_HEADER:
        existing = remainder
    existing = existing.lstrip("\n")

    content = f"{CHANGELOG_HEADER}\n\n{entry.rstrip()}\n"
    if existing:
        content += f"\n{existing}"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


def write_changelogs(
    root: Path,
    graph: ModuleGraph,
    results: Sequence[ModuleChangeResult],
    date: datetime.date | str | None = None,
) -> list[Path]:
    """Write per-module entries and the root summary for changed modules.

    The root module has no file of its own: its entry is the summary.

    Returns:
        Changelog files written, root last. Empty when nothing changed.
    """
    date = date or datetime.date.today().isoformat()
    changed = [r for r in results if r.changed]
    if not changed:
        return []

    written: list[Path] = []
    for result in changed:
        module = graph.get(result.module_id)
        if module.is_root:
            continue
        path = root / module.path / CHANGELOG_FILE
        update_changelog(path, render_entry(result, date=date))
        written.append(path)

    summary_path = root / CHANGELOG_FILE
    update_changelog(summary_path, render_summary(changed, date=date))
    written.append(summary_path)
    return written
