"""Commit classification.

Maps conventional-commit semantics to bump levels using a VersionRules
policy. Pure functions, no I/O.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .bumps import BumpLevel, max_level
from .models import CommitInfo, VersionRules


def classify(commit: CommitInfo, rules: VersionRules) -> BumpLevel:
    """Return the direct bump level a single commit calls for.

    A breaking-change marker always wins. Otherwise the commit type is
    looked up in rules.commit_type_bumps; unknown and empty types fall
    back to rules.default_bump.
    """
    if commit.breaking:
        return BumpLevel.MAJOR
    if commit.type and commit.type in rules.commit_type_bumps:
        return rules.commit_type_bumps[commit.type]
    return rules.default_bump


def _associated(module_id: str, commits: Iterable[CommitInfo]) -> list[CommitInfo]:
    # A commit without explicit associations sitting in a module's list
    # belongs to that module.
    return [c for c in commits if not c.modules or module_id in c.modules]


def direct_bump_for_module(
    module_id: str, commits: Sequence[CommitInfo], rules: VersionRules
) -> BumpLevel:
    """Merge the classification of every commit associated with module_id.

    Returns NONE when no commit is associated.
    """
    return max_level(classify(c, rules) for c in _associated(module_id, commits))


def contributing_commits(
    module_id: str, commits: Sequence[CommitInfo], rules: VersionRules
) -> list[CommitInfo]:
    """Associated commits whose classification is above NONE."""
    return [
        c
        for c in _associated(module_id, commits)
        if classify(c, rules) > BumpLevel.NONE
    ]


def group_commits_by_module(
    commits: Iterable[CommitInfo],
) -> dict[str, list[CommitInfo]]:
    """Invert commit → modules associations into module → commits.

    Commits without any association are dropped. Commit order is kept.
    """
    grouped: dict[str, list[CommitInfo]] = {}
    for commit in commits:
        for module_id in dict.fromkeys(commit.modules):
            grouped.setdefault(module_id, []).append(commit)
    return grouped
