"""Git collaborator: commit retrieval, tags and release commits.

Each module is tagged independently ("core@1.2.0" by default, "v1.2.0"
for the repository root). Commits since a module's last tag are read with
git log limited to the module directory, excluding nested modules so a
commit is attributed to the most specific module that owns the file.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from pathlib import Path

from .config import DEFAULT_TAG_FORMAT, ROOT_TAG_FORMAT
from .errors import ConfigError
from .graph import ModuleGraph
from .models import CommitInfo, Module
from .shell import git

# Unit and record separators keep multi-line bodies intact
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
LOG_FORMAT = f"--format=%H{_FIELD_SEP}%s{_FIELD_SEP}%b{_RECORD_SEP}"

_HEADER_RE = re.compile(
    r"^(?P<type>[A-Za-z][\w-]*)"
    r"(?:\((?P<scope>[^()]*)\))?"
    r"(?P<bang>!)?"
    r":\s*(?P<subject>.+)$"
)
_BREAKING_FOOTER_RE = re.compile(r"^BREAKING[ -]CHANGE:", re.MULTILINE)

# Stand-in for the version while turning a tag format into a pattern
_VERSION_MARK = "\x00"
_VERSION_RE = r"\d+\.\d+\.\d+(?:[-+][0-9A-Za-z.+-]*)?"


def parse_commit(sha: str, subject: str, body: str = "") -> CommitInfo:
    """Parse a commit message following the Conventional Commits format.

    Examples:
        "feat(api)!: drop v1" → type "feat", scope "api", breaking
        "fix: typo" → type "fix"
        "Merge branch 'x'" → type "", subject unchanged
    """
    subject = subject.strip()
    body = body.strip()
    breaking = bool(_BREAKING_FOOTER_RE.search(body))

    match = _HEADER_RE.match(subject)
    if match is None:
        return CommitInfo(sha=sha, subject=subject, body=body, breaking=breaking)

    return CommitInfo(
        sha=sha,
        type=match["type"].lower(),
        scope=match["scope"] or None,
        subject=match["subject"].strip(),
        body=body,
        breaking=breaking or match["bang"] is not None,
    )


def tag_name(
    module: Module, version: str, tag_format: str = DEFAULT_TAG_FORMAT
) -> str:
    """Tag for a module release.

    The format may use {name} (last id segment), {path} (module
    directory) and {version}. The root module has no name, so the default
    format falls back to "v{version}" for it.
    """
    if module.is_root and tag_format == DEFAULT_TAG_FORMAT:
        tag_format = ROOT_TAG_FORMAT
    return tag_format.format(name=module.name, path=module.path, version=version)


def tag_regex(
    module: Module, tag_format: str = DEFAULT_TAG_FORMAT
) -> re.Pattern[str]:
    """Pattern matching exactly the release tags of module.

    The glob handed to git tag --list is looser ("v*" also lists
    "vendor@2.0.0"), so listed tags are filtered through this.
    """
    literal = re.escape(tag_name(module, _VERSION_MARK, tag_format))
    return re.compile(
        "^" + literal.replace(re.escape(_VERSION_MARK), _VERSION_RE) + "$"
    )


def last_tag_for_module(
    module: Module, tag_format: str = DEFAULT_TAG_FORMAT, cwd: Path | None = None
) -> str | None:
    """Most recent tag of a module, or None if it was never released.

    Tags are sorted by version, so core@1.10.0 comes after core@1.9.0.
    """
    pattern = tag_name(module, "*", tag_format)
    tags = git("tag", "--list", pattern, "--sort=-v:refname", cwd=cwd, check=False)
    own = tag_regex(module, tag_format)
    return next((t for t in tags.splitlines() if own.match(t)), None)


def release_tags(
    graph: ModuleGraph,
    versions: Mapping[str, str],
    tag_format: str = DEFAULT_TAG_FORMAT,
) -> dict[str, str]:
    """Map module id → tag for each released module.

    Raises:
        ConfigError: If two modules would share tags, e.g. ":a:core" and
            ":b:core" under "{name}@{version}". Use {path} to tell them
            apart.
    """
    tags: dict[str, str] = {}
    owners: dict[str, str] = {}
    for module_id in graph.ids:
        prefix = tag_name(graph.get(module_id), _VERSION_MARK, tag_format)
        if prefix in owners:
            raise ConfigError(
                f"Modules {owners[prefix]} and {module_id} share release tags "
                f"under tag-format {tag_format!r}; include {{path}} in it"
            )
        owners[prefix] = module_id
        if module_id in versions:
            tags[module_id] = tag_name(
                graph.get(module_id), versions[module_id], tag_format
            )
    return tags


def _pathspec(path: str) -> str:
    return "." if path in ("", ".") else path.rstrip("/")


def commits_since(
    tag: str | None,
    path: str = ".",
    exclude: Iterable[str] = (),
    cwd: Path | None = None,
) -> list[CommitInfo]:
    """Commits touching path since tag (or all history when tag is None).

    Args:
        tag: Lower bound, exclusive.
        path: Directory relative to the repository root.
        exclude: Directories to leave out, typically nested modules.
        cwd: Repository root.

    Returns:
        Parsed commits, newest first, without module association.
    """
    revision = f"{tag}..HEAD" if tag else "HEAD"
    args = ["log", LOG_FORMAT, revision, "--", _pathspec(path)]
    args += [f":(exclude){_pathspec(p)}" for p in exclude]
    output = git(*args, cwd=cwd)

    commits: list[CommitInfo] = []
    for record in output.split(_RECORD_SEP):
        record = record.strip()
        if not record:
            continue
        sha, subject, body = (record.split(_FIELD_SEP, 2) + ["", ""])[:3]
        commits.append(parse_commit(sha, subject, body))
    return commits


def _is_nested(child: str, parent: str) -> bool:
    child, parent = _pathspec(child), _pathspec(parent)
    if child == parent:
        return False
    return parent == "." or child.startswith(parent + "/")


def collect_commits(
    graph: ModuleGraph,
    tag_format: str = DEFAULT_TAG_FORMAT,
    cwd: Path | None = None,
) -> dict[str, list[CommitInfo]]:
    """Gather the unreleased commits of every module in graph.

    Returns:
        Module id → commits since that module's last tag, each associated
        with the module.
    """
    paths = [m.path for m in graph]
    commits_by_module: dict[str, list[CommitInfo]] = {}
    for module in graph:
        tag = last_tag_for_module(module, tag_format, cwd=cwd)
        nested = [p for p in paths if _is_nested(p, module.path)]
        commits_by_module[module.id] = [
            c.model_copy(update={"modules": (module.id,)})
            for c in commits_since(tag, module.path, nested, cwd=cwd)
        ]
    return commits_by_module


def short_sha(cwd: Path | None = None) -> str:
    return git("rev-parse", "--short", "HEAD", cwd=cwd)


def is_working_tree_clean(cwd: Path | None = None) -> bool:
    return not git("status", "--porcelain", cwd=cwd)


def commit_files(
    paths: Iterable[Path], message: str, cwd: Path | None = None
) -> None:
    """Stage paths and create a commit with message."""
    git("add", "--", *(str(p) for p in paths), cwd=cwd)
    git("commit", "-m", message, cwd=cwd)


def create_tag(
    name: str, message: str | None = None, cwd: Path | None = None
) -> None:
    """Create a lightweight tag, or an annotated one when message is given."""
    if message:
        git("tag", "-a", name, "-m", message, cwd=cwd)
    else:
        git("tag", name, cwd=cwd)


def push(cwd: Path | None = None, tags: bool = True) -> None:
    """Push the current branch, then tags."""
    git("push", cwd=cwd)
    if tags:
        git("push", "--tags", cwd=cwd)
