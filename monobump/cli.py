"""CLI entry point for monobump."""

from __future__ import annotations

import contextlib
import json
import sys
from collections.abc import Iterator
from pathlib import Path

import click

from monobump.adapters import default_registry
from monobump.errors import MonobumpError
from monobump.models import ModuleChangeResult
from monobump.pipeline import plan_release, run_release


@contextlib.contextmanager
def reported_errors() -> Iterator[None]:
    """Turn monobump errors into a one-line click error (exit status 1)."""
    try:
        yield
    except MonobumpError as exc:
        raise click.ClickException(str(exc)) from exc


def result_to_json(result: ModuleChangeResult) -> dict[str, object]:
    return {
        "module": result.module_id,
        "previous_version": result.previous_version,
        "new_version": result.new_version,
        "bump": str(result.bump_level),
        "changed": result.changed,
        "commits": [c.sha for c in result.commits],
    }


root_option = click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Repository root.",
)
adapter_option = click.option(
    "--adapter", default=None, help="Force a build-system adapter (see `adapters`)."
)
config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (default: .monobump.toml or [tool.monobump]).",
)
snapshot_option = click.option(
    "--snapshot", is_flag=True, help="Append -SNAPSHOT where the build supports it."
)
prerelease_option = click.option(
    "--prerelease",
    "prerelease_id",
    metavar="ID",
    default=None,
    help="Produce pre-release versions, e.g. --prerelease rc → 1.3.0-rc.0.",
)
bump_unchanged_option = click.option(
    "--bump-unchanged",
    is_flag=True,
    help="With --prerelease, also advance the counter of unbumped modules.",
)
timestamp_option = click.option(
    "--timestamp",
    is_flag=True,
    help="With --prerelease, stamp the id with UTC time, e.g. rc.20251021143022.",
)


@click.group()
@click.version_option(package_name="monobump")
def cli() -> None:
    """Per-module semantic versioning for monorepos, driven by commits."""


@cli.command()
@root_option
@adapter_option
@config_option
@snapshot_option
@prerelease_option
@bump_unchanged_option
@timestamp_option
@click.option("--json", "as_json", is_flag=True, help="Print the plan as JSON.")
def plan(
    root: Path,
    adapter: str | None,
    config_path: Path | None,
    snapshot: bool,
    prerelease_id: str | None,
    bump_unchanged: bool,
    timestamp: bool,
    as_json: bool,
) -> None:
    """Show the versions the next release would produce. Writes nothing."""
    # Progress goes to stderr so the JSON document is all that stdout holds
    progress = sys.stderr if as_json else sys.stdout
    with reported_errors(), contextlib.redirect_stdout(progress):
        release_plan = plan_release(
            root.resolve(),
            adapter=adapter,
            config_path=config_path,
            snapshot=snapshot,
            prerelease_id=prerelease_id,
            bump_unchanged=bump_unchanged,
            timestamp=timestamp,
        )
    if as_json:
        payload = [result_to_json(r) for r in release_plan.results]
        click.echo(json.dumps(payload, indent=2))


@cli.command()
@root_option
@adapter_option
@config_option
@click.option("--dry-run", is_flag=True, help="Plan only; write nothing.")
@snapshot_option
@prerelease_option
@bump_unchanged_option
@timestamp_option
@click.option(
    "--build-metadata", is_flag=True, help="Append +<short sha> to bumped versions."
)
@click.option("--no-changelog", is_flag=True, help="Do not write CHANGELOG.md files.")
@click.option("--tag", is_flag=True, help="Commit the release and tag each module.")
@click.option("--push", is_flag=True, help="Commit the release and push it.")
def release(
    root: Path,
    adapter: str | None,
    config_path: Path | None,
    dry_run: bool,
    snapshot: bool,
    prerelease_id: str | None,
    bump_unchanged: bool,
    timestamp: bool,
    build_metadata: bool,
    no_changelog: bool,
    tag: bool,
    push: bool,
) -> None:
    """Bump versions, write changelogs and optionally tag and push."""
    with reported_errors():
        run_release(
            root,
            adapter=adapter,
            config_path=config_path,
            dry_run=dry_run,
            snapshot=snapshot,
            prerelease_id=prerelease_id,
            bump_unchanged=bump_unchanged,
            build_metadata=build_metadata,
            timestamp=timestamp,
            changelog=not no_changelog,
            tag=tag,
            push=push,
        )


@cli.command()
def adapters() -> None:
    """List the supported build-system adapters."""
    for adapter_id in default_registry().supported():
        click.echo(adapter_id)
