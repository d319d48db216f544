"""Tests for monobump.cli."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from monobump.bumps import BumpLevel
from monobump.cli import cli
from monobump.errors import DependencyCycleError
from monobump.models import CommitInfo, ModuleChangeResult

RESULTS = [
    ModuleChangeResult(
        module_id=":",
        previous_version="1.0.0",
        new_version="1.0.0",
        bump_level=BumpLevel.NONE,
    ),
    ModuleChangeResult(
        module_id=":core",
        previous_version="1.2.0",
        new_version="1.3.0",
        bump_level=BumpLevel.MINOR,
        commits=(CommitInfo(sha="abc", type="feat"),),
    ),
]


class TestPlan:
    @patch("monobump.cli.plan_release")
    def test_json_keeps_stdout_clean(
        self, mock_plan: MagicMock, tmp_path: Path
    ) -> None:
        """Progress output is sent to stderr so stdout parses as JSON."""

        def noisy_plan(*args: object, **kwargs: object) -> MagicMock:
            print("Resolving versions")
            return MagicMock(results=RESULTS)

        mock_plan.side_effect = noisy_plan

        result = CliRunner().invoke(cli, ["plan", "--root", str(tmp_path), "--json"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == [
            {
                "module": ":",
                "previous_version": "1.0.0",
                "new_version": "1.0.0",
                "bump": "none",
                "changed": False,
                "commits": [],
            },
            {
                "module": ":core",
                "previous_version": "1.2.0",
                "new_version": "1.3.0",
                "bump": "minor",
                "changed": True,
                "commits": ["abc"],
            },
        ]
        assert "Resolving versions" in result.stderr

    @patch("monobump.cli.plan_release")
    def test_passes_options(self, mock_plan: MagicMock, tmp_path: Path) -> None:
        result = CliRunner().invoke(
            cli,
            [
                "plan",
                "--root",
                str(tmp_path),
                "--adapter",
                "gradle",
                "--snapshot",
                "--prerelease",
                "rc",
                "--bump-unchanged",
                "--timestamp",
            ],
        )

        assert result.exit_code == 0, result.output
        mock_plan.assert_called_once_with(
            tmp_path.resolve(),
            adapter="gradle",
            config_path=None,
            snapshot=True,
            prerelease_id="rc",
            bump_unchanged=True,
            timestamp=True,
        )

    @patch("monobump.cli.plan_release")
    def test_errors_become_exit_status_1(
        self, mock_plan: MagicMock, tmp_path: Path
    ) -> None:
        mock_plan.side_effect = DependencyCycleError([":a", ":b", ":a"])

        result = CliRunner().invoke(cli, ["plan", "--root", str(tmp_path)])

        assert result.exit_code == 1
        assert "Error: Dependency cycle detected: :a -> :b -> :a" in result.stderr

    def test_missing_root(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, ["plan", "--root", str(tmp_path / "nope")])
        assert result.exit_code == 2


class TestRelease:
    @patch("monobump.cli.run_release")
    def test_defaults(self, mock_run: MagicMock, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, ["release", "--root", str(tmp_path)])

        assert result.exit_code == 0, result.output
        mock_run.assert_called_once_with(
            tmp_path,
            adapter=None,
            config_path=None,
            dry_run=False,
            snapshot=False,
            prerelease_id=None,
            bump_unchanged=False,
            timestamp=False,
            build_metadata=False,
            changelog=True,
            tag=False,
            push=False,
        )

    @patch("monobump.cli.run_release")
    def test_flags(self, mock_run: MagicMock, tmp_path: Path) -> None:
        result = CliRunner().invoke(
            cli,
            [
                "release",
                "--root",
                str(tmp_path),
                "--config",
                "bump.toml",
                "--dry-run",
                "--build-metadata",
                "--prerelease",
                "alpha",
                "--timestamp",
                "--no-changelog",
                "--tag",
                "--push",
            ],
        )

        assert result.exit_code == 0, result.output
        kwargs = mock_run.call_args.kwargs
        assert kwargs["config_path"] == Path("bump.toml")
        assert kwargs["dry_run"] and kwargs["build_metadata"]
        assert kwargs["tag"] and kwargs["push"]
        assert kwargs["changelog"] is False
        assert kwargs["prerelease_id"] == "alpha" and kwargs["timestamp"]


def test_adapters_lists_registered_ids() -> None:
    result = CliRunner().invoke(cli, ["adapters"])
    assert result.exit_code == 0
    assert result.output.split() == ["gradle", "uv"]
