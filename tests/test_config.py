"""Tests for monobump.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from monobump.bumps import BumpLevel
from monobump.classify import classify
from monobump.config import (
    CONFIG_FILE,
    DEFAULT_RULES,
    DEFAULT_TAG_FORMAT,
    Settings,
    load_config,
    parse_config,
)
from monobump.errors import ConfigError
from monobump.models import CommitInfo


class TestDefaults:
    def test_conventional_commit_defaults(self) -> None:
        assert DEFAULT_RULES.default_bump is BumpLevel.PATCH
        assert DEFAULT_RULES.commit_type_bumps["feat"] is BumpLevel.MINOR
        assert DEFAULT_RULES.commit_type_bumps["refactor"] is BumpLevel.PATCH
        for ignored in ("docs", "test", "chore", "style", "ci", "build"):
            assert DEFAULT_RULES.commit_type_bumps[ignored] is BumpLevel.NONE

    def test_cascade_is_identity(self) -> None:
        assert DEFAULT_RULES.dependency_bumps == {
            BumpLevel.MAJOR: BumpLevel.MAJOR,
            BumpLevel.MINOR: BumpLevel.MINOR,
            BumpLevel.PATCH: BumpLevel.PATCH,
        }

    def test_no_config_file_gives_defaults(self, tmp_path: Path) -> None:
        settings = load_config(tmp_path)
        assert settings == Settings()
        assert settings.tag_format == DEFAULT_TAG_FORMAT
        assert settings.source is None


class TestParseConfig:
    def test_merges_over_defaults(self) -> None:
        settings = parse_config(
            {
                "default-bump": "minor",
                "commit-types": {"docs": "patch", "security": "major"},
                "dependency-bumps": {"major": "minor"},
            }
        )
        rules = settings.rules
        assert rules.default_bump is BumpLevel.MINOR
        assert rules.commit_type_bumps["docs"] is BumpLevel.PATCH
        assert rules.commit_type_bumps["security"] is BumpLevel.MAJOR
        assert rules.commit_type_bumps["feat"] is BumpLevel.MINOR
        assert rules.dependency_bumps[BumpLevel.MAJOR] is BumpLevel.MINOR
        assert rules.dependency_bumps[BumpLevel.PATCH] is BumpLevel.PATCH

    def test_ignore_spelling(self) -> None:
        settings = parse_config({"commit-types": {"fix": "ignore"}})
        assert settings.rules.commit_type_bumps["fix"] is BumpLevel.NONE

    @pytest.mark.parametrize("spelling", ["ignore", "none"])
    def test_default_bump_can_be_disabled(self, spelling: str) -> None:
        """Unknown commit types bump nothing when the default is NONE."""
        settings = parse_config({"default-bump": spelling})
        assert settings.rules.default_bump is BumpLevel.NONE

    def test_ignored_default_from_file(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILE).write_text('default-bump = "none"\n')
        rules = load_config(tmp_path).rules
        assert classify(CommitInfo(type="wip"), rules) is BumpLevel.NONE
        assert classify(CommitInfo(type="feat"), rules) is BumpLevel.MINOR

    def test_match_dependency_bumps(self) -> None:
        settings = parse_config({"dependency-bumps": "match"})
        assert settings.rules.dependency_bumps == {
            level: level for level in BumpLevel if level is not BumpLevel.NONE
        }

    def test_adapter_and_tag_format(self) -> None:
        settings = parse_config(
            {"adapter": "gradle", "tag-format": "release/{name}/{version}"},
            "cfg.toml",
        )
        assert settings.adapter == "gradle"
        assert settings.tag_format == "release/{name}/{version}"
        assert settings.source == "cfg.toml"

    @pytest.mark.parametrize(
        ("table", "fragment"),
        [
            ({"default-bump": "huge"}, "default-bump"),
            ({"commit-types": {"feat": "enormous"}}, "commit-types"),
            ({"tag-format": "{name}"}, "tag-format"),
            ({"unexpected": 1}, "unexpected"),
        ],
    )
    def test_invalid_tables(self, table: dict[str, object], fragment: str) -> None:
        with pytest.raises(ConfigError, match=fragment):
            parse_config(table, "bad.toml")


class TestLoadConfig:
    def test_dedicated_file(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILE).write_text('default-bump = "major"\n')
        settings = load_config(tmp_path)
        assert settings.rules.default_bump is BumpLevel.MAJOR
        assert settings.source == str(tmp_path / CONFIG_FILE)

    def test_pyproject_tool_table(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            '[project]\nname = "x"\n\n[tool.monobump]\nadapter = "uv"\n'
        )
        assert load_config(tmp_path).adapter == "uv"

    def test_pyproject_without_tool_table_gives_defaults(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n')
        assert load_config(tmp_path) == Settings()

    def test_dedicated_file_wins(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILE).write_text('adapter = "gradle"\n')
        (tmp_path / "pyproject.toml").write_text('[tool.monobump]\nadapter = "uv"\n')
        assert load_config(tmp_path).adapter == "gradle"

    def test_explicit_relative_path(self, tmp_path: Path) -> None:
        (tmp_path / "conf").mkdir()
        (tmp_path / "conf" / "bump.toml").write_text('tag-format = "v{version}"\n')
        settings = load_config(tmp_path, Path("conf/bump.toml"))
        assert settings.tag_format == "v{version}"

    def test_explicit_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path, Path("nope.toml"))

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILE).write_text("default-bump = \n")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(tmp_path)
