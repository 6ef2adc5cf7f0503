# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for rewriting a configuration file against the rule catalogue."""

from __future__ import annotations

import tomllib
from pathlib import Path

import pytest
from typer.testing import CliRunner

from docqa.cli import app
from docqa.config.loader import DEFAULT_CONFIG_FILE, load_config
from docqa.config.updater import ConfigUpdater
from docqa.errors import ConfigError
from docqa.rules import default_registry

OBJECTS = "Documentation/UndocumentedObjects"
REDUNDANT = "Tags/RedundantParamDescription"
SEPARATOR = "Tags/TagGroupSeparator"

USER_CONFIG = """\
include = ["shared.toml"]

[AllValidators]
Exclude = ["vendor/**/*"]
FailOnSeverity = "warning"

["Documentation/UndocumentedObjects"]
Enabled = false
Exclude = ["lib/legacy/**/*"]

["Tags/RedundantParamDescription"]
MaxRedundantWords = 3

["Tags/RetiredRule"]
Enabled = true
"""


def _write(tmp_path: Path, text: str = USER_CONFIG) -> Path:
    path = tmp_path / DEFAULT_CONFIG_FILE
    path.write_text(text, encoding="utf-8")
    (tmp_path / "shared.toml").write_text("", encoding="utf-8")
    return path


def _read(path: Path) -> dict:
    with path.open("rb") as handle:
        return tomllib.load(handle)


def test_update_reports_added_removed_and_preserved(tmp_path: Path) -> None:
    path = _write(tmp_path)

    report = ConfigUpdater(path, default_registry()).update()

    assert report.removed == ("Tags/RetiredRule",)
    assert report.preserved == (OBJECTS, REDUNDANT)
    assert set(report.added) == set(default_registry()) - {OBJECTS, REDUNDANT}
    assert list(report.added) == sorted(report.added)


def test_update_keeps_user_values_over_current_defaults(tmp_path: Path) -> None:
    path = _write(tmp_path)

    ConfigUpdater(path, default_registry()).update()
    document = _read(path)

    assert document["include"] == ["shared.toml"]
    assert document["AllValidators"] == {"Exclude": ["vendor/**/*"], "FailOnSeverity": "warning"}
    assert document[OBJECTS]["Enabled"] is False
    assert document[OBJECTS]["Exclude"] == ["lib/legacy/**/*"]
    assert document[REDUNDANT]["MaxRedundantWords"] == 3
    assert document[REDUNDANT]["EnabledPatterns"]["ArticleParam"] is True
    assert document[SEPARATOR]["Enabled"] is False
    assert "Tags/RetiredRule" not in document
    assert list(key for key in document if "/" in key) == list(default_registry())


def test_updated_file_loads_as_configuration(tmp_path: Path) -> None:
    path = _write(tmp_path)

    ConfigUpdater(path, default_registry()).update()
    config = load_config(default_registry(), root=tmp_path)

    assert config.settings.fail_on_severity == "warning"
    assert config.rule(OBJECTS).enabled is False
    assert config.rule(REDUNDANT).option("MaxRedundantWords") == 3


def test_text_groups_rules_under_category_comments(tmp_path: Path) -> None:
    path = _write(tmp_path)

    ConfigUpdater(path, default_registry()).update()
    text = path.read_text(encoding="utf-8")

    assert text.startswith("# docqa configuration\n")
    assert text.index("# Documentation rules") < text.index(f'["{OBJECTS}"]')
    assert text.index("# Tags rules") < text.index(f'["{REDUNDANT}"]') < text.index("# Warnings rules")


def test_strict_enables_added_rules_as_errors(tmp_path: Path) -> None:
    path = _write(tmp_path)

    ConfigUpdater(path, default_registry(), strict=True).update()
    document = _read(path)

    assert document[SEPARATOR]["Enabled"] is True
    assert document[SEPARATOR]["Severity"] == "error"
    assert document[OBJECTS]["Enabled"] is False
    assert document[REDUNDANT]["Severity"] == "convention"


def test_missing_file_is_a_config_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Configuration file not found"):
        ConfigUpdater(tmp_path / DEFAULT_CONFIG_FILE, default_registry()).update()


def test_pyproject_is_not_rewritten(tmp_path: Path) -> None:
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text('[tool.docqa]\ninclude = []\n', encoding="utf-8")

    with pytest.raises(ConfigError, match="standalone files only"):
        ConfigUpdater(pyproject, default_registry()).update()

    assert pyproject.read_text(encoding="utf-8") == '[tool.docqa]\ninclude = []\n'


def test_update_config_command(tmp_path: Path) -> None:
    _write(tmp_path)

    result = CliRunner().invoke(app, ["update-config", "--root", str(tmp_path), "--no-emoji"])

    assert result.exit_code == 0
    assert "Removed Tags/RetiredRule" in result.stdout
    assert "2 preserved" in result.stdout


def test_update_config_command_without_file_exits_with_two(tmp_path: Path) -> None:
    result = CliRunner().invoke(app, ["update-config", "--root", str(tmp_path), "--no-emoji"])

    assert result.exit_code == 2
    assert "Configuration file not found" in result.stdout
