# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for collapsing offending files into directory patterns."""

from __future__ import annotations

from pathlib import Path

from docqa.path_grouper import PathGrouper


def _tree(root: Path, directory: str, count: int) -> list[str]:
    base = root / directory
    base.mkdir(parents=True)
    files = []
    for index in range(count):
        (base / f"file_{index:02d}.rb").write_text("# source\n", encoding="utf-8")
        files.append(f"{directory}/file_{index:02d}.rb")
    return files


def test_short_lists_are_sorted_and_unique(tmp_path: Path) -> None:
    grouped = PathGrouper(tmp_path).group(["lib/b.rb", "lib/a.rb", "lib/b.rb"])

    assert grouped == ["lib/a.rb", "lib/b.rb"]


def test_mostly_offending_directory_becomes_a_pattern(tmp_path: Path) -> None:
    files = _tree(tmp_path, "lib/models", 20)
    offending = files[:18] + ["lib/other.rb"]

    grouped = PathGrouper(tmp_path).group(offending, limit=15)

    assert grouped == ["lib/models/**/*", "lib/other.rb"]


def test_low_coverage_directory_lists_files(tmp_path: Path) -> None:
    files = _tree(tmp_path, "lib/models", 20)

    grouped = PathGrouper(tmp_path).group(files[:10], limit=5)

    assert grouped == sorted(files[:10])


def test_missing_directory_is_never_grouped(tmp_path: Path) -> None:
    files = [f"gone/file_{index}.rb" for index in range(6)]

    assert PathGrouper(tmp_path).group(files, limit=3) == sorted(files)
