# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Collapse long lists of offending files into directory globs."""

from __future__ import annotations

import posixpath
from collections.abc import Sequence
from pathlib import Path
from typing import Final

DIRECTORY_COVERAGE_THRESHOLD: Final[float] = 0.8
DEFAULT_GROUP_LIMIT: Final[int] = 15
DEFAULT_SOURCE_GLOB: Final[str] = "*.rb"


def _unique(items: Sequence[str]) -> list[str]:
    return list(dict.fromkeys(items))


class PathGrouper:
    """Replace files with ``<dir>/**/*`` when a directory is mostly offending.

    A directory is grouped when it holds at least ``limit`` offending files
    (and more than one) and those files cover at least 80% of the source
    files found beneath it.
    """

    def __init__(self, root: Path | None = None, *, source_glob: str = DEFAULT_SOURCE_GLOB) -> None:
        self._root = root or Path.cwd()
        self._source_glob = source_glob

    def group(self, files: Sequence[str], *, limit: int = DEFAULT_GROUP_LIMIT) -> list[str]:
        """Return sorted, unique paths and directory patterns covering ``files``.

        Args:
            files: Offending file paths, relative to the root or absolute.
            limit: Minimum number of offending files before grouping applies.

        Returns:
            list[str]: Sorted entries suitable for an ``Exclude`` list.
        """

        unique_files = _unique(files)
        if len(files) < limit:
            return sorted(unique_files)
        by_dir: dict[str, list[str]] = {}
        for path in unique_files:
            by_dir.setdefault(posixpath.dirname(path), []).append(path)
        grouped: list[str] = []
        for directory, dir_files in by_dir.items():
            if self._should_group(directory, dir_files, limit):
                grouped.append(f"{directory}/**/*")
            else:
                grouped.extend(dir_files)
        return sorted(_unique(grouped))

    def _should_group(self, directory: str, dir_files: Sequence[str], limit: int) -> bool:
        if len(dir_files) < limit or len(dir_files) == 1:
            return False
        base = Path(directory)
        if not base.is_absolute():
            base = self._root / base
        if not base.is_dir():
            return False
        total = sum(1 for _ in base.rglob(self._source_glob))
        if total == 0:
            return False
        return len(dir_files) / total >= DIRECTORY_COVERAGE_THRESHOLD


__all__ = ["DEFAULT_GROUP_LIMIT", "DIRECTORY_COVERAGE_THRESHOLD", "PathGrouper"]
