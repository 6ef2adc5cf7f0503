# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Generate a baseline configuration that excludes every current offense."""

from __future__ import annotations

import os
import re
import tomllib
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Final

from .config.loader import (
    DEFAULT_CONFIG_FILE,
    PYPROJECT_SECTION_KEY,
    PYPROJECT_TOOL_KEY,
    PyProjectConfigSource,
    TomlConfigSource,
)
from .config.utils import toml_key, toml_value
from .errors import ConfigError, TodoFileExistsError
from .path_grouper import DEFAULT_GROUP_LIMIT, PathGrouper
from .results.aggregate import Aggregate

TODO_FILE: Final[str] = ".docqa-todo.toml"
_PYPROJECT_HEADER: Final[re.Pattern[str]] = re.compile(r"^\[tool\.docqa\][ \t]*(?:#.*)?$", re.MULTILINE)
_CATEGORY_COMMENTS: Final[Mapping[str, str]] = {
    "Documentation": "# Documentation coverage rules",
    "Tags": "# Tag usage and layout rules",
    "Warnings": "# Documentation tool warnings",
}


@dataclass(frozen=True, slots=True)
class TodoReport:
    """Summary of a TODO generation run."""

    message: str
    offense_count: int
    rule_count: int
    todo_path: Path | None = None


class TodoGenerator:
    """Write ``.docqa-todo.toml`` and make the active configuration include it.

    The include is added to the configuration the run was loaded from: an
    explicit ``--config`` file, ``.docqa.toml``, or the ``[tool.docqa]`` table
    of ``pyproject.toml``. Without any configuration ``.docqa.toml`` is created.
    """

    def __init__(
        self,
        root: Path,
        *,
        source: TomlConfigSource | None = None,
        force: bool = False,
        exclude_limit: int = DEFAULT_GROUP_LIMIT,
        grouper: PathGrouper | None = None,
    ) -> None:
        self.root = root
        self.todo_path = root / TODO_FILE
        self._source = source
        self._force = force
        self._exclude_limit = exclude_limit
        self._grouper = grouper or PathGrouper(root)

    def ensure_writable(self) -> None:
        """Refuse to overwrite an existing TODO file unless forced.

        Raises:
            TodoFileExistsError: If the file exists and ``force`` is false.
        """

        if self.todo_path.exists() and not self._force:
            raise TodoFileExistsError(f"{TODO_FILE} already exists. Use --force to overwrite.")

    def generate(self, aggregate: Aggregate) -> TodoReport:
        """Write exclusions for every offending file of ``aggregate``.

        Args:
            aggregate: Finalized aggregate of a full run.

        Returns:
            TodoReport: Summary of what was written.

        Raises:
            TodoFileExistsError: If the TODO file exists and ``force`` is false.
        """

        self.ensure_writable()
        violations = self.collect(aggregate)
        if not violations:
            return TodoReport(
                message=f"No offenses found. No {TODO_FILE} needed.\nYour codebase is already compliant!",
                offense_count=0,
                rule_count=0,
            )
        grouped = {rule: self._grouper.group(files, limit=self._exclude_limit) for rule, files in violations.items()}
        self.todo_path.write_text(self.render(grouped), encoding="utf-8")
        config_note = self._update_main_config()
        lines = [
            f"Created {TODO_FILE}",
            f"Silenced {aggregate.count} offense(s) across {len(grouped)} rule(s):",
            *(f"  {rule}: {len(patterns)} pattern(s)" for rule, patterns in grouped.items()),
            "",
            config_note,
            "",
            "Run docqa again to confirm - you should see no offenses.",
            f"To fix offenses incrementally, remove entries from {TODO_FILE}",
        ]
        return TodoReport(
            message="\n".join(lines),
            offense_count=aggregate.count,
            rule_count=len(grouped),
            todo_path=self.todo_path,
        )

    def collect(self, aggregate: Aggregate) -> dict[str, list[str]]:
        """Return sorted, root-relative offending files per rule."""

        violations: dict[str, list[str]] = {}
        for result in aggregate.results:
            files = sorted(
                {self._relative(offense.location) for offense in result.offenses if offense.location is not None}
            )
            if files:
                violations[result.identifier] = files
        return violations

    def _relative(self, location: str) -> str:
        path = Path(location)
        if path.is_absolute():
            try:
                return path.resolve().relative_to(self.root.resolve()).as_posix()
            except ValueError:
                return path.as_posix()
        return path.as_posix()

    def render(self, grouped: Mapping[str, Sequence[str]]) -> str:
        """Return the TOML document excluding ``grouped`` paths per rule."""

        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
        lines = [
            f"# Generated by docqa check --todo on {stamp}",
            "# It contains exclusions for all current offenses to establish a baseline.",
            "#",
            "# To gradually fix offenses:",
            "# 1. Remove files/patterns from the Exclude lists below",
            "# 2. Run docqa to see the offenses for those files",
            "# 3. Fix the offenses",
            "# 4. Commit the changes",
            "",
        ]
        current_category: str | None = None
        for rule, patterns in grouped.items():
            category = rule.split("/", 1)[0]
            if category != current_category:
                current_category = category
                comment = _CATEGORY_COMMENTS.get(category)
                if comment:
                    lines.append(comment)
            lines.append(f"[{toml_key(rule)}]")
            lines.append("Exclude = [")
            lines.extend(f"  {toml_value(pattern)}," for pattern in patterns)
            lines.append("]")
            lines.append("")
        return "\n".join(lines)

    def _update_main_config(self) -> str:
        if isinstance(self._source, PyProjectConfigSource):
            note = self._update_pyproject(self._source.path)
            if note is not None:
                return note
        elif self._source is not None:
            return self._update_toml(self._source.path)
        return self._update_toml(self.root / DEFAULT_CONFIG_FILE)

    def _include_entry(self, config_path: Path) -> str:
        return Path(os.path.relpath(self.todo_path.resolve(), config_path.resolve().parent)).as_posix()

    def _update_toml(self, path: Path) -> str:
        entry = self._include_entry(path)
        include_line = f"include = {toml_value([entry])}"
        if not path.exists():
            path.write_text(f"# docqa configuration\n\n{include_line}\n", encoding="utf-8")
            return f"Created {path.name} including {TODO_FILE}"
        text = path.read_text(encoding="utf-8")
        document = _parse(path, text)
        return self._apply_include(path, document.get("include"), entry, f"{include_line}\n{text}")

    def _update_pyproject(self, path: Path) -> str | None:
        text = path.read_text(encoding="utf-8")
        tool = _parse(path, text).get(PYPROJECT_TOOL_KEY)
        section = tool.get(PYPROJECT_SECTION_KEY) if isinstance(tool, Mapping) else None
        if not isinstance(section, Mapping):
            return None
        entry = self._include_entry(path)
        include_line = f"include = {toml_value([entry])}"
        header = _PYPROJECT_HEADER.search(text)
        if header is None:
            if "include" in section:
                return self._apply_include(path, section["include"], entry, text)
            return f"Add {include_line} to [tool.docqa] in {path.name} to apply the baseline"
        updated = f"{text[: header.end()]}\n{include_line}{text[header.end() :]}"
        return self._apply_include(path, section.get("include"), entry, updated)

    def _apply_include(self, path: Path, include: object, entry: str, updated: str) -> str:
        if include is None:
            path.write_text(updated, encoding="utf-8")
            return f"Updated {path.name} to include {TODO_FILE}"
        if isinstance(include, str):
            include = [include]
        if isinstance(include, list) and entry in include:
            return f"{path.name} already includes {TODO_FILE}"
        return f"Add {entry} to the include list of {path.name} to apply the baseline"


def _parse(path: Path, text: str) -> Mapping[str, Any]:
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Cannot update {path}: {exc}") from exc


__all__ = ["TODO_FILE", "TodoGenerator", "TodoReport"]
