# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Bring an existing ``.docqa.toml`` in line with the built-in rule catalogue."""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

from ..errors import ConfigError
from ..rules.registry import RuleRegistry
from ..severity import Severity
from .loader import DEFAULT_INCLUDE_KEY, PYPROJECT_FILE
from .models import ALL_VALIDATORS_KEY, ENABLED_KEY, SEVERITY_KEY
from .utils import toml_key, toml_table, toml_value

HEADER: Final[tuple[str, ...]] = ("# docqa configuration", "# Run `docqa rules` to list every rule.")
CATEGORY_COMMENTS: Final[Mapping[str, str]] = {
    "Documentation": "# Documentation rules",
    "Tags": "# Tags rules",
    "Warnings": "# Warnings rules - surfaced from documentation tool diagnostics",
}


@dataclass(frozen=True, slots=True)
class UpdateReport:
    """Rule identifiers grouped by what the update did to them."""

    added: tuple[str, ...]
    removed: tuple[str, ...]
    preserved: tuple[str, ...]


class ConfigUpdater:
    """Add new rules to a configuration file and drop rules that no longer exist.

    User values of rules that remain are kept on top of the current defaults.
    ``include`` and ``AllValidators`` are copied as they are. With ``strict``
    the rules being added are enabled at error severity.
    """

    def __init__(self, path: Path, registry: RuleRegistry, *, strict: bool = False) -> None:
        self.path = path
        self._registry = registry
        self._strict = strict

    def update(self) -> UpdateReport:
        """Rewrite :attr:`path` and report what changed.

        Raises:
            ConfigError: If the file is missing, unreadable, malformed or a
                ``pyproject.toml``.
        """

        if self.path.name == PYPROJECT_FILE:
            raise ConfigError(f"update-config rewrites standalone files only, not {self.path}")
        document = self._read()
        existing = [key for key, value in document.items() if "/" in key and isinstance(value, Mapping)]
        current = list(self._registry)
        report = UpdateReport(
            added=tuple(sorted(set(current) - set(existing))),
            removed=tuple(sorted(set(existing) - set(current))),
            preserved=tuple(sorted(set(existing) & set(current))),
        )
        self.path.write_text(self.render(document), encoding="utf-8")
        return report

    def render(self, document: Mapping[str, Any]) -> str:
        """Return the updated TOML text for ``document``."""

        lines = list(HEADER)
        include = document.get(DEFAULT_INCLUDE_KEY)
        if include is not None:
            lines.append(f"{toml_key(DEFAULT_INCLUDE_KEY)} = {toml_value(include)}")
        lines.append("")
        settings = document.get(ALL_VALIDATORS_KEY)
        if isinstance(settings, Mapping):
            lines.append("# Settings shared by every rule")
            lines.extend(toml_table(ALL_VALIDATORS_KEY, settings))
            lines.append("")
        category: str | None = None
        for definition in self._registry.definitions():
            if definition.category != category:
                category = definition.category
                comment = CATEGORY_COMMENTS.get(category)
                if comment is not None:
                    lines.append(comment)
            lines.extend(toml_table(definition.identifier, self._rule_table(definition.identifier, document)))
            lines.append("")
        return "\n".join(lines)

    def _rule_table(self, identifier: str, document: Mapping[str, Any]) -> dict[str, Any]:
        table = dict(self._registry[identifier].defaults)
        user = document.get(identifier)
        if isinstance(user, Mapping):
            table.update(user)
        elif self._strict:
            table[ENABLED_KEY] = True
            table[SEVERITY_KEY] = Severity.ERROR.value
        return table

    def _read(self) -> Mapping[str, Any]:
        try:
            with self.path.open("rb") as handle:
                return tomllib.load(handle)
        except FileNotFoundError as exc:
            raise ConfigError(f"Configuration file not found: {self.path}") from exc
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise ConfigError(f"Cannot read configuration {self.path}: {exc}") from exc


__all__ = ["ConfigUpdater", "UpdateReport"]
