# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration sources (``.docqa.toml`` and ``pyproject.toml``) and loading."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Iterable, Mapping, MutableMapping
from pathlib import Path
from typing import Any, Final

from ..errors import CircularIncludeError, ConfigError
from ..rules.registry import RuleRegistry
from .models import Config, build_config
from .utils import expand_env, merge_sections
from .validator import ConfigValidator

DEFAULT_CONFIG_FILE: Final[str] = ".docqa.toml"
PYPROJECT_FILE: Final[str] = "pyproject.toml"
DEFAULT_INCLUDE_KEY: Final[str] = "include"
PYPROJECT_TOOL_KEY: Final[str] = "tool"
PYPROJECT_SECTION_KEY: Final[str] = "docqa"


class TomlConfigSource:
    """Load configuration data from a TOML document with include support."""

    def __init__(
        self,
        path: Path,
        *,
        include_key: str = DEFAULT_INCLUDE_KEY,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.path = path
        self._include_key = include_key
        self._env = env if env is not None else os.environ

    def load(self) -> Mapping[str, Any]:
        """Return the merged document rooted at :attr:`path`.

        Raises:
            ConfigError: If a document is missing, malformed or not a table.
            CircularIncludeError: If includes form a loop.
        """

        return self._load(self.path, ())

    def _load(self, path: Path, stack: tuple[Path, ...]) -> Mapping[str, Any]:
        resolved = path.resolve()
        if resolved in stack:
            include_chain = " -> ".join(str(entry) for entry in (*stack, resolved))
            raise CircularIncludeError(f"Circular include detected: {include_chain}")
        try:
            with resolved.open("rb") as handle:
                data = tomllib.load(handle)
        except FileNotFoundError as exc:
            raise ConfigError(f"Configuration file not found: {path}") from exc
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise ConfigError(f"Cannot read configuration {path}: {exc}") from exc
        if not isinstance(data, MutableMapping):
            raise ConfigError(f"Configuration at {path} must be a table")
        document: dict[str, Any] = dict(data)
        includes = document.pop(self._include_key, None)
        merged: dict[str, Any] = {}
        for include_path in self._coerce_includes(includes, resolved.parent):
            fragment = self._load(include_path, (*stack, resolved))
            merged = merge_sections(merged, fragment)
        merged = merge_sections(merged, document)
        return expand_env(merged, self._env)

    def _coerce_includes(self, raw: Any, base_dir: Path) -> Iterable[Path]:
        if raw is None:
            return []
        if isinstance(raw, str):
            return [self._resolve_path(Path(raw), base_dir)]
        if isinstance(raw, list):
            return [self._resolve_path(Path(str(item)), base_dir) for item in raw]
        raise ConfigError(f"Unsupported include declaration: {raw!r}")

    @staticmethod
    def _resolve_path(path: Path, base_dir: Path) -> Path:
        return path if path.is_absolute() else (base_dir / path)


class PyProjectConfigSource(TomlConfigSource):
    """Read configuration from ``[tool.docqa]`` within ``pyproject.toml``.

    Includes declared inside ``[tool.docqa]`` are resolved relative to the
    ``pyproject.toml`` directory.
    """

    def load(self) -> Mapping[str, Any]:
        data = super().load()
        tool_section = data.get(PYPROJECT_TOOL_KEY)
        if not isinstance(tool_section, Mapping):
            return {}
        section = tool_section.get(PYPROJECT_SECTION_KEY)
        if not isinstance(section, Mapping):
            return {}
        document = dict(section)
        includes = document.pop(DEFAULT_INCLUDE_KEY, None)
        merged: dict[str, Any] = {}
        base_dir = self.path.resolve().parent
        for include_path in self._coerce_includes(includes, base_dir):
            merged = merge_sections(merged, TomlConfigSource(include_path, env=self._env).load())
        return merge_sections(merged, document)


def discover_config(root: Path) -> TomlConfigSource | None:
    """Return the configuration source found in ``root``, if any.

    ``.docqa.toml`` wins over a ``[tool.docqa]`` table in ``pyproject.toml``.
    """

    candidate = root / DEFAULT_CONFIG_FILE
    if candidate.is_file():
        return TomlConfigSource(candidate)
    pyproject = root / PYPROJECT_FILE
    if pyproject.is_file():
        return PyProjectConfigSource(pyproject)
    return None


def resolve_source(root: Path, config_path: Path | None = None) -> TomlConfigSource | None:
    """Return the source for an explicit ``config_path`` or the one discovered in ``root``."""

    if config_path is None:
        return discover_config(root)
    if config_path.name == PYPROJECT_FILE:
        return PyProjectConfigSource(config_path)
    return TomlConfigSource(config_path)


def load_document(root: Path, config_path: Path | None = None) -> Mapping[str, Any]:
    """Return the raw configuration document for ``root``.

    Args:
        root: Project root searched when ``config_path`` is omitted.
        config_path: Explicit configuration file.

    Returns:
        Mapping[str, Any]: Merged document, empty when nothing was found.
    """

    source = resolve_source(root, config_path)
    return source.load() if source is not None else {}


def load_config(
    registry: RuleRegistry,
    *,
    root: Path,
    config_path: Path | None = None,
    overrides: Mapping[str, Mapping[str, Any]] | None = None,
) -> Config:
    """Load, validate and resolve the run configuration.

    Args:
        registry: Registry of known rules.
        root: Project root searched for configuration files.
        config_path: Explicit configuration file overriding discovery.
        overrides: In-code overrides applied above the document.

    Returns:
        Config: Resolved configuration.

    Raises:
        ConfigError: If the document is unreadable or invalid.
    """

    document = load_document(root, config_path)
    ConfigValidator(registry).validate(document)
    return build_config(registry, document, overrides)


__all__ = [
    "DEFAULT_CONFIG_FILE",
    "PYPROJECT_FILE",
    "PyProjectConfigSource",
    "TomlConfigSource",
    "discover_config",
    "load_config",
    "load_document",
    "resolve_source",
]
