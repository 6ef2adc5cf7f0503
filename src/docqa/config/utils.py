# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Helpers shared by configuration loading and validation."""

from __future__ import annotations

import difflib
import json
import re
from collections.abc import Iterable, Mapping
from datetime import date, time
from typing import Any, Final

_ENV_VAR_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$(\w+)|\$\{([^}]+)\}")
_BARE_KEY: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9_-]+$")


def merge_sections(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge two configuration documents one table deep.

    Tables present in both documents are merged key by key. Values inside a
    table, lists and nested tables included, are replaced wholesale.

    Args:
        base: Lower-precedence document.
        override: Higher-precedence document.

    Returns:
        dict[str, Any]: Merged document.
    """

    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = {**current, **value}
        else:
            result[key] = value
    return result


def expand_env(data: Mapping[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    """Return ``data`` with ``$VAR`` and ``${VAR}`` references expanded from ``env``."""

    return {key: _expand_env_value(value, env) for key, value in data.items()}


def _expand_env_value(value: Any, env: Mapping[str, str]) -> Any:
    if isinstance(value, str):
        return _expand_env_string(value, env)
    if isinstance(value, Mapping):
        return {k: _expand_env_value(v, env) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env_value(v, env) for v in value]
    return value


def _expand_env_string(value: str, env: Mapping[str, str]) -> str:
    def _replace(match: re.Match[str]) -> str:
        key = match.group(1) or match.group(2)
        if key is None:
            return match.group(0)
        return env.get(key, match.group(0))

    return _ENV_VAR_PATTERN.sub(_replace, value)


def suggest(name: str, candidates: Iterable[str]) -> str | None:
    """Return the closest entry of ``candidates`` to ``name``, if any is close enough."""

    matches = difflib.get_close_matches(name, list(candidates), n=1, cutoff=0.6)
    return matches[0] if matches else None


def toml_key(key: str) -> str:
    """Return ``key`` as a TOML key, quoted unless it is a bare key."""

    return key if _BARE_KEY.match(key) else json.dumps(key, ensure_ascii=False)


def toml_value(value: Any) -> str:
    """Render ``value`` as an inline TOML value.

    Strings use basic-string quoting (JSON escapes are valid TOML escapes),
    sequences become arrays and mappings become inline tables.

    Raises:
        TypeError: If ``value`` has no TOML representation.
    """

    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, Mapping):
        items = ", ".join(f"{toml_key(str(key))} = {toml_value(item)}" for key, item in value.items())
        return f"{{ {items} }}" if items else "{}"
    if isinstance(value, (list, tuple)):
        return f"[{', '.join(toml_value(item) for item in value)}]"
    raise TypeError(f"Cannot render {type(value).__name__} as TOML")


def toml_table(name: str, values: Mapping[str, Any]) -> list[str]:
    """Return the lines of a ``[name]`` table holding ``values``."""

    return [f"[{toml_key(name)}]", *(f"{toml_key(key)} = {toml_value(value)}" for key, value in values.items())]


__all__ = ["expand_env", "merge_sections", "suggest", "toml_key", "toml_table", "toml_value"]
