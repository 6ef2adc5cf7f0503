# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Built-in rule catalogue."""

from __future__ import annotations

from functools import lru_cache

from . import documentation, tags, warnings
from .definition import ExecutionMode, ExternalQuery, RuleDefinition
from .registry import RuleRegistry

BUILTIN_RULES: tuple[RuleDefinition, ...] = (*documentation.RULES, *tags.RULES, *warnings.RULES)


@lru_cache(maxsize=1)
def default_registry() -> RuleRegistry:
    """Return the registry holding every built-in rule in execution order."""

    return RuleRegistry(BUILTIN_RULES)


__all__ = [
    "BUILTIN_RULES",
    "ExecutionMode",
    "ExternalQuery",
    "RuleDefinition",
    "RuleRegistry",
    "default_registry",
]
