# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Structural validation of configuration documents before they are resolved."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Final

from ..errors import ConfigError
from ..severity import VALID_FAIL_ON, VALID_SEVERITIES
from .models import ALL_VALIDATORS_KEY, COMMON_RULE_KEYS, ENABLED_KEY, EXCLUDE_KEY, EXTRA_ARGS_KEY, SEVERITY_KEY
from .utils import suggest

if TYPE_CHECKING:
    from ..rules.registry import RuleRegistry

GLOBAL_KEYS: Final[frozenset[str]] = frozenset(
    {
        "DocsDir",
        "Exclude",
        "ExtraArgs",
        "FailOnErrored",
        "FailOnSeverity",
        "InProcess",
        "Jobs",
        "Timeout",
        "Tool",
    }
)
_LIST_KEYS: Final[tuple[str, ...]] = (EXCLUDE_KEY, EXTRA_ARGS_KEY)
_ERROR_HEADER: Final[str] = "Invalid configuration detected:"


class ConfigValidator:
    """Collect every structural problem of a configuration document.

    All problems are reported together in a single :class:`ConfigError` so
    users can fix the document in one pass.
    """

    def __init__(self, registry: RuleRegistry) -> None:
        self._registry = registry

    def validate(self, document: Mapping[str, Any]) -> None:
        """Validate ``document``.

        Args:
            document: Parsed configuration keyed by rule identifier.

        Raises:
            ConfigError: If any problem was found.
        """

        errors = self.problems(document)
        if errors:
            raise ConfigError("\n".join([_ERROR_HEADER, *(f"  {line}" for line in errors)]))

    def problems(self, document: Mapping[str, Any]) -> list[str]:
        """Return the problems found in ``document`` as message lines."""

        errors: list[str] = []
        for key, value in document.items():
            if key == ALL_VALIDATORS_KEY:
                errors.extend(self._check_global(value))
            elif key not in self._registry:
                errors.append(f"Unknown validator: '{key}'")
                errors.append(self._suggestion(key))
            elif not isinstance(value, Mapping):
                errors.append(
                    f"Invalid configuration for validator '{key}': expected a table, got {type(value).__name__}"
                )
            else:
                errors.extend(self._check_rule(key, value))
        return errors

    def _suggestion(self, key: str) -> str:
        candidate = suggest(key, self._registry.keys())
        if candidate is not None:
            return f"  Did you mean: {candidate}?"
        return "  Run `docqa rules` to see all available validators"

    def _check_global(self, value: Any) -> list[str]:
        if not isinstance(value, Mapping):
            return [f"Invalid {ALL_VALIDATORS_KEY}: must be a table, got {type(value).__name__}"]
        errors: list[str] = []
        for key in value:
            if key not in GLOBAL_KEYS:
                errors.append(f"Unknown configuration key for {ALL_VALIDATORS_KEY}: '{key}'")
                errors.append(f"  Valid keys: {', '.join(sorted(GLOBAL_KEYS))}")
        fail_on = value.get("FailOnSeverity")
        if fail_on is not None and str(fail_on).lower() not in VALID_FAIL_ON:
            errors.append(f"Invalid FailOnSeverity: '{fail_on}'")
            errors.append(f"  Valid values: {', '.join(VALID_FAIL_ON)}")
        for flag in ("InProcess", "FailOnErrored"):
            if flag in value and not isinstance(value[flag], bool):
                errors.append(f"Invalid {flag} in {ALL_VALIDATORS_KEY}: '{value[flag]}'")
                errors.append("  Must be true or false")
        jobs = value.get("Jobs")
        if jobs is not None and (isinstance(jobs, bool) or not isinstance(jobs, int) or jobs < 1):
            errors.append(f"Invalid Jobs: '{jobs}'")
            errors.append("  Must be a positive integer")
        timeout = value.get("Timeout")
        if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0):
            errors.append(f"Invalid Timeout: '{timeout}'")
            errors.append("  Must be a positive number of seconds")
        for key in _LIST_KEYS:
            if key in value and not isinstance(value[key], list):
                errors.append(
                    f"Invalid {key} in {ALL_VALIDATORS_KEY}: must be an array, got {type(value[key]).__name__}"
                )
        return errors

    def _check_rule(self, identifier: str, table: Mapping[str, Any]) -> list[str]:
        errors: list[str] = []
        enabled = table.get(ENABLED_KEY)
        if enabled is not None and not isinstance(enabled, bool):
            errors.append(f"Invalid Enabled value for {identifier}: '{enabled}'")
            errors.append("  Must be true or false")
        severity = table.get(SEVERITY_KEY)
        if severity is not None and str(severity).lower() not in VALID_SEVERITIES:
            errors.append(f"Invalid Severity for {identifier}: '{severity}'")
            errors.append(f"  Valid values: {', '.join(VALID_SEVERITIES)}")
            candidate = suggest(str(severity).lower(), VALID_SEVERITIES)
            if candidate is not None:
                errors.append(f"  Did you mean: {candidate}?")
        for key in _LIST_KEYS:
            if key in table and not isinstance(table[key], list):
                errors.append(f"Invalid {key} for {identifier}: must be an array, got {type(table[key]).__name__}")

        valid_keys = sorted(COMMON_RULE_KEYS | set(self._registry[identifier].defaults))
        for key in table:
            if key not in valid_keys:
                errors.append(f"Unknown configuration key for {identifier}: '{key}'")
                errors.append(f"  Valid keys: {', '.join(valid_keys)}")
        return errors


__all__ = ["ConfigValidator", "GLOBAL_KEYS"]
