# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models for rules and global settings."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import ConfigError, UnknownRuleError
from ..severity import VALID_FAIL_ON, Severity
from .utils import suggest

if TYPE_CHECKING:
    from ..rules.definition import RuleDefinition
    from ..rules.registry import RuleRegistry

ALL_VALIDATORS_KEY: Final[str] = "AllValidators"
ENABLED_KEY: Final[str] = "Enabled"
SEVERITY_KEY: Final[str] = "Severity"
EXCLUDE_KEY: Final[str] = "Exclude"
EXTRA_ARGS_KEY: Final[str] = "ExtraArgs"
COMMON_RULE_KEYS: Final[frozenset[str]] = frozenset({ENABLED_KEY, SEVERITY_KEY, EXCLUDE_KEY, EXTRA_ARGS_KEY})

DEFAULT_TOOL: Final[str] = "yard"
DEFAULT_TIMEOUT: Final[float] = 300.0


def freeze(value: Any) -> Any:
    """Return a read-only copy of ``value`` (lists become tuples, tables become proxies)."""

    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    return value


class GlobalSettings(BaseModel):
    """Settings from the ``AllValidators`` table that apply to every rule."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    exclude: tuple[str, ...] = Field(default_factory=tuple, alias="Exclude")
    extra_args: tuple[str, ...] = Field(default_factory=tuple, alias="ExtraArgs")
    fail_on_severity: str = Field(default=Severity.ERROR.value, alias="FailOnSeverity")
    in_process: bool = Field(default=True, alias="InProcess")
    jobs: int = Field(default=1, ge=1, alias="Jobs")
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, alias="Timeout")
    tool: str = Field(default=DEFAULT_TOOL, min_length=1, alias="Tool")
    docs_dir: Path | None = Field(default=None, alias="DocsDir")
    fail_on_errored: bool = Field(default=True, alias="FailOnErrored")

    @field_validator("fail_on_severity", mode="before")
    @classmethod
    def _normalise_fail_on(cls, value: object) -> str:
        label = str(value).strip().lower()
        if label not in VALID_FAIL_ON:
            raise ValueError(f"FailOnSeverity must be one of {', '.join(VALID_FAIL_ON)}")
        return label


class RuleConfig(BaseModel):
    """Runtime configuration of one rule: defaults merged with user overrides."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    enabled: bool = True
    severity: Severity = Severity.WARNING
    options: Mapping[str, Any] = Field(default_factory=lambda: MappingProxyType({}))
    combines_with: tuple[str, ...] = Field(default_factory=tuple)
    exclude: tuple[str, ...] = Field(default_factory=tuple)
    extra_args: tuple[str, ...] = Field(default_factory=tuple)

    @field_validator("options", mode="after")
    @classmethod
    def _freeze_options(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return freeze(value)

    @field_validator("severity", mode="before")
    @classmethod
    def _parse_severity(cls, value: object) -> Severity:
        if isinstance(value, (str, Severity)):
            return Severity.parse(value)
        raise ValueError(f"Severity must be a string, got {type(value).__name__}")

    def option(self, key: str, default: Any = None) -> Any:
        """Return the rule-specific option ``key`` or ``default``."""

        return self.options.get(key, default)


class Config(BaseModel):
    """Complete run configuration: global settings plus one entry per rule."""

    model_config = ConfigDict(frozen=True)

    settings: GlobalSettings = Field(default_factory=GlobalSettings)
    rules: tuple[RuleConfig, ...] = Field(default_factory=tuple)

    def rule(self, identifier: str) -> RuleConfig:
        """Return the configuration for ``identifier``.

        Raises:
            UnknownRuleError: If no rule with that identifier is configured.
        """

        for rule in self.rules:
            if rule.identifier == identifier:
                return rule
        raise UnknownRuleError(identifier, suggest(identifier, (rule.identifier for rule in self.rules)))

    def enabled_rules(self) -> tuple[RuleConfig, ...]:
        """Return the enabled rules in execution order."""

        return tuple(rule for rule in self.rules if rule.enabled)


def resolve_rule_config(definition: RuleDefinition, *layers: Mapping[str, Any]) -> RuleConfig:
    """Merge ``layers`` over the defaults of ``definition``.

    Later layers win key by key; values are replaced wholesale.

    Args:
        definition: Rule providing the defaults and ``combines_with`` list.
        *layers: User and in-code override tables, lowest precedence first.

    Returns:
        RuleConfig: Resolved, read-only rule configuration.

    Raises:
        ConfigError: If a merged value has the wrong type.
    """

    merged: dict[str, Any] = dict(definition.defaults)
    for layer in layers:
        merged.update(layer)
    payload = {
        "identifier": definition.identifier,
        "enabled": merged.get(ENABLED_KEY, True),
        "severity": merged.get(SEVERITY_KEY, Severity.WARNING.value),
        "exclude": merged.get(EXCLUDE_KEY, ()),
        "extra_args": merged.get(EXTRA_ARGS_KEY, ()),
        "combines_with": definition.combines_with,
        "options": {key: value for key, value in merged.items() if key not in COMMON_RULE_KEYS},
    }
    try:
        return RuleConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration for {definition.identifier}: {exc}") from exc


def build_config(
    registry: RuleRegistry,
    document: Mapping[str, Any] | None = None,
    overrides: Mapping[str, Mapping[str, Any]] | None = None,
) -> Config:
    """Build the run configuration from a loaded document and in-code overrides.

    Args:
        registry: Registry supplying rule definitions in execution order.
        document: Parsed configuration document keyed by rule identifier.
        overrides: Highest-precedence tables keyed by rule identifier or
            ``AllValidators``.

    Returns:
        Config: Immutable run configuration.

    Raises:
        ConfigError: If settings have invalid values.
        UnknownRuleError: If ``overrides`` names an unregistered rule.
    """

    source = dict(document or {})
    extra = dict(overrides or {})
    for identifier in extra:
        if identifier != ALL_VALIDATORS_KEY and identifier not in registry:
            raise UnknownRuleError(identifier, suggest(identifier, registry.keys()))

    global_table = {**_table(source, ALL_VALIDATORS_KEY), **_table(extra, ALL_VALIDATORS_KEY)}
    try:
        settings = GlobalSettings.model_validate(global_table)
    except ValidationError as exc:
        raise ConfigError(f"Invalid {ALL_VALIDATORS_KEY} settings: {exc}") from exc

    rules = tuple(
        resolve_rule_config(
            definition,
            _table(source, definition.identifier),
            _table(extra, definition.identifier),
        )
        for definition in registry.definitions()
    )
    return Config(settings=settings, rules=rules)


def _table(document: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = document.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"{key} must be a table")
    return value


__all__ = [
    "ALL_VALIDATORS_KEY",
    "COMMON_RULE_KEYS",
    "Config",
    "ENABLED_KEY",
    "EXCLUDE_KEY",
    "EXTRA_ARGS_KEY",
    "GlobalSettings",
    "RuleConfig",
    "SEVERITY_KEY",
    "build_config",
    "freeze",
    "resolve_rule_config",
]
