# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Declarative rule definitions shared by every execution strategy."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Final, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..collector import ResultCollector
from ..config.models import ENABLED_KEY, SEVERITY_KEY, RuleConfig, freeze
from ..docs import DocObject, Visibility
from ..models import LINE_KIND, OffenseKind, OffenseRecord
from ..parsers.base import Base
from ..severity import Severity

InProcessQuery = Callable[[DocObject, ResultCollector, RuleConfig], None]
MessagesBuilder = Callable[[OffenseRecord], str]
# Post-parse step; receives the project root that relative locations refer to.
Refinement = Callable[[Sequence[OffenseRecord], RuleConfig, Path], Sequence[OffenseRecord]]
TemplateSelector = Callable[[RuleConfig], str]

DEFAULT_TEMPLATE: Final[str] = "default"


class ExecutionMode(str, Enum):
    """Strategies a validator can use to produce raw output."""

    IN_PROCESS = "in_process"
    EXTERNAL = "external"


def _default_selector(config: RuleConfig) -> str:
    del config
    return DEFAULT_TEMPLATE


class ExternalQuery(BaseModel):
    """Static description of how a rule runs through the external tool.

    Query text always comes from :attr:`templates`; configuration can only
    choose which template is used through :attr:`selector`.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    subcommand: Literal["list", "stats"] = "list"
    templates: Mapping[str, str] = Field(default_factory=lambda: MappingProxyType({}))
    selector: TemplateSelector = _default_selector
    accepted_exit_codes: tuple[int, ...] = (0,)
    include_stderr: bool = False

    @field_validator("templates", mode="after")
    @classmethod
    def _freeze_templates(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(value))

    def query_for(self, config: RuleConfig) -> str | None:
        """Return the template chosen for ``config`` or ``None`` when queries are unused.

        Raises:
            KeyError: If the selector names a template that does not exist.
        """

        if not self.templates:
            return None
        return self.templates[self.selector(config)]


class RuleDefinition(BaseModel):
    """Single entry of the rule table.

    A definition carries everything needed to configure, run, parse and report
    one rule: frozen defaults, the static ``combines_with`` list, the parser
    shared by both strategies and the message builder.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    identifier: str
    code: str
    description: str = ""
    kind: OffenseKind = LINE_KIND
    defaults: Mapping[str, Any] = Field(default_factory=lambda: MappingProxyType({}))
    combines_with: tuple[str, ...] = Field(default_factory=tuple)
    parser: Base
    messages: MessagesBuilder
    in_process_query: InProcessQuery | None = None
    visibility: Visibility = "public"
    external: ExternalQuery | None = None
    refine: Refinement | None = None

    @field_validator("defaults", mode="after")
    @classmethod
    def _freeze_defaults(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return freeze(value)

    @model_validator(mode="after")
    def _require_strategy(self) -> RuleDefinition:
        if self.in_process_query is None and self.external is None:
            raise ValueError(f"{self.identifier} declares no execution strategy")
        if "/" not in self.identifier:
            raise ValueError(f"Rule identifier '{self.identifier}' must look like 'Category/Name'")
        return self

    @property
    def category(self) -> str:
        """Return the category prefix of the identifier (``Documentation`` etc.)."""

        return self.identifier.split("/", 1)[0]

    @property
    def modes(self) -> tuple[ExecutionMode, ...]:
        """Return the execution modes this rule supports, in-process first."""

        modes: list[ExecutionMode] = []
        if self.in_process_query is not None:
            modes.append(ExecutionMode.IN_PROCESS)
        if self.external is not None:
            modes.append(ExecutionMode.EXTERNAL)
        return tuple(modes)

    @property
    def default_enabled(self) -> bool:
        """Return whether the rule runs when the user does not configure it."""

        return bool(self.defaults.get(ENABLED_KEY, True))

    @property
    def default_severity(self) -> Severity:
        """Return the severity used when the user does not override it."""

        return Severity.parse(self.defaults.get(SEVERITY_KEY, Severity.WARNING.value))

    def build_message(self, record: OffenseRecord) -> str:
        """Return the message for ``record``, falling back to a generic phrase."""

        message = self.messages(record)
        if message:
            return message
        return f"{self.code} detected"


__all__ = [
    "DEFAULT_TEMPLATE",
    "ExecutionMode",
    "ExternalQuery",
    "InProcessQuery",
    "MessagesBuilder",
    "Refinement",
    "RuleDefinition",
    "TemplateSelector",
]
