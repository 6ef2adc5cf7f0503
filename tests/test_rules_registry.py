# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the rule table and its registry."""

from __future__ import annotations

import pytest

from docqa.errors import CombinationCycleError, UnknownRuleError
from docqa.parsers import LocationBase
from docqa.rules import default_registry
from docqa.rules.definition import ExecutionMode, ExternalQuery, RuleDefinition
from docqa.rules.registry import RuleRegistry


def _rule(identifier: str, *combines_with: str) -> RuleDefinition:
    return RuleDefinition(
        identifier=identifier,
        code=identifier.rsplit("/", 1)[-1],
        combines_with=combines_with,
        parser=LocationBase(),
        messages=lambda record: "",
        external=ExternalQuery(templates={"default": "true"}),
    )


def test_registry_preserves_registration_order() -> None:
    registry = RuleRegistry([_rule("Test/B"), _rule("Test/A")])

    assert list(registry) == ["Test/B", "Test/A"]
    assert [definition.identifier for definition in registry.definitions()] == ["Test/B", "Test/A"]


def test_duplicate_identifier_is_rejected() -> None:
    registry = RuleRegistry([_rule("Test/A")])

    with pytest.raises(ValueError, match="already registered"):
        registry.register(_rule("Test/A"))


def test_combination_cycle_is_rejected_and_rolled_back() -> None:
    registry = RuleRegistry([_rule("Test/A", "Test/B")])

    with pytest.raises(CombinationCycleError, match="Test/A -> Test/B -> Test/A"):
        registry.register(_rule("Test/B", "Test/A"))

    assert "Test/B" not in registry


def test_require_suggests_close_identifier() -> None:
    with pytest.raises(UnknownRuleError) as excinfo:
        default_registry().require("Tags/OptionTag")

    assert "Tags/OptionTags" in str(excinfo.value)


def test_definition_requires_a_strategy_and_category() -> None:
    with pytest.raises(ValueError):
        RuleDefinition(identifier="Test/None", code="None", parser=LocationBase(), messages=lambda record: "")
    with pytest.raises(ValueError):
        _rule("NoCategory")


def test_message_falls_back_to_code() -> None:
    definition = _rule("Test/Quiet")

    assert definition.modes == (ExecutionMode.EXTERNAL,)
    assert definition.default_enabled is True
    assert definition.build_message(definition.parser.call("a.rb:1: X")[0]) == "Quiet detected"


def test_builtin_catalogue_has_fifteen_rules() -> None:
    registry = default_registry()

    assert len(registry) == 15
    assert {definition.category for definition in registry.definitions()} == {"Documentation", "Tags", "Warnings"}
