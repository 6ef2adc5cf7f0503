# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for rule results, combination and the aggregate verdict."""

from __future__ import annotations

import pytest

from docqa.config import build_config
from docqa.models import OffenseRecord
from docqa.parsers import LocationBase
from docqa.results import Aggregate, Result, RuleFailure
from docqa.rules import default_registry
from docqa.rules.definition import ExternalQuery, RuleDefinition
from docqa.rules.registry import RuleRegistry
from docqa.severity import Severity

OBJECTS = "Documentation/UndocumentedObjects"
BOOLEANS = "Documentation/UndocumentedBooleanMethods"
ARGUMENTS = "Documentation/UndocumentedMethodArguments"
UNKNOWN_TAG = "Warnings/UnknownTag"
REDUNDANT = "Tags/RedundantParamDescription"


def _result(identifier: str, *records: OffenseRecord, overrides: dict | None = None) -> Result:
    registry = default_registry()
    config = build_config(registry, overrides=overrides)
    return Result(registry[identifier], config.rule(identifier), records)


def _record(name: str, line: int, location: str = "lib/a.rb", **fields: object) -> OffenseRecord:
    return OffenseRecord(name=name, location=location, line=line, **fields)


def test_result_builds_offenses_with_configured_severity() -> None:
    result = _result(ARGUMENTS, _record("Foo#bar", 3), overrides={ARGUMENTS: {"Severity": "error"}})

    (offense,) = result.offenses
    assert offense.rule == ARGUMENTS
    assert offense.code == "UndocumentedMethodArgument"
    assert offense.kind == "method"
    assert offense.severity is Severity.ERROR
    assert offense.message == "The `Foo#bar` method is missing documentation for some of the arguments."
    assert offense.render() == (
        "lib/a.rb:3: [error] Documentation/UndocumentedMethodArguments: "
        "The `Foo#bar` method is missing documentation for some of the arguments."
    )


def test_record_severity_overrides_rule_severity() -> None:
    result = _result(ARGUMENTS, _record("Foo#bar", 3, severity=Severity.CONVENTION))

    assert result.offenses[0].severity is Severity.CONVENTION


def test_identical_records_stay_distinct() -> None:
    record = _record("Foo#bar", 3)
    result = _result(ARGUMENTS, record, record)

    assert result.count == 2


def test_missing_fields_fall_back_to_generic_message() -> None:
    result = _result(UNKNOWN_TAG, OffenseRecord())

    (offense,) = result.offenses
    assert offense.message == "Unknown tag detected"
    assert offense.line == 0
    assert offense.location is None


def test_messages_are_deterministic() -> None:
    record = _record("Foo#bar", 3)
    first = _result(ARGUMENTS, record).offenses[0].message
    second = _result(ARGUMENTS, record).offenses[0].message

    assert first == second


def test_combination_merges_target_into_combiner() -> None:
    aggregate = Aggregate()
    aggregate.add(_result(OBJECTS, _record("Foo", 1), _record("Foo#ready?", 5)))
    aggregate.add(_result(BOOLEANS, _record("Foo#ready?", 5), _record("Foo#done?", 9)))
    aggregate.finalize()

    identifiers = [result.identifier for result in aggregate.results]
    assert identifiers == [OBJECTS]
    names = [offense.record.name for offense in aggregate.offenses]
    assert names == ["Foo", "Foo#ready?", "Foo#done?"]
    assert all(offense.rule == OBJECTS for offense in aggregate.offenses)


def test_combination_with_absent_target_is_a_noop() -> None:
    aggregate = Aggregate()
    aggregate.add(_result(OBJECTS, _record("Foo", 1)))
    aggregate.add(_result(ARGUMENTS, _record("Foo#bar", 2)))

    assert [result.identifier for result in aggregate.results] == [OBJECTS, ARGUMENTS]
    assert aggregate.count == 2


def test_finalize_is_idempotent() -> None:
    aggregate = Aggregate()
    aggregate.add(_result(OBJECTS, _record("Foo", 1)))
    aggregate.add(_result(BOOLEANS, _record("Foo#ok?", 2)))

    first = aggregate.finalize().offenses
    second = aggregate.finalize().offenses

    assert [offense.record for offense in first] == [offense.record for offense in second]
    assert len(second) == 2


def test_adding_error_offense_flips_severity_and_removal_restores_clean() -> None:
    aggregate = Aggregate()
    aggregate.add(_result(REDUNDANT))
    assert aggregate.clean
    assert aggregate.severity is None

    aggregate.add(_result(UNKNOWN_TAG, _record("x", 4)))
    assert not aggregate.clean
    assert aggregate.severity is Severity.ERROR

    aggregate.remove(UNKNOWN_TAG)
    assert aggregate.clean
    assert aggregate.severity is None


def test_highest_severity_wins() -> None:
    aggregate = Aggregate()
    aggregate.add(_result(REDUNDANT, _record("Foo#a", 1)))
    aggregate.add(_result(ARGUMENTS, _record("Foo#b", 2)))

    assert aggregate.severity is Severity.WARNING


def test_statistics_include_every_severity() -> None:
    aggregate = Aggregate()
    aggregate.add(_result(ARGUMENTS, _record("Foo#b", 2), _record("Foo#c", 3)))

    assert aggregate.statistics == {"convention": 0, "warning": 2, "error": 0}


@pytest.mark.parametrize(
    ("fail_on", "expected"),
    [("error", 0), ("warning", 1), ("convention", 1), ("never", 0)],
)
def test_exit_code_follows_threshold(fail_on: str, expected: int) -> None:
    aggregate = Aggregate()
    aggregate.add(_result(ARGUMENTS, _record("Foo#b", 2)))

    assert aggregate.exit_code(fail_on) == expected


def test_error_offense_fails_default_threshold() -> None:
    aggregate = Aggregate()
    aggregate.add(_result(UNKNOWN_TAG, _record("x", 4)))

    assert aggregate.exit_code() == 1


def test_errored_rules_fail_the_run_unless_disabled() -> None:
    aggregate = Aggregate()
    aggregate.add_failure(RuleFailure(rule=UNKNOWN_TAG, reason="timed out", exit_status=124))

    assert aggregate.clean
    assert aggregate.failures[0].rule == UNKNOWN_TAG
    assert aggregate.exit_code() == 1
    assert aggregate.exit_code(fail_on_errored=False) == 0


def _chained_results(*records_by_rule: tuple[str, tuple[str, ...], OffenseRecord]) -> list[Result]:
    registry = RuleRegistry(
        RuleDefinition(
            identifier=identifier,
            code=identifier.rsplit("/", 1)[-1],
            combines_with=targets,
            parser=LocationBase(),
            messages=lambda record: "",
            external=ExternalQuery(templates={"default": "true"}),
        )
        for identifier, targets, _ in records_by_rule
    )
    config = build_config(registry)
    return [
        Result(registry[identifier], config.rule(identifier), [record]) for identifier, _, record in records_by_rule
    ]


def test_chained_combination_keeps_every_record() -> None:
    aggregate = Aggregate()
    for result in _chained_results(
        ("Test/One", ("Test/Two",), _record("one", 1)),
        ("Test/Two", ("Test/Three",), _record("two", 2)),
        ("Test/Three", (), _record("three", 3)),
    ):
        aggregate.add(result)

    assert [result.identifier for result in aggregate.results] == ["Test/One"]
    assert [offense.record.name for offense in aggregate.offenses] == ["one", "two", "three"]
    assert all(offense.rule == "Test/One" for offense in aggregate.offenses)


def test_shared_target_reached_twice_is_folded_once() -> None:
    aggregate = Aggregate()
    for result in _chained_results(
        ("Test/One", ("Test/Two", "Test/Three"), _record("one", 1)),
        ("Test/Two", ("Test/Three",), _record("two", 2)),
        ("Test/Three", (), _record("three", 3)),
    ):
        aggregate.add(result)

    assert [offense.record.name for offense in aggregate.offenses] == ["one", "two", "three"]
