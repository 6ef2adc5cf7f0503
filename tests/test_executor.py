# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for rule orchestration through :class:`docqa.executor.Executor`."""

from __future__ import annotations

import time
from collections.abc import Collection, Iterator, Sequence
from pathlib import Path
from subprocess import CompletedProcess

import pytest

from docqa.config import build_config
from docqa.docs import DocObject, DocRegistry
from docqa.executor import Executor
from docqa.rules import default_registry

SAMPLE = "lib/sample.rb"
OBJECTS = "Documentation/UndocumentedObjects"


class _SpyDocs(DocRegistry):
    __slots__ = ("traversals",)

    def __init__(self, objects: Sequence[DocObject], *, root: Path) -> None:
        super().__init__(objects, root=root)
        self.traversals: list[str] = []

    def iter_objects(self, files: Collection[Path | str] | None = None, *, visibility="public") -> Iterator[DocObject]:
        self.traversals.append(visibility)
        return super().iter_objects(files, visibility=visibility)


def _only(*identifiers: str, **settings: object) -> dict[str, dict[str, object]]:
    overrides: dict[str, dict[str, object]] = {
        identifier: {"Enabled": identifier in identifiers} for identifier in default_registry()
    }
    if settings:
        overrides["AllValidators"] = dict(settings)
    return overrides


def _routing_runner(*, list_output: str = "", stats_status: int = 0, delay_query: str | None = None):
    calls: list[list[str]] = []

    def runner(args, *, options=None):
        del options
        calls.append(list(args))
        if delay_query is not None and delay_query in args:
            time.sleep(0.05)
        if "stats" in args:
            return CompletedProcess(args, stats_status, "", "stats failed" if stats_status else "")
        return CompletedProcess(args, 0, list_output, "")

    runner.calls = calls  # type: ignore[attr-defined]
    return runner


def test_disabled_rules_never_execute(tmp_path: Path, fake_runner, sample_docs: DocRegistry) -> None:
    docs = _SpyDocs(list(sample_docs), root=tmp_path)
    config = build_config(default_registry(), overrides=_only())

    aggregate = Executor(default_registry(), config, docs=docs, runner=fake_runner).run([SAMPLE])

    assert fake_runner.calls == []
    assert docs.traversals == []
    assert aggregate.results == ()
    assert aggregate.clean
    assert aggregate.exit_code() == 0


def test_only_enabled_rule_traverses_the_graph(tmp_path: Path, fake_runner, sample_docs: DocRegistry) -> None:
    docs = _SpyDocs(list(sample_docs), root=tmp_path)
    config = build_config(default_registry(), overrides=_only(OBJECTS))

    aggregate = Executor(default_registry(), config, docs=docs, runner=fake_runner).run([SAMPLE])

    assert fake_runner.calls == []
    assert docs.traversals == ["public"]
    assert [result.identifier for result in aggregate.results] == [OBJECTS]
    assert [offense.record.name for offense in aggregate.offenses] == ["Sample"]


def test_failing_rule_does_not_affect_siblings() -> None:
    runner = _routing_runner(list_output=f"{SAMPLE}:3: Sample#run\n", stats_status=2)
    config = build_config(default_registry(), overrides=_only(OBJECTS, "Warnings/UnknownTag"))

    aggregate = Executor(default_registry(), config, runner=runner, use_color=False, use_emoji=False).run([SAMPLE])

    assert [failure.rule for failure in aggregate.failures] == ["Warnings/UnknownTag"]
    assert aggregate.failures[0].exit_status == 2
    assert [result.identifier for result in aggregate.results] == [OBJECTS]
    assert aggregate.count == 1
    assert aggregate.exit_code("never") == 1
    assert aggregate.exit_code("never", fail_on_errored=False) == 0


def test_in_process_rules_without_docs_are_reported_as_errored() -> None:
    config = build_config(default_registry(), overrides=_only("Tags/MeaninglessTag"))

    aggregate = Executor(default_registry(), config, use_color=False, use_emoji=False).run([SAMPLE])

    assert [failure.rule for failure in aggregate.failures] == ["Tags/MeaninglessTag"]
    assert "documentation database" in aggregate.failures[0].reason


@pytest.mark.parametrize("jobs", [1, 4])
def test_results_follow_rule_order_regardless_of_completion(jobs: int) -> None:
    runner = _routing_runner(list_output=f"{SAMPLE}:3: Sample#run\n", delay_query="docstring.all.empty?")
    enabled = [
        OBJECTS,
        "Documentation/UndocumentedBooleanMethods",
        "Documentation/UndocumentedMethodArguments",
        "Warnings/UnknownTag",
        "Warnings/DuplicatedParameterName",
    ]
    config = build_config(default_registry(), overrides=_only(*enabled, Jobs=jobs))

    aggregate = Executor(default_registry(), config, runner=runner).run([SAMPLE])

    assert [result.identifier for result in aggregate.results] == [
        OBJECTS,
        "Documentation/UndocumentedMethodArguments",
        "Warnings/UnknownTag",
        "Warnings/DuplicatedParameterName",
    ]
    objects = aggregate.results[0]
    assert objects.count == 1
    assert len(runner.calls) == len(enabled)


@pytest.mark.parametrize("jobs", [1, 2])
def test_unwritable_docs_dir_is_isolated_to_the_rule(tmp_path: Path, jobs: int) -> None:
    blocker = tmp_path / "docs"
    blocker.write_text("", encoding="utf-8")
    runner = _routing_runner(list_output=f"{SAMPLE}:3: Sample#run\n")
    config = build_config(
        default_registry(),
        overrides=_only(OBJECTS, "Warnings/UnknownTag", DocsDir=str(blocker), Jobs=jobs),
    )

    aggregate = Executor(default_registry(), config, runner=runner, use_color=False, use_emoji=False).run([SAMPLE])

    assert [failure.rule for failure in aggregate.failures] == [OBJECTS, "Warnings/UnknownTag"]
    assert all(failure.reason.startswith("cannot prepare run:") for failure in aggregate.failures)
    assert runner.calls == []


def test_unexpected_errors_become_rule_failures() -> None:
    def broken(args, *, options=None):
        raise RuntimeError("runner exploded")

    config = build_config(default_registry(), overrides=_only(OBJECTS))

    aggregate = Executor(default_registry(), config, runner=broken, use_color=False, use_emoji=False).run([SAMPLE])

    assert aggregate.results == ()
    assert [failure.rule for failure in aggregate.failures] == [OBJECTS]
    assert aggregate.failures[0].reason == "unexpected RuntimeError: runner exploded"
    assert aggregate.failures[0].exit_status is None
