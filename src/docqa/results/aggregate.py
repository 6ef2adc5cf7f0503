# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Run-wide aggregation of rule results, combination and the pass/fail verdict."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from ..models import Offense, OffenseRecord
from ..severity import NEVER_FAIL, Severity, max_severity, meets_threshold
from .base import Result

SUCCESS_EXIT: Final[int] = 0
FAILURE_EXIT: Final[int] = 1


@dataclass(frozen=True, slots=True)
class RuleFailure:
    """A rule that could not produce output (reported as errored, not as offenses)."""

    rule: str
    reason: str
    exit_status: int | None = None


def _fold(result: Result, by_identifier: dict[str, Result], visited: set[str]) -> list[OffenseRecord]:
    records: list[OffenseRecord] = list(result.records)
    for target in result.config.combines_with:
        if target in visited or target not in by_identifier:
            continue
        visited.add(target)
        records.extend(_fold(by_identifier[target], by_identifier, visited))
    return records


def combine(results: list[Result]) -> list[Result]:
    """Merge results according to each rule's ``combines_with`` declaration.

    The combining rule's records come first, followed depth-first by those of
    its targets and of their own targets. Target records that repeat an
    earlier record's ``(location, line, name)`` are dropped, and target results
    disappear from the output. Absent targets are ignored.

    Args:
        results: Results in execution order.

    Returns:
        list[Result]: Results after combination, in execution order.
    """

    by_identifier = {result.identifier: result for result in results}
    consumed: set[str] = set()
    for result in results:
        for target in result.config.combines_with:
            if target in by_identifier and target != result.identifier:
                consumed.add(target)

    combined: list[Result] = []
    for result in results:
        if result.identifier in consumed:
            continue
        visited = {result.identifier}
        folded = _fold(result, by_identifier, visited)
        if len(visited) == 1:
            combined.append(result)
            continue
        records: list[OffenseRecord] = list(result.records)
        seen = {record.identity() for record in records}
        for record in folded[len(records) :]:
            if record.identity() in seen:
                continue
            seen.add(record.identity())
            records.append(record)
        combined.append(Result(result.definition, result.config, records))
    return combined


class Aggregate:
    """Collect every rule result of a run and compute the overall verdict.

    Results keep rule execution order. Combination happens in
    :meth:`finalize`, which runs implicitly before any derived value is read.
    """

    def __init__(self) -> None:
        self._results: list[Result] = []
        self._failures: list[RuleFailure] = []
        self._combined: list[Result] | None = None

    def add(self, result: Result) -> None:
        """Append ``result``; derived values are recomputed on next access."""

        self._results.append(result)
        self._combined = None

    def add_failure(self, failure: RuleFailure) -> None:
        """Record a rule that errored."""

        self._failures.append(failure)

    def remove(self, identifier: str) -> None:
        """Drop every result produced by ``identifier``."""

        self._results = [result for result in self._results if result.identifier != identifier]
        self._combined = None

    def finalize(self) -> Aggregate:
        """Combine results; calling it again is a no-op until new results are added."""

        if self._combined is None:
            self._combined = combine(self._results)
        return self

    @property
    def results(self) -> tuple[Result, ...]:
        """Return the results remaining after combination."""

        self.finalize()
        return tuple(self._combined or ())

    @property
    def failures(self) -> tuple[RuleFailure, ...]:
        """Return the rules that errored, in execution order."""

        return tuple(self._failures)

    @property
    def offenses(self) -> tuple[Offense, ...]:
        """Return every offense after combination, grouped by rule order."""

        return tuple(offense for result in self.results for offense in result.offenses)

    @property
    def severity(self) -> Severity | None:
        """Return the highest offense severity or ``None`` when clean."""

        return max_severity(offense.severity for offense in self.offenses)

    @property
    def clean(self) -> bool:
        """Return whether no offense remains after combination."""

        return not self.offenses

    @property
    def count(self) -> int:
        """Return the number of offenses."""

        return len(self.offenses)

    @property
    def statistics(self) -> dict[str, int]:
        """Return offense counts for every severity, zero counts included."""

        counts = {severity.value: 0 for severity in Severity}
        for offense in self.offenses:
            counts[offense.severity.value] += 1
        return counts

    def exit_code(self, fail_on: str = Severity.ERROR.value, *, fail_on_errored: bool = True) -> int:
        """Return the process exit status for this run.

        Args:
            fail_on: Lowest severity that fails the run, or ``never``.
            fail_on_errored: Whether errored rules fail the run.

        Returns:
            int: ``1`` when the run fails, ``0`` otherwise.
        """

        if fail_on_errored and self._failures:
            return FAILURE_EXIT
        if fail_on == NEVER_FAIL:
            return SUCCESS_EXIT
        if any(meets_threshold(offense.severity, fail_on) for offense in self.offenses):
            return FAILURE_EXIT
        return SUCCESS_EXIT


__all__ = ["Aggregate", "FAILURE_EXIT", "RuleFailure", "SUCCESS_EXIT", "combine"]
