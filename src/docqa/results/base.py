# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Per-rule results wrapping parsed records and building final offenses."""

from __future__ import annotations

from collections.abc import Iterable
from functools import cached_property

from ..config.models import RuleConfig
from ..models import Offense, OffenseRecord
from ..rules.definition import RuleDefinition


class Result:
    """Parsed records of one rule together with the configuration they ran under.

    Offenses are computed on first access and cached; the record sequence is
    never modified after construction. Identical records stay distinct.
    """

    def __init__(self, definition: RuleDefinition, config: RuleConfig, records: Iterable[OffenseRecord]) -> None:
        """Initialise the result.

        Args:
            definition: Rule that produced the records.
            config: Resolved configuration of that rule.
            records: Records in parser emission order.
        """

        self.definition = definition
        self.config = config
        self.records: tuple[OffenseRecord, ...] = tuple(records)

    @property
    def identifier(self) -> str:
        """Return the identifier of the owning rule."""

        return self.config.identifier

    @cached_property
    def offenses(self) -> tuple[Offense, ...]:
        """Return final offenses with severity and message applied."""

        return tuple(self._build(record) for record in self.records)

    def _build(self, record: OffenseRecord) -> Offense:
        return Offense(
            rule=self.identifier,
            code=self.definition.code,
            kind=record.kind or self.definition.kind,
            severity=record.severity or self.config.severity,
            message=self.definition.build_message(record),
            location=record.location,
            line=record.line or 0,
            record=record,
        )

    @property
    def clean(self) -> bool:
        """Return whether the rule reported nothing."""

        return not self.offenses

    @property
    def count(self) -> int:
        """Return the number of offenses."""

        return len(self.offenses)

    def __repr__(self) -> str:
        return f"Result({self.identifier!r}, records={len(self.records)})"


__all__ = ["Result"]
