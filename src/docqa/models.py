# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Offense records produced by parsers and the final offenses built from them."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Final, Literal

from pydantic import BaseModel, ConfigDict, Field

from .severity import Severity

PayloadValue = str | int | None
OffenseKind = Literal["line", "method"]

LINE_KIND: Final[OffenseKind] = "line"
METHOD_KIND: Final[OffenseKind] = "method"


class OffenseRecord(BaseModel):
    """Raw offense recovered from validator output before message rendering."""

    model_config = ConfigDict(frozen=True)

    kind: OffenseKind | None = None
    name: str | None = None
    location: str | None = None
    line: int | None = None
    message: str | None = None
    severity: Severity | None = None
    payload: Mapping[str, PayloadValue] = Field(default_factory=dict)

    def field(self, key: str) -> PayloadValue:
        """Return the payload value stored under ``key`` or ``None``."""

        return self.payload.get(key)

    def identity(self) -> tuple[str | None, int | None, str | None]:
        """Return the ``(location, line, name)`` triple used for combination dedup."""

        return (self.location, self.line, self.name)

    def with_payload(self, **extra: PayloadValue) -> OffenseRecord:
        """Return a copy whose payload is extended with ``extra``."""

        merged = dict(self.payload)
        merged.update(extra)
        return self.model_copy(update={"payload": merged})


class Offense(BaseModel):
    """Final, reportable offense owned by exactly one rule result."""

    model_config = ConfigDict(frozen=True)

    rule: str
    code: str
    kind: OffenseKind
    severity: Severity
    message: str
    location: str | None = None
    line: int = 0
    record: OffenseRecord

    def render(self) -> str:
        """Return the single-line textual form used by the console report."""

        location = self.location or "<unknown>"
        return f"{location}:{self.line}: [{self.severity.value}] {self.rule}: {self.message}"


__all__ = [
    "LINE_KIND",
    "METHOD_KIND",
    "Offense",
    "OffenseKind",
    "OffenseRecord",
    "PayloadValue",
]
