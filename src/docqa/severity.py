# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Severity related types and helpers."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import Final


class Severity(str, Enum):
    """Severity levels ordered ``convention < warning < error``."""

    CONVENTION = "convention"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        """Return the ordinal used when comparing severities."""

        return _SEVERITY_RANK[self]

    @classmethod
    def parse(cls, value: str | Severity) -> Severity:
        """Return the severity named by ``value`` (case-insensitive).

        Args:
            value: Severity label or instance.

        Returns:
            Severity: Matching severity.

        Raises:
            ValueError: If ``value`` does not name a severity.
        """

        if isinstance(value, Severity):
            return value
        return cls(str(value).strip().lower())


_SEVERITY_RANK: Final[dict[Severity, int]] = {
    Severity.CONVENTION: 0,
    Severity.WARNING: 1,
    Severity.ERROR: 2,
}

VALID_SEVERITIES: Final[tuple[str, ...]] = tuple(severity.value for severity in Severity)
NEVER_FAIL: Final[str] = "never"
VALID_FAIL_ON: Final[tuple[str, ...]] = (*VALID_SEVERITIES, NEVER_FAIL)


def max_severity(severities: Iterable[Severity]) -> Severity | None:
    """Return the highest severity in ``severities`` or ``None`` when empty."""

    highest: Severity | None = None
    for severity in severities:
        if highest is None or severity.rank > highest.rank:
            highest = severity
    return highest


def meets_threshold(severity: Severity, fail_on: str) -> bool:
    """Return whether ``severity`` trips the ``fail_on`` gate.

    Args:
        severity: Severity of an offense.
        fail_on: Threshold label, one of :data:`VALID_FAIL_ON`.

    Returns:
        bool: ``True`` when the offense should fail the run.
    """

    if fail_on == NEVER_FAIL or fail_on not in VALID_SEVERITIES:
        return False
    return severity.rank >= Severity(fail_on).rank


__all__ = [
    "NEVER_FAIL",
    "Severity",
    "VALID_FAIL_ON",
    "VALID_SEVERITIES",
    "max_severity",
    "meets_threshold",
]
