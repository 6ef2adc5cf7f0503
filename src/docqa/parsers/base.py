# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Regex-driven parsers turning validator text output into offense records.

Every parser is stateless and total: unmatched lines are treated as tool
chatter and skipped, so ``call`` returns an empty list rather than raising.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping, Sequence
from types import MappingProxyType
from typing import ClassVar, Final

from ..models import OffenseRecord, PayloadValue

RegexpTable = Mapping[str, re.Pattern[str]]

DETAIL_SEPARATOR: Final[str] = "|"


def regexps(**patterns: str) -> RegexpTable:
    """Compile ``patterns`` into a read-only regexp table."""

    return MappingProxyType({name: re.compile(pattern) for name, pattern in patterns.items()})


def _to_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class Base:
    """Generic regex-capture parser.

    Subclasses declare :attr:`regexps` with at least ``general`` (a quick
    reject filter), ``message``, ``location`` and ``line``.
    """

    regexps: ClassVar[RegexpTable] = MappingProxyType({})

    def match(self, text: str, name: str) -> dict[str, str]:
        """Return the captures of the regexp ``name`` applied to ``text``.

        Named groups are returned under their own names. A pattern without
        named groups reports its first positional group under ``name``.

        Args:
            text: Text to search.
            name: Key of the regexp in :attr:`regexps`.

        Returns:
            dict[str, str]: Captured values, empty on no match or unknown name.
        """

        pattern = self.regexps.get(name)
        if pattern is None:
            return {}
        found = pattern.search(text)
        if found is None:
            return {}
        named = {key: value for key, value in found.groupdict().items() if value is not None}
        if named:
            return named
        if found.re.groups and found.group(1) is not None:
            return {name: found.group(1)}
        return {}

    def matches(self, text: str, name: str) -> bool:
        """Return whether the regexp ``name`` matches anywhere in ``text``."""

        pattern = self.regexps.get(name)
        return pattern is not None and pattern.search(text) is not None

    def capture(self, text: str, name: str) -> str | None:
        """Return the single value captured by regexp ``name`` or ``None``."""

        captured = self.match(text, name)
        if name in captured:
            return captured[name]
        return next(iter(captured.values()), None)

    def call(self, text: str | None) -> list[OffenseRecord]:
        """Parse ``text`` into ordered offense records.

        Args:
            text: Raw validator output.

        Returns:
            list[OffenseRecord]: Records in output order; empty for blank input.
        """

        if not text:
            return []
        return list(self.parse_lines(text.splitlines()))

    __call__ = call

    def parse_lines(self, lines: Sequence[str]) -> Iterator[OffenseRecord]:
        """Yield records for ``lines``; the generic parser recognises nothing."""

        del lines
        return iter(())

    def payload(self, line: str) -> dict[str, PayloadValue]:
        """Return rule-specific fields captured by the ``payload`` regexp."""

        return dict(self.match(line, "payload"))


class OneLineBase(Base):
    """Parser for tools that print exactly one line per offense."""

    def parse_lines(self, lines: Sequence[str]) -> Iterator[OffenseRecord]:
        for raw_line in lines:
            line = raw_line.strip()
            if not line or not self.matches(line, "general"):
                continue
            yield OffenseRecord(
                name=self.capture(line, "name"),
                location=self.capture(line, "location"),
                line=_to_int(self.capture(line, "line")),
                message=self.capture(line, "message"),
                payload=self.payload(line),
            )


class TwoLineBase(Base):
    """Parser for tools that print a header line followed by a location line.

    A header without a matching location line is still reported, with an
    empty location, and the following line is evaluated on its own.
    """

    def _is_header(self, line: str) -> bool:
        return self.matches(line, "general") and self.matches(line, "message")

    def parse_lines(self, lines: Sequence[str]) -> Iterator[OffenseRecord]:
        stripped = [raw_line.strip() for raw_line in lines]
        index = 0
        total = len(stripped)
        while index < total:
            header = stripped[index]
            index += 1
            if not header or not self._is_header(header):
                continue
            detail = stripped[index] if index < total else ""
            location = self.capture(detail, "location") if detail else None
            if location is not None:
                index += 1
                line_number = _to_int(self.capture(detail, "line"))
            else:
                line_number = None
            yield OffenseRecord(
                name=self.capture(header, "name"),
                location=location,
                line=line_number,
                message=self.capture(header, "message"),
                payload=self.payload(header),
            )


_LOCATION_LINE: Final[str] = r"^(?P<location>.+?):(?P<line>\d+): (?P<name>[^|]+?)(?:\|(?P<extra>.*))?$"


class LocationBase(OneLineBase):
    """Parser for the ``<file>:<line>: <title>[|<extra>]`` line grammar.

    In-process rules emit this grammar through the result collector and the
    external query templates print it, so one parser serves both strategies.
    """

    regexps: ClassVar[RegexpTable] = regexps(
        general=r"^.+?:\d+: \S",
        location=_LOCATION_LINE,
        line=_LOCATION_LINE,
        name=_LOCATION_LINE,
    )
    extra_field: ClassVar[str | None] = None

    def capture(self, text: str, name: str) -> str | None:
        captured = self.match(text, name)
        value = captured.get(name)
        return value.strip() if value is not None else None

    def payload(self, line: str) -> dict[str, PayloadValue]:
        if self.extra_field is None:
            return {}
        extra = self.match(line, "location").get("extra")
        if extra is None:
            return {}
        number = _to_int(extra)
        return {self.extra_field: number if number is not None else extra}


class LocationDetailBase(LocationBase):
    """Parser for a location line followed by one ``|``-separated detail line.

    ``detail_fields`` names the detail columns; a single-column rule receives
    the whole detail line. A location line with no detail line yields a record
    with an empty payload.
    """

    detail_fields: ClassVar[tuple[str, ...]] = ("detail",)

    def is_location(self, line: str) -> bool:
        """Return whether ``line`` follows the location grammar."""

        return self.matches(line, "general") and bool(self.match(line, "location"))

    def detail_payload(self, detail: str) -> dict[str, PayloadValue]:
        """Split ``detail`` into the configured fields."""

        if len(self.detail_fields) == 1:
            return {self.detail_fields[0]: detail}
        parts = detail.split(DETAIL_SEPARATOR, len(self.detail_fields) - 1)
        return {field: parts[index] if index < len(parts) else None for index, field in enumerate(self.detail_fields)}

    def iter_pairs(self, lines: Sequence[str]) -> Iterator[tuple[str, str | None]]:
        """Yield ``(location_line, detail_line)`` pairs from ``lines``."""

        stripped = [raw_line.strip() for raw_line in lines]
        index = 0
        total = len(stripped)
        while index < total:
            header = stripped[index]
            index += 1
            if not header or not self.is_location(header):
                continue
            detail: str | None = None
            if index < total and not self.is_location(stripped[index]):
                detail = stripped[index]
                index += 1
            yield header, detail

    def parse_lines(self, lines: Sequence[str]) -> Iterator[OffenseRecord]:
        for header, detail in self.iter_pairs(lines):
            yield OffenseRecord(
                name=self.capture(header, "name"),
                location=self.capture(header, "location"),
                line=_to_int(self.capture(header, "line")),
                payload=self.detail_payload(detail) if detail is not None else {},
            )


__all__ = [
    "Base",
    "DETAIL_SEPARATOR",
    "LocationBase",
    "LocationDetailBase",
    "OneLineBase",
    "RegexpTable",
    "TwoLineBase",
    "regexps",
]
