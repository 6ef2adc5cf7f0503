# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Rules surfacing warnings the documentation tool prints while parsing sources.

These rules only run through the external tool: the warnings exist only in
the tool's own output, never in the documentation database.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from pathlib import Path
from typing import ClassVar, Final

from ..config.models import RuleConfig
from ..config.utils import suggest
from ..models import LINE_KIND, OffenseRecord
from ..parsers.base import OneLineBase, RegexpTable, TwoLineBase, regexps
from .definition import ExternalQuery, RuleDefinition

KNOWN_TAGS: Final[tuple[str, ...]] = (
    "abstract",
    "api",
    "attr",
    "attr_reader",
    "attr_writer",
    "author",
    "deprecated",
    "example",
    "note",
    "option",
    "overload",
    "param",
    "private",
    "raise",
    "return",
    "see",
    "since",
    "todo",
    "version",
    "yield",
    "yieldparam",
    "yieldreturn",
)
KNOWN_DIRECTIVES: Final[tuple[str, ...]] = (
    "attribute",
    "endgroup",
    "group",
    "macro",
    "method",
    "parse",
    "scope",
    "visibility",
)

_LOCATION: Final[str] = r"in file [`'](?P<location>[^`']+)[`'] near line"
_LINE: Final[str] = r"near line (\d+)"
_DEF_LINE: Final[re.Pattern[str]] = re.compile(r"^\s*def\s+(?:self\.)?[\w?!=\[\]]+\s*\(?(?P<params>[^)#]*)\)?")
_SOURCE_LOOKAHEAD: Final[int] = 20

STATS: Final[ExternalQuery] = ExternalQuery(subcommand="stats", include_stderr=True)


def _where(record: OffenseRecord) -> str:
    if record.location is None:
        return ""
    return f" in file `{record.location}` near line {record.line if record.line is not None else 0}"


def _did_you_mean(candidate: str | None, prefix: str) -> str:
    return f" (did you mean '{prefix}{candidate}'?)" if candidate else ""


# Warnings/UnknownTag -----------------------------------------------------------------


class UnknownTagParser(OneLineBase):
    """Parse ``Unknown tag @x in file `f` near line N`` warnings."""

    regexps: ClassVar[RegexpTable] = regexps(
        general=r"^\[warn\]: Unknown tag",
        message=r"^\[warn\]: (Unknown tag @\S+)",
        location=_LOCATION,
        line=_LINE,
        payload=r"Unknown tag @(?P<tag_name>\S+)",
    )


def unknown_tag_message(record: OffenseRecord) -> str:
    """Return the unknown tag warning with a suggestion for the closest known tag."""

    tag_name = record.field("tag_name")
    if not isinstance(tag_name, str) or not tag_name:
        return "Unknown tag detected"
    hint = _did_you_mean(suggest(tag_name, KNOWN_TAGS), "@")
    return f"Unknown tag @{tag_name}{hint}{_where(record)}"


UNKNOWN_TAG: Final[RuleDefinition] = RuleDefinition(
    identifier="Warnings/UnknownTag",
    code="UnknownTag",
    description="Tags the documentation tool does not recognise.",
    kind=LINE_KIND,
    defaults={"Enabled": True, "Severity": "error"},
    parser=UnknownTagParser(),
    messages=unknown_tag_message,
    external=STATS,
)


# Warnings/UnknownDirective -----------------------------------------------------------


class UnknownDirectiveParser(OneLineBase):
    """Parse ``Unknown directive @!x in file `f` near line N`` warnings."""

    regexps: ClassVar[RegexpTable] = regexps(
        general=r"^\[warn\]: Unknown directive",
        message=r"^\[warn\]: (Unknown directive @!?\S+)",
        location=_LOCATION,
        line=_LINE,
        payload=r"Unknown directive @!?(?P<directive>\S+)",
    )


def unknown_directive_message(record: OffenseRecord) -> str:
    """Return the unknown directive warning with a suggestion for the closest directive."""

    directive = record.field("directive")
    if not isinstance(directive, str) or not directive:
        return "Unknown directive detected"
    hint = _did_you_mean(suggest(directive, KNOWN_DIRECTIVES), "@!")
    return f"Unknown directive @!{directive}{hint}{_where(record)}"


UNKNOWN_DIRECTIVE: Final[RuleDefinition] = RuleDefinition(
    identifier="Warnings/UnknownDirective",
    code="UnknownDirective",
    description="Directives the documentation tool does not recognise.",
    kind=LINE_KIND,
    defaults={"Enabled": True, "Severity": "error"},
    parser=UnknownDirectiveParser(),
    messages=unknown_directive_message,
    external=STATS,
)


# Warnings/InvalidTagFormat -----------------------------------------------------------


class InvalidTagFormatParser(OneLineBase):
    """Parse ``Invalid tag format for @x in file `f` near line N`` warnings."""

    regexps: ClassVar[RegexpTable] = regexps(
        general=r"^\[warn\]: Invalid tag format",
        message=r"^\[warn\]: (Invalid tag format for @\S+)",
        location=_LOCATION,
        line=_LINE,
        payload=r"Invalid tag format for @(?P<tag_name>\S+)",
    )


def invalid_tag_format_message(record: OffenseRecord) -> str:
    """Return the invalid tag format warning."""

    tag_name = record.field("tag_name")
    if not isinstance(tag_name, str) or not tag_name:
        return "InvalidTagFormat detected"
    return f"Invalid tag format for @{tag_name}{_where(record)}"


INVALID_TAG_FORMAT: Final[RuleDefinition] = RuleDefinition(
    identifier="Warnings/InvalidTagFormat",
    code="InvalidTagFormat",
    description="Tags whose syntax the documentation tool cannot parse.",
    kind=LINE_KIND,
    defaults={"Enabled": True, "Severity": "error"},
    parser=InvalidTagFormatParser(),
    messages=invalid_tag_format_message,
    external=STATS,
)


# Warnings/UnknownParameterName -------------------------------------------------------


class UnknownParameterNameParser(TwoLineBase):
    """Parse the two-line ``@param tag has unknown parameter name`` warning."""

    regexps: ClassVar[RegexpTable] = regexps(
        general=r"^\[warn\]: @param tag has unknown parameter name",
        message=r"^\[warn\]: (@param tag has unknown parameter name: \S+)",
        location=r"^" + _LOCATION,
        line=_LINE,
        payload=r"unknown parameter name: (?P<param_name>\S+)",
    )


def method_parameters(path: Path, line: int | None) -> tuple[str, ...]:
    """Return parameter names of the first ``def`` at or after ``line`` in ``path``.

    Args:
        path: Source file named by the warning.
        line: One-based line the warning points at.

    Returns:
        tuple[str, ...]: Parameter names without sigils or defaults; empty
        when the file cannot be read or no definition is found.
    """

    if line is None or line < 1:
        return ()
    try:
        source = path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError):
        return ()
    for text in source[line - 1 : line - 1 + _SOURCE_LOOKAHEAD]:
        found = _DEF_LINE.match(text)
        if found is None:
            continue
        names: list[str] = []
        for raw in found.group("params").split(","):
            name = re.split(r"[=:\s]", raw.strip().lstrip("*&"), maxsplit=1)[0]
            if name:
                names.append(name)
        return tuple(names)
    return ()


def _suggest_parameters(records: Sequence[OffenseRecord], config: RuleConfig, root: Path) -> list[OffenseRecord]:
    del config
    refined: list[OffenseRecord] = []
    for record in records:
        param_name = record.field("param_name")
        if record.location is None or not isinstance(param_name, str):
            refined.append(record)
            continue
        source = Path(record.location)
        if not source.is_absolute():
            source = root / source
        candidate = suggest(param_name, method_parameters(source, record.line))
        refined.append(record.with_payload(suggestion=candidate) if candidate else record)
    return refined


def unknown_parameter_message(record: OffenseRecord) -> str:
    """Return the unknown parameter warning with a suggestion from the method signature."""

    if not record.message:
        return "UnknownParameterName detected"
    suggestion = record.field("suggestion")
    hint = _did_you_mean(suggestion if isinstance(suggestion, str) else None, "")
    return f"{record.message}{hint}{_where(record)}"


UNKNOWN_PARAMETER_NAME: Final[RuleDefinition] = RuleDefinition(
    identifier="Warnings/UnknownParameterName",
    code="UnknownParameterName",
    description="@param tags naming a parameter the method does not declare.",
    kind=LINE_KIND,
    defaults={"Enabled": True, "Severity": "error"},
    parser=UnknownParameterNameParser(),
    messages=unknown_parameter_message,
    external=STATS,
    refine=_suggest_parameters,
)


# Warnings/DuplicatedParameterName ----------------------------------------------------


class DuplicatedParameterNameParser(TwoLineBase):
    """Parse the two-line ``@param tag has duplicate parameter name`` warning."""

    regexps: ClassVar[RegexpTable] = regexps(
        general=r"^\[warn\]: @param tag has duplicate parameter name",
        message=r"^\[warn\]: (@param tag has duplicate parameter name: \S+)",
        location=r"^" + _LOCATION,
        line=_LINE,
        payload=r"duplicate parameter name: (?P<param_name>\S+)",
    )


def duplicated_parameter_message(record: OffenseRecord) -> str:
    """Return the duplicated parameter warning."""

    if not record.message:
        return "DuplicatedParameterName detected"
    return f"{record.message}{_where(record)}"


DUPLICATED_PARAMETER_NAME: Final[RuleDefinition] = RuleDefinition(
    identifier="Warnings/DuplicatedParameterName",
    code="DuplicatedParameterName",
    description="Parameters documented by more than one @param tag.",
    kind=LINE_KIND,
    defaults={"Enabled": True, "Severity": "error"},
    parser=DuplicatedParameterNameParser(),
    messages=duplicated_parameter_message,
    external=STATS,
)


RULES: Final[tuple[RuleDefinition, ...]] = (
    UNKNOWN_TAG,
    UNKNOWN_DIRECTIVE,
    INVALID_TAG_FORMAT,
    UNKNOWN_PARAMETER_NAME,
    DUPLICATED_PARAMETER_NAME,
)

__all__ = [
    "DUPLICATED_PARAMETER_NAME",
    "INVALID_TAG_FORMAT",
    "KNOWN_DIRECTIVES",
    "KNOWN_TAGS",
    "RULES",
    "UNKNOWN_DIRECTIVE",
    "UNKNOWN_PARAMETER_NAME",
    "UNKNOWN_TAG",
    "method_parameters",
]
