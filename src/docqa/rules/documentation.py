# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Rules checking that objects, arguments, options and return values are documented."""

from __future__ import annotations

import re
from collections.abc import Sequence
from pathlib import Path
from typing import ClassVar, Final

from ..collector import ResultCollector, format_location
from ..config.models import RuleConfig
from ..docs import DocObject
from ..models import LINE_KIND, METHOD_KIND, OffenseRecord
from ..parsers.base import LocationBase, LocationDetailBase
from .definition import ExternalQuery, RuleDefinition

_INITIALIZE: Final[str] = "initialize"
_OPTIONS_PARAMETER: Final[re.Pattern[str]] = re.compile(r"^(options?|opts?|kwargs)$")
_SPLAT_PREFIXES: Final[tuple[str, ...]] = ("*", "&")


def _title(record: OffenseRecord) -> str:
    return record.name or "object"


def _is_checked_method(obj: DocObject) -> bool:
    return obj.is_method and not obj.is_alias and obj.is_explicit


# Documentation/UndocumentedObjects ------------------------------------------------


def undocumented_object_message(record: OffenseRecord) -> str:
    """Return the message for an object without any documentation."""

    return f"Documentation required for `{_title(record)}`"


def _undocumented_objects_query(obj: DocObject, collector: ResultCollector, config: RuleConfig) -> None:
    if obj.all_docs:
        return
    if (
        config.option("AllowEmptyInitialize", False)
        and obj.is_method
        and obj.name == _INITIALIZE
        and not obj.parameters
    ):
        return
    collector.puts(format_location(obj))


UNDOCUMENTED_OBJECTS: Final[RuleDefinition] = RuleDefinition(
    identifier="Documentation/UndocumentedObjects",
    code="UndocumentedObject",
    description="Objects (namespaces, methods, constants) without any documentation.",
    kind=LINE_KIND,
    defaults={"Enabled": True, "Severity": "warning", "AllowEmptyInitialize": False},
    combines_with=("Documentation/UndocumentedBooleanMethods",),
    parser=LocationBase(),
    messages=undocumented_object_message,
    in_process_query=_undocumented_objects_query,
    external=ExternalQuery(
        templates={
            "default": "docstring.all.empty?",
            "allow_empty_initialize": (
                "docstring.all.empty? && !(type == :method && name == :initialize && parameters.empty?)"
            ),
        },
        selector=lambda config: (
            "allow_empty_initialize" if config.option("AllowEmptyInitialize", False) else "default"
        ),
    ),
)


# Documentation/UndocumentedBooleanMethods -----------------------------------------


def _boolean_methods_query(obj: DocObject, collector: ResultCollector, config: RuleConfig) -> None:
    del config
    if not _is_checked_method(obj) or not obj.name.endswith("?"):
        return
    return_tag = obj.tag("return")
    if return_tag is None or not return_tag.types:
        collector.puts(format_location(obj))


UNDOCUMENTED_BOOLEAN_METHODS: Final[RuleDefinition] = RuleDefinition(
    identifier="Documentation/UndocumentedBooleanMethods",
    code="UndocumentedObject",
    description="Predicate methods (ending in '?') without a typed @return tag.",
    kind=LINE_KIND,
    defaults={"Enabled": True, "Severity": "warning"},
    parser=LocationBase(),
    messages=undocumented_object_message,
    in_process_query=_boolean_methods_query,
    external=ExternalQuery(
        templates={
            "default": (
                'type == :method && !is_alias? && is_explicit? && name.to_s.end_with?("?") && '
                '(tag("return").nil? || tag("return").types.to_a.empty?)'
            ),
        },
    ),
)


# Documentation/UndocumentedMethodArguments ----------------------------------------


def undocumented_arguments_message(record: OffenseRecord) -> str:
    """Return the message for a method with fewer @param tags than parameters."""

    return f"The `{_title(record)}` method is missing documentation for some of the arguments."


def _method_arguments_query(obj: DocObject, collector: ResultCollector, config: RuleConfig) -> None:
    del config
    if not _is_checked_method(obj):
        return
    if len(obj.parameters) > len(obj.tags_named("param")):
        collector.puts(format_location(obj))


UNDOCUMENTED_METHOD_ARGUMENTS: Final[RuleDefinition] = RuleDefinition(
    identifier="Documentation/UndocumentedMethodArguments",
    code="UndocumentedMethodArgument",
    description="Methods declaring more parameters than @param tags.",
    kind=METHOD_KIND,
    defaults={"Enabled": True, "Severity": "warning"},
    parser=LocationBase(),
    messages=undocumented_arguments_message,
    in_process_query=_method_arguments_query,
    external=ExternalQuery(
        templates={
            "default": "type == :method && !is_alias? && is_explicit? && (parameters.size > @@param.size)",
        },
    ),
)


# Documentation/UndocumentedOptions ------------------------------------------------


class UndocumentedOptionsParser(LocationDetailBase):
    """Location line followed by the rendered parameter list."""

    detail_fields: ClassVar[tuple[str, ...]] = ("params",)


def undocumented_options_message(record: OffenseRecord) -> str:
    """Return the message for an options-style parameter without @option tags."""

    params = record.field("params")
    described = f" ({params})" if params else ""
    return (
        f"Method `{_title(record)}` has options parameter{described} "
        "but no @option tags documenting the available options."
    )


def _is_options_parameter(name: str) -> bool:
    return bool(_OPTIONS_PARAMETER.match(name)) or name.startswith("**")


def _undocumented_options_query(obj: DocObject, collector: ResultCollector, config: RuleConfig) -> None:
    del config
    if not obj.is_method:
        return
    if not any(_is_options_parameter(param.name) for param in obj.parameters):
        return
    if obj.tags_named("option"):
        return
    collector.puts(format_location(obj))
    collector.puts(", ".join(param.render() for param in obj.parameters))


UNDOCUMENTED_OPTIONS: Final[RuleDefinition] = RuleDefinition(
    identifier="Documentation/UndocumentedOptions",
    code="UndocumentedOptions",
    description="Methods taking an options hash or keyword splat without @option tags.",
    kind=METHOD_KIND,
    defaults={"Enabled": True, "Severity": "warning"},
    parser=UndocumentedOptionsParser(),
    messages=undocumented_options_message,
    in_process_query=_undocumented_options_query,
    external=ExternalQuery(
        templates={
            "default": (
                "if object.is_a?(YARD::CodeObjects::MethodObject); params = object.parameters || []; "
                "has_options_param = params.any? { |p| p[0] =~ /^(options?|opts?|kwargs)$/ || p[0] =~ /^\\*\\*/ }; "
                "if has_options_param && object.tags(:option).empty?; "
                'puts object.file + ":" + object.line.to_s + ": " + object.title; '
                'puts params.map { |p| p.compact.join(" ") }.join(", "); '
                "end; end; false"
            ),
        },
    ),
)


# Documentation/MissingReturn -------------------------------------------------------


class MissingReturnParser(LocationBase):
    """Location lines carrying the method arity after ``|``."""

    extra_field: ClassVar[str | None] = "arity"


def missing_return_message(record: OffenseRecord) -> str:
    """Return the message for a method without a @return tag."""

    return f"Missing @return tag for `{_title(record)}`"


def _arity(obj: DocObject) -> int:
    return sum(1 for param in obj.parameters if not param.name.startswith(_SPLAT_PREFIXES))


def _missing_return_query(obj: DocObject, collector: ResultCollector, config: RuleConfig) -> None:
    del config
    if not _is_checked_method(obj) or obj.has_tag("return"):
        return
    collector.puts(format_location(obj, _arity(obj)))


def method_name(title: str) -> str:
    """Return the bare method name of a title such as ``Foo::Bar#baz`` or ``Foo.new``."""

    for separator in ("#", "."):
        if separator in title:
            return title.rsplit(separator, 1)[1]
    return title


def _compile_exclusion(pattern: str) -> re.Pattern[str] | None:
    body = pattern[1:-1]
    if not body:
        return None
    try:
        return re.compile(body)
    except re.error:
        return None


def is_excluded_method(title: str, arity: int | None, patterns: Sequence[str]) -> bool:
    """Return whether the method ``title`` matches any ``ExcludedMethods`` entry.

    Entries are plain names (``initialize``), name/arity pairs
    (``fetch/1``) or regular expressions between slashes (``/^_/``).
    Empty or invalid regular expressions never match.

    Args:
        title: Method title from the offense record.
        arity: Number of non-splat, non-block parameters, when known.
        patterns: Configured exclusion entries.

    Returns:
        bool: ``True`` when the method should not be reported.
    """

    name = method_name(title)
    for raw in patterns:
        pattern = str(raw).strip()
        if not pattern:
            continue
        if len(pattern) >= 2 and pattern.startswith("/") and pattern.endswith("/"):
            compiled = _compile_exclusion(pattern)
            if compiled is not None and compiled.search(name):
                return True
            continue
        if "/" in pattern:
            excluded_name, _, excluded_arity = pattern.rpartition("/")
            if excluded_arity.isdigit() and excluded_name == name and arity == int(excluded_arity):
                return True
            continue
        if pattern == name:
            return True
    return False


def _exclude_methods(records: Sequence[OffenseRecord], config: RuleConfig, root: Path) -> list[OffenseRecord]:
    del root
    patterns = tuple(config.option("ExcludedMethods", ()))
    kept: list[OffenseRecord] = []
    for record in records:
        arity = record.field("arity")
        if is_excluded_method(record.name or "", arity if isinstance(arity, int) else None, patterns):
            continue
        kept.append(record)
    return kept


MISSING_RETURN: Final[RuleDefinition] = RuleDefinition(
    identifier="Documentation/MissingReturn",
    code="MissingReturnTag",
    description="Methods without an explicit @return tag (opt-in).",
    kind=LINE_KIND,
    defaults={"Enabled": False, "Severity": "warning", "ExcludedMethods": ["initialize"]},
    parser=MissingReturnParser(),
    messages=missing_return_message,
    in_process_query=_missing_return_query,
    external=ExternalQuery(
        templates={
            "default": (
                "if type == :method && !is_alias? && is_explicit? && tag(:return).nil?; "
                "arity = parameters.reject { |p| p[0].to_s.start_with?('*', '&') }.size; "
                'puts file.to_s + ":" + line.to_s + ": " + title + "|" + arity.to_s; '
                "end; false"
            ),
        },
    ),
    refine=_exclude_methods,
)


RULES: Final[tuple[RuleDefinition, ...]] = (
    UNDOCUMENTED_OBJECTS,
    UNDOCUMENTED_BOOLEAN_METHODS,
    UNDOCUMENTED_METHOD_ARGUMENTS,
    UNDOCUMENTED_OPTIONS,
    MISSING_RETURN,
)

__all__ = [
    "MISSING_RETURN",
    "RULES",
    "UNDOCUMENTED_BOOLEAN_METHODS",
    "UNDOCUMENTED_METHOD_ARGUMENTS",
    "UNDOCUMENTED_OBJECTS",
    "UNDOCUMENTED_OPTIONS",
    "is_excluded_method",
    "method_name",
]
