# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Rules checking how documentation tags are used and laid out."""

from __future__ import annotations

import re
from collections.abc import Collection, Iterator, Mapping, Sequence, Set
from typing import ClassVar, Final

from ..collector import ResultCollector, format_location
from ..config.models import RuleConfig
from ..docs import DocObject, DocTag
from ..models import METHOD_KIND, OffenseRecord, PayloadValue
from ..parsers.base import LocationBase, LocationDetailBase
from .definition import RuleDefinition

_VALID_MARKER: Final[str] = "valid"
_MISSING_OPTION_TAGS: Final[str] = "missing_option_tags"
_DESCRIPTION_GROUP: Final[str] = "description"
_TYPE_NOISE: Final[re.Pattern[str]] = re.compile(r"[<>{}\[\],]")
_ID_PARAMETER: Final[re.Pattern[str]] = re.compile(r"_id$|_uuid$|_identifier$")
_ID_DESCRIPTION: Final[re.Pattern[str]] = re.compile(r"^(ID|Unique identifier|Identifier)\s+(of|for)\s+", re.IGNORECASE)
_DIRECTIONAL_PARAMETER: Final[re.Pattern[str]] = re.compile(r"^(from|to|till|until)$")
_NORMALIZATION: Final[re.Pattern[str]] = re.compile(r"\w+")
_TYPE_SEPARATORS: Final[re.Pattern[str]] = re.compile(r"[<>{}()\[\],=\s]+")
_LITERAL_TYPE: Final[re.Pattern[str]] = re.compile(r"""^(?::|'|"|-?\d)""")
_NAMESPACE_KINDS: Final[frozenset[str]] = frozenset({"class", "module"})
_CORE_TYPES: Final[frozenset[str]] = frozenset(
    {
        "Array", "BasicObject", "BigDecimal", "Binding", "Boolean", "Class", "Comparable", "Complex",
        "Data", "Date", "DateTime", "Dir", "Encoding", "Enumerable", "Enumerator", "Exception",
        "FalseClass", "Fiber", "File", "Float", "Hash", "IO", "Integer", "Kernel", "Method", "Module",
        "Mutex", "NilClass", "Numeric", "Object", "Pathname", "Proc", "Queue", "Random", "Range",
        "Rational", "Regexp", "Set", "String", "StringIO", "Struct", "Symbol", "Thread", "Time",
        "TrueClass", "URI", "ArgumentError", "IOError", "IndexError", "KeyError", "NameError",
        "NoMethodError", "NotImplementedError", "RangeError", "RuntimeError", "StandardError",
        "StopIteration", "TypeError", "ZeroDivisionError", "false", "nil", "self", "true", "void",
    }
)


def _title(record: OffenseRecord) -> str:
    return record.name or "object"


def _text(value: PayloadValue) -> str:
    return "" if value is None else str(value)


# Tags/MeaninglessTag -----------------------------------------------------------------


class MeaninglessTagParser(LocationDetailBase):
    """Location line followed by ``<object_type>|<tag_name>``."""

    detail_fields: ClassVar[tuple[str, ...]] = ("object_type", "tag_name")


def _article(word: str) -> str:
    return "an" if word[:1].lower() in "aeiou" else "a"


def meaningless_tag_message(record: OffenseRecord) -> str:
    """Return the message for a method-only tag placed on a non-method object."""

    object_type = _text(record.field("object_type")) or "object"
    tag_name = _text(record.field("tag_name"))
    if not tag_name:
        return f"The {object_type} `{_title(record)}` has a tag that is only meaningful on methods."
    return (
        f"The {object_type} `{_title(record)}` has a @{tag_name} tag which is meaningless for "
        f"{_article(object_type)} {object_type}. @{tag_name} tags are only valid on methods."
    )


def _meaningless_tag_query(obj: DocObject, collector: ResultCollector, config: RuleConfig) -> None:
    if obj.kind not in config.option("InvalidObjectTypes", ()):
        return
    checked = config.option("CheckedTags", ())
    for tag in obj.tags:
        if tag.tag_name in checked:
            collector.puts(format_location(obj))
            collector.puts(f"{obj.kind}|{tag.tag_name}")
            break


MEANINGLESS_TAG: Final[RuleDefinition] = RuleDefinition(
    identifier="Tags/MeaninglessTag",
    code="MeaninglessTag",
    description="@param/@option tags attached to classes, modules or constants.",
    kind=METHOD_KIND,
    defaults={
        "Enabled": True,
        "Severity": "warning",
        "CheckedTags": ["param", "option"],
        "InvalidObjectTypes": ["class", "module", "constant"],
    },
    parser=MeaninglessTagParser(),
    messages=meaningless_tag_message,
    in_process_query=_meaningless_tag_query,
    visibility="all",
)


# Tags/OptionTags ---------------------------------------------------------------------


class OptionTagsParser(LocationDetailBase):
    """Location line followed by the ``missing_option_tags`` marker."""

    detail_fields: ClassVar[tuple[str, ...]] = ("reason",)


def option_tags_message(record: OffenseRecord) -> str:
    """Return the message for an options parameter lacking @option tags."""

    return (
        f"Method `{_title(record)}` has an options parameter but no @option tags "
        "documenting the available options."
    )


def _option_tags_query(obj: DocObject, collector: ResultCollector, config: RuleConfig) -> None:
    if not obj.is_method:
        return
    names = config.option("ParameterNames", ())
    if not any(param.name.replace("*", "").replace(":", "") in names for param in obj.parameters):
        return
    if obj.tags_named("option"):
        return
    collector.puts(format_location(obj))
    collector.puts(_MISSING_OPTION_TAGS)


OPTION_TAGS: Final[RuleDefinition] = RuleDefinition(
    identifier="Tags/OptionTags",
    code="MissingOptionTags",
    description="Methods with a configured options parameter name but no @option tags.",
    kind=METHOD_KIND,
    defaults={"Enabled": True, "Severity": "warning", "ParameterNames": ["options", "opts", "kwargs"]},
    parser=OptionTagsParser(),
    messages=option_tags_message,
    in_process_query=_option_tags_query,
    visibility="all",
)


# Tags/RedundantParamDescription ----------------------------------------------------


class RedundantParamParser(LocationDetailBase):
    """Location line followed by ``tag|param|text|type|pattern|word_count``."""

    detail_fields: ClassVar[tuple[str, ...]] = (
        "tag_name",
        "param_name",
        "description",
        "type_name",
        "pattern",
        "word_count",
    )

    def detail_payload(self, detail: str) -> dict[str, PayloadValue]:
        # The description may itself contain the separator; the trailing
        # three columns are fixed, so split them off from the right.
        head, _, tail = detail.partition("|")
        middle = tail.split("|", 1)
        if len(middle) < 2:
            return super().detail_payload(detail)
        param_name, rest = middle
        parts = rest.rsplit("|", 3)
        if len(parts) < 4:
            return super().detail_payload(detail)
        description, type_name, pattern, word_count = parts
        return {
            "tag_name": head,
            "param_name": param_name,
            "description": description,
            "type_name": type_name or None,
            "pattern": pattern,
            "word_count": int(word_count) if word_count.isdigit() else None,
        }


_PATTERN_HINTS: Final[Mapping[str, str]] = {
    "article_param": "only restates the parameter name with an article",
    "possessive_param": "only restates the parameter name in possessive form",
    "type_restatement": "only restates the parameter type",
    "param_to_verb": "only restates the parameter name followed by a verb",
    "id_pattern": "only states that the parameter is an identifier",
    "directional_date": "only restates the direction of the parameter",
    "type_generic": "only combines the type with a generic term",
}


def redundant_param_message(record: OffenseRecord) -> str:
    """Return the message for a parameter description that adds no information."""

    tag_name = _text(record.field("tag_name")) or "param"
    param_name = _text(record.field("param_name")) or "parameter"
    description = _text(record.field("description"))
    hint = _PATTERN_HINTS.get(_text(record.field("pattern")), "is redundant")
    quoted = f" '{description}'" if description else ""
    return (
        f"The @{tag_name} description{quoted} for `{param_name}` in `{_title(record)}` {hint}. "
        "Describe what the parameter is for instead."
    )


def _type_name(tag: DocTag) -> str | None:
    if not tag.types:
        return None
    return _TYPE_NOISE.sub("", tag.types[0]).strip()


def detect_redundant_pattern(
    param_name: str,
    description: str,
    type_name: str | None,
    config: RuleConfig,
) -> str | None:
    """Return the redundancy pattern matched by a parameter description, if any.

    Args:
        param_name: Name of the documented parameter.
        description: Description text with surrounding whitespace and a
            trailing period removed.
        type_name: First declared type stripped of collection punctuation.
        config: Rule configuration supplying articles, generic terms and
            the ``EnabledPatterns`` toggles.

    Returns:
        str | None: Pattern identifier such as ``article_param``.
    """

    patterns = config.option("EnabledPatterns", {})
    articles = tuple(config.option("Articles", ()))
    generic_terms = {str(term).lower() for term in config.option("GenericTerms", ())}
    parts = description.split()
    word_count = len(parts)
    lowered = [part.lower() for part in parts]
    param = param_name.lower()

    def starts_with_article(word: str) -> bool:
        return any(word.lower().startswith(article.lower()) for article in articles)

    if patterns.get("ArticleParam") and word_count == 2:
        if starts_with_article(parts[0]) and lowered[1] == param:
            return "article_param"
    if patterns.get("PossessiveParam") and 3 <= word_count <= 4:
        if starts_with_article(parts[0]) and parts[1].endswith("s") and "'" in parts[1] and lowered[2] == param:
            return "possessive_param"
    if patterns.get("TypeRestatement") and type_name and word_count <= 2:
        if description.lower() == type_name.lower():
            return "type_restatement"
        if word_count == 2 and lowered[0] == type_name.lower() and lowered[1] in generic_terms:
            return "type_restatement"
    if patterns.get("ParamToVerb") and word_count == 3:
        if lowered[0] == param and lowered[1] == "to":
            return "param_to_verb"
    if patterns.get("IdPattern") and word_count <= 6 and _ID_PARAMETER.search(param_name):
        if _ID_DESCRIPTION.search(description):
            return "id_pattern"
    if patterns.get("DirectionalDate") and word_count == 3 and _DIRECTIONAL_PARAMETER.match(param_name):
        if lowered[0] == param and lowered[1] == "this":
            return "directional_date"
    if patterns.get("TypeGeneric") and type_name and 2 <= word_count <= 5:
        if lowered[0] == type_name.lower() and lowered[1] in generic_terms:
            return "type_generic"
    return None


def _redundant_param_query(obj: DocObject, collector: ResultCollector, config: RuleConfig) -> None:
    if not obj.is_method:
        return
    checked = config.option("CheckedTags", ())
    max_words = int(config.option("MaxRedundantWords", 6))
    for tag in obj.tags:
        if tag.tag_name not in checked or not tag.name or not tag.text or not tag.text.strip():
            continue
        text = tag.text.strip()
        description = text.removesuffix(".")
        word_count = len(description.split())
        if word_count > max_words:
            continue
        type_name = _type_name(tag)
        pattern = detect_redundant_pattern(tag.name, description, type_name, config)
        if pattern is None:
            continue
        collector.puts(format_location(obj))
        collector.puts(f"{tag.tag_name}|{tag.name}|{text}|{type_name or ''}|{pattern}|{word_count}")


REDUNDANT_PARAM_DESCRIPTION: Final[RuleDefinition] = RuleDefinition(
    identifier="Tags/RedundantParamDescription",
    code="RedundantParamDescription",
    description="@param/@option descriptions that merely restate the name or type.",
    kind=METHOD_KIND,
    defaults={
        "Enabled": True,
        "Severity": "convention",
        "CheckedTags": ["param", "option"],
        "Articles": ["The", "the", "A", "a", "An", "an"],
        "MaxRedundantWords": 6,
        "GenericTerms": ["object", "instance", "value", "data", "item", "element"],
        "EnabledPatterns": {
            "ArticleParam": True,
            "PossessiveParam": True,
            "TypeRestatement": True,
            "ParamToVerb": True,
            "IdPattern": True,
            "DirectionalDate": True,
            "TypeGeneric": True,
        },
    },
    parser=RedundantParamParser(),
    messages=redundant_param_message,
    in_process_query=_redundant_param_query,
)


# Tags/TagGroupSeparator --------------------------------------------------------------


class TagGroupSeparatorParser(LocationDetailBase):
    """Location line followed by ``valid`` or ``from->to[,from->to...]``.

    Records are keyed by the word characters of their location line. The
    first report for a key wins, and any key reported ``valid`` is dropped.
    """

    detail_fields: ClassVar[tuple[str, ...]] = ("separators",)

    def parse_lines(self, lines: Sequence[str]) -> Iterator[OffenseRecord]:
        pending: dict[str, tuple[str, str] | None] = {}
        for header, detail in self.iter_pairs(lines):
            if detail is None:
                continue
            key = "".join(_NORMALIZATION.findall(header))
            if detail == _VALID_MARKER:
                pending[key] = None
            elif key not in pending:
                pending[key] = (header, detail)
        for entry in pending.values():
            if entry is None:
                continue
            header, separators = entry
            yield OffenseRecord(
                name=self.capture(header, "name"),
                location=self.capture(header, "location"),
                line=int(self.capture(header, "line") or 0),
                payload={"separators": separators},
            )


def _transitions(separators: PayloadValue) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for transition in _text(separators).split(","):
        source, arrow, target = transition.partition("->")
        if arrow and source and target:
            pairs.append((source, target))
    return pairs


def tag_group_separator_message(record: OffenseRecord) -> str:
    """Return the message listing tag group transitions that lack a blank line."""

    transitions = _transitions(record.field("separators"))
    if not transitions:
        return f"The `{_title(record)}` is missing blank lines between tag groups."
    if len(transitions) == 1:
        source, target = transitions[0]
        return f"The `{_title(record)}` is missing a blank line between `{source}` and `{target}` tag groups."
    formatted = ", ".join(f"`{source}` -> `{target}`" for source, target in transitions)
    return f"The `{_title(record)}` is missing blank lines between tag groups: {formatted}."


def _group_for_tag(tag_name: str, groups: Mapping[str, Sequence[str]]) -> str:
    for group_name, tags in groups.items():
        if tag_name in tags:
            return group_name
    return tag_name


def find_missing_separators(
    docstring: str,
    groups: Mapping[str, Sequence[str]],
    *,
    require_after_description: bool = False,
) -> list[tuple[str, str]]:
    """Return ``(from, to)`` group transitions not preceded by a blank line.

    Tags outside every configured group form a group of their own.

    Args:
        docstring: Raw docstring including tag lines.
        groups: Group name to member tag names.
        require_after_description: Treat free text as a ``description`` group.

    Returns:
        list[tuple[str, str]]: Missing transitions in docstring order.
    """

    missing: list[tuple[str, str]] = []
    previous: str | None = _DESCRIPTION_GROUP if require_after_description else None
    had_blank_line = True
    for raw_line in docstring.split("\n"):
        stripped = raw_line.strip()
        if not stripped:
            had_blank_line = True
            continue
        if stripped.startswith("@"):
            tag_name = stripped[1:].split(maxsplit=1)[0] if len(stripped) > 1 else ""
            if not tag_name:
                continue
            current = _group_for_tag(tag_name, groups)
            if previous is not None and current != previous and not had_blank_line:
                missing.append((previous, current))
            previous = current
        elif previous is None and require_after_description:
            previous = _DESCRIPTION_GROUP
        had_blank_line = False
    return missing


def _tag_group_separator_query(obj: DocObject, collector: ResultCollector, config: RuleConfig) -> None:
    if obj.is_alias or not obj.all_docs:
        return
    missing = find_missing_separators(
        obj.all_docs,
        config.option("TagGroups", {}),
        require_after_description=bool(config.option("RequireAfterDescription", False)),
    )
    collector.puts(format_location(obj))
    if missing:
        collector.puts(",".join(f"{source}->{target}" for source, target in missing))
    else:
        collector.puts(_VALID_MARKER)


TAG_GROUP_SEPARATOR: Final[RuleDefinition] = RuleDefinition(
    identifier="Tags/TagGroupSeparator",
    code="MissingTagGroupSeparator",
    description="Different tag groups must be separated by a blank line (opt-in).",
    kind=METHOD_KIND,
    defaults={
        "Enabled": False,
        "Severity": "convention",
        "TagGroups": {
            "param": ["param", "option"],
            "return": ["return"],
            "error": ["raise", "throws"],
            "example": ["example"],
            "meta": ["see", "note", "todo", "deprecated", "since", "version", "api"],
            "yield": ["yield", "yieldparam", "yieldreturn"],
        },
        "RequireAfterDescription": False,
    },
    parser=TagGroupSeparatorParser(),
    messages=tag_group_separator_message,
    in_process_query=_tag_group_separator_query,
    visibility="all",
)

# Tags/InvalidTypes -------------------------------------------------------------------


def invalid_types_message(record: OffenseRecord) -> str:
    """Return the message for an object whose tags name an unknown type."""

    return f"The `{_title(record)}` has at least one tag with an invalid type definition."


def type_names(declaration: str) -> list[str]:
    """Split a declaration such as ``Hash{Symbol => Array<String>}`` into its type names."""

    return [part for part in _TYPE_SEPARATORS.split(declaration) if part]


def _lexical_scope(obj: DocObject) -> str:
    if obj.is_method:
        for marker in ("#", "."):
            owner, separator, _ = obj.path.rpartition(marker)
            if separator:
                return owner
        return ""
    if obj.kind in _NAMESPACE_KINDS:
        return obj.path
    return obj.path.rpartition("::")[0]


def is_known_type(name: str, scope: str, known_paths: Set[str], extra_types: Collection[str] = ()) -> bool:
    """Return whether ``name`` denotes a usable type from within ``scope``.

    Duck types (``#read``), literals, core types, ``extra_types`` and any
    documented object reachable through the enclosing namespaces qualify.
    """

    if name.startswith("#") or _LITERAL_TYPE.match(name) or name in extra_types:
        return True
    bare = name.removeprefix("::")
    if bare in _CORE_TYPES or bare.split("::", 1)[0] in _CORE_TYPES:
        return True
    parts = scope.split("::") if scope else []
    for depth in range(len(parts), -1, -1):
        prefix = "::".join(parts[:depth])
        if (f"{prefix}::{bare}" if prefix else bare) in known_paths:
            return True
    return False


def _invalid_types_query(obj: DocObject, collector: ResultCollector, config: RuleConfig) -> None:
    validated = config.option("ValidatedTags", ())
    extra_types = set(config.option("ExtraTypes", ()))
    scope = _lexical_scope(obj)
    for tag in obj.tags:
        if tag.tag_name not in validated:
            continue
        names = (name for declaration in tag.types for name in type_names(declaration))
        if any(not is_known_type(name, scope, collector.known_paths, extra_types) for name in names):
            collector.puts(format_location(obj))
            return


INVALID_TYPES: Final[RuleDefinition] = RuleDefinition(
    identifier="Tags/InvalidTypes",
    code="InvalidTagType",
    description="Tag types that name neither a core type nor a documented object.",
    kind=METHOD_KIND,
    defaults={
        "Enabled": True,
        "Severity": "warning",
        "ValidatedTags": ["param", "option", "return", "yieldreturn"],
        "ExtraTypes": [],
    },
    parser=LocationBase(),
    messages=invalid_types_message,
    in_process_query=_invalid_types_query,
    visibility="all",
)


RULES: Final[tuple[RuleDefinition, ...]] = (
    INVALID_TYPES,
    MEANINGLESS_TAG,
    OPTION_TAGS,
    REDUNDANT_PARAM_DESCRIPTION,
    TAG_GROUP_SEPARATOR,
)

__all__ = [
    "INVALID_TYPES",
    "MEANINGLESS_TAG",
    "OPTION_TAGS",
    "REDUNDANT_PARAM_DESCRIPTION",
    "RULES",
    "TAG_GROUP_SEPARATOR",
    "detect_redundant_pattern",
    "find_missing_separators",
    "is_known_type",
    "type_names",
]
