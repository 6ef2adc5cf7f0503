# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the tag usage and layout rules."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pytest

from docqa.config import build_config
from docqa.docs import DocObject, DocRegistry, DocTag
from docqa.executor import Executor
from docqa.models import OffenseRecord
from docqa.rules import default_registry
from docqa.rules.tags import (
    RedundantParamParser,
    TagGroupSeparatorParser,
    detect_redundant_pattern,
    find_missing_separators,
    is_known_type,
    type_names,
)

SAMPLE = "lib/sample.rb"
REDUNDANT = "Tags/RedundantParamDescription"
SEPARATOR = "Tags/TagGroupSeparator"
INVALID_TYPES = "Tags/InvalidTypes"
DEFAULT_GROUPS = {
    "param": ["param", "option"],
    "return": ["return"],
    "error": ["raise", "throws"],
}


def _records(
    identifier: str,
    docs: DocRegistry,
    overrides: Mapping[str, Mapping[str, Any]] | None = None,
) -> list[OffenseRecord]:
    registry = default_registry()
    config = build_config(registry, overrides=overrides)
    outcome = Executor(registry, config, docs=docs).run_rule(0, config.rule(identifier), selection=[SAMPLE])
    assert outcome.result is not None
    return list(outcome.result.records)


def _message(identifier: str, record: OffenseRecord) -> str:
    return default_registry()[identifier].build_message(record)


def test_meaningless_tag_on_class_is_reported(tmp_path: Path) -> None:
    docs = DocRegistry(
        [
            DocObject(
                path="Sample",
                kind="class",
                name="Sample",
                file=SAMPLE,
                line=1,
                visibility="private",
                tags=(DocTag(tag_name="param", name="value"),),
            ),
            DocObject(
                path="Sample::LIMIT",
                kind="constant",
                name="LIMIT",
                file=SAMPLE,
                line=2,
                tags=(DocTag(tag_name="see"),),
            ),
        ],
        root=tmp_path,
    )

    records = _records("Tags/MeaninglessTag", docs)

    assert len(records) == 1
    assert records[0].payload == {"object_type": "class", "tag_name": "param"}
    assert _message("Tags/MeaninglessTag", records[0]) == (
        "The class `Sample` has a @param tag which is meaningless for a class. "
        "@param tags are only valid on methods."
    )


def test_option_tags_required_for_configured_parameter(tmp_path: Path, make_method) -> None:
    docs = DocRegistry(
        [
            make_method("Sample#run", line=3, params=("task", "opts")),
            make_method("Sample#plain", line=6, params=("task",)),
            make_method("Sample#splat", line=9, params=("**options",), tags=(DocTag(tag_name="option"),)),
        ],
        root=tmp_path,
    )

    records = _records("Tags/OptionTags", docs)

    assert [record.name for record in records] == ["Sample#run"]
    assert records[0].field("reason") == "missing_option_tags"
    assert "no @option tags" in _message("Tags/OptionTags", records[0])


@pytest.mark.parametrize(
    ("param_name", "description", "type_name", "expected"),
    [
        ("user", "The user", "User", "article_param"),
        ("name", "The user's name", "String", "possessive_param"),
        ("text", "String", "String", "type_restatement"),
        ("text", "String value", "String", "type_restatement"),
        ("payment", "payment to process", None, "param_to_verb"),
        ("user_id", "ID of the user", "Integer", "id_pattern"),
        ("from", "from this date", "Date", "directional_date"),
        ("settings", "Hash object with settings", "Hash", "type_generic"),
        ("user", "The user who owns the account", "User", None),
        ("count", "Number of retries before giving up", "Integer", None),
    ],
)
def test_detect_redundant_pattern(
    param_name: str, description: str, type_name: str | None, expected: str | None
) -> None:
    config = build_config(default_registry()).rule(REDUNDANT)

    assert detect_redundant_pattern(param_name, description, type_name, config) == expected


def test_disabled_patterns_are_not_detected() -> None:
    overrides = {REDUNDANT: {"EnabledPatterns": {"ArticleParam": False, "TypeGeneric": True}}}
    config = build_config(default_registry(), overrides=overrides).rule(REDUNDANT)

    assert detect_redundant_pattern("user", "The user", "User", config) is None


def test_redundant_description_is_reported(tmp_path: Path, make_method) -> None:
    docs = DocRegistry(
        [
            make_method(
                "Sample#greet",
                line=4,
                params=("user", "greeting"),
                tags=(
                    DocTag(tag_name="param", name="user", types=("User",), text="The user."),
                    DocTag(tag_name="param", name="greeting", text="Text shown before the user's name"),
                ),
            )
        ],
        root=tmp_path,
    )

    records = _records(REDUNDANT, docs)

    assert len(records) == 1
    record = records[0]
    assert record.field("param_name") == "user"
    assert record.field("pattern") == "article_param"
    assert record.field("word_count") == 2
    assert _message(REDUNDANT, record) == (
        "The @param description 'The user.' for `user` in `Sample#greet` only restates the parameter "
        "name with an article. Describe what the parameter is for instead."
    )


def test_redundant_parser_tolerates_separator_in_description() -> None:
    text = "lib/a.rb:3: Foo#bar\nparam|user|The | user|User|article_param|3\n"

    (record,) = RedundantParamParser().call(text)

    assert record.field("description") == "The | user"
    assert record.field("type_name") == "User"
    assert record.field("word_count") == 3


def test_redundant_param_severity_defaults_to_convention() -> None:
    assert build_config(default_registry()).rule(REDUNDANT).severity.value == "convention"


def test_find_missing_separators() -> None:
    docstring = "Does things.\n@param a first\n@return [String] result\n\n@raise [Error] on failure"

    assert find_missing_separators(docstring, DEFAULT_GROUPS) == [("param", "return")]


def test_separators_between_groups_are_clean() -> None:
    docstring = "Does things.\n\n@param a first\n@option a :x value\n\n@return [String]"

    assert find_missing_separators(docstring, DEFAULT_GROUPS) == []


def test_description_separator_is_optional() -> None:
    docstring = "Does things.\n@param a first"

    assert find_missing_separators(docstring, DEFAULT_GROUPS) == []
    assert find_missing_separators(docstring, DEFAULT_GROUPS, require_after_description=True) == [
        ("description", "param")
    ]


def test_unknown_tags_form_their_own_group() -> None:
    docstring = "@param a first\n@custom thing"

    assert find_missing_separators(docstring, DEFAULT_GROUPS) == [("param", "custom")]


def test_tag_group_parser_deduplicates_and_drops_valid_objects() -> None:
    text = (
        "lib/a.rb:1: Foo#a\nparam->return\n"
        "lib/a.rb:1: Foo#a\nvalid\n"
        "lib/a.rb:5: Foo#b\nparam->return,return->error\n"
        "lib/a.rb:5: Foo#b\nparam->return\n"
    )

    records = TagGroupSeparatorParser().call(text)

    assert [record.name for record in records] == ["Foo#b"]
    assert _message(SEPARATOR, records[0]) == (
        "The `Foo#b` is missing blank lines between tag groups: `param` -> `return`, `return` -> `error`."
    )


def test_tag_group_separator_runs_when_enabled(tmp_path: Path, make_method) -> None:
    docs = DocRegistry(
        [
            make_method("Sample#tight", line=2, raw_docstring="Does.\n@param a x\n@return [String] y"),
            make_method("Sample#spaced", line=8, raw_docstring="Does.\n\n@param a x\n\n@return [String] y"),
        ],
        root=tmp_path,
    )

    assert build_config(default_registry()).rule(SEPARATOR).enabled is False
    records = _records(SEPARATOR, docs, {SEPARATOR: {"Enabled": True}})

    assert [record.name for record in records] == ["Sample#tight"]
    assert _message(SEPARATOR, records[0]) == (
        "The `Sample#tight` is missing a blank line between `param` and `return` tag groups."
    )


@pytest.mark.parametrize(
    ("declaration", "expected"),
    [
        ("String", ["String"]),
        ("Array<String>", ["Array", "String"]),
        ("Hash{Symbol => Array<Integer>}", ["Hash", "Symbol", "Array", "Integer"]),
        ("Array(String, nil)", ["Array", "String", "nil"]),
        ("#read", ["#read"]),
    ],
)
def test_type_names(declaration: str, expected: list[str]) -> None:
    assert type_names(declaration) == expected


@pytest.mark.parametrize(
    ("name", "scope", "expected"),
    [
        ("Boolean", "", True),
        ("::String", "Shop", True),
        ("File::Stat", "", True),
        ("#each", "", True),
        (":symbol", "", True),
        ("42", "", True),
        ("Order", "Shop::Cart", True),
        ("Shop::Order", "Billing", True),
        ("Cart", "Billing", False),
        ("UndefinedType", "Shop", False),
    ],
)
def test_is_known_type(name: str, scope: str, expected: bool) -> None:
    known = frozenset({"Shop", "Shop::Order", "Shop::Cart", "Billing"})

    assert is_known_type(name, scope, known) is expected


def _typed_docs(tmp_path: Path, make_method) -> DocRegistry:
    return DocRegistry(
        [
            DocObject(path="Shop", kind="module", name="Shop", file=SAMPLE, line=1),
            DocObject(path="Shop::Order", kind="class", name="Order", file=SAMPLE, line=2),
            make_method(
                "Shop::Order#total",
                line=4,
                tags=(
                    DocTag(tag_name="param", name="items", types=("Array<Order>",)),
                    DocTag(tag_name="return", types=("Integer", "nil")),
                ),
            ),
            make_method(
                "Shop::Order#refund",
                line=8,
                tags=(DocTag(tag_name="param", name="reason", types=("UndefinedType",)),),
            ),
            make_method(
                "Shop::Order#lines",
                line=12,
                tags=(DocTag(tag_name="return", types=("Array<NonExistentClass>",)),),
            ),
            make_method(
                "Shop::Order#notify",
                line=16,
                tags=(DocTag(tag_name="raise", types=("MissingError",)),),
            ),
        ],
        root=tmp_path,
    )


def test_invalid_tag_types_are_reported(tmp_path: Path, make_method) -> None:
    records = _records(INVALID_TYPES, _typed_docs(tmp_path, make_method))

    assert [(record.name, record.line) for record in records] == [
        ("Shop::Order#refund", 8),
        ("Shop::Order#lines", 12),
    ]
    assert _message(INVALID_TYPES, records[0]) == (
        "The `Shop::Order#refund` has at least one tag with an invalid type definition."
    )


def test_extra_types_and_validated_tags_are_configurable(tmp_path: Path, make_method) -> None:
    overrides = {INVALID_TYPES: {"ExtraTypes": ["UndefinedType", "NonExistentClass"], "ValidatedTags": ["raise"]}}

    records = _records(INVALID_TYPES, _typed_docs(tmp_path, make_method), overrides)

    assert [record.name for record in records] == ["Shop::Order#notify"]
