# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from subprocess import CompletedProcess

import pytest

from docqa.docs import DocObject, DocParameter, DocRegistry, DocTag
from docqa.process import CommandOptions

SAMPLE_FILE = "lib/sample.rb"


class FakeRunner:
    """Command runner double recording invocations and the files fed on stdin."""

    def __init__(
        self,
        *,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        raises: Exception | None = None,
    ) -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.calls: list[list[str]] = []
        self.stdin: list[str] = []
        self.options: list[CommandOptions | None] = []
        self.raises = raises

    def __call__(self, args: Sequence[str], *, options: CommandOptions | None = None) -> CompletedProcess[str]:
        self.calls.append(list(args))
        self.options.append(options)
        if options is not None and options.stdin_path is not None:
            self.stdin.append(options.stdin_path.read_text(encoding="utf-8"))
        if self.raises is not None:
            raise self.raises
        return CompletedProcess(args=list(args), returncode=self.returncode, stdout=self.stdout, stderr=self.stderr)


def method(
    path: str,
    *,
    line: int,
    params: Sequence[str] = (),
    tags: Sequence[DocTag] = (),
    docstring: str = "",
    **extra: object,
) -> DocObject:
    """Build a method object declared in the sample file."""

    return DocObject(
        path=path,
        kind="method",
        name=path.rsplit("#", 1)[-1].rsplit(".", 1)[-1],
        file=SAMPLE_FILE,
        line=line,
        parameters=tuple(DocParameter(name=name) for name in params),
        docstring=docstring,
        tags=tuple(tags),
        **extra,
    )


@pytest.fixture
def fake_runner() -> FakeRunner:
    """Return a runner that succeeds with empty output."""

    return FakeRunner()


@pytest.fixture
def sample_docs(tmp_path: Path) -> DocRegistry:
    """Return a small documentation graph rooted at ``tmp_path``."""

    source = tmp_path / SAMPLE_FILE
    source.parent.mkdir(parents=True)
    source.write_text("class Sample\nend\n", encoding="utf-8")
    objects = [
        DocObject(path="Sample", kind="class", name="Sample", file=SAMPLE_FILE, line=1, docstring=""),
        method(
            "Sample#process",
            line=4,
            params=("input", "output"),
            docstring="Process things.",
            tags=(DocTag(tag_name="param", name="input", text="Source stream"),),
        ),
        method(
            "Sample#convert",
            line=10,
            params=("value",),
            docstring="Convert a value.",
            tags=(
                DocTag(tag_name="param", name="value", text="Raw value to convert"),
                DocTag(tag_name="return", types=("String",), text="converted text"),
            ),
        ),
        method("Sample#ready?", line=16, docstring="Whether ready."),
    ]
    return DocRegistry(objects, root=tmp_path)


@pytest.fixture
def make_method():
    """Return the method object factory."""

    return method


@pytest.fixture
def make_runner():
    """Return the :class:`FakeRunner` factory."""

    return FakeRunner
