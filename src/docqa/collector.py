# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Append-only sink used by in-process rules to emit parser-ready text."""

from __future__ import annotations

from collections.abc import Iterable, Set

from .docs import DocObject


def format_location(obj: DocObject, extra: str | int | None = None) -> str:
    """Return the ``<file>:<line>: <title>[|<extra>]`` line for ``obj``.

    Args:
        obj: Documentation object being reported.
        extra: Optional rule-specific field appended after ``|``.

    Returns:
        str: Location line understood by :class:`docqa.parsers.LocationBase`.
    """

    line = f"{obj.file}:{obj.line if obj.line is not None else 0}: {obj.title}"
    if extra is None:
        return line
    return f"{line}|{extra}"


class ResultCollector:
    """Accumulate output lines exactly as an external query would print them.

    ``known_paths`` holds the path of every documented object so queries can
    resolve references to other objects.
    """

    __slots__ = ("_lines", "known_paths")

    def __init__(self, known_paths: Set[str] = frozenset()) -> None:
        self._lines: list[str] = []
        self.known_paths = known_paths

    def puts(self, line: str) -> None:
        """Append ``line`` to the collected output."""

        self._lines.append(line)

    def extend(self, lines: Iterable[str]) -> None:
        """Append every entry of ``lines`` in order."""

        self._lines.extend(lines)

    def __len__(self) -> int:
        return len(self._lines)

    def to_text(self) -> str:
        """Return the collected output as newline-terminated text."""

        if not self._lines:
            return ""
        return "\n".join(self._lines) + "\n"


__all__ = ["ResultCollector", "format_location"]
