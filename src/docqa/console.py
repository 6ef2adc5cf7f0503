# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared Rich consoles for user-facing output."""

from __future__ import annotations

import sys
from functools import lru_cache

from rich.console import Console


def detect_tty() -> bool:
    """Return ``True`` when stdout appears to be backed by a terminal."""

    try:
        return sys.stdout.isatty()
    except (AttributeError, ValueError):
        return False


@lru_cache(maxsize=8)
def _console(color: bool, emoji: bool, tty: bool) -> Console:
    styled = color and tty
    return Console(
        color_system="auto" if styled else None,
        force_terminal=tty,
        no_color=not styled,
        emoji=emoji,
        soft_wrap=True,
    )


def get_console(*, color: bool, emoji: bool) -> Console:
    """Return the console matching the presentation flags and the current terminal.

    Consoles are created once per ``(color, emoji, tty)`` combination; each
    one writes to whatever ``sys.stdout`` is at print time.

    Args:
        color: Whether ANSI colour output is wanted.
        emoji: Whether Rich should render emoji glyphs.

    Returns:
        Console: Cached console instance.
    """

    return _console(color, emoji, detect_tty())


__all__ = ["detect_tty", "get_console"]
