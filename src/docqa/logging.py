# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""User-facing status lines with optional colour and emoji."""

from __future__ import annotations

from typing import Final

from rich.text import Text

from .console import detect_tty, get_console

_INFO: Final[tuple[str, str]] = ("ℹ️ ", "cyan")
_OK: Final[tuple[str, str]] = ("✅ ", "green")
_WARN: Final[tuple[str, str]] = ("⚠️ ", "yellow")
_FAIL: Final[tuple[str, str]] = ("❌ ", "red")


def emoji(symbol: str, enable: bool) -> str:
    """Return ``symbol`` when emoji output is enabled, otherwise blank."""

    return symbol if enable else ""


def _emit(msg: str, marker: tuple[str, str], *, use_emoji: bool, use_color: bool | None) -> None:
    """Print ``msg`` prefixed by the marker's emoji and styled with its colour.

    Args:
        msg: Message text; Rich markup is not interpreted.
        marker: ``(emoji, style)`` pair of the message level.
        use_emoji: Whether to prefix the emoji.
        use_color: Explicit colour flag; ``None`` follows TTY detection.
    """

    symbol, style = marker
    color_enabled = detect_tty() if use_color is None else use_color
    text = Text(f"{emoji(symbol, use_emoji)}{msg}")
    if color_enabled:
        text.stylize(style)
    get_console(color=color_enabled, emoji=use_emoji).print(text)


def info(msg: str, *, use_emoji: bool = True, use_color: bool | None = None) -> None:
    """Emit an informational message."""

    _emit(msg, _INFO, use_emoji=use_emoji, use_color=use_color)


def ok(msg: str, *, use_emoji: bool = True, use_color: bool | None = None) -> None:
    """Emit a success message."""

    _emit(msg, _OK, use_emoji=use_emoji, use_color=use_color)


def warn(msg: str, *, use_emoji: bool = True, use_color: bool | None = None) -> None:
    """Emit a warning message, used for rules that errored."""

    _emit(msg, _WARN, use_emoji=use_emoji, use_color=use_color)


def fail(msg: str, *, use_emoji: bool = True, use_color: bool | None = None) -> None:
    """Emit an error message."""

    _emit(msg, _FAIL, use_emoji=use_emoji, use_color=use_color)


__all__ = ["emoji", "fail", "info", "ok", "warn"]
