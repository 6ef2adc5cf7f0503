# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Safe wrappers around ``subprocess`` execution."""

from __future__ import annotations

import shutil

# Bandit: subprocess usage is intentional; the wrapper never enables ``shell=True``.
import subprocess  # nosec B404
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, replace
from pathlib import Path
from subprocess import CompletedProcess
from typing import Final

TIMEOUT_EXIT_STATUS: Final[int] = 124
NOT_FOUND_EXIT_STATUS: Final[int] = 127

CommandRunner = Callable[..., CompletedProcess[str]]


class CommandTimeoutError(Exception):
    """Raised when a command exceeds its timeout.

    Carries the output the process produced before it was killed.
    """

    def __init__(self, args: Sequence[str], timeout: float, stdout: str = "", stderr: str = "") -> None:
        super().__init__(f"Command timed out after {timeout:.1f}s")
        self.args_list = list(args)
        self.timeout = timeout
        self.stdout = stdout
        self.stderr = stderr


@dataclass(frozen=True, slots=True)
class CommandOptions:
    """Immutable command execution options."""

    cwd: Path | None = None
    env: Mapping[str, str] | None = None
    timeout: float | None = None
    stdin_path: Path | None = None

    def with_timeout(self, timeout: float | None) -> CommandOptions:
        """Return a copy of the options using ``timeout``.

        Args:
            timeout: Timeout in seconds, or ``None`` to wait indefinitely.

        Returns:
            CommandOptions: Updated options instance.

        Raises:
            ValueError: When ``timeout`` is negative.
        """

        if timeout is not None and timeout < 0:
            raise ValueError("timeout must be non-negative")
        return replace(self, timeout=timeout)


def _ensure_text(value: str | bytes | None) -> str | None:
    """Return ``value`` decoded to text when supplied as ``bytes``."""

    if value is None or isinstance(value, str):
        return value
    return value.decode(errors="ignore")


def _normalize_args(args: Sequence[str]) -> list[str]:
    """Resolve the executable of ``args`` against ``PATH``.

    Args:
        args: Raw command arguments supplied by the caller.

    Returns:
        list[str]: Argument list whose first entry is an absolute executable path.

    Raises:
        ValueError: If no arguments are provided.
        FileNotFoundError: If the executable cannot be resolved on ``PATH``.
    """

    if not args:
        raise ValueError("subprocess command requires at least one argument")

    head, *rest = args
    head_path = Path(head)
    if head_path.is_absolute():
        return [str(head_path), *rest]

    resolved = shutil.which(head)
    if resolved is None:
        raise FileNotFoundError(f"Executable '{head}' was not found on PATH")
    return [resolved, *rest]


def run_command(args: Sequence[str], *, options: CommandOptions | None = None) -> CompletedProcess[str]:
    """Execute ``args`` capturing stdout and stderr as text.

    Args:
        args: Command and argument sequence to execute.
        options: Execution options; defaults apply when omitted.

    Returns:
        CompletedProcess[str]: Subprocess execution metadata.

    Raises:
        FileNotFoundError: If the executable cannot be resolved on ``PATH``.
        CommandTimeoutError: If the command outlives ``options.timeout``.
    """

    normalized = _normalize_args(args)
    resolved = options or CommandOptions()
    stdin_handle = resolved.stdin_path.open("r", encoding="utf-8") if resolved.stdin_path else None
    try:
        # Bandit: argument lists are passed directly without shell expansion.
        return subprocess.run(  # nosec B603
            normalized,
            cwd=str(resolved.cwd) if resolved.cwd is not None else None,
            env=dict(resolved.env) if resolved.env is not None else None,
            check=False,
            capture_output=True,
            text=True,
            timeout=resolved.timeout,
            stdin=stdin_handle if stdin_handle is not None else subprocess.DEVNULL,
        )
    except subprocess.TimeoutExpired as exc:
        raise CommandTimeoutError(
            normalized,
            exc.timeout,
            stdout=_ensure_text(exc.stdout) or "",
            stderr=_ensure_text(exc.stderr) or "",
        ) from exc
    finally:
        if stdin_handle is not None:
            stdin_handle.close()


__all__ = [
    "CommandOptions",
    "CommandRunner",
    "CommandTimeoutError",
    "NOT_FOUND_EXIT_STATUS",
    "TIMEOUT_EXIT_STATUS",
    "run_command",
]
