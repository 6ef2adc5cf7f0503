# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Validator execution strategies producing raw text for a rule's parser."""

from __future__ import annotations

import fnmatch
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from subprocess import CompletedProcess
from typing import Final, Protocol

from .collector import ResultCollector
from .config.models import GlobalSettings, RuleConfig
from .docs import DocRegistry
from .errors import ExecutionFailure
from .process import (
    NOT_FOUND_EXIT_STATUS,
    TIMEOUT_EXIT_STATUS,
    CommandOptions,
    CommandRunner,
    CommandTimeoutError,
    run_command,
)
from .rules.definition import ExecutionMode, ExternalQuery, RuleDefinition

XARGS: Final[str] = "xargs"
DEFAULT_TOOL_OPTIONS: Final[tuple[str, ...]] = ("--charset", "utf-8", "--markup", "markdown", "--no-progress")
VISIBILITY_FLAGS: Final[tuple[str, ...]] = ("--private", "--protected")
DATABASE_NAME: Final[str] = ".yardoc"
_STDERR_TAIL: Final[int] = 400


@dataclass(frozen=True, slots=True)
class RawOutput:
    """Text produced by a validator together with its exit status."""

    text: str
    exit_status: int = 0


class Strategy(Protocol):
    """Capability shared by every execution strategy."""

    def run(self) -> RawOutput:
        """Execute the rule and return its raw output."""
        ...


_GLOBSTAR: Final[str] = "**/"


def _globstar_variants(pattern: str) -> tuple[str, ...]:
    """Return ``pattern`` with each ``**/`` expanded to both one-or-more and zero directories."""

    head, separator, tail = pattern.partition(_GLOBSTAR)
    if not separator:
        return (pattern,)
    return tuple(
        variant
        for rest in _globstar_variants(tail)
        for variant in (f"{head}{_GLOBSTAR}{rest}", f"{head}{rest}")
    )


def glob_match(path: str, pattern: str) -> bool:
    """Return whether ``path`` matches ``pattern``; ``**/`` matches zero or more directories."""

    return any(fnmatch.fnmatchcase(path, variant) for variant in _globstar_variants(pattern))


def filter_selection(selection: Sequence[str], patterns: Sequence[str]) -> tuple[str, ...]:
    """Return ``selection`` without entries matching any glob in ``patterns``."""

    if not patterns:
        return tuple(selection)
    return tuple(path for path in selection if not any(glob_match(path, pattern) for pattern in patterns))


class InProcessStrategy:
    """Evaluate a rule's predicate over every selected documentation object."""

    def __init__(
        self,
        definition: RuleDefinition,
        config: RuleConfig,
        docs: DocRegistry,
        selection: Sequence[str],
    ) -> None:
        self._definition = definition
        self._config = config
        self._docs = docs
        self._selection = tuple(selection)

    def run(self) -> RawOutput:
        """Run the in-process query and return the collected text.

        Raises:
            ExecutionFailure: If the query raises for any object.
        """

        query = self._definition.in_process_query
        if query is None:
            raise ExecutionFailure(self._definition.identifier, "rule does not support in-process execution")
        collector = ResultCollector(self._docs.paths)
        for obj in self._docs.iter_objects(self._selection, visibility=self._definition.visibility):
            try:
                query(obj, collector, self._config)
            except Exception as exc:
                raise ExecutionFailure(
                    self._definition.identifier,
                    f"in-process query failed on {obj.path}: {exc}",
                ) from exc
        return RawOutput(collector.to_text(), 0)


class ExternalStrategy:
    """Run the documentation tool through ``xargs`` with the selection on stdin.

    The selection is written to a private list file that feeds ``xargs``,
    avoiding argument length limits without involving a shell.
    """

    def __init__(
        self,
        definition: RuleDefinition,
        config: RuleConfig,
        settings: GlobalSettings,
        selection: Sequence[str],
        *,
        runner: CommandRunner = run_command,
        cwd: Path | None = None,
    ) -> None:
        if definition.external is None:
            raise ExecutionFailure(definition.identifier, "rule does not support external execution")
        self._definition = definition
        self._external: ExternalQuery = definition.external
        self._config = config
        self._settings = settings
        self._selection = tuple(selection)
        self._runner = runner
        self._cwd = cwd

    def build_command(self, database: Path) -> list[str]:
        """Return the argument list for the external tool.

        Args:
            database: Documentation database directory passed with ``-b``.

        Returns:
            list[str]: ``xargs`` invocation; file paths arrive on stdin.
        """

        args = [XARGS, self._settings.tool, self._external.subcommand, *DEFAULT_TOOL_OPTIONS]
        args.extend(self._settings.extra_args)
        args.extend(self._config.extra_args)
        if self._external.subcommand == "list" and self._definition.visibility == "all":
            args.extend(flag for flag in VISIBILITY_FLAGS if flag not in args)
        try:
            query = self._external.query_for(self._config)
        except KeyError as exc:
            raise ExecutionFailure(self._definition.identifier, f"unknown query template {exc}") from exc
        if query is not None:
            args.extend(["--query", query, "-q"])
        args.extend(["-b", str(database)])
        return args

    def database_path(self, scratch_dir: Path) -> Path:
        """Return the database directory owned by this rule.

        With ``DocsDir`` configured each rule keeps its own persistent
        sub-directory; otherwise the database lives in ``scratch_dir``.
        """

        docs_dir = self._settings.docs_dir
        if docs_dir is None:
            return scratch_dir / DATABASE_NAME
        if self._cwd is not None and not docs_dir.is_absolute():
            docs_dir = self._cwd / docs_dir
        return docs_dir / self._definition.identifier.replace("/", "_") / DATABASE_NAME

    def run(self) -> RawOutput:
        """Execute the external tool and return its output.

        Raises:
            ExecutionFailure: On a missing executable, a timeout, a filesystem
                error while preparing the run, or an exit status outside the
                rule's accepted codes.
        """

        identifier = self._definition.identifier
        try:
            with tempfile.TemporaryDirectory(prefix="docqa-") as scratch:
                completed = self._execute(Path(scratch))
        except CommandTimeoutError as exc:
            raise ExecutionFailure(
                identifier, f"timed out after {exc.timeout:g}s", exit_status=TIMEOUT_EXIT_STATUS
            ) from exc
        except OSError as exc:
            raise ExecutionFailure(identifier, f"cannot prepare run: {exc}") from exc
        return self._evaluate(completed.returncode, completed.stdout or "", completed.stderr or "")

    def _execute(self, scratch_dir: Path) -> CompletedProcess[str]:
        database = self.database_path(scratch_dir)
        database.parent.mkdir(parents=True, exist_ok=True)
        list_path = scratch_dir / "files.txt"
        list_path.write_text("".join(f"{path}\n" for path in self._selection), encoding="utf-8")
        args = self.build_command(database)
        options = CommandOptions(cwd=self._cwd, stdin_path=list_path).with_timeout(self._settings.timeout)
        try:
            return self._runner(args, options=options)
        except FileNotFoundError as exc:
            raise ExecutionFailure(
                self._definition.identifier, str(exc), exit_status=NOT_FOUND_EXIT_STATUS
            ) from exc

    def _evaluate(self, returncode: int, stdout: str, stderr: str) -> RawOutput:
        identifier = self._definition.identifier
        if returncode not in self._external.accepted_exit_codes:
            tail = stderr.strip()[-_STDERR_TAIL:]
            reason = f"{self._settings.tool} exited with status {returncode}"
            raise ExecutionFailure(identifier, f"{reason}: {tail}" if tail else reason, exit_status=returncode)
        text = f"{stdout}{stderr}" if self._external.include_stderr else stdout
        return RawOutput(text, returncode)


class Validator:
    """Bind a rule, its configuration and a file selection to one strategy.

    In-process execution is used when the rule supports it, a documentation
    registry is available, and either ``InProcess`` is enabled or the rule has
    no external form.
    """

    def __init__(
        self,
        definition: RuleDefinition,
        config: RuleConfig,
        settings: GlobalSettings,
        selection: Sequence[str],
        *,
        docs: DocRegistry | None = None,
        runner: CommandRunner = run_command,
        root: Path | None = None,
    ) -> None:
        self.definition = definition
        self.config = config
        self.settings = settings
        self.selection = filter_selection(selection, (*settings.exclude, *config.exclude))
        self._docs = docs
        self._runner = runner
        self._root = root

    @property
    def mode(self) -> ExecutionMode:
        """Return the strategy this validator will use.

        Raises:
            ExecutionFailure: If no strategy can run with the available inputs.
        """

        modes = self.definition.modes
        in_process_ready = ExecutionMode.IN_PROCESS in modes and self._docs is not None
        if in_process_ready and (self.settings.in_process or ExecutionMode.EXTERNAL not in modes):
            return ExecutionMode.IN_PROCESS
        if ExecutionMode.EXTERNAL in modes:
            return ExecutionMode.EXTERNAL
        raise ExecutionFailure(self.definition.identifier, "in-process rule requires a documentation database")

    def strategy(self) -> Strategy:
        """Return the strategy instance selected by :attr:`mode`."""

        if self.mode is ExecutionMode.IN_PROCESS and self._docs is not None:
            return InProcessStrategy(self.definition, self.config, self._docs, self.selection)
        return ExternalStrategy(
            self.definition, self.config, self.settings, self.selection, runner=self._runner, cwd=self._root
        )

    def run(self) -> RawOutput:
        """Execute the rule; an empty selection yields empty output without running anything."""

        if not self.selection:
            return RawOutput("", 0)
        return self.strategy().run()


__all__ = [
    "DEFAULT_TOOL_OPTIONS",
    "ExecutionMode",
    "ExternalStrategy",
    "InProcessStrategy",
    "RawOutput",
    "Strategy",
    "Validator",
    "filter_selection",
    "glob_match",
]
