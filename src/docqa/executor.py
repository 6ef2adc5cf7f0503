# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Run every enabled rule and feed the results to an :class:`Aggregate`."""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from functools import partial
from pathlib import Path

from .config.models import Config, RuleConfig
from .docs import DocRegistry
from .errors import ExecutionFailure
from .logging import warn
from .process import CommandRunner, run_command
from .results.aggregate import Aggregate, RuleFailure
from .results.base import Result
from .rules.registry import RuleRegistry
from .validators import Validator


@dataclass(frozen=True, slots=True)
class RuleOutcome:
    """Outcome of one rule: a result or a failure, tagged with its order."""

    order: int
    result: Result | None = None
    failure: RuleFailure | None = None


class Executor:
    """Orchestrate validators over a bounded worker pool.

    Results reach the aggregate in configured rule order regardless of
    completion order. A failing rule is recorded and logged without affecting
    its siblings.
    """

    def __init__(
        self,
        registry: RuleRegistry,
        config: Config,
        *,
        docs: DocRegistry | None = None,
        runner: CommandRunner = run_command,
        root: Path | None = None,
        use_color: bool | None = None,
        use_emoji: bool = True,
    ) -> None:
        self._registry = registry
        self._root = root if root is not None else Path.cwd()
        self._config = config
        self._docs = docs
        self._runner = runner
        self._use_color = use_color
        self._use_emoji = use_emoji

    def run(self, selection: Sequence[str]) -> Aggregate:
        """Run every enabled rule over ``selection``.

        Args:
            selection: Files to check.

        Returns:
            Aggregate: Finalized aggregate of the run.
        """

        rules = self._config.enabled_rules()
        runner = partial(self.run_rule, selection=tuple(selection))
        outcomes: list[RuleOutcome] = []
        jobs = self._config.settings.jobs
        if jobs > 1 and len(rules) > 1:
            with ThreadPoolExecutor(max_workers=jobs) as pool:
                future_map = {pool.submit(runner, order, rule): order for order, rule in enumerate(rules)}
                for future in as_completed(future_map):
                    outcomes.append(future.result())
        else:
            outcomes.extend(runner(order, rule) for order, rule in enumerate(rules))

        aggregate = Aggregate()
        for outcome in sorted(outcomes, key=lambda item: item.order):
            if outcome.result is not None:
                aggregate.add(outcome.result)
            if outcome.failure is not None:
                aggregate.add_failure(outcome.failure)
        return aggregate.finalize()

    def run_rule(self, order: int, rule: RuleConfig, *, selection: Sequence[str]) -> RuleOutcome:
        """Run one rule end to end: validator, parser, refinement and result.

        Args:
            order: Position of the rule in execution order.
            rule: Resolved configuration of the rule.
            selection: Files to check.

        Returns:
            RuleOutcome: Result on success, failure otherwise.
        """

        definition = self._registry.require(rule.identifier)
        validator = Validator(
            definition,
            rule,
            self._config.settings,
            selection,
            docs=self._docs,
            runner=self._runner,
            root=self._root,
        )
        try:
            raw = validator.run()
            records = definition.parser.call(raw.text)
            if definition.refine is not None:
                records = list(definition.refine(records, rule, self._root))
        except ExecutionFailure as exc:
            return self._failed(order, RuleFailure(rule=exc.rule, reason=exc.reason, exit_status=exc.exit_status))
        except Exception as exc:
            reason = f"unexpected {type(exc).__name__}: {exc}"
            return self._failed(order, RuleFailure(rule=rule.identifier, reason=reason))
        return RuleOutcome(order=order, result=Result(definition, rule, records))

    def _failed(self, order: int, failure: RuleFailure) -> RuleOutcome:
        self._log_failure(failure)
        return RuleOutcome(order=order, failure=failure)

    def _log_failure(self, failure: RuleFailure) -> None:
        status = f" (exit {failure.exit_status})" if failure.exit_status is not None else ""
        warn(
            f"{failure.rule} errored{status}: {failure.reason}",
            use_emoji=self._use_emoji,
            use_color=self._use_color,
        )


__all__ = ["Executor", "RuleOutcome"]
