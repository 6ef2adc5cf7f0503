# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Rule registry preserving declaration order."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping

from ..config.utils import suggest
from ..errors import CombinationCycleError, UnknownRuleError
from .definition import RuleDefinition


class RuleRegistry(Mapping[str, RuleDefinition]):
    """Read-only mapping of rule identifiers to :class:`RuleDefinition` entries.

    Iteration order is registration order, which is also execution and
    reporting order.
    """

    def __init__(self, definitions: Iterable[RuleDefinition] = ()) -> None:
        self._rules: dict[str, RuleDefinition] = {}
        for definition in definitions:
            self.register(definition)

    def register(self, definition: RuleDefinition) -> None:
        """Register ``definition`` enforcing unique identifiers and acyclic combinations.

        Args:
            definition: Rule definition to insert.

        Raises:
            ValueError: If the identifier is already registered.
            CombinationCycleError: If ``combines_with`` would form a cycle.
        """

        if definition.identifier in self._rules:
            raise ValueError(f"Rule '{definition.identifier}' already registered")
        self._rules[definition.identifier] = definition
        try:
            self._check_cycles()
        except CombinationCycleError:
            del self._rules[definition.identifier]
            raise

    def require(self, identifier: str) -> RuleDefinition:
        """Return the definition for ``identifier``.

        Raises:
            UnknownRuleError: If the identifier is not registered.
        """

        definition = self._rules.get(identifier)
        if definition is None:
            raise UnknownRuleError(identifier, suggest(identifier, self._rules))
        return definition

    def definitions(self) -> tuple[RuleDefinition, ...]:
        """Return every definition in registration order."""

        return tuple(self._rules.values())

    def _check_cycles(self) -> None:
        visiting: list[str] = []
        done: set[str] = set()

        def visit(identifier: str) -> None:
            if identifier in done:
                return
            if identifier in visiting:
                chain = " -> ".join((*visiting[visiting.index(identifier) :], identifier))
                raise CombinationCycleError(f"combines_with cycle detected: {chain}")
            visiting.append(identifier)
            definition = self._rules.get(identifier)
            if definition is not None:
                for target in definition.combines_with:
                    visit(target)
            visiting.pop()
            done.add(identifier)

        for identifier in self._rules:
            visit(identifier)

    def __getitem__(self, key: str) -> RuleDefinition:
        return self._rules[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)


__all__ = ["RuleRegistry"]
