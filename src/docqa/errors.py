# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy shared across the docqa package."""

from __future__ import annotations


class DocqaError(Exception):
    """Base class for every error raised by docqa."""


class ConfigError(DocqaError):
    """Raised when configuration input is invalid."""


class UnknownRuleError(ConfigError):
    """Raised when configuration references a rule identifier that does not exist."""

    def __init__(self, identifier: str, suggestion: str | None = None) -> None:
        """Initialise the error with the offending identifier.

        Args:
            identifier: Rule identifier that could not be resolved.
            suggestion: Closest known identifier, when one exists.
        """

        message = f"Unknown rule: '{identifier}'"
        if suggestion:
            message = f"{message} (did you mean '{suggestion}'?)"
        super().__init__(message)
        self.identifier = identifier
        self.suggestion = suggestion


class CircularIncludeError(ConfigError):
    """Raised when configuration files include each other in a loop."""


class CombinationCycleError(ConfigError):
    """Raised when ``combines_with`` declarations form a cycle."""


class TodoFileExistsError(DocqaError):
    """Raised when a TODO configuration already exists and ``force`` was not requested."""


class DocumentationGraphError(DocqaError):
    """Raised when the documentation database cannot be loaded."""


class ExecutionFailure(DocqaError):
    """Raised when a single rule cannot produce output.

    The executor catches this error, records it against the rule and keeps
    running the remaining rules.
    """

    def __init__(self, rule: str, reason: str, *, exit_status: int | None = None) -> None:
        """Initialise the failure.

        Args:
            rule: Identifier of the rule that failed.
            reason: Human-readable explanation of the failure.
            exit_status: Exit status reported by the external process, if any.
        """

        super().__init__(f"{rule}: {reason}")
        self.rule = rule
        self.reason = reason
        self.exit_status = exit_status


__all__ = [
    "CircularIncludeError",
    "CombinationCycleError",
    "ConfigError",
    "DocqaError",
    "DocumentationGraphError",
    "ExecutionFailure",
    "TodoFileExistsError",
    "UnknownRuleError",
]
