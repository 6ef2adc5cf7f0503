# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Rule results and their run-wide aggregate."""

from __future__ import annotations

from .aggregate import Aggregate, RuleFailure
from .base import Result

__all__ = ["Aggregate", "Result", "RuleFailure"]
