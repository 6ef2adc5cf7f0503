# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Public parser exports for converting validator output into offense records."""

from __future__ import annotations

from .base import (
    Base,
    LocationBase,
    LocationDetailBase,
    OneLineBase,
    TwoLineBase,
    regexps,
)

__all__ = [
    "Base",
    "LocationBase",
    "LocationDetailBase",
    "OneLineBase",
    "TwoLineBase",
    "regexps",
]
