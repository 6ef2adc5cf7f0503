# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models, loading and validation."""

from __future__ import annotations

from .models import ALL_VALIDATORS_KEY, Config, GlobalSettings, RuleConfig, build_config, resolve_rule_config

__all__ = [
    "ALL_VALIDATORS_KEY",
    "Config",
    "GlobalSettings",
    "RuleConfig",
    "build_config",
    "resolve_rule_config",
]
