# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Linter configuration: rule selection, known enumerations, and network settings."""

from checklint.config.settings import (
    CONFIG_FILE_NAME,
    DEFAULT_PROVIDERS,
    DEFAULT_TARGET_TYPES,
    ConfigurationError,
    LinkSettings,
    Settings,
    load_settings,
    parse_settings,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "DEFAULT_PROVIDERS",
    "DEFAULT_TARGET_TYPES",
    "ConfigurationError",
    "LinkSettings",
    "Settings",
    "load_settings",
    "parse_settings",
]
