# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for SchoolDesk.

This package provides centralized configuration management:
- Settings: Pydantic-based settings loaded from environment variables
- YAML loader: Utilities for loading deployment tables from YAML files

Example:
    >>> from src.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from src.core.config.settings import (
    AssignmentSettings,
    DatabaseSettings,
    Settings,
    StaffSettings,
    WorkloadSettings,
    clear_settings_cache,
    get_settings,
)
from src.core.config.yaml_loader import (
    YAMLLoadError,
    deep_merge,
    load_keyword_table,
    load_yaml,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "DatabaseSettings",
    "StaffSettings",
    "AssignmentSettings",
    "WorkloadSettings",
    # YAML utilities
    "load_yaml",
    "load_keyword_table",
    "deep_merge",
    "YAMLLoadError",
]
