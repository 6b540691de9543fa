# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""YAML keyword tables for SchoolDesk.

Deployments keep small lookup tables in YAML, each under a named top-level
section whose values are lists of keywords:

    specializations:
      music: [music, performing arts]

``load_keyword_table`` reads and checks one such section and
``deep_merge`` lays it over the built-in table.
"""

from pathlib import Path
from typing import Any

import yaml


class YAMLLoadError(Exception):
    """A YAML table file is missing, unreadable or malformed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load YAML file '{path}': {reason}")


def load_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML file whose root is a mapping.

    An empty file yields an empty dict.

    Raises:
        YAMLLoadError: If the file is absent, unreadable, not valid YAML,
            or its root is not a mapping.
    """
    if not path.is_file():
        raise YAMLLoadError(path, "File does not exist")

    try:
        with path.open(encoding="utf-8") as handle:
            document = yaml.safe_load(handle)
    except OSError as e:
        raise YAMLLoadError(path, f"Cannot read file: {e}") from e
    except yaml.YAMLError as e:
        raise YAMLLoadError(path, f"Invalid YAML syntax: {e}") from e

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise YAMLLoadError(path, f"YAML root must be a mapping, got {type(document).__name__}")
    return document


def load_keyword_table(path: Path, section: str) -> dict[str, list[str]]:
    """Load one keyword section from a YAML file.

    Args:
        path: YAML file to read.
        section: Top-level key holding the table. A missing section is
            treated as empty.

    Returns:
        Mapping of keyword to its list of accepted strings.

    Raises:
        YAMLLoadError: If the file cannot be loaded, the section is not a
            mapping, or an entry is not a list of strings.
    """
    table = load_yaml(path).get(section) or {}

    if not isinstance(table, dict):
        raise YAMLLoadError(path, f"'{section}' must be a mapping")

    for key, values in table.items():
        if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
            raise YAMLLoadError(path, f"{section.capitalize()} for '{key}' must be a list of strings")

    return {str(key): list(values) for key, values in table.items()}


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``override`` laid over it.

    Nested mappings merge key by key. Lists and scalars in ``override``
    replace the base entry outright, so a deployment can narrow a keyword
    list as well as extend it. Neither argument is modified.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged
