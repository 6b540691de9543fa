# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Subject to specialization matching and qualification levels.

The matcher is a keyword heuristic. A specialization matches a subject when
either lower-cased name contains the other, or when the subject name
contains a keyword from the table and the specialization contains one of
that keyword's accepted specializations.

The table can be extended or overridden per deployment with a YAML file:

    specializations:
      mathematics: [math, mathematics, statistics]
      music: [music, performing arts]
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from src.core.config.yaml_loader import deep_merge, load_keyword_table

logger = logging.getLogger(__name__)

DEFAULT_SPECIALIZATION_MAP: dict[str, list[str]] = {
    "mathematics": ["math", "mathematics", "statistics", "applied mathematics"],
    "math": ["math", "mathematics", "statistics", "applied mathematics"],
    "science": ["science", "physics", "chemistry", "biology", "general science"],
    "physics": ["physics", "science", "physical science"],
    "chemistry": ["chemistry", "science"],
    "biology": ["biology", "science", "life science", "zoology", "botany"],
    "english": ["english", "literature", "linguistics"],
    "nepali": ["nepali", "nepali literature"],
    "social": ["social", "sociology", "history", "geography", "political science"],
    "history": ["history", "social", "social studies"],
    "geography": ["geography", "social", "social studies"],
    "computer": ["computer", "it", "information technology", "computer science"],
    "economics": ["economics", "commerce", "business"],
    "accounting": ["accounting", "commerce", "business", "finance"],
    "business": ["business", "commerce", "management", "economics"],
}

# Checked highest first; the first level with a matching keyword wins.
QUALIFICATION_LEVEL_KEYWORDS: list[tuple[int, tuple[str, ...]]] = [
    (4, ("phd", "doctorate")),
    (3, ("master", "m.ed", "m.sc", "m.a", "mba")),
    (2, ("bachelor", "b.ed", "b.sc", "b.a", "bba")),
    (1, ("diploma", "certificate")),
]


def qualification_level(qualification: str | None) -> int:
    """Map a free-text qualification to an ordinal.

    Returns:
        0 none, 1 certificate or diploma, 2 bachelor, 3 master, 4 doctorate.
    """
    if not qualification:
        return 0

    text = qualification.lower()
    for level, keywords in QUALIFICATION_LEVEL_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return level
    return 0


def required_qualification_level(grade_level: int) -> int:
    """Minimum recommended qualification ordinal for a grade."""
    if grade_level <= 5:
        return 1
    if grade_level <= 10:
        return 2
    return 3


class SpecializationMatcher:
    """Keyword matcher between staff specializations and subject names.

    Attributes:
        mapping: Subject keyword to accepted specialization keywords.
    """

    def __init__(self, mapping: Mapping[str, list[str]] | None = None) -> None:
        source = DEFAULT_SPECIALIZATION_MAP if mapping is None else mapping
        self.mapping = {
            key.lower(): [value.lower() for value in values]
            for key, values in source.items()
        }

    @classmethod
    def from_file(cls, path: Path | None) -> SpecializationMatcher:
        """Build a matcher from the defaults merged with an optional YAML file.

        Args:
            path: YAML file with a top-level ``specializations`` mapping.
                None uses the defaults only.

        Raises:
            YAMLLoadError: If the file cannot be loaded or is malformed.
        """
        if path is None:
            return cls()
        return cls(load_specialization_map(path))

    def matches(self, specialization: str, subject_name: str) -> bool:
        """Check whether a specialization plausibly covers a subject."""
        spec = specialization.lower()
        subject = subject_name.lower()

        if spec in subject or subject in spec:
            return True

        for keyword, accepted in self.mapping.items():
            if keyword in subject and any(value in spec for value in accepted):
                return True

        return False


def load_specialization_map(path: Path) -> dict[str, list[str]]:
    """Load the specialization table from YAML, merged over the defaults.

    Raises:
        YAMLLoadError: If the file cannot be loaded or is malformed.
    """
    overrides = load_keyword_table(path, "specializations")
    logger.info("Loaded %d specialization overrides from %s", len(overrides), path)
    return deep_merge(DEFAULT_SPECIALIZATION_MAP, overrides)
