# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Qualification domain package.

Validates whether staff members may be assigned to teach subjects or act
as class teachers, and matches specializations against subjects.
"""

from src.domains.qualification.specialization import (
    DEFAULT_SPECIALIZATION_MAP,
    SpecializationMatcher,
    load_specialization_map,
    qualification_level,
    required_qualification_level,
)
from src.domains.qualification.validator import QualificationValidator

__all__ = [
    "QualificationValidator",
    "SpecializationMatcher",
    "DEFAULT_SPECIALIZATION_MAP",
    "load_specialization_map",
    "qualification_level",
    "required_qualification_level",
]
