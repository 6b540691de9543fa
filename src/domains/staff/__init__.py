# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Staff domain package.

This package provides staff record management including:
- Staff code generation
- Staff creation with conflict retry
- Staff lookup, update, and soft deletion
"""

from src.domains.staff.code_generator import (
    StaffCodeGenerator,
    StaffCodeParts,
    format_staff_code,
    parse_staff_code,
)
from src.domains.staff.exceptions import (
    GenerationExhaustedError,
    PersistenceConflictError,
    StaffNotFoundError,
    StaffServiceError,
)
from src.domains.staff.service import StaffService

__all__ = [
    "StaffService",
    "StaffCodeGenerator",
    "StaffCodeParts",
    "format_staff_code",
    "parse_staff_code",
    "StaffServiceError",
    "StaffNotFoundError",
    "GenerationExhaustedError",
    "PersistenceConflictError",
]
