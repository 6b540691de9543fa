# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models for the school database.

Importing this package registers every table on Base.metadata.
"""

from src.infrastructure.database.models.audit import AuditLog
from src.infrastructure.database.models.base import Base, SoftDeleteMixin, TimestampMixin
from src.infrastructure.database.models.school import AcademicYear, SchoolClass, Subject
from src.infrastructure.database.models.staff import (
    ACTIVE_CLASS_TEACHER_PER_CLASS,
    ACTIVE_CLASS_TEACHER_PER_STAFF,
    ACTIVE_SUBJECT_ASSIGNMENT,
    STAFF_CODE_CONSTRAINT,
    Staff,
    StaffAssignment,
    StaffCodeSequence,
)

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "SoftDeleteMixin",
    # School structure
    "AcademicYear",
    "SchoolClass",
    "Subject",
    # Staff
    "Staff",
    "StaffAssignment",
    "StaffCodeSequence",
    "STAFF_CODE_CONSTRAINT",
    "ACTIVE_CLASS_TEACHER_PER_CLASS",
    "ACTIVE_CLASS_TEACHER_PER_STAFF",
    "ACTIVE_SUBJECT_ASSIGNMENT",
    # Audit
    "AuditLog",
]
