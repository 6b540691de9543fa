# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Staff assignment domain package.

This package provides staff assignment management functionality including:
- Class teacher and subject teacher assignment
- Supersession of incumbent assignments
- Assignment history and termination
"""

from src.domains.assignment.service import (
    StaffAssignmentService,
    AssignmentServiceError,
    QualificationRejectedError,
    AlreadyClassTeacherError,
    WorkloadExceededError,
    DuplicateAssignmentError,
    AssignmentNotFoundError,
    ConcurrentAssignmentError,
)

__all__ = [
    "StaffAssignmentService",
    "AssignmentServiceError",
    "QualificationRejectedError",
    "AlreadyClassTeacherError",
    "WorkloadExceededError",
    "DuplicateAssignmentError",
    "AssignmentNotFoundError",
    "ConcurrentAssignmentError",
]
