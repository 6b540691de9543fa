# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared enumerations used by database models and API schemas."""

from enum import Enum


class StaffCategory(str, Enum):
    """Staff member category."""

    TEACHING = "teaching"
    NON_TEACHING = "non_teaching"
    ADMINISTRATIVE = "administrative"


class StaffStatus(str, Enum):
    """Staff member employment status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    ON_LEAVE = "on_leave"
    TERMINATED = "terminated"
    RETIRED = "retired"


class EmploymentType(str, Enum):
    """Staff employment contract type."""

    FULL_TIME = "full_time"
    PART_TIME = "part_time"
    CONTRACT = "contract"
    TEMPORARY = "temporary"


class AssignmentType(str, Enum):
    """Kind of responsibility an assignment represents."""

    CLASS_TEACHER = "class_teacher"
    SUBJECT_TEACHER = "subject_teacher"


class WorkloadLevel(str, Enum):
    """Categorical workload level derived from active assignment count."""

    LIGHT = "light"
    MODERATE = "moderate"
    HEAVY = "heavy"
    OVERLOADED = "overloaded"


class AuditAction(str, Enum):
    """Audited mutation kinds."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    RESTORE = "restore"
