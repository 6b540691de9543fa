# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic request, response, and value models."""

from src.models.assignment import (
    AssignmentHistoryFilter,
    AssignmentResponse,
    AssignmentResult,
    AssignStaffRequest,
    ProposedAssignment,
)
from src.models.common import (
    AssignmentType,
    AuditAction,
    EmploymentType,
    StaffCategory,
    StaffStatus,
    WorkloadLevel,
)
from src.models.staff import (
    BulkStaffFailure,
    BulkStaffResult,
    StaffCreateRequest,
    StaffResponse,
    StaffStatistics,
    StaffUpdateRequest,
)
from src.models.validation import (
    ValidationIssue,
    ValidationIssueKind,
    ValidationResult,
    format_issue,
)
from src.models.workload import (
    AssignmentRecommendation,
    SuggestedAssignment,
    WorkloadDistribution,
    WorkloadDistributionSummary,
    WorkloadSnapshot,
)

__all__ = [
    # Enums
    "AssignmentType",
    "AuditAction",
    "EmploymentType",
    "StaffCategory",
    "StaffStatus",
    "WorkloadLevel",
    # Staff
    "StaffCreateRequest",
    "StaffUpdateRequest",
    "StaffResponse",
    "StaffStatistics",
    "BulkStaffResult",
    "BulkStaffFailure",
    # Assignment
    "AssignStaffRequest",
    "AssignmentResponse",
    "AssignmentResult",
    "AssignmentHistoryFilter",
    "ProposedAssignment",
    # Validation
    "ValidationIssue",
    "ValidationIssueKind",
    "ValidationResult",
    "format_issue",
    # Workload
    "WorkloadSnapshot",
    "WorkloadDistribution",
    "WorkloadDistributionSummary",
    "AssignmentRecommendation",
    "SuggestedAssignment",
]
