# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Workload analytics schemas. All values are advisory and never stored."""

from pydantic import BaseModel, Field

from src.models.common import AssignmentType, WorkloadLevel


class WorkloadSnapshot(BaseModel):
    """Aggregate of one staff member's active assignments in one year."""

    staff_id: int
    staff_name: str
    academic_year_id: int
    total_assignments: int
    class_teacher_assignments: int
    subject_teacher_assignments: int
    unique_classes: int
    unique_subjects: int
    estimated_weekly_hours: float
    workload_level: WorkloadLevel
    recommendations: list[str] = Field(default_factory=list)


class WorkloadDistributionSummary(BaseModel):
    """Population statistics over a set of workload snapshots."""

    total_staff: int
    average_assignments: float
    standard_deviation: float
    is_imbalanced: bool
    light_workload: int
    moderate_workload: int
    heavy_workload: int
    overloaded: int
    recommendations: list[str] = Field(default_factory=list)


class WorkloadDistribution(BaseModel):
    """Per-staff snapshots plus the population summary."""

    snapshots: list[WorkloadSnapshot]
    summary: WorkloadDistributionSummary


class SuggestedAssignment(BaseModel):
    """A candidate assignment suggested for a staff member."""

    assignment_type: AssignmentType
    class_id: int | None = None
    subject_id: int | None = None
    reason: str


class AssignmentRecommendation(BaseModel):
    """Whether a staff member can take on more work."""

    staff_id: int
    can_accept_more: bool
    recommended_limit: int
    current_load: int
    workload_level: WorkloadLevel
    suggested_assignments: list[SuggestedAssignment] = Field(default_factory=list)
