# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Workload analytics for staff assignments.

This module provides the WorkloadAnalyzer class for:
- Per-staff workload snapshots
- Workload distribution across staff with imbalance detection
- Assignment capacity recommendations

All figures are advisory and recomputed on demand. Nothing here is
persisted or enforced.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import WorkloadSettings
from src.domains.qualification.specialization import SpecializationMatcher
from src.infrastructure.database.models import SchoolClass, Staff, StaffAssignment, Subject
from src.models.common import AssignmentType, StaffStatus, WorkloadLevel
from src.models.workload import (
    AssignmentRecommendation,
    SuggestedAssignment,
    WorkloadDistribution,
    WorkloadDistributionSummary,
    WorkloadSnapshot,
)

logger = logging.getLogger(__name__)

MAX_UNIQUE_CLASSES = 5
MAX_WEEKLY_HOURS = 30.0
LIGHT_SHARE_THRESHOLD = 0.3


class WorkloadServiceError(Exception):
    """Base exception for workload service errors."""

    pass


class WorkloadStaffNotFoundError(WorkloadServiceError):
    """Raised when staff member is not found."""

    pass


def workload_level(
    total_assignments: int,
    settings: WorkloadSettings | None = None,
) -> WorkloadLevel:
    """Categorize a total assignment count against the configured bands."""
    settings = settings or WorkloadSettings()
    if total_assignments <= settings.light_max_assignments:
        return WorkloadLevel.LIGHT
    if total_assignments <= settings.moderate_max_assignments:
        return WorkloadLevel.MODERATE
    if total_assignments <= settings.heavy_max_assignments:
        return WorkloadLevel.HEAVY
    return WorkloadLevel.OVERLOADED


def mean_and_stddev(values: list[int]) -> tuple[float, float]:
    """Population mean and standard deviation. Empty input yields zeros."""
    if not values:
        return 0.0, 0.0

    mean = sum(values) / len(values)
    variance = sum((x - mean) ** 2 for x in values) / len(values)
    return mean, variance ** 0.5


def build_snapshot(
    staff: Staff,
    academic_year_id: int,
    assignments: list[StaffAssignment],
    settings: WorkloadSettings,
) -> WorkloadSnapshot:
    """Summarize a staff member's active assignments.

    Args:
        staff: Staff member.
        academic_year_id: Academic year the assignments belong to.
        assignments: The staff member's active assignments in that year.
        settings: Hours per subject and workload level bands.

    Returns:
        Workload snapshot with recommendations.
    """
    class_teacher = [
        a for a in assignments if a.assignment_type == AssignmentType.CLASS_TEACHER.value
    ]
    subject_teacher = [
        a for a in assignments if a.assignment_type == AssignmentType.SUBJECT_TEACHER.value
    ]
    unique_classes = len({a.class_id for a in assignments if a.class_id is not None})
    unique_subjects = len({a.subject_id for a in assignments if a.subject_id is not None})
    weekly_hours = len(subject_teacher) * settings.hours_per_subject
    total = len(assignments)
    level = workload_level(total, settings)

    recommendations: list[str] = []

    if level == WorkloadLevel.OVERLOADED:
        recommendations.append("Consider reducing assignments to prevent teacher burnout")

    if len(class_teacher) > 1:
        recommendations.append("Teacher is class teacher for multiple classes - this is unusual")

    if unique_classes > MAX_UNIQUE_CLASSES:
        recommendations.append(
            f"Teacher handles {unique_classes} different classes. "
            "Consider consolidating to reduce context switching."
        )

    if weekly_hours > MAX_WEEKLY_HOURS:
        recommendations.append(
            f"Estimated {weekly_hours:.1f} teaching hours per week exceeds recommended limit"
        )

    if total == 0:
        recommendations.append(
            "No active assignments. Consider assigning teaching responsibilities."
        )

    return WorkloadSnapshot(
        staff_id=staff.id,
        staff_name=staff.full_name,
        academic_year_id=academic_year_id,
        total_assignments=total,
        class_teacher_assignments=len(class_teacher),
        subject_teacher_assignments=len(subject_teacher),
        unique_classes=unique_classes,
        unique_subjects=unique_subjects,
        estimated_weekly_hours=weekly_hours,
        workload_level=level,
        recommendations=recommendations,
    )


def summarize_distribution(
    snapshots: list[WorkloadSnapshot],
    imbalance_threshold: float,
) -> WorkloadDistributionSummary:
    """Compute population statistics and advice over workload snapshots."""
    total_staff = len(snapshots)
    mean, stddev = mean_and_stddev([s.total_assignments for s in snapshots])

    counts = {level: 0 for level in WorkloadLevel}
    for snapshot in snapshots:
        counts[snapshot.workload_level] += 1

    light = counts[WorkloadLevel.LIGHT]
    overloaded = counts[WorkloadLevel.OVERLOADED]
    is_imbalanced = stddev > imbalance_threshold

    recommendations: list[str] = []

    if overloaded > 0:
        recommendations.append(
            f"{overloaded} teacher(s) are overloaded. "
            "Redistribute assignments to prevent burnout."
        )

    if light > total_staff * LIGHT_SHARE_THRESHOLD:
        recommendations.append(
            f"{light} teacher(s) have light workload. "
            "Consider assigning more responsibilities."
        )

    if is_imbalanced:
        recommendations.append(
            "High variance in workload distribution. "
            "Consider balancing assignments more evenly."
        )

    return WorkloadDistributionSummary(
        total_staff=total_staff,
        average_assignments=round(mean, 2),
        standard_deviation=round(stddev, 2),
        is_imbalanced=is_imbalanced,
        light_workload=light,
        moderate_workload=counts[WorkloadLevel.MODERATE],
        heavy_workload=counts[WorkloadLevel.HEAVY],
        overloaded=overloaded,
        recommendations=recommendations,
    )


class WorkloadAnalyzer:
    """Read-only workload analytics over staff assignments.

    Attributes:
        db: Async database session.
        settings: Workload heuristics.
        matcher: Specialization matcher used for suggestions.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: WorkloadSettings | None = None,
        matcher: SpecializationMatcher | None = None,
    ) -> None:
        self.db = db
        self.settings = settings or WorkloadSettings()
        self.matcher = matcher or SpecializationMatcher()

    async def get_workload_analytics(
        self,
        staff_id: int,
        academic_year_id: int,
    ) -> WorkloadSnapshot:
        """Get the workload snapshot of one staff member.

        Raises:
            WorkloadStaffNotFoundError: If staff member not found.
        """
        staff = await self._get_staff(staff_id)
        assignments = await self._get_active_assignments([staff_id], academic_year_id)

        return build_snapshot(
            staff,
            academic_year_id,
            assignments.get(staff_id, []),
            self.settings,
        )

    async def get_workload_distribution(
        self,
        academic_year_id: int,
        department: str | None = None,
    ) -> WorkloadDistribution:
        """Get workload snapshots of all active staff and their summary.

        Args:
            academic_year_id: Academic year to analyze.
            department: Optional department filter.

        Returns:
            Snapshots ordered by staff ID, plus population summary.
        """
        query = select(Staff).where(
            Staff.status == StaffStatus.ACTIVE.value,
            Staff.deleted_at.is_(None),
        )
        if department:
            query = query.where(Staff.department == department)
        query = query.order_by(Staff.id)

        result = await self.db.execute(query)
        staff_list = list(result.scalars().all())

        assignments = await self._get_active_assignments(
            [s.id for s in staff_list],
            academic_year_id,
        )
        snapshots = [
            build_snapshot(
                staff,
                academic_year_id,
                assignments.get(staff.id, []),
                self.settings,
            )
            for staff in staff_list
        ]
        summary = summarize_distribution(snapshots, self.settings.imbalance_stddev_threshold)

        logger.info(
            "Workload distribution: year=%s, department=%s, staff=%d, mean=%.2f, stddev=%.2f",
            academic_year_id,
            department,
            summary.total_staff,
            summary.average_assignments,
            summary.standard_deviation,
        )

        return WorkloadDistribution(snapshots=snapshots, summary=summary)

    async def get_assignment_recommendations(
        self,
        staff_id: int,
        academic_year_id: int,
    ) -> AssignmentRecommendation:
        """Report whether a staff member can take more work and suggest some.

        Suggestions are only made while the staff member is below the
        recommended limit: classes of the year without an active class
        teacher (when the staff member holds no class teacher role), and
        subjects matching the staff member's specialization that they do
        not teach yet.

        Raises:
            WorkloadStaffNotFoundError: If staff member not found.
        """
        snapshot = await self.get_workload_analytics(staff_id, academic_year_id)
        limit = self.settings.recommended_limit
        can_accept_more = snapshot.total_assignments < limit

        suggestions: list[SuggestedAssignment] = []
        if can_accept_more:
            staff = await self._get_staff(staff_id)
            capacity = limit - snapshot.total_assignments

            if snapshot.class_teacher_assignments == 0:
                suggestions.extend(await self._suggest_classes(academic_year_id))

            suggestions.extend(await self._suggest_subjects(staff, academic_year_id))
            suggestions = suggestions[:capacity]

        return AssignmentRecommendation(
            staff_id=staff_id,
            can_accept_more=can_accept_more,
            recommended_limit=limit,
            current_load=snapshot.total_assignments,
            workload_level=snapshot.workload_level,
            suggested_assignments=suggestions,
        )

    async def _suggest_classes(self, academic_year_id: int) -> list[SuggestedAssignment]:
        covered = (
            select(StaffAssignment.class_id)
            .where(
                StaffAssignment.academic_year_id == academic_year_id,
                StaffAssignment.assignment_type == AssignmentType.CLASS_TEACHER.value,
                StaffAssignment.is_active.is_(True),
                StaffAssignment.class_id.is_not(None),
            )
        )
        query = (
            select(SchoolClass)
            .where(
                SchoolClass.academic_year_id == academic_year_id,
                SchoolClass.is_active.is_(True),
                SchoolClass.id.not_in(covered),
            )
            .order_by(SchoolClass.grade_level, SchoolClass.id)
        )
        result = await self.db.execute(query)

        return [
            SuggestedAssignment(
                assignment_type=AssignmentType.CLASS_TEACHER,
                class_id=school_class.id,
                reason=f"Class {school_class.name} has no class teacher",
            )
            for school_class in result.scalars().all()
        ]

    async def _suggest_subjects(
        self,
        staff: Staff,
        academic_year_id: int,
    ) -> list[SuggestedAssignment]:
        if not staff.specialization:
            return []

        taught = select(StaffAssignment.subject_id).where(
            StaffAssignment.staff_id == staff.id,
            StaffAssignment.academic_year_id == academic_year_id,
            StaffAssignment.is_active.is_(True),
            StaffAssignment.subject_id.is_not(None),
        )
        query = select(Subject).where(Subject.id.not_in(taught)).order_by(Subject.id)
        result = await self.db.execute(query)

        return [
            SuggestedAssignment(
                assignment_type=AssignmentType.SUBJECT_TEACHER,
                subject_id=subject.id,
                reason=f"Subject {subject.name} matches specialization {staff.specialization}",
            )
            for subject in result.scalars().all()
            if self.matcher.matches(staff.specialization, subject.name)
        ]

    async def _get_staff(self, staff_id: int) -> Staff:
        """Get staff by ID.

        Raises:
            WorkloadStaffNotFoundError: If not found.
        """
        query = select(Staff).where(
            Staff.id == staff_id,
            Staff.deleted_at.is_(None),
        )
        result = await self.db.execute(query)
        staff = result.scalar_one_or_none()

        if not staff:
            raise WorkloadStaffNotFoundError(f"Staff {staff_id} not found")

        return staff

    async def _get_active_assignments(
        self,
        staff_ids: list[int],
        academic_year_id: int,
    ) -> dict[int, list[StaffAssignment]]:
        """Active assignments in a year, grouped by staff ID."""
        grouped: dict[int, list[StaffAssignment]] = defaultdict(list)
        if not staff_ids:
            return grouped

        query = select(StaffAssignment).where(
            StaffAssignment.staff_id.in_(staff_ids),
            StaffAssignment.academic_year_id == academic_year_id,
            StaffAssignment.is_active.is_(True),
        )
        result = await self.db.execute(query)

        for assignment in result.scalars().all():
            grouped[assignment.staff_id].append(assignment)

        return grouped
