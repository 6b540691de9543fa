# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Qualification validator for staff assignments.

Checks whether a staff member may be assigned to teach a subject or act as
class teacher. Blocking checks run first and stop at the first failure:

1. staff member exists
2. staff member is in the teaching category
3. staff member is active
4. referenced subject or class exists

Once these pass, advisory checks are evaluated independently: teaching
license, highest qualification, specialization match, and qualification
level against the grade being taught.

Validation is read-only. Missing entities are reported as errors in the
result, never raised.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import AssignmentSettings
from src.domains.qualification.specialization import (
    SpecializationMatcher,
    qualification_level,
    required_qualification_level,
)
from src.infrastructure.database.models import SchoolClass, Staff, StaffAssignment, Subject
from src.models.assignment import ProposedAssignment
from src.models.common import AssignmentType, StaffCategory, StaffStatus
from src.models.validation import ValidationIssueKind, ValidationResult

logger = logging.getLogger(__name__)


class QualificationValidator:
    """Validates staff qualifications before assignment.

    Attributes:
        db: Async database session.
        matcher: Subject to specialization matcher.
        settings: Assignment thresholds.
    """

    def __init__(
        self,
        db: AsyncSession,
        matcher: SpecializationMatcher | None = None,
        settings: AssignmentSettings | None = None,
    ) -> None:
        self.db = db
        self.matcher = matcher or SpecializationMatcher()
        self.settings = settings or AssignmentSettings()

    async def validate_staff_eligibility(
        self,
        staff_id: int,
        result: ValidationResult | None = None,
    ) -> tuple[Staff | None, ValidationResult]:
        """Run the staff-level blocking checks.

        Args:
            staff_id: Staff member to check.
            result: Result to record into. A new one is created if omitted.

        Returns:
            Tuple of (staff row if eligible else None, result).
        """
        result = result if result is not None else ValidationResult()

        staff = await self._get_staff(staff_id)
        if staff is None:
            result.add_error(ValidationIssueKind.STAFF_NOT_FOUND, staff_id=staff_id)
            return None, result

        if staff.category != StaffCategory.TEACHING.value:
            result.add_error(
                ValidationIssueKind.NOT_TEACHING_CATEGORY,
                staff_id=staff_id,
                category=staff.category,
            )
            return None, result

        if staff.status != StaffStatus.ACTIVE.value:
            result.add_error(
                ValidationIssueKind.STAFF_NOT_ACTIVE,
                staff_id=staff_id,
                status=staff.status,
            )
            return None, result

        return staff, result

    async def validate_subject_assignment(
        self,
        staff_id: int,
        subject_id: int,
        class_id: int | None = None,
    ) -> ValidationResult:
        """Validate a staff member for teaching a subject.

        Args:
            staff_id: Staff member to check.
            subject_id: Subject to be taught.
            class_id: Class the subject is taught in, if known. Enables the
                grade level check.

        Returns:
            Validation result.
        """
        staff, result = await self.validate_staff_eligibility(staff_id)
        if staff is None:
            self._log_outcome("subject", result, staff_id=staff_id, subject_id=subject_id)
            return result

        subject = await self.db.get(Subject, subject_id)
        if subject is None:
            result.add_error(ValidationIssueKind.SUBJECT_NOT_FOUND, subject_id=subject_id)
            self._log_outcome("subject", result, staff_id=staff_id, subject_id=subject_id)
            return result

        school_class = None
        if class_id is not None:
            school_class = await self.db.get(SchoolClass, class_id)
            if school_class is None:
                result.add_error(ValidationIssueKind.CLASS_NOT_FOUND, class_id=class_id)
                self._log_outcome("subject", result, staff_id=staff_id, subject_id=subject_id)
                return result

        self._check_credentials(staff, result)

        if staff.specialization and subject.name:
            if not self.matcher.matches(staff.specialization, subject.name):
                result.add_warning(
                    ValidationIssueKind.SPECIALIZATION_MISMATCH,
                    specialization=staff.specialization,
                    subject=subject.name,
                )

        if school_class is not None:
            self._check_grade_level(staff, school_class, result)

        self._log_outcome(
            "subject",
            result,
            staff_id=staff_id,
            subject_id=subject_id,
            class_id=class_id,
        )
        return result

    async def validate_class_teacher_assignment(
        self,
        staff_id: int,
        class_id: int,
    ) -> ValidationResult:
        """Validate a staff member for the class teacher role of a class."""
        staff, result = await self.validate_staff_eligibility(staff_id)
        if staff is None:
            self._log_outcome("class_teacher", result, staff_id=staff_id, class_id=class_id)
            return result

        school_class = await self.db.get(SchoolClass, class_id)
        if school_class is None:
            result.add_error(ValidationIssueKind.CLASS_NOT_FOUND, class_id=class_id)
            self._log_outcome("class_teacher", result, staff_id=staff_id, class_id=class_id)
            return result

        self._check_credentials(staff, result)
        self._check_grade_level(staff, school_class, result)

        self._log_outcome("class_teacher", result, staff_id=staff_id, class_id=class_id)
        return result

    async def validate_multiple_assignments(
        self,
        staff_id: int,
        proposed: list[ProposedAssignment],
    ) -> ValidationResult:
        """Validate a batch of proposed assignments for one staff member.

        Every entry naming a subject is validated individually and its
        issues are aggregated. A warning is added when the batch is larger
        than the excessive assignment threshold.

        Staff who fail the eligibility checks (missing, non-teaching or not
        active) get only that error; the batch itself is not inspected.
        """
        staff, result = await self.validate_staff_eligibility(staff_id)
        if staff is None:
            return result

        if len(proposed) > self.settings.excessive_assignment_threshold:
            result.add_warning(ValidationIssueKind.EXCESSIVE_ASSIGNMENTS, count=len(proposed))

        for assignment in proposed:
            if assignment.subject_id is not None:
                result.merge(
                    await self.validate_subject_assignment(
                        staff_id,
                        assignment.subject_id,
                        assignment.class_id,
                    )
                )

        return result

    async def validate_class_teacher_subject_coverage(
        self,
        staff_id: int,
        class_id: int,
        academic_year_id: int,
    ) -> ValidationResult:
        """Warn when a class teacher teaches no subject to their own class.

        Staff members who are not the active class teacher of the class get
        an empty result.
        """
        result = ValidationResult()

        class_teacher_query = select(StaffAssignment.id).where(
            StaffAssignment.staff_id == staff_id,
            StaffAssignment.class_id == class_id,
            StaffAssignment.academic_year_id == academic_year_id,
            StaffAssignment.assignment_type == AssignmentType.CLASS_TEACHER.value,
            StaffAssignment.is_active.is_(True),
        )
        class_teacher = await self.db.execute(class_teacher_query)
        if class_teacher.first() is None:
            return result

        subject_count_query = select(func.count()).select_from(StaffAssignment).where(
            StaffAssignment.staff_id == staff_id,
            StaffAssignment.class_id == class_id,
            StaffAssignment.academic_year_id == academic_year_id,
            StaffAssignment.assignment_type == AssignmentType.SUBJECT_TEACHER.value,
            StaffAssignment.is_active.is_(True),
        )
        subject_count = await self.db.execute(subject_count_query)
        if (subject_count.scalar() or 0) == 0:
            result.add_warning(
                ValidationIssueKind.CLASS_TEACHER_WITHOUT_SUBJECT,
                staff_id=staff_id,
                class_id=class_id,
            )

        return result

    def _check_credentials(self, staff: Staff, result: ValidationResult) -> None:
        if not staff.teaching_license:
            result.add_warning(ValidationIssueKind.MISSING_TEACHING_LICENSE, staff_id=staff.id)

        if not staff.highest_qualification:
            result.add_warning(ValidationIssueKind.MISSING_QUALIFICATION, staff_id=staff.id)

    def _check_grade_level(
        self,
        staff: Staff,
        school_class: SchoolClass,
        result: ValidationResult,
    ) -> None:
        level = qualification_level(staff.highest_qualification)
        required = required_qualification_level(school_class.grade_level)

        if level < required:
            result.add_warning(
                ValidationIssueKind.QUALIFICATION_LEVEL_INSUFFICIENT,
                grade_level=school_class.grade_level,
                qualification_level=level,
                required_level=required,
            )

    async def _get_staff(self, staff_id: int) -> Staff | None:
        query = select(Staff).where(
            Staff.id == staff_id,
            Staff.deleted_at.is_(None),
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    def _log_outcome(check: str, result: ValidationResult, **keys: int | None) -> None:
        if result.is_valid:
            logger.info(
                "Qualification check passed: check=%s, keys=%s, warnings=%d",
                check,
                keys,
                len(result.warnings),
            )
        else:
            logger.warning(
                "Qualification check failed: check=%s, keys=%s, errors=%s",
                check,
                keys,
                result.error_messages,
            )
