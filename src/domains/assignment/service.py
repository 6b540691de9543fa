# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Staff assignment service for class teacher and subject teacher roles.

This module provides the StaffAssignmentService class for:
- Staff assignment with qualification and workload checks
- Supersession of incumbent assignments
- Assignment listing and history
- Assignment termination and removal

Assignment history is additive. Supersession and ending deactivate rows
and stamp an end date; rows are never reactivated.
"""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import AssignmentSettings
from src.domains.audit.service import AuditLogService, snapshot
from src.domains.qualification.validator import QualificationValidator
from src.infrastructure.database.models.staff import (
    ACTIVE_CLASS_TEACHER_PER_CLASS,
    ACTIVE_CLASS_TEACHER_PER_STAFF,
    ACTIVE_SUBJECT_ASSIGNMENT,
    Staff,
    StaffAssignment,
)
from src.models.assignment import (
    AssignStaffRequest,
    AssignmentHistoryFilter,
    AssignmentResponse,
    AssignmentResult,
    ProposedAssignment,
)
from src.models.common import AssignmentType
from src.models.staff import StaffResponse
from src.models.validation import ValidationIssueKind, ValidationResult
from src.utils.datetime import utc_today

logger = logging.getLogger(__name__)

AUDIT_ENTITY = "staff_assignment"

# SQLite names the columns of a violated plain index instead of the index
_SQLITE_CLASS_TEACHER_PER_STAFF = "staff_assignments.staff_id, staff_assignments.academic_year_id"
_SQLITE_CLASS_TEACHER_PER_CLASS = "staff_assignments.class_id, staff_assignments.academic_year_id"


class AssignmentServiceError(Exception):
    """Base exception for assignment service errors.

    Attributes:
        message: Human-readable error description.
        reasons: Display-ready reasons for the failure.
    """

    def __init__(self, message: str, reasons: list[str] | None = None) -> None:
        self.message = message
        self.reasons = reasons or [message]
        super().__init__(message)


class QualificationRejectedError(AssignmentServiceError):
    """Raised when qualification validation reports blocking errors."""

    def __init__(self, validation: ValidationResult) -> None:
        self.validation = validation
        super().__init__(
            "Staff member failed qualification validation",
            reasons=validation.error_messages,
        )


class AlreadyClassTeacherError(AssignmentServiceError):
    """Raised when staff member is already class teacher in the academic year."""

    pass


class WorkloadExceededError(AssignmentServiceError):
    """Raised when staff member has reached the subject assignment limit."""

    pass


class DuplicateAssignmentError(AssignmentServiceError):
    """Raised when an identical active subject assignment exists."""

    pass


class AssignmentNotFoundError(AssignmentServiceError):
    """Raised when assignment is not found."""

    pass


class ConcurrentAssignmentError(AssignmentServiceError):
    """Raised when a concurrent writer claimed the class teacher role first."""

    pass


class StaffAssignmentService:
    """Service for managing staff assignments.

    Attributes:
        db: Async database session.
        validator: Qualification validator sharing the session.
        settings: Assignment thresholds.
        audit: Audit log sink sharing the session.
    """

    def __init__(
        self,
        db: AsyncSession,
        validator: QualificationValidator | None = None,
        settings: AssignmentSettings | None = None,
    ) -> None:
        """Initialize assignment service.

        Args:
            db: Async database session.
            validator: Optional validator override.
            settings: Assignment thresholds. Defaults are used when omitted.
        """
        self.db = db
        self.settings = settings or AssignmentSettings()
        self.validator = validator or QualificationValidator(db, settings=self.settings)
        self.audit = AuditLogService(db)

    async def assign(
        self,
        request: AssignStaffRequest,
        skip_validation: bool = False,
        assigned_by: str | None = None,
    ) -> AssignmentResult:
        """Assign a staff member as class teacher or subject teacher.

        Checks run in order and each blocking failure aborts without
        persisting anything:

        1. qualification validation, unless skipped
        2. class teacher: staff member holds no other class teacher role
        3. subject teacher: active subject assignments below the hard limit
        4. class teacher: the class's incumbent class teacher is superseded
        5. subject teacher: no identical active assignment exists, and the
           prior assignment for the same subject and class is superseded
        6. the new assignment is inserted

        Supersession, insert, and audit entries commit together.

        Args:
            request: Assignment data.
            skip_validation: Skip qualification validation.
            assigned_by: ID of user performing the assignment.

        Returns:
            The created assignment and the validation warnings collected.

        Raises:
            QualificationRejectedError: If validation reports errors.
            AlreadyClassTeacherError: If staff is class teacher elsewhere.
            WorkloadExceededError: If the subject assignment limit is reached.
            DuplicateAssignmentError: If the same assignment is active.
            ConcurrentAssignmentError: If another writer won a race for the
                same class teacher role.
        """
        validation = ValidationResult()
        if not skip_validation:
            validation = await self._validate(request)
            if not validation.is_valid:
                logger.warning(
                    "Assignment rejected by qualification validation: staff=%s, errors=%s",
                    request.staff_id,
                    validation.error_messages,
                )
                raise QualificationRejectedError(validation)

        try:
            await self._lock_staff(request.staff_id)

            if request.is_class_teacher:
                await self._check_class_teacher_role(request)
            else:
                await self._check_workload(request, validation)

            superseded: list[StaffAssignment] = []
            if request.is_class_teacher and request.class_id is not None:
                superseded = await self._supersede_class_teacher(request, assigned_by)
            elif request.is_subject_teacher:
                await self._check_duplicate(request)
                superseded = await self._supersede_subject_assignment(request, assigned_by)

            if superseded:
                await self.db.flush()

            assignment = StaffAssignment(
                staff_id=request.staff_id,
                academic_year_id=request.academic_year_id,
                assignment_type=request.assignment_type,
                class_id=request.class_id,
                subject_id=request.subject_id,
                section=request.section,
                department=request.department,
                start_date=request.start_date,
                end_date=request.end_date,
                is_active=True,
            )
            self.db.add(assignment)
            await self.db.flush()

            self.audit.log_create(AUDIT_ENTITY, assignment, assigned_by)
            await self.db.commit()
        except AssignmentServiceError:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            await self.db.rollback()
            conflict = self._translate_conflict(e, request)
            if conflict is None:
                logger.exception("Error assigning staff: staff=%s", request.staff_id)
                raise
            raise conflict from e
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(
                "Error assigning staff: staff=%s, type=%s, class=%s, subject=%s",
                request.staff_id,
                request.assignment_type,
                request.class_id,
                request.subject_id,
            )
            raise

        logger.info(
            "Assigned staff: staff=%s, type=%s, class=%s, subject=%s, superseded=%d, by=%s",
            request.staff_id,
            request.assignment_type,
            request.class_id,
            request.subject_id,
            len(superseded),
            assigned_by,
        )

        return AssignmentResult(
            assignment=AssignmentResponse.model_validate(assignment),
            validation=validation,
        )

    async def get_assignments(
        self,
        staff_id: int,
        academic_year_id: int | None = None,
        include_inactive: bool = False,
        assignment_type: AssignmentType | None = None,
    ) -> list[AssignmentResponse]:
        """List a staff member's assignments, most recent start date first.

        Args:
            staff_id: Staff identifier.
            academic_year_id: Optional academic year filter.
            include_inactive: Include ended and superseded assignments.
            assignment_type: Optional assignment type filter.

        Returns:
            List of assignments.
        """
        query = select(StaffAssignment).where(StaffAssignment.staff_id == staff_id)

        if academic_year_id is not None:
            query = query.where(StaffAssignment.academic_year_id == academic_year_id)

        if not include_inactive:
            query = query.where(StaffAssignment.is_active.is_(True))

        if assignment_type is not None:
            query = query.where(StaffAssignment.assignment_type == AssignmentType(assignment_type).value)

        query = query.order_by(StaffAssignment.start_date.desc(), StaffAssignment.id.desc())

        result = await self.db.execute(query)
        return [AssignmentResponse.model_validate(a) for a in result.scalars().all()]

    async def get_active_assignments(
        self,
        staff_id: int,
        academic_year_id: int | None = None,
    ) -> list[AssignmentResponse]:
        return await self.get_assignments(staff_id, academic_year_id)

    async def get_assignment_history(
        self,
        filters: AssignmentHistoryFilter | None = None,
    ) -> list[AssignmentResponse]:
        """List every assignment matching the filters, active or not.

        Ordered by start date descending, ties broken by newest row first.
        """
        filters = filters or AssignmentHistoryFilter()
        query = select(StaffAssignment)

        if filters.class_id is not None:
            query = query.where(StaffAssignment.class_id == filters.class_id)

        if filters.subject_id is not None:
            query = query.where(StaffAssignment.subject_id == filters.subject_id)

        if filters.academic_year_id is not None:
            query = query.where(StaffAssignment.academic_year_id == filters.academic_year_id)

        if filters.assignment_type is not None:
            query = query.where(
                StaffAssignment.assignment_type == AssignmentType(filters.assignment_type).value
            )

        query = query.order_by(StaffAssignment.start_date.desc(), StaffAssignment.id.desc())

        result = await self.db.execute(query)
        return [AssignmentResponse.model_validate(a) for a in result.scalars().all()]

    async def end_assignment(
        self,
        assignment_id: int,
        end_date: date | None = None,
        ended_by: str | None = None,
    ) -> bool:
        """End an assignment.

        Args:
            assignment_id: Assignment identifier.
            end_date: End date to record. Defaults to today.
            ended_by: ID of user ending the assignment.

        Returns:
            True if the assignment was ended, False if it was already inactive.

        Raises:
            AssignmentNotFoundError: If assignment not found.
        """
        assignment = await self._get_assignment(assignment_id)

        if not assignment.is_active:
            logger.info("Assignment already inactive: %s", assignment_id)
            return False

        before = snapshot(assignment)
        assignment.is_active = False
        assignment.end_date = end_date or utc_today()

        try:
            await self.db.flush()
            self.audit.log_update(AUDIT_ENTITY, assignment.id, before, assignment, ended_by)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Error ending assignment: %s", assignment_id)
            raise

        logger.info("Ended assignment: id=%s, by=%s", assignment_id, ended_by)
        return True

    async def delete_assignment(
        self,
        assignment_id: int,
        deleted_by: str | None = None,
    ) -> None:
        """Permanently remove an assignment record.

        Raises:
            AssignmentNotFoundError: If assignment not found.
        """
        assignment = await self._get_assignment(assignment_id)
        before = snapshot(assignment)

        try:
            await self.db.delete(assignment)
            self.audit.log_delete(AUDIT_ENTITY, assignment_id, before, deleted_by)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Error deleting assignment: %s", assignment_id)
            raise

        logger.info("Deleted assignment: id=%s, by=%s", assignment_id, deleted_by)

    async def has_conflicting_assignments(
        self,
        staff_id: int,
        academic_year_id: int,
        proposed: ProposedAssignment,
    ) -> bool:
        """Check whether a proposed assignment clashes with active ones.

        A class teacher proposal conflicts with any active class teacher
        role; a subject proposal conflicts with an active assignment for
        the same subject and class.
        """
        active = await self.get_active_assignments(staff_id, academic_year_id)
        proposed_type = AssignmentType(proposed.assignment_type)

        if proposed_type == AssignmentType.CLASS_TEACHER:
            return any(a.assignment_type == AssignmentType.CLASS_TEACHER for a in active)

        if proposed.subject_id is not None and proposed.class_id is not None:
            return any(
                a.assignment_type == AssignmentType.SUBJECT_TEACHER
                and a.subject_id == proposed.subject_id
                and a.class_id == proposed.class_id
                for a in active
            )

        return False

    async def get_class_teacher(
        self,
        class_id: int,
        academic_year_id: int,
    ) -> StaffResponse | None:
        """Get the active class teacher of a class, if any."""
        query = (
            select(Staff)
            .join(StaffAssignment, StaffAssignment.staff_id == Staff.id)
            .where(
                StaffAssignment.class_id == class_id,
                StaffAssignment.academic_year_id == academic_year_id,
                StaffAssignment.assignment_type == AssignmentType.CLASS_TEACHER.value,
                StaffAssignment.is_active.is_(True),
            )
        )
        result = await self.db.execute(query)
        staff = result.scalars().first()

        return StaffResponse.model_validate(staff) if staff else None

    async def get_subject_teachers(
        self,
        class_id: int,
        subject_id: int,
        academic_year_id: int,
    ) -> list[StaffResponse]:
        """Get the staff actively teaching a subject in a class."""
        query = (
            select(Staff)
            .join(StaffAssignment, StaffAssignment.staff_id == Staff.id)
            .where(
                StaffAssignment.class_id == class_id,
                StaffAssignment.subject_id == subject_id,
                StaffAssignment.academic_year_id == academic_year_id,
                StaffAssignment.assignment_type == AssignmentType.SUBJECT_TEACHER.value,
                StaffAssignment.is_active.is_(True),
            )
            .distinct()
            .order_by(Staff.id)
        )
        result = await self.db.execute(query)
        return [StaffResponse.model_validate(s) for s in result.scalars().all()]

    async def _validate(self, request: AssignStaffRequest) -> ValidationResult:
        """Run the qualification check matching the assignment type."""
        if request.is_class_teacher and request.class_id is not None:
            return await self.validator.validate_class_teacher_assignment(
                request.staff_id,
                request.class_id,
            )

        if request.is_subject_teacher and request.subject_id is not None:
            return await self.validator.validate_subject_assignment(
                request.staff_id,
                request.subject_id,
                request.class_id,
            )

        _, result = await self.validator.validate_staff_eligibility(request.staff_id)
        return result

    async def _lock_staff(self, staff_id: int) -> None:
        """Lock the staff row so assignments for one staff member serialize.

        Raises:
            AssignmentServiceError: If staff member not found.
        """
        query = (
            select(Staff.id)
            .where(Staff.id == staff_id, Staff.deleted_at.is_(None))
            .with_for_update()
        )
        result = await self.db.execute(query)
        if result.scalar_one_or_none() is None:
            raise AssignmentServiceError(
                f"Staff {staff_id} not found",
                reasons=[f"Staff member {staff_id} not found"],
            )

    async def _check_class_teacher_role(self, request: AssignStaffRequest) -> None:
        query = select(StaffAssignment).where(
            StaffAssignment.staff_id == request.staff_id,
            StaffAssignment.academic_year_id == request.academic_year_id,
            StaffAssignment.assignment_type == AssignmentType.CLASS_TEACHER.value,
            StaffAssignment.is_active.is_(True),
        )
        result = await self.db.execute(query)
        existing = result.scalars().first()

        if existing:
            logger.warning(
                "Staff already class teacher: staff=%s, class=%s, year=%s",
                request.staff_id,
                existing.class_id,
                request.academic_year_id,
            )
            raise AlreadyClassTeacherError(
                "Staff member is already a class teacher in this academic year",
                reasons=[
                    f"Staff member is already class teacher for class {existing.class_id}. "
                    "A teacher can only be class teacher for one class at a time."
                ],
            )

    async def _check_workload(
        self,
        request: AssignStaffRequest,
        validation: ValidationResult,
    ) -> None:
        query = select(func.count()).select_from(StaffAssignment).where(
            StaffAssignment.staff_id == request.staff_id,
            StaffAssignment.academic_year_id == request.academic_year_id,
            StaffAssignment.assignment_type == AssignmentType.SUBJECT_TEACHER.value,
            StaffAssignment.is_active.is_(True),
        )
        result = await self.db.execute(query)
        count = result.scalar() or 0
        limit = self.settings.workload_hard_limit

        if count >= limit:
            logger.warning(
                "Workload limit reached: staff=%s, year=%s, active=%d, limit=%d",
                request.staff_id,
                request.academic_year_id,
                count,
                limit,
            )
            raise WorkloadExceededError(
                "Staff member has reached the subject assignment limit",
                reasons=[
                    f"Teacher already has {count} active subject assignments. "
                    f"Maximum {limit} assignments allowed per academic year."
                ],
            )

        if count >= self.settings.workload_warning_threshold:
            validation.add_warning(
                ValidationIssueKind.WORKLOAD_APPROACHING_LIMIT,
                count=count,
                limit=limit,
            )

    async def _check_duplicate(self, request: AssignStaffRequest) -> None:
        query = select(StaffAssignment.id).where(
            StaffAssignment.staff_id == request.staff_id,
            StaffAssignment.subject_id == request.subject_id,
            StaffAssignment.academic_year_id == request.academic_year_id,
            StaffAssignment.assignment_type == AssignmentType.SUBJECT_TEACHER.value,
            StaffAssignment.is_active.is_(True),
            _matches(StaffAssignment.class_id, request.class_id),
            _matches(StaffAssignment.section, request.section),
        )
        result = await self.db.execute(query)

        if result.scalars().first() is not None:
            raise DuplicateAssignmentError(
                "Identical subject assignment is already active",
                reasons=[
                    "This teacher is already assigned to teach this subject "
                    "in this class and section"
                ],
            )

    async def _supersede_class_teacher(
        self,
        request: AssignStaffRequest,
        superseded_by: str | None,
    ) -> list[StaffAssignment]:
        query = (
            select(StaffAssignment)
            .where(
                StaffAssignment.class_id == request.class_id,
                StaffAssignment.academic_year_id == request.academic_year_id,
                StaffAssignment.assignment_type == AssignmentType.CLASS_TEACHER.value,
                StaffAssignment.is_active.is_(True),
            )
            .with_for_update()
        )
        return await self._supersede(query, request, superseded_by)

    async def _supersede_subject_assignment(
        self,
        request: AssignStaffRequest,
        superseded_by: str | None,
    ) -> list[StaffAssignment]:
        query = (
            select(StaffAssignment)
            .where(
                StaffAssignment.staff_id == request.staff_id,
                StaffAssignment.subject_id == request.subject_id,
                StaffAssignment.academic_year_id == request.academic_year_id,
                StaffAssignment.assignment_type == AssignmentType.SUBJECT_TEACHER.value,
                StaffAssignment.is_active.is_(True),
                _matches(StaffAssignment.class_id, request.class_id),
            )
            .with_for_update()
        )
        return await self._supersede(query, request, superseded_by)

    async def _supersede(
        self,
        query,
        request: AssignStaffRequest,
        superseded_by: str | None,
    ) -> list[StaffAssignment]:
        """Deactivate and end-date the rows selected by query."""
        result = await self.db.execute(query)
        rows = list(result.scalars().all())
        today = utc_today()

        for row in rows:
            before = snapshot(row)
            row.is_active = False
            row.end_date = today
            self.audit.log_update(
                AUDIT_ENTITY,
                row.id,
                before,
                row,
                superseded_by,
                metadata={"reason": "superseded", "new_staff_id": request.staff_id},
            )
            logger.info(
                "Superseding assignment: id=%s, staff=%s, type=%s, class=%s",
                row.id,
                row.staff_id,
                row.assignment_type,
                row.class_id,
            )

        return rows

    async def _get_assignment(self, assignment_id: int) -> StaffAssignment:
        """Get assignment by ID.

        Raises:
            AssignmentNotFoundError: If not found.
        """
        query = select(StaffAssignment).where(StaffAssignment.id == assignment_id)
        result = await self.db.execute(query)
        assignment = result.scalar_one_or_none()

        if not assignment:
            raise AssignmentNotFoundError(f"Assignment {assignment_id} not found")

        return assignment

    def _translate_conflict(
        self,
        error: IntegrityError,
        request: AssignStaffRequest,
    ) -> AssignmentServiceError | None:
        """Map a unique index violation to the matching business error."""
        detail = str(error.orig) if error.orig is not None else str(error)
        logger.warning(
            "Assignment insert conflicted: staff=%s, class=%s, subject=%s, detail=%s",
            request.staff_id,
            request.class_id,
            request.subject_id,
            detail,
        )

        if ACTIVE_CLASS_TEACHER_PER_STAFF in detail or _SQLITE_CLASS_TEACHER_PER_STAFF in detail:
            return AlreadyClassTeacherError(
                "Staff member is already a class teacher in this academic year"
            )

        if ACTIVE_SUBJECT_ASSIGNMENT in detail:
            return DuplicateAssignmentError("Identical subject assignment is already active")

        if ACTIVE_CLASS_TEACHER_PER_CLASS in detail or _SQLITE_CLASS_TEACHER_PER_CLASS in detail:
            return ConcurrentAssignmentError(
                "Another class teacher was assigned to this class concurrently",
                reasons=["Class teacher assignment changed concurrently. Please retry."],
            )

        return None


def _matches(column, value):
    """Equality filter that treats None as IS NULL."""
    return column.is_(None) if value is None else column == value
