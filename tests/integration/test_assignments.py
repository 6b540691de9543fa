# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for staff assignment rules against SQLite."""

import asyncio
from datetime import date

import pytest
from sqlalchemy import func, select

from src.domains.assignment.service import (
    AlreadyClassTeacherError,
    ConcurrentAssignmentError,
    DuplicateAssignmentError,
    QualificationRejectedError,
    StaffAssignmentService,
    WorkloadExceededError,
)
from src.domains.workload.service import WorkloadAnalyzer
from src.infrastructure.database.models import StaffAssignment
from src.models.assignment import AssignStaffRequest, AssignmentHistoryFilter
from src.models.common import AssignmentType, StaffCategory, WorkloadLevel
from src.models.validation import ValidationIssueKind

pytestmark = pytest.mark.integration


def class_teacher(staff_id: int, school, class_id: int, start: date = date(2025, 4, 14)):
    return AssignStaffRequest(
        staff_id=staff_id,
        academic_year_id=school.academic_year_id,
        assignment_type=AssignmentType.CLASS_TEACHER,
        class_id=class_id,
        start_date=start,
    )


def subject_teacher(staff_id: int, school, subject: str, class_id: int, section: str | None = None):
    return AssignStaffRequest(
        staff_id=staff_id,
        academic_year_id=school.academic_year_id,
        assignment_type=AssignmentType.SUBJECT_TEACHER,
        class_id=class_id,
        subject_id=school.subject_ids[subject],
        section=section,
        start_date=date(2025, 4, 14),
    )


async def active_class_teachers(session, class_id: int) -> int:
    result = await session.execute(
        select(func.count()).select_from(StaffAssignment).where(
            StaffAssignment.class_id == class_id,
            StaffAssignment.assignment_type == AssignmentType.CLASS_TEACHER.value,
            StaffAssignment.is_active.is_(True),
        )
    )
    return result.scalar()


class TestQualificationScenario:
    """Tests for qualification outcomes on real rows."""

    @pytest.mark.asyncio
    async def test_mathematics_teacher_for_grade_ten(self, db_session, school, make_staff) -> None:
        """Test a qualified teacher assigned to mathematics and then to English."""
        teacher = await make_staff()
        service = StaffAssignmentService(db_session)

        maths = await service.assign(subject_teacher(teacher.id, school, "Mathematics", school.grade_10_id))
        english = await service.assign(subject_teacher(teacher.id, school, "English", school.grade_10_id))

        assert maths.validation.warnings == []
        assert [w.kind for w in english.validation.warnings] == [
            ValidationIssueKind.SPECIALIZATION_MISMATCH
        ]
        assert "may not match" in english.validation.warning_messages[0]

    @pytest.mark.asyncio
    async def test_non_teaching_staff_rejected(self, db_session, school, make_staff) -> None:
        clerk = await make_staff(first_name="Hari", category=StaffCategory.NON_TEACHING)
        service = StaffAssignmentService(db_session)

        with pytest.raises(QualificationRejectedError) as exc_info:
            await service.assign(class_teacher(clerk.id, school, school.grade_10_id))

        assert exc_info.value.reasons == ["Staff member is not in teaching category"]
        assert await service.get_assignments(clerk.id, include_inactive=True) == []

    @pytest.mark.asyncio
    async def test_unknown_subject_rejected(self, db_session, school, make_staff) -> None:
        teacher = await make_staff()
        service = StaffAssignmentService(db_session)
        request = subject_teacher(teacher.id, school, "Mathematics", school.grade_10_id)
        request.subject_id = 9999

        with pytest.raises(QualificationRejectedError) as exc_info:
            await service.assign(request)

        assert exc_info.value.validation.has_issue(ValidationIssueKind.SUBJECT_NOT_FOUND)


class TestClassTeacherAssignment:
    """Tests for the single class teacher rule."""

    @pytest.mark.asyncio
    async def test_new_class_teacher_supersedes_previous(self, db_session, school, make_staff) -> None:
        first = await make_staff(first_name="Sita")
        second = await make_staff(first_name="Ram")
        third = await make_staff(first_name="Gita")
        service = StaffAssignmentService(db_session)

        await service.assign(class_teacher(first.id, school, school.grade_10_id, date(2025, 4, 14)))
        await service.assign(class_teacher(second.id, school, school.grade_10_id, date(2025, 8, 1)))
        await service.assign(class_teacher(third.id, school, school.grade_10_id, date(2025, 11, 1)))

        assert await active_class_teachers(db_session, school.grade_10_id) == 1
        incumbent = await service.get_class_teacher(school.grade_10_id, school.academic_year_id)
        assert incumbent.id == third.id

        history = await service.get_assignment_history(
            AssignmentHistoryFilter(class_id=school.grade_10_id)
        )
        assert [h.staff_id for h in history] == [third.id, second.id, first.id]
        assert [h.is_active for h in history] == [True, False, False]
        assert all(h.end_date is not None for h in history[1:])

    @pytest.mark.asyncio
    async def test_already_class_teacher_leaves_original_untouched(
        self, db_session, school, make_staff
    ) -> None:
        teacher = await make_staff()
        service = StaffAssignmentService(db_session)
        original = await service.assign(class_teacher(teacher.id, school, school.grade_10_id))

        with pytest.raises(AlreadyClassTeacherError):
            await service.assign(class_teacher(teacher.id, school, school.grade_3_id))

        assignments = await service.get_assignments(teacher.id, include_inactive=True)
        assert len(assignments) == 1
        assert assignments[0].id == original.assignment.id
        assert assignments[0].is_active is True
        assert assignments[0].end_date is None
        assert await active_class_teachers(db_session, school.grade_3_id) == 0

    @pytest.mark.asyncio
    @pytest.mark.slow
    async def test_concurrent_class_teachers_leave_one_active(
        self, db_sessionmaker, school, make_staff
    ) -> None:
        """Test that racing writers never leave two active class teachers."""
        teachers = [await make_staff(first_name=f"Teacher{i}") for i in range(4)]

        async def assign(staff_id: int):
            async with db_sessionmaker() as session:
                service = StaffAssignmentService(session)
                return await service.assign(class_teacher(staff_id, school, school.grade_12_id))

        outcomes = await asyncio.gather(
            *(assign(t.id) for t in teachers),
            return_exceptions=True,
        )

        failures = [o for o in outcomes if isinstance(o, Exception)]
        assert all(isinstance(f, ConcurrentAssignmentError) for f in failures)
        assert len(failures) < len(teachers)

        async with db_sessionmaker() as session:
            assert await active_class_teachers(session, school.grade_12_id) == 1


class TestSubjectAssignment:
    """Tests for subject assignment rules."""

    @pytest.mark.asyncio
    async def test_duplicate_rejected(self, db_session, school, make_staff) -> None:
        teacher = await make_staff()
        service = StaffAssignmentService(db_session)
        request = subject_teacher(teacher.id, school, "Mathematics", school.grade_10_id)

        await service.assign(request)
        with pytest.raises(DuplicateAssignmentError):
            await service.assign(request)

        assert len(await service.get_assignments(teacher.id, include_inactive=True)) == 1

    @pytest.mark.asyncio
    async def test_other_section_supersedes(self, db_session, school, make_staff) -> None:
        teacher = await make_staff()
        service = StaffAssignmentService(db_session)

        await service.assign(subject_teacher(teacher.id, school, "Mathematics", school.grade_10_id, "A"))
        await service.assign(subject_teacher(teacher.id, school, "Mathematics", school.grade_10_id, "B"))

        history = await service.get_assignments(teacher.id, include_inactive=True)
        assert len(history) == 2
        assert [a.section for a in history if a.is_active] == ["B"]

    @pytest.mark.asyncio
    async def test_workload_warning_then_limit(self, db_session, school, make_staff) -> None:
        """Test that the 7th and 8th assignments warn and the 9th is rejected."""
        teacher = await make_staff()
        service = StaffAssignmentService(db_session)

        subjects = list(school.subject_ids)
        results = []
        for subject in subjects[:8]:
            results.append(
                await service.assign(
                    subject_teacher(teacher.id, school, subject, school.grade_10_id),
                    skip_validation=True,
                )
            )

        def warned(result) -> bool:
            return result.validation.has_issue(ValidationIssueKind.WORKLOAD_APPROACHING_LIMIT)

        assert [warned(r) for r in results] == [False] * 6 + [True, True]

        with pytest.raises(WorkloadExceededError):
            await service.assign(
                subject_teacher(teacher.id, school, subjects[8], school.grade_10_id),
                skip_validation=True,
            )

        assert len(await service.get_active_assignments(teacher.id)) == 8

        snapshot = await WorkloadAnalyzer(db_session).get_workload_analytics(
            teacher.id, school.academic_year_id
        )
        assert snapshot.workload_level == WorkloadLevel.OVERLOADED
        assert snapshot.estimated_weekly_hours == 44.0


class TestEndAssignment:
    """Tests for ending assignments."""

    @pytest.mark.asyncio
    async def test_end_assignment_keeps_history(self, db_session, school, make_staff) -> None:
        teacher = await make_staff()
        service = StaffAssignmentService(db_session)
        created = await service.assign(class_teacher(teacher.id, school, school.grade_10_id))

        assert await service.end_assignment(created.assignment.id, date(2025, 12, 31)) is True
        assert await service.end_assignment(created.assignment.id) is False

        assert await service.get_active_assignments(teacher.id) == []
        history = await service.get_assignments(teacher.id, include_inactive=True)
        assert history[0].end_date == date(2025, 12, 31)

        # The class is free again
        again = await service.assign(class_teacher(teacher.id, school, school.grade_10_id))
        assert again.assignment.is_active is True
