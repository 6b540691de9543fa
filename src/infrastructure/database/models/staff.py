# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Staff records, staff assignments, and the staff code sequence."""

from __future__ import annotations

from datetime import date

from sqlalchemy import (
    Boolean,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, SoftDeleteMixin, TimestampMixin
from src.infrastructure.database.models.school import AcademicYear, SchoolClass, Subject
from src.models.common import AssignmentType, EmploymentType, StaffStatus

# Index names referenced when translating unique violations.
STAFF_CODE_CONSTRAINT = "uq_staff_members_staff_code"
ACTIVE_CLASS_TEACHER_PER_CLASS = "ix_staff_assignments_active_class_teacher_per_class"
ACTIVE_CLASS_TEACHER_PER_STAFF = "ix_staff_assignments_active_class_teacher_per_staff"
ACTIVE_SUBJECT_ASSIGNMENT = "ix_staff_assignments_active_subject_assignment"


class Staff(Base, TimestampMixin, SoftDeleteMixin):
    """A staff member (teaching, non-teaching, or administrative)."""

    __tablename__ = "staff_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    staff_code: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
    )
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Personal
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    middle_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str | None] = mapped_column(String(100), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Employment
    employee_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    category: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    employment_type: Mapped[str] = mapped_column(
        String(20),
        default=EmploymentType.FULL_TIME.value,
        nullable=False,
    )
    join_date: Mapped[date] = mapped_column(Date, nullable=False)
    termination_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Qualification
    highest_qualification: Mapped[str | None] = mapped_column(String(200), nullable=True)
    specialization: Mapped[str | None] = mapped_column(String(200), nullable=True)
    teaching_license: Mapped[str | None] = mapped_column(String(100), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        default=StaffStatus.ACTIVE.value,
        nullable=False,
        index=True,
    )

    assignments: Mapped[list[StaffAssignment]] = relationship(
        back_populates="staff",
        passive_deletes=True,
    )

    @property
    def full_name(self) -> str:
        """Display name built from first, middle, and last name."""
        parts = [self.first_name, self.middle_name, self.last_name]
        return " ".join(part for part in parts if part)

    def __repr__(self) -> str:
        return f"<Staff {self.staff_code}>"


class StaffAssignment(Base, TimestampMixin):
    """A staff member's class-teacher or subject-teacher responsibility.

    Rows are never reactivated. Supersession and explicit ending set
    is_active to False and stamp end_date.
    """

    __tablename__ = "staff_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    staff_id: Mapped[int] = mapped_column(
        ForeignKey("staff_members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    academic_year_id: Mapped[int] = mapped_column(
        ForeignKey("academic_years.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    assignment_type: Mapped[str] = mapped_column(String(20), nullable=False)
    class_id: Mapped[int | None] = mapped_column(
        ForeignKey("classes.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    subject_id: Mapped[int | None] = mapped_column(
        ForeignKey("subjects.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    section: Mapped[str | None] = mapped_column(String(20), nullable=True)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    staff: Mapped[Staff] = relationship(back_populates="assignments")
    academic_year: Mapped[AcademicYear] = relationship()
    school_class: Mapped[SchoolClass | None] = relationship()
    subject: Mapped[Subject | None] = relationship()

    def __repr__(self) -> str:
        return (
            f"<StaffAssignment {self.id} staff={self.staff_id} "
            f"type={self.assignment_type} active={self.is_active}>"
        )


_ACTIVE_CLASS_TEACHER = (
    f"is_active = true AND assignment_type = '{AssignmentType.CLASS_TEACHER.value}'"
)
_ACTIVE_SUBJECT_TEACHER = (
    f"is_active = true AND assignment_type = '{AssignmentType.SUBJECT_TEACHER.value}'"
)

Index(
    ACTIVE_CLASS_TEACHER_PER_CLASS,
    StaffAssignment.class_id,
    StaffAssignment.academic_year_id,
    unique=True,
    postgresql_where=text(_ACTIVE_CLASS_TEACHER),
    sqlite_where=text(_ACTIVE_CLASS_TEACHER),
)

Index(
    ACTIVE_CLASS_TEACHER_PER_STAFF,
    StaffAssignment.staff_id,
    StaffAssignment.academic_year_id,
    unique=True,
    postgresql_where=text(_ACTIVE_CLASS_TEACHER),
    sqlite_where=text(_ACTIVE_CLASS_TEACHER),
)

# NULL class/section would otherwise never collide
Index(
    ACTIVE_SUBJECT_ASSIGNMENT,
    StaffAssignment.staff_id,
    StaffAssignment.subject_id,
    func.coalesce(StaffAssignment.class_id, 0),
    func.coalesce(StaffAssignment.section, ""),
    StaffAssignment.academic_year_id,
    unique=True,
    postgresql_where=text(_ACTIVE_SUBJECT_TEACHER),
    sqlite_where=text(_ACTIVE_SUBJECT_TEACHER),
)


class StaffCodeSequence(Base):
    """Per-prefix, per-year counter used by the "counter" code strategy."""

    __tablename__ = "staff_code_sequences"
    __table_args__ = (
        UniqueConstraint("prefix", "year", name="uq_staff_code_sequences_prefix_year"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    prefix: Mapped[str] = mapped_column(String(20), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    last_value: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
