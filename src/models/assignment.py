# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Staff assignment request and response schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.models.common import AssignmentType
from src.models.validation import ValidationResult


class AssignStaffRequest(BaseModel):
    """Request model for assigning a staff member.

    Attributes:
        staff_id: Staff member being assigned.
        academic_year_id: Academic year the assignment belongs to.
        assignment_type: Class teacher or subject teacher.
        class_id: Target class, if any.
        subject_id: Target subject (subject teacher only).
        section: Optional section qualifier.
        department: Optional department qualifier.
        start_date: First day of the responsibility.
        end_date: Planned last day, if known.
    """

    model_config = ConfigDict(use_enum_values=True)

    staff_id: int
    academic_year_id: int
    assignment_type: AssignmentType
    class_id: int | None = None
    subject_id: int | None = None
    section: str | None = Field(default=None, max_length=20)
    department: str | None = Field(default=None, max_length=100)
    start_date: date
    end_date: date | None = None

    @model_validator(mode="after")
    def validate_dates(self) -> "AssignStaffRequest":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    @property
    def is_class_teacher(self) -> bool:
        return self.assignment_type == AssignmentType.CLASS_TEACHER

    @property
    def is_subject_teacher(self) -> bool:
        return self.assignment_type == AssignmentType.SUBJECT_TEACHER


class ProposedAssignment(BaseModel):
    """An assignment considered in a batch qualification check."""

    assignment_type: AssignmentType
    subject_id: int | None = None
    class_id: int | None = None


class AssignmentResponse(BaseModel):
    """Assignment details."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    staff_id: int
    academic_year_id: int
    assignment_type: AssignmentType
    class_id: int | None = None
    subject_id: int | None = None
    section: str | None = None
    department: str | None = None
    start_date: date
    end_date: date | None = None
    is_active: bool
    created_at: datetime


class AssignmentResult(BaseModel):
    """Created assignment together with the validation that accompanied it.

    Warnings collected during qualification checks and workload checks are
    carried here even though the assignment succeeded.
    """

    assignment: AssignmentResponse
    validation: ValidationResult


class AssignmentHistoryFilter(BaseModel):
    """Filters for assignment history queries. Unset fields do not filter."""

    class_id: int | None = None
    subject_id: int | None = None
    academic_year_id: int | None = None
    assignment_type: AssignmentType | None = None
