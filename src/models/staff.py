# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Staff record request and response schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from src.models.common import EmploymentType, StaffCategory, StaffStatus


class StaffCreateRequest(BaseModel):
    """Request model for creating a staff member.

    Attributes:
        staff_code: Explicit code. Generated when omitted.
        category: Teaching, non-teaching, or administrative.
        highest_qualification: Free-text highest credential.
        specialization: Free-text subject specialization.
        teaching_license: License identifier.
    """

    model_config = ConfigDict(use_enum_values=True)

    staff_code: str | None = Field(default=None, max_length=50)
    first_name: str = Field(..., min_length=1, max_length=50)
    middle_name: str | None = Field(default=None, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=20)
    user_id: int | None = None
    employee_id: str | None = Field(default=None, max_length=50)
    category: StaffCategory
    position: str | None = Field(default=None, max_length=100)
    department: str | None = Field(default=None, max_length=100)
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    join_date: date
    highest_qualification: str | None = Field(default=None, max_length=200)
    specialization: str | None = Field(default=None, max_length=200)
    teaching_license: str | None = Field(default=None, max_length=100)
    status: StaffStatus = StaffStatus.ACTIVE


class StaffUpdateRequest(BaseModel):
    """Request model for updating a staff member. Only set fields change."""

    model_config = ConfigDict(use_enum_values=True)

    first_name: str | None = Field(default=None, min_length=1, max_length=50)
    middle_name: str | None = Field(default=None, max_length=50)
    last_name: str | None = Field(default=None, min_length=1, max_length=50)
    email: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=20)
    employee_id: str | None = Field(default=None, max_length=50)
    category: StaffCategory | None = None
    position: str | None = Field(default=None, max_length=100)
    department: str | None = Field(default=None, max_length=100)
    employment_type: EmploymentType | None = None
    termination_date: date | None = None
    highest_qualification: str | None = Field(default=None, max_length=200)
    specialization: str | None = Field(default=None, max_length=200)
    teaching_license: str | None = Field(default=None, max_length=100)
    status: StaffStatus | None = None


class StaffResponse(BaseModel):
    """Staff member details."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    staff_code: str
    first_name: str
    middle_name: str | None = None
    last_name: str
    full_name: str
    email: str | None = None
    phone: str | None = None
    employee_id: str | None = None
    category: StaffCategory
    position: str | None = None
    department: str | None = None
    employment_type: EmploymentType
    join_date: date
    termination_date: date | None = None
    highest_qualification: str | None = None
    specialization: str | None = None
    teaching_license: str | None = None
    status: StaffStatus
    created_at: datetime


class BulkStaffFailure(BaseModel):
    """A staff record that could not be created during a bulk upload."""

    index: int
    first_name: str
    last_name: str
    reason: str


class BulkStaffResult(BaseModel):
    """Per-item outcome of a bulk staff upload."""

    created: list[StaffResponse] = Field(default_factory=list)
    failed: list[BulkStaffFailure] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.created) + len(self.failed)


class StaffStatistics(BaseModel):
    """Staff counts by category and status."""

    total: int
    by_category: dict[str, int]
    by_status: dict[str, int]
