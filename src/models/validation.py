# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Validation result models.

Validation outcomes are recorded as tagged issues (kind plus structured
context). Display text is produced separately by format_issue(), so the
same issue can be rendered for different audiences or languages.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, computed_field


class ValidationIssueKind(str, Enum):
    """Every distinct condition a qualification or assignment check reports."""

    # Blocking
    STAFF_NOT_FOUND = "staff_not_found"
    NOT_TEACHING_CATEGORY = "not_teaching_category"
    STAFF_NOT_ACTIVE = "staff_not_active"
    SUBJECT_NOT_FOUND = "subject_not_found"
    CLASS_NOT_FOUND = "class_not_found"

    # Advisory
    MISSING_TEACHING_LICENSE = "missing_teaching_license"
    MISSING_QUALIFICATION = "missing_qualification"
    SPECIALIZATION_MISMATCH = "specialization_mismatch"
    QUALIFICATION_LEVEL_INSUFFICIENT = "qualification_level_insufficient"
    EXCESSIVE_ASSIGNMENTS = "excessive_assignments"
    WORKLOAD_APPROACHING_LIMIT = "workload_approaching_limit"
    CLASS_TEACHER_WITHOUT_SUBJECT = "class_teacher_without_subject"


ISSUE_MESSAGES: dict[ValidationIssueKind, str] = {
    ValidationIssueKind.STAFF_NOT_FOUND: "Staff member not found",
    ValidationIssueKind.NOT_TEACHING_CATEGORY: "Staff member is not in teaching category",
    ValidationIssueKind.STAFF_NOT_ACTIVE: "Staff member is not active",
    ValidationIssueKind.SUBJECT_NOT_FOUND: "Subject not found",
    ValidationIssueKind.CLASS_NOT_FOUND: "Class not found",
    ValidationIssueKind.MISSING_TEACHING_LICENSE: (
        "Staff member does not have a teaching license on record"
    ),
    ValidationIssueKind.MISSING_QUALIFICATION: (
        "Staff member does not have qualifications on record"
    ),
    ValidationIssueKind.SPECIALIZATION_MISMATCH: (
        "Staff specialization ({specialization}) may not match subject ({subject})"
    ),
    ValidationIssueKind.QUALIFICATION_LEVEL_INSUFFICIENT: (
        "Staff qualification level may be insufficient for grade {grade_level}"
    ),
    ValidationIssueKind.EXCESSIVE_ASSIGNMENTS: (
        "Staff member has {count} assignments, which may be excessive"
    ),
    ValidationIssueKind.WORKLOAD_APPROACHING_LIMIT: (
        "This teacher already has {count} active subject assignments "
        "(limit {limit}). Consider workload distribution."
    ),
    ValidationIssueKind.CLASS_TEACHER_WITHOUT_SUBJECT: (
        "Class teacher is not assigned to teach any subject to their class. "
        "Consider assigning at least one subject."
    ),
}


def format_issue(kind: ValidationIssueKind, context: dict[str, Any]) -> str:
    """Render the display text for an issue.

    Args:
        kind: Issue kind.
        context: Values substituted into the message template.

    Returns:
        Human-readable message.
    """
    template = ISSUE_MESSAGES.get(kind, kind.value)
    try:
        return template.format(**context)
    except (KeyError, IndexError):
        return template


class ValidationIssue(BaseModel):
    """A single validation error or warning.

    Attributes:
        kind: Tag identifying the condition.
        context: Structured values describing the occurrence.
    """

    kind: ValidationIssueKind
    context: dict[str, Any] = Field(default_factory=dict)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def message(self) -> str:
        """Formatted display text."""
        return format_issue(self.kind, self.context)


class ValidationResult(BaseModel):
    """Outcome of a validation call.

    Errors block the operation; warnings are advisory only.
    """

    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_valid(self) -> bool:
        """True when no blocking error was recorded."""
        return not self.errors

    @property
    def error_messages(self) -> list[str]:
        """Display text of every error."""
        return [issue.message for issue in self.errors]

    @property
    def warning_messages(self) -> list[str]:
        """Display text of every warning."""
        return [issue.message for issue in self.warnings]

    def add_error(self, kind: ValidationIssueKind, **context: Any) -> None:
        self.errors.append(ValidationIssue(kind=kind, context=context))

    def add_warning(self, kind: ValidationIssueKind, **context: Any) -> None:
        self.warnings.append(ValidationIssue(kind=kind, context=context))

    def has_issue(self, kind: ValidationIssueKind) -> bool:
        """Check whether an issue of the given kind was recorded."""
        return any(issue.kind == kind for issue in [*self.errors, *self.warnings])

    def merge(self, other: ValidationResult) -> None:
        """Append another result's issues to this one."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
