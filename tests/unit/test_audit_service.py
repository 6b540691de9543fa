# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for audit logging and validation results."""

from datetime import date, datetime, timezone
from unittest.mock import MagicMock

import pytest

from src.domains.audit.service import AuditLogService, changed_fields, snapshot
from src.infrastructure.database.models import AuditLog, StaffAssignment
from src.models.common import AuditAction
from src.models.validation import (
    ValidationIssueKind,
    ValidationResult,
    format_issue,
)


def make_assignment() -> StaffAssignment:
    return StaffAssignment(
        id=7,
        staff_id=1,
        academic_year_id=1,
        assignment_type="subject_teacher",
        subject_id=3,
        start_date=date(2025, 4, 1),
        is_active=True,
        created_at=datetime(2025, 4, 1, tzinfo=timezone.utc),
    )


class TestSnapshot:
    """Tests for snapshot helpers."""

    def test_dates_serialized(self) -> None:
        values = snapshot(make_assignment())

        assert values["id"] == 7
        assert values["start_date"] == "2025-04-01"
        assert values["created_at"] == "2025-04-01T00:00:00+00:00"
        assert values["end_date"] is None

    def test_changed_fields_ignores_updated_at(self) -> None:
        old = {"is_active": True, "updated_at": "a", "subject_id": 3}
        new = {"is_active": False, "updated_at": "b", "subject_id": 3}

        assert changed_fields(old, new) == ["is_active"]


class TestAuditLogService:
    """Tests for AuditLogService."""

    def test_log_update_records_changes(self, mock_db) -> None:
        service = AuditLogService(mock_db)
        assignment = make_assignment()
        before = snapshot(assignment)
        assignment.is_active = False

        entry = service.log_update(
            "staff_assignment",
            assignment.id,
            before,
            assignment,
            user_id="admin-1",
            metadata={"reason": "superseded"},
        )

        mock_db.add.assert_called_once_with(entry)
        assert entry.action == AuditAction.UPDATE.value
        assert entry.changed_fields == ["is_active"]
        assert entry.extra == {"reason": "superseded"}

    def test_log_create_has_no_old_value(self, mock_db) -> None:
        entry = AuditLogService(mock_db).log_create("staff_assignment", make_assignment())

        assert entry.old_value is None
        assert entry.new_value["subject_id"] == 3
        assert entry.changed_fields is None

    @pytest.mark.asyncio
    async def test_get_entity_audit_logs(self, mock_db) -> None:
        count = MagicMock()
        count.scalar.return_value = 1
        rows = MagicMock()
        rows.scalars.return_value.all.return_value = [AuditLog(id=1, action="create")]
        mock_db.execute.side_effect = [count, rows]

        entries, total = await AuditLogService(mock_db).get_entity_audit_logs(
            "staff", 1, action=AuditAction.CREATE
        )

        assert total == 1
        assert len(entries) == 1


class TestValidationResult:
    """Tests for tagged validation results."""

    def test_empty_result_is_valid(self) -> None:
        result = ValidationResult()

        assert result.is_valid is True
        assert result.model_dump()["is_valid"] is True

    def test_error_makes_invalid(self) -> None:
        result = ValidationResult()
        result.add_error(ValidationIssueKind.STAFF_NOT_FOUND, staff_id=3)

        assert result.is_valid is False
        assert result.error_messages == ["Staff member not found"]
        assert result.errors[0].context == {"staff_id": 3}

    def test_warning_keeps_valid(self) -> None:
        result = ValidationResult()
        result.add_warning(ValidationIssueKind.EXCESSIVE_ASSIGNMENTS, count=7)

        assert result.is_valid is True
        assert result.warning_messages == ["Staff member has 7 assignments, which may be excessive"]

    def test_merge(self) -> None:
        first = ValidationResult()
        first.add_warning(ValidationIssueKind.MISSING_TEACHING_LICENSE)
        second = ValidationResult()
        second.add_error(ValidationIssueKind.SUBJECT_NOT_FOUND, subject_id=4)

        first.merge(second)

        assert first.is_valid is False
        assert first.has_issue(ValidationIssueKind.SUBJECT_NOT_FOUND)
        assert first.has_issue(ValidationIssueKind.MISSING_TEACHING_LICENSE)

    def test_format_issue_missing_context_falls_back_to_template(self) -> None:
        message = format_issue(ValidationIssueKind.SPECIALIZATION_MISMATCH, {})

        assert message.startswith("Staff specialization (")
