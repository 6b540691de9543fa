# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for Staff service."""

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import IntegrityError

from src.core.config.settings import StaffSettings
from src.domains.staff.exceptions import (
    PersistenceConflictError,
    StaffNotFoundError,
)
from src.domains.staff.service import StaffService, is_staff_code_conflict
from src.infrastructure.database.models import AuditLog, Staff
from src.models.staff import StaffCreateRequest, StaffUpdateRequest

CREATED_AT = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)


def code_conflict() -> IntegrityError:
    return IntegrityError(
        "INSERT INTO staff_members ...",
        {},
        Exception("UNIQUE constraint failed: staff_members.staff_code"),
    )


def make_staff(**overrides) -> Staff:
    values = {
        "id": 1,
        "staff_code": "SCH-STAFF-2025-0001",
        "first_name": "Sita",
        "last_name": "Sharma",
        "category": "teaching",
        "employment_type": "full_time",
        "join_date": date(2024, 4, 15),
        "status": "active",
        "created_at": CREATED_AT,
        "updated_at": CREATED_AT,
    }
    values.update(overrides)
    return Staff(**values)


def lookup_result(value) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def added_of_type(mock_db, model) -> list:
    return [c.args[0] for c in mock_db.add.call_args_list if isinstance(c.args[0], model)]


@pytest.fixture
def code_generator():
    generator = MagicMock()
    generator.generate = AsyncMock(
        side_effect=[f"SCH-STAFF-2025-{n:04d}" for n in range(1, 20)]
    )
    return generator


@pytest.fixture
def staff_service(mock_db, staff_settings, code_generator):
    """Create staff service with mock database and generator."""
    return StaffService(mock_db, staff_settings, code_generator=code_generator)


@pytest.fixture
def persist_on_flush(mock_db):
    """Make flush assign an ID and timestamp to the last added staff row."""

    async def fake_flush():
        staff_rows = added_of_type(mock_db, Staff)
        if staff_rows:
            staff_rows[-1].id = len(staff_rows)
            staff_rows[-1].created_at = CREATED_AT

    return fake_flush


class TestIsStaffCodeConflict:
    """Tests for unique violation classification."""

    def test_sqlite_message(self) -> None:
        assert is_staff_code_conflict(code_conflict()) is True

    def test_postgres_constraint_name(self) -> None:
        error = IntegrityError(
            "INSERT",
            {},
            Exception('duplicate key value violates unique constraint "uq_staff_members_staff_code"'),
        )
        assert is_staff_code_conflict(error) is True

    def test_other_constraint(self) -> None:
        error = IntegrityError("INSERT", {}, Exception("NOT NULL constraint failed: staff_members.join_date"))
        assert is_staff_code_conflict(error) is False


class TestStaffServiceCreate:
    """Tests for staff creation."""

    @pytest.mark.asyncio
    async def test_create_staff_generates_code(
        self, staff_service, mock_db, staff_request, persist_on_flush
    ) -> None:
        """Test that a staff member without a code gets a generated one."""
        mock_db.flush.side_effect = persist_on_flush

        result = await staff_service.create_staff(staff_request, created_by="admin-1")

        assert result.staff_code == "SCH-STAFF-2025-0001"
        assert result.full_name == "Sita Sharma"
        assert result.category == "teaching"
        mock_db.commit.assert_awaited_once()

        audit_rows = added_of_type(mock_db, AuditLog)
        assert len(audit_rows) == 1
        assert audit_rows[0].action == "create"
        assert audit_rows[0].entity_type == "staff"
        assert audit_rows[0].user_id == "admin-1"

    @pytest.mark.asyncio
    async def test_create_staff_uses_explicit_code(
        self, staff_service, mock_db, code_generator, sample_staff_data, persist_on_flush
    ) -> None:
        """Test that an explicit code is used without calling the generator."""
        mock_db.flush.side_effect = persist_on_flush
        request = StaffCreateRequest(staff_code="LEGACY-007", **sample_staff_data)

        result = await staff_service.create_staff(request)

        assert result.staff_code == "LEGACY-007"
        code_generator.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_code_conflict_retries_with_new_code(
        self, staff_service, mock_db, code_generator, staff_request, persist_on_flush
    ) -> None:
        """Test that a staff code conflict rolls back and retries."""
        calls = {"n": 0}

        async def flush():
            calls["n"] += 1
            if calls["n"] == 1:
                raise code_conflict()
            await persist_on_flush()

        mock_db.flush.side_effect = flush

        with patch("src.domains.staff.service.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await staff_service.create_staff(staff_request)

        assert result.staff_code == "SCH-STAFF-2025-0002"
        assert code_generator.generate.await_count == 2
        mock_db.rollback.assert_awaited_once()
        sleep.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_explicit_code_conflict_falls_back_to_generated(
        self, staff_service, mock_db, code_generator, sample_staff_data, persist_on_flush
    ) -> None:
        """Test that a conflicting explicit code is discarded on retry."""
        calls = {"n": 0}

        async def flush():
            calls["n"] += 1
            if calls["n"] == 1:
                raise code_conflict()
            await persist_on_flush()

        mock_db.flush.side_effect = flush
        request = StaffCreateRequest(staff_code="SCH-STAFF-2025-0001", **sample_staff_data)

        with patch("src.domains.staff.service.asyncio.sleep", new=AsyncMock()):
            result = await staff_service.create_staff(request)

        assert result.staff_code == "SCH-STAFF-2025-0001"
        code_generator.generate.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_backoff_grows_exponentially(self, mock_db, code_generator, staff_request) -> None:
        """Test that retry delays follow base * 2^attempt plus jitter."""
        settings = StaffSettings(
            create_max_retries=3,
            create_backoff_base_ms=20,
            create_backoff_jitter_ms=30,
        )
        service = StaffService(mock_db, settings, code_generator=code_generator)
        mock_db.flush.side_effect = code_conflict()

        with patch("src.domains.staff.service.random.uniform", return_value=0.0), \
                patch("src.domains.staff.service.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(PersistenceConflictError):
                await service.create_staff(staff_request)

        delays = [c.args[0] for c in sleep.await_args_list]
        assert delays == pytest.approx([0.02, 0.04, 0.08])

    @pytest.mark.asyncio
    async def test_conflict_exhaustion_raises_persistence_conflict(
        self, mock_db, code_generator, staff_request
    ) -> None:
        """Test that conflicts outliving every retry surface to the caller."""
        settings = StaffSettings(create_max_retries=2, create_backoff_base_ms=0, create_backoff_jitter_ms=0)
        service = StaffService(mock_db, settings, code_generator=code_generator)
        mock_db.flush.side_effect = code_conflict()

        with patch("src.domains.staff.service.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(PersistenceConflictError) as exc_info:
                await service.create_staff(staff_request)

        assert exc_info.value.reasons
        assert code_generator.generate.await_count == 3
        assert mock_db.rollback.await_count == 3
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_exhaustion_sleeps_between_attempts_only(
        self, mock_db, code_generator, staff_request
    ) -> None:
        """Test that no backoff follows the final attempt and the conflict is chained."""
        settings = StaffSettings(create_max_retries=2, create_backoff_base_ms=0, create_backoff_jitter_ms=0)
        service = StaffService(mock_db, settings, code_generator=code_generator)
        mock_db.flush.side_effect = code_conflict()

        with patch("src.domains.staff.service.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(PersistenceConflictError) as exc_info:
                await service.create_staff(staff_request)

        assert sleep.await_count == 2
        assert isinstance(exc_info.value.__cause__, IntegrityError)
        assert exc_info.value.reasons == ["Staff code SCH-STAFF-2025-0003 already exists"]

    @pytest.mark.asyncio
    async def test_other_integrity_error_is_not_retried(
        self, staff_service, mock_db, code_generator, staff_request
    ) -> None:
        """Test that unrelated constraint failures propagate immediately."""
        mock_db.flush.side_effect = IntegrityError(
            "INSERT", {}, Exception("NOT NULL constraint failed: staff_members.join_date")
        )

        with pytest.raises(IntegrityError):
            await staff_service.create_staff(staff_request)

        code_generator.generate.assert_awaited_once()
        mock_db.rollback.assert_awaited_once()


class TestStaffServiceBulkCreate:
    """Tests for bulk staff creation."""

    @pytest.mark.asyncio
    async def test_bulk_create_continues_past_failures(
        self, staff_service, sample_staff_data
    ) -> None:
        """Test that one failed item does not abort the batch."""
        requests = [
            StaffCreateRequest(**sample_staff_data),
            StaffCreateRequest(**{**sample_staff_data, "first_name": "Ram"}),
            StaffCreateRequest(**{**sample_staff_data, "first_name": "Gita"}),
        ]
        created = MagicMock()
        staff_service.create_staff = AsyncMock(
            side_effect=[
                created,
                PersistenceConflictError("Could not create staff member", reasons=["taken"]),
                created,
            ]
        )

        result = await staff_service.bulk_create_staff(requests)

        assert len(result.created) == 2
        assert len(result.failed) == 1
        assert result.failed[0].index == 1
        assert result.failed[0].first_name == "Ram"
        assert result.total == 3


class TestStaffServiceLookup:
    """Tests for staff lookup."""

    @pytest.mark.asyncio
    async def test_get_staff_success(self, staff_service, mock_db) -> None:
        mock_db.execute.return_value = lookup_result(make_staff())

        result = await staff_service.get_staff(1)

        assert result.id == 1
        assert result.staff_code == "SCH-STAFF-2025-0001"

    @pytest.mark.asyncio
    async def test_get_staff_not_found(self, staff_service, mock_db) -> None:
        mock_db.execute.return_value = lookup_result(None)

        with pytest.raises(StaffNotFoundError):
            await staff_service.get_staff(999)

    @pytest.mark.asyncio
    async def test_get_staff_by_code_not_found(self, staff_service, mock_db) -> None:
        mock_db.execute.return_value = lookup_result(None)

        with pytest.raises(StaffNotFoundError):
            await staff_service.get_staff_by_code("SCH-STAFF-2025-0404")

    @pytest.mark.asyncio
    async def test_list_staff_returns_total(self, staff_service, mock_db) -> None:
        """Test listing returns items with total count."""
        count = MagicMock()
        count.scalar.return_value = 1
        rows = MagicMock()
        rows.scalars.return_value.all.return_value = [make_staff()]
        mock_db.execute.side_effect = [count, rows]

        items, total = await staff_service.list_staff(search="Sita", limit=500)

        assert total == 1
        assert [s.staff_code for s in items] == ["SCH-STAFF-2025-0001"]
        assert mock_db.execute.await_count == 2


class TestStaffServiceMutations:
    """Tests for staff update, deletion and restore."""

    @pytest.mark.asyncio
    async def test_update_staff_records_changed_fields(self, staff_service, mock_db) -> None:
        staff = make_staff()
        mock_db.execute.return_value = lookup_result(staff)

        result = await staff_service.update_staff(
            1,
            StaffUpdateRequest(specialization="Physics", status="on_leave"),
            updated_by="admin-1",
        )

        assert result.specialization == "Physics"
        assert result.status == "on_leave"
        audit = added_of_type(mock_db, AuditLog)[0]
        assert audit.action == "update"
        assert audit.changed_fields == ["specialization", "status"]
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_staff_not_found(self, staff_service, mock_db) -> None:
        mock_db.execute.return_value = lookup_result(None)

        with pytest.raises(StaffNotFoundError):
            await staff_service.update_staff(999, StaffUpdateRequest(first_name="X"))

        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_staff_is_soft(self, staff_service, mock_db) -> None:
        staff = make_staff()
        mock_db.execute.return_value = lookup_result(staff)

        await staff_service.delete_staff(1, deleted_by="admin-1")

        assert staff.deleted_at is not None
        mock_db.delete.assert_not_awaited()
        audit = added_of_type(mock_db, AuditLog)[0]
        assert audit.action == "delete"
        assert audit.old_value["staff_code"] == "SCH-STAFF-2025-0001"

    @pytest.mark.asyncio
    async def test_restore_staff(self, staff_service, mock_db) -> None:
        staff = make_staff(deleted_at=CREATED_AT)
        mock_db.execute.return_value = lookup_result(staff)

        result = await staff_service.restore_staff(1)

        assert staff.deleted_at is None
        assert result.id == 1
        assert added_of_type(mock_db, AuditLog)[0].action == "restore"


class TestStaffServiceStatistics:
    """Tests for staff statistics."""

    @pytest.mark.asyncio
    async def test_statistics_report_every_group(self, staff_service, mock_db) -> None:
        """Test that groups without rows are reported as zero."""
        total = MagicMock()
        total.scalar.return_value = 5
        categories = MagicMock()
        categories.all.return_value = [("teaching", 4), ("administrative", 1)]
        statuses = MagicMock()
        statuses.all.return_value = [("active", 3), ("on_leave", 2)]
        mock_db.execute.side_effect = [total, categories, statuses]

        stats = await staff_service.get_statistics()

        assert stats.total == 5
        assert stats.by_category == {
            "teaching": 4,
            "non_teaching": 0,
            "administrative": 1,
        }
        assert stats.by_status == {
            "active": 3,
            "inactive": 0,
            "on_leave": 2,
            "terminated": 0,
            "retired": 0,
        }

    @pytest.mark.asyncio
    async def test_statistics_empty_school(self, staff_service, mock_db) -> None:
        total = MagicMock()
        total.scalar.return_value = None
        empty = MagicMock()
        empty.all.return_value = []
        mock_db.execute.side_effect = [total, empty, empty]

        stats = await staff_service.get_statistics()

        assert stats.total == 0
        assert set(stats.by_category.values()) == {0}
        assert len(stats.by_status) == 5
