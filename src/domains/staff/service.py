# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Staff service for managing staff records.

This module provides the StaffService class for:
- Staff creation with generated staff codes
- Bulk staff upload
- Staff lookup, listing, update, soft deletion, and restore
- Staff statistics
"""

from __future__ import annotations

import asyncio
import logging
import random

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import StaffSettings
from src.domains.audit.service import AuditLogService, snapshot
from src.domains.staff.code_generator import StaffCodeGenerator
from src.domains.staff.exceptions import (
    PersistenceConflictError,
    StaffNotFoundError,
    StaffServiceError,
)
from src.infrastructure.database.models.staff import STAFF_CODE_CONSTRAINT, Staff
from src.models.common import StaffCategory, StaffStatus
from src.models.staff import (
    BulkStaffFailure,
    BulkStaffResult,
    StaffCreateRequest,
    StaffResponse,
    StaffStatistics,
    StaffUpdateRequest,
)

logger = logging.getLogger(__name__)

AUDIT_ENTITY = "staff"
MAX_PAGE_SIZE = 100


def is_staff_code_conflict(error: IntegrityError) -> bool:
    """Check whether a unique violation concerns the staff code column.

    PostgreSQL reports the constraint name, SQLite the table and column.
    """
    detail = str(error.orig) if error.orig is not None else str(error)
    return STAFF_CODE_CONSTRAINT in detail or "staff_members.staff_code" in detail


class StaffService:
    """Service for managing staff records.

    Attributes:
        db: Async database session.
        settings: Staff settings.
        code_generator: Generator used when no staff code is supplied.
        audit: Audit log sink sharing the session.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: StaffSettings | None = None,
        code_generator: StaffCodeGenerator | None = None,
    ) -> None:
        """Initialize staff service.

        Args:
            db: Async database session.
            settings: Staff settings. Defaults are used when omitted.
            code_generator: Optional generator override.
        """
        self.db = db
        self.settings = settings or StaffSettings()
        self.code_generator = code_generator or StaffCodeGenerator(db, self.settings)
        self.audit = AuditLogService(db)

    async def create_staff(
        self,
        request: StaffCreateRequest,
        created_by: str | None = None,
    ) -> StaffResponse:
        """Create a staff member.

        When no staff code is supplied one is generated. If the insert
        violates the staff code unique constraint, the code is discarded
        and the whole create is retried with a freshly generated code,
        backing off exponentially with jitter between attempts.

        Args:
            request: Staff creation data.
            created_by: ID of user performing the creation.

        Returns:
            Created staff member.

        Raises:
            PersistenceConflictError: If staff code conflicts persist
                after all retries.
            GenerationExhaustedError: If the generator finds no free code.
        """
        data = request.model_dump(exclude={"staff_code"})
        staff_code = request.staff_code
        max_retries = self.settings.create_max_retries

        conflict: IntegrityError | None = None
        code = staff_code

        for attempt in range(max_retries + 1):
            if conflict is not None:
                delay_ms = (
                    self.settings.create_backoff_base_ms * 2 ** (attempt - 1)
                    + random.uniform(0, self.settings.create_backoff_jitter_ms)
                )
                logger.warning(
                    "Duplicate staff code %s, retrying in %.0fms (attempt %d/%d)",
                    code,
                    delay_ms,
                    attempt,
                    max_retries,
                )
                await asyncio.sleep(delay_ms / 1000)
                staff_code = None

            code = staff_code or await self.code_generator.generate()
            staff = Staff(staff_code=code, **data)
            self.db.add(staff)

            try:
                await self.db.flush()
                self.audit.log_create(AUDIT_ENTITY, staff, created_by)
                await self.db.commit()
            except IntegrityError as e:
                await self.db.rollback()
                if not is_staff_code_conflict(e):
                    logger.error("Error creating staff: code=%s, error=%s", code, e)
                    raise
                conflict = e
                continue
            except SQLAlchemyError:
                await self.db.rollback()
                logger.exception("Error creating staff: code=%s", code)
                raise

            logger.info("Created staff: %s (%s)", staff.staff_code, staff.id)
            return StaffResponse.model_validate(staff)

        logger.error(
            "Staff code conflict persisted after %d retries: code=%s",
            max_retries,
            code,
        )
        raise PersistenceConflictError(
            "Could not create staff member with a unique staff code",
            reasons=[f"Staff code {code} already exists"],
        ) from conflict

    async def bulk_create_staff(
        self,
        requests: list[StaffCreateRequest],
        created_by: str | None = None,
    ) -> BulkStaffResult:
        """Create many staff members, continuing past individual failures.

        Args:
            requests: Staff creation data, one entry per staff member.
            created_by: ID of user performing the upload.

        Returns:
            Created records and per-item failures.
        """
        result = BulkStaffResult()

        for index, request in enumerate(requests):
            try:
                result.created.append(await self.create_staff(request, created_by))
            except (StaffServiceError, SQLAlchemyError, ValueError) as e:
                logger.warning(
                    "Bulk staff item %d failed: %s %s: %s",
                    index,
                    request.first_name,
                    request.last_name,
                    e,
                )
                result.failed.append(
                    BulkStaffFailure(
                        index=index,
                        first_name=request.first_name,
                        last_name=request.last_name,
                        reason=str(e),
                    )
                )

        logger.info(
            "Bulk staff upload finished: created=%d, failed=%d",
            len(result.created),
            len(result.failed),
        )
        return result

    async def get_staff(self, staff_id: int) -> StaffResponse:
        """Get staff member by ID.

        Raises:
            StaffNotFoundError: If staff member not found.
        """
        staff = await self._get_by_id(staff_id)
        return StaffResponse.model_validate(staff)

    async def get_staff_by_code(self, staff_code: str) -> StaffResponse:
        """Get staff member by staff code.

        Raises:
            StaffNotFoundError: If staff member not found.
        """
        query = select(Staff).where(
            Staff.staff_code == staff_code,
            Staff.deleted_at.is_(None),
        )
        result = await self.db.execute(query)
        staff = result.scalar_one_or_none()

        if not staff:
            raise StaffNotFoundError(f"Staff {staff_code} not found")

        return StaffResponse.model_validate(staff)

    async def list_staff(
        self,
        category: StaffCategory | None = None,
        status: StaffStatus | None = None,
        department: str | None = None,
        search: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[StaffResponse], int]:
        """List staff with filtering.

        Args:
            category: Filter by category.
            status: Filter by status.
            department: Filter by department.
            search: Search in names, staff code, email, and employee ID.
            limit: Maximum results (capped at 100).
            offset: Pagination offset.

        Returns:
            Tuple of (list of staff, total count).
        """
        query = select(Staff)

        conditions = [Staff.deleted_at.is_(None)]

        if category:
            conditions.append(Staff.category == category)

        if status:
            conditions.append(Staff.status == status)

        if department:
            conditions.append(Staff.department == department)

        if search:
            search_pattern = f"%{search}%"
            conditions.append(
                or_(
                    Staff.first_name.ilike(search_pattern),
                    Staff.last_name.ilike(search_pattern),
                    Staff.staff_code.ilike(search_pattern),
                    Staff.email.ilike(search_pattern),
                    Staff.employee_id.ilike(search_pattern),
                )
            )

        query = query.where(and_(*conditions))

        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        limit = min(limit, MAX_PAGE_SIZE)
        query = query.order_by(Staff.created_at.desc(), Staff.id.desc()).limit(limit).offset(offset)

        result = await self.db.execute(query)
        items = [StaffResponse.model_validate(s) for s in result.scalars().all()]

        return items, total

    async def update_staff(
        self,
        staff_id: int,
        request: StaffUpdateRequest,
        updated_by: str | None = None,
    ) -> StaffResponse:
        """Update a staff member.

        Args:
            staff_id: Staff identifier.
            request: Fields to change.
            updated_by: ID of user performing the update.

        Returns:
            Updated staff member.

        Raises:
            StaffNotFoundError: If staff member not found.
        """
        staff = await self._get_by_id(staff_id)
        before = snapshot(staff)

        for field, value in request.model_dump(exclude_unset=True).items():
            setattr(staff, field, value)

        try:
            await self.db.flush()
            self.audit.log_update(AUDIT_ENTITY, staff.id, before, staff, updated_by)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Error updating staff: %s", staff_id)
            raise

        logger.info("Updated staff: %s", staff_id)

        return StaffResponse.model_validate(staff)

    async def delete_staff(self, staff_id: int, deleted_by: str | None = None) -> None:
        """Soft delete a staff member.

        The row and its staff code are retained for audit.

        Raises:
            StaffNotFoundError: If staff member not found.
        """
        staff = await self._get_by_id(staff_id)
        before = snapshot(staff)
        staff.soft_delete()

        try:
            self.audit.log_delete(AUDIT_ENTITY, staff.id, before, deleted_by)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Error deleting staff: %s", staff_id)
            raise

        logger.info("Deleted staff: %s (%s)", staff.staff_code, staff_id)

    async def restore_staff(self, staff_id: int, restored_by: str | None = None) -> StaffResponse:
        """Restore a soft-deleted staff member.

        Raises:
            StaffNotFoundError: If no deleted staff member has this ID.
        """
        query = select(Staff).where(
            Staff.id == staff_id,
            Staff.deleted_at.is_not(None),
        )
        result = await self.db.execute(query)
        staff = result.scalar_one_or_none()

        if not staff:
            raise StaffNotFoundError(f"Deleted staff {staff_id} not found")

        staff.restore()

        try:
            await self.db.flush()
            self.audit.log_restore(AUDIT_ENTITY, staff, restored_by)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Error restoring staff: %s", staff_id)
            raise

        logger.info("Restored staff: %s (%s)", staff.staff_code, staff_id)

        return StaffResponse.model_validate(staff)

    async def get_statistics(self) -> StaffStatistics:
        """Count staff by category and by status, excluding deleted rows."""
        not_deleted = Staff.deleted_at.is_(None)

        total_result = await self.db.execute(
            select(func.count()).select_from(Staff).where(not_deleted)
        )
        total = total_result.scalar() or 0

        category_result = await self.db.execute(
            select(Staff.category, func.count()).where(not_deleted).group_by(Staff.category)
        )
        counted_categories = dict(category_result.all())

        status_result = await self.db.execute(
            select(Staff.status, func.count()).where(not_deleted).group_by(Staff.status)
        )
        counted_statuses = dict(status_result.all())

        return StaffStatistics(
            total=total,
            by_category={c.value: counted_categories.get(c.value, 0) for c in StaffCategory},
            by_status={s.value: counted_statuses.get(s.value, 0) for s in StaffStatus},
        )

    async def _get_by_id(self, staff_id: int) -> Staff:
        """Get a non-deleted staff row by ID.

        Raises:
            StaffNotFoundError: If not found.
        """
        query = select(Staff).where(
            Staff.id == staff_id,
            Staff.deleted_at.is_(None),
        )
        result = await self.db.execute(query)
        staff = result.scalar_one_or_none()

        if not staff:
            raise StaffNotFoundError(f"Staff {staff_id} not found")

        return staff
