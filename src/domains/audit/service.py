# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Audit log service recording before/after snapshots of mutations.

Audit rows are added to the caller's session so they commit or roll back
together with the mutation they describe.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from enum import Enum
from typing import Any

from sqlalchemy import func, inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models.audit import AuditLog
from src.infrastructure.database.models.base import Base
from src.models.common import AuditAction

logger = logging.getLogger(__name__)


def snapshot(entity: Base) -> dict[str, Any]:
    """Capture the column values of a model instance as JSON-safe data.

    Args:
        entity: Mapped model instance.

    Returns:
        Mapping of column attribute name to value.
    """
    values: dict[str, Any] = {}
    for attr in inspect(entity).mapper.column_attrs:
        value = getattr(entity, attr.key)
        if isinstance(value, (datetime, date)):
            value = value.isoformat()
        elif isinstance(value, Enum):
            value = value.value
        values[attr.key] = value
    return values


def changed_fields(old_value: dict[str, Any], new_value: dict[str, Any]) -> list[str]:
    """List keys whose values differ between two snapshots.

    Timestamps maintained by the ORM are ignored.
    """
    ignored = {"updated_at"}
    keys = set(old_value) | set(new_value)
    return sorted(
        key for key in keys
        if key not in ignored and old_value.get(key) != new_value.get(key)
    )


class AuditLogService:
    """Records audited mutations in the audit_logs table.

    Attributes:
        db: Async database session shared with the audited operation.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def log(
        self,
        entity_type: str,
        entity_id: int,
        action: AuditAction,
        old_value: dict[str, Any] | None = None,
        new_value: dict[str, Any] | None = None,
        user_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLog:
        """Add an audit entry to the current unit of work.

        Args:
            entity_type: Kind of entity, e.g. "staff".
            entity_id: Primary key of the entity.
            action: Mutation kind.
            old_value: Snapshot before the mutation.
            new_value: Snapshot after the mutation.
            user_id: Acting user.
            metadata: Extra context such as the reason for a supersession.

        Returns:
            The pending audit entry.
        """
        fields = None
        if action == AuditAction.UPDATE and old_value and new_value:
            fields = changed_fields(old_value, new_value)

        entry = AuditLog(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action.value,
            old_value=old_value,
            new_value=new_value,
            changed_fields=fields,
            user_id=user_id,
            extra=metadata,
        )
        self.db.add(entry)

        logger.debug(
            "Audit entry queued: %s %s:%s by=%s",
            action.value,
            entity_type,
            entity_id,
            user_id,
        )
        return entry

    def log_create(
        self,
        entity_type: str,
        entity: Base,
        user_id: str | None = None,
    ) -> AuditLog:
        return self.log(
            entity_type,
            entity.id,
            AuditAction.CREATE,
            new_value=snapshot(entity),
            user_id=user_id,
        )

    def log_update(
        self,
        entity_type: str,
        entity_id: int,
        old_value: dict[str, Any],
        entity: Base,
        user_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLog:
        return self.log(
            entity_type,
            entity_id,
            AuditAction.UPDATE,
            old_value=old_value,
            new_value=snapshot(entity),
            user_id=user_id,
            metadata=metadata,
        )

    def log_delete(
        self,
        entity_type: str,
        entity_id: int,
        old_value: dict[str, Any],
        user_id: str | None = None,
    ) -> AuditLog:
        return self.log(
            entity_type,
            entity_id,
            AuditAction.DELETE,
            old_value=old_value,
            user_id=user_id,
        )

    def log_restore(
        self,
        entity_type: str,
        entity: Base,
        user_id: str | None = None,
    ) -> AuditLog:
        return self.log(
            entity_type,
            entity.id,
            AuditAction.RESTORE,
            new_value=snapshot(entity),
            user_id=user_id,
        )

    async def get_entity_audit_logs(
        self,
        entity_type: str,
        entity_id: int,
        action: AuditAction | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[AuditLog], int]:
        """List audit entries for one entity, newest first.

        Args:
            entity_type: Kind of entity.
            entity_id: Primary key of the entity.
            action: Optional action filter.
            limit: Maximum results.
            offset: Pagination offset.

        Returns:
            Tuple of (audit entries, total count).
        """
        query = select(AuditLog).where(
            AuditLog.entity_type == entity_type,
            AuditLog.entity_id == entity_id,
        )
        if action is not None:
            query = query.where(AuditLog.action == action.value)

        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        query = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        result = await self.db.execute(query.limit(limit).offset(offset))
        return list(result.scalars().all()), total
