# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Service wiring and process lifecycle for SchoolDesk.

This module provides:
- startup/shutdown of logging and the database engine
- construction of the domain services over one shared session
- a session-scoped context manager handing out those services

Example:
    async with lifespan():
        async with service_scope() as services:
            staff = await services.staff.create_staff(request)
            await services.assignments.assign(assign_request)
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import Settings, get_settings
from src.domains.assignment.service import StaffAssignmentService
from src.domains.audit.service import AuditLogService
from src.domains.qualification.specialization import SpecializationMatcher
from src.domains.qualification.validator import QualificationValidator
from src.domains.staff.service import StaffService
from src.domains.workload.service import WorkloadAnalyzer
from src.infrastructure.database.connection import (
    check_database_connection,
    close_database,
    get_session,
    init_database,
)
from src.utils.logging import log_context, setup_logging

logger = logging.getLogger(__name__)


@dataclass
class SchoolDeskServices:
    """Domain services sharing one database session."""

    session: AsyncSession
    staff: StaffService
    validator: QualificationValidator
    assignments: StaffAssignmentService
    workload: WorkloadAnalyzer
    audit: AuditLogService


def build_services(
    session: AsyncSession,
    settings: Settings | None = None,
    matcher: SpecializationMatcher | None = None,
) -> SchoolDeskServices:
    """Create every domain service over the given session.

    Args:
        session: Async database session shared by the services.
        settings: Application settings. Cached settings are used when omitted.
        matcher: Specialization matcher. Loaded from the configured YAML file
            (or the built-in table) when omitted.

    Returns:
        Wired services.

    Raises:
        YAMLLoadError: If the configured specialization file is invalid.
    """
    settings = settings or get_settings()
    matcher = matcher or SpecializationMatcher.from_file(settings.staff.specialization_map_path)

    validator = QualificationValidator(session, matcher=matcher, settings=settings.assignment)

    return SchoolDeskServices(
        session=session,
        staff=StaffService(session, settings.staff),
        validator=validator,
        assignments=StaffAssignmentService(
            session,
            validator=validator,
            settings=settings.assignment,
        ),
        workload=WorkloadAnalyzer(session, settings=settings.workload, matcher=matcher),
        audit=AuditLogService(session),
    )


async def startup(settings: Settings | None = None) -> None:
    """Configure logging and open the database engine."""
    settings = settings or get_settings()
    setup_logging(settings)

    logger.info(
        "Starting SchoolDesk: environment=%s, school_code=%s, code_strategy=%s",
        settings.environment,
        settings.staff.school_code,
        settings.staff.code_strategy,
    )

    await init_database(settings)

    if not await check_database_connection():
        logger.warning("Database is not reachable at startup")


async def shutdown() -> None:
    """Dispose of the database engine."""
    await close_database()
    logger.info("SchoolDesk stopped")


@asynccontextmanager
async def lifespan(settings: Settings | None = None) -> AsyncIterator[None]:
    """Run startup and shutdown around a block."""
    await startup(settings)
    try:
        yield
    finally:
        await shutdown()


@asynccontextmanager
async def service_scope(
    settings: Settings | None = None,
    acting_user: str | None = None,
) -> AsyncIterator[SchoolDeskServices]:
    """Open a session and yield the services bound to it.

    When ``acting_user`` is given it is attached to every log record
    emitted inside the block.

    Raises:
        DatabaseError: If the database has not been initialized or a
            database operation fails.
    """
    with log_context(acting_user=acting_user):
        async with get_session() as session:
            yield build_services(session, settings)
