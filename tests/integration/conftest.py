# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest fixtures for database integration tests.

Each test gets a fresh SQLite database file, so the unique indexes and
the service-level retry logic are exercised against a real engine.
"""

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from src.core.config.settings import DatabaseSettings, Settings, StaffSettings
from src.domains.staff.service import StaffService
from src.infrastructure.database.connection import build_engine, build_sessionmaker
from src.infrastructure.database.models import AcademicYear, Base, SchoolClass, Subject
from src.models.common import StaffCategory
from src.models.staff import StaffCreateRequest, StaffResponse

SUBJECT_NAMES = [
    "Mathematics",
    "English",
    "Physics",
    "Chemistry",
    "Biology",
    "Nepali",
    "History",
    "Geography",
    "Economics",
    "Computer Science",
]


@dataclass
class SchoolData:
    """IDs of the seeded school structure."""

    academic_year_id: int
    grade_3_id: int
    grade_10_id: int
    grade_12_id: int
    subject_ids: dict[str, int]


@pytest.fixture
def db_settings(tmp_path: Path) -> Settings:
    """Settings pointing at a per-test SQLite file."""
    return Settings(
        debug=False,
        database=DatabaseSettings(
            explicit_url=f"sqlite+aiosqlite:///{tmp_path / 'schooldesk_test.db'}",
        ),
    )


@pytest_asyncio.fixture(scope="function")
async def db_engine(db_settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine with all tables."""
    engine = build_engine(db_settings)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def db_sessionmaker(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_sessionmaker(db_engine)


@pytest_asyncio.fixture(scope="function")
async def db_session(
    db_sessionmaker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create async session for a single test."""
    async with db_sessionmaker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def school(db_session: AsyncSession) -> SchoolData:
    """Seed an academic year, three classes, and the subject catalogue."""
    year = AcademicYear(
        code="2025-2026",
        name="Academic Year 2025-2026",
        start_date=date(2025, 4, 14),
        end_date=date(2026, 4, 13),
        is_current=True,
    )
    db_session.add(year)
    await db_session.flush()

    grade_3 = SchoolClass(academic_year_id=year.id, name="Grade 3", grade_level=3)
    grade_10 = SchoolClass(academic_year_id=year.id, name="Grade 10", grade_level=10)
    grade_12 = SchoolClass(academic_year_id=year.id, name="Grade 12", grade_level=12)
    subjects = [
        Subject(code=name.upper().replace(" ", "_"), name=name) for name in SUBJECT_NAMES
    ]
    db_session.add_all([grade_3, grade_10, grade_12, *subjects])
    await db_session.commit()

    return SchoolData(
        academic_year_id=year.id,
        grade_3_id=grade_3.id,
        grade_10_id=grade_10.id,
        grade_12_id=grade_12.id,
        subject_ids={subject.name: subject.id for subject in subjects},
    )


@pytest.fixture
def integration_staff_settings() -> StaffSettings:
    """Staff settings with the production retry budget and short code delays."""
    return StaffSettings(school_code="SCH", code_retry_delay_ms=5)


@pytest.fixture
def make_staff(db_session: AsyncSession, integration_staff_settings: StaffSettings):
    """Factory creating staff members through the staff service."""

    async def factory(**overrides) -> StaffResponse:
        data = {
            "first_name": "Sita",
            "last_name": "Sharma",
            "category": StaffCategory.TEACHING,
            "join_date": date(2024, 4, 15),
            "highest_qualification": "Master of Science in Mathematics",
            "specialization": "Mathematics",
            "teaching_license": "TL-1",
        }
        data.update(overrides)
        service = StaffService(db_session, integration_staff_settings)
        return await service.create_staff(StaffCreateRequest(**data))

    return factory
