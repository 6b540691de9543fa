# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests
"""

from datetime import date
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.config.settings import AssignmentSettings, StaffSettings, WorkloadSettings
from src.models.common import StaffCategory, StaffStatus
from src.models.staff import StaffCreateRequest


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (uses SQLite)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def staff_settings() -> StaffSettings:
    """Staff settings with retry delays shortened for tests."""
    return StaffSettings(
        school_code="SCH",
        code_retry_delay_ms=1,
        create_backoff_base_ms=1,
        create_backoff_jitter_ms=2,
    )


@pytest.fixture
def assignment_settings() -> AssignmentSettings:
    """Default assignment thresholds."""
    return AssignmentSettings()


@pytest.fixture
def workload_settings() -> WorkloadSettings:
    """Default workload heuristics."""
    return WorkloadSettings()


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def mock_db():
    """Create mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.delete = AsyncMock()
    db.flush = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    db.get = AsyncMock()
    return db


@pytest.fixture
def sample_staff_data() -> dict[str, Any]:
    """Provide sample teaching staff data for testing."""
    return {
        "first_name": "Sita",
        "last_name": "Sharma",
        "email": "sita.sharma@school.edu.np",
        "category": StaffCategory.TEACHING,
        "position": "Senior Teacher",
        "department": "Science",
        "join_date": date(2024, 4, 15),
        "highest_qualification": "Master of Science in Mathematics",
        "specialization": "Mathematics",
        "teaching_license": "TL-1",
        "status": StaffStatus.ACTIVE,
    }


@pytest.fixture
def staff_request(sample_staff_data: dict[str, Any]) -> StaffCreateRequest:
    """Provide a staff creation request without an explicit code."""
    return StaffCreateRequest(**sample_staff_data)
