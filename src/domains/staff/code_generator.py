# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Staff code generation.

Staff codes have the form ``{prefix}-STAFF-{YYYY}-{NNNN}``, for example
``SCH-STAFF-2025-0007``. Downstream reports parse this format, so it must
not change.

Two sequence strategies are supported:

- ``count``: the sequence number is the number of codes already issued for
  the prefix and year, plus one. Soft-deleted staff still occupy their
  slot; gaps left by hard deletes are not backfilled.
- ``counter``: a per-prefix, per-year row is incremented atomically and
  seeded from the existing count the first time it is used.

Neither strategy alone guarantees uniqueness under concurrent writers. The
unique constraint on ``staff_members.staff_code`` does; the candidate
existence re-check here only makes collisions less likely.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import StaffSettings
from src.domains.staff.exceptions import GenerationExhaustedError
from src.infrastructure.database.models.staff import Staff, StaffCodeSequence
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

STAFF_CODE_PATTERN = re.compile(r"^(?P<prefix>.+)-STAFF-(?P<year>\d{4})-(?P<sequence>\d{4,})$")


@dataclass(frozen=True)
class StaffCodeParts:
    """Components of a parsed staff code."""

    prefix: str
    year: int
    sequence: int


def format_staff_code(prefix: str, year: int, sequence: int) -> str:
    """Build a staff code.

    Args:
        prefix: School code.
        year: Calendar year.
        sequence: Sequence number within the year.

    Returns:
        Code such as ``SCH-STAFF-2025-0011``.
    """
    return f"{prefix}-STAFF-{year}-{sequence:04d}"


def parse_staff_code(code: str) -> StaffCodeParts | None:
    """Split a staff code into its components.

    Args:
        code: Staff code to parse.

    Returns:
        Parsed parts, or None if the code does not follow the format.
    """
    match = STAFF_CODE_PATTERN.match(code)
    if not match:
        return None
    return StaffCodeParts(
        prefix=match.group("prefix"),
        year=int(match.group("year")),
        sequence=int(match.group("sequence")),
    )


class StaffCodeGenerator:
    """Produces year-scoped sequential staff codes.

    Attributes:
        db: Async database session.
        settings: Staff settings (prefix, strategy, attempt budget).
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: StaffSettings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the generator.

        Args:
            db: Async database session.
            settings: Staff settings. Defaults are used when omitted.
            clock: Source of the current time, used for the code year.
        """
        self.db = db
        self.settings = settings or StaffSettings()
        self._clock = clock

    @property
    def prefix(self) -> str:
        return self.settings.school_code

    async def generate(self) -> str:
        """Generate a staff code that is not in use at the time of the check.

        Returns:
            Candidate staff code.

        Raises:
            GenerationExhaustedError: If every attempt produced a code
                that already exists.
        """
        year = self._clock().year
        max_attempts = self.settings.code_max_attempts

        for attempt in range(max_attempts):
            if self.settings.code_strategy == "counter":
                sequence = await self._next_from_counter(year)
            else:
                sequence = await self.count_issued(year) + 1

            code = format_staff_code(self.prefix, year, sequence)
            if not await self.code_exists(code):
                return code

            logger.debug(
                "Staff code %s already taken, retrying (attempt %d/%d)",
                code,
                attempt + 1,
                max_attempts,
            )
            await asyncio.sleep(self.settings.code_retry_delay_ms * (attempt + 1) / 1000)

        logger.error(
            "Failed to generate unique staff code: prefix=%s, year=%s, attempts=%d",
            self.prefix,
            year,
            max_attempts,
        )
        raise GenerationExhaustedError(self.prefix, year, max_attempts)

    async def count_issued(self, year: int) -> int:
        """Count codes issued for the prefix and year, soft-deleted included.

        Args:
            year: Calendar year.

        Returns:
            Number of matching staff codes.
        """
        query = select(func.count()).select_from(Staff).where(
            Staff.staff_code.startswith(f"{self.prefix}-STAFF-{year}-", autoescape=True)
        )
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def code_exists(self, code: str) -> bool:
        """Check whether any staff row, deleted or not, holds the code."""
        query = select(Staff.id).where(Staff.staff_code == code).limit(1)
        result = await self.db.execute(query)
        return result.scalar_one_or_none() is not None

    async def _next_from_counter(self, year: int) -> int:
        """Atomically increment and return the counter for the prefix and year."""
        increment = (
            update(StaffCodeSequence)
            .where(
                StaffCodeSequence.prefix == self.prefix,
                StaffCodeSequence.year == year,
            )
            .values(last_value=StaffCodeSequence.last_value + 1)
            .returning(StaffCodeSequence.last_value)
            .execution_options(synchronize_session=False)
        )

        result = await self.db.execute(increment)
        value = result.scalar_one_or_none()
        if value is not None:
            return value

        # First code of the year: seed from codes already issued
        seed = await self.count_issued(year)
        self.db.add(StaffCodeSequence(prefix=self.prefix, year=year, last_value=seed + 1))
        try:
            await self.db.flush()
        except IntegrityError:
            # Another writer seeded the row first
            await self.db.rollback()
            result = await self.db.execute(increment)
            return result.scalar_one()
        return seed + 1
