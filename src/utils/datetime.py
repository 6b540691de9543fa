# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Clock helpers for SchoolDesk.

Row timestamps are timezone-aware UTC. Assignment start and end dates and
the year embedded in staff codes are calendar dates read from the same UTC
clock, so a code issued just after midnight on 1 January carries the new
year everywhere at once.
"""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime; used for column defaults."""
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Current UTC calendar date; the default end date for assignments."""
    return utc_now().date()
