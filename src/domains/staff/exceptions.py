# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions for staff record operations.

This module defines the exception hierarchy for staff operations:
- StaffServiceError: Base exception for all staff errors
- StaffNotFoundError: Staff member not found
- GenerationExhaustedError: No free staff code within the attempt budget
- PersistenceConflictError: Staff code conflict outlived every retry
"""


class StaffServiceError(Exception):
    """Base exception for staff service errors.

    Attributes:
        message: Human-readable error description.
        reasons: Display-ready reasons for the failure.
    """

    def __init__(self, message: str, reasons: list[str] | None = None):
        self.message = message
        self.reasons = reasons or []
        super().__init__(message)


class StaffNotFoundError(StaffServiceError):
    """Raised when staff member is not found."""

    pass


class GenerationExhaustedError(StaffServiceError):
    """Raised when no unused staff code was found within the attempt budget."""

    def __init__(self, prefix: str, year: int, attempts: int):
        self.prefix = prefix
        self.year = year
        self.attempts = attempts
        super().__init__(
            f"Failed to generate a unique staff code for {prefix}/{year} "
            f"after {attempts} attempts",
            reasons=[f"All {attempts} candidate codes for {year} were already taken"],
        )


class PersistenceConflictError(StaffServiceError):
    """Raised when a staff code conflict persists after all retries."""

    pass
