# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Audit log domain package.

Records create, update, delete, and restore mutations with before/after snapshots
in the same transaction as the mutation.
"""

from src.domains.audit.service import AuditLogService, changed_fields, snapshot

__all__ = [
    "AuditLogService",
    "changed_fields",
    "snapshot",
]
