# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for SchoolDesk.

This package contains domain services that encapsulate business logic.
Each service works on a caller-supplied async database session.

Domains:
    staff: Staff records and staff code generation.
    qualification: Qualification checks before assignment.
    assignment: Class teacher and subject teacher assignments.
    workload: Workload analytics and recommendations.
    audit: Audit log of mutations.
"""
