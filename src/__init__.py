"""SchoolDesk Backend.

School back office service for staff records, staff codes, and
class/subject teaching assignments with workload analytics.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
