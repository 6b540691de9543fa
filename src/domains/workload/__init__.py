# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Workload analytics domain package."""

from src.domains.workload.service import (
    WorkloadAnalyzer,
    WorkloadServiceError,
    WorkloadStaffNotFoundError,
    build_snapshot,
    mean_and_stddev,
    summarize_distribution,
    workload_level,
)

__all__ = [
    "WorkloadAnalyzer",
    "WorkloadServiceError",
    "WorkloadStaffNotFoundError",
    "build_snapshot",
    "mean_and_stddev",
    "summarize_distribution",
    "workload_level",
]
