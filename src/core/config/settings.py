# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for SchoolDesk.
Settings are loaded from environment variables with sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.staff.school_code)
    'SCH'
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """School database configuration.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        explicit_url: Full connection URL, overrides the components when set.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
        populate_by_name=True,
    )

    user: str = "schooldesk"
    password: SecretStr = SecretStr("schooldesk_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "schooldesk"
    explicit_url: str | None = Field(
        default=None,
        validation_alias="DATABASE_URL",
    )
    pool_size: int = 10
    max_overflow: int = 20

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        if self.explicit_url:
            return self.explicit_url
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"

    @property
    def is_sqlite(self) -> bool:
        """Check whether the configured URL points at SQLite."""
        return self.url.startswith("sqlite")


class StaffSettings(BaseSettings):
    """Staff record and staff code configuration.

    Attributes:
        school_code: Prefix used in generated staff codes.
        code_strategy: "count" derives the sequence from the number of
            existing codes; "counter" increments a locked sequence row.
        code_max_attempts: Existence re-check attempts per generation.
        code_retry_delay_ms: Delay unit between generation attempts.
        create_max_retries: Create retries after a staff code conflict.
        create_backoff_base_ms: Base of the exponential create backoff.
        create_backoff_jitter_ms: Upper bound of the random jitter.
        specialization_map_path: Optional YAML file overriding the
            subject to specialization keyword table.
    """

    model_config = SettingsConfigDict(
        env_prefix="STAFF_",
        extra="ignore",
    )

    school_code: str = "SCH"
    code_strategy: Literal["count", "counter"] = "count"
    code_max_attempts: int = 5
    code_retry_delay_ms: int = 10
    create_max_retries: int = 10
    create_backoff_base_ms: int = 20
    create_backoff_jitter_ms: int = 30
    specialization_map_path: Path | None = None


class AssignmentSettings(BaseSettings):
    """Assignment rule thresholds.

    Attributes:
        workload_warning_threshold: Active subject assignments at which
            a new subject assignment carries a workload warning.
        workload_hard_limit: Active subject assignments at which a new
            subject assignment is rejected.
        excessive_assignment_threshold: Proposed assignment count above
            which a batch validation warns.
    """

    model_config = SettingsConfigDict(
        env_prefix="ASSIGNMENT_",
        extra="ignore",
    )

    workload_warning_threshold: int = 6
    workload_hard_limit: int = 8
    excessive_assignment_threshold: int = 6


class WorkloadSettings(BaseSettings):
    """Workload analytics heuristics.

    Attributes:
        hours_per_subject: Estimated weekly periods per subject assignment.
        recommended_limit: Assignments a teacher should carry at most.
        imbalance_stddev_threshold: Standard deviation of assignment counts
            above which a distribution is flagged as imbalanced.
        light_max_assignments: Highest total still rated LIGHT.
        moderate_max_assignments: Highest total still rated MODERATE.
        heavy_max_assignments: Highest total still rated HEAVY. Anything
            above is OVERLOADED.
    """

    model_config = SettingsConfigDict(
        env_prefix="WORKLOAD_",
        extra="ignore",
    )

    hours_per_subject: float = 5.5
    recommended_limit: int = 6
    imbalance_stddev_threshold: float = 2.0
    light_max_assignments: int = Field(default=3, ge=0)
    moderate_max_assignments: int = Field(default=5, ge=0)
    heavy_max_assignments: int = Field(default=7, ge=0)

    @model_validator(mode="after")
    def validate_level_bands(self) -> Self:
        """Validate that the workload level bands are ascending.

        Raises:
            ValueError: If a band ends below the one before it.
        """
        if not (
            self.light_max_assignments
            <= self.moderate_max_assignments
            <= self.heavy_max_assignments
        ):
            raise ValueError(
                "WORKLOAD_LIGHT_MAX_ASSIGNMENTS, WORKLOAD_MODERATE_MAX_ASSIGNMENTS and "
                "WORKLOAD_HEAVY_MAX_ASSIGNMENTS must be ascending."
            )
        return self


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        database: Database settings.
        staff: Staff record settings.
        assignment: Assignment rule settings.
        workload: Workload analytics settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    # Subsettings - loaded with their own env prefixes
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    staff: StaffSettings = Field(default_factory=StaffSettings)
    assignment: AssignmentSettings = Field(default_factory=AssignmentSettings)
    workload: WorkloadSettings = Field(default_factory=WorkloadSettings)

    @model_validator(mode="after")
    def validate_thresholds(self) -> Self:
        """Validate that rule thresholds are consistent.

        Raises:
            ValueError: If the workload warning is not below the hard limit.
        """
        if self.assignment.workload_warning_threshold > self.assignment.workload_hard_limit:
            raise ValueError(
                "ASSIGNMENT_WORKLOAD_WARNING_THRESHOLD must not exceed "
                "ASSIGNMENT_WORKLOAD_HARD_LIMIT."
            )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
