# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Alembic migration environment for the SchoolDesk schema.

The target database comes from ``-x url=...`` when given, otherwise from
DatabaseSettings (DATABASE_URL or the DATABASE_* components). SQLite runs
in batch mode so column changes can be migrated there too.

Usage:
    alembic upgrade head
    alembic -x url=sqlite+aiosqlite:///./schooldesk.db upgrade head
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from src.core.config.settings import DatabaseSettings
from src.infrastructure.database.models import (
    AcademicYear,
    AuditLog,
    Base,
    SchoolClass,
    Staff,
    StaffAssignment,
    StaffCodeSequence,
    Subject,
)

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

SCHOOLDESK_TABLES = {
    model.__tablename__
    for model in (
        AcademicYear,
        SchoolClass,
        Subject,
        Staff,
        StaffAssignment,
        StaffCodeSequence,
        AuditLog,
    )
}


def include_object(object, name, type_, reflected, compare_to):
    """Keep autogenerate away from tables SchoolDesk does not own."""
    if type_ == "table":
        return name in SCHOOLDESK_TABLES
    return True


def get_database_url() -> str:
    """Resolve the migration target URL."""
    return context.get_x_argument(as_dictionary=True).get("url") or DatabaseSettings().url


def configure_context(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        include_object=include_object,
        compare_type=True,
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit the migration SQL instead of executing it."""
    url = get_database_url()
    configure_context(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=url.startswith("sqlite"),
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    configure_context(
        connection=connection,
        render_as_batch=connection.dialect.name == "sqlite",
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Connect through the async driver and run the migrations synchronously."""
    section = config.get_section(config.config_ini_section) or {}
    section["sqlalchemy.url"] = get_database_url()

    engine = async_engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(do_run_migrations)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
