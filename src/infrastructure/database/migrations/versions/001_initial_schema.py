# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial SchoolDesk schema.

Creates school structure, staff, staff assignment, staff code sequence,
and audit log tables. Active assignment invariants are enforced with
partial unique indexes:

1. one active class teacher per class and academic year
2. one active class teacher role per staff member and academic year
3. one active subject assignment per staff, subject, class, section, and year

Revision ID: 001_initial_schema
Revises: None
Create Date: 2025-06-02
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_CLASS_TEACHER = "is_active = true AND assignment_type = 'class_teacher'"
ACTIVE_SUBJECT_TEACHER = "is_active = true AND assignment_type = 'subject_teacher'"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create SchoolDesk tables."""
    # ==========================================================================
    # 1. school structure
    # ==========================================================================
    op.create_table(
        "academic_years",
        sa.Column("id", sa.Integer, autoincrement=True, nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("is_current", sa.Boolean, nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_academic_years"),
        sa.UniqueConstraint("code", name="uq_academic_years_code"),
    )

    op.create_table(
        "classes",
        sa.Column("id", sa.Integer, autoincrement=True, nullable=False),
        sa.Column("academic_year_id", sa.Integer, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("grade_level", sa.Integer, nullable=False),
        sa.Column("section", sa.String(20), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_classes"),
        sa.ForeignKeyConstraint(
            ["academic_year_id"],
            ["academic_years.id"],
            name="fk_classes_academic_year_id_academic_years",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_classes_academic_year_id", "classes", ["academic_year_id"])

    op.create_table(
        "subjects",
        sa.Column("id", sa.Integer, autoincrement=True, nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("category", sa.String(50), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_subjects"),
        sa.UniqueConstraint("code", name="uq_subjects_code"),
    )

    # ==========================================================================
    # 2. staff
    # ==========================================================================
    op.create_table(
        "staff_members",
        sa.Column("id", sa.Integer, autoincrement=True, nullable=False),
        sa.Column("staff_code", sa.String(50), nullable=False),
        sa.Column("user_id", sa.Integer, nullable=True),
        sa.Column("first_name", sa.String(50), nullable=False),
        sa.Column("middle_name", sa.String(50), nullable=True),
        sa.Column("last_name", sa.String(50), nullable=False),
        sa.Column("email", sa.String(100), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("employee_id", sa.String(50), nullable=True),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("position", sa.String(100), nullable=True),
        sa.Column("department", sa.String(100), nullable=True),
        sa.Column("employment_type", sa.String(20), nullable=False),
        sa.Column("join_date", sa.Date, nullable=False),
        sa.Column("termination_date", sa.Date, nullable=True),
        sa.Column("highest_qualification", sa.String(200), nullable=True),
        sa.Column("specialization", sa.String(200), nullable=True),
        sa.Column("teaching_license", sa.String(100), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps(),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_staff_members"),
        sa.UniqueConstraint("staff_code", name="uq_staff_members_staff_code"),
    )
    op.create_index("ix_staff_members_category", "staff_members", ["category"])
    op.create_index("ix_staff_members_department", "staff_members", ["department"])
    op.create_index("ix_staff_members_status", "staff_members", ["status"])

    op.create_table(
        "staff_code_sequences",
        sa.Column("id", sa.Integer, autoincrement=True, nullable=False),
        sa.Column("prefix", sa.String(20), nullable=False),
        sa.Column("year", sa.Integer, nullable=False),
        sa.Column("last_value", sa.Integer, nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id", name="pk_staff_code_sequences"),
        sa.UniqueConstraint("prefix", "year", name="uq_staff_code_sequences_prefix_year"),
    )

    # ==========================================================================
    # 3. staff assignments
    # ==========================================================================
    op.create_table(
        "staff_assignments",
        sa.Column("id", sa.Integer, autoincrement=True, nullable=False),
        sa.Column("staff_id", sa.Integer, nullable=False),
        sa.Column("academic_year_id", sa.Integer, nullable=False),
        sa.Column("assignment_type", sa.String(20), nullable=False),
        sa.Column("class_id", sa.Integer, nullable=True),
        sa.Column("subject_id", sa.Integer, nullable=True),
        sa.Column("section", sa.String(20), nullable=True),
        sa.Column("department", sa.String(100), nullable=True),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_staff_assignments"),
        sa.ForeignKeyConstraint(
            ["staff_id"],
            ["staff_members.id"],
            name="fk_staff_assignments_staff_id_staff_members",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["academic_year_id"],
            ["academic_years.id"],
            name="fk_staff_assignments_academic_year_id_academic_years",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["class_id"],
            ["classes.id"],
            name="fk_staff_assignments_class_id_classes",
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["subject_id"],
            ["subjects.id"],
            name="fk_staff_assignments_subject_id_subjects",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_staff_assignments_staff_id", "staff_assignments", ["staff_id"])
    op.create_index(
        "ix_staff_assignments_academic_year_id", "staff_assignments", ["academic_year_id"]
    )
    op.create_index("ix_staff_assignments_class_id", "staff_assignments", ["class_id"])
    op.create_index("ix_staff_assignments_subject_id", "staff_assignments", ["subject_id"])

    op.create_index(
        "ix_staff_assignments_active_class_teacher_per_class",
        "staff_assignments",
        ["class_id", "academic_year_id"],
        unique=True,
        postgresql_where=sa.text(ACTIVE_CLASS_TEACHER),
        sqlite_where=sa.text(ACTIVE_CLASS_TEACHER),
    )
    op.create_index(
        "ix_staff_assignments_active_class_teacher_per_staff",
        "staff_assignments",
        ["staff_id", "academic_year_id"],
        unique=True,
        postgresql_where=sa.text(ACTIVE_CLASS_TEACHER),
        sqlite_where=sa.text(ACTIVE_CLASS_TEACHER),
    )
    op.create_index(
        "ix_staff_assignments_active_subject_assignment",
        "staff_assignments",
        [
            sa.text("staff_id"),
            sa.text("subject_id"),
            sa.text("coalesce(class_id, 0)"),
            sa.text("coalesce(section, '')"),
            sa.text("academic_year_id"),
        ],
        unique=True,
        postgresql_where=sa.text(ACTIVE_SUBJECT_TEACHER),
        sqlite_where=sa.text(ACTIVE_SUBJECT_TEACHER),
    )

    # ==========================================================================
    # 4. audit log
    # ==========================================================================
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer, autoincrement=True, nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.Integer, nullable=False),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("old_value", sa.JSON, nullable=True),
        sa.Column("new_value", sa.JSON, nullable=True),
        sa.Column("changed_fields", sa.JSON, nullable=True),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("metadata", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_audit_logs"),
    )
    op.create_index("ix_audit_logs_entity", "audit_logs", ["entity_type", "entity_id"])


def downgrade() -> None:
    """Drop SchoolDesk tables."""
    op.drop_index("ix_audit_logs_entity", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_table("staff_assignments")
    op.drop_table("staff_code_sequences")
    op.drop_table("staff_members")
    op.drop_table("subjects")
    op.drop_table("classes")
    op.drop_table("academic_years")
