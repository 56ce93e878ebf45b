"""Create the student registry and admin log tables.

Revision ID: 0001_create_student_registry
Revises:
Create Date: 2026-09-14
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_create_student_registry"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "student_registry",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("roll_number", sa.String(), nullable=False),
        sa.Column("roll_number_key", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("institution", sa.String(), nullable=False),
        sa.Column("department", sa.String(), nullable=False),
        sa.Column("cgpa", sa.Float(), nullable=False),
        sa.Column("backlogs", sa.Integer(), nullable=False),
        sa.Column("passout_year", sa.Integer(), nullable=True),
        sa.Column("is_whitelisted", sa.Boolean(), nullable=False),
        sa.Column("last_modified_by_id", sa.String(), nullable=True),
        sa.Column("last_modified_by_name", sa.String(), nullable=True),
        sa.Column("last_modified_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_student_registry"),
        sa.UniqueConstraint(
            "institution",
            "email",
            name="uq_student_registry_institution_email",
        ),
        sa.UniqueConstraint(
            "institution",
            "roll_number_key",
            name="uq_student_registry_institution_roll_number_key",
        ),
    )
    op.create_index(
        "ix_student_registry_institution_department",
        "student_registry",
        ["institution", "department"],
    )

    op.create_table(
        "admin_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("admin_id", sa.String(), nullable=False),
        sa.Column("admin_name", sa.String(), nullable=False),
        sa.Column("action", sa.String(length=32), nullable=False),
        sa.Column("entity_type", sa.String(length=32), nullable=False),
        sa.Column("entity_id", sa.String(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_admin_logs"),
    )


def downgrade() -> None:
    op.drop_table("admin_logs")
    op.drop_index("ix_student_registry_institution_department", table_name="student_registry")
    op.drop_table("student_registry")
