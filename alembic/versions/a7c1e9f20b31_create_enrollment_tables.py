"""create enrollment tables

Revision ID: a7c1e9f20b31
Revises:
Create Date: 2026-10-19 09:00:00.000000

This migration creates:
1. courses (with the default IELTS course, capacity 25)
2. users with the user_role enum
3. enrollments with the enrollment_status enum and a partial unique
   index allowing one non-rejected enrollment per (email, course)
4. password_setup_tokens (one row per email)
5. failed_email_attempts whose enrollment/user references are SET NULL
   on delete
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a7c1e9f20b31"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

DEFAULT_COURSE_ID = "00000000-0000-0000-0000-000000000001"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create enrollment tables and seed the default course."""
    user_role_enum = postgresql.ENUM("student", "admin", name="user_role", create_type=False)
    user_role_enum.create(op.get_bind(), checkfirst=True)

    enrollment_status_enum = postgresql.ENUM(
        "pending", "approved", "rejected", name="enrollment_status", create_type=False
    )
    enrollment_status_enum.create(op.get_bind(), checkfirst=True)

    # Courses
    op.create_table(
        "courses",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="50"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("capacity >= 1", name="ck_courses_capacity_positive"),
    )

    # Users
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("role", user_role_enum, nullable=False, server_default="student"),
        sa.Column("ai_credits", sa.Integer(), nullable=False, server_default="500"),
        sa.Column("target_band_score", sa.Numeric(2, 1), nullable=True),
        sa.Column("target_test_date", sa.Date(), nullable=True),
        sa.Column("interface_language", sa.String(length=10), nullable=False, server_default="en"),
        sa.Column(
            "ai_feedback_language", sa.String(length=10), nullable=False, server_default="bn"
        ),
        sa.Column(
            "gamification_opt_out", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "gamification_is_anonymous", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # Enrollments
    op.create_table(
        "enrollments",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.Column("course_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("transaction_id", sa.String(length=255), nullable=False),
        sa.Column("status", enrollment_status_enum, nullable=False, server_default="pending"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"], name="fk_enrollments_course_id"),
    )
    op.create_index("idx_enrollments_course_status", "enrollments", ["course_id", "status"])
    op.create_index("idx_enrollments_status_created", "enrollments", ["status", "created_at"])
    op.create_index(
        "uq_enrollments_active_email_course",
        "enrollments",
        ["email", "course_id"],
        unique=True,
        postgresql_where=sa.text("status <> 'rejected'"),
    )

    # Password setup tokens
    op.create_table(
        "password_setup_tokens",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("token", sa.String(length=64), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token", name="uq_password_setup_tokens_token"),
        sa.UniqueConstraint("email", name="uq_password_setup_tokens_email"),
    )

    # Failed email attempts
    op.create_table(
        "failed_email_attempts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("recipient", sa.String(length=255), nullable=False),
        sa.Column("data", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("enrollment_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("retry_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_retry", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["enrollment_id"],
            ["enrollments.id"],
            name="fk_failed_email_attempts_enrollment_id",
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_failed_email_attempts_user_id",
            ondelete="SET NULL",
        ),
    )
    op.create_index(
        "idx_failed_email_attempts_retry",
        "failed_email_attempts",
        ["retry_count", "created_at"],
    )

    # Default course
    op.execute(
        sa.text(
            "INSERT INTO courses (id, title, description, capacity) "
            "VALUES (:id, :title, :description, :capacity) ON CONFLICT (id) DO NOTHING"
        ).bindparams(
            id=DEFAULT_COURSE_ID,
            title="IELTS Preparation Course",
            description="Comprehensive IELTS preparation covering all four skills.",
            capacity=25,
        )
    )


def downgrade() -> None:
    """Drop enrollment tables and enum types."""
    op.drop_index("idx_failed_email_attempts_retry", table_name="failed_email_attempts")
    op.drop_table("failed_email_attempts")
    op.drop_table("password_setup_tokens")
    op.drop_index("uq_enrollments_active_email_course", table_name="enrollments")
    op.drop_index("idx_enrollments_status_created", table_name="enrollments")
    op.drop_index("idx_enrollments_course_status", table_name="enrollments")
    op.drop_table("enrollments")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    op.drop_table("courses")

    postgresql.ENUM(name="enrollment_status").drop(op.get_bind(), checkfirst=True)
    postgresql.ENUM(name="user_role").drop(op.get_bind(), checkfirst=True)
