"""create course structure, learning event and progress snapshot tables

Revision ID: 3b7e1c9d2a40
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b7e1c9d2a40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "courses",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
    )
    # Module ids are scoped to their course, content ids to their module.
    op.create_table(
        "course_modules",
        sa.Column(
            "course_id",
            sa.String(length=64),
            sa.ForeignKey("courses.id"),
            nullable=False,
        ),
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.PrimaryKeyConstraint("course_id", "id"),
    )
    op.create_table(
        "module_contents",
        sa.Column("course_id", sa.String(length=64), nullable=False),
        sa.Column("module_id", sa.String(length=64), nullable=False),
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column(
            "media",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.PrimaryKeyConstraint("course_id", "module_id", "id"),
        sa.ForeignKeyConstraint(
            ["course_id", "module_id"],
            ["course_modules.course_id", "course_modules.id"],
        ),
    )

    op.create_table(
        "learning_events",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("course_id", sa.String(length=64), nullable=False),
        sa.Column("module_id", sa.String(length=64), nullable=False),
        sa.Column("content_id", sa.String(length=64), nullable=False),
        sa.Column("content_type", sa.String(length=16), nullable=False),
        sa.Column("event_type", sa.String(length=16), nullable=False),
        sa.Column("percentage", sa.Float(), nullable=False, server_default="0"),
        sa.Column("time_spent", sa.Float(), nullable=False, server_default="0"),
        sa.Column(
            "metadata",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.clock_timestamp(),
        ),
    )
    op.create_index(
        "ix_learning_events_subject",
        "learning_events",
        ["user_id", "course_id", "created_at"],
    )
    op.create_index(
        "ix_learning_events_location",
        "learning_events",
        ["user_id", "course_id", "module_id", "content_type"],
    )

    op.create_table(
        "progress_snapshots",
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column(
            "course_id",
            sa.String(length=64),
            sa.ForeignKey("courses.id"),
            nullable=False,
        ),
        sa.Column(
            "modules",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column(
            "overall_progress", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column(
            "total_time_spent", sa.Float(), nullable=False, server_default="0"
        ),
        sa.Column("last_activity", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("user_id", "course_id"),
    )


def downgrade() -> None:
    op.drop_table("progress_snapshots")
    op.drop_index("ix_learning_events_location", table_name="learning_events")
    op.drop_index("ix_learning_events_subject", table_name="learning_events")
    op.drop_table("learning_events")
    op.drop_table("module_contents")
    op.drop_table("course_modules")
    op.drop_table("courses")
