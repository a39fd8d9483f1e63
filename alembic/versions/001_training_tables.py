"""Training portal tables.

Creates users, roles, videos and the users_videos assignment table. Each
(user, video) pair may be assigned at most once; deleting either side
removes its assignments.

Revision ID: 001_training_tables
Revises:
Create Date: 2026-10-18
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "001_training_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the training portal schema."""
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("full_name", sa.Text(), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # --- roles ---
    op.create_table(
        "roles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(16), server_default="driver", nullable=False),
        sa.UniqueConstraint("user_id", name="uq_roles_user_id"),
        sa.CheckConstraint("role IN ('admin', 'driver')", name="ck_roles_role"),
    )

    # --- videos ---
    op.create_table(
        "videos",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("youtube_url", sa.Text(), nullable=True),
        sa.Column("category", sa.String(64), nullable=True),
        sa.Column("duration", sa.String(32), nullable=True),
        sa.Column("is_annual_renewal", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("admin_user", sa.String(36), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_videos_created_at", "videos", [sa.text("created_at DESC")])

    # --- users_videos ---
    op.create_table(
        "users_videos",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("video", sa.String(36), sa.ForeignKey("videos.id", ondelete="CASCADE"), nullable=False),
        sa.Column("is_completed", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("assigned_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_watched", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("modified_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_action", sa.String(16), nullable=True),
        sa.UniqueConstraint("user", "video", name="uq_users_videos_user_video"),
    )
    op.create_index("ix_users_videos_user", "users_videos", ["user"])
    op.create_index("ix_users_videos_video", "users_videos", ["video"])


def downgrade() -> None:
    """Drop the training portal schema."""
    op.drop_table("users_videos")
    op.drop_index("ix_videos_created_at", table_name="videos")
    op.drop_table("videos")
    op.drop_table("roles")
    op.drop_table("users")
