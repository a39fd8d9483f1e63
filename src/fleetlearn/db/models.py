"""ORM models for the training portal schema.

Column names follow the tables created by ``001_training_tables``; the
assignment table keeps its ``user``/``video`` column names and maps them to
``user_id``/``video_id`` attributes.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fleetlearn.db.base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Users & roles
# ---------------------------------------------------------------------------


class User(Base):
    """Portal user. Identity itself lives with the auth provider."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    full_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true", nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )

    role: Mapped[Role | None] = relationship(
        "Role", back_populates="user", uselist=False, cascade="all, delete-orphan", passive_deletes=True
    )
    assignments: Mapped[list[UserVideo]] = relationship(
        "UserVideo", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )


class Role(Base):
    """One role row per user: 'admin' or 'driver'."""

    __tablename__ = "roles"
    __table_args__ = (
        UniqueConstraint("user_id", name="uq_roles_user_id"),
        CheckConstraint("role IN ('admin', 'driver')", name="ck_roles_role"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(16), default="driver", server_default="driver", nullable=False)

    user: Mapped[User] = relationship("User", back_populates="role")


# ---------------------------------------------------------------------------
# Videos
# ---------------------------------------------------------------------------


class Video(Base):
    """A training video. ``duration`` is display-only."""

    __tablename__ = "videos"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    youtube_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(64), nullable=True)
    duration: Mapped[str | None] = mapped_column(String(32), nullable=True)
    is_annual_renewal: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false", nullable=False)
    admin_user: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )

    assignments: Mapped[list[UserVideo]] = relationship(
        "UserVideo", back_populates="video", cascade="all, delete-orphan", passive_deletes=True
    )


Index("ix_videos_created_at", Video.created_at.desc())


# ---------------------------------------------------------------------------
# Assignments (user <-> video edges)
# ---------------------------------------------------------------------------


class UserVideo(Base):
    """Assignment of a video to a user, with completion state."""

    __tablename__ = "users_videos"
    __table_args__ = (UniqueConstraint("user", "video", name="uq_users_videos_user_video"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        "user", String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    video_id: Mapped[str] = mapped_column(
        "video", String(36), ForeignKey("videos.id", ondelete="CASCADE"), nullable=False, index=True
    )
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false", nullable=False)
    assigned_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_watched: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    modified_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_action: Mapped[str | None] = mapped_column(String(16), nullable=True)

    user: Mapped[User] = relationship("User", back_populates="assignments")
    video: Mapped[Video] = relationship("Video", back_populates="assignments")
