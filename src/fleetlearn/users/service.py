"""User management business logic."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from fleetlearn.assignments.exceptions import NotFound
from fleetlearn.assignments.schemas import Edge, UserStats, VideoStats
from fleetlearn.assignments.stats import group_stats_by_user, group_stats_by_video, project_user_stats
from fleetlearn.db.models import Role, User, UserVideo, Video

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

ROLES = ("admin", "driver")
DEFAULT_ROLE = "driver"


def role_of(user: User) -> str:
    """The user's role; users without a role row are drivers."""
    return user.role.role if user.role is not None else DEFAULT_ROLE


def _validate_role(role: str) -> None:
    if role not in ROLES:
        msg = 'Invalid role. Must be "admin" or "driver"'
        raise ValueError(msg)


async def get_user_with_role(db: AsyncSession, user_id: str) -> User | None:
    """Load a user with the role relationship eagerly populated."""
    result = await db.execute(select(User).options(selectinload(User.role)).where(User.id == user_id))
    return result.scalar_one_or_none()


async def list_active_users(db: AsyncSession) -> list[tuple[User, UserStats]]:
    """Active users ordered by name, each with assignment stats."""
    result = await db.execute(
        select(User).options(selectinload(User.role)).where(User.is_active.is_(True)).order_by(User.full_name)
    )
    users = list(result.scalars().all())
    if not users:
        return []

    edge_rows = await db.execute(
        select(UserVideo.user_id, UserVideo.is_completed).where(UserVideo.user_id.in_([u.id for u in users]))
    )
    stats = group_stats_by_user(edge_rows.all())
    empty = project_user_stats([])
    return [(user, stats.get(user.id, empty)) for user in users]


async def get_user_detail(db: AsyncSession, user_id: str) -> tuple[User, UserStats]:
    """A single user with stats. Raises NotFound."""
    user = await get_user_with_role(db, user_id)
    if user is None:
        raise NotFound("user", user_id)
    rows = await db.execute(select(UserVideo.is_completed).where(UserVideo.user_id == user_id))
    return user, project_user_stats(rows.all())


async def list_user_videos(db: AsyncSession, user_id: str) -> list[tuple[Edge, Video, VideoStats]]:
    """The user's assignments, each with its video and that video's overall stats."""
    if await db.get(User, user_id) is None:
        raise NotFound("user", user_id)

    result = await db.execute(
        select(UserVideo, Video)
        .join(Video, UserVideo.video_id == Video.id)
        .where(UserVideo.user_id == user_id)
        .order_by(UserVideo.assigned_date.desc(), UserVideo.id)
    )
    pairs = [(Edge.model_validate(edge), video) for edge, video in result.all()]
    if not pairs:
        return []

    counts = await db.execute(
        select(UserVideo.video_id, UserVideo.is_completed).where(
            UserVideo.video_id.in_([video.id for _, video in pairs])
        )
    )
    stats = group_stats_by_video(counts.all())
    return [(edge, video, stats[video.id]) for edge, video in pairs]


async def invite_user(db: AsyncSession, full_name: str, role: str = DEFAULT_ROLE) -> User:
    """
    Create an inactive user with a role. The account activates on first sign-in.

    Raises:
        ValueError: If the role is not one of ROLES.
    """
    _validate_role(role)
    user = User(full_name=full_name, is_active=False)
    user.role = Role(role=role)
    db.add(user)
    await db.flush()
    logger.info("user_invited", user_id=user.id, role=role)
    return user


async def update_role(db: AsyncSession, user_id: str, role: str) -> User:
    """
    Set the user's role, creating the role row if missing.

    Raises:
        ValueError: If the role is invalid.
        NotFound: If the user does not exist.
    """
    _validate_role(role)
    user = await get_user_with_role(db, user_id)
    if user is None:
        raise NotFound("user", user_id)
    if user.role is None:
        user.role = Role(role=role)
    else:
        user.role.role = role
    await db.flush()
    logger.info("user_role_updated", user_id=user_id, role=role)
    return user


async def delete_user(db: AsyncSession, user_id: str) -> None:
    """Delete a user; role and assignments cascade. Raises NotFound."""
    user = await get_user_with_role(db, user_id)
    if user is None:
        raise NotFound("user", user_id)
    await db.delete(user)
    await db.flush()
    logger.info("user_deleted", user_id=user_id)
