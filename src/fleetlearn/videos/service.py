"""Video CRUD with per-video assignment stats."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from fleetlearn.assignments.exceptions import NotFound
from fleetlearn.assignments.schemas import VideoStats
from fleetlearn.assignments.stats import group_stats_by_video, project_video_stats
from fleetlearn.db.models import UserVideo, Video
from fleetlearn.videos.schemas import VideoWriteRequest

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def _stats_for(db: AsyncSession, video_ids: list[str]) -> dict[str, VideoStats]:
    if not video_ids:
        return {}
    rows = await db.execute(
        select(UserVideo.video_id, UserVideo.is_completed).where(UserVideo.video_id.in_(video_ids))
    )
    return group_stats_by_video(rows.all())


async def list_videos(db: AsyncSession, limit: int = 50) -> list[tuple[Video, VideoStats]]:
    """Newest videos first, each with its assignment stats."""
    result = await db.execute(select(Video).order_by(Video.created_at.desc(), Video.id).limit(limit))
    videos = list(result.scalars().all())
    stats = await _stats_for(db, [v.id for v in videos])
    empty = project_video_stats([])
    return [(video, stats.get(video.id, empty)) for video in videos]


async def get_video(db: AsyncSession, video_id: str) -> tuple[Video, VideoStats]:
    """A single video with stats. Raises NotFound."""
    video = await db.get(Video, video_id)
    if video is None:
        raise NotFound("video", video_id)
    stats = await _stats_for(db, [video_id])
    return video, stats.get(video_id, project_video_stats([]))


async def get_owned_video(db: AsyncSession, video_id: str, admin_id: str) -> Video | None:
    """The video if ``admin_id`` created it, else None."""
    result = await db.execute(select(Video).where(Video.id == video_id, Video.admin_user == admin_id))
    return result.scalar_one_or_none()


async def create_video(db: AsyncSession, admin_id: str, body: VideoWriteRequest) -> Video:
    video = Video(admin_user=admin_id, **body.model_dump())
    db.add(video)
    await db.flush()
    logger.info("video_created", video_id=video.id, admin_id=admin_id)
    return video


async def update_video(db: AsyncSession, video_id: str, body: VideoWriteRequest) -> Video:
    """Replace the editable fields of a video. Raises NotFound."""
    video = await db.get(Video, video_id)
    if video is None:
        raise NotFound("video", video_id)
    for field, value in body.model_dump().items():
        setattr(video, field, value)
    await db.flush()
    return video


async def delete_video(db: AsyncSession, video_id: str) -> None:
    """Delete a video; its assignments cascade in the database. Raises NotFound."""
    video = await db.get(Video, video_id)
    if video is None:
        raise NotFound("video", video_id)
    await db.delete(video)
    await db.flush()
    logger.info("video_deleted", video_id=video_id)
