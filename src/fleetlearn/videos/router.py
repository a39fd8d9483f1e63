"""Video management router: all /api/v1/videos/* endpoints (admin only)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fleetlearn.assignments.schemas import AssignUsersRequest, ReconciliationResponse, VideoStats
from fleetlearn.assignments.service import AssignmentService
from fleetlearn.auth.dependencies import require_admin
from fleetlearn.config import get_settings
from fleetlearn.database import get_session
from fleetlearn.db.models import User, Video
from fleetlearn.videos import service
from fleetlearn.videos.schemas import (
    VideoDetailResponse,
    VideoListResponse,
    VideoResponse,
    VideoWithStatsResponse,
    VideoWriteRequest,
)

router = APIRouter(prefix="/api/v1/videos", tags=["Videos"])


def _with_stats(video: Video, stats: VideoStats) -> VideoWithStatsResponse:
    return VideoWithStatsResponse(
        **VideoResponse.model_validate(video).model_dump(),
        num_of_assigned_users=stats.assigned_count,
        completion_rate=stats.completion_rate,
    )


@router.get("", response_model=VideoListResponse)
async def list_videos(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> VideoListResponse:
    """Newest videos with assignment counts and completion rates."""
    rows = await service.list_videos(db, limit=get_settings().videos_list_limit)
    return VideoListResponse(data=[_with_stats(video, stats) for video, stats in rows])


@router.get("/{video_id}", response_model=VideoDetailResponse)
async def get_video(
    video_id: str,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> VideoDetailResponse:
    video, stats = await service.get_video(db, video_id)
    return VideoDetailResponse(data=_with_stats(video, stats))


@router.post("", response_model=VideoDetailResponse, status_code=201)
async def create_video(
    body: VideoWriteRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> VideoDetailResponse:
    """Create a video owned by the calling admin."""
    video = await service.create_video(db, admin.id, body)
    await db.commit()
    return VideoDetailResponse(data=VideoWithStatsResponse.model_validate(video))


@router.put("/{video_id}", response_model=VideoDetailResponse)
async def update_video(
    video_id: str,
    body: VideoWriteRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> VideoDetailResponse:
    await service.update_video(db, video_id, body)
    await db.commit()
    video, stats = await service.get_video(db, video_id)
    return VideoDetailResponse(data=_with_stats(video, stats))


@router.delete("/{video_id}")
async def delete_video(
    video_id: str,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> dict:
    """Delete a video and, by cascade, all of its assignments."""
    await service.delete_video(db, video_id)
    await db.commit()
    return {"success": True}


@router.get("/{video_id}/stats", response_model=VideoStats)
async def get_video_stats(
    video_id: str,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> VideoStats:
    return await AssignmentService(db).get_video_stats(video_id)


@router.put("/{video_id}/assignments", response_model=ReconciliationResponse)
async def assign_video(
    video_id: str,
    body: AssignUsersRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> ReconciliationResponse:
    """Make the video's assigned users exactly ``user_ids``. Only the owning admin may do this."""
    if await service.get_owned_video(db, video_id, admin.id) is None:
        raise HTTPException(status_code=404, detail="Video not found or access denied")

    result = await AssignmentService(db).reconcile_video_assignments(video_id, body.user_ids)
    await db.commit()
    return ReconciliationResponse(
        added=sorted(result.added),
        removed=sorted(result.removed),
        data=result.edges,
    )
