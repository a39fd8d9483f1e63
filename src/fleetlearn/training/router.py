"""Driver training router: the caller's own assignments under /api/v1/me."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fleetlearn.assignments.schemas import ProgressResponse
from fleetlearn.assignments.service import AssignmentService
from fleetlearn.auth.dependencies import get_current_user
from fleetlearn.database import get_session
from fleetlearn.db.models import User
from fleetlearn.training.schemas import MyVideosResponse
from fleetlearn.training.service import FILTER_ALL, list_my_videos

router = APIRouter(prefix="/api/v1/me", tags=["Training"])


@router.get("/videos", response_model=MyVideosResponse)
async def my_videos(
    filter: str = Query(FILTER_ALL),  # noqa: A002
    search: str | None = Query(None, max_length=200),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> MyVideosResponse:
    """Assigned videos with renewal flags. ``filter`` is all, renewal, or a category."""
    return await list_my_videos(db, user.id, filter, search)


@router.post("/videos/{video_id}/watch", response_model=ProgressResponse)
async def watch_video(
    video_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ProgressResponse:
    """Record a watch. Restarts the annual cycle when the renewal is due."""
    outcome = await AssignmentService(db).record_watch_for(user.id, video_id)
    await db.commit()
    return ProgressResponse(renewed=outcome.renewed, data=outcome.edge)


@router.post("/videos/{video_id}/complete", response_model=ProgressResponse)
async def complete_video(
    video_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ProgressResponse:
    """Mark the caller's assignment of this video as completed."""
    outcome = await AssignmentService(db).record_completion_for(user.id, video_id)
    await db.commit()
    return ProgressResponse(data=outcome.edge)
