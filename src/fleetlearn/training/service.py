"""Driver-facing view of assigned training videos."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import select

from fleetlearn.assignments.renewal import is_renewal_due
from fleetlearn.assignments.schemas import Edge
from fleetlearn.db.models import UserVideo, Video
from fleetlearn.training.schemas import MyVideosResponse, TrainingVideoResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

FILTER_ALL = "all"
FILTER_RENEWAL = "renewal"


def filter_training_videos(
    videos: Iterable[TrainingVideoResponse],
    filter_: str = FILTER_ALL,
    search: str | None = None,
) -> list[TrainingVideoResponse]:
    """Apply the list filter and free-text search.

    ``renewal`` keeps annual-renewal videos, ``all`` keeps everything and any
    other value is treated as a category (case-insensitive). Search matches
    title or description, case-insensitive.
    """
    result = list(videos)
    key = (filter_ or FILTER_ALL).strip().lower()
    if key == FILTER_RENEWAL:
        result = [v for v in result if v.is_annual_renewal]
    elif key != FILTER_ALL:
        result = [v for v in result if (v.category or "").lower() == key]

    term = (search or "").strip().lower()
    if term:
        result = [
            v for v in result if term in (v.title or "").lower() or term in (v.description or "").lower()
        ]
    return result


def _to_response(edge: Edge, video: Video, now: datetime) -> TrainingVideoResponse:
    return TrainingVideoResponse(
        assignment_id=edge.id,
        video_id=video.id,
        title=video.title,
        description=video.description,
        youtube_url=video.youtube_url,
        category=video.category,
        duration=video.duration,
        is_annual_renewal=video.is_annual_renewal,
        is_completed=edge.is_completed,
        assigned_date=edge.assigned_date,
        last_watched=edge.last_watched,
        completed_date=edge.completed_date,
        last_action=edge.last_action,
        renewal_due=is_renewal_due(edge, video, now),
    )


async def list_my_videos(
    db: AsyncSession,
    user_id: str,
    filter_: str = FILTER_ALL,
    search: str | None = None,
    now: datetime | None = None,
) -> MyVideosResponse:
    """The user's assigned videos, filtered, with the count of renewals due across all of them."""
    now = now or datetime.now(timezone.utc)
    result = await db.execute(
        select(UserVideo, Video)
        .join(Video, UserVideo.video_id == Video.id)
        .where(UserVideo.user_id == user_id)
        .order_by(Video.title, Video.id)
    )
    videos = [_to_response(Edge.model_validate(edge), video, now) for edge, video in result.all()]
    filtered = filter_training_videos(videos, filter_, search)
    return MyVideosResponse(
        videos=filtered,
        total=len(filtered),
        renewal_due_count=sum(1 for v in videos if v.renewal_due),
    )
