"""Driver training schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from fleetlearn.assignments.schemas import LastAction


class TrainingVideoResponse(BaseModel):
    """One assigned video as the driver sees it."""

    assignment_id: str
    video_id: str
    title: str
    description: str | None = None
    youtube_url: str | None = None
    category: str | None = None
    duration: str | None = None
    is_annual_renewal: bool = False
    is_completed: bool = False
    assigned_date: datetime | None = None
    last_watched: datetime | None = None
    completed_date: datetime | None = None
    last_action: LastAction | None = None
    renewal_due: bool = False


class MyVideosResponse(BaseModel):
    videos: list[TrainingVideoResponse]
    total: int
    renewal_due_count: int
