"""Video request/response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class VideoWriteRequest(BaseModel):
    """Create or replace a video."""

    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    youtube_url: str | None = None
    category: str | None = Field(default=None, max_length=64)
    duration: str | None = Field(default=None, max_length=32)
    is_annual_renewal: bool = False


class VideoResponse(BaseModel):
    """A video without assignment stats."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str | None = None
    youtube_url: str | None = None
    category: str | None = None
    duration: str | None = None
    is_annual_renewal: bool = False
    admin_user: str | None = None
    created_at: datetime | None = None


class VideoWithStatsResponse(VideoResponse):
    """A video with its assignment count and completion rate."""

    num_of_assigned_users: int = 0
    completion_rate: int = 0


class VideoListResponse(BaseModel):
    success: bool = True
    data: list[VideoWithStatsResponse]


class VideoDetailResponse(BaseModel):
    success: bool = True
    data: VideoWithStatsResponse
