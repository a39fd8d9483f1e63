"""Request/response schemas for user endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from fleetlearn.assignments.schemas import Edge
from fleetlearn.videos.schemas import VideoWithStatsResponse


class UserStatsResponse(BaseModel):
    num_assigned: int = 0
    completion: int = 0


class UserResponse(BaseModel):
    """A user with role and assignment stats."""

    id: str
    full_name: str | None = None
    avatar_url: str | None = None
    is_active: bool
    role: str
    created_at: datetime | None = None
    stats: UserStatsResponse


class UserVideoResponse(Edge):
    """An assignment with its video embedded."""

    video: VideoWithStatsResponse


class InviteUserRequest(BaseModel):
    full_name: str = Field(min_length=1, max_length=200)
    role: str = "driver"


class RoleUpdateRequest(BaseModel):
    role: str


class RoleUpdateResponse(BaseModel):
    user_id: str
    role: str
