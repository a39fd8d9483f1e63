"""Dashboard Pydantic schemas."""

from __future__ import annotations

from pydantic import BaseModel


class AdminDashboardResponse(BaseModel):
    """Portal-wide numbers for the admin landing page."""

    total_videos: int = 0
    videos_this_week: int = 0
    total_users: int = 0
    users_this_month: int = 0
    completion_rate: int = 0
    total_videos_watched: int = 0
    videos_watched_this_week: int = 0


class DriverDashboardResponse(BaseModel):
    """The calling driver's own progress."""

    num_assigned: int = 0
    completed: int = 0
    completion: int = 0
    renewal_due_count: int = 0
