"""Dashboard aggregation for the admin overview and driver summary."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import TYPE_CHECKING

from sqlalchemy import func, select

from fleetlearn.assignments.renewal import is_renewal_due
from fleetlearn.assignments.schemas import Edge
from fleetlearn.assignments.stats import completion_percent, project_user_stats
from fleetlearn.dashboard.schemas import AdminDashboardResponse, DriverDashboardResponse
from fleetlearn.db.models import User, UserVideo, Video

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement
    from sqlalchemy.ext.asyncio import AsyncSession

WATCHED_ACTIONS = ("watched", "completed")


def get_week_boundaries(now: datetime) -> tuple[datetime, datetime]:
    """[Sunday 00:00 UTC, next Sunday 00:00 UTC) for the week containing ``now``."""
    d = now.astimezone(timezone.utc).date()
    sunday = d - timedelta(days=(d.weekday() + 1) % 7)
    start = datetime.combine(sunday, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=7)


def get_month_boundaries(now: datetime) -> tuple[datetime, datetime]:
    """[1st 00:00 UTC, 1st of next month 00:00 UTC) for the month containing ``now``."""
    d = now.astimezone(timezone.utc).date()
    first = date(d.year, d.month, 1)
    following = date(d.year + 1, 1, 1) if d.month == 12 else date(d.year, d.month + 1, 1)
    return (
        datetime.combine(first, time.min, tzinfo=timezone.utc),
        datetime.combine(following, time.min, tzinfo=timezone.utc),
    )


async def _count(db: AsyncSession, column: ColumnElement, *criteria: ColumnElement[bool]) -> int:
    result = await db.execute(select(func.count(column)).where(*criteria))
    return result.scalar() or 0


async def get_admin_dashboard(db: AsyncSession, now: datetime | None = None) -> AdminDashboardResponse:
    """Totals, this-week/this-month counts and the overall completion rate."""
    now = now or datetime.now(timezone.utc)
    week_start, week_end = get_week_boundaries(now)
    month_start, month_end = get_month_boundaries(now)

    total_assignments = await _count(db, UserVideo.id)
    completed_assignments = await _count(db, UserVideo.id, UserVideo.is_completed.is_(True))

    return AdminDashboardResponse(
        total_videos=await _count(db, Video.id),
        videos_this_week=await _count(db, Video.id, Video.created_at >= week_start, Video.created_at < week_end),
        total_users=await _count(db, User.id),
        users_this_month=await _count(db, User.id, User.created_at >= month_start, User.created_at < month_end),
        completion_rate=completion_percent(completed_assignments, total_assignments),
        total_videos_watched=await _count(db, UserVideo.id, UserVideo.last_action.in_(WATCHED_ACTIONS)),
        videos_watched_this_week=await _count(
            db, UserVideo.id, UserVideo.last_watched >= week_start, UserVideo.last_watched < week_end
        ),
    )


async def get_driver_dashboard(
    db: AsyncSession, user_id: str, now: datetime | None = None
) -> DriverDashboardResponse:
    """Assigned/completed counts and renewals due for one driver."""
    now = now or datetime.now(timezone.utc)
    result = await db.execute(
        select(UserVideo, Video)
        .join(Video, UserVideo.video_id == Video.id)
        .where(UserVideo.user_id == user_id)
    )
    rows = [(Edge.model_validate(edge), video) for edge, video in result.all()]
    edges = [edge for edge, _ in rows]
    stats = project_user_stats(edges)
    renewal_due = sum(1 for edge, video in rows if is_renewal_due(edge, video, now))

    return DriverDashboardResponse(
        num_assigned=stats.num_assigned,
        completed=sum(1 for e in edges if e.is_completed),
        completion=stats.completion,
        renewal_due_count=renewal_due,
    )

