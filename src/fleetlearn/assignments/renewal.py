"""Annual renewal rule and the watch/complete transitions of an edge.

The renewal window is a fixed 365 days (no leap-year or calendar-year
handling). An edge becomes due strictly after the window: at exactly
365 days it is not yet due.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol

from fleetlearn.assignments.schemas import Edge, EdgeUpdate

RENEWAL_WINDOW = timedelta(days=365)


class _RenewableVideo(Protocol):
    is_annual_renewal: bool | None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_renewal_due(edge: Edge, video: _RenewableVideo, now: datetime | None = None) -> bool:
    """True when the video renews annually and the edge was assigned more than 365 days ago."""
    if not video.is_annual_renewal or edge.assigned_date is None:
        return False
    now = now or _utcnow()
    return now - edge.assigned_date > RENEWAL_WINDOW


def apply_watch_event(edge: Edge, video: _RenewableVideo, now: datetime | None = None) -> EdgeUpdate:
    """Compute the patch for a watch event.

    A due edge restarts its annual cycle from the watch: completion is
    cleared and ``assigned_date`` moves to ``now``. Otherwise only the watch
    timestamps move, and a completed edge keeps its ``completed`` tag.
    """
    now = now or _utcnow()
    if is_renewal_due(edge, video, now):
        return EdgeUpdate(
            assigned_date=now,
            is_completed=False,
            completed_date=None,
            last_watched=now,
            modified_date=now,
            last_action="watched",
        )
    return EdgeUpdate(
        last_watched=now,
        modified_date=now,
        last_action="completed" if edge.is_completed else "watched",
    )


def apply_completion(now: datetime | None = None) -> EdgeUpdate:
    """Compute the patch for an explicit "mark completed" action.

    Completing again moves ``completed_date`` to the latest completion;
    ``assigned_date`` is never touched.
    """
    now = now or _utcnow()
    return EdgeUpdate(
        is_completed=True,
        completed_date=now,
        modified_date=now,
        last_action="completed",
    )
