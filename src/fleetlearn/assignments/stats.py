"""Derived assignment statistics.

Pure functions over an edge snapshot that the caller has already filtered to
one video or one user. Nothing here touches storage.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol

from fleetlearn.assignments.schemas import UserStats, VideoStats


class _HasCompletion(Protocol):
    is_completed: bool | None


class _HasVideo(_HasCompletion, Protocol):
    video_id: str


class _HasUser(_HasCompletion, Protocol):
    user_id: str


def completion_percent(completed: int, total: int) -> int:
    """Integer percentage rounded half-up; 0 when there is nothing assigned.

    Integer arithmetic keeps the rounding exact: 1/3 -> 33, 2/3 -> 67, 1/200 -> 1.
    """
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


def _counts(edges: Iterable[_HasCompletion]) -> tuple[int, int]:
    total = 0
    completed = 0
    for edge in edges:
        total += 1
        if edge.is_completed:
            completed += 1
    return total, completed


def project_video_stats(edges: Sequence[_HasCompletion]) -> VideoStats:
    """Assigned count and completion rate for one video's edges."""
    total, completed = _counts(edges)
    return VideoStats(
        assigned_count=total,
        completion_rate=completion_percent(completed, total),
        completion_ratio=completed / total if total else 0.0,
    )


def project_user_stats(edges: Sequence[_HasCompletion]) -> UserStats:
    """Assigned count and completion percentage for one user's edges."""
    total, completed = _counts(edges)
    return UserStats(
        num_assigned=total,
        completion=completion_percent(completed, total),
        completion_ratio=completed / total if total else 0.0,
    )


def group_stats_by_video(edges: Iterable[_HasVideo]) -> dict[str, VideoStats]:
    """Project video stats for every video referenced by ``edges``."""
    grouped: dict[str, list[_HasVideo]] = {}
    for edge in edges:
        grouped.setdefault(edge.video_id, []).append(edge)
    return {video_id: project_video_stats(group) for video_id, group in grouped.items()}


def group_stats_by_user(edges: Iterable[_HasUser]) -> dict[str, UserStats]:
    """Project user stats for every user referenced by ``edges``."""
    grouped: dict[str, list[_HasUser]] = {}
    for edge in edges:
        grouped.setdefault(edge.user_id, []).append(edge)
    return {user_id: project_user_stats(group) for user_id, group in grouped.items()}
