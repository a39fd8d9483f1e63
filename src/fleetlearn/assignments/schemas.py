"""Assignment edge models shared by the store, engine and routers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

LastAction = Literal["watched", "completed"]


class AnchorKind(str, Enum):
    """Which side of the user/video relation a reconciliation is anchored on."""

    USER = "user"
    VIDEO = "video"


@dataclass(frozen=True)
class EntityRef:
    """A user or a video, identified by kind and id."""

    kind: AnchorKind
    id: str

    @classmethod
    def user(cls, user_id: str) -> EntityRef:
        return cls(AnchorKind.USER, user_id)

    @classmethod
    def video(cls, video_id: str) -> EntityRef:
        return cls(AnchorKind.VIDEO, video_id)

    def counterpart_of(self, edge: Edge) -> str:
        """Return the id on the other side of ``edge``."""
        return edge.video_id if self.kind is AnchorKind.USER else edge.user_id


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands timezone-aware columns back as naive values
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Edge(BaseModel):
    """A single user-video assignment."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    video_id: str
    is_completed: bool = False
    assigned_date: datetime | None = None
    last_watched: datetime | None = None
    completed_date: datetime | None = None
    modified_date: datetime | None = None
    last_action: LastAction | None = None

    @field_validator("assigned_date", "last_watched", "completed_date", "modified_date")
    @classmethod
    def _normalize_tz(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)


class EdgeInit(BaseModel):
    """Values for a freshly inserted edge."""

    user_id: str
    video_id: str
    is_completed: bool = False
    assigned_date: datetime

    @classmethod
    def for_anchor(cls, anchor: EntityRef, counterpart_id: str, now: datetime) -> EdgeInit:
        if anchor.kind is AnchorKind.USER:
            return cls(user_id=anchor.id, video_id=counterpart_id, assigned_date=now)
        return cls(user_id=counterpart_id, video_id=anchor.id, assigned_date=now)


class EdgeUpdate(BaseModel):
    """Partial edge patch. Only explicitly set fields are written."""

    is_completed: bool | None = None
    assigned_date: datetime | None = None
    last_watched: datetime | None = None
    completed_date: datetime | None = None
    modified_date: datetime | None = None
    last_action: LastAction | None = None

    def changes(self) -> dict[str, object]:
        """Fields to write, including fields explicitly reset to None."""
        return self.model_dump(exclude_unset=True)


class VideoMeta(BaseModel):
    """The video attributes the renewal rule needs."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    is_annual_renewal: bool = False


class VideoStats(BaseModel):
    """Aggregate numbers for one video."""

    assigned_count: int
    completion_rate: int
    completion_ratio: float = 0.0


class UserStats(BaseModel):
    """Aggregate numbers for one user."""

    num_assigned: int
    completion: int
    completion_ratio: float = 0.0


# --- Request / response bodies ---


class AssignVideosRequest(BaseModel):
    """Desired video set for one user."""

    video_ids: list[str]


class AssignUsersRequest(BaseModel):
    """Desired user set for one video."""

    user_ids: list[str]


class ReconciliationResponse(BaseModel):
    """Result of a reconciliation: the refreshed edge set and what changed."""

    success: bool = True
    added: list[str]
    removed: list[str]
    data: list[Edge]


class ProgressResponse(BaseModel):
    """Result of a watch or completion event."""

    success: bool = True
    renewed: bool = False
    data: Edge
