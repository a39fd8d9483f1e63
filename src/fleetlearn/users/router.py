"""User management router: all /api/v1/users/* endpoints (admin only)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fleetlearn.assignments.schemas import (
    AssignVideosRequest,
    ReconciliationResponse,
    UserStats,
)
from fleetlearn.assignments.service import AssignmentService
from fleetlearn.auth.dependencies import require_admin
from fleetlearn.database import get_session
from fleetlearn.db.models import User
from fleetlearn.users import service
from fleetlearn.users.schemas import (
    InviteUserRequest,
    RoleUpdateRequest,
    RoleUpdateResponse,
    UserResponse,
    UserStatsResponse,
    UserVideoResponse,
)
from fleetlearn.videos.schemas import VideoResponse, VideoWithStatsResponse

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


def _user_response(user: User, stats: UserStats) -> UserResponse:
    """Build a UserResponse from a User model and its stats."""
    return UserResponse(
        id=user.id,
        full_name=user.full_name,
        avatar_url=user.avatar_url,
        is_active=user.is_active,
        role=service.role_of(user),
        created_at=user.created_at,
        stats=UserStatsResponse(num_assigned=stats.num_assigned, completion=stats.completion),
    )


# ---------------------------------------------------------------------------
# Listing & detail
# ---------------------------------------------------------------------------


@router.get("", response_model=list[UserResponse])
async def list_users(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> list[UserResponse]:
    """Active users ordered by name."""
    rows = await service.list_active_users(db)
    return [_user_response(user, stats) for user, stats in rows]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    user, stats = await service.get_user_detail(db, user_id)
    return _user_response(user, stats)


@router.get("/{user_id}/stats", response_model=UserStats)
async def get_user_stats(
    user_id: str,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> UserStats:
    return await AssignmentService(db).get_user_stats(user_id)


@router.get("/{user_id}/videos", response_model=list[UserVideoResponse])
async def get_user_videos(
    user_id: str,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> list[UserVideoResponse]:
    """The user's assignments with each video's overall stats embedded."""
    rows = await service.list_user_videos(db, user_id)
    return [
        UserVideoResponse(
            **edge.model_dump(),
            video=VideoWithStatsResponse(
                **VideoResponse.model_validate(video).model_dump(),
                num_of_assigned_users=stats.assigned_count,
                completion_rate=stats.completion_rate,
            ),
        )
        for edge, video, stats in rows
    ]


# ---------------------------------------------------------------------------
# Assignments
# ---------------------------------------------------------------------------


@router.put("/{user_id}/assignments", response_model=ReconciliationResponse)
async def assign_videos(
    user_id: str,
    body: AssignVideosRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> ReconciliationResponse:
    """Make the user's assigned videos exactly ``video_ids``."""
    result = await AssignmentService(db).reconcile_user_assignments(user_id, body.video_ids)
    await db.commit()
    return ReconciliationResponse(
        added=sorted(result.added),
        removed=sorted(result.removed),
        data=result.edges,
    )


# ---------------------------------------------------------------------------
# Membership management
# ---------------------------------------------------------------------------


@router.post("/invite", response_model=UserResponse, status_code=201)
async def invite_user(
    body: InviteUserRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Create an inactive user with a role."""
    try:
        user = await service.invite_user(db, body.full_name, body.role)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return _user_response(user, UserStats(num_assigned=0, completion=0))


@router.patch("/{user_id}/role", response_model=RoleUpdateResponse)
async def update_user_role(
    user_id: str,
    body: RoleUpdateRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> RoleUpdateResponse:
    try:
        user = await service.update_role(db, user_id, body.role)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return RoleUpdateResponse(user_id=user.id, role=service.role_of(user))


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> dict:
    """Delete a user together with their role and assignments."""
    await service.delete_user(db, user_id)
    await db.commit()
    return {"success": True}
