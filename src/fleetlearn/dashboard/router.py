"""Dashboard endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fleetlearn.auth.dependencies import get_current_user, require_admin
from fleetlearn.dashboard.schemas import AdminDashboardResponse, DriverDashboardResponse
from fleetlearn.dashboard.service import get_admin_dashboard, get_driver_dashboard
from fleetlearn.database import get_session
from fleetlearn.db.models import User

router = APIRouter(prefix="/api/v1/dashboard", tags=["Dashboard"])


@router.get("/admin", response_model=AdminDashboardResponse)
async def admin_dashboard(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> AdminDashboardResponse:
    """Portal-wide counts and completion rate."""
    return await get_admin_dashboard(db)


@router.get("/driver", response_model=DriverDashboardResponse)
async def driver_dashboard(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> DriverDashboardResponse:
    """The caller's own assignment progress."""
    return await get_driver_dashboard(db, user.id)
