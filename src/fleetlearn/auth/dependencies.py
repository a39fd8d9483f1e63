"""FastAPI authentication and role dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from fleetlearn.auth.jwt import verify_token
from fleetlearn.database import get_session
from fleetlearn.db.models import User
from fleetlearn.users.service import get_user_with_role, role_of

_bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Extract and verify the bearer token, return the User with its role loaded.

    Raises 401 when the token is missing or invalid or the user is unknown,
    403 when the account is inactive.
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail="User not authenticated")
    try:
        payload = verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    user = await get_user_with_role(db, str(payload["sub"]))
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is inactive")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Same as get_current_user but additionally requires the 'admin' role."""
    if role_of(user) != "admin":
        raise HTTPException(status_code=403, detail="Unauthorized")
    return user
