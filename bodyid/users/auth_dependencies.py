# bodyid/users/auth_dependencies.py
# Centralized Authentication Dependencies

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bodyid.database.connection import get_db
from bodyid.helpers.errors import Forbidden, Unauthorized
from bodyid.users.security import decode_token
from bodyid.users.user_models.user_model import User

# Don't auto-raise so the error body follows our taxonomy
security_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Resolve the bearer credential to an account.

    Raises Unauthorized when the header is missing, the token is invalid or
    expired, or the account no longer exists.
    """
    if not credentials:
        raise Unauthorized("Not authenticated. Provide a bearer token.")

    payload = decode_token(credentials.credentials)
    if not payload or payload.get("type") != "access":
        raise Unauthorized("Invalid or expired access token")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise Unauthorized("Token missing user identifier")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalars().first()
    if not user:
        raise Unauthorized("Invalid token")

    return user


def require_role(*allowed: str):
    """Dependency factory that also checks the account's role."""

    async def role_dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise Forbidden("Insufficient permissions")
        return current_user

    return role_dependency


get_current_patient = require_role("patient")
get_current_doctor = require_role("doctor")
