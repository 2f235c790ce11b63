"""FastAPI authentication dependencies for route protection."""

import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from epicspots.auth.jwt import decode_token
from epicspots.database import get_db
from epicspots.models.user import User
from epicspots.reservations.policies import Capability, has_capability

# Strict bearer — rejects requests without an Authorization header
_bearer_scheme = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Extract and validate the Bearer token, then return the authenticated user.

    Raises:
        HTTPException 401: If the token is invalid, expired, wrong type, or user not found.
    """
    try:
        payload = decode_token(credentials.credentials)
    except JWTError:
        raise _unauthorized("Could not validate credentials") from None

    # Only accept access tokens, not refresh tokens
    if payload.get("type") != "access":
        raise _unauthorized("Invalid token type")

    sub: str | None = payload.get("sub")
    if sub is None:
        raise _unauthorized("Could not validate credentials")
    try:
        user_id = uuid.UUID(sub)
    except ValueError:
        raise _unauthorized("Could not validate credentials") from None

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise _unauthorized("Could not validate credentials")

    return user


async def get_current_active_user(
    user: User = Depends(get_current_user),
) -> User:
    """Return the current user only if their account is active.

    Raises:
        HTTPException 403: If the user account is inactive.
    """
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    return user


def require_capability(capability: Capability):
    """Dependency factory: 403 unless the current user's role grants ``capability``."""

    async def _check(user: User = Depends(get_current_active_user)) -> User:
        if not has_capability(user.role, capability):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return _check
