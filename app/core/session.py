"""Session helpers and dependencies."""
from __future__ import annotations

from typing import Optional

from fastapi import Cookie, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cookies import ACCESS_COOKIE_NAME
from app.core.database import get_db
from app.core.errors import UnauthorizedError
from app.core.security import token_manager
from app.domain.users.models import User


async def get_access_token(
    cookie_token: Optional[str] = Cookie(None, alias=ACCESS_COOKIE_NAME),
    authorization: Optional[str] = Header(None),
) -> str:
    """Return the access token from the cookie or a bearer Authorization header."""
    if cookie_token:
        return cookie_token
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    raise UnauthorizedError("Access token missing", code="AUTH_TOKEN_MISSING")


async def get_current_user(
    token: str = Depends(get_access_token),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Load the current user from the database using the access token."""
    user_id = token_manager.verify_access(token)
    user = await db.get(User, user_id)

    if not user:
        raise UnauthorizedError("User not found for this token", code="AUTH_INVALID_TOKEN")

    return user
