"""Utilities for working with auth cookies."""
from __future__ import annotations

from fastapi import Response

from app.core.config import settings
from app.core.security import TokenPair, token_manager

ACCESS_COOKIE_NAME = "accessToken"
REFRESH_COOKIE_NAME = "refreshToken"


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "samesite": settings.COOKIE_SAMESITE,
        # Browsers reject SameSite=None without Secure.
        "secure": settings.COOKIE_SECURE
        or settings.COOKIE_SAMESITE == "none"
        or settings.is_production,
        "path": "/",
    }


def set_auth_cookies(response: Response, tokens: TokenPair) -> None:
    """Set both auth cookies with secure defaults."""
    options = _cookie_options()
    response.set_cookie(
        key=ACCESS_COOKIE_NAME,
        value=tokens.access_token,
        max_age=token_manager.access_max_age,
        **options,
    )
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=tokens.refresh_token,
        max_age=token_manager.refresh_max_age,
        **options,
    )


def clear_auth_cookies(response: Response) -> None:
    """Remove the auth cookies using the same security options."""
    options = _cookie_options()
    response.delete_cookie(key=ACCESS_COOKIE_NAME, **options)
    response.delete_cookie(key=REFRESH_COOKIE_NAME, **options)
