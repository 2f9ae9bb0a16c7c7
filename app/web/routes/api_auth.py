"""API routes for registration, login and session management."""
from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Cookie, Depends, Request, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.cookies import REFRESH_COOKIE_NAME, clear_auth_cookies, set_auth_cookies
from app.core.database import get_db
from app.core.errors import AppError, RateLimitedError, UnauthorizedError
from app.core.logging_config import fingerprint_email
from app.core.rate_limit import rate_limiter
from app.core.security import token_manager
from app.core.session import get_access_token, get_current_user
from app.domain.users.models import User
from app.domain.users.schemas import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    MessageOut,
    ProfileUpdate,
    RegisterRequest,
    ResetPasswordRequest,
    UserEnvelope,
    UserOut,
)
from app.domain.users.services import (
    authenticate_user,
    change_password,
    register_user,
    request_password_reset,
    reset_password,
    update_profile,
)
from app.services.notifier import (
    TEMPLATE_LOGIN_NOTIFICATION,
    TEMPLATE_PASSWORD_CHANGED,
    TEMPLATE_PASSWORD_RESET,
    TEMPLATE_WELCOME,
    Notifier,
    get_notifier,
)

router = APIRouter()
logger = logging.getLogger(__name__)

PASSWORD_RESET_SENT_MESSAGE = "If that email exists, a reset link has been sent."


def client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def enforce_auth_rate_limit(request: Request) -> None:
    """Dependency limiting register, login and password reset attempts per client IP."""
    key = f"auth:{client_ip(request)}"
    allowed = await rate_limiter.is_allowed(
        key,
        settings.AUTH_RATE_LIMIT_MAX,
        settings.AUTH_RATE_LIMIT_WINDOW_SECONDS,
    )
    if not allowed:
        logger.warning("Auth rate limit exceeded for %s", key)
        raise RateLimitedError("Too many login attempts, please try again later")


def _auth_response(user: User, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    payload = UserEnvelope(user=UserOut.from_user(user)).model_dump(mode="json", by_alias=True)
    response = JSONResponse(status_code=status_code, content=payload)
    set_auth_cookies(response, token_manager.issue(user.id))
    return response


@router.post("/register", dependencies=[Depends(enforce_auth_rate_limit)])
async def register(
    payload: RegisterRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> JSONResponse:
    """Create an account, bootstrap default categories and sign the user in."""
    user = await register_user(db, payload)
    background_tasks.add_task(notifier.send, user.email, TEMPLATE_WELCOME, {"name": user.full_name})
    response = _auth_response(user, status.HTTP_201_CREATED)
    response.background = background_tasks
    return response


@router.post("/login", dependencies=[Depends(enforce_auth_rate_limit)])
async def login(
    payload: LoginRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> JSONResponse:
    """Check credentials and set fresh auth cookies."""
    try:
        user = await authenticate_user(db, payload)
    except AppError as exc:
        logger.info(
            "Login failed with %s [email_hash=%s, client=%s]",
            exc.code,
            fingerprint_email(payload.email),
            client_ip(request),
        )
        raise

    background_tasks.add_task(
        notifier.send,
        user.email,
        TEMPLATE_LOGIN_NOTIFICATION,
        {
            "name": user.full_name,
            "ip": client_ip(request),
            "device": request.headers.get("user-agent"),
        },
    )
    response = _auth_response(user)
    response.background = background_tasks
    return response


@router.get("/session", response_model=UserEnvelope)
async def get_session(
    token: str = Depends(get_access_token),
    db: AsyncSession = Depends(get_db),
) -> UserEnvelope:
    """Return the user bound to the access token."""
    user_id = token_manager.verify_access(token)
    user = await db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("User not found for this token", code="AUTH_INVALID_TOKEN")
    return UserEnvelope(user=UserOut.from_user(user))


@router.post("/refresh")
async def refresh_session(
    refresh_token: str | None = Cookie(None, alias=REFRESH_COOKIE_NAME),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Rotate both tokens using a valid refresh token."""
    try:
        user_id = token_manager.verify_refresh(refresh_token)
        user = await db.get(User, user_id)
        if user is None:
            raise UnauthorizedError("User not found for this token", code="AUTH_INVALID_TOKEN")
    except AppError as exc:
        response = JSONResponse(status_code=exc.status_code, content=exc.to_payload())
        clear_auth_cookies(response)
        return response
    return _auth_response(user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout() -> Response:
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    clear_auth_cookies(response)
    return response


@router.get("/me", response_model=UserEnvelope)
async def get_profile(user: User = Depends(get_current_user)) -> UserEnvelope:
    return UserEnvelope(user=UserOut.from_user(user))


@router.patch("/me", response_model=UserEnvelope)
async def patch_profile(
    payload: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserEnvelope:
    """Update names, timezone or currency of the current user."""
    user = await update_profile(db, user, payload)
    return UserEnvelope(user=UserOut.from_user(user))


@router.post(
    "/password/forgot",
    response_model=MessageOut,
    dependencies=[Depends(enforce_auth_rate_limit)],
)
async def forgot_password(
    payload: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> MessageOut:
    """Email a reset link; the answer is the same whether or not the account exists."""
    requested = await request_password_reset(db, payload)
    if requested is not None:
        user, link = requested
        background_tasks.add_task(
            notifier.send,
            user.email,
            TEMPLATE_PASSWORD_RESET,
            {"name": user.full_name, "link": link},
        )
    return MessageOut(message=PASSWORD_RESET_SENT_MESSAGE)


@router.post(
    "/password/reset",
    response_model=MessageOut,
    dependencies=[Depends(enforce_auth_rate_limit)],
)
async def reset_password_route(
    payload: ResetPasswordRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> MessageOut:
    user = await reset_password(db, payload)
    background_tasks.add_task(notifier.send, user.email, TEMPLATE_PASSWORD_CHANGED, {"name": user.full_name})
    return MessageOut(message="Password reset successfully")


@router.post("/password/change", response_model=MessageOut)
async def change_password_route(
    payload: ChangePasswordRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> MessageOut:
    """Change the password of the signed-in user."""
    user = await change_password(db, user, payload)
    background_tasks.add_task(notifier.send, user.email, TEMPLATE_PASSWORD_CHANGED, {"name": user.full_name})
    return MessageOut(message="Password changed successfully")
