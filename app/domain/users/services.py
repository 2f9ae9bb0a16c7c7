"""Registration, credential checks, password management and profile updates."""
from __future__ import annotations

import logging
import re

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import ConflictError, UnauthorizedError, ValidationError
from app.core.logging_config import fingerprint_email
from app.core.security import hash_password, password_fingerprint, token_manager, verify_password
from app.core.validation import resolve_timezone
from app.domain.categories.services import ensure_default_categories
from app.domain.users.currencies import find_currency
from app.domain.users.models import User
from app.domain.users.schemas import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    ResetPasswordRequest,
)

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("app.security")

EMAIL_RE = re.compile(r"^[^@<>\s]+@[^@<>\s]+\.[^@<>\s]+$")
RESET_PLATFORMS = ("web", "mobile")


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


async def register_user(db: AsyncSession, payload: RegisterRequest) -> User:
    """Create a user and bootstrap the baseline categories."""
    missing = [
        field
        for field in ("fname", "lname", "email", "password")
        if not getattr(payload, field)
    ]
    if missing:
        raise ValidationError(
            "fname, lname, email, and password are required",
            details={field: "required" for field in missing},
        )

    email = normalize_email(payload.email)
    if not EMAIL_RE.match(email):
        raise ValidationError("email is invalid", details={"email": "invalid"})

    if await get_user_by_email(db, email):
        raise ConflictError("Email is already registered", code="USER_ALREADY_EXISTS")

    user = User(
        name=payload.name or None,
        fname=payload.fname,
        lname=payload.lname,
        email=email,
        password_hash=hash_password(payload.password),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Email is already registered", code="USER_ALREADY_EXISTS") from None
    await db.refresh(user)

    await ensure_default_categories(db, user.id)
    await db.refresh(user)
    security_logger.info("User registered [user_id=%s, email_hash=%s]", user.id, fingerprint_email(email))
    return user


async def authenticate_user(db: AsyncSession, payload: LoginRequest) -> User:
    """Check credentials and lazily bootstrap default categories for the user."""
    if not payload.email or not payload.password:
        raise ValidationError("email and password are required")

    user = await get_user_by_email(db, payload.email)
    if user is None or not verify_password(payload.password, user.password_hash):
        security_logger.warning(
            "Failed login [email_hash=%s]", fingerprint_email(payload.email)
        )
        raise UnauthorizedError("Invalid credentials", code="AUTH_INVALID_CREDENTIALS")

    # Legacy users or manual edits may be missing the baseline categories.
    await ensure_default_categories(db, user.id)
    await db.refresh(user)
    security_logger.info("User logged in [user_id=%s]", user.id)
    return user


async def update_profile(db: AsyncSession, user: User, payload: ProfileUpdate) -> User:
    sent = payload.model_fields_set
    changes: dict[str, str | None] = {}

    for field in ("fname", "lname"):
        if field in sent:
            value = (getattr(payload, field) or "").strip()
            if not value:
                raise ValidationError(f"{field} cannot be blank", details={field: "required"})
            changes[field] = value

    if "timezone" in sent:
        changes["timezone"] = resolve_timezone(payload.timezone).key if payload.timezone else None

    if "currency" in sent:
        currency = find_currency(payload.currency)
        if currency is None:
            raise ValidationError(
                "currency is not supported", details={"currency": payload.currency}
            )
        changes["currency"] = currency.code

    # A display name that merely mirrored the split names follows them.
    renamed = "fname" in changes or "lname" in changes
    if renamed and user.name and user.name == f"{user.fname} {user.lname}":
        fname = changes.get("fname", user.fname)
        lname = changes.get("lname", user.lname)
        changes["name"] = f"{fname} {lname}".strip()

    for field, value in changes.items():
        setattr(user, field, value)

    await db.commit()
    await db.refresh(user)
    return user


async def change_password(db: AsyncSession, user: User, payload: ChangePasswordRequest) -> User:
    """Replace the password after checking the current one."""
    if not payload.current_password or not payload.new_password:
        raise ValidationError("currentPassword and newPassword are required")

    if not verify_password(payload.current_password, user.password_hash):
        security_logger.warning("Password change rejected [user_id=%s]", user.id)
        raise UnauthorizedError("Incorrect current password", code="AUTH_INVALID_CREDENTIALS")

    user.password_hash = hash_password(payload.new_password)
    await db.commit()
    await db.refresh(user)
    security_logger.info("Password changed [user_id=%s]", user.id)
    return user


def password_reset_link(token: str, platform: str) -> str:
    if platform == "mobile":
        return f"{settings.MOBILE_APP_URI_SCHEME}://auth/reset-password?token={token}"
    return f"{settings.CLIENT_URL.rstrip('/')}/reset-password?token={token}"


async def request_password_reset(
    db: AsyncSession, payload: ForgotPasswordRequest
) -> tuple[User, str] | None:
    """Build a reset link for the account, or return None for unknown emails.

    Callers answer identically in both cases so the endpoint does not reveal
    which addresses are registered.
    """
    if not payload.email:
        raise ValidationError("email is required", details={"email": "required"})

    platform = (payload.platform or "web").strip().lower()
    if platform not in RESET_PLATFORMS:
        raise ValidationError(
            "platform must be web or mobile", details={"platform": payload.platform}
        )

    user = await get_user_by_email(db, payload.email)
    if user is None:
        security_logger.info(
            "Password reset requested for unknown email [email_hash=%s]",
            fingerprint_email(payload.email),
        )
        return None

    token = token_manager.issue_reset(user.id, user.password_hash)
    security_logger.info("Password reset requested [user_id=%s, platform=%s]", user.id, platform)
    return user, password_reset_link(token, platform)


async def reset_password(db: AsyncSession, payload: ResetPasswordRequest) -> User:
    """Set a new password from a reset token; the token is spent afterwards."""
    if not payload.token or not payload.new_password:
        raise ValidationError("token and newPassword are required")

    user_id, fingerprint = token_manager.verify_reset(payload.token)
    user = await db.get(User, user_id)
    if user is None or password_fingerprint(user.password_hash) != fingerprint:
        raise ValidationError("Invalid or expired reset token", code="INVALID_RESET_TOKEN")

    user.password_hash = hash_password(payload.new_password)
    await db.commit()
    await db.refresh(user)
    security_logger.info("Password reset completed [user_id=%s]", user.id)
    return user
