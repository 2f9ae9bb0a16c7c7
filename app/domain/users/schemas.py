"""Pydantic schemas for registration, login and profile payloads."""
from __future__ import annotations

from typing import Optional

from pydantic import ConfigDict

from app.core.serialization import CamelModel, CamelORMModel, UtcDateTime


class RegisterRequest(CamelModel):
    name: Optional[str] = None
    fname: Optional[str] = None
    lname: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None

    model_config = ConfigDict(str_strip_whitespace=True)


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdate(CamelModel):
    """Mutable profile fields. ``categoryLimit`` is intentionally absent."""

    fname: Optional[str] = None
    lname: Optional[str] = None
    timezone: Optional[str] = None
    currency: Optional[str] = None


class ChangePasswordRequest(CamelModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class ForgotPasswordRequest(CamelModel):
    email: Optional[str] = None
    platform: Optional[str] = None


class ResetPasswordRequest(CamelModel):
    token: Optional[str] = None
    new_password: Optional[str] = None


class MessageOut(CamelModel):
    message: str


class CurrencyOut(CamelORMModel):
    code: str
    name: str
    symbol: str


class CurrencyListOut(CamelModel):
    currencies: list[CurrencyOut]


class UserOut(CamelORMModel):
    id: str
    name: str
    fname: str
    lname: str
    email: str
    timezone: Optional[str]
    currency: str
    category_limit: int
    default_income_categories: list[str]
    default_expense_categories: list[str]
    created_at: Optional[UtcDateTime]
    updated_at: Optional[UtcDateTime]

    @classmethod
    def from_user(cls, user) -> "UserOut":
        return cls(
            id=user.id,
            name=user.full_name,
            fname=user.fname,
            lname=user.lname,
            email=user.email,
            timezone=user.timezone,
            currency=user.currency or "USD",
            category_limit=user.category_limit,
            default_income_categories=list(user.default_income_categories or []),
            default_expense_categories=list(user.default_expense_categories or []),
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserEnvelope(CamelModel):
    user: UserOut
