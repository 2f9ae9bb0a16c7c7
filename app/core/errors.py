"""Typed application errors and their HTTP mapping."""
from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from fastapi import status


class ErrorKind(str, Enum):
    """Fixed taxonomy of failures surfaced to API clients."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    FORBIDDEN = "forbidden"
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    INTERNAL = "internal"


HTTP_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

DEFAULT_CODE_BY_KIND: dict[ErrorKind, str] = {
    ErrorKind.VALIDATION: "VALIDATION_ERROR",
    ErrorKind.NOT_FOUND: "RESOURCE_NOT_FOUND",
    ErrorKind.CONFLICT: "CONFLICT",
    ErrorKind.FORBIDDEN: "FORBIDDEN",
    ErrorKind.UNAUTHORIZED: "UNAUTHORIZED",
    ErrorKind.RATE_LIMITED: "RATE_LIMITED",
    ErrorKind.INTERNAL: "INTERNAL_SERVER_ERROR",
}


class AppError(Exception):
    """Base class for failures raised by services and mapped at the HTTP boundary."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or DEFAULT_CODE_BY_KIND[self.kind]
        self.details = dict(details) if details else None

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]

    def to_payload(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            error["details"] = self.details
        return {"error": error}


class ValidationError(AppError):
    kind = ErrorKind.VALIDATION


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT


class ForbiddenError(AppError):
    kind = ErrorKind.FORBIDDEN


class UnauthorizedError(AppError):
    kind = ErrorKind.UNAUTHORIZED


class RateLimitedError(AppError):
    kind = ErrorKind.RATE_LIMITED


class InternalError(AppError):
    kind = ErrorKind.INTERNAL


class QuotaExceededError(ValidationError):
    """Raised when a user already holds the maximum of active categories for a type."""

    def __init__(self, limit: int) -> None:
        super().__init__(
            f"Category limit of {limit} reached",
            code="CATEGORY_LIMIT_REACHED",
            details={"limit": limit},
        )
        self.limit = limit


__all__ = [
    "AppError",
    "ConflictError",
    "ErrorKind",
    "ForbiddenError",
    "InternalError",
    "NotFoundError",
    "QuotaExceededError",
    "RateLimitedError",
    "UnauthorizedError",
    "ValidationError",
]
