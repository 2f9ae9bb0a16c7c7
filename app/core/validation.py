from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
import uuid
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.errors import ValidationError

AMOUNT_PRECISION = 15
AMOUNT_SCALE = 6


def parse_amount(value: Any, field: str = "amount") -> Decimal:
    """Parse a user-provided amount into a strictly positive Decimal.

    Accepts ints, floats, Decimals and numeric strings ("12", "12.345").
    Values are never rounded. Anything the amount column cannot hold
    exactly (more than ``AMOUNT_SCALE`` decimal places or more than
    ``AMOUNT_PRECISION - AMOUNT_SCALE`` integer digits) is a validation
    failure, as are zero, negatives, NaN and infinities.
    """
    message = f"{field} must be a positive number"
    if value is None or isinstance(value, bool):
        raise ValidationError(message, details={field: message})

    if isinstance(value, float):
        raw = repr(value)
    else:
        raw = str(value).strip()

    try:
        amount = Decimal(raw)
    except (InvalidOperation, ValueError):
        raise ValidationError(message, details={field: message}) from None

    if not amount.is_finite() or amount <= 0:
        raise ValidationError(message, details={field: message})

    _, digits, exponent = amount.normalize().as_tuple()
    decimals = max(-exponent, 0)
    if decimals > AMOUNT_SCALE:
        detail = f"{field} supports at most {AMOUNT_SCALE} decimal places"
        raise ValidationError(detail, details={field: detail})

    integer_digits = max(len(digits) + exponent, 0)
    if integer_digits > AMOUNT_PRECISION - AMOUNT_SCALE:
        detail = f"{field} must be less than {10 ** (AMOUNT_PRECISION - AMOUNT_SCALE)}"
        raise ValidationError(detail, details={field: detail})

    return amount


def parse_datetime(value: Any, field: str = "date") -> datetime:
    """Parse ISO-8601 strings, date/datetime objects or epoch milliseconds into aware UTC."""
    message = f"{field} is invalid"
    if isinstance(value, bool):
        raise ValidationError(message, details={field: message})

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, (int, float)):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise ValidationError(message, details={field: message}) from None
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(message, details={field: message}) from None
    else:
        raise ValidationError(message, details={field: message})

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def normalize_to_utc_midnight(value: Any, field: str = "date") -> datetime:
    """Return 00:00:00.000 UTC of the calendar day the value falls on (in UTC), naive."""
    parsed = parse_datetime(value, field)
    return parsed.replace(hour=0, minute=0, second=0, microsecond=0, tzinfo=None)


def end_of_utc_day(value: Any, field: str = "date") -> datetime:
    start = normalize_to_utc_midnight(value, field)
    return start.replace(hour=23, minute=59, second=59, microsecond=999999)


def resolve_timezone(name: Optional[str]) -> ZoneInfo:
    """Return the IANA zone for a name or raise a validation error."""
    if not name or not name.strip():
        raise ValidationError("timezone is required", details={"timezone": "required"})
    try:
        return ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError, OSError):
        raise ValidationError(
            "timezone must be a valid IANA time zone, e.g. America/New_York",
            details={"timezone": name},
        ) from None


def is_identifier(value: Any) -> bool:
    """True when the value parses as a UUID, the id format of stored documents."""
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        uuid.UUID(value.strip())
    except ValueError:
        return False
    return True


def new_identifier() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC now, matching how timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
