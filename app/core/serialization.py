"""Shared pydantic building blocks for API payloads."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel


def _as_utc_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# Stored datetimes are naive UTC; expose them as explicit UTC instants.
UtcDateTime = Annotated[datetime, PlainSerializer(_as_utc_iso, return_type=str)]


def _as_number(value: Decimal) -> float:
    return float(value)


# Amounts stay exact Decimals internally and leave the API as JSON numbers.
Money = Annotated[Decimal, PlainSerializer(_as_number, return_type=float)]


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON while keeping snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CamelORMModel(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


__all__ = ["CamelModel", "CamelORMModel", "Money", "UtcDateTime"]
