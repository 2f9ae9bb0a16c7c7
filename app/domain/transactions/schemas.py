"""Pydantic schemas for transaction payloads."""
from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, Field, model_validator

from app.core.serialization import CamelModel, CamelORMModel, Money, UtcDateTime


def _merge_description_aliases(data: Any) -> Any:
    """Fold ``note`` into ``description``; when both are sent the later key wins."""
    if not isinstance(data, dict) or "note" not in data:
        return data
    merged = dict(data)
    note = merged.pop("note")
    keys = list(data.keys())
    if "description" not in merged or keys.index("note") > keys.index("description"):
        merged["description"] = note
    return merged


class TransactionCreate(CamelModel):
    """Raw create payload; the normalizer enforces the semantic rules."""

    title: Optional[str] = None
    type: Optional[str] = None
    amount: Any = None
    category: Optional[str] = None
    category_id: Optional[str] = None
    date: Any = None
    description: Optional[str] = None
    status: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def merge_note(cls, data: Any) -> Any:
        return _merge_description_aliases(data)


class TransactionUpdate(CamelModel):
    """Partial update payload; only fields present in the request are applied."""

    title: Optional[str] = None
    type: Optional[str] = None
    amount: Any = None
    category: Optional[str] = None
    category_id: Optional[str] = None
    date: Any = None
    is_custom_date: Optional[bool] = None
    description: Optional[str] = None
    status: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def merge_note(cls, data: Any) -> Any:
        return _merge_description_aliases(data)


class TransactionOut(CamelORMModel):
    id: str
    user_id: str
    title: Optional[str]
    description: Optional[str]
    type: str
    category_name: str = Field(
        validation_alias=AliasChoices("category", "categoryName"),
        serialization_alias="categoryName",
    )
    category_id: Optional[str]
    amount: Money
    date: UtcDateTime
    status: str
    is_custom_date: bool
    created_at: Optional[UtcDateTime]
    updated_at: Optional[UtcDateTime]


class TransactionEnvelope(CamelModel):
    transaction: TransactionOut


class TransactionListOut(CamelModel):
    transactions: list[TransactionOut]
    total: Optional[int] = None
    page: Optional[int] = None
    page_size: Optional[int] = None


class SummaryBucket(CamelModel):
    income: Money
    expense: Money


class MonthBucket(SummaryBucket):
    month: str


class WeekBucket(SummaryBucket):
    week: str


class YearBucket(SummaryBucket):
    year: int


class SummaryOut(CamelModel):
    total_income: Money
    total_expense: Money
    balance: Money
    monthly_summary: list[MonthBucket]
    weekly_summary: list[WeekBucket]
    yearly_summary: list[YearBucket]
