"""Shared analytics helpers for building financial summaries."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.transactions.models import Transaction

MONTH_SERIES_SIZE = 12
WEEK_SERIES_SIZE = 12
YEAR_SERIES_SIZE = 5


@dataclass(slots=True)
class _Bucket:
    income: Decimal = field(default_factory=lambda: Decimal("0"))
    expense: Decimal = field(default_factory=lambda: Decimal("0"))

    def add(self, transaction_type: str, amount: Decimal) -> None:
        if transaction_type == "income":
            self.income += amount
        elif transaction_type == "expense":
            self.expense += amount


def month_key(value: datetime) -> str:
    return value.strftime("%Y-%m")


def week_key(value: datetime) -> str:
    """ISO week bucket, e.g. ``2024-W03``; the year is the ISO week-numbering year."""
    iso_year, iso_week, _ = value.isocalendar()
    return f"{iso_year:04d}-W{iso_week:02d}"


def year_key(value: datetime) -> str:
    return value.strftime("%Y")


def _newest(buckets: dict[str, _Bucket], size: int) -> list[tuple[str, _Bucket]]:
    return sorted(buckets.items(), key=lambda item: item[0], reverse=True)[:size]


def _group(rows: list[Any], key_fn: Callable[[datetime], str]) -> dict[str, _Bucket]:
    buckets: dict[str, _Bucket] = {}
    for row in rows:
        key = key_fn(row.date)
        buckets.setdefault(key, _Bucket()).add(row.type, Decimal(row.amount or 0))
    return buckets


async def build_summary(user_id: str, db: AsyncSession) -> dict[str, Any]:
    """Return totals and month/week/year breakdowns of a user's active transactions.

    Bucket keys use the UTC calendar of the stored date. Buckets without
    transactions are omitted, and each series keeps only its newest keys.
    """
    active = (Transaction.user_id == user_id, Transaction.status == "active")

    totals_stmt = (
        select(
            Transaction.type,
            func.coalesce(func.sum(Transaction.amount), 0).label("total"),
        )
        .where(*active)
        .group_by(Transaction.type)
    )
    totals_result = await db.execute(totals_stmt)
    totals_map = {row.type: Decimal(row.total or 0) for row in totals_result}
    income_total = totals_map.get("income", Decimal("0"))
    expense_total = totals_map.get("expense", Decimal("0"))

    rows_stmt = select(Transaction.date, Transaction.type, Transaction.amount).where(*active)
    rows = list((await db.execute(rows_stmt)).all())

    monthly = [
        {"month": key, "income": bucket.income, "expense": bucket.expense}
        for key, bucket in _newest(_group(rows, month_key), MONTH_SERIES_SIZE)
    ]
    weekly = [
        {"week": key, "income": bucket.income, "expense": bucket.expense}
        for key, bucket in _newest(_group(rows, week_key), WEEK_SERIES_SIZE)
    ]
    yearly = [
        {"year": int(key), "income": bucket.income, "expense": bucket.expense}
        for key, bucket in _newest(_group(rows, year_key), YEAR_SERIES_SIZE)
    ]

    return {
        "total_income": income_total,
        "total_expense": expense_total,
        "balance": income_total - expense_total,
        "monthly_summary": monthly,
        "weekly_summary": weekly,
        "yearly_summary": yearly,
    }
