"""Transaction normalization and the create/list/update/delete workflows."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.core.validation import (
    end_of_utc_day,
    is_identifier,
    normalize_to_utc_midnight,
    parse_amount,
    resolve_timezone,
    utcnow,
)
from app.domain.categories.models import Category
from app.domain.categories.services import (
    derive_lookup,
    ensure_type,
    resolve_category,
    resolve_category_for_creation,
)
from app.domain.transactions.models import TRANSACTION_STATUSES, Transaction
from app.domain.transactions.schemas import TransactionCreate, TransactionUpdate
from app.domain.users.models import User

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "date": Transaction.date,
    "amount": Transaction.amount,
    "category": Transaction.category,
}


@dataclass(slots=True)
class NormalizedTransaction:
    """Validated create payload, ready for category resolution."""

    type: str
    amount: Decimal
    status: str
    date: Optional[datetime]
    is_custom_date: bool
    title: Optional[str]
    description: Optional[str]
    category: Optional[str]
    category_id: Optional[str]


@dataclass(slots=True)
class TransactionFilters:
    status: Optional[str] = None
    type: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    category: Optional[str] = None
    sort_by: str = "date"
    sort_dir: str = "desc"
    page: Any = None
    page_size: Any = None


@dataclass(slots=True)
class TransactionPage:
    transactions: list[Transaction] = field(default_factory=list)
    total: Optional[int] = None
    page: Optional[int] = None
    page_size: Optional[int] = None


def ensure_status(status: Any) -> str:
    if status not in TRANSACTION_STATUSES:
        raise ValidationError(
            "status must be either active or undone",
            details={"status": "must be either active or undone"},
        )
    return status


def normalize_transaction(payload: TransactionCreate, *, require_date: bool = False) -> NormalizedTransaction:
    """Validate a create payload without touching the store.

    Custom dates become the UTC midnight of their calendar day; without a
    date the transaction is stamped with the creation time later.
    """
    category_type = ensure_type(payload.type)
    amount = parse_amount(payload.amount)

    has_date = payload.date not in (None, "")
    if require_date and not has_date:
        raise ValidationError(
            "date is required for custom transactions", details={"date": "required"}
        )

    status = ensure_status(payload.status) if payload.status else "active"
    custom_date = normalize_to_utc_midnight(payload.date) if has_date else None

    title = payload.title.strip() if payload.title else None

    return NormalizedTransaction(
        type=category_type,
        amount=amount,
        status=status,
        date=custom_date,
        is_custom_date=custom_date is not None,
        title=title or None,
        description=payload.description,
        category=payload.category,
        category_id=payload.category_id,
    )


async def create_transaction(
    db: AsyncSession,
    user: User,
    payload: TransactionCreate,
    *,
    require_date: bool = False,
) -> Transaction:
    """Validate, resolve the category and persist a new transaction."""
    normalized = normalize_transaction(payload, require_date=require_date)

    category = await resolve_category_for_creation(
        db,
        user=user,
        category_type=normalized.type,
        category=normalized.category,
        category_id=normalized.category_id,
    )

    transaction = Transaction(
        user_id=user.id,
        title=normalized.title or category.name or normalized.type,
        description=normalized.description,
        type=normalized.type,
        category=category.name,
        category_id=category.id,
        amount=normalized.amount,
        date=normalized.date or utcnow(),
        is_custom_date=normalized.is_custom_date,
        status=normalized.status,
    )
    db.add(transaction)
    await db.commit()
    await db.refresh(transaction)

    logger.info(
        "Created %s transaction %s for user %s (category=%s)",
        transaction.type,
        transaction.id,
        user.id,
        transaction.category_id,
    )
    return transaction


def _positive_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(str(value).strip())
    except ValueError:
        return None
    return number if number > 0 else None


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def list_transactions(db: AsyncSession, user: User, filters: TransactionFilters) -> TransactionPage:
    """Return the user's transactions with optional filtering, sorting and pagination."""
    conditions = [Transaction.user_id == user.id]

    if filters.status:
        conditions.append(Transaction.status == ensure_status(filters.status))

    if filters.type:
        conditions.append(Transaction.type == ensure_type(filters.type))

    if filters.start_date:
        conditions.append(Transaction.date >= normalize_to_utc_midnight(filters.start_date, "startDate"))
    if filters.end_date:
        conditions.append(Transaction.date <= end_of_utc_day(filters.end_date, "endDate"))

    if filters.category and filters.category.strip():
        pattern = f"%{_escape_like(filters.category.strip())}%"
        conditions.append(Transaction.category.ilike(pattern, escape="\\"))

    sort_column = SORT_FIELDS.get(filters.sort_by, Transaction.date)
    sort_clause = sort_column.asc() if filters.sort_dir == "asc" else sort_column.desc()

    stmt = (
        select(Transaction)
        .where(*conditions)
        .order_by(sort_clause, Transaction.created_at.desc())
    )

    page = _positive_int(filters.page)
    page_size = _positive_int(filters.page_size)
    if page is None or page_size is None:
        result = await db.execute(stmt)
        return TransactionPage(transactions=list(result.scalars().all()))

    total = (
        await db.execute(select(func.count(Transaction.id)).where(*conditions))
    ).scalar_one()
    result = await db.execute(stmt.offset((page - 1) * page_size).limit(page_size))
    return TransactionPage(
        transactions=list(result.scalars().all()),
        total=int(total),
        page=page,
        page_size=page_size,
    )


async def _get_own_transaction(db: AsyncSession, user: User, transaction_id: str) -> Transaction:
    transaction = None
    if is_identifier(transaction_id):
        result = await db.execute(
            select(Transaction).where(
                Transaction.id == transaction_id.strip(),
                Transaction.user_id == user.id,
            )
        )
        transaction = result.scalar_one_or_none()
    if transaction is None:
        raise NotFoundError("Transaction not found", code="TRANSACTION_NOT_FOUND")
    return transaction


async def update_transaction(
    db: AsyncSession,
    user: User,
    transaction_id: str,
    payload: TransactionUpdate,
) -> Transaction:
    """Apply a partial update; every field is validated before anything is changed."""
    transaction = await _get_own_transaction(db, user, transaction_id)
    sent = payload.model_fields_set

    new_type = payload.type or None
    if new_type:
        ensure_type(new_type)

    new_amount = parse_amount(payload.amount) if "amount" in sent else None
    new_status = ensure_status(payload.status) if payload.status else None
    new_date = normalize_to_utc_midnight(payload.date) if payload.date not in (None, "") else None

    category: Category | None = None
    if sent & {"category", "category_id", "type"}:
        lookup = derive_lookup(payload.category, payload.category_id)
        if not lookup.category_id:
            lookup.category_name = lookup.category_name or transaction.category
        category = await resolve_category(
            db,
            user_id=user.id,
            category_type=new_type or transaction.type,
            lookup=lookup,
        )

    if category is not None:
        transaction.category = category.name
        transaction.category_id = category.id

    if "title" in sent:
        transaction.title = (payload.title or "").strip() or transaction.category

    if "description" in sent:
        transaction.description = payload.description if payload.description is not None else ""

    if new_type:
        transaction.type = new_type

    if new_amount is not None:
        transaction.amount = new_amount

    if new_date is not None:
        transaction.date = new_date
        transaction.is_custom_date = True
    elif payload.is_custom_date is False:
        transaction.is_custom_date = False
        transaction.date = utcnow()

    if new_status:
        transaction.status = new_status

    await db.commit()
    await db.refresh(transaction)
    return transaction


async def delete_transaction(
    db: AsyncSession,
    user: User,
    transaction_id: str,
    timezone_name: Optional[str],
    *,
    now: Optional[datetime] = None,
) -> None:
    """Hard-delete a transaction whose date is today in the caller's timezone."""
    transaction = None
    if is_identifier(transaction_id):
        transaction = await db.get(Transaction, transaction_id.strip())
    if transaction is None:
        raise NotFoundError("Transaction not found", code="TRANSACTION_NOT_FOUND")

    if transaction.user_id != user.id:
        raise ForbiddenError("You are not allowed to delete this transaction")

    zone = resolve_timezone(timezone_name)

    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    stored = transaction.date.replace(tzinfo=timezone.utc)

    # Only the calendar day in the user's zone matters.
    if stored.astimezone(zone).date() != current.astimezone(zone).date():
        raise ConflictError(
            "Transaction date must be today in your timezone to be deleted.",
            code="TRANSACTION_NOT_TODAY",
        )

    await db.delete(transaction)
    await db.commit()
    logger.info("Deleted transaction %s for user %s", transaction_id, user.id)
