from datetime import datetime, timezone
from decimal import Decimal
import uuid

import pytest

from app.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.domain.categories.services import create_category
from app.domain.transactions.schemas import TransactionCreate, TransactionUpdate
from app.domain.transactions.services import (
    TransactionFilters,
    create_transaction,
    delete_transaction,
    list_transactions,
    update_transaction,
)


async def test_create_uses_default_category_and_snapshot(db, make_user) -> None:
    user = await make_user()

    transaction = await create_transaction(db, user, TransactionCreate(type="income", amount="250.75"))

    assert transaction.category == "Sales"
    assert transaction.category_id is not None
    assert transaction.title == "Sales"
    assert transaction.amount == Decimal("250.75")
    assert transaction.is_custom_date is False


async def test_amounts_round_trip_without_rounding(db, make_user) -> None:
    user = await make_user()

    small = await create_transaction(db, user, TransactionCreate(type="expense", amount="12.345"))
    large = await create_transaction(db, user, TransactionCreate(type="income", amount="999999999.999999"))
    await db.refresh(small)
    await db.refresh(large)

    assert small.amount == Decimal("12.345")
    assert large.amount == Decimal("999999999.999999")


async def test_create_rejects_amount_wider_than_the_column(db, make_user) -> None:
    user = await make_user()

    with pytest.raises(ValidationError):
        await create_transaction(
            db, user, TransactionCreate(type="expense", amount="12345678901234567.89")
        )

    listing = await list_transactions(db, user, TransactionFilters())
    assert listing.transactions == []


async def test_create_with_custom_date(db, make_user) -> None:
    user = await make_user()

    transaction = await create_transaction(
        db,
        user,
        TransactionCreate(type="expense", amount=10, date="2024-03-15T23:59:00Z", category="Stock"),
        require_date=True,
    )

    assert transaction.date == datetime(2024, 3, 15)
    assert transaction.is_custom_date is True


async def test_create_with_unknown_category_fails(db, make_user) -> None:
    user = await make_user()

    with pytest.raises(NotFoundError):
        await create_transaction(db, user, TransactionCreate(type="expense", amount=10, category="Nope"))


async def test_list_filters_and_pagination(db, make_user) -> None:
    user = await make_user()
    for day in (1, 2, 3):
        await create_transaction(
            db, user, TransactionCreate(type="expense", amount=day, date=f"2024-01-0{day}")
        )
    await create_transaction(db, user, TransactionCreate(type="income", amount=50, date="2024-02-01"))

    everything = await list_transactions(db, user, TransactionFilters())
    assert [item.date.day for item in everything.transactions] == [1, 3, 2, 1]
    assert everything.total is None

    expenses = await list_transactions(db, user, TransactionFilters(type="expense", sort_dir="asc"))
    assert [item.amount for item in expenses.transactions] == [Decimal("1"), Decimal("2"), Decimal("3")]

    window = await list_transactions(
        db, user, TransactionFilters(start_date="2024-01-02", end_date="2024-01-03")
    )
    assert len(window.transactions) == 2

    page = await list_transactions(db, user, TransactionFilters(page="2", page_size="3"))
    assert page.total == 4
    assert page.page == 2
    assert len(page.transactions) == 1

    by_category = await list_transactions(db, user, TransactionFilters(category="sal"))
    assert [item.category for item in by_category.transactions] == ["Sales"]


async def test_list_rejects_unknown_status(db, make_user) -> None:
    user = await make_user()

    with pytest.raises(ValidationError):
        await list_transactions(db, user, TransactionFilters(status="pending"))


async def test_update_partial_fields(db, make_user) -> None:
    user = await make_user()
    await create_category(db, user, name="Rent", category_type="expense")
    transaction = await create_transaction(db, user, TransactionCreate(type="expense", amount=10))

    updated = await update_transaction(
        db,
        user,
        transaction.id,
        TransactionUpdate.model_validate({"category": "Rent", "amount": "12.5", "note": "March"}),
    )

    assert updated.category == "Rent"
    assert updated.amount == Decimal("12.5")
    assert updated.description == "March"
    assert updated.status == "active"


async def test_update_validates_before_writing(db, make_user) -> None:
    user = await make_user()
    transaction = await create_transaction(db, user, TransactionCreate(type="expense", amount=10))

    with pytest.raises(ValidationError):
        await update_transaction(
            db, user, transaction.id, TransactionUpdate(amount="1.0000001", status="undone")
        )

    await db.refresh(transaction)
    assert transaction.status == "active"
    assert transaction.amount == Decimal("10")


async def test_update_of_foreign_transaction_is_not_found(db, make_user) -> None:
    owner = await make_user()
    stranger = await make_user()
    transaction = await create_transaction(db, owner, TransactionCreate(type="expense", amount=10))

    with pytest.raises(NotFoundError):
        await update_transaction(db, stranger, transaction.id, TransactionUpdate(status="undone"))


async def test_delete_respects_user_timezone_day(db, make_user) -> None:
    user = await make_user()
    transaction = await create_transaction(
        db, user, TransactionCreate(type="expense", amount=10, date="2024-03-15"), require_date=True
    )
    now = datetime(2024, 3, 15, 23, 0, tzinfo=timezone.utc)

    # 2024-03-14 evening in New York versus 2024-03-15 evening "now".
    with pytest.raises(ConflictError) as exc_info:
        await delete_transaction(db, user, transaction.id, "America/New_York", now=now)
    assert exc_info.value.code == "TRANSACTION_NOT_TODAY"

    await delete_transaction(db, user, transaction.id, "UTC", now=now)

    with pytest.raises(NotFoundError):
        await delete_transaction(db, user, transaction.id, "UTC", now=now)


async def test_delete_checks_owner_and_timezone(db, make_user) -> None:
    owner = await make_user()
    stranger = await make_user()
    transaction = await create_transaction(db, owner, TransactionCreate(type="expense", amount=10))

    with pytest.raises(ForbiddenError):
        await delete_transaction(db, stranger, transaction.id, "UTC")

    with pytest.raises(ValidationError):
        await delete_transaction(db, owner, transaction.id, "Not/A_Zone")

    with pytest.raises(ValidationError):
        await delete_transaction(db, owner, transaction.id, None)

    with pytest.raises(NotFoundError):
        await delete_transaction(db, owner, str(uuid.uuid4()), "UTC")
