import pytest
from sqlalchemy import func, select

from app.core.errors import NotFoundError, ValidationError
from app.domain.categories.models import Category
from app.domain.categories.services import (
    archive_category,
    create_category,
    ensure_default_categories,
    list_categories,
    set_default_category,
)


async def test_registration_bootstraps_defaults(db, make_user) -> None:
    user = await make_user()

    categories = await list_categories(db, user)

    assert {(item.type, item.name, item.is_default) for item in categories} == {
        ("income", "Sales", True),
        ("expense", "Stock", True),
    }
    assert user.default_income_categories == ["Sales"]
    assert user.default_expense_categories == ["Stock"]


async def test_bootstrap_is_idempotent(db, make_user) -> None:
    user = await make_user()

    await ensure_default_categories(db, user.id)
    await ensure_default_categories(db, user.id)

    count = (
        await db.execute(select(func.count(Category.id)).where(Category.user_id == user.id))
    ).scalar_one()
    assert count == 2


async def test_bootstrap_reactivates_without_touching_default_flag(db, make_user) -> None:
    user = await make_user()
    sales = (
        await db.execute(select(Category).where(Category.user_id == user.id, Category.name == "Sales"))
    ).scalar_one()
    sales.is_active = False
    sales.is_default = False
    await db.commit()

    await ensure_default_categories(db, user.id)
    await db.refresh(sales)

    assert sales.is_active is True
    assert sales.is_default is False


async def test_default_category_cannot_be_archived(db, make_user) -> None:
    user = await make_user()
    stock = (
        await db.execute(select(Category).where(Category.user_id == user.id, Category.name == "Stock"))
    ).scalar_one()

    with pytest.raises(ValidationError) as exc_info:
        await archive_category(db, user, stock.id)
    assert exc_info.value.code == "DEFAULT_CATEGORY_LOCKED"


async def test_archive_is_soft_and_repeatable(db, make_user) -> None:
    user = await make_user()
    created = await create_category(db, user, name="Hobby", category_type="expense")

    first = await archive_category(db, user, created.category.id)
    second = await archive_category(db, user, created.category.id)

    assert first.is_active is False
    assert second.is_active is False
    active_names = [item.name for item in await list_categories(db, user, "expense")]
    all_names = [item.name for item in await list_categories(db, user, "expense", include_archived=True)]
    assert "Hobby" not in active_names
    assert "Hobby" in all_names


async def test_global_categories_cannot_be_archived_by_users(db, make_user, make_category) -> None:
    user = await make_user()
    shared = await make_category(None, "Salary", "income")

    with pytest.raises(NotFoundError):
        await archive_category(db, user, shared.id)


async def test_set_default_moves_flag_and_profile(db, make_user) -> None:
    user = await make_user()
    created = await create_category(db, user, name="Consulting", category_type="income")

    result = await set_default_category(db, user, created.category.id, is_default=True)

    assert result.unchanged is False
    assert result.category.is_default is True
    assert result.defaults["default_income_categories"] == ["Consulting"]
    sales = (
        await db.execute(select(Category).where(Category.user_id == user.id, Category.name == "Sales"))
    ).scalar_one()
    assert sales.is_default is False

    again = await set_default_category(db, user, created.category.id, is_default=True)
    assert again.unchanged is True


async def test_set_default_requires_true(db, make_user) -> None:
    user = await make_user()
    created = await create_category(db, user, name="Consulting", category_type="income")

    with pytest.raises(ValidationError):
        await set_default_category(db, user, created.category.id, is_default="yes")


async def test_set_default_rejects_archived_category(db, make_user) -> None:
    user = await make_user()
    created = await create_category(db, user, name="Consulting", category_type="income")
    await archive_category(db, user, created.category.id)

    with pytest.raises(ValidationError) as exc_info:
        await set_default_category(db, user, created.category.id, is_default=True)
    assert exc_info.value.code == "CATEGORY_INACTIVE"
