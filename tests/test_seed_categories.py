import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.domain.categories.models import Category
from app.domain.categories.services import list_categories
from scripts.seed_categories import GLOBAL_CATEGORIES, seed_global_categories


async def test_seed_creates_global_categories_once(session_factory, db, make_user) -> None:
    first = await seed_global_categories(session_factory)
    second = await seed_global_categories(session_factory)

    assert len(first) == len(GLOBAL_CATEGORIES)
    assert second == []

    rows = (await db.execute(select(Category).where(Category.user_id.is_(None)))).scalars().all()
    assert len(rows) == len(GLOBAL_CATEGORIES)

    user = await make_user()
    visible = {item.name for item in await list_categories(db, user, "income")}
    assert {"Sales", "Salary", "Freelance"} <= visible


async def test_seed_dry_run_writes_nothing(session_factory, db) -> None:
    planned = await seed_global_categories(session_factory, dry_run=True)

    assert planned
    rows = (await db.execute(select(Category))).scalars().all()
    assert rows == []


async def test_global_category_names_are_unique_per_type(db, make_user, make_category) -> None:
    await make_category(None, "Rent")

    db.add(Category(user_id=None, name="Rent", type="expense", is_default=False, is_active=True))
    with pytest.raises(IntegrityError):
        await db.commit()
    await db.rollback()

    # Same name under the other type and per-user copies stay allowed.
    await make_category(None, "Rent", "income")
    user = await make_user()
    await make_category(user, "Rent")
    rows = (await db.execute(select(Category).where(Category.name == "Rent"))).scalars().all()
    assert len(rows) == 3
