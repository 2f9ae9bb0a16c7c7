import pytest

from app.core.errors import ConflictError, QuotaExceededError, ValidationError
from app.domain.categories.services import (
    archive_category,
    check_quota,
    count_active_categories,
    create_category,
)


async def fill_to_limit(db, user, category_type: str) -> list:
    # Registration already created one active category per type.
    created = []
    for index in range(user.category_limit - 1):
        result = await create_category(db, user, name=f"{category_type}-{index}", category_type=category_type)
        created.append(result.category)
    return created


async def test_limit_is_enforced_per_type(db, make_user) -> None:
    user = await make_user()
    await fill_to_limit(db, user, "income")

    assert await count_active_categories(db, user_id=user.id, category_type="income") == 10

    with pytest.raises(QuotaExceededError) as exc_info:
        await create_category(db, user, name="one-too-many", category_type="income")
    assert exc_info.value.limit == 10
    assert exc_info.value.code == "CATEGORY_LIMIT_REACHED"
    assert exc_info.value.status_code == 400
    assert exc_info.value.details == {"limit": 10}

    result = await create_category(db, user, name="Rent", category_type="expense")
    assert result.category.is_active


async def test_global_categories_count_toward_quota(db, make_user, make_category) -> None:
    user = await make_user()
    await make_category(None, "Salary", "income")

    for index in range(8):
        await create_category(db, user, name=f"side-{index}", category_type="income")

    with pytest.raises(QuotaExceededError):
        await check_quota(db, user=user, category_type="income")


async def test_archiving_frees_a_slot(db, make_user) -> None:
    user = await make_user()
    created = await fill_to_limit(db, user, "expense")

    await archive_category(db, user, created[0].id)
    result = await create_category(db, user, name="Fresh", category_type="expense")

    assert result.reactivated is False
    assert await count_active_categories(db, user_id=user.id, category_type="expense") == 10


async def test_reactivation_counts_against_quota(db, make_user) -> None:
    user = await make_user()
    created = await fill_to_limit(db, user, "expense")

    await archive_category(db, user, created[0].id)
    await create_category(db, user, name="replacement", category_type="expense")

    with pytest.raises(QuotaExceededError):
        await create_category(db, user, name=created[0].name, category_type="expense")


async def test_reactivating_archived_category_reports_it(db, make_user) -> None:
    user = await make_user()
    created = await create_category(db, user, name="Gym", category_type="expense")
    await archive_category(db, user, created.category.id)

    result = await create_category(db, user, name=" Gym ", category_type="expense")

    assert result.reactivated is True
    assert result.category.id == created.category.id
    assert result.category.is_active


async def test_duplicate_active_category_conflicts(db, make_user) -> None:
    user = await make_user()
    await create_category(db, user, name="Gym", category_type="expense")

    with pytest.raises(ConflictError) as exc_info:
        await create_category(db, user, name="Gym", category_type="expense")
    assert exc_info.value.code == "CATEGORY_EXISTS"


async def test_blank_name_is_rejected(db, make_user) -> None:
    user = await make_user()

    with pytest.raises(ValidationError):
        await create_category(db, user, name="   ", category_type="expense")


async def test_custom_limit_is_respected(db, make_user) -> None:
    user = await make_user()
    user.category_limit = 2
    await db.commit()

    await create_category(db, user, name="Second", category_type="income")
    with pytest.raises(QuotaExceededError) as exc_info:
        await create_category(db, user, name="Third", category_type="income")
    assert exc_info.value.limit == 2
