"""Category resolution, quota enforcement and category lifecycle operations."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import (
    ConflictError,
    NotFoundError,
    QuotaExceededError,
    ValidationError,
)
from app.core.rate_limit import category_locks
from app.core.validation import is_identifier
from app.domain.categories.models import CATEGORY_TYPES, Category
from app.domain.users.models import User

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CategoryLookup:
    """What a caller asked for: an explicit id, a name, or neither."""

    category_id: Optional[str] = None
    category_name: Optional[str] = None


@dataclass(slots=True)
class CategoryWriteResult:
    category: Category
    reactivated: bool = False


@dataclass(slots=True)
class DefaultCategoryResult:
    category: Category
    defaults: dict[str, list[str]]
    unchanged: bool


def normalize_name(name: Any) -> str:
    return name.strip() if isinstance(name, str) else ""


def ensure_type(category_type: Any) -> str:
    """Return the type when it is one of the allowed values, else raise."""
    if not category_type or category_type not in CATEGORY_TYPES:
        raise ValidationError(
            "type must be either income or expense",
            code="INVALID_TYPE",
            details={"type": "must be either income or expense"},
        )
    return category_type


def _visible_to(user_id: str):
    """Own categories plus the global (owner-less) pool."""
    return or_(Category.user_id == user_id, Category.user_id.is_(None))


def derive_lookup(category: Any = None, category_id: Any = None) -> CategoryLookup:
    """Split the request's category fields into an id lookup or a name lookup.

    An explicit id wins. A name that itself parses as an identifier is
    treated as an id.
    """
    normalized_id = category_id.strip() if isinstance(category_id, str) else category_id
    if normalized_id:
        return CategoryLookup(category_id=str(normalized_id))

    normalized_name = normalize_name(category)
    if normalized_name and is_identifier(normalized_name):
        return CategoryLookup(category_id=normalized_name)

    return CategoryLookup(category_name=normalized_name or None)


async def resolve_category(
    db: AsyncSession,
    *,
    user_id: str,
    category_type: Any,
    lookup: CategoryLookup,
) -> Category:
    """Find the category a transaction should reference.

    The id path is scoped by type and visibility (own or global); the name
    path matches the exact trimmed name. Raises ``NotFoundError`` when
    nothing matches and ``ValidationError`` when the match is archived.
    """
    category_type = ensure_type(category_type)
    category: Category | None = None

    if lookup.category_id:
        if not is_identifier(lookup.category_id):
            raise ValidationError(
                "categoryId is invalid",
                code="INVALID_CATEGORY_ID",
                details={"categoryId": lookup.category_id},
            )
        result = await db.execute(
            select(Category).where(
                Category.id == lookup.category_id.strip(),
                Category.type == category_type,
                _visible_to(user_id),
            )
        )
        category = result.scalar_one_or_none()
    elif lookup.category_name is not None:
        normalized = normalize_name(lookup.category_name)
        if not normalized:
            raise ValidationError("category name is required", details={"category": "required"})
        # Own category first when a global one shares the name.
        result = await db.execute(
            select(Category)
            .where(
                Category.type == category_type,
                Category.name == normalized,
                _visible_to(user_id),
            )
            .order_by(Category.user_id.is_(None))
            .limit(1)
        )
        category = result.scalar_one_or_none()

    if category is None:
        raise NotFoundError(
            "Category not found. Create it before assigning to a transaction.",
            code="CATEGORY_NOT_FOUND",
        )

    if not category.is_active:
        raise ValidationError("Category is inactive", code="CATEGORY_INACTIVE")

    return category


async def resolve_category_for_creation(
    db: AsyncSession,
    *,
    user: User,
    category_type: Any,
    category: Any = None,
    category_id: Any = None,
) -> Category:
    """Resolve a new transaction's category, falling back to the user's default for the type."""
    category_type = ensure_type(category_type)
    lookup = derive_lookup(category, category_id)

    if not lookup.category_id and not lookup.category_name:
        lookup.category_name = user.default_category_name(category_type)

    if not lookup.category_id and not lookup.category_name:
        raise ValidationError("category is required", details={"category": "required"})

    return await resolve_category(db, user_id=user.id, category_type=category_type, lookup=lookup)


async def count_active_categories(db: AsyncSession, *, user_id: str, category_type: str) -> int:
    """Count active categories of a type visible to the user (own plus global)."""
    result = await db.execute(
        select(func.count(Category.id)).where(
            Category.type == category_type,
            Category.is_active.is_(True),
            _visible_to(user_id),
        )
    )
    return int(result.scalar_one())


def category_limit_for(user: User) -> int:
    return user.category_limit if user.category_limit is not None else settings.DEFAULT_CATEGORY_LIMIT


async def check_quota(db: AsyncSession, *, user: User, category_type: str) -> int:
    """Raise ``QuotaExceededError`` when one more active category would pass the limit."""
    active_count = await count_active_categories(db, user_id=user.id, category_type=category_type)
    limit = category_limit_for(user)
    if active_count >= limit:
        logger.info(
            "Category quota reached for user %s (%s: %s/%s)",
            user.id,
            category_type,
            active_count,
            limit,
        )
        raise QuotaExceededError(limit)
    return active_count


async def list_categories(
    db: AsyncSession,
    user: User,
    category_type: Any = None,
    *,
    include_archived: bool = False,
) -> list[Category]:
    """Return categories visible to the user, default first within each type."""
    stmt = select(Category).where(_visible_to(user.id))
    if category_type:
        stmt = stmt.where(Category.type == ensure_type(category_type))
    if include_archived:
        stmt = stmt.order_by(
            Category.type, Category.is_default.desc(), Category.is_active.desc(), Category.name
        )
    else:
        stmt = stmt.where(Category.is_active.is_(True)).order_by(
            Category.type, Category.is_default.desc(), Category.name
        )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def create_category(db: AsyncSession, user: User, *, name: Any, category_type: Any) -> CategoryWriteResult:
    """Create an own category, or reactivate an archived one with the same type and name."""
    normalized_name = normalize_name(name)
    if not normalized_name:
        raise ValidationError("name is required", details={"name": "required"})
    category_type = ensure_type(category_type)
    user_id = user.id

    async with category_locks.hold(user_id):
        result = await db.execute(
            select(Category).where(
                Category.user_id == user_id,
                Category.type == category_type,
                Category.name == normalized_name,
            )
        )
        existing = result.scalar_one_or_none()

        if existing is not None:
            if existing.is_active:
                raise ConflictError("Category already exists", code="CATEGORY_EXISTS")

            await check_quota(db, user=user, category_type=category_type)
            existing.is_active = True
            await db.commit()
            await db.refresh(existing)
            logger.info("Reactivated category %s for user %s", existing.id, user_id)
            return CategoryWriteResult(category=existing, reactivated=True)

        await check_quota(db, user=user, category_type=category_type)
        category = Category(user_id=user_id, type=category_type, name=normalized_name)
        db.add(category)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.warning(
                "IntegrityError while creating category for user %s", user_id, exc_info=True
            )
            raise ConflictError("Category already exists", code="CATEGORY_EXISTS") from None

        await db.refresh(category)
        return CategoryWriteResult(category=category)


async def _get_own_category(db: AsyncSession, user: User, category_id: str) -> Category:
    category = None
    if is_identifier(category_id):
        result = await db.execute(
            select(Category).where(Category.id == category_id.strip(), Category.user_id == user.id)
        )
        category = result.scalar_one_or_none()
    if category is None:
        raise NotFoundError("Category not found", code="CATEGORY_NOT_FOUND")
    return category


def _defaults_of(user: User) -> dict[str, list[str]]:
    return {
        "default_income_categories": list(user.default_income_categories or []),
        "default_expense_categories": list(user.default_expense_categories or []),
    }


async def set_default_category(
    db: AsyncSession, user: User, category_id: str, *, is_default: Any
) -> DefaultCategoryResult:
    """Make an own, active category the default of its type for the user."""
    if is_default is not True:
        raise ValidationError(
            "isDefault must be true to set the default category",
            details={"isDefault": "must be true"},
        )

    async with category_locks.hold(user.id):
        category = await _get_own_category(db, user, category_id)
        if not category.is_active:
            raise ValidationError("Category is inactive", code="CATEGORY_INACTIVE")

        current_default = user.default_category_name(category.type)
        unchanged = bool(category.is_default) and current_default == category.name

        if not unchanged:
            await db.execute(
                update(Category)
                .where(
                    Category.user_id == user.id,
                    Category.type == category.type,
                    Category.is_default.is_(True),
                    Category.id != category.id,
                )
                .values(is_default=False)
            )
            category.is_default = True

        if category.type == "income":
            user.default_income_categories = [category.name]
        else:
            user.default_expense_categories = [category.name]

        await db.commit()
        await db.refresh(category)
        return DefaultCategoryResult(category=category, defaults=_defaults_of(user), unchanged=unchanged)


async def archive_category(db: AsyncSession, user: User, category_id: str) -> Category:
    """Soft-delete an own category. Defaults cannot be archived."""
    async with category_locks.hold(user.id):
        category = await _get_own_category(db, user, category_id)

        if category.is_default:
            raise ValidationError(
                "Default categories cannot be removed", code="DEFAULT_CATEGORY_LOCKED"
            )

        if category.is_active:
            category.is_active = False
            await db.commit()
            await db.refresh(category)
        return category


async def ensure_default_categories(db: AsyncSession, user_id: str) -> list[Category]:
    """Make sure the user owns active baseline categories, one per type.

    Idempotent: an existing category with the same key is only reactivated.
    ``is_default`` is set on insert only, so a default chosen later by the
    user is left alone.
    """
    baseline = (
        ("income", settings.DEFAULT_INCOME_CATEGORY),
        ("expense", settings.DEFAULT_EXPENSE_CATEGORY),
    )
    ensured: list[Category] = []

    for category_type, name in baseline:
        stmt = select(Category).where(
            Category.user_id == user_id,
            Category.type == category_type,
            Category.name == name,
        )
        category = (await db.execute(stmt)).scalar_one_or_none()
        if category is None:
            category = Category(
                user_id=user_id,
                type=category_type,
                name=name,
                is_default=True,
                is_active=True,
            )
            db.add(category)
            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                # A concurrent bootstrap inserted it first.
                category = (await db.execute(stmt)).scalar_one()
        if not category.is_active:
            category.is_active = True
            await db.commit()
        ensured.append(category)

    return ensured
