"""API routes for managing categories."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.session import get_current_user
from app.domain.categories.schemas import (
    CategoryArchiveOut,
    CategoryCreate,
    CategoryDefaultOut,
    CategoryDefaultUpdate,
    CategoryListOut,
    CategoryOut,
    CategoryWriteOut,
    DefaultsOut,
)
from app.domain.categories.services import (
    archive_category,
    category_limit_for,
    create_category,
    list_categories,
    set_default_category,
)
from app.domain.users.models import User

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/active", response_model=CategoryListOut)
async def list_active_categories(
    type: Optional[str] = Query(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CategoryListOut:
    """Return active own and global categories for the current user."""
    categories = await list_categories(db, user, type)
    return CategoryListOut(
        categories=[CategoryOut.model_validate(item) for item in categories],
        limit=category_limit_for(user),
    )


@router.get("/all", response_model=CategoryListOut)
async def list_all_categories(
    type: Optional[str] = Query(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CategoryListOut:
    """Return own and global categories, archived ones included."""
    categories = await list_categories(db, user, type, include_archived=True)
    return CategoryListOut(
        categories=[CategoryOut.model_validate(item) for item in categories],
        limit=category_limit_for(user),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category_route(
    payload: CategoryCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Create a category, or reactivate an archived one with the same name (200)."""
    result = await create_category(db, user, name=payload.name, category_type=payload.type)
    body = CategoryWriteOut(
        category=CategoryOut.model_validate(result.category),
        reactivated=True if result.reactivated else None,
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if result.reactivated else status.HTTP_201_CREATED,
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


@router.patch("/{category_id}", response_model=CategoryDefaultOut)
async def set_default_category_route(
    category_id: str,
    payload: CategoryDefaultUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CategoryDefaultOut:
    """Mark a category as the default for its type."""
    result = await set_default_category(db, user, category_id, is_default=payload.is_default)
    return CategoryDefaultOut(
        category=CategoryOut.model_validate(result.category),
        defaults=DefaultsOut(**result.defaults),
        unchanged=result.unchanged,
    )


@router.delete("/{category_id}", response_model=CategoryArchiveOut)
async def archive_category_route(
    category_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CategoryArchiveOut:
    """Archive (soft-delete) a non-default category."""
    category = await archive_category(db, user, category_id)
    return CategoryArchiveOut(category=CategoryOut.model_validate(category), archived=True)
