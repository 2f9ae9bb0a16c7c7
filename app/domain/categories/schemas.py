"""Pydantic schemas for category operations."""
from __future__ import annotations

from typing import Any, Literal, Optional

from app.core.serialization import CamelModel, CamelORMModel, UtcDateTime


class CategoryCreate(CamelModel):
    """Schema for creating a category; semantic checks happen in the service."""

    name: Optional[str] = None
    type: Optional[str] = None


class CategoryDefaultUpdate(CamelModel):
    """Schema for marking a category as the default of its type."""

    is_default: Any = None


class CategoryOut(CamelORMModel):
    """Schema for returning category data."""

    id: str
    name: str
    type: Literal["income", "expense"]
    is_default: bool
    is_active: bool
    is_global: bool
    created_at: Optional[UtcDateTime]
    updated_at: Optional[UtcDateTime]


class CategoryListOut(CamelModel):
    categories: list[CategoryOut]
    limit: int


class CategoryWriteOut(CamelModel):
    category: CategoryOut
    reactivated: Optional[bool] = None


class DefaultsOut(CamelModel):
    default_income_categories: list[str]
    default_expense_categories: list[str]


class CategoryDefaultOut(CamelModel):
    category: CategoryOut
    defaults: DefaultsOut
    unchanged: bool


class CategoryArchiveOut(CamelModel):
    category: CategoryOut
    archived: bool = True
