"""JSON API router."""
from __future__ import annotations

from fastapi import APIRouter

from app.web.routes import api_auth
from app.web.routes import api_categories
from app.web.routes import api_currencies
from app.web.routes import api_transactions

router = APIRouter()

router.include_router(api_auth.router, prefix="/auth", tags=["auth"])
router.include_router(api_categories.router, prefix="/categories", tags=["categories"])
router.include_router(api_currencies.router, prefix="/currencies", tags=["currencies"])
router.include_router(api_transactions.router, prefix="/transactions", tags=["transactions"])
