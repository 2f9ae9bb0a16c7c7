"""API route listing the supported currencies."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.session import get_current_user
from app.domain.users.currencies import list_currencies
from app.domain.users.schemas import CurrencyListOut, CurrencyOut

router = APIRouter()


@router.get("", response_model=CurrencyListOut, dependencies=[Depends(get_current_user)])
async def list_currencies_route() -> CurrencyListOut:
    return CurrencyListOut(
        currencies=[CurrencyOut.model_validate(currency) for currency in list_currencies()]
    )
