"""API routes for transactions and the financial summary."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Header, Query, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.session import get_current_user
from app.domain.transactions.schemas import (
    SummaryOut,
    TransactionCreate,
    TransactionEnvelope,
    TransactionListOut,
    TransactionOut,
    TransactionUpdate,
)
from app.domain.transactions.services import (
    TransactionFilters,
    create_transaction,
    delete_transaction,
    list_transactions,
    update_transaction,
)
from app.domain.users.models import User
from app.services.analytics import build_summary

router = APIRouter()


def request_timezone(
    user: User,
    header_timezone: Optional[str],
    header_user_timezone: Optional[str],
    body_timezone: Optional[str],
    query_timezone: Optional[str],
) -> Optional[str]:
    """Pick the timezone: profile setting, then headers, then request body, then query string."""
    candidates = (user.timezone, header_timezone, header_user_timezone, body_timezone, query_timezone)
    for candidate in candidates:
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return None


@router.post("", response_model=TransactionEnvelope, status_code=status.HTTP_201_CREATED)
async def create_transaction_route(
    payload: TransactionCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TransactionEnvelope:
    transaction = await create_transaction(db, user, payload)
    return TransactionEnvelope(transaction=TransactionOut.model_validate(transaction))


@router.post("/custom", response_model=TransactionEnvelope, status_code=status.HTTP_201_CREATED)
async def create_custom_transaction_route(
    payload: TransactionCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TransactionEnvelope:
    """Create a transaction on an explicit calendar day (date is required)."""
    transaction = await create_transaction(db, user, payload, require_date=True)
    return TransactionEnvelope(transaction=TransactionOut.model_validate(transaction))


@router.get("", response_model=TransactionListOut)
async def list_transactions_route(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    type: Optional[str] = Query(default=None),
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    category: Optional[str] = Query(default=None),
    sort_by: str = Query(default="date", alias="sortBy"),
    sort_dir: str = Query(default="desc", alias="sortDir"),
    page: Optional[str] = Query(default=None),
    page_size: Optional[str] = Query(default=None, alias="pageSize"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """List the user's transactions; pagination applies when page and pageSize are set."""
    filters = TransactionFilters(
        status=status_filter,
        type=type,
        start_date=start_date,
        end_date=end_date,
        category=category,
        sort_by=sort_by,
        sort_dir=sort_dir,
        page=page,
        page_size=page_size,
    )
    result = await list_transactions(db, user, filters)
    body = TransactionListOut(
        transactions=[TransactionOut.model_validate(item) for item in result.transactions],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
    ).model_dump(mode="json", by_alias=True)
    # Pagination keys appear only on paginated responses.
    return JSONResponse(content={key: value for key, value in body.items() if value is not None})


@router.get("/summary", response_model=SummaryOut)
async def get_summary(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SummaryOut:
    """Totals plus monthly, weekly and yearly breakdowns of active transactions."""
    return SummaryOut(**await build_summary(user.id, db))


@router.put("/{transaction_id}", response_model=TransactionEnvelope)
async def update_transaction_route(
    transaction_id: str,
    payload: TransactionUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TransactionEnvelope:
    transaction = await update_transaction(db, user, transaction_id, payload)
    return TransactionEnvelope(transaction=TransactionOut.model_validate(transaction))


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction_route(
    transaction_id: str,
    query_timezone: Optional[str] = Query(default=None, alias="timezone"),
    body_timezone: Optional[str] = Body(default=None, alias="timezone", embed=True),
    x_timezone: Optional[str] = Header(default=None),
    x_user_timezone: Optional[str] = Header(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Delete a transaction dated today in the user's timezone."""
    timezone_name = request_timezone(
        user, x_timezone, x_user_timezone, body_timezone, query_timezone
    )
    await delete_transaction(db, user, transaction_id, timezone_name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
