"""Liveness endpoint used by load balancers and uptime checks."""
import logging
import time

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db

router = APIRouter()
logger = logging.getLogger(__name__)


async def check_database(db: AsyncSession) -> str:
    started = time.perf_counter()
    try:
        await db.execute(text("SELECT 1"))
    except Exception as exc:  # noqa: BLE001
        logger.exception("Database healthcheck failed", exc_info=exc)
        return "error"

    elapsed_ms = (time.perf_counter() - started) * 1000
    if elapsed_ms > 500:
        logger.warning("Slow database healthcheck: %.1fms", elapsed_ms)
    return "ok"


@router.get("/health", summary="Health check")
async def health(db: AsyncSession = Depends(get_db)) -> dict[str, str]:
    """Report liveness; ``degraded`` when the store does not answer."""
    database = await check_database(db)
    return {"status": "ok" if database == "ok" else "degraded", "database": database}
