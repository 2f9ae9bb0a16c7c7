"""Async engine, session factory and declarative base shared by all models."""
from __future__ import annotations

from typing import Any, AsyncIterator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.core.config import settings

Base = declarative_base()


def _sqlite_pragmas(url: str) -> tuple[str, ...]:
    pragmas = ("PRAGMA foreign_keys=ON", "PRAGMA busy_timeout=5000")
    if make_url(url).database not in (None, "", ":memory:"):
        # WAL only applies to file databases.
        pragmas += ("PRAGMA journal_mode=WAL", "PRAGMA synchronous=NORMAL")
    return pragmas


def build_engine(url: str, **kwargs: Any) -> AsyncEngine:
    """Create an async engine; sqlite connections get foreign keys and a busy timeout."""
    engine = create_async_engine(url, echo=settings.DEBUG, future=True, **kwargs)

    if make_url(url).get_backend_name() == "sqlite":
        pragmas = _sqlite_pragmas(url)

        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):  # type: ignore[arg-type]
            cursor = dbapi_connection.cursor()
            for pragma in pragmas:
                cursor.execute(pragma)
                if pragma.startswith("PRAGMA journal_mode"):
                    cursor.fetchone()
            cursor.close()

    return engine


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Objects stay readable after commit; services return them to the routes.
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.DATABASE_URL)
AsyncSessionLocal = build_session_factory(engine)


async def get_db() -> AsyncIterator[AsyncSession]:
    """Dependency yielding one session per request."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create all tables on the given engine (the application engine by default)."""
    # Register models on the metadata before create_all.
    from app.domain.users.models import User  # noqa: F401
    from app.domain.categories.models import Category  # noqa: F401
    from app.domain.transactions.models import Transaction  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
