import os
import tempfile

os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="blipzo-logs-"))
os.environ.setdefault("RESEND_API_KEY", "")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.core.database import build_engine, build_session_factory, get_db, init_db  # noqa: E402
from app.core.rate_limit import rate_limiter  # noqa: E402
from app.domain.categories.models import Category  # noqa: E402
from app.domain.transactions.models import Transaction  # noqa: F401,E402
from app.domain.users.models import User  # noqa: E402
from app.domain.users.schemas import RegisterRequest  # noqa: E402
from app.domain.users.services import register_user  # noqa: E402
from main import app  # noqa: E402


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    rate_limiter.reset()
    yield
    rate_limiter.reset()


@pytest.fixture
async def session_factory():
    # One shared connection keeps the in-memory database alive for the whole test.
    engine = build_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(engine)
    yield build_session_factory(engine)
    await engine.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as http:
        yield http
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Register a user through the service layer, baseline categories included."""
    counter = {"n": 0}

    async def _make_user(email: str | None = None) -> User:
        counter["n"] += 1
        payload = RegisterRequest(
            fname="Ada",
            lname="Lovelace",
            email=email or f"user{counter['n']}@example.com",
            password="s3cret-pass",
        )
        return await register_user(db, payload)

    return _make_user


@pytest.fixture
def make_category(db):
    async def _make_category(
        user: User | None,
        name: str,
        category_type: str = "expense",
        *,
        is_active: bool = True,
        is_default: bool = False,
    ) -> Category:
        category = Category(
            user_id=user.id if user is not None else None,
            name=name,
            type=category_type,
            is_active=is_active,
            is_default=is_default,
        )
        db.add(category)
        await db.commit()
        await db.refresh(category)
        return category

    return _make_category


@pytest.fixture
def signup(client):
    """Register over HTTP and return bearer headers for the new account."""

    async def _signup(email: str = "owner@example.com") -> dict[str, str]:
        response = await client.post(
            "/api/auth/register",
            json={"fname": "Grace", "lname": "Hopper", "email": email, "password": "hunter22"},
        )
        assert response.status_code == 201, response.text
        token = response.cookies["accessToken"]
        # Cookies would otherwise override the bearer header of other accounts.
        client.cookies.clear()
        return {"Authorization": f"Bearer {token}"}

    return _signup
