"""
Shared fixtures: in-memory SQLite behind the real stores, the app driven
in-process over ASGI, and a call-counting payment processor stub.
"""
import os

# Must be set before bistro modules read their settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("METRICS_ENABLED", "false")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from bistro.api.deps import get_payment_client
from bistro.core.security import create_access_token
from bistro.db.database import create_tables, get_db
from bistro.main import app
from bistro.models.user import User, UserRole
from bistro.services.payment_client import to_minor_units


class StubPaymentClient:
    """Stands in for the processor; records every amount it was asked for."""

    def __init__(self):
        self.calls: list[int] = []

    async def create_intent(self, amount) -> str:
        cents = to_minor_units(amount)
        self.calls.append(cents)
        return f"pi_test_{len(self.calls)}_secret_abc"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_tables(bind=engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def processor():
    return StubPaymentClient()


@pytest_asyncio.fixture
async def client(session_factory, processor):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_client] = lambda: processor
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


async def _add_user(session_factory, email: str, role: UserRole) -> User:
    async with session_factory() as session:
        user = User(email=email, role=role)
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


@pytest_asyncio.fixture
async def admin_user(session_factory):
    return await _add_user(session_factory, "admin@bistro.com", UserRole.ADMIN)


@pytest_asyncio.fixture
async def customer_user(session_factory):
    return await _add_user(session_factory, "customer@bistro.com", UserRole.CUSTOMER)


def bearer(email: str, **kwargs) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token({'email': email}, **kwargs)}"}


@pytest.fixture
def admin_headers(admin_user):
    return bearer(admin_user.email)


@pytest.fixture
def customer_headers(customer_user):
    return bearer(customer_user.email)


ORDER_PAYLOAD = {
    "menuId": "m1",
    "email": "a@x.com",
    "name": "Pizza",
    "image": "https://img.example/pizza.jpg",
    "price": 12.5,
    "category": "pizza",
}
