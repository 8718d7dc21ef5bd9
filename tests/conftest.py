"""
Pytest configuration and fixtures for testing
"""
import os

# Settings are read at import time; configure them before the app is imported
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.pop("SMTP_HOST", None)

from datetime import datetime, timedelta

import httpx
import pytest
import stripe
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from auth_utils import create_jwt, hash_password
from database import Base, get_db

# Create in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "StrongPass123!"


@pytest.fixture
async def test_engine():
    """Fresh in-memory database per test, with all tables created"""
    # Import models to ensure they're registered with Base
    import database_models  # noqa: F401

    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest.fixture
async def test_db(session_factory):
    """
    Fixture that provides an isolated AsyncSession for each test.
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@pytest.fixture
async def async_client(session_factory):
    """
    Async HTTP client against the app, with get_db pointed at the test database.
    Uses https so that secure cookies round-trip.
    """
    from main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    app.dependency_overrides[get_db] = override_get_db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="https://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def create_user(test_db):
    """Factory that inserts a user and commits it"""
    from crud.user import UserRepository

    async def _create_user(
        email="user@example.com",
        password=TEST_PASSWORD,
        email_verified=False,
        customer_id="cus_test123",
        is_active=True,
    ):
        user = await UserRepository(test_db).create_user({
            "email": email,
            "hashed_password": hash_password(password),
            "email_verified": email_verified,
            "customer_id": customer_id,
            "is_active": is_active,
        })
        await test_db.commit()
        return user

    return _create_user


@pytest.fixture
def seed_free_plan(test_db):
    """Insert the free plan with monthly/yearly prices in the given currencies"""
    from crud.plan import PlanRepository

    async def _seed(currencies=("usd", "eur")):
        prices = []
        for currency in currencies:
            for interval in ("month", "year"):
                prices.append({
                    "stripe_price_id": f"price_free_{interval}_{currency}",
                    "amount": 0,
                    "currency": currency,
                    "interval": interval,
                })
        plan = await PlanRepository(test_db).create_plan(
            plan_data={
                "id": "free",
                "name": "Free",
                "description": "Free plan",
                "stripe_plan_id": "prod_free",
                "list_of_features": [],
            },
            limits={
                "allowed_users_count": 1,
                "allowed_projects_count": 1,
                "allowed_storage_size": 1,
            },
            prices=prices,
        )
        await test_db.commit()
        return plan

    return _seed


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_jwt(str(user.id))}"}


def stripe_subscription_payload(subscription_id="sub_test123", status="active", period_on_item=False):
    """
    A stripe.Subscription as returned by the API.
    With period_on_item the billing period is only reported on the first item.
    """
    now = datetime(2024, 1, 1)
    period = {
        "current_period_start": int(now.timestamp()),
        "current_period_end": int((now + timedelta(days=30)).timestamp()),
    }
    item = {"object": "subscription_item", "plan": {"object": "plan", "interval": "month"}}
    values = {
        "id": subscription_id,
        "object": "subscription",
        "status": status,
        "cancel_at_period_end": False,
        "items": {"object": "list", "data": [item]},
    }
    if period_on_item:
        item.update(period)
    else:
        values.update(period)
    return stripe.Subscription.construct_from(values, "sk_test_dummy")
