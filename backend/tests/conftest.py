"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Settings are read at import time: keep the app's own engine in memory
os.environ.setdefault("SQL_CONNECTION", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from djstore_api.db import create_session_factory
from djstore_api.main import app
from djstore_api.models import Base, Category, Product
from djstore_api.routers.public.health import get_store_engine
from djstore_api.services.crud.data_context import DataContext
from djstore_api.services.crud.dependencies import get_db_context
from djstore_api.services.crud.execution_strategy import NonRetryingExecutionStrategy
from djstore_api.services.crud.model_builder import build_store_model


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def make_engine() -> AsyncEngine:
    return create_async_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


async def create_schema(engine: AsyncEngine) -> None:
    build_store_model()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


class FakeClock:
    """Controllable UTC clock for the audit stamps."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# =============================================================================
# Data context fixtures (async)
# =============================================================================


@pytest_asyncio.fixture
async def db_engine():
    """
    Fresh in-memory database for each test.
    The database disappears with the engine.
    """
    engine = make_engine()
    await create_schema(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
async def data_context(session_factory, clock):
    """Data context without retries, stamped by the fake clock."""
    ctx = DataContext(
        session_factory(),
        strategy=NonRetryingExecutionStrategy(),
        clock=clock,
    )
    try:
        yield ctx
    finally:
        await ctx.close()


@pytest_asyncio.fixture
async def seed_category(data_context):
    """Create a test category."""
    category = Category(name="Turntables", description="Direct drive and belt drive")
    data_context.create(category)
    await data_context.save()
    return category


@pytest_asyncio.fixture
async def seed_product(data_context, seed_category):
    """Create a test product."""
    product = Product(name="Technics SL-1200", price=Decimal("899.00"), category_id=seed_category.id)
    data_context.create(product)
    await data_context.save()
    return product


# =============================================================================
# API fixtures (sync TestClient)
# =============================================================================


@pytest.fixture
def api_engine():
    return make_engine()


@pytest.fixture
def client(api_engine):
    """
    Create a test client whose data context and readiness check use the
    test database.
    """
    api_session_factory = create_session_factory(api_engine)

    async def override_get_db_context():
        async with DataContext(
            api_session_factory(), strategy=NonRetryingExecutionStrategy()
        ) as ctx:
            yield ctx

    app.dependency_overrides[get_db_context] = override_get_db_context
    app.dependency_overrides[get_store_engine] = lambda: api_engine

    with TestClient(app) as test_client:
        # Run the schema setup on the client's event loop
        test_client.portal.call(create_schema, api_engine)
        test_client.session_factory = api_session_factory
        yield test_client
        test_client.portal.call(api_engine.dispose)

    app.dependency_overrides.clear()


@pytest.fixture
def api_category(client):
    """Create a category through the data context; returns its id."""

    async def create() -> str:
        async with DataContext(
            client.session_factory(), strategy=NonRetryingExecutionStrategy()
        ) as ctx:
            category = Category(name="Mixers")
            ctx.create(category)
            await ctx.save()
            return str(category.id)

    return client.portal.call(create)
