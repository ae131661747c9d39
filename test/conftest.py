"""
Pytest configuration and fixtures for view tracking tests
"""

import os
import sys
from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))  # noqa: PTH100, PTH118, PTH119, PTH120

from utils.mock_utils import FakeClock  # noqa: E402

from viewtrack.database import Base, get_db  # noqa: E402
from viewtrack.main import create_app  # noqa: E402
from viewtrack.middleware.rate_limit import limiter  # noqa: E402
from viewtrack.services.view_service import ViewService, get_view_service  # noqa: E402

# SQLite in-memory database shared by every session of one test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def test_engine():
    """Create a fresh database for each test function"""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for tests that need it."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def view_service(fake_clock) -> ViewService:
    return ViewService(cooldown_minutes=30, clock=fake_clock)


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Rate limit counters are in-process; start every test from zero."""
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def app(session_factory, view_service):
    """FastAPI application wired to the test database and fake clock"""
    application = create_app(configure_logging=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_view_service] = lambda: view_service
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
