"""Service test fixtures — async DB + FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB sessions
    - db_manager patched so readiness checks hit the test engine

Design Decisions:
    - SQLite in-memory: fast, no external dependency; RETURNING needs SQLite >= 3.35
    - app_factory builds apps with explicit Settings (auth, development mode)
    - raise_app_exceptions=False: catch-all 500 responses are asserted, not re-raised
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from stocktake.config import Settings
from stocktake.db.base import Base
from stocktake.infrastructure.database import get_db, DatabaseSessionManager
import stocktake.infrastructure.database as db_module
import stocktake.models  # noqa: F401
from stocktake.main import create_app
from stocktake.services.record_service import RecordService


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def service(test_db):
    return RecordService(test_db)


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        static_dir="__no_static_dir__",
    )


@pytest.fixture
async def app_factory(test_engine, test_session_factory):
    """Build an app for given Settings with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    def _build(settings: Settings):
        app = create_app(settings)
        app.dependency_overrides[get_db] = override_get_db
        return app

    yield _build
    db_module.db_manager = original_manager


@pytest.fixture
async def client(app_factory, settings):
    """FastAPI test client, no auth, production mode."""
    app = app_factory(settings)
    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as c:
        yield c


@pytest.fixture
def headers():
    """Authorization header helper: headers("s1") → {"Authorization": "s1"}."""
    def _headers(session_key: str) -> dict[str, str]:
        return {"Authorization": session_key}
    return _headers
