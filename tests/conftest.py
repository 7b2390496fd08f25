"""Pytest configuration and fixtures."""

import os
import sys
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from typing import Any
from uuid import UUID, uuid4

# Disable rate limiting in tests
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.ext.compiler import compiles

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from infrastructure.database.models import Base, ProfileModel
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork


# Compile JSONB as JSON for SQLite (used in tests)
@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_: Any, compiler: Any, **kw: Any) -> str:
    return "JSON"


# Test database URL (SQLite in memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh in-memory database per test."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    # pysqlite defers BEGIN, which breaks SAVEPOINT; emit it ourselves.
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def uow_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[], SQLAlchemyUnitOfWork]:
    """Unit of Work factory bound to the test database."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory)

    return factory


@pytest.fixture
def make_profile(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[UUID]]:
    """Insert a profile and return its ID."""

    async def _make(**location: Any) -> UUID:
        profile_id = uuid4()
        async with session_factory() as session:
            session.add(
                ProfileModel(
                    id=profile_id,
                    email=f"{profile_id.hex[:12]}@example.com",
                    display_name="Test User",
                    **location,
                )
            )
            await session.commit()
        return profile_id

    return _make


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client backed by the application's own database settings."""
    from main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def api_client(
    uow_factory: Callable[[], SQLAlchemyUnitOfWork],
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client whose services use the in-memory test database.

    Overrides the service dependencies so every request goes through a
    SQLAlchemyUnitOfWork bound to the test session factory.
    """
    from api.v1.dependencies import get_community_query_service, get_community_service
    from domain.services.community_query_service import CommunityQueryService
    from domain.services.community_service import CommunityService
    from infrastructure.cache.memory_cache import InMemoryMembershipCache
    from main import create_app

    app = create_app()
    service = CommunityService(uow_factory, cache=InMemoryMembershipCache())
    query_service = CommunityQueryService(uow_factory)

    app.dependency_overrides[get_community_service] = lambda: service
    app.dependency_overrides[get_community_query_service] = lambda: query_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
