"""Pytest configuration and fixtures."""

from contextlib import AsyncExitStack
from datetime import datetime
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from backend.app.api.deps import get_now, get_upload_storage
from backend.app.db.base import Base, get_db
from backend.app.main import app
from backend.app.models.user import User, UserType
from backend.app.services.storage import UploadStorage
from backend.tests.helpers import MEMBER_DOMAIN, Clock, signup


@pytest.fixture
def clock() -> Clock:
    """Request clock, fixed at 2024-01-15 12:00 UTC unless a test moves it."""
    return Clock(datetime(2024, 1, 15, 12, 0, 0))


@pytest.fixture(scope="function")
async def session_factory():
    """
    Fresh in-memory database with all tables created.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    yield factory

    await engine.dispose()


@pytest.fixture(scope="function")
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """A database session for service-level tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="function")
async def client_factory(session_factory, clock, tmp_path):
    """
    Build test clients that share one database, clock and upload directory.

    Each client keeps its own cookie jar, so each one can hold a different
    login session.
    """

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    storage = UploadStorage(root=tmp_path / "uploads", max_bytes=1024 * 1024)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = clock
    app.dependency_overrides[get_upload_storage] = lambda: storage

    transport = ASGITransport(app=app)
    async with AsyncExitStack() as stack:

        async def make_client() -> AsyncClient:
            return await stack.enter_async_context(
                AsyncClient(transport=transport, base_url="http://test")
            )

        yield make_client

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def test_client_with_db(client_factory) -> AsyncClient:
    """An anonymous client."""
    return await client_factory()


@pytest.fixture
async def member_client(client_factory) -> AsyncClient:
    """Client logged in as an approved member."""
    client = await client_factory()
    client.user = await signup(client, "Ana Member", f"ana@{MEMBER_DOMAIN}")
    return client


@pytest.fixture
async def other_member_client(client_factory) -> AsyncClient:
    """Client logged in as a second approved member."""
    client = await client_factory()
    client.user = await signup(
        client, "Ben Member", f"ben@{MEMBER_DOMAIN}", cluster="Graphics"
    )
    return client


@pytest.fixture
async def guest_client(client_factory) -> AsyncClient:
    """Client logged in as a guest."""
    client = await client_factory()
    client.user = await signup(client, "Gia Guest", "gia@example.com", user_type="guest")
    return client


@pytest.fixture
async def admin_client(client_factory, session_factory, clock) -> AsyncClient:
    """Client logged in as an admin (admins cannot sign up, so one is inserted)."""
    async with session_factory() as db:
        db.add(User(
            name="Ada Admin",
            email=f"admin@{MEMBER_DOMAIN}",
            user_type=UserType.ADMIN.value,
            is_approved=True,
            is_active=True,
            created_at=clock.now,
        ))
        await db.commit()

    client = await client_factory()
    response = await client.post("/api/auth/login", json={"email": f"admin@{MEMBER_DOMAIN}"})
    assert response.status_code == 200, response.text
    client.user = response.json()["user"]
    return client
