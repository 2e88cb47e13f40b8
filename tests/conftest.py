"""Shared test fixtures.

Tests run against in-memory SQLite (aiosqlite + StaticPool) and an in-memory
Redis double; the app's session and Redis dependencies are overridden, so no
external services are needed.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timezone
from itertools import count
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from santa.auth.jwt import reset_keys
from santa.config import get_settings
from santa.database import get_session
from santa.db.base import Base
from santa.db.models import User
from santa.main import create_app
from santa.redis_client import get_redis

TEST_PASSWORD = "SecureP@ss1"


@pytest.fixture(scope="session", autouse=True)
def jwt_keys(tmp_path_factory: pytest.TempPathFactory):
    """Generate an RSA key pair once per test session and point settings at it."""
    key_dir = tmp_path_factory.mktemp("keys")
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_path = key_dir / "jwt_private.pem"
    public_path = key_dir / "jwt_public.pem"
    private_path.write_bytes(private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ))
    public_path.write_bytes(private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ))

    with pytest.MonkeyPatch.context() as mp:
        mp.setenv("SANTA_JWT_PRIVATE_KEY_PATH", str(private_path))
        mp.setenv("SANTA_JWT_PUBLIC_KEY_PATH", str(public_path))
        mp.setenv("SANTA_LOG_FORMAT", "console")
        get_settings.cache_clear()
        reset_keys()
        yield
    get_settings.cache_clear()
    reset_keys()


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test, with foreign keys enforced."""
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(eng.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """A direct session for service-level tests and assertions."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_redis() -> MagicMock:
    """In-memory stand-in for the counters the auth service keeps in Redis."""
    store: dict[str, int] = {}

    async def _get(key: str) -> str | None:
        value = store.get(key)
        return None if value is None else str(value)

    async def _incr(key: str) -> int:
        store[key] = store.get(key, 0) + 1
        return store[key]

    async def _delete(*keys: str) -> int:
        return sum(store.pop(k, None) is not None for k in keys)

    redis = MagicMock()
    redis.get = AsyncMock(side_effect=_get)
    redis.incr = AsyncMock(side_effect=_incr)
    redis.expire = AsyncMock(return_value=True)
    redis.delete = AsyncMock(side_effect=_delete)
    redis.ping = AsyncMock(return_value=True)
    redis.store = store
    return redis


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    fake_redis: MagicMock,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to a fresh app wired to the test database and Redis double."""
    app = create_app()

    async def _session_override() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _session_override
    app.dependency_overrides[get_redis] = lambda: fake_redis

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# --- Users ---

_seq = count(1)


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Insert a user row directly, skipping password hashing."""

    async def _make(name: str | None = None, email: str | None = None) -> User:
        n = next(_seq)
        user = User(
            email=email or f"user{n}@example.com",
            password_hash="not-a-real-hash",
            name=name or f"User {n}",
            login_count=0,
            created_at=datetime.now(timezone.utc),
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _make


async def register(client: AsyncClient, email: str, name: str, password: str = TEST_PASSWORD) -> dict:
    """Register through the API and return the id, tokens and auth headers."""
    response = await client.post("/api/v1/auth/register", json={
        "email": email,
        "password": password,
        "name": name,
    })
    assert response.status_code == 201, response.text
    data = response.json()
    return {
        "id": data["user"]["id"],
        "email": email,
        "name": name,
        "access_token": data["access_token"],
        "refresh_token": data["refresh_token"],
        "headers": {"Authorization": f"Bearer {data['access_token']}"},
    }


@pytest_asyncio.fixture
async def alice(client: AsyncClient) -> dict:
    return await register(client, "alice@example.com", "Alice")


@pytest_asyncio.fixture
async def bob(client: AsyncClient) -> dict:
    return await register(client, "bob@example.com", "Bob")


@pytest_asyncio.fixture
async def carol(client: AsyncClient) -> dict:
    return await register(client, "carol@example.com", "Carol")


@pytest_asyncio.fixture
async def group(client: AsyncClient, alice: dict, bob: dict, carol: dict) -> dict:
    """A group created by Alice (admin) that Bob and Carol have joined."""
    response = await client.post("/api/v1/groups", json={"name": "Office Party"}, headers=alice["headers"])
    assert response.status_code == 201, response.text
    data = response.json()
    for member in (bob, carol):
        joined = await client.post(f"/api/v1/groups/{data['invite_code']}/join", headers=member["headers"])
        assert joined.status_code == 201, joined.text
    return data
