"""
TIL Backend — Test Configuration (conftest.py)
==============================================

What:  Shared pytest fixtures for the entire test suite.
How:   Tests run against a throwaway SQLite file (aiosqlite). The schema is
       created before and dropped after every test that asks for it.

Environment:
    Settings are read once, when tilapp.config is first imported, so the
    variables below are set before any tilapp import.

Fixture Hierarchy (function-scoped):
    db_schema ─┬─ db_session        AsyncSession for repository/service tests
               ├─ client            httpx.AsyncClient over ASGITransport
               ├─ make_user         factory: committed user with a password
               ├─ auth_headers      bearer token header for a fresh user
               └─ web_client        client logged in through POST /login

SQLite allows one writer at a time: API tests never keep `db_session` open
while they send requests. Factories open and commit their own session.
"""

import os
import tempfile

os.environ["DATABASE_URL"] = (
    "sqlite+aiosqlite:///" + os.path.join(tempfile.mkdtemp(prefix="til_test_"), "test.db")
)
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_ATTEMPTS"] = "3"
os.environ["GOOGLE_CLIENT_ID"] = ""
os.environ["GOOGLE_CLIENT_SECRET"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

from typing import AsyncGenerator, Awaitable, Callable, Dict  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

import tilapp.models  # noqa: E402,F401
from tilapp.database import Base, async_session_factory, engine  # noqa: E402
from tilapp.models.user import User  # noqa: E402
from tilapp.repositories import TokenRepository, UserRepository  # noqa: E402
from tilapp.services.auth_service import hash_password  # noqa: E402

DEFAULT_PASSWORD = "password123"


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_schema() -> AsyncGenerator[None, None]:
    """Fresh tables for each test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session(db_schema) -> AsyncGenerator[AsyncSession, None]:
    """
    A session for repository and service tests.

    Not committed: everything the test writes is rolled back on close.
    """
    async with async_session_factory() as session:
        yield session
        await session.rollback()


# ══════════════════════════════════════════════════════════════════════════
# Data factories
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def make_user(db_schema) -> Callable[..., Awaitable[User]]:
    """
    Factory creating a committed user.

    Usage:
        alice = await make_user("alice")
        bob = await make_user("bob", password="s3cret!!", name="Bob")
    """

    async def _make_user(
        username: str = "alice",
        password: str = DEFAULT_PASSWORD,
        name: str = "",
    ) -> User:
        async with async_session_factory() as session:
            user = await UserRepository(session).create(
                name=name or username.title(),
                username=username,
                password_hash=hash_password(password),
            )
            await session.commit()
            return user

    return _make_user


@pytest_asyncio.fixture
async def auth_headers(make_user) -> Dict[str, str]:
    """Bearer header for a freshly created user named 'tokenholder'."""
    user = await make_user("tokenholder")
    async with async_session_factory() as session:
        token = await TokenRepository(session).create_for_user(user)
        await session.commit()
    return {"Authorization": f"Bearer {token.value}"}


# ══════════════════════════════════════════════════════════════════════════
# HTTP clients
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def client(db_schema) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient talking to the FastAPI app in-process.

    Redirects are not followed so tests can assert on Location; cookies
    (the website session) persist between requests.
    """
    from tilapp.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


@pytest_asyncio.fixture
async def web_client(client, make_user) -> AsyncClient:
    """`client` with a logged-in website session for user 'webuser'."""
    await make_user("webuser", name="Web User")
    response = await client.post(
        "/login", data={"username": "webuser", "password": DEFAULT_PASSWORD}
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/"
    return client
