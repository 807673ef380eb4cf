"""Shared fixtures: a migrated SQLite database per test and an authenticated API client."""

import os

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from scholarchain.core import security
from scholarchain.core.database import build_engine, get_db
from scholarchain.main import app
from scholarchain.migrations import upgrade_database

TEST_SECRET = "scholarchain-test-secret"
API = "/api/v1"


def make_engine(path):
    return build_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool)


@pytest_asyncio.fixture
async def bare_engine(tmp_path):
    """Engine on an empty database file; no migrations applied."""
    engine = make_engine(tmp_path / "bare.db")
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = make_engine(tmp_path / "scholarchain.db")
    await upgrade_database(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def token_for(monkeypatch):
    """Sign test tokens with a shared secret instead of the Privy key pair."""
    monkeypatch.setattr(security.settings, "privy_verification_key", TEST_SECRET)
    monkeypatch.setattr(security.settings, "privy_algorithm", "HS256")
    monkeypatch.setattr(security.settings, "privy_app_id", "")

    def _token(privy_id: str) -> str:
        return jwt.encode({"sub": privy_id, "iss": security.settings.privy_issuer}, TEST_SECRET, algorithm="HS256")

    return _token


@pytest.fixture
def auth(token_for):
    def _headers(privy_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token_for(privy_id)}"}

    return _headers


@pytest_asyncio.fixture
async def client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
