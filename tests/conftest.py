"""
Shared fixtures: in-memory SQLite settings, DB sessions and a test client.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from auth.jwt import TokenService
from auth.password import PasswordHasher
from config.settings import Settings
from database.session import build_engine, build_session_factory, init_models
from main import create_app

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        jwt_secret=TEST_SECRET,
        jwt_expiration_ms=60_000,
        bcrypt_rounds=4,
        database_url="sqlite+aiosqlite:///:memory:",
        _env_file=None,
    )


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_service(settings) -> TokenService:
    return TokenService(settings)


@pytest_asyncio.fixture
async def db_session(settings) -> AsyncGenerator[AsyncSession, None]:
    engine = build_engine(settings.database_url)
    await init_models(engine)
    async with build_session_factory(engine)() as session:
        yield session
        await session.rollback()
    await engine.dispose()


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client
