"""Shared test fixtures for async database, sessions, HTTP client, and auth tokens."""

import uuid
from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from lapor_api.core.config import Settings
from lapor_api.core.dependencies import get_async_session
from lapor_api.core.security import hash_password
from lapor_api.main import create_app
from lapor_api.models.base import Base
from lapor_api.models.user import User
from lapor_api.services.auth_service import create_user_access_token, issue_tokens

TEST_JWT_SECRET = "test-access-secret-key-not-for-production"
TEST_JWT_REFRESH_SECRET = "test-refresh-secret-key-not-for-production"

ADMIN_USERNAME = "admin.kebersihan"
ADMIN_PASSWORD = "Adm1n#Bersih"
WARGA_NIK = "3201123456780001"
WARGA_PASSWORD = "Warga#2024ok"


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key=TEST_JWT_SECRET,
        jwt_refresh_secret_key=TEST_JWT_REFRESH_SECRET,
        jwt_algorithm="HS256",
        jwt_access_expiry="15m",
        jwt_refresh_expiry="7d",
        environment="test",
    )


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def async_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create a per-test async session."""
    session_factory = async_sessionmaker(async_engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
async def admin_user(async_session: AsyncSession) -> User:
    """Create an admin in the test database."""
    user = User(
        id=uuid.uuid4(),
        username=ADMIN_USERNAME,
        email="admin.kebersihan@lapor.go.id",
        divisi="kebersihan",
        hashed_password=hash_password(ADMIN_PASSWORD),
        role="admin",
    )
    async_session.add(user)
    await async_session.commit()
    await async_session.refresh(user)
    return user


@pytest.fixture
async def warga_user(async_session: AsyncSession) -> User:
    """Create a citizen in the test database."""
    user = User(
        id=uuid.uuid4(),
        nik=WARGA_NIK,
        nama="Siti Rahayu",
        email="siti.rahayu@mail.id",
        hashed_password=hash_password(WARGA_PASSWORD),
        role="warga",
    )
    async_session.add(user)
    await async_session.commit()
    await async_session.refresh(user)
    return user


@pytest.fixture
def admin_token(admin_user: User, settings: Settings) -> str:
    """Generate a JWT access token for the admin user."""
    return create_user_access_token(admin_user, settings)


@pytest.fixture
def warga_token(warga_user: User, settings: Settings) -> str:
    """Generate a JWT access token for the citizen user."""
    return create_user_access_token(warga_user, settings)


@pytest.fixture
async def warga_refresh_token(async_session: AsyncSession, warga_user: User, settings: Settings) -> str:
    """Issue and persist a refresh token for the citizen user."""
    tokens = await issue_tokens(async_session, warga_user, settings)
    return tokens.refresh_token


@pytest.fixture
def app(settings: Settings, async_session: AsyncSession) -> FastAPI:
    """Full application wired to the per-test session."""
    application = create_app(settings)

    async def _session_override() -> AsyncGenerator[AsyncSession]:
        yield async_session

    application.dependency_overrides[get_async_session] = _session_override
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """HTTP client bound to the application without a network socket."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
