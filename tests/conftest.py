"""
Pytest configuration and fixtures for identity federation tests.

Provides fixtures for:
- Database engine and session (in-memory SQLite)
- Existing users and organizations
- Test HTTP client with dependency overrides
"""

import os

# Must be set before federation_service settings are first loaded
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("GITHUB_CLIENT_ID", "test-client-id")
os.environ.setdefault("GITHUB_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("GITHUB_REDIRECT_URL", "http://test/api/v1/auth/github/callback")
os.environ.setdefault("FRONTEND_URL", "http://frontend.test/auth/complete")
os.environ.setdefault("FRONTEND_ERROR_URL", "http://frontend.test/auth/error")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from federation_service.domain.models import Base, Organization, User
from federation_service.domain.services import UserService

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture
async def test_engine():
    """Create in-memory test database engine with all tables."""
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def test_organization(test_db: AsyncSession) -> Organization:
    """Create test organization."""
    org = Organization(name="org-existing0001")
    test_db.add(org)
    await test_db.commit()
    await test_db.refresh(org)
    return org


@pytest_asyncio.fixture
async def test_user(test_db: AsyncSession, test_organization: Organization) -> User:
    """Create a user that signed in through GitHub before."""
    user = User(
        organization_id=test_organization.id,
        email="x@y.com",
        name="existingdev",
        hashed_password=UserService(test_db).hash_user_password("existing-password"),
        sso_provider="github",
        sso_subject_id="1001",
    )
    test_db.add(user)
    await test_db.commit()
    await test_db.refresh(user)
    return user


@pytest.fixture
def settings():
    """Cached application settings (built from the env vars above)."""
    from federation_service.config.settings import get_settings

    return get_settings()
