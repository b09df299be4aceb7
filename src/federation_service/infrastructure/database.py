"""
Storage for the user and organization directory.

One async engine per process. Each request gets its own session, and the
sign-in flow commits or rolls back provisioning on it.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from federation_service.config.settings import get_settings
from federation_service.domain.models.base import Base


settings = get_settings()

DATABASE_URL = settings.database_url

# Convert postgresql:// to postgresql+asyncpg:// if needed
if DATABASE_URL.startswith("postgresql://"):
    DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)


engine = create_async_engine(
    DATABASE_URL,
    echo=settings.sql_echo,
    pool_pre_ping=True,  # Verify connections before using
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,  # Don't expire objects after commit
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session for directory lookups and provisioning.

    Uncommitted work is rolled back if the request raises.

    Yields:
        AsyncSession: Database session
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db() -> None:
    """
    Create the organizations and users tables if they are missing.

    Called from the app lifespan when ENVIRONMENT is "development". Other
    environments expect the schema to be provisioned ahead of deployment.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose of the engine's connection pool on application shutdown."""
    await engine.dispose()
