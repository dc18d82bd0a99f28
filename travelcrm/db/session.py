"""
Async SQLAlchemy database session configuration.

The relational database plays the role of the document store:
`users`, `clients`, `client_notes` and `system_settings` tables.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from travelcrm.config import settings

logger = logging.getLogger(__name__)


def _connect_args(url: str) -> dict:
    # Transaction poolers reject prepared statement caching
    if url.startswith("postgresql+asyncpg"):
        return {"statement_cache_size": 0}
    return {}


engine = create_async_engine(
    settings.database_url,
    poolclass=NullPool,
    echo=False,
    connect_args=_connect_args(settings.database_url),
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for database sessions.

    Commits when the request handler returns, rolls back on any error.
    Usage:
        @router.get("/clients")
        async def list_clients(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Context manager for sessions outside request handling
    (startup bootstrap, privileged account creation).
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_session_factory():
    """
    FastAPI dependency returning the factory for standalone sessions.

    Used by operations that must not share the request's transaction.
    """
    return get_db_context
