"""
Pytest configuration and fixtures.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("STORE_RETRY_DELAY", "0")

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from itertools import count

import pytest
import pytest_asyncio
from passlib.hash import bcrypt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from travelcrm.models import Base, Client, ClientStatus, User, UserRole


# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Low-cost hash so fixtures stay fast; verify_password accepts any rounds
PASSWORD = "secret123"
PASSWORD_HASH = bcrypt.using(rounds=4).hash(PASSWORD)


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def session_factory(db_engine):
    """Standalone-session factory bound to the test engine."""
    maker = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    @asynccontextmanager
    async def factory():
        async with maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return factory


@pytest.fixture
def make_user(db_session):
    """Insert a user and return it."""
    seq = count(1)

    async def factory(role=UserRole.SALES, **kwargs) -> User:
        n = next(seq)
        values = {
            "email": f"user{n}@example.com",
            "password_hash": PASSWORD_HASH,
            "name": f"User {n}",
            "role": role,
            "disabled": False,
            "login_count": 0,
        }
        values.update(kwargs)
        user = User(**values)
        db_session.add(user)
        await db_session.commit()
        return user

    return factory


@pytest.fixture
def make_client(db_session):
    """Insert a client and return it."""
    seq = count(1)

    async def factory(**kwargs) -> Client:
        n = next(seq)
        now = datetime.now(timezone.utc)
        values = {
            "source": "facebook",
            "client_name": f"Client {n}",
            "whatsapp_number": f"+2010000000{n:02d}",
            "status": ClientStatus.NEW,
            "created_at": now,
            "updated_at": now,
        }
        values.update(kwargs)
        client = Client(**values)
        db_session.add(client)
        await db_session.commit()
        return client

    return factory
