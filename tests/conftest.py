"""Pytest configuration for all tests."""

from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from latchkey.core.config import Settings
from latchkey.domain.services.auth_service import AuthService
from latchkey.infrastructure.persistence.database import Base
from latchkey.infrastructure.persistence.models import UserModel  # noqa: F401
from latchkey.infrastructure.services.email import EmailProvider
from latchkey.infrastructure.services.notifier import EmailNotifier


@pytest.fixture
def settings() -> Settings:
    """Settings for tests, independent of the environment."""
    return Settings(
        environment="testing",
        app_url="http://test",
        email_provider="console",
        secret_key="test-secret-key-for-session-tokens-0123456789",
    )


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session.

    Uses an in-memory SQLite database for testing.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session_maker() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def email_provider() -> AsyncMock:
    """Email provider that accepts every message."""
    provider = AsyncMock(spec=EmailProvider)
    provider.name = "mock"
    provider.send.return_value = True
    return provider


@pytest.fixture
def notifier(email_provider, settings) -> EmailNotifier:
    return EmailNotifier(provider=email_provider, settings=settings)


@pytest.fixture
def auth_service(db_session, notifier, settings) -> AuthService:
    """AuthService backed by the in-memory database and a mocked provider."""
    return AuthService(session=db_session, notifier=notifier, settings=settings)
