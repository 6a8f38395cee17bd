"""Pytest configuration and shared fixtures.

Usage Guide:
- For ORM model tests: import factories from tests.factories
- For dispatcher tests: use RecordingAdapter from tests.fakes
- For provider HTTP tests: build adapters with httpx.MockTransport
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from tests.fakes import RecordingAdapter

from feedback_sync.config import HttpConfig, Settings, SyncConfig
from feedback_sync.db.models import Base
from feedback_sync.logging import reset_logging
from feedback_sync.schemas import Provider
from feedback_sync.sync import BackgroundTasks, SyncDispatcher


# -----------------------------------------------------------------------------
# Database Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
async def test_engine():
    """Create an in-memory SQLite engine for tests.

    Each test gets a fresh database with all tables created.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine (for fresh-session code paths)."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def db_session(session_factory):
    """Create an async session with auto-rollback.

    Changes are rolled back after each test to ensure isolation.
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


# -----------------------------------------------------------------------------
# Settings Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def http_config() -> HttpConfig:
    """Short timeout HTTP config for provider tests."""
    return HttpConfig(timeout_seconds=5.0, user_agent="feedback-sync-tests")


@pytest.fixture
def settings(http_config) -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        trello_api_key="trello-app-key",
        http=http_config,
        sync=SyncConfig(source_name="Feedback Kit"),
    )


# -----------------------------------------------------------------------------
# Dispatcher Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def adapters() -> dict[Provider, RecordingAdapter]:
    """Recording adapters mirroring each provider's label and vote-field traits."""
    return {
        Provider.GITHUB: RecordingAdapter(Provider.GITHUB),
        Provider.CLICKUP: RecordingAdapter(Provider.CLICKUP, supports_vote_field=True),
        Provider.NOTION: RecordingAdapter(
            Provider.NOTION, native_labels=False, supports_vote_field=True
        ),
        Provider.TRELLO: RecordingAdapter(Provider.TRELLO, native_labels=False),
    }


@pytest.fixture
def failure_recorder() -> AsyncMock:
    """Stand-in for SyncFailureRecorder."""
    return AsyncMock()


@pytest.fixture
def dispatcher(db_session, adapters, settings, failure_recorder) -> SyncDispatcher:
    """SyncDispatcher over the test session with recording adapters."""
    return SyncDispatcher(
        db_session,
        adapters,
        background=BackgroundTasks(on_failure=failure_recorder),
        settings=settings,
    )


# -----------------------------------------------------------------------------
# Utility Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _reset_logging():
    """Drop loguru sinks added during a test (CLI runs bind them to captured streams)."""
    yield
    reset_logging()


@pytest.fixture
def utc_now() -> datetime:
    """Current UTC datetime for tests."""
    return datetime.now(UTC)
