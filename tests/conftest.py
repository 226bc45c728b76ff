"""
Test configuration and fixtures for the redirect service.

Every test gets its own SQLite file under tmp_path, so tests are isolated
and never share counter state.
"""

import os

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

# Settings loaded from the environment require a store URL.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./redirector-test.db")

from redirector.core.setting import Settings  # noqa: E402
from redirector.db.store import DurableStore  # noqa: E402
from redirector.main import create_app  # noqa: E402

from helpers import STARTED_AT, TARGET_URL  # noqa: E402


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'redirector.db'}"


@pytest.fixture
def unreachable_database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'redirector.db'}"


@pytest.fixture
def settings(database_url) -> Settings:
    return Settings(
        DATABASE_URL=database_url,
        REDIRECT_TARGET_URL=TARGET_URL,
        SERVICE_STARTED_AT=STARTED_AT,
        RATE_LIMIT_ENABLED=False,
        BACKGROUND_TASK_TIMEOUT=30.0,
        CORS_ALLOW_ORIGINS=["https://a.example", "https://b.example"],
    )


@pytest_asyncio.fixture
async def store(database_url):
    """An initialized store on a fresh database."""
    durable_store = DurableStore.from_url(database_url)
    await durable_store.initialize()
    yield durable_store
    await durable_store.close()


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    """TestClient with startup/shutdown run around the test."""
    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client
