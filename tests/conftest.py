"""
tests/conftest.py

Shared pytest fixtures used by both unit and integration test suites.
All DB fixtures use in-memory SQLite (StaticPool) and all HTTP fixtures
use respx.mock; no real network calls are made in any test.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest
import respx
from sqlmodel import SQLModel, Session, create_engine
from sqlmodel.pool import StaticPool

# NOTE: Models must be imported before SQLModel.metadata.create_all so that
# all table definitions are registered in the metadata before we call create_all.
import db.models  # noqa: F401  side-effect import to register table metadata

from services.retry import RetryPolicy


# ---------------------------------------------------------------------------
# Database fixture: in-memory SQLite, isolated per test
# ---------------------------------------------------------------------------


@pytest.fixture(name="db_session")
def db_session_fixture():
    """
    Yields a fresh in-memory SQLite session for each test.

    Tables are created before the test and dropped after.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


# ---------------------------------------------------------------------------
# HTTP mock fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_http():
    """
    Yields a respx router that intercepts all httpx.AsyncClient calls.

    No real network traffic is allowed during tests.
    """
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture()
async def http_client():
    """
    Yields a real httpx.AsyncClient; pair with mock_http so requests are intercepted.
    """
    async with httpx.AsyncClient() as client:
        yield client


# ---------------------------------------------------------------------------
# Retry fixtures: backoff without real waiting
# ---------------------------------------------------------------------------


@pytest.fixture()
def fake_sleep():
    """An AsyncMock standing in for asyncio.sleep; inspect await_args_list for waits."""
    return AsyncMock()


@pytest.fixture()
def retry_policy(fake_sleep):
    """Default retry schedule (3 retries, 1s doubling to 60s) that never sleeps."""
    return RetryPolicy(sleep=fake_sleep)
