"""
Pytest fixtures and configuration.

This module provides shared fixtures for all tests:
- In-memory SQLite store
- Mock store, poster and ephemeris gateway
- Sample mentions and lookup outputs
- Time control

Usage:
    def test_something(sqlite_store, mock_poster):
        # fixtures are automatically injected
        pass
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from freezegun import freeze_time

from src.database_sqlite import SQLiteDatabase
from src.ephemeris import EphemerisResult
from src.mentions import Mention


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "real: mark test as a real functionality test (not mock-based)"
    )
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test requiring multiple components"
    )


# =============================================================================
# Store Fixtures
# =============================================================================

@pytest.fixture
def sqlite_store():
    """
    Provide an in-memory SQLite store with schema.

    A fresh database is created for each test.
    """
    store = SQLiteDatabase(Path(":memory:"))
    yield store
    store.close()


@pytest.fixture
def mock_store():
    """Provide mock store client."""
    store = AsyncMock()
    store.record_event = AsyncMock(return_value=True)
    store.get_due_events = AsyncMock(return_value=[])
    store.mark_replied = AsyncMock()
    store.get_max_message_id = AsyncMock(return_value=None)
    store.get_pending_count = AsyncMock(return_value=0)
    store.is_message_ignored = AsyncMock(return_value=False)
    store.mark_message_ignored = AsyncMock()
    store.health_check = AsyncMock(return_value=True)
    store.close = MagicMock()
    return store


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture
def mock_poster():
    """Provide mock reply poster (the X client surface used by the core)."""
    poster = AsyncMock()
    poster.post_reply = AsyncMock(return_value=None)
    poster.fetch_mentions = AsyncMock(return_value=[])
    return poster


@pytest.fixture
def fake_gateway():
    """
    Provide a gateway whose results are scripted per query.

    Usage:
        fake_gateway.results["Mars"] = EphemerisResult(0, "a b 4.5")
        fake_gateway.errors["Pluto"] = GatewayError("boom")
    """
    class FakeGateway:
        def __init__(self):
            self.results = {}
            self.errors = {}
            self.calls = []

        async def lookup(self, observation_time, location_query):
            self.calls.append((observation_time, location_query))
            if location_query in self.errors:
                raise self.errors[location_query]
            return self.results[location_query]

    return FakeGateway()


@pytest.fixture
def python_command():
    """
    Build a gateway command that runs a Python snippet.

    The snippet sees the observation time and query as sys.argv[1:].
    """
    def _command(snippet: str) -> list[str]:
        return [sys.executable, "-c", snippet]
    return _command


# =============================================================================
# Data Fixtures
# =============================================================================

@pytest.fixture
def observation_time():
    """Creation time of the sample mentions."""
    return datetime(2020, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_mention(observation_time):
    """Factory for mentions addressed to the bot."""
    def _make(message_id: int, body: str, author: str = "stargazer", created_at=None) -> Mention:
        return Mention(
            id=message_id,
            text=f"@celestial_echo {body}",
            author_handle=author,
            created_at=created_at or observation_time,
        )
    return _make


@pytest.fixture
def resolved_output():
    """Exit 0 lookup output, 4.5 light-minutes away."""
    return EphemerisResult(exit_code=0, stdout="foo bar 4.5\n")


@pytest.fixture
def ambiguous_output():
    """Exit 2 lookup output with two candidates."""
    return EphemerisResult(exit_code=2, stdout="1 Mars (\n2 Mars II  \n")


@pytest.fixture
def unrecognized_output():
    """Exit 1 lookup output."""
    return EphemerisResult(exit_code=1, stdout="no such body\n")


# =============================================================================
# Time Fixtures
# =============================================================================

@pytest.fixture
def time_controller():
    """
    Provide time control for tests.

    Returns a controller that can freeze and advance time.
    """
    class TimeController:
        def __init__(self):
            self.frozen_datetime = None
            self.freezer = None

        def freeze(self, dt: datetime):
            """Freeze time at specific datetime."""
            if self.freezer:
                self.freezer.stop()
            self.frozen_datetime = dt
            self.freezer = freeze_time(dt, real_asyncio=True)
            self.freezer.start()
            return dt

        def advance(self, **kwargs):
            """Advance frozen time by specified delta."""
            if not self.frozen_datetime:
                raise RuntimeError("Time not frozen")
            return self.freeze(self.frozen_datetime + timedelta(**kwargs))

        def stop(self):
            """Unfreeze time."""
            if self.freezer:
                self.freezer.stop()
                self.freezer = None
                self.frozen_datetime = None

    controller = TimeController()
    yield controller
    controller.stop()
