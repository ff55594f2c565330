"""
Pytest configuration and shared fixtures.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.config import get_thresholds
from core.database import Store, get_connection, init_schema

# Wednesday; the week runs Mon 2026-01-19 .. Sun 2026-01-25
NOW = datetime(2026, 1, 21, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def no_threshold_overrides(monkeypatch):
    """Keep developer .env overrides out of the tests."""
    monkeypatch.delenv("GRACE_PERIOD_MINUTES", raising=False)
    monkeypatch.delenv("OVERWORK_THRESHOLD_HOURS", raising=False)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store():
    """Empty in-memory store with the full schema."""
    conn = get_connection(":memory:")
    init_schema(conn)
    store = Store(conn)
    yield store
    store.close()


@pytest.fixture
def db_file(tmp_path):
    """Initialised on-disk database path."""
    path = tmp_path / "alarms.db"
    conn = get_connection(path)
    init_schema(conn)
    conn.close()
    return path


@pytest.fixture
def prod():
    return get_thresholds("production")


@pytest.fixture
def dev():
    return get_thresholds("development")


@pytest.fixture
def make_user(store):
    """Factory inserting a user and returning its record."""

    def _make(email, **fields):
        defaults = {
            "full_name": email.split("@")[0].title(),
            "tenant_id": "acme",
            "role": "member",
            "custom_role": "viewer",
            "status": "active",
        }
        user_id = store.insert_user(email, **{**defaults, **fields})
        return store.get_user(user_id)

    return _make


@pytest.fixture
def viewer(make_user):
    return make_user("viewer@acme.com")


@pytest.fixture
def make_daily_log(store):
    """Factory inserting a daily activity log for a user."""

    def _make(user, day, **fields):
        log_id = store.insert_activity_log(
            user["id"],
            day,
            f"{day}T09:00:00+00:00",
            email=user["email"],
            tenant_id=user["tenant_id"],
            event_type="daily",
            **fields,
        )
        return log_id

    return _make
