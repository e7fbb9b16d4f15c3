# ==============================================================================
# Shared Test Fixtures
# ==============================================================================
"""
Pytest fixtures shared across all test modules.

Provides:
- A controllable clock for session expiry and date rules
- In-memory durable and session-scoped stores, plus one that always fails
- A fakeredis client for the Valkey adapter
- A promotion factory
"""

from datetime import datetime, timedelta, timezone

import fakeredis
import pytest

from blogengage.base.storage import KeyValueStore, StorageError
from blogengage.core.models import DisplayRules, Promotion
from blogengage.core.promotion_targeting import PromotionEvaluator
from blogengage.core.visitor_tracker import VisitorTracker
from blogengage.infrastructure.storage import InMemoryStore


class FakeClock:
    """Callable clock returning a settable, timezone-aware "now"."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class FailingStore(KeyValueStore):
    """Store whose every operation fails, like disabled browser storage."""

    def get(self, key):
        raise StorageError("storage disabled")

    def set(self, key, value, ttl_seconds=None):
        raise StorageError("quota exceeded")

    def remove(self, key):
        raise StorageError("storage disabled")


@pytest.fixture()
def clock():
    """A clock frozen at 2024-06-01 12:00 UTC."""
    return FakeClock(datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture()
def durable():
    """Durable (local storage / cookie) store for one browser."""
    return InMemoryStore()


@pytest.fixture()
def session_storage():
    """Session-scoped store for one browsing session."""
    return InMemoryStore()


@pytest.fixture()
def failing_store():
    return FailingStore()


@pytest.fixture()
def tracker(durable, clock):
    """VisitorTracker over the in-memory durable store with the fake clock."""
    return VisitorTracker(durable, timeout_minutes=30, clock=clock)


@pytest.fixture()
def evaluator(durable, session_storage, clock):
    """PromotionEvaluator over the in-memory stores with the fake clock."""
    return PromotionEvaluator(durable, session_storage, clock=clock)


@pytest.fixture()
def make_promotion():
    """Factory building active promotions with the given display rules."""

    def _make(promotion_id: str = "p1", is_active: bool = True, **rules) -> Promotion:
        return Promotion(
            id=promotion_id,
            title=f"Promotion {promotion_id}",
            message="Subscribe to the newsletter",
            button_text="Subscribe",
            button_link="example.com/subscribe",
            is_active=is_active,
            display_rules=DisplayRules(**rules),
        )

    return _make


@pytest.fixture()
def fake_redis():
    """A clean fakeredis instance for each test.

    Uses decode_responses=True to match the real Valkey client.
    """
    server = fakeredis.FakeServer()
    client = fakeredis.FakeRedis(server=server, decode_responses=True)
    yield client
    client.flushall()
    client.close()
