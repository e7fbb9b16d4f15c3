# ==============================================================================
# In-Memory Key-Value Store
# ==============================================================================
"""
Process-local implementation of the KeyValueStore interface.

Used for tests, the CLI's throwaway session store, and any embedding where a
single process owns the visitor's storage.
"""

import time
from collections.abc import Callable

from blogengage.base.storage import KeyValueStore


class InMemoryStore(KeyValueStore):
    """
    Dict-backed KeyValueStore with TTL support.

    Expired keys are dropped lazily on access.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """
        Initialize the store.

        Args:
            clock: Monotonic seconds source used for TTL expiry
        """
        self._clock = clock
        self._data: dict[str, tuple[str, float | None]] = {}

    def get(self, key: str) -> str | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds is not None else None
        self._data[key] = (value, expires_at)

    def remove(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def clear(self) -> None:
        """Drop every key (ends a simulated browsing session)."""
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)
