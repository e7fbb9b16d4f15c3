# ==============================================================================
# Key-Value Storage Abstract Base Class
# ==============================================================================
"""
Abstract interface for browser-style key-value storage.

Visitor sessions and promotion display markers live in two such stores:
- durable: survives across visits (local storage, long-lived cookies)
- session-scoped: cleared when the browsing session ends

Values are plain strings, as in browser storage. Callers serialize.

Implementations: InMemoryStore, ValkeyStore.
"""

from abc import ABC, abstractmethod


class StorageError(Exception):
    """Raised when the underlying storage is unavailable or rejects a write."""


class KeyValueStore(ABC):
    """
    Minimal key-value port with optional TTL.

    Implementations raise StorageError for backend failures (quota exceeded,
    storage disabled, connection lost) so callers can degrade gracefully.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """
        Get a stored value.

        Args:
            key: Storage key

        Returns:
            Stored string, or None if not found
        """
        ...

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        """
        Store a value with optional TTL.

        Args:
            key: Storage key
            value: String value to store
            ttl_seconds: Optional time-to-live in seconds
        """
        ...

    @abstractmethod
    def remove(self, key: str) -> bool:
        """
        Remove a key.

        Args:
            key: Storage key to remove

        Returns:
            True if key was removed, False if not found
        """
        ...
