# ==============================================================================
# Valkey Key-Value Store Implementation
# ==============================================================================
"""
Valkey/Redis implementation of the KeyValueStore interface.

Each store instance owns a key namespace:
- durable store:        browser:{browser_key}:
- session-scoped store: browser:{browser_key}:session:{session_key}:

Session-scoped namespaces carry a default TTL so abandoned browsing sessions
expire on their own. Redis errors are translated into StorageError.
"""

import logging

import redis
from redis.backoff import ExponentialBackoff
from redis.exceptions import RedisError
from redis.retry import Retry

from blogengage.base.storage import KeyValueStore, StorageError
from blogengage.utils.config import get_settings
from blogengage.utils.retry import REDIS_RETRY_EXCEPTIONS, VALKEY_RETRIES

logger = logging.getLogger(__name__)

BROWSER_PREFIX = "browser:"


def get_valkey_client(url: str | None = None, socket_timeout: int = 2) -> redis.Redis:
    """
    Get a Valkey/Redis client connection.

    Configured with:
    - short socket timeouts, since visitor storage sits on the request path
    - a few automatic retries with exponential backoff for transient failures
    - health check interval to keep connections alive

    Args:
        url: Valkey/Redis connection URL. If None, uses settings.
        socket_timeout: Socket timeout in seconds (default: 2)

    Returns:
        redis.Redis client instance
    """
    if url is None:
        url = get_settings().valkey.url

    retry_strategy = Retry(ExponentialBackoff(cap=4, base=0.1), retries=VALKEY_RETRIES)

    return redis.from_url(
        url,
        decode_responses=True,
        socket_timeout=socket_timeout,
        socket_connect_timeout=socket_timeout,
        retry=retry_strategy,
        retry_on_error=list(REDIS_RETRY_EXCEPTIONS),
        health_check_interval=30,
    )


class ValkeyStore(KeyValueStore):
    """
    Valkey/Redis implementation of KeyValueStore.

    Keys are stored as plain strings under the instance namespace.
    """

    def __init__(
        self,
        client: redis.Redis,
        namespace: str = "",
        default_ttl_seconds: int | None = None,
    ):
        """
        Initialize the store.

        Args:
            client: Redis client instance
            namespace: Prefix prepended to every key
            default_ttl_seconds: TTL applied when set() is called without one
        """
        self._client = client
        self._namespace = namespace
        self._default_ttl = default_ttl_seconds

    @property
    def client(self) -> redis.Redis:
        """Get the underlying Redis client."""
        return self._client

    @property
    def namespace(self) -> str:
        return self._namespace

    def _key(self, key: str) -> str:
        return f"{self._namespace}{key}"

    def get(self, key: str) -> str | None:
        try:
            return self._client.get(self._key(key))
        except RedisError as e:
            raise StorageError(f"Failed to read {key}: {e}") from e
        except UnicodeDecodeError as e:
            raise StorageError(f"Undecodable value under {key}: {e}") from e

    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        try:
            if ttl is not None:
                self._client.setex(self._key(key), ttl, value)
            else:
                self._client.set(self._key(key), value)
        except RedisError as e:
            raise StorageError(f"Failed to write {key}: {e}") from e

    def remove(self, key: str) -> bool:
        try:
            return self._client.delete(self._key(key)) > 0
        except RedisError as e:
            raise StorageError(f"Failed to remove {key}: {e}") from e

    def clear(self) -> int:
        """
        Delete every key in this namespace.

        Returns:
            Count of keys deleted
        """
        if not self._namespace:
            raise ValueError("Refusing to clear a store without a namespace")
        try:
            keys = list(self._client.scan_iter(f"{self._namespace}*"))
            if keys:
                return self._client.delete(*keys)
            return 0
        except RedisError as e:
            raise StorageError(f"Failed to clear {self._namespace}: {e}") from e


# ==============================================================================
# Store Factories
# ==============================================================================


def durable_store(client: redis.Redis, browser_key: str) -> ValkeyStore:
    """Durable storage for one browser (local storage and cookies)."""
    return ValkeyStore(client, namespace=f"{BROWSER_PREFIX}{browser_key}:")


def session_store(client: redis.Redis, browser_key: str, session_key: str) -> ValkeyStore:
    """Session-scoped storage for one browsing session of one browser."""
    ttl_hours = get_settings().tracking.session_store_ttl_hours
    return ValkeyStore(
        client,
        namespace=f"{BROWSER_PREFIX}{browser_key}:session:{session_key}:",
        default_ttl_seconds=ttl_hours * 3600,
    )


def check_valkey_connection() -> bool:
    """
    Check if Valkey is reachable.

    Returns:
        True if Valkey responds to ping, False otherwise
    """
    try:
        client = redis.from_url(
            get_settings().valkey.url,
            decode_responses=True,
            socket_timeout=5,
            socket_connect_timeout=5,
        )
        client.ping()
        client.close()
        return True
    except RedisError:
        return False
