# ==============================================================================
# Key-Value Storage Infrastructure
# ==============================================================================
"""
KeyValueStore implementations for the ports-and-adapters architecture.

Available implementations:
- InMemoryStore: process-local dict with TTL
- ValkeyStore: Valkey/Redis-backed, namespaced per browser / browsing session
"""

from blogengage.infrastructure.storage.memory import InMemoryStore
from blogengage.infrastructure.storage.valkey import (
    ValkeyStore,
    check_valkey_connection,
    durable_store,
    get_valkey_client,
    session_store,
)

__all__ = [
    "InMemoryStore",
    "ValkeyStore",
    "check_valkey_connection",
    "durable_store",
    "get_valkey_client",
    "session_store",
]
