# ==============================================================================
# Infrastructure Adapters
# ==============================================================================
"""
Adapters for external services (ports-and-adapters architecture).

This module contains concrete implementations of the base/ interfaces:
- storage/ - KeyValueStore adapters (in-memory, Valkey)
- repositories/ - Database adapters (PostgreSQL)
- bounded.py - Timeout-bounded execution of remote calls
"""

from blogengage.infrastructure.bounded import BoundedExecutor
from blogengage.infrastructure.repositories import (
    PostgreSQLAnalyticsRepository,
    PostgreSQLPromotionRepository,
    check_postgresql_connection,
)
from blogengage.infrastructure.storage import (
    InMemoryStore,
    ValkeyStore,
    check_valkey_connection,
    durable_store,
    get_valkey_client,
    session_store,
)

__all__ = [
    # Bounded calls
    "BoundedExecutor",
    # Repositories
    "PostgreSQLAnalyticsRepository",
    "PostgreSQLPromotionRepository",
    "check_postgresql_connection",
    # Storage
    "InMemoryStore",
    "ValkeyStore",
    "check_valkey_connection",
    "durable_store",
    "get_valkey_client",
    "session_store",
]
