# ==============================================================================
# Base Abstract Classes
# ==============================================================================
"""
Abstract base classes defining the ports of the ports-and-adapters architecture.

- KeyValueStore: browser-style durable / session-scoped storage
- PromotionRepository, AnalyticsRepository: the remote blog store
"""

from blogengage.base.repositories import AnalyticsRepository, PromotionRepository
from blogengage.base.storage import KeyValueStore, StorageError

__all__ = [
    "AnalyticsRepository",
    "KeyValueStore",
    "PromotionRepository",
    "StorageError",
]
