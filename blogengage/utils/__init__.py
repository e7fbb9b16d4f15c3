# ==============================================================================
# Blog Engagement Utilities
# ==============================================================================
"""
Shared utilities: configuration, retry policies, paths and schema management.
"""

from blogengage.utils.config import (
    PostgresSettings,
    PromotionSettings,
    Settings,
    TrackingSettings,
    ValkeySettings,
    get_settings,
)
from blogengage.utils.db import ensure_schema, reset_schema

__all__ = [
    # Config
    "PostgresSettings",
    "PromotionSettings",
    "Settings",
    "TrackingSettings",
    "ValkeySettings",
    "get_settings",
    # Database
    "ensure_schema",
    "reset_schema",
]
