# ==============================================================================
# Database Repository Adapters
# ==============================================================================
"""
Database adapters implementing the repository interfaces from base/repositories.py.

Currently supported:
- PostgreSQL (postgresql.py)
"""

from blogengage.infrastructure.repositories.postgresql import (
    PostgreSQLAnalyticsRepository,
    PostgreSQLPromotionRepository,
    check_postgresql_connection,
)

__all__ = [
    "PostgreSQLAnalyticsRepository",
    "PostgreSQLPromotionRepository",
    "check_postgresql_connection",
]
