# ==============================================================================
# PostgreSQL Repository Implementations
# ==============================================================================
"""
PostgreSQL implementations of the repository interfaces.

Provides:
- PostgreSQLPromotionRepository: Promotion reads and admin writes
- PostgreSQLAnalyticsRepository: Increment-style aggregate updates and the
  engagement event log

Aggregates are updated create-if-absent then read-modify-write inside one
transaction: the row is inserted with zero counters if missing, locked with
SELECT ... FOR UPDATE, and the new counters and rates computed by
core.analytics are written back.
"""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

import psycopg2
from psycopg2.extras import Json, RealDictCursor
from pydantic import ValidationError

from blogengage.base.repositories import AnalyticsRepository, PromotionRepository
from blogengage.core.analytics import apply_post_increment, apply_promotion_increment
from blogengage.core.models import (
    AnalyticsIncrement,
    EngagementEvent,
    PostAnalytics,
    Promotion,
    PromotionAnalytics,
    SessionStart,
)
from blogengage.utils.config import Settings, get_settings
from blogengage.utils.retry import POSTGRES_RETRY_EXCEPTIONS, retry_light

logger = logging.getLogger(__name__)

# Connection timeout
CONNECT_TIMEOUT = 10

PROMOTION_COLUMNS = (
    "id, title, message, button_text, button_link, is_active, "
    "display_rules, created_at, updated_at"
)
POST_ANALYTICS_COLUMNS = (
    "post_id, views, unique_views, likes, shares, comments_count, engagement_rate, last_viewed"
)
PROMOTION_ANALYTICS_COLUMNS = (
    "promotion_id, total_views, unique_views, total_clicks, unique_clicks, "
    "total_closes, click_through_rate, conversion_rate"
)


def _add_connect_timeout(conn_string: str) -> str:
    """Add connect_timeout to connection string if not present."""
    if "connect_timeout" not in conn_string:
        separator = "&" if "?" in conn_string else "?"
        return f"{conn_string}{separator}connect_timeout={CONNECT_TIMEOUT}"
    return conn_string


@retry_light(POSTGRES_RETRY_EXCEPTIONS, logger)
def _connect(settings: Settings) -> "psycopg2.extensions.connection":
    return psycopg2.connect(_add_connect_timeout(settings.postgres.connection_string))


class _PostgreSQLRepository:
    """
    Connection handling shared by the repositories.

    Calls may arrive from BoundedExecutor worker threads, including a late
    call still running after its caller gave up, so every transaction holds
    the instance lock.
    """

    def __init__(self, settings: Settings | None = None):
        """
        Initialize the repository.

        Args:
            settings: Application settings. If None, uses get_settings().
        """
        self._settings = settings or get_settings()
        self._conn: psycopg2.extensions.connection | None = None
        self._schema = self._settings.postgres.schema_name
        self._lock = threading.Lock()

    @property
    def schema(self) -> str:
        """Get the database schema name."""
        return self._schema

    def connect(self) -> None:
        """Establish connection to PostgreSQL."""
        self._conn = _connect(self._settings)
        logger.info("%s connected (schema=%s)", type(self).__name__, self._schema)

    @contextmanager
    def _transaction(self) -> Iterator[RealDictCursor]:
        """Yield a dict cursor; commit on success, roll back and re-raise on any error."""
        if self._conn is None:
            raise RuntimeError("PostgreSQL connection not established. Call connect() first.")

        with self._lock:
            try:
                with self._conn.cursor(cursor_factory=RealDictCursor) as cur:
                    yield cur
                self._conn.commit()
            except Exception:
                try:
                    self._conn.rollback()
                except psycopg2.Error as e:
                    logger.warning("Rollback failed: %s", e)
                raise

    def close(self) -> None:
        """Close connection and release resources."""
        if self._conn:
            try:
                self._conn.close()
                logger.info("%s connection closed", type(self).__name__)
            except psycopg2.Error as e:
                logger.warning("Error closing connection: %s", e)
            finally:
                self._conn = None


class PostgreSQLPromotionRepository(_PostgreSQLRepository, PromotionRepository):
    """PostgreSQL implementation of PromotionRepository."""

    def _parse_rows(self, rows: list[dict]) -> list[Promotion]:
        promotions = []
        for row in rows:
            try:
                promotions.append(Promotion.from_db_record(row))
            except ValidationError as e:
                logger.warning("Skipping malformed promotion %s: %s", row.get("id"), e)
        return promotions

    def list_promotions(self) -> list[Promotion]:
        with self._transaction() as cur:
            cur.execute(
                f"SELECT {PROMOTION_COLUMNS} FROM {self._schema}.promotions "
                "ORDER BY created_at DESC"
            )
            rows = cur.fetchall()
        return self._parse_rows(rows)

    def list_active(self) -> list[Promotion]:
        with self._transaction() as cur:
            cur.execute(
                f"SELECT {PROMOTION_COLUMNS} FROM {self._schema}.promotions "
                "WHERE is_active ORDER BY created_at DESC"
            )
            rows = cur.fetchall()
        return self._parse_rows(rows)

    def create(self, promotion: Promotion) -> Promotion:
        record = promotion.to_db_record()
        record["display_rules"] = Json(record["display_rules"])
        with self._transaction() as cur:
            cur.execute(
                f"""
                INSERT INTO {self._schema}.promotions
                    (title, message, button_text, button_link, is_active, display_rules)
                VALUES
                    (%(title)s, %(message)s, %(button_text)s, %(button_link)s,
                     %(is_active)s, %(display_rules)s)
                RETURNING {PROMOTION_COLUMNS}
                """,
                record,
            )
            row = cur.fetchone()
        created = Promotion.from_db_record(row)
        logger.info("Created promotion %s (%s)", created.id, created.title)
        return created

    def update(self, promotion: Promotion) -> Promotion | None:
        if promotion.id is None:
            raise ValueError("Cannot update a promotion without an id")
        record = promotion.to_db_record()
        record["display_rules"] = Json(record["display_rules"])
        record["id"] = promotion.id
        with self._transaction() as cur:
            cur.execute(
                f"""
                UPDATE {self._schema}.promotions SET
                    title = %(title)s,
                    message = %(message)s,
                    button_text = %(button_text)s,
                    button_link = %(button_link)s,
                    is_active = %(is_active)s,
                    display_rules = %(display_rules)s,
                    updated_at = now()
                WHERE id = %(id)s
                RETURNING {PROMOTION_COLUMNS}
                """,
                record,
            )
            row = cur.fetchone()
        if row is None:
            return None
        logger.info("Updated promotion %s", promotion.id)
        return Promotion.from_db_record(row)

    def set_active(self, promotion_id: str, is_active: bool) -> Promotion | None:
        with self._transaction() as cur:
            cur.execute(
                f"""
                UPDATE {self._schema}.promotions
                SET is_active = %s, updated_at = now()
                WHERE id = %s
                RETURNING {PROMOTION_COLUMNS}
                """,
                (is_active, promotion_id),
            )
            row = cur.fetchone()
        if row is None:
            return None
        logger.info("Promotion %s is_active=%s", promotion_id, is_active)
        return Promotion.from_db_record(row)

    def delete(self, promotion_id: str) -> bool:
        with self._transaction() as cur:
            cur.execute(f"DELETE FROM {self._schema}.promotions WHERE id = %s", (promotion_id,))
            deleted = cur.rowcount > 0
        if deleted:
            logger.info("Deleted promotion %s", promotion_id)
        return deleted


class PostgreSQLAnalyticsRepository(_PostgreSQLRepository, AnalyticsRepository):
    """PostgreSQL implementation of AnalyticsRepository."""

    def increment_post(self, post_id: str, increment: AnalyticsIncrement) -> PostAnalytics:
        with self._transaction() as cur:
            cur.execute(
                f"INSERT INTO {self._schema}.post_analytics (post_id) VALUES (%s) "
                "ON CONFLICT (post_id) DO NOTHING",
                (post_id,),
            )
            cur.execute(
                f"SELECT {POST_ANALYTICS_COLUMNS} FROM {self._schema}.post_analytics "
                "WHERE post_id = %s FOR UPDATE",
                (post_id,),
            )
            current = PostAnalytics.model_validate(cur.fetchone())
            updated = apply_post_increment(current, increment, viewed_at=datetime.now(timezone.utc))
            cur.execute(
                f"""
                UPDATE {self._schema}.post_analytics SET
                    views = %(views)s,
                    unique_views = %(unique_views)s,
                    likes = %(likes)s,
                    shares = %(shares)s,
                    comments_count = %(comments_count)s,
                    engagement_rate = %(engagement_rate)s,
                    last_viewed = %(last_viewed)s,
                    updated_at = now()
                WHERE post_id = %(post_id)s
                """,
                updated.model_dump(),
            )
        logger.debug("Post %s analytics updated: views=%d", post_id, updated.views)
        return updated

    def increment_promotion(
        self, promotion_id: str, increment: AnalyticsIncrement
    ) -> PromotionAnalytics:
        with self._transaction() as cur:
            cur.execute(
                f"INSERT INTO {self._schema}.promotion_analytics (promotion_id) VALUES (%s) "
                "ON CONFLICT (promotion_id) DO NOTHING",
                (promotion_id,),
            )
            cur.execute(
                f"SELECT {PROMOTION_ANALYTICS_COLUMNS} FROM {self._schema}.promotion_analytics "
                "WHERE promotion_id = %s FOR UPDATE",
                (promotion_id,),
            )
            current = PromotionAnalytics.model_validate(cur.fetchone())
            updated = apply_promotion_increment(current, increment)
            cur.execute(
                f"""
                UPDATE {self._schema}.promotion_analytics SET
                    total_views = %(total_views)s,
                    unique_views = %(unique_views)s,
                    total_clicks = %(total_clicks)s,
                    unique_clicks = %(unique_clicks)s,
                    total_closes = %(total_closes)s,
                    click_through_rate = %(click_through_rate)s,
                    conversion_rate = %(conversion_rate)s,
                    updated_at = now()
                WHERE promotion_id = %(promotion_id)s
                """,
                updated.model_dump(),
            )
        logger.debug(
            "Promotion %s analytics updated: views=%d clicks=%d",
            promotion_id,
            updated.total_views,
            updated.total_clicks,
        )
        return updated

    def record_event(self, event: EngagementEvent) -> None:
        record = event.to_db_record()
        record["event_data"] = Json(record["event_data"])
        with self._transaction() as cur:
            cur.execute(
                f"""
                INSERT INTO {self._schema}.engagement_events
                    (entity_kind, entity_id, event_type, visitor_id, session_id,
                     fingerprint, page, referrer, user_agent, event_data, occurred_at)
                VALUES
                    (%(entity_kind)s, %(entity_id)s, %(event_type)s, %(visitor_id)s,
                     %(session_id)s, %(fingerprint)s, %(page)s, %(referrer)s, %(user_agent)s,
                     %(event_data)s, %(occurred_at)s)
                """,
                record,
            )

    def record_session(self, start: SessionStart) -> None:
        with self._transaction() as cur:
            cur.execute(
                f"""
                INSERT INTO {self._schema}.visitor_sessions
                    (session_id, visitor_id, user_agent, referrer, landing_page,
                     fingerprint, started_at)
                VALUES
                    (%(session_id)s, %(visitor_id)s, %(user_agent)s, %(referrer)s,
                     %(landing_page)s, %(fingerprint)s, %(started_at)s)
                ON CONFLICT (session_id) DO NOTHING
                """,
                start.to_db_record(),
            )
            if cur.rowcount == 0:
                logger.debug("Session %s already recorded", start.session_id)

    def list_post_analytics(self) -> list[PostAnalytics]:
        with self._transaction() as cur:
            cur.execute(
                f"SELECT {POST_ANALYTICS_COLUMNS} FROM {self._schema}.post_analytics "
                "ORDER BY views DESC"
            )
            rows = cur.fetchall()
        return [PostAnalytics.model_validate(row) for row in rows]

    def list_promotion_analytics(self) -> list[PromotionAnalytics]:
        with self._transaction() as cur:
            cur.execute(
                f"SELECT {PROMOTION_ANALYTICS_COLUMNS} FROM {self._schema}.promotion_analytics "
                "ORDER BY total_views DESC"
            )
            rows = cur.fetchall()
        return [PromotionAnalytics.model_validate(row) for row in rows]


def check_postgresql_connection(settings: Settings | None = None) -> bool:
    """
    Check if PostgreSQL is reachable.

    Args:
        settings: Application settings. If None, uses get_settings().

    Returns:
        True if connection successful, False otherwise
    """
    try:
        settings = settings or get_settings()
        conn = psycopg2.connect(_add_connect_timeout(settings.postgres.connection_string))
        conn.close()
        return True
    except psycopg2.Error:
        return False
