# ==============================================================================
# Visitor Session Tracker
# ==============================================================================
"""
Per-browser visitor identity and view de-duplication.

The tracker keeps a VisitorSession blob in the browser's durable store and
guarantees each visitor is counted at most once per post/promotion per
session, which keeps "unique view" counters meaningful.

Session lifecycle:
- created lazily on first access when no valid session is stored
- refreshed (lastActivity) on every tracked interaction
- replaced by a new id with empty view sets after the inactivity timeout
- replaced on explicit clear_session()

Storage failures never propagate: they are logged and the tracker behaves as
if nothing had been viewed yet, so analytics may over-count but content is
never blocked.

One tracker is built per browser context and passed to its consumers.
"""

import logging
import secrets
from collections.abc import Callable
from datetime import datetime, timezone

from pydantic import ValidationError

from blogengage.base.storage import KeyValueStore, StorageError
from blogengage.core.fingerprint import compute_fingerprint
from blogengage.core.models import DeviceProfile, EntityKind, VisitorSession
from blogengage.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)

_ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_ID_RANDOM_LENGTH = 11


def utc_now() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


def generate_visitor_id(now: datetime) -> str:
    """
    Generate a probabilistically unique visitor token.

    Format: visitor_{epoch_ms}_{11 random base36 chars}
    """
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_RANDOM_LENGTH))
    return f"visitor_{int(now.timestamp() * 1000)}_{suffix}"


class VisitorTracker:
    """
    Visitor session tracker over a durable KeyValueStore.

    Every operation re-reads the stored blob, so several trackers sharing one
    store (e.g. one per request) observe the same session.
    """

    def __init__(
        self,
        store: KeyValueStore,
        timeout_minutes: int = 30,
        session_key: str = "nf_visitor_session",
        visitor_cookie_key: str = "nf_visitor_id",
        visitor_cookie_days: int = 365,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the tracker.

        Args:
            store: Durable storage for the session blob and visitor cookie
            timeout_minutes: Inactivity timeout after which a session is replaced
            session_key: Storage key of the session blob
            visitor_cookie_key: Storage key of the long-lived visitor id
            visitor_cookie_days: Lifetime of the long-lived visitor id
            clock: Source of timezone-aware "now"
        """
        self._store = store
        self.timeout_seconds = timeout_minutes * 60
        self._session_key = session_key
        self._cookie_key = visitor_cookie_key
        self._cookie_ttl = visitor_cookie_days * 24 * 3600
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        store: KeyValueStore,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> "VisitorTracker":
        """Build a tracker configured from TrackingSettings."""
        tracking = (settings or get_settings()).tracking
        return cls(
            store,
            timeout_minutes=tracking.session_timeout_minutes,
            session_key=tracking.session_key,
            visitor_cookie_key=tracking.visitor_cookie_key,
            visitor_cookie_days=tracking.visitor_cookie_days,
            clock=clock,
        )

    # ==========================================================================
    # Persistence
    # ==========================================================================

    def _load(self) -> VisitorSession | None:
        try:
            raw = self._store.get(self._session_key)
        except StorageError as e:
            logger.warning("Visitor storage unavailable, starting fresh session: %s", e)
            return None
        if raw is None:
            return None
        try:
            return VisitorSession.from_storage(raw)
        except (ValidationError, ValueError) as e:
            logger.warning("Discarding malformed visitor session: %s", e)
            return None

    def _save(self, session: VisitorSession) -> bool:
        try:
            self._store.set(self._session_key, session.to_storage())
            return True
        except StorageError as e:
            logger.error("Error saving visitor session %s: %s", session.id, e)
            return False

    def create_session(self, now: datetime) -> VisitorSession:
        """
        Create a new empty session (not persisted).

        Args:
            now: Creation time, also used as lastActivity

        Returns:
            New session with a fresh id and empty view sets
        """
        return VisitorSession(
            id=generate_visitor_id(now),
            created_at=now,
            last_activity=now,
        )

    def _resolve(self, now: datetime) -> VisitorSession:
        """Return the stored session if still valid, else a new one; lastActivity set to now."""
        session = self._load()
        if session is None:
            return self.create_session(now)
        if session.is_expired(now, self.timeout_seconds):
            logger.info("Visitor session %s expired after inactivity", session.id)
            return self.create_session(now)
        session.last_activity = now
        return session

    # ==========================================================================
    # Public API
    # ==========================================================================

    def get_or_create_session(self) -> VisitorSession:
        """
        Load the persisted session, replacing it if absent, stale or malformed.

        The result is written back so its lastActivity is refreshed.

        Returns:
            The current visitor session
        """
        session = self._resolve(self._clock())
        self._save(session)
        return session

    def get_visitor_id(self) -> str:
        """Id of the current visitor session."""
        return self.get_or_create_session().id

    def has_viewed(self, kind: EntityKind | str, entity_id: str) -> bool:
        """Check whether an entity was already counted in the current session."""
        session = self._load()
        if session is None or session.is_expired(self._clock(), self.timeout_seconds):
            return False
        return str(entity_id) in session.viewed(EntityKind(kind))

    def mark_viewed(self, kind: EntityKind | str, entity_id: str) -> bool:
        """
        Record a view, reporting whether it is new for this session.

        The storage write is committed before this returns, so a caller can
        issue the remote increment afterwards without risking double counts
        from a racing re-render.

        Args:
            kind: "post" or "promotion"
            entity_id: Identifier of the viewed entity

        Returns:
            True if this is the first view in the session (count it),
            False if already counted (do nothing)
        """
        kind = EntityKind(kind)
        entity_id = str(entity_id)
        session = self._resolve(self._clock())
        viewed = session.viewed(kind)

        if entity_id in viewed:
            return False

        viewed.add(entity_id)
        self._save(session)
        logger.debug("%s %s marked as viewed by visitor %s", kind.value, entity_id, session.id)
        return True

    def clear_session(self) -> VisitorSession:
        """
        Discard the persisted session and start a new empty one.

        Returns:
            The new session
        """
        try:
            self._store.remove(self._session_key)
        except StorageError as e:
            logger.error("Error clearing visitor session: %s", e)
        session = self.create_session(self._clock())
        self._save(session)
        logger.info("Visitor session reset, new id %s", session.id)
        return session

    def get_fingerprint(self, profile: DeviceProfile) -> str:
        """Device fingerprint for analytics enrichment (see core.fingerprint)."""
        return compute_fingerprint(profile)

    # ==========================================================================
    # Long-lived visitor id
    # ==========================================================================

    def ensure_visitor_cookie(self) -> str:
        """
        Set the long-lived visitor id to the current session id if absent.

        Returns:
            The long-lived visitor id
        """
        try:
            existing = self._store.get(self._cookie_key)
            if existing:
                return existing
            visitor_id = self.get_visitor_id()
            self._store.set(self._cookie_key, visitor_id, ttl_seconds=self._cookie_ttl)
            return visitor_id
        except StorageError as e:
            logger.warning("Could not persist visitor cookie: %s", e)
            return self.get_visitor_id()

    def known_visitor_id(self) -> str:
        """Long-lived visitor id if one was issued, else the current session id."""
        try:
            cookie = self._store.get(self._cookie_key)
        except StorageError as e:
            logger.warning("Visitor storage unavailable: %s", e)
            cookie = None
        return cookie or self.get_visitor_id()

    def is_returning_visitor(self) -> bool:
        """
        Whether this browser was seen in an earlier session.

        True when the long-lived id exists and differs from the current
        session id (it was issued by a previous, since-expired session).
        """
        try:
            cookie = self._store.get(self._cookie_key)
        except StorageError as e:
            logger.warning("Visitor storage unavailable, assuming new visitor: %s", e)
            return False
        if not cookie:
            return False
        return cookie != self.get_visitor_id()
