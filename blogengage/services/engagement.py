# ==============================================================================
# Engagement Service
# ==============================================================================
"""
Wires the visitor tracker, the promotion evaluator and the remote repositories
together for one browser context.

Local decisions (already viewed? displayable?) are made first and committed to
browser storage; remote calls then run through BoundedExecutor so a slow or
failing backend never blocks the visitor:

- promotion fetch: bounded by fetch_timeout_seconds, failure = no promotion
- analytics writes: bounded by tracking_timeout_seconds, failure is logged

The first call in each visitor session also records a session start
(landing page, referrer, user agent) through the analytics repository.
"""

import logging
from typing import Any

from blogengage.base.repositories import AnalyticsRepository, PromotionRepository
from blogengage.core.analytics import (
    post_engagement_increment,
    post_view_increment,
    promotion_increment,
)
from blogengage.core.models import (
    AnalyticsIncrement,
    DeviceProfile,
    EngagementEvent,
    EngagementType,
    EntityKind,
    Promotion,
    SessionStart,
)
from blogengage.core.promotion_targeting import PromotionEvaluator
from blogengage.core.visitor_tracker import VisitorTracker
from blogengage.infrastructure.bounded import BoundedExecutor
from blogengage.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


def normalize_link(link: str | None) -> str | None:
    """Navigation target for a button link; bare hosts get an https:// prefix."""
    if not link:
        return None
    link = link.strip()
    if link.startswith(("http://", "https://")):
        return link
    return f"https://{link}"


class EngagementService:
    """
    Visitor-facing engagement operations for one browser context.

    Args:
        tracker: Visitor session tracker for this browser
        evaluator: Promotion evaluator over this browser's stores
        promotion_repo: Remote promotion reads
        analytics_repo: Remote analytics writes
        bounded: Executor bounding every remote call
        profile: Device profile used to fingerprint events (optional)
        settings: Application settings. If None, uses get_settings().
    """

    def __init__(
        self,
        tracker: VisitorTracker,
        evaluator: PromotionEvaluator,
        promotion_repo: PromotionRepository,
        analytics_repo: AnalyticsRepository,
        bounded: BoundedExecutor,
        profile: DeviceProfile | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self._tracker = tracker
        self._evaluator = evaluator
        self._promotions = promotion_repo
        self._analytics = analytics_repo
        self._bounded = bounded
        self._fetch_timeout = settings.promotion.fetch_timeout_seconds
        self._tracking_timeout = settings.promotion.tracking_timeout_seconds
        self._fingerprint = tracker.get_fingerprint(profile) if profile else None
        self._user_agent = profile.user_agent if profile and profile.user_agent else None
        self._referrer: str | None = None
        self._recorded_session_id: str | None = None

    # ==========================================================================
    # Sessions
    # ==========================================================================

    def start_visit(self, landing_page: str | None = None, referrer: str | None = None) -> bool:
        """
        Record the start of a visitor session.

        The referrer is kept for every later event from this browser context.

        Returns:
            True if a new session start was reported
        """
        if referrer:
            self._referrer = referrer
        return self._record_session_start(landing_page)

    def _record_session_start(self, page: str | None) -> bool:
        session = self._tracker.get_or_create_session()
        if session.id == self._recorded_session_id:
            return False
        self._recorded_session_id = session.id
        start = SessionStart(
            session_id=session.id,
            visitor_id=self._tracker.known_visitor_id(),
            user_agent=self._user_agent,
            referrer=self._referrer,
            landing_page=page,
            fingerprint=self._fingerprint,
            started_at=session.created_at,
        )
        self._bounded.run(
            self._analytics.record_session,
            start,
            timeout=self._tracking_timeout,
            label=f"record session {session.id}",
        )
        return True

    # ==========================================================================
    # Remote reporting
    # ==========================================================================

    def _event(
        self,
        kind: EntityKind,
        entity_id: str,
        event_type: EngagementType,
        page: str | None = None,
        event_data: dict[str, Any] | None = None,
    ) -> EngagementEvent:
        self._record_session_start(page)
        visitor_id = self._tracker.get_visitor_id()
        return EngagementEvent(
            entity_kind=kind,
            entity_id=str(entity_id),
            event_type=event_type,
            visitor_id=visitor_id,
            session_id=visitor_id,
            fingerprint=self._fingerprint,
            page=page,
            referrer=self._referrer,
            user_agent=self._user_agent,
            event_data=event_data or {},
        )

    def _write(self, increment: AnalyticsIncrement, event: EngagementEvent) -> None:
        if event.entity_kind == EntityKind.POST:
            self._analytics.increment_post(event.entity_id, increment)
        else:
            self._analytics.increment_promotion(event.entity_id, increment)
        self._analytics.record_event(event)

    def _report(self, increment: AnalyticsIncrement, event: EngagementEvent) -> None:
        """Send one increment plus its event, bounded by the tracking timeout."""
        self._bounded.run(
            self._write,
            increment,
            event,
            timeout=self._tracking_timeout,
            label=f"track {event.entity_kind.value} {event.event_type.value} {event.entity_id}",
        )

    # ==========================================================================
    # Posts
    # ==========================================================================

    def track_post_view(self, post_id: str, page: str | None = None) -> bool:
        """
        Count a post view once per visitor session.

        Returns:
            True if the view was new and reported, False if already counted
        """
        if not self._tracker.mark_viewed(EntityKind.POST, post_id):
            return False
        event = self._event(EntityKind.POST, post_id, EngagementType.VIEW, page)
        self._report(post_view_increment(is_unique=True), event)
        return True

    def track_post_engagement(
        self,
        post_id: str,
        event_type: EngagementType | str,
        event_data: dict[str, Any] | None = None,
    ) -> None:
        """
        Report a like, share or comment on a post.

        Raises:
            ValueError: For event types that do not apply to posts
        """
        increment = post_engagement_increment(event_type)
        event = self._event(
            EntityKind.POST, post_id, EngagementType(event_type), event_data=event_data
        )
        self._report(increment, event)

    # ==========================================================================
    # Promotions
    # ==========================================================================

    def load_promotion(self, page: str | None) -> Promotion | None:
        """
        Fetch active promotions and pick the one to show on this page.

        A fetch that fails or exceeds fetch_timeout_seconds yields None.
        """
        promotions = self._bounded.run(
            self._promotions.list_active,
            timeout=self._fetch_timeout,
            default=[],
            label="fetch active promotions",
        )
        returning = self._tracker.is_returning_visitor()
        self._tracker.ensure_visitor_cookie()
        promotion = self._evaluator.select_promotion(
            promotions or [], page, returning_visitor=returning
        )
        if promotion is not None:
            logger.debug("Selected promotion %s for page %s", promotion.id, page)
        return promotion

    def reveal_promotion(self, promotion: Promotion, page: str | None = None) -> bool:
        """
        Record that a promotion became visible.

        Writes the frequency marker, then counts a unique view if this is the
        first reveal in the visitor session.

        Returns:
            True if a view was reported
        """
        self._evaluator.mark_displayed(promotion)
        if not self._tracker.mark_viewed(EntityKind.PROMOTION, promotion.id):
            return False
        event = self._event(EntityKind.PROMOTION, promotion.id, EngagementType.VIEW, page)
        self._report(promotion_increment(EngagementType.VIEW, is_unique=True), event)
        return True

    def click_promotion(self, promotion: Promotion) -> str | None:
        """
        Report a click on the promotion button.

        Returns:
            The navigation target, returned even if reporting failed
        """
        target = normalize_link(promotion.button_link)
        is_unique = self._evaluator.mark_clicked(promotion)
        event = self._event(
            EntityKind.PROMOTION,
            promotion.id,
            EngagementType.CLICK,
            event_data={"target": target} if target else None,
        )
        self._report(promotion_increment(EngagementType.CLICK, is_unique=is_unique), event)
        return target

    def close_promotion(self, promotion: Promotion) -> None:
        """Report that the visitor dismissed the promotion."""
        event = self._event(EntityKind.PROMOTION, promotion.id, EngagementType.CLOSE)
        self._report(promotion_increment(EngagementType.CLOSE), event)
