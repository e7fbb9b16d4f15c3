# ==============================================================================
# Promotion Targeting Evaluator
# ==============================================================================
"""
Decides which promotion, if any, a visitor should see on a page.

Two independent checks:
- eligibility: active flag, page list and start/end dates (pure, no storage)
- displayability: show_frequency markers kept in browser storage
    once    -> durable store (never again in this browser)
    session -> session-scoped store (again in the next browsing session)
    always  -> no marker

Input order is preserved everywhere; the first eligible, displayable
promotion wins and no second promotion is stacked or rotated in.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime

from blogengage.base.storage import KeyValueStore, StorageError
from blogengage.core.models import Promotion, ShowFrequency, TargetAudience, as_utc
from blogengage.core.visitor_tracker import utc_now

logger = logging.getLogger(__name__)

ALL_PAGES = "all"
SHOWN_MARKER = "shown"


def is_eligible(promotion: Promotion, page: str | None, now: datetime) -> bool:
    """
    Apply the page and date rules to one promotion.

    Args:
        promotion: Candidate promotion
        page: Current page path; None skips the page rule
        now: Evaluation time; naive values are taken as UTC

    Returns:
        True if the promotion may be shown on this page at this time
    """
    if not promotion.is_active:
        return False
    now = as_utc(now)

    rules = promotion.display_rules
    if rules.pages and page is not None:
        if page not in rules.pages and ALL_PAGES not in rules.pages:
            return False

    if rules.start_date is not None and rules.start_date > now:
        return False
    if rules.end_date is not None and rules.end_date < now:
        return False

    return True


def matches_audience(promotion: Promotion, returning_visitor: bool) -> bool:
    """Check the target_audience rule against the visitor's history."""
    audience = promotion.display_rules.target_audience
    if audience == TargetAudience.NEW_VISITORS:
        return not returning_visitor
    if audience == TargetAudience.RETURNING_VISITORS:
        return returning_visitor
    return True


class PromotionEvaluator:
    """
    Eligibility filtering plus frequency enforcement over browser storage.

    Storage failures are logged and treated as "no marker", so a promotion
    stays displayable when storage is unavailable.
    """

    def __init__(
        self,
        durable_store: KeyValueStore,
        session_store: KeyValueStore,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the evaluator.

        Args:
            durable_store: Store for "once" markers
            session_store: Store for "session" markers
            clock: Source of timezone-aware "now"
        """
        self._durable = durable_store
        self._session = session_store
        self._clock = clock

    @staticmethod
    def marker_key(promotion: Promotion) -> str:
        """Storage key of the display marker for a promotion's frequency."""
        return f"promotion_{promotion.id}_{promotion.show_frequency.value}"

    def _marker_store(self, frequency: ShowFrequency) -> KeyValueStore | None:
        if frequency == ShowFrequency.ONCE:
            return self._durable
        if frequency == ShowFrequency.SESSION:
            return self._session
        return None

    def filter_eligible(
        self,
        promotions: Iterable[Promotion],
        page: str | None = None,
        now: datetime | None = None,
    ) -> list[Promotion]:
        """
        Keep the promotions eligible for a page at a given time.

        Args:
            promotions: Candidates, in priority order
            page: Current page path
            now: Evaluation time; defaults to the evaluator clock

        Returns:
            Eligible promotions in input order
        """
        now = now or self._clock()
        return [p for p in promotions if is_eligible(p, page, now)]

    def should_display(self, promotion: Promotion) -> bool:
        """
        Check the frequency marker for a promotion.

        Returns:
            False if a once/session marker exists, True otherwise
        """
        store = self._marker_store(promotion.show_frequency)
        if store is None:
            return True
        try:
            return store.get(self.marker_key(promotion)) is None
        except StorageError as e:
            logger.warning("Cannot read display marker for %s, allowing: %s", promotion.id, e)
            return True

    def mark_displayed(self, promotion: Promotion) -> None:
        """Write the frequency marker; no-op for "always"."""
        store = self._marker_store(promotion.show_frequency)
        if store is None:
            return
        try:
            store.set(self.marker_key(promotion), SHOWN_MARKER)
        except StorageError as e:
            logger.error("Cannot write display marker for %s: %s", promotion.id, e)

    def select_promotion(
        self,
        promotions: Iterable[Promotion],
        page: str | None = None,
        now: datetime | None = None,
        returning_visitor: bool = False,
    ) -> Promotion | None:
        """
        Pick the promotion to show on this page, if any.

        Args:
            promotions: Candidates, in priority order
            page: Current page path
            now: Evaluation time; defaults to the evaluator clock
            returning_visitor: Whether the visitor was seen in an earlier session

        Returns:
            The first eligible, audience-matching, displayable promotion, or None
        """
        for promotion in self.filter_eligible(promotions, page, now):
            if not matches_audience(promotion, returning_visitor):
                continue
            if self.should_display(promotion):
                return promotion
        return None

    def mark_clicked(self, promotion: Promotion) -> bool:
        """
        Record a click in the session-scoped store.

        Returns:
            True for the first click on this promotion in the browsing
            session (counted as a unique click), False afterwards
        """
        key = f"promotion_{promotion.id}_clicked"
        try:
            if self._session.get(key) is not None:
                return False
            self._session.set(key, SHOWN_MARKER)
        except StorageError as e:
            logger.warning("Cannot track click marker for %s: %s", promotion.id, e)
        return True
