# ==============================================================================
# Promotion Reveal Schedule
# ==============================================================================
"""
Timing policy for revealing a selected promotion.

A popup is revealed after its (clamped) delay OR as soon as the visitor
scrolls past a fixed threshold, whichever happens first. The schedule is a
small state machine driven by the host's timer and scroll callbacks:

    PENDING --tick past due_at / scroll past threshold--> SHOWN
    PENDING --cancel (teardown)--------------------------> CANCELLED

Once it leaves PENDING nothing can reveal it again, so a late timer callback
after a scroll-triggered reveal is harmless.
"""

from enum import Enum

from blogengage.core.models import Promotion
from blogengage.utils.config import PromotionSettings, get_settings


class RevealState(str, Enum):
    PENDING = "pending"
    SHOWN = "shown"
    CANCELLED = "cancelled"


def reveal_delay(
    delay_seconds: int | None,
    default: int = 10,
    minimum: int = 1,
    maximum: int = 30,
) -> int:
    """
    Effective reveal delay in seconds.

    A missing or zero delay falls back to the default; the result is clamped
    to [minimum, maximum].
    """
    delay = delay_seconds or default
    return max(minimum, min(maximum, delay))


class RevealSchedule:
    """
    Delay-or-scroll reveal trigger for one promotion on one page view.

    Args:
        delay_seconds: Effective delay (already clamped)
        started_at: Monotonic time at which the page view started
        scroll_threshold_px: Scroll offset that reveals immediately
    """

    def __init__(self, delay_seconds: float, started_at: float, scroll_threshold_px: int = 200):
        self.delay_seconds = delay_seconds
        self.started_at = started_at
        self.scroll_threshold_px = scroll_threshold_px
        self.state = RevealState.PENDING
        self.revealed_at: float | None = None

    @classmethod
    def for_promotion(
        cls,
        promotion: Promotion,
        started_at: float,
        settings: PromotionSettings | None = None,
    ) -> "RevealSchedule":
        """Build a schedule using the promotion's delay and PromotionSettings bounds."""
        settings = settings or get_settings().promotion
        delay = reveal_delay(
            promotion.display_rules.delay_seconds,
            default=settings.default_delay_seconds,
            minimum=settings.min_delay_seconds,
            maximum=settings.max_delay_seconds,
        )
        return cls(delay, started_at, settings.scroll_threshold_px)

    @property
    def due_at(self) -> float:
        """Monotonic time at which the timer reveals the promotion."""
        return self.started_at + self.delay_seconds

    @property
    def is_pending(self) -> bool:
        return self.state == RevealState.PENDING

    @property
    def is_shown(self) -> bool:
        return self.state == RevealState.SHOWN

    def _reveal(self, at: float | None) -> bool:
        self.state = RevealState.SHOWN
        self.revealed_at = at
        return True

    def on_tick(self, now: float) -> bool:
        """
        Timer callback.

        Returns:
            True if this call revealed the promotion
        """
        if self.is_pending and now >= self.due_at:
            return self._reveal(now)
        return False

    def on_scroll(self, scroll_y: float, now: float | None = None) -> bool:
        """
        Scroll callback.

        Returns:
            True if this call revealed the promotion (timer is now irrelevant)
        """
        if self.is_pending and scroll_y > self.scroll_threshold_px:
            return self._reveal(now)
        return False

    def cancel(self) -> bool:
        """
        Cancel a pending reveal (host view torn down).

        Returns:
            True if a pending reveal was cancelled
        """
        if not self.is_pending:
            return False
        self.state = RevealState.CANCELLED
        return True
