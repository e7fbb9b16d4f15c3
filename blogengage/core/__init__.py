# ==============================================================================
# Core Domain Logic
# ==============================================================================
"""
Domain logic with no network dependencies.

This module contains:
- Domain models (VisitorSession, Promotion, analytics aggregates)
- Visitor session tracking and view de-duplication
- Promotion targeting and the reveal schedule
- Analytics increments, rates and summaries
- Device fingerprinting

Storage is reached only through the KeyValueStore port, so everything here
is unit-testable with in-memory stores.
"""

from blogengage.core.models import (
    AnalyticsIncrement,
    AnalyticsSummary,
    DeviceProfile,
    DisplayRules,
    EngagementEvent,
    EngagementType,
    EntityKind,
    PostAnalytics,
    Promotion,
    PromotionAnalytics,
    PromotionSummary,
    SessionStart,
    ShowFrequency,
    TargetAudience,
    VisitorSession,
)
from blogengage.core.fingerprint import compute_fingerprint
from blogengage.core.visitor_tracker import VisitorTracker
from blogengage.core.promotion_targeting import PromotionEvaluator, is_eligible, matches_audience
from blogengage.core.reveal import RevealSchedule, RevealState, reveal_delay

__all__ = [
    "AnalyticsIncrement",
    "AnalyticsSummary",
    "DeviceProfile",
    "DisplayRules",
    "EngagementEvent",
    "EngagementType",
    "EntityKind",
    "PostAnalytics",
    "Promotion",
    "PromotionAnalytics",
    "PromotionEvaluator",
    "PromotionSummary",
    "RevealSchedule",
    "RevealState",
    "SessionStart",
    "ShowFrequency",
    "TargetAudience",
    "VisitorSession",
    "VisitorTracker",
    "compute_fingerprint",
    "is_eligible",
    "matches_audience",
    "reveal_delay",
]
