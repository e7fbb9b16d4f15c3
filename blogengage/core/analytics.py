# ==============================================================================
# Engagement Analytics - Pure Domain Logic
# ==============================================================================
"""
Counter increments, derived rates and dashboard summaries.

The remote store owns the aggregates; the client computes the increment for
each event and the ratios it sends back with the new counters:

- engagement_rate    = (likes + shares + comments) / views * 100
- click_through_rate = total_clicks / total_views * 100
- conversion_rate    = unique_clicks / unique_views * 100

Every rate is 0 when its denominator is 0. All functions here are pure.
"""

from datetime import datetime

from blogengage.core.models import (
    AnalyticsIncrement,
    AnalyticsSummary,
    EngagementType,
    PostAnalytics,
    PromotionAnalytics,
    PromotionSummary,
)


def percentage(numerator: int | float, denominator: int | float) -> float:
    """numerator / denominator * 100, or 0.0 when denominator is 0."""
    if not denominator:
        return 0.0
    return numerator / denominator * 100


# ==============================================================================
# Increments
# ==============================================================================


def post_view_increment(is_unique: bool) -> AnalyticsIncrement:
    """Increment for a post view; unique views also bump unique_views."""
    return AnalyticsIncrement(views=1, unique_views=1 if is_unique else 0)


def post_engagement_increment(event_type: EngagementType | str) -> AnalyticsIncrement:
    """
    Increment for an explicit post engagement.

    Raises:
        ValueError: For event types that do not apply to posts
    """
    event_type = EngagementType(event_type)
    if event_type == EngagementType.LIKE:
        return AnalyticsIncrement(likes=1)
    if event_type == EngagementType.SHARE:
        return AnalyticsIncrement(shares=1)
    if event_type == EngagementType.COMMENT:
        return AnalyticsIncrement(comments=1)
    if event_type == EngagementType.VIEW:
        return post_view_increment(is_unique=False)
    raise ValueError(f"Unsupported post engagement: {event_type.value}")


def promotion_increment(
    event_type: EngagementType | str, is_unique: bool = False
) -> AnalyticsIncrement:
    """
    Increment for a promotion view, click or close.

    Raises:
        ValueError: For event types that do not apply to promotions
    """
    event_type = EngagementType(event_type)
    if event_type == EngagementType.VIEW:
        return AnalyticsIncrement(views=1, unique_views=1 if is_unique else 0)
    if event_type == EngagementType.CLICK:
        return AnalyticsIncrement(clicks=1, unique_clicks=1 if is_unique else 0)
    if event_type == EngagementType.CLOSE:
        return AnalyticsIncrement(closes=1)
    raise ValueError(f"Unsupported promotion engagement: {event_type.value}")


# ==============================================================================
# Applying increments
# ==============================================================================


def apply_post_increment(
    current: PostAnalytics,
    increment: AnalyticsIncrement,
    viewed_at: datetime | None = None,
) -> PostAnalytics:
    """
    Add deltas to a post aggregate and recompute engagement_rate.

    Args:
        current: Aggregate before the event
        increment: Counter deltas
        viewed_at: Timestamp recorded as last_viewed when views change

    Returns:
        New aggregate (the input is not mutated)
    """
    views = current.views + increment.views
    likes = current.likes + increment.likes
    shares = current.shares + increment.shares
    comments = current.comments_count + increment.comments

    return current.model_copy(
        update={
            "views": views,
            "unique_views": current.unique_views + increment.unique_views,
            "likes": likes,
            "shares": shares,
            "comments_count": comments,
            "engagement_rate": percentage(likes + shares + comments, views),
            "last_viewed": viewed_at if increment.views and viewed_at else current.last_viewed,
        }
    )


def apply_promotion_increment(
    current: PromotionAnalytics, increment: AnalyticsIncrement
) -> PromotionAnalytics:
    """
    Add deltas to a promotion aggregate and recompute its rates.

    Returns:
        New aggregate (the input is not mutated)
    """
    total_views = current.total_views + increment.views
    unique_views = current.unique_views + increment.unique_views
    total_clicks = current.total_clicks + increment.clicks
    unique_clicks = current.unique_clicks + increment.unique_clicks

    return current.model_copy(
        update={
            "total_views": total_views,
            "unique_views": unique_views,
            "total_clicks": total_clicks,
            "unique_clicks": unique_clicks,
            "total_closes": current.total_closes + increment.closes,
            "click_through_rate": percentage(total_clicks, total_views),
            "conversion_rate": percentage(unique_clicks, unique_views),
        }
    )


# ==============================================================================
# Summaries
# ==============================================================================


def summarize_posts(analytics: list[PostAnalytics]) -> AnalyticsSummary:
    """Totals and average engagement rate across post aggregates."""
    if not analytics:
        return AnalyticsSummary()
    return AnalyticsSummary(
        total_posts=len(analytics),
        total_views=sum(a.views for a in analytics),
        total_unique_views=sum(a.unique_views for a in analytics),
        total_likes=sum(a.likes for a in analytics),
        total_shares=sum(a.shares for a in analytics),
        total_comments=sum(a.comments_count for a in analytics),
        avg_engagement_rate=sum(a.engagement_rate for a in analytics) / len(analytics),
    )


def summarize_promotions(analytics: list[PromotionAnalytics]) -> PromotionSummary:
    """Totals and average click-through rate across promotion aggregates."""
    if not analytics:
        return PromotionSummary()
    return PromotionSummary(
        total_promotions=len(analytics),
        total_views=sum(a.total_views for a in analytics),
        total_unique_views=sum(a.unique_views for a in analytics),
        total_clicks=sum(a.total_clicks for a in analytics),
        total_unique_clicks=sum(a.unique_clicks for a in analytics),
        avg_click_through_rate=sum(a.click_through_rate for a in analytics) / len(analytics),
    )


def format_count(value: int) -> str:
    """Compact count for dashboards: 999, 1.2K, 3.4M."""
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return str(value)
