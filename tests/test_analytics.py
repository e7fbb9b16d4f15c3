# ==============================================================================
# Tests for Analytics Math
# ==============================================================================
"""
Unit tests for increments, derived rates, summaries and count formatting.
"""

from datetime import datetime, timezone

import pytest

from blogengage.core.analytics import (
    apply_post_increment,
    apply_promotion_increment,
    format_count,
    percentage,
    post_engagement_increment,
    post_view_increment,
    promotion_increment,
    summarize_posts,
    summarize_promotions,
)
from blogengage.core.models import AnalyticsIncrement, PostAnalytics, PromotionAnalytics

VIEWED_AT = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class TestPercentage:
    def test_zero_denominator(self):
        assert percentage(5, 0) == 0.0

    def test_ratio(self):
        assert percentage(1, 4) == 25.0


# ==============================================================================
# Increments
# ==============================================================================


class TestIncrements:
    def test_unique_post_view(self):
        assert post_view_increment(is_unique=True) == AnalyticsIncrement(views=1, unique_views=1)

    def test_repeat_post_view(self):
        assert post_view_increment(is_unique=False) == AnalyticsIncrement(views=1)

    @pytest.mark.parametrize(
        "event_type,field",
        [("like", "likes"), ("share", "shares"), ("comment", "comments")],
    )
    def test_post_engagements(self, event_type, field):
        increment = post_engagement_increment(event_type)
        assert getattr(increment, field) == 1
        assert increment.views == 0

    @pytest.mark.parametrize("event_type", ["click", "close"])
    def test_promotion_events_rejected_for_posts(self, event_type):
        with pytest.raises(ValueError):
            post_engagement_increment(event_type)

    def test_unknown_event_type_rejected(self):
        with pytest.raises(ValueError):
            post_engagement_increment("bookmark")

    def test_promotion_view_click_close(self):
        assert promotion_increment("view", is_unique=True) == AnalyticsIncrement(
            views=1, unique_views=1
        )
        assert promotion_increment("click") == AnalyticsIncrement(clicks=1)
        assert promotion_increment("click", is_unique=True) == AnalyticsIncrement(
            clicks=1, unique_clicks=1
        )
        assert promotion_increment("close") == AnalyticsIncrement(closes=1)

    @pytest.mark.parametrize("event_type", ["like", "share", "comment"])
    def test_post_events_rejected_for_promotions(self, event_type):
        with pytest.raises(ValueError):
            promotion_increment(event_type)

    def test_is_empty(self):
        assert AnalyticsIncrement().is_empty
        assert not AnalyticsIncrement(closes=1).is_empty


# ==============================================================================
# Applying increments
# ==============================================================================


class TestApplyPostIncrement:
    def test_first_view_of_new_post(self):
        updated = apply_post_increment(
            PostAnalytics(post_id="42"), post_view_increment(True), viewed_at=VIEWED_AT
        )

        assert updated.views == 1
        assert updated.unique_views == 1
        assert updated.engagement_rate == 0.0
        assert updated.last_viewed == VIEWED_AT

    def test_engagement_rate_recomputed(self):
        current = PostAnalytics(post_id="42", views=10, likes=2, shares=1, comments_count=1)

        updated = apply_post_increment(current, AnalyticsIncrement(likes=1))

        assert updated.likes == 3
        assert updated.engagement_rate == pytest.approx(50.0)

    def test_engagement_does_not_touch_last_viewed(self):
        current = PostAnalytics(post_id="42", views=1)

        updated = apply_post_increment(current, AnalyticsIncrement(shares=1), viewed_at=VIEWED_AT)

        assert updated.last_viewed is None

    def test_input_not_mutated(self):
        current = PostAnalytics(post_id="42", views=3)
        apply_post_increment(current, AnalyticsIncrement(views=1))
        assert current.views == 3


class TestApplyPromotionIncrement:
    def test_rates_recomputed(self):
        current = PromotionAnalytics(
            promotion_id="7", total_views=9, unique_views=4, total_clicks=2, unique_clicks=1
        )

        updated = apply_promotion_increment(
            current, AnalyticsIncrement(views=1, unique_views=1)
        )

        assert updated.total_views == 10
        assert updated.click_through_rate == pytest.approx(20.0)
        assert updated.conversion_rate == pytest.approx(20.0)

    def test_click_and_close(self):
        current = PromotionAnalytics(promotion_id="7", total_views=4, unique_views=2)

        updated = apply_promotion_increment(current, promotion_increment("click", is_unique=True))
        updated = apply_promotion_increment(updated, promotion_increment("close"))

        assert updated.total_clicks == 1
        assert updated.unique_clicks == 1
        assert updated.total_closes == 1
        assert updated.click_through_rate == pytest.approx(25.0)
        assert updated.conversion_rate == pytest.approx(50.0)

    def test_click_without_views_has_zero_rates(self):
        updated = apply_promotion_increment(
            PromotionAnalytics(promotion_id="7"), promotion_increment("click")
        )
        assert updated.click_through_rate == 0.0
        assert updated.conversion_rate == 0.0


# ==============================================================================
# Summaries
# ==============================================================================


class TestSummaries:
    def test_empty(self):
        assert summarize_posts([]).total_posts == 0
        assert summarize_promotions([]).avg_click_through_rate == 0.0

    def test_post_totals(self):
        summary = summarize_posts(
            [
                PostAnalytics(
                    post_id="1", views=10, unique_views=8, likes=1, engagement_rate=10.0
                ),
                PostAnalytics(
                    post_id="2", views=30, unique_views=20, shares=3, engagement_rate=30.0
                ),
            ]
        )

        assert summary.total_posts == 2
        assert summary.total_views == 40
        assert summary.total_unique_views == 28
        assert summary.total_likes == 1
        assert summary.total_shares == 3
        assert summary.avg_engagement_rate == pytest.approx(20.0)

    def test_promotion_totals(self):
        summary = summarize_promotions(
            [
                PromotionAnalytics(
                    promotion_id="1", total_views=10, total_clicks=1, click_through_rate=10.0
                ),
                PromotionAnalytics(
                    promotion_id="2", total_views=10, total_clicks=3, click_through_rate=30.0
                ),
            ]
        )

        assert summary.total_promotions == 2
        assert summary.total_clicks == 4
        assert summary.avg_click_through_rate == pytest.approx(20.0)


class TestFormatCount:
    @pytest.mark.parametrize(
        "value,expected",
        [(0, "0"), (999, "999"), (1000, "1.0K"), (1240, "1.2K"), (3_400_000, "3.4M")],
    )
    def test_values(self, value, expected):
        assert format_count(value) == expected
