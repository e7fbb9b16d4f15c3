# ==============================================================================
# Tests for EngagementService
# ==============================================================================
"""
Tests for the service wiring tracker, evaluator and repositories together.

The repositories are MagicMocks; the tracker and evaluator run over
in-memory stores, and remote calls go through a real BoundedExecutor.
"""

import threading
from unittest.mock import MagicMock

import pytest

from blogengage.core.fingerprint import compute_fingerprint
from blogengage.core.models import (
    AnalyticsIncrement,
    DeviceProfile,
    EngagementType,
    EntityKind,
)
from blogengage.infrastructure.bounded import BoundedExecutor
from blogengage.services.engagement import EngagementService, normalize_link
from blogengage.utils.config import PromotionSettings, Settings

PROFILE = DeviceProfile(user_agent="Mozilla/5.0", language="en-US", screen_width=1280)


@pytest.fixture()
def promotion_repo():
    repo = MagicMock()
    repo.list_active.return_value = []
    return repo


@pytest.fixture()
def analytics_repo():
    return MagicMock()


@pytest.fixture()
def bounded():
    executor = BoundedExecutor(max_workers=2)
    yield executor
    executor.shutdown(wait=True)


@pytest.fixture()
def service(tracker, evaluator, promotion_repo, analytics_repo, bounded):
    settings = Settings(
        promotion=PromotionSettings(fetch_timeout_seconds=0.2, tracking_timeout_seconds=0.2)
    )
    return EngagementService(
        tracker,
        evaluator,
        promotion_repo,
        analytics_repo,
        bounded,
        profile=PROFILE,
        settings=settings,
    )


def _recorded_events(analytics_repo):
    return [c.args[0] for c in analytics_repo.record_event.call_args_list]


def _recorded_sessions(analytics_repo):
    return [c.args[0] for c in analytics_repo.record_session.call_args_list]


# ==============================================================================
# Sessions
# ==============================================================================


class TestStartVisit:
    def test_records_session_once(self, service, tracker, analytics_repo):
        assert service.start_visit("/post/42", referrer="https://news.example") is True
        assert service.start_visit("/about") is False

        (start,) = _recorded_sessions(analytics_repo)
        assert start.session_id == tracker.get_visitor_id()
        assert start.visitor_id == start.session_id
        assert start.landing_page == "/post/42"
        assert start.referrer == "https://news.example"
        assert start.user_agent == "Mozilla/5.0"
        assert start.fingerprint == compute_fingerprint(PROFILE)

    def test_new_session_after_inactivity(self, service, tracker, analytics_repo, clock):
        service.start_visit("/")
        first_session = tracker.get_visitor_id()
        tracker.ensure_visitor_cookie()
        clock.advance(minutes=31)

        assert service.start_visit("/archive") is True

        first, second = _recorded_sessions(analytics_repo)
        assert second.session_id != first_session
        assert second.visitor_id == first_session
        assert second.landing_page == "/archive"

    def test_first_event_records_session(self, service, analytics_repo):
        service.track_post_view("42", page="/post/42")
        service.track_post_engagement("42", "like")

        (start,) = _recorded_sessions(analytics_repo)
        assert start.landing_page == "/post/42"

    def test_events_carry_referrer_and_user_agent(self, service, analytics_repo):
        service.start_visit("/", referrer="https://search.example")
        service.track_post_view("42", page="/post/42")

        (event,) = _recorded_events(analytics_repo)
        assert event.referrer == "https://search.example"
        assert event.user_agent == "Mozilla/5.0"

    def test_session_write_failure_does_not_raise(self, service, analytics_repo):
        analytics_repo.record_session.side_effect = ConnectionError("down")

        assert service.start_visit("/") is True
        assert service.track_post_view("42") is True
        analytics_repo.increment_post.assert_called_once()


# ==============================================================================
# Posts
# ==============================================================================


class TestTrackPostView:
    def test_first_view_reported_once(self, service, analytics_repo):
        assert service.track_post_view("42", page="/post/42") is True
        assert service.track_post_view("42", page="/post/42") is False

        analytics_repo.increment_post.assert_called_once_with(
            "42", AnalyticsIncrement(views=1, unique_views=1)
        )
        assert analytics_repo.record_event.call_count == 1

    def test_event_is_enriched(self, service, tracker, analytics_repo):
        service.track_post_view("42", page="/post/42")

        (event,) = _recorded_events(analytics_repo)
        assert event.entity_kind == EntityKind.POST
        assert event.event_type == EngagementType.VIEW
        assert event.visitor_id == tracker.get_visitor_id()
        assert event.fingerprint == compute_fingerprint(PROFILE)
        assert event.page == "/post/42"

    def test_view_is_marked_before_remote_call(self, service, tracker, analytics_repo):
        seen = {}
        analytics_repo.increment_post.side_effect = lambda post_id, inc: seen.setdefault(
            "marked", tracker.has_viewed("post", post_id)
        )

        service.track_post_view("42")

        assert seen["marked"] is True

    def test_remote_failure_does_not_raise(self, service, analytics_repo, tracker):
        analytics_repo.increment_post.side_effect = ConnectionError("down")

        assert service.track_post_view("42") is True
        assert tracker.has_viewed("post", "42") is True

    def test_slow_remote_is_abandoned(self, service, analytics_repo):
        release = threading.Event()
        analytics_repo.increment_post.side_effect = lambda *args: release.wait(5)

        assert service.track_post_view("42") is True
        release.set()


class TestTrackPostEngagement:
    def test_like(self, service, analytics_repo):
        service.track_post_engagement("42", "like", {"source": "button"})

        analytics_repo.increment_post.assert_called_once_with("42", AnalyticsIncrement(likes=1))
        (event,) = _recorded_events(analytics_repo)
        assert event.event_type == EngagementType.LIKE
        assert event.event_data == {"source": "button"}

    def test_engagements_are_not_deduplicated(self, service, analytics_repo):
        service.track_post_engagement("42", EngagementType.SHARE)
        service.track_post_engagement("42", EngagementType.SHARE)

        assert analytics_repo.increment_post.call_count == 2

    def test_promotion_event_rejected(self, service, analytics_repo):
        with pytest.raises(ValueError):
            service.track_post_engagement("42", "click")
        analytics_repo.increment_post.assert_not_called()


# ==============================================================================
# Promotions
# ==============================================================================


class TestLoadPromotion:
    def test_selects_first_eligible(self, service, promotion_repo, make_promotion):
        promotion_repo.list_active.return_value = [
            make_promotion("a", pages=["/about"]),
            make_promotion("b", pages=["all"]),
        ]

        assert service.load_promotion("/post").id == "b"

    def test_fetch_failure_means_no_promotion(self, service, promotion_repo):
        promotion_repo.list_active.side_effect = ConnectionError("down")

        assert service.load_promotion("/") is None

    def test_fetch_timeout_means_no_promotion(self, service, promotion_repo, make_promotion):
        release = threading.Event()

        def slow():
            release.wait(5)
            return [make_promotion()]

        promotion_repo.list_active.side_effect = slow

        assert service.load_promotion("/") is None
        release.set()

    def test_sets_visitor_cookie(self, service, durable, tracker):
        service.load_promotion("/")

        assert durable.get("nf_visitor_id") == tracker.get_visitor_id()

    def test_returning_visitor_audience(self, service, promotion_repo, make_promotion, clock):
        promotion_repo.list_active.return_value = [
            make_promotion("new", target_audience="new_visitors", show_frequency="always"),
            make_promotion("back", target_audience="returning_visitors", show_frequency="always"),
        ]

        assert service.load_promotion("/").id == "new"
        clock.advance(days=1)
        assert service.load_promotion("/").id == "back"


class TestRevealPromotion:
    def test_marks_displayed_and_counts_unique_view(
        self, service, evaluator, analytics_repo, make_promotion
    ):
        promotion = make_promotion("7")

        assert service.reveal_promotion(promotion, page="/") is True

        assert evaluator.should_display(promotion) is False
        analytics_repo.increment_promotion.assert_called_once_with(
            "7", AnalyticsIncrement(views=1, unique_views=1)
        )

    def test_second_reveal_in_session_not_counted(self, service, analytics_repo, make_promotion):
        promotion = make_promotion("7", show_frequency="always")

        service.reveal_promotion(promotion)
        assert service.reveal_promotion(promotion) is False

        assert analytics_repo.increment_promotion.call_count == 1


class TestClickPromotion:
    @pytest.mark.parametrize(
        "link,expected",
        [
            ("example.com", "https://example.com"),
            ("http://example.com", "http://example.com"),
            ("https://example.com/a", "https://example.com/a"),
            ("", None),
            (None, None),
        ],
    )
    def test_normalize_link(self, link, expected):
        assert normalize_link(link) == expected

    def test_returns_target_and_counts_click(self, service, analytics_repo, make_promotion):
        promotion = make_promotion("7")

        assert service.click_promotion(promotion) == "https://example.com/subscribe"
        analytics_repo.increment_promotion.assert_called_once_with(
            "7", AnalyticsIncrement(clicks=1, unique_clicks=1)
        )

    def test_repeat_click_not_unique(self, service, analytics_repo, make_promotion):
        promotion = make_promotion("7")

        service.click_promotion(promotion)
        service.click_promotion(promotion)

        last_increment = analytics_repo.increment_promotion.call_args.args[1]
        assert last_increment == AnalyticsIncrement(clicks=1)

    def test_tracking_failure_still_navigates(self, service, analytics_repo, make_promotion):
        analytics_repo.increment_promotion.side_effect = ConnectionError("down")

        assert service.click_promotion(make_promotion()) == "https://example.com/subscribe"


class TestClosePromotion:
    def test_close_reported_every_time(self, service, analytics_repo, make_promotion):
        promotion = make_promotion("7")

        service.close_promotion(promotion)
        service.close_promotion(promotion)

        assert analytics_repo.increment_promotion.call_count == 2
        analytics_repo.increment_promotion.assert_called_with("7", AnalyticsIncrement(closes=1))
        assert _recorded_events(analytics_repo)[0].event_type == EngagementType.CLOSE
