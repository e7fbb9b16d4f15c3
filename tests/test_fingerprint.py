# ==============================================================================
# Tests for Device Fingerprinting
# ==============================================================================
"""
Unit tests for the 32-bit rolling hash and base-36 rendering.

Reference values are the well-known String.hashCode() results, which use the
same hash = hash * 31 + code unit recurrence.
"""

import pytest

from blogengage.core.fingerprint import (
    compute_fingerprint,
    fingerprint_source,
    rolling_hash,
    to_base36,
)
from blogengage.core.models import DeviceProfile


class TestRollingHash:
    def test_empty(self):
        assert rolling_hash("") == 0

    def test_small_values(self):
        assert rolling_hash("a") == 97
        assert rolling_hash("ab") == 97 * 31 + 98

    def test_known_value(self):
        assert rolling_hash("hello") == 99162322

    def test_wraps_to_signed_32_bit(self):
        assert rolling_hash("polygenelubricants") == -(2**31)

    def test_non_bmp_uses_surrogate_pairs(self):
        # U+1F600 is D83D DE00 in UTF-16
        assert rolling_hash("\U0001f600") == 0xD83D * 31 + 0xDE00

    def test_lone_surrogate_hashed_as_code_unit(self):
        assert rolling_hash("a\ud800") == 97 * 31 + 0xD800


class TestBase36:
    @pytest.mark.parametrize(
        "value,expected",
        [(0, "0"), (35, "z"), (36, "10"), (3105, "2e9"), (2**31 - 1, "zik0zj")],
    )
    def test_values(self, value, expected):
        assert to_base36(value) == expected

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            to_base36(-1)


class TestComputeFingerprint:
    def test_source_layout(self):
        profile = DeviceProfile(
            user_agent="Mozilla/5.0",
            language="en-US",
            screen_width=1920,
            screen_height=1080,
            timezone_offset=-120,
            canvas_signature="data:image/png;base64,AAA",
        )

        assert fingerprint_source(profile) == (
            "Mozilla/5.0|en-US|1920x1080|-120|data:image/png;base64,AAA"
        )

    def test_stable_for_same_profile(self):
        profile = DeviceProfile(user_agent="UA", language="fr", screen_width=800, screen_height=600)

        assert compute_fingerprint(profile) == compute_fingerprint(profile.model_copy())

    def test_differs_between_profiles(self):
        a = DeviceProfile(user_agent="UA", screen_width=800, screen_height=600)
        b = DeviceProfile(user_agent="UA", screen_width=1024, screen_height=768)

        assert compute_fingerprint(a) != compute_fingerprint(b)

    def test_minimum_hash_is_rendered_positive(self, monkeypatch):
        import blogengage.core.fingerprint as fingerprint

        monkeypatch.setattr(fingerprint, "fingerprint_source", lambda profile: "polygenelubricants")

        assert compute_fingerprint(DeviceProfile()) == "zik0zk"

    def test_tracker_delegates(self, tracker):
        profile = DeviceProfile(user_agent="UA")
        assert tracker.get_fingerprint(profile) == compute_fingerprint(profile)
