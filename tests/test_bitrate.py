"""Tests for output resolution scaling and bitrate derivation."""

import pytest

from obs_deploy.bitrate import (
    MAX_BITRATE_KBPS, MIN_BITRATE_KBPS, calculate_bitrate, scale_resolution,
)
from obs_deploy.models import PerformanceTier


class TestCalculateBitrate:
    def test_tier_60_at_1728x1080(self):
        # 4500 kbps base, x0.85 = 3825, x1.15 = 4398.75
        assert calculate_bitrate(1728, 1080, PerformanceTier.TIER_60) == 4399

    def test_reference_resolution_at_top_tier(self):
        assert calculate_bitrate(1920, 1080, PerformanceTier.TIER_90) == 5750

    def test_lower_clamp(self):
        assert calculate_bitrate(160, 90, PerformanceTier.TIER_33) == MIN_BITRATE_KBPS

    def test_upper_clamp(self):
        assert calculate_bitrate(7680, 4320, PerformanceTier.TIER_90) == MAX_BITRATE_KBPS

    @pytest.mark.parametrize("tier", list(PerformanceTier))
    def test_monotonic_in_pixels(self, tier):
        sizes = [(640, 360), (1280, 720), (1920, 1080), (2560, 1440), (3840, 2160), (5120, 1440)]
        sizes.sort(key=lambda s: s[0] * s[1])
        rates = [calculate_bitrate(w, h, tier) for w, h in sizes]
        assert rates == sorted(rates)

    def test_monotonic_in_tier(self):
        rates = [calculate_bitrate(1920, 1080, t) for t in sorted(PerformanceTier)]
        assert rates == sorted(rates)

    def test_accepts_plain_int_tier(self):
        assert calculate_bitrate(1728, 1080, 60) == 4399

    def test_rejects_unknown_tier(self):
        with pytest.raises(ValueError):
            calculate_bitrate(1920, 1080, 80)


class TestScaleResolution:
    def test_ultrawide_at_90(self):
        assert scale_resolution(1920, 1200, PerformanceTier.TIER_90) == (1728, 1080)

    def test_1080p_at_75(self):
        assert scale_resolution(1920, 1080, PerformanceTier.TIER_75) == (1440, 810)

    def test_dimensions_are_even(self):
        for tier in PerformanceTier:
            w, h = scale_resolution(1366, 768, tier)
            assert w % 2 == 0 and h % 2 == 0

    def test_never_below_two(self):
        assert scale_resolution(3, 3, PerformanceTier.TIER_33) == (2, 2)


class TestPerformanceTierParse:
    def test_parses_strings(self):
        assert PerformanceTier.parse("75") is PerformanceTier.TIER_75

    @pytest.mark.parametrize("value", ["80", "fast", None])
    def test_invalid_lists_allowed(self, value):
        with pytest.raises(ValueError) as exc:
            PerformanceTier.parse(value)
        assert "33, 50, 60, 75, 90" in str(exc.value)
