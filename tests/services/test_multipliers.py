"""
Tests for the regular-price multiplier calculator.

Covers hourly vs daily base prices, weekend precedence over peak logic,
peak-overlap blending and the half-up rounding of the final price.
"""

import pytest

from booking_pricing.services.pricing.context import build_rule_context
from booking_pricing.services.pricing.domain import PeakWindow, PriceType
from booking_pricing.services.pricing.multipliers import (
    blended_multiplier,
    calculate_regular_price,
    overlap_minutes,
)
from tests.utils.factories import SATURDAY, WEDNESDAY, make_pricing


class TestRegularPrice:

    def test_saturday_weekend_multiplier(self):
        """500/hr, weekend 1.2, Saturday for 2 hours -> 500 x 2 x 1.2 = 1200."""
        pricing = make_pricing(base_price=500, weekend_multiplier=1.2)
        context = build_rule_context(pricing, SATURDAY, "10:00", "12:00")

        result = calculate_regular_price(context)

        assert result.adjusted_price == 1200
        assert result.applied_multipliers == ("weekend",)
        assert result.breakdown.base == 1000
        assert result.breakdown.weekend_adjustment == pytest.approx(200)
        assert result.breakdown.peak_adjustment is None

    def test_majority_peak_overlap_applies_full_peak(self):
        """Peak 09-12 x1.5, off-peak 0.8, booking 10-13: 2/3 overlap -> full 1.5."""
        pricing = make_pricing(
            base_price=400,
            peak_window=PeakWindow("09:00", "12:00", 1.5),
            off_peak_multiplier=0.8,
        )
        context = build_rule_context(pricing, WEDNESDAY, "10:00", "13:00")

        result = calculate_regular_price(context)

        assert result.effective_multiplier == 1.5
        assert result.adjusted_price == 400 * 3 * 1.5
        assert result.applied_multipliers == ("peak",)

    def test_weekend_without_multiplier_falls_through_to_peak(self):
        pricing = make_pricing(
            base_price=100,
            peak_window=PeakWindow("09:00", "12:00", 2.0),
        )
        context = build_rule_context(pricing, SATURDAY, "09:00", "11:00")

        result = calculate_regular_price(context)

        assert result.adjusted_price == 400
        assert result.applied_multipliers == ("peak",)

    def test_weekend_multiplier_skips_peak_logic(self):
        pricing = make_pricing(
            base_price=100,
            weekend_multiplier=1.5,
            peak_window=PeakWindow("09:00", "12:00", 3.0),
        )
        context = build_rule_context(pricing, SATURDAY, "09:00", "11:00")

        result = calculate_regular_price(context)

        assert result.adjusted_price == 300
        assert "peak" not in result.applied_multipliers

    def test_off_peak_applied_uniformly_without_window(self):
        pricing = make_pricing(base_price=1000, off_peak_multiplier=0.8)
        context = build_rule_context(pricing, WEDNESDAY, "14:00", "15:00")

        result = calculate_regular_price(context)

        assert result.adjusted_price == 800
        assert result.applied_multipliers == ("off-peak",)
        assert result.breakdown.peak_adjustment == pytest.approx(-200)

    def test_unit_multiplier_is_not_tagged(self):
        context = build_rule_context(make_pricing(base_price=250), WEDNESDAY, "10:00", "12:00")

        result = calculate_regular_price(context)

        assert result.adjusted_price == 500
        assert result.applied_multipliers == ()
        assert result.breakdown.as_dict() == {"base": 500}

    def test_daily_price_ignores_duration(self):
        pricing = make_pricing(base_price=3000, price_type=PriceType.DAILY)
        context = build_rule_context(pricing, WEDNESDAY, "09:00", "17:00")

        assert calculate_regular_price(context).adjusted_price == 3000

    def test_partial_overlap_blends_and_rounds_half_up(self):
        """Peak 11-12 x2 over a 10-13 booking: ratio 1/3 blends to 4/3."""
        pricing = make_pricing(base_price=15, peak_window=PeakWindow("11:00", "12:00", 2.0))
        context = build_rule_context(pricing, WEDNESDAY, "10:00", "13:00")

        result = calculate_regular_price(context)

        # 15 x 3 x (2 x 1/3 + 1 x 2/3) = 60
        assert result.adjusted_price == 60
        assert result.applied_multipliers == ("peak",)

    def test_out_of_range_multiplier_is_skipped(self):
        pricing = make_pricing(base_price=100, off_peak_multiplier=5.0)
        context = build_rule_context(pricing, WEDNESDAY, "10:00", "11:00")

        result = calculate_regular_price(context)

        assert result.adjusted_price == 100
        assert result.applied_multipliers == ()

    def test_inverted_peak_window_is_treated_as_absent(self):
        pricing = make_pricing(
            base_price=100,
            peak_window=PeakWindow("12:00", "09:00", 2.0),
            off_peak_multiplier=0.5,
        )
        context = build_rule_context(pricing, WEDNESDAY, "10:00", "11:00")

        assert calculate_regular_price(context).adjusted_price == 50


class TestBlending:

    def test_overlap_minutes(self):
        assert overlap_minutes(600, 780, 540, 720) == 120
        assert overlap_minutes(780, 840, 540, 720) == 0

    @pytest.mark.parametrize(
        "ratio,expected",
        [(0.0, 0.8), (0.25, 0.975), (0.5, 1.5), (1.0, 1.5)],
    )
    def test_blended_multiplier(self, ratio, expected):
        assert blended_multiplier(ratio, peak=1.5, off_peak=0.8) == pytest.approx(expected)

    def test_blend_is_monotonic_below_threshold(self):
        ratios = [i / 100 for i in range(0, 50)]
        values = [blended_multiplier(r, peak=2.0, off_peak=0.5) for r in ratios]
        assert values == sorted(values)
        assert values[0] == 0.5
