import pytest

from booking_pricing.services.pricing.context import build_rule_context
from booking_pricing.services.pricing.domain import (
    PeakWindow,
    PriceType,
    PricingStrategy,
    SpecialEventPrice,
    TimeBlock,
)
from booking_pricing.services.pricing.strategy_resolver import resolve_price, select_time_block
from tests.utils.factories import SATURDAY, WEDNESDAY, make_pricing


class TestResolvePrice:

    def test_free_space_costs_nothing_whatever_else_is_configured(self):
        pricing = make_pricing(
            base_price=900,
            price_type=PriceType.FREE,
            weekend_multiplier=2.0,
            special_event_prices=(SpecialEventPrice(SATURDAY, 5000),),
            time_blocks=(TimeBlock(2, 100, "Short"),),
        )
        result = resolve_price(build_rule_context(pricing, SATURDAY, "10:00", "12:00"))

        assert result.strategy == PricingStrategy.FREE
        assert result.adjusted_price == 0
        assert result.applied_multipliers == ("free",)

    def test_special_event_price_is_used_verbatim(self):
        pricing = make_pricing(
            base_price=500,
            weekend_multiplier=2.0,
            peak_window=PeakWindow("09:00", "18:00", 3.0),
            special_event_prices=(SpecialEventPrice(SATURDAY, 4321),),
        )
        result = resolve_price(build_rule_context(pricing, SATURDAY, "10:00", "14:00"))

        assert result.strategy == PricingStrategy.SPECIAL_EVENT
        assert result.adjusted_price == 4321
        assert result.breakdown.special_event_adjustment == 4321 - 500
        assert result.breakdown.peak_adjustment is None
        assert result.breakdown.weekend_adjustment is None

    def test_special_event_on_another_day_is_ignored(self):
        pricing = make_pricing(special_event_prices=(SpecialEventPrice(SATURDAY, 1),))
        result = resolve_price(build_rule_context(pricing, WEDNESDAY, "10:00", "11:00"))
        assert result.strategy == PricingStrategy.REGULAR

    def test_cheaper_time_block_wins_and_reports_savings(self):
        pricing = make_pricing(base_price=500, time_blocks=(TimeBlock(4, 1500, "Half day"),))
        result = resolve_price(build_rule_context(pricing, WEDNESDAY, "09:00", "13:00"))

        assert result.strategy == PricingStrategy.TIME_BLOCK
        assert result.adjusted_price == 1500
        assert result.time_block_match.title == "Half day"
        assert result.time_block_match.savings == 500
        assert result.applied_multipliers == ("time-block",)

    def test_time_block_not_cheaper_falls_back_to_regular(self):
        pricing = make_pricing(base_price=100, time_blocks=(TimeBlock(2, 200, "Two hours"),))
        result = resolve_price(build_rule_context(pricing, WEDNESDAY, "09:00", "11:00"))

        assert result.strategy == PricingStrategy.REGULAR
        assert result.adjusted_price == 200
        assert result.time_block_match is None

    def test_invalid_time_block_is_skipped(self):
        pricing = make_pricing(base_price=500, time_blocks=(TimeBlock(0, 1, "Broken"),))
        result = resolve_price(build_rule_context(pricing, WEDNESDAY, "09:00", "10:00"))
        assert result.strategy == PricingStrategy.REGULAR


class TestSelectTimeBlock:

    def setup_method(self):
        self.blocks = [
            TimeBlock(8, 3000, "Full day"),
            TimeBlock(4, 1800, "Half day"),
            TimeBlock(2, 1000, "Two hours"),
        ]

    def test_exact_match_preferred(self):
        assert select_time_block(self.blocks, 4).title == "Half day"

    @pytest.mark.parametrize(
        "duration,title",
        [(1, "Two hours"), (3, "Half day"), (5, "Full day"), (7.5, "Full day")],
    )
    def test_smallest_covering_block(self, duration, title):
        assert select_time_block(self.blocks, duration).title == title

    def test_no_covering_block(self):
        assert select_time_block(self.blocks, 9) is None

    def test_selection_is_monotonic(self):
        for duration in [0.5, 1, 2, 2.5, 3, 4, 6, 8]:
            chosen = select_time_block(self.blocks, duration)
            covering = [b for b in self.blocks if b.duration_hours >= duration]
            assert chosen.duration_hours == min(b.duration_hours for b in covering)
