from datetime import date

from booking_pricing.services.pricing.domain import PeakWindow, SpecialEventPrice, TimeBlock
from booking_pricing.services.pricing.validation import validate_pricing_config
from tests.utils.factories import make_pricing


def test_valid_config_has_no_violations():
    pricing = make_pricing(
        peak_window=PeakWindow("09:00", "12:00", 1.5),
        off_peak_multiplier=0.8,
        weekend_multiplier=1.2,
        time_blocks=(TimeBlock(4, 1500, "Half day"),),
    )
    assert validate_pricing_config(pricing) == []


def test_every_violation_is_listed():
    pricing = make_pricing(
        base_price=-1,
        peak_window=PeakWindow("12:00", "09:00", 1.5),
        off_peak_multiplier=2.5,
        weekend_multiplier=0.05,
        time_blocks=(TimeBlock(0, 100, "Zero"), TimeBlock(2, -5, "Negative")),
        special_event_prices=(SpecialEventPrice(date(2025, 12, 31), -1),),
    )

    violations = validate_pricing_config(pricing)

    assert len(violations) == 7
    assert any("peak window" in v for v in violations)
    assert any("off-peak" in v for v in violations)


def test_peak_multiplier_bounds():
    too_high = make_pricing(peak_window=PeakWindow("09:00", "12:00", 10.5))
    at_limit = make_pricing(peak_window=PeakWindow("09:00", "12:00", 10))

    assert len(validate_pricing_config(too_high)) == 1
    assert validate_pricing_config(at_limit) == []


def test_malformed_peak_time_is_a_violation():
    pricing = make_pricing(peak_window=PeakWindow("9am", "12:00", 1.5))
    assert len(validate_pricing_config(pricing)) == 1
