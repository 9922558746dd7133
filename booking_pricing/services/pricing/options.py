# booking_pricing/services/pricing/options.py
from booking_pricing.services.pricing.domain import PricingConfig


def describe_pricing_options(config: PricingConfig) -> dict:
    """Summary of which pricing features a space has, for listing pages."""
    peak = config.peak_window
    return {
        "base_price": config.base_price,
        "price_type": config.price_type.value,
        "has_peak_pricing": peak is not None,
        "has_weekend_pricing": bool(config.weekend_multiplier) and config.weekend_multiplier != 1,
        "has_time_blocks": len(config.time_blocks) > 0,
        "has_special_event_pricing": len(config.special_event_prices) > 0,
        "peak_window": (
            {"start": peak.start, "end": peak.end, "multiplier": peak.multiplier}
            if peak is not None
            else None
        ),
        "time_blocks": [
            {"title": b.title, "duration_hours": b.duration_hours, "price": b.price}
            for b in config.time_blocks
        ],
    }
