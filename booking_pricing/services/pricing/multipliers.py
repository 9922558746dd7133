"""
Regular (metered) pricing with weekend and peak/off-peak multipliers.

Model:
- price = base_price, times duration for hourly pricing
- weekend with a non-unit weekend multiplier: the weekend multiplier applies
  and peak logic is skipped
- otherwise the peak multiplier is blended by how much of the booking
  overlaps the peak window; once half or more of the booking is inside
  the window the full peak multiplier applies
- intermediate values stay floats; only the final price is rounded
"""

from typing import Optional, Tuple

from booking_pricing.services.pricing.domain import (
    OFF_PEAK_MULTIPLIER_BOUNDS,
    WEEKEND_MULTIPLIER_BOUNDS,
    PriceBreakdown,
    PriceType,
    RegularPrice,
    RuleContext,
)
from booking_pricing.services.pricing.validation import usable_multiplier, usable_peak_window
from booking_pricing.utils.money import round_half_up

FULL_PEAK_THRESHOLD = 0.5


def overlap_minutes(start: int, end: int, window_start: int, window_end: int) -> int:
    """Length of the intersection of [start, end) and [window_start, window_end)."""
    return max(0, min(end, window_end) - max(start, window_start))


def peak_overlap_ratio(context: RuleContext, window: Tuple[int, int]) -> float:
    total = context.total_minutes
    if total <= 0:
        return 0.0
    overlap = overlap_minutes(context.start_minutes, context.end_minutes, window[0], window[1])
    return overlap / total


def blended_multiplier(overlap_ratio: float, peak: float, off_peak: float) -> float:
    if overlap_ratio <= 0:
        return off_peak
    if overlap_ratio >= FULL_PEAK_THRESHOLD:
        return peak
    return peak * overlap_ratio + off_peak * (1 - overlap_ratio)


def effective_peak_multiplier(context: RuleContext) -> float:
    """Multiplier for a weekday (or non-weekend-priced) booking."""
    pricing = context.pricing
    off_peak = usable_multiplier(pricing.off_peak_multiplier, OFF_PEAK_MULTIPLIER_BOUNDS, "off-peak")
    window = usable_peak_window(pricing.peak_window)
    if window is None:
        return off_peak
    window_start, window_end, peak = window
    ratio = peak_overlap_ratio(context, (window_start, window_end))
    return blended_multiplier(ratio, peak, off_peak)


def _weekend_multiplier(context: RuleContext) -> Optional[float]:
    if not context.is_weekend:
        return None
    multiplier = usable_multiplier(
        context.pricing.weekend_multiplier, WEEKEND_MULTIPLIER_BOUNDS, "weekend"
    )
    if multiplier == 1:
        return None
    return multiplier


def calculate_regular_price(context: RuleContext) -> RegularPrice:
    pricing = context.pricing
    price = float(pricing.base_price)
    if pricing.price_type == PriceType.HOURLY:
        price *= context.duration_hours

    breakdown = PriceBreakdown(base=price)
    applied = []
    multiplier = 1.0

    weekend = _weekend_multiplier(context)
    if weekend is not None:
        breakdown.weekend_adjustment = price * (weekend - 1)
        price *= weekend
        multiplier = weekend
        applied.append("weekend")
    else:
        peak = effective_peak_multiplier(context)
        if peak != 1:
            breakdown.peak_adjustment = price * (peak - 1)
            price *= peak
            multiplier = peak
            applied.append("peak" if peak > 1 else "off-peak")

    return RegularPrice(
        exact_price=price,
        adjusted_price=round_half_up(price),
        breakdown=breakdown,
        applied_multipliers=tuple(applied),
        effective_multiplier=multiplier,
    )
