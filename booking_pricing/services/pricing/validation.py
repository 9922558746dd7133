"""
Pricing configuration invariants.

validate_pricing_config() lists every violation and is used on write.
The usable_* helpers are used on read: an offending rule is logged and
skipped so that a bad config degrades the price instead of failing the
booking.
"""

import logging
from typing import List, Optional, Tuple

from booking_pricing.core.exceptions import InvalidTimeFormat
from booking_pricing.services.pricing.context import parse_time_of_day
from booking_pricing.services.pricing.domain import (
    OFF_PEAK_MULTIPLIER_BOUNDS,
    PEAK_MULTIPLIER_BOUNDS,
    WEEKEND_MULTIPLIER_BOUNDS,
    PeakWindow,
    PricingConfig,
    SpecialEventPrice,
    TimeBlock,
)

logger = logging.getLogger(__name__)


def _in_bounds(value, bounds: Tuple[float, float]) -> bool:
    if value is None:
        return False
    try:
        value = float(value)
    except (TypeError, ValueError):
        return False
    low, high = bounds
    return low <= value <= high


def _peak_window_violation(window: PeakWindow) -> Optional[str]:
    try:
        start = parse_time_of_day(window.start)
        end = parse_time_of_day(window.end)
    except InvalidTimeFormat as exc:
        return f"peak window: {exc.message}"
    if start >= end:
        return "peak window: start time must be before end time"
    if not _in_bounds(window.multiplier, PEAK_MULTIPLIER_BOUNDS):
        return f"peak multiplier {window.multiplier} outside {PEAK_MULTIPLIER_BOUNDS}"
    return None


def validate_pricing_config(config: PricingConfig) -> List[str]:
    """Return a human-readable list of violated invariants (empty when valid)."""
    violations = []
    if config.base_price is None or config.base_price < 0:
        violations.append("base price must be non-negative")
    if config.peak_window is not None:
        problem = _peak_window_violation(config.peak_window)
        if problem:
            violations.append(problem)
    if not _in_bounds(config.off_peak_multiplier, OFF_PEAK_MULTIPLIER_BOUNDS):
        violations.append(
            f"off-peak multiplier {config.off_peak_multiplier} outside {OFF_PEAK_MULTIPLIER_BOUNDS}"
        )
    if not _in_bounds(config.weekend_multiplier, WEEKEND_MULTIPLIER_BOUNDS):
        violations.append(
            f"weekend multiplier {config.weekend_multiplier} outside {WEEKEND_MULTIPLIER_BOUNDS}"
        )
    for block in config.time_blocks:
        if block.duration_hours is None or block.duration_hours <= 0:
            violations.append(f"time block '{block.title}': duration must be positive")
        if block.price is None or block.price < 0:
            violations.append(f"time block '{block.title}': price must be non-negative")
    for event in config.special_event_prices:
        if event.price is None or event.price < 0:
            violations.append(f"special event price on {event.date}: price must be non-negative")
    return violations


def usable_multiplier(value, bounds: Tuple[float, float], name: str) -> float:
    """The configured multiplier, or 1 when it violates its bounds."""
    if _in_bounds(value, bounds):
        return float(value)
    logger.warning(
        f"Ignoring {name} multiplier {value!r}: outside {bounds}",
        extra={"multiplier": name, "value": value},
    )
    return 1.0


def usable_peak_window(window: Optional[PeakWindow]) -> Optional[Tuple[int, int, float]]:
    """(start_minutes, end_minutes, multiplier), or None when absent or invalid."""
    if window is None:
        return None
    problem = _peak_window_violation(window)
    if problem:
        logger.warning(
            f"Ignoring peak window: {problem}",
            extra={"peak_start": window.start, "peak_end": window.end},
        )
        return None
    return parse_time_of_day(window.start), parse_time_of_day(window.end), float(window.multiplier)


def usable_time_blocks(config: PricingConfig) -> List[TimeBlock]:
    usable = []
    for block in config.time_blocks:
        if block.duration_hours is None or block.duration_hours <= 0 or block.price is None or block.price < 0:
            logger.warning(
                f"Ignoring time block '{block.title}'",
                extra={"duration_hours": block.duration_hours, "price": block.price},
            )
            continue
        usable.append(block)
    return usable


def usable_special_event_prices(config: PricingConfig) -> List[SpecialEventPrice]:
    usable = []
    for event in config.special_event_prices:
        if event.price is None or event.price < 0:
            logger.warning(
                f"Ignoring special event price on {event.date}",
                extra={"price": event.price},
            )
            continue
        usable.append(event)
    return usable
