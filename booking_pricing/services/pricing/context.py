# booking_pricing/services/pricing/context.py
import re
from datetime import date, datetime
from typing import Optional, Union

from booking_pricing.core.exceptions import InvalidTimeFormat, InvalidTimeRange
from booking_pricing.services.pricing.domain import PricingConfig, RuleContext

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def parse_time_of_day(value: str, field: Optional[str] = None) -> int:
    """Convert an 'HH:MM' string to minutes since midnight."""
    if not isinstance(value, str):
        raise InvalidTimeFormat(str(value), field=field)
    match = _TIME_PATTERN.match(value.strip())
    if not match:
        raise InvalidTimeFormat(value, field=field)
    return int(match.group(1)) * 60 + int(match.group(2))


def normalize_promo_code(code: Optional[str]) -> Optional[str]:
    if code is None:
        return None
    code = code.strip().upper()
    return code or None


def build_rule_context(
    pricing: PricingConfig,
    booking_date: Union[date, datetime],
    start_time: str,
    end_time: str,
    duration_hours: Optional[float] = None,
    promo_code: Optional[str] = None,
) -> RuleContext:
    """
    Validate and normalize raw booking inputs.

    Raises InvalidTimeFormat for a malformed time and InvalidTimeRange when
    the end time is not after the start time. When no positive duration is
    given it is derived from the time window.
    """
    start_minutes = parse_time_of_day(start_time, field="start_time")
    end_minutes = parse_time_of_day(end_time, field="end_time")
    if end_minutes <= start_minutes:
        raise InvalidTimeRange(start_time, end_time)

    if isinstance(booking_date, datetime):
        booking_date = booking_date.date()

    if duration_hours is None or duration_hours <= 0:
        duration_hours = (end_minutes - start_minutes) / 60

    day_of_week = booking_date.isoweekday() % 7

    return RuleContext(
        date=booking_date,
        start_minutes=start_minutes,
        end_minutes=end_minutes,
        duration_hours=duration_hours,
        is_weekend=day_of_week in (0, 6),
        pricing=pricing,
        promo_code=normalize_promo_code(promo_code),
    )
