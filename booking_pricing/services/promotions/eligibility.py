"""
Promo code eligibility evaluation.

Checks run in a fixed order and stop at the first failure, so the reason a
user sees is deterministic:

 1. validity (expired, exhausted, deleted, paused, not yet started)
 2. user allow-list
 3. user deny-list
 4. per-user usage cap
 5. per-user cooldown
 6. order amount bounds
 7. category and space allow-lists
 8. location allow and deny lists
 9. day of week
10. booking duration bounds
11. time slots
12. uses per day (all users)
13. first booking only
14. new users only

Malformed restriction data is logged and that restriction is skipped.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from booking_pricing.core.exceptions import InvalidTimeFormat
from booking_pricing.services.pricing.context import parse_time_of_day
from booking_pricing.services.promotions.domain import (
    BookingDetails,
    DiscountScope,
    Eligible,
    EligibilityResult,
    PromoCode,
    PromoCodeStatus,
    Rejected,
    RejectionReason,
    UsageRecord,
)
from booking_pricing.services.promotions.status import derive_status, is_exhausted, is_expired

logger = logging.getLogger(__name__)

ELIGIBLE = Eligible()


def _check_validity(promo: PromoCode, now: datetime) -> Optional[RejectionReason]:
    if is_expired(promo, now):
        return RejectionReason.EXPIRED
    if is_exhausted(promo):
        return RejectionReason.EXHAUSTED
    if promo.is_deleted:
        return RejectionReason.INVALID
    if derive_status(promo, now) != PromoCodeStatus.ACTIVE:
        return RejectionReason.INACTIVE
    if now < promo.valid_from:
        return RejectionReason.INVALID
    return None


def _user_usages(promo: PromoCode, user_id: str) -> List[UsageRecord]:
    return [usage for usage in promo.usage_history if usage.user_id == user_id]


def _bounds(promo: PromoCode, low, high, name: str) -> Tuple[Optional[float], Optional[float]]:
    """The (min, max) pair, or (None, None) when min exceeds max."""
    if low is not None and high is not None and low > high:
        logger.warning(
            f"Promo code {promo.code}: {name} minimum {low} exceeds maximum {high}; restriction skipped"
        )
        return None, None
    return low, high


def _valid_days(promo: PromoCode) -> List[int]:
    days = []
    for day in promo.restrictions.applicable_days_of_week:
        if isinstance(day, int) and 0 <= day <= 6:
            days.append(day)
        else:
            logger.warning(f"Promo code {promo.code}: ignoring day of week {day!r}")
    return days


def _valid_slots(promo: PromoCode) -> List[Tuple[int, int]]:
    slots = []
    for slot in promo.restrictions.applicable_time_slots:
        parts = slot.split("-") if isinstance(slot, str) else []
        try:
            if len(parts) != 2:
                raise InvalidTimeFormat(str(slot))
            start, end = parse_time_of_day(parts[0]), parse_time_of_day(parts[1])
        except InvalidTimeFormat:
            logger.warning(f"Promo code {promo.code}: ignoring malformed time slot {slot!r}")
            continue
        slots.append((start, end))
    return slots


def _starts_in_slot(start_time: Optional[str], slots: List[Tuple[int, int]]) -> bool:
    if start_time is None:
        return False
    try:
        start = parse_time_of_day(start_time)
    except InvalidTimeFormat:
        return False
    return any(slot_start <= start <= slot_end for slot_start, slot_end in slots)


def _check_user(promo: PromoCode, user_id: str, now: datetime) -> Optional[RejectionReason]:
    r = promo.restrictions
    if r.applicable_users and user_id not in r.applicable_users:
        return RejectionReason.USER_NOT_ELIGIBLE
    if user_id in r.excluded_users:
        return RejectionReason.USER_EXCLUDED

    usages = _user_usages(promo, user_id)
    if r.max_uses_per_user and len(usages) >= r.max_uses_per_user:
        return RejectionReason.USER_LIMIT_EXCEEDED

    if r.cooldown_period_hours and usages:
        last_used = max(usage.used_at for usage in usages)
        if now < last_used + timedelta(hours=r.cooldown_period_hours):
            return RejectionReason.COOLDOWN_ACTIVE
    return None


def _check_booking(promo: PromoCode, booking: BookingDetails) -> Optional[RejectionReason]:
    r = promo.restrictions

    min_amount, max_amount = _bounds(promo, r.min_order_amount, r.max_order_amount, "order amount")
    if min_amount is not None and booking.amount < min_amount:
        return RejectionReason.MIN_ORDER_NOT_MET
    if max_amount is not None and booking.amount > max_amount:
        return RejectionReason.MAX_ORDER_EXCEEDED

    if r.applicable_categories and booking.category not in r.applicable_categories:
        return RejectionReason.CATEGORY_NOT_APPLICABLE
    if r.applicable_spaces and booking.space_id not in r.applicable_spaces:
        return RejectionReason.SPACE_NOT_APPLICABLE

    if r.applicable_locations and booking.location not in r.applicable_locations:
        return RejectionReason.LOCATION_NOT_APPLICABLE
    if booking.location is not None and booking.location in r.excluded_locations:
        return RejectionReason.LOCATION_EXCLUDED

    days = _valid_days(promo)
    if days and booking.day_of_week not in days:
        return RejectionReason.DAY_NOT_APPLICABLE

    min_duration, max_duration = _bounds(
        promo, r.min_booking_duration, r.max_booking_duration, "booking duration"
    )
    if min_duration is not None and booking.duration_hours < min_duration:
        return RejectionReason.MIN_DURATION_NOT_MET
    if max_duration is not None and booking.duration_hours > max_duration:
        return RejectionReason.MAX_DURATION_EXCEEDED

    slots = _valid_slots(promo)
    if slots and not _starts_in_slot(booking.start_time, slots):
        return RejectionReason.TIME_SLOT_NOT_APPLICABLE
    return None


def _check_daily_limit(promo: PromoCode, now: datetime) -> Optional[RejectionReason]:
    limit = promo.restrictions.max_uses_per_day
    if not limit:
        return None
    today = now.date()
    used_today = sum(1 for usage in promo.usage_history if usage.used_at.date() == today)
    if used_today >= limit:
        return RejectionReason.DAILY_LIMIT_EXCEEDED
    return None


def _check_audience(promo: PromoCode, booking: BookingDetails) -> Optional[RejectionReason]:
    r = promo.restrictions
    first_only = r.first_booking_only or promo.scope == DiscountScope.FIRST_TIME_USER
    if first_only and not booking.is_first_booking:
        return RejectionReason.FIRST_BOOKING_ONLY
    if r.new_users_only and not booking.is_new_user:
        return RejectionReason.NEW_USERS_ONLY
    return None


def evaluate_eligibility(
    promo: PromoCode,
    user_id: str,
    booking: Optional[BookingDetails],
    now: datetime,
) -> EligibilityResult:
    """
    Decide whether user_id may apply promo to booking at time now.

    Pure: the promo is not modified. Booking-specific checks are skipped
    when no booking is given.
    """
    reason = _check_validity(promo, now) or _check_user(promo, user_id, now)
    if reason is None and booking is not None:
        reason = _check_booking(promo, booking)
    if reason is None:
        reason = _check_daily_limit(promo, now)
    if reason is None and booking is not None:
        reason = _check_audience(promo, booking)

    if reason is not None:
        logger.debug(f"Promo code {promo.code} rejected for user {user_id}: {reason.value}")
        return Rejected(reason)
    return ELIGIBLE
