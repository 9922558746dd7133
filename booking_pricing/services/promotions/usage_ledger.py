"""
Usage ledger: the only place promo counters and analytics change.

Each function takes a PromoCode and returns the updated PromoCode; the
caller persists it atomically together with the eligibility re-check.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, Optional

from booking_pricing.services.promotions.domain import (
    BookingDetails,
    PromoAnalytics,
    PromoCode,
    RejectionReason,
    UsageRecord,
)
from booking_pricing.services.promotions.status import reconcile_status

logger = logging.getLogger(__name__)


def _bump(histogram: Dict[str, int], key: Optional[str]) -> Dict[str, int]:
    updated = dict(histogram)
    if key:
        updated[key] = updated.get(key, 0) + 1
    return updated


def _conversion_rate(successes: int, attempts: int) -> float:
    if attempts <= 0:
        return 0.0
    return successes / attempts * 100


def record_success(
    promo: PromoCode,
    *,
    user_id: str,
    booking_id: str,
    discount_amount: int,
    original_amount: int,
    final_amount: int,
    now: datetime,
    booking: Optional[BookingDetails] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> PromoCode:
    usage = UsageRecord(
        user_id=user_id,
        booking_id=booking_id,
        discount_amount=discount_amount,
        original_amount=original_amount,
        final_amount=final_amount,
        used_at=now,
        ip_address=ip_address,
        user_agent=user_agent,
        metadata=metadata,
    )

    a = promo.analytics
    successes = a.successful_uses + 1
    attempts = a.total_attempts + 1
    total_discount = a.total_discount_given + discount_amount
    analytics = replace(
        a,
        total_attempts=attempts,
        successful_uses=successes,
        total_discount_given=total_discount,
        total_revenue_generated=a.total_revenue_generated + final_amount,
        average_discount_amount=total_discount / successes,
        conversion_rate=_conversion_rate(successes, attempts),
        usage_by_category=_bump(a.usage_by_category, booking.category if booking else None),
        usage_by_location=_bump(a.usage_by_location, booking.location if booking else None),
        usage_by_time_slot=_bump(a.usage_by_time_slot, booking.start_time if booking else None),
    )

    updated = replace(
        promo,
        usage_history=promo.usage_history + (usage,),
        current_usage=promo.current_usage + 1,
        last_used_at=now,
        analytics=analytics,
    )
    return reconcile_status(updated, now)


def record_failure(promo: PromoCode, reason: RejectionReason) -> PromoCode:
    a = promo.analytics
    attempts = a.total_attempts + 1
    analytics = replace(
        a,
        total_attempts=attempts,
        failed_uses=a.failed_uses + 1,
        failure_reasons=_bump(a.failure_reasons, reason.value),
        conversion_rate=_conversion_rate(a.successful_uses, attempts),
    )
    return replace(promo, analytics=analytics)


def record_view(promo: PromoCode) -> PromoCode:
    analytics: PromoAnalytics = replace(promo.analytics, total_views=promo.analytics.total_views + 1)
    return replace(promo, analytics=analytics)
