"""
Promo code status derivation and admin lifecycle transitions.

Status is cached on the record but always derivable:
deleted -> inactive, past valid_until -> expired, usage limit reached ->
exhausted, manually paused -> paused, otherwise active.
"""

import logging
import math
from dataclasses import replace
from datetime import datetime
from typing import Optional

from booking_pricing.services.promotions.domain import PromoCode, PromoCodeStatus

logger = logging.getLogger(__name__)


def is_expired(promo: PromoCode, now: datetime) -> bool:
    return now > promo.valid_until


def is_exhausted(promo: PromoCode) -> bool:
    return promo.usage_limit is not None and promo.current_usage >= promo.usage_limit


def derive_status(promo: PromoCode, now: datetime) -> PromoCodeStatus:
    if promo.is_deleted:
        return PromoCodeStatus.INACTIVE
    if is_expired(promo, now):
        return PromoCodeStatus.EXPIRED
    if is_exhausted(promo):
        return PromoCodeStatus.EXHAUSTED
    if promo.paused_at is not None:
        return PromoCodeStatus.PAUSED
    return PromoCodeStatus.ACTIVE


def reconcile_status(promo: PromoCode, now: datetime) -> PromoCode:
    """Return promo with its cached status brought in line. Idempotent."""
    status = derive_status(promo, now)
    if status == promo.status:
        return promo
    return replace(promo, status=status)


def is_valid(promo: PromoCode, now: datetime) -> bool:
    """Usable right now, ignoring per-user and per-booking restrictions."""
    return (
        derive_status(promo, now) == PromoCodeStatus.ACTIVE
        and promo.valid_from <= now <= promo.valid_until
    )


def remaining_uses(promo: PromoCode) -> Optional[int]:
    if promo.usage_limit is None:
        return None
    return max(0, promo.usage_limit - promo.current_usage)


def usage_percentage(promo: PromoCode) -> float:
    if not promo.usage_limit:
        return 0.0
    return promo.current_usage / promo.usage_limit * 100


def days_until_expiry(promo: PromoCode, now: datetime) -> int:
    seconds = (promo.valid_until - now).total_seconds()
    return math.ceil(seconds / 86400)


def pause(promo: PromoCode, now: datetime, reason: Optional[str] = None) -> PromoCode:
    paused = replace(promo, paused_at=now, pause_reason=reason)
    logger.info(f"Promo code {promo.code} paused", extra={"reason": reason})
    return reconcile_status(paused, now)


def resume(promo: PromoCode, now: datetime) -> PromoCode:
    """Clear the pause and re-derive status; an expired code stays expired."""
    resumed = reconcile_status(replace(promo, paused_at=None, pause_reason=None), now)
    logger.info(f"Promo code {promo.code} resumed as {resumed.status.value}")
    return resumed


def soft_delete(promo: PromoCode, now: datetime, deleted_by: Optional[str] = None) -> PromoCode:
    deleted = replace(promo, is_deleted=True, deleted_at=now, deleted_by=deleted_by)
    logger.info(f"Promo code {promo.code} deleted", extra={"deleted_by": deleted_by})
    return reconcile_status(deleted, now)
