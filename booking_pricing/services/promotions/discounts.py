"""
Discount calculation for an eligible promo code.

- percentage: original * value / 100
- fixed_amount: value, never more than the original amount
- free_hours: value * hourly rate, never more than the original amount
- buy_one_get_one: half the original amount when quantity >= 2, else nothing
- the restriction's max discount caps every type
- the discount is rounded half-up to minor units and never exceeds the
  original amount, so the final amount is never negative
"""

from typing import Optional

from booking_pricing.services.promotions.domain import (
    BookingDetails,
    DiscountResult,
    PromoCode,
    PromoCodeType,
)
from booking_pricing.utils.money import round_half_up


def raw_discount(promo: PromoCode, original_amount: int, booking: Optional[BookingDetails]) -> float:
    """Discount before the cap, unrounded."""
    if promo.type == PromoCodeType.PERCENTAGE:
        return original_amount * promo.value / 100

    if promo.type == PromoCodeType.FIXED_AMOUNT:
        return min(promo.value, original_amount)

    if promo.type == PromoCodeType.FREE_HOURS:
        if booking is None or not booking.hourly_rate:
            return 0
        return min(promo.value * booking.hourly_rate, original_amount)

    if promo.type == PromoCodeType.BUY_ONE_GET_ONE:
        if booking is None or booking.quantity < 2:
            return 0
        return original_amount / 2

    return 0


def calculate_discount(
    promo: PromoCode,
    original_amount: int,
    booking: Optional[BookingDetails] = None,
) -> DiscountResult:
    discount = raw_discount(promo, original_amount, booking)

    cap = promo.restrictions.max_discount_amount
    if cap is not None:
        discount = min(discount, cap)

    discount_amount = min(max(0, round_half_up(discount)), original_amount)
    return DiscountResult(
        discount_amount=discount_amount,
        final_amount=max(0, original_amount - discount_amount),
    )
