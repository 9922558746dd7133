"""
Pricing & promotion resolution for one booking request.

Flow:
- build and validate the rule context (bad times raise, nothing else does)
- resolve the pre-discount price through exactly one strategy
- if a promo code was given, evaluate it and price the discount
- on checkout, record the outcome in the usage ledger while holding the
  promo code's lock; write-back conflicts are retried with back-off and,
  once retries run out, the booking proceeds without the promo

An ineligible or unknown promo never fails the request: the quote carries
the rejection reason and the full price.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, Optional, Tuple

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from booking_pricing.core.config import settings
from booking_pricing.core.exceptions import ConcurrentUpdateError, PromoApplicationFailed
from booking_pricing.services.pricing.context import build_rule_context
from booking_pricing.services.pricing.domain import (
    PriceBreakdown,
    PriceResolution,
    PriceType,
    PricingConfig,
    PricingStrategy,
    RuleContext,
    TimeBlockMatch,
)
from booking_pricing.services.pricing.strategy_resolver import resolve_price
from booking_pricing.services.promotions.discounts import calculate_discount
from booking_pricing.services.promotions.domain import (
    BookingDetails,
    DiscountResult,
    PromoCode,
    Rejected,
    RejectionReason,
)
from booking_pricing.services.promotions.eligibility import evaluate_eligibility
from booking_pricing.services.promotions.repository import PromoCodeRepository
from booking_pricing.services.promotions.status import reconcile_status
from booking_pricing.services.promotions.usage_ledger import record_failure, record_success
from booking_pricing.utils.clock import Clock, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuoteRequest:
    booking_date: date
    start_time: str
    end_time: str
    duration_hours: Optional[float] = None
    promo_code: Optional[str] = None
    category: Optional[str] = None
    space_id: Optional[str] = None
    location: Optional[str] = None
    quantity: int = 1
    hourly_rate: Optional[int] = None
    is_first_booking: bool = False
    is_new_user: bool = False


@dataclass(frozen=True)
class PromoApplication:
    code: str
    discount: int
    type: str


@dataclass(frozen=True)
class PriceQuote:
    strategy: PricingStrategy
    base_price: int
    adjusted_price: int
    final_price: int
    breakdown: PriceBreakdown
    applied_multipliers: Tuple[str, ...] = field(default_factory=tuple)
    time_block_match: Optional[TimeBlockMatch] = None
    promo_code_applied: Optional[PromoApplication] = None
    promo_rejection: Optional[RejectionReason] = None
    promo_application_failed: bool = False


@dataclass(frozen=True)
class _PromoOutcome:
    promo: Optional[PromoCode] = None
    discount: Optional[DiscountResult] = None
    rejection: Optional[RejectionReason] = None


class PricingEngine:
    """
    Computes chargeable prices for bookings.

    Args:
        promo_repository: where promo codes are read from and written back to
        clock: returns the current timezone-aware time; injected for tests
        max_attempts: tries per checkout when the promo write-back conflicts
        retry_wait_seconds: base of the exponential back-off between tries
    """

    def __init__(
        self,
        promo_repository: PromoCodeRepository,
        clock: Clock = utc_now,
        max_attempts: Optional[int] = None,
        retry_wait_seconds: Optional[float] = None,
    ):
        self._repository = promo_repository
        self._clock = clock
        self._max_attempts = max_attempts or settings.PROMO_APPLY_MAX_ATTEMPTS
        self._retry_wait_seconds = (
            retry_wait_seconds
            if retry_wait_seconds is not None
            else settings.PROMO_APPLY_RETRY_WAIT_SECONDS
        )

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def quote(self, pricing: PricingConfig, request: QuoteRequest, user_id: str) -> PriceQuote:
        """Price a booking and preview the promo discount without recording anything."""
        context, resolution = self._resolve(pricing, request)
        if not context.promo_code:
            return self._build_quote(resolution)

        booking = self._booking_details(context, resolution, request)
        outcome = self._preview_promo(context.promo_code, user_id, booking)
        return self._build_quote(resolution, outcome)

    def checkout(
        self,
        pricing: PricingConfig,
        request: QuoteRequest,
        user_id: str,
        booking_id: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> PriceQuote:
        """Price a booking and apply its promo code, recording usage or failure."""
        context, resolution = self._resolve(pricing, request)
        if not context.promo_code:
            return self._build_quote(resolution)

        booking = self._booking_details(context, resolution, request)
        try:
            outcome = self._apply_with_retry(
                context.promo_code,
                user_id=user_id,
                booking_id=booking_id,
                booking=booking,
                ip_address=ip_address,
                user_agent=user_agent,
                metadata=metadata,
            )
        except PromoApplicationFailed:
            return replace(self._build_quote(resolution), promo_application_failed=True)
        return self._build_quote(resolution, outcome)

    # ------------------------------------------------------------------ #
    # Pricing
    # ------------------------------------------------------------------ #

    def _resolve(self, pricing: PricingConfig, request: QuoteRequest) -> Tuple[RuleContext, PriceResolution]:
        context = build_rule_context(
            pricing,
            request.booking_date,
            request.start_time,
            request.end_time,
            duration_hours=request.duration_hours,
            promo_code=request.promo_code,
        )
        return context, resolve_price(context)

    @staticmethod
    def _booking_details(
        context: RuleContext, resolution: PriceResolution, request: QuoteRequest
    ) -> BookingDetails:
        hourly_rate = request.hourly_rate
        if hourly_rate is None and context.pricing.price_type == PriceType.HOURLY:
            hourly_rate = context.pricing.base_price
        return BookingDetails(
            amount=resolution.adjusted_price,
            booking_date=context.date,
            duration_hours=context.duration_hours,
            category=request.category,
            space_id=request.space_id,
            location=request.location,
            start_time=request.start_time,
            quantity=request.quantity,
            hourly_rate=hourly_rate,
            is_first_booking=request.is_first_booking,
            is_new_user=request.is_new_user,
        )

    @staticmethod
    def _build_quote(resolution: PriceResolution, outcome: Optional[_PromoOutcome] = None) -> PriceQuote:
        quote = PriceQuote(
            strategy=resolution.strategy,
            base_price=resolution.base_price,
            adjusted_price=resolution.adjusted_price,
            final_price=resolution.adjusted_price,
            breakdown=resolution.breakdown,
            applied_multipliers=resolution.applied_multipliers,
            time_block_match=resolution.time_block_match,
        )
        if outcome is None:
            return quote
        if outcome.rejection is not None:
            return replace(quote, promo_rejection=outcome.rejection)

        discount = outcome.discount
        return replace(
            quote,
            final_price=discount.final_amount,
            breakdown=replace(resolution.breakdown, promo_discount=discount.discount_amount),
            promo_code_applied=PromoApplication(
                code=outcome.promo.code,
                discount=discount.discount_amount,
                type=outcome.promo.type.value,
            ),
        )

    # ------------------------------------------------------------------ #
    # Promotions
    # ------------------------------------------------------------------ #

    def _preview_promo(self, code: str, user_id: str, booking: BookingDetails) -> _PromoOutcome:
        promo = self._repository.get(code)
        if promo is None:
            logger.info(f"Promo code {code} not found")
            return _PromoOutcome(rejection=RejectionReason.NOT_FOUND)

        verdict = evaluate_eligibility(promo, user_id, booking, self._clock())
        if isinstance(verdict, Rejected):
            return _PromoOutcome(promo=promo, rejection=verdict.reason)
        return _PromoOutcome(promo=promo, discount=calculate_discount(promo, booking.amount, booking))

    def _apply_with_retry(self, code: str, **kwargs) -> _PromoOutcome:
        retrying = Retrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._retry_wait_seconds, max=2),
            retry=retry_if_exception_type(ConcurrentUpdateError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            return retrying(self._apply_once, code, **kwargs)
        except ConcurrentUpdateError:
            logger.error(
                f"Giving up on promo code {code} after {self._max_attempts} attempts",
                extra={"code": code, "attempts": self._max_attempts},
            )
            raise PromoApplicationFailed(code, self._max_attempts)

    def _apply_once(
        self,
        code: str,
        *,
        user_id: str,
        booking_id: str,
        booking: BookingDetails,
        ip_address: Optional[str],
        user_agent: Optional[str],
        metadata: Optional[Dict[str, Any]],
    ) -> _PromoOutcome:
        with self._repository.transaction(code) as tx:
            if tx.promo is None:
                logger.info(f"Promo code {code} not found")
                return _PromoOutcome(rejection=RejectionReason.NOT_FOUND)

            now = self._clock()
            promo = reconcile_status(tx.promo, now)

            # Re-checked under the lock: the verdict and the counter
            # increment below are one atomic step.
            verdict = evaluate_eligibility(promo, user_id, booking, now)
            if isinstance(verdict, Rejected):
                tx.save(record_failure(promo, verdict.reason))
                logger.info(
                    f"Promo code {code} rejected for user {user_id}: {verdict.reason.value}"
                )
                return _PromoOutcome(promo=promo, rejection=verdict.reason)

            discount = calculate_discount(promo, booking.amount, booking)
            saved = tx.save(
                record_success(
                    promo,
                    user_id=user_id,
                    booking_id=booking_id,
                    discount_amount=discount.discount_amount,
                    original_amount=booking.amount,
                    final_amount=discount.final_amount,
                    now=now,
                    booking=booking,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    metadata=metadata,
                )
            )
            logger.info(
                f"Promo code {code} applied to booking {booking_id}: "
                f"-{discount.discount_amount} ({saved.current_usage} uses)"
            )
            return _PromoOutcome(promo=saved, discount=discount)
