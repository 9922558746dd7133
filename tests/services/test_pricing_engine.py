"""
Tests for the PricingEngine orchestration.

Verifies that PricingEngine:
- prices bookings without a promo code
- previews promo discounts on quote without touching stored state
- records usage on checkout and failures on rejection
- reports unknown codes as NOT_FOUND at full price
- retries write-back conflicts and falls back to full price when they persist
"""

from contextlib import contextmanager

import pytest

from booking_pricing.core.exceptions import ConcurrentUpdateError, InvalidTimeRange
from booking_pricing.services.pricing.domain import PricingStrategy
from booking_pricing.services.pricing_engine import PricingEngine, QuoteRequest
from booking_pricing.services.promotions.domain import (
    PromoCodeStatus,
    PromoCodeType,
    RejectionReason,
    Restrictions,
)
from booking_pricing.services.promotions.repository import InMemoryPromoCodeRepository
from tests.utils.factories import FIXED_NOW, SATURDAY, WEDNESDAY, make_pricing, make_promo


class ConflictingRepository:
    """Wraps a repository and fails the first `conflicts` saves."""

    def __init__(self, inner, conflicts):
        self.inner = inner
        self.conflicts = conflicts
        self.attempts = 0

    def get(self, code):
        return self.inner.get(code)

    @contextmanager
    def transaction(self, code):
        self.attempts += 1
        with self.inner.transaction(code) as tx:
            if self.conflicts > 0:
                self.conflicts -= 1
                original_save = tx.save

                def conflicting_save(promo):
                    raise ConcurrentUpdateError(promo.code, promo.version)

                tx.save = conflicting_save
                yield tx
                tx.save = original_save
            else:
                yield tx


class TestPricingEngine:

    def setup_method(self):
        self.repository = InMemoryPromoCodeRepository([make_promo(code="SAVE10", value=10)])
        self.engine = PricingEngine(self.repository, clock=lambda: FIXED_NOW, retry_wait_seconds=0)
        self.pricing = make_pricing(base_price=500, weekend_multiplier=1.2)

    def _request(self, **overrides):
        defaults = dict(booking_date=WEDNESDAY, start_time="10:00", end_time="12:00")
        defaults.update(overrides)
        return QuoteRequest(**defaults)

    # ------------------------------------------------------------------ #
    # Quotes
    # ------------------------------------------------------------------ #

    def test_quote_without_promo(self):
        quote = self.engine.quote(self.pricing, self._request(booking_date=SATURDAY), "user_1")

        assert quote.strategy == PricingStrategy.REGULAR
        assert quote.adjusted_price == 1200
        assert quote.final_price == 1200
        assert quote.promo_code_applied is None
        assert quote.promo_rejection is None

    def test_quote_previews_discount_without_recording(self):
        quote = self.engine.quote(self.pricing, self._request(promo_code="save10"), "user_1")

        assert quote.adjusted_price == 1000
        assert quote.final_price == 900
        assert quote.promo_code_applied.code == "SAVE10"
        assert quote.promo_code_applied.discount == 100
        assert quote.promo_code_applied.type == "percentage"
        assert quote.breakdown.promo_discount == 100

        stored = self.repository.get("SAVE10")
        assert stored.current_usage == 0
        assert stored.analytics.total_attempts == 0

    def test_unknown_code_is_not_found_at_full_price(self):
        quote = self.engine.quote(self.pricing, self._request(promo_code="NOPE"), "user_1")

        assert quote.promo_rejection == RejectionReason.NOT_FOUND
        assert quote.final_price == quote.adjusted_price == 1000

    def test_invalid_time_range_fails_the_request(self):
        with pytest.raises(InvalidTimeRange):
            self.engine.quote(self.pricing, self._request(start_time="12:00", end_time="10:00"), "user_1")

    def test_hourly_rate_defaults_to_base_price(self):
        self.repository.add(make_promo(code="FREEHOUR", type=PromoCodeType.FREE_HOURS, value=1))
        quote = self.engine.quote(self.pricing, self._request(promo_code="FREEHOUR"), "user_1")

        assert quote.promo_code_applied.discount == 500
        assert quote.final_price == 500

    # ------------------------------------------------------------------ #
    # Checkout
    # ------------------------------------------------------------------ #

    def test_checkout_records_usage(self):
        quote = self.engine.checkout(
            self.pricing, self._request(promo_code="SAVE10"), "user_1", booking_id="bk_1",
            ip_address="10.0.0.1",
        )

        assert quote.final_price == 900
        stored = self.repository.get("SAVE10")
        assert stored.current_usage == 1
        assert stored.version == 1
        assert stored.usage_history[0].booking_id == "bk_1"
        assert stored.usage_history[0].original_amount == 1000
        assert stored.usage_history[0].ip_address == "10.0.0.1"
        assert stored.analytics.successful_uses == 1

    def test_checkout_records_rejection(self):
        self.repository.add(
            make_promo(code="BIGSPEND", restrictions=Restrictions(min_order_amount=5000))
        )
        quote = self.engine.checkout(
            self.pricing, self._request(promo_code="BIGSPEND"), "user_1", booking_id="bk_1"
        )

        assert quote.promo_rejection == RejectionReason.MIN_ORDER_NOT_MET
        assert quote.final_price == 1000
        stored = self.repository.get("BIGSPEND")
        assert stored.analytics.failure_reasons == {"MIN_ORDER_NOT_MET": 1}
        assert stored.current_usage == 0

    def test_checkout_exhausts_limited_code(self):
        self.repository.add(make_promo(code="ONCE", usage_limit=1))
        request = self._request(promo_code="ONCE")

        first = self.engine.checkout(self.pricing, request, "user_1", booking_id="bk_1")
        second = self.engine.checkout(self.pricing, request, "user_2", booking_id="bk_2")

        assert first.promo_code_applied is not None
        assert second.promo_rejection == RejectionReason.EXHAUSTED
        assert self.repository.get("ONCE").status == PromoCodeStatus.EXHAUSTED

    def test_checkout_retries_conflicts(self):
        repository = ConflictingRepository(self.repository, conflicts=2)
        engine = PricingEngine(repository, clock=lambda: FIXED_NOW, max_attempts=3, retry_wait_seconds=0)

        quote = engine.checkout(self.pricing, self._request(promo_code="SAVE10"), "user_1", "bk_1")

        assert repository.attempts == 3
        assert quote.promo_code_applied is not None
        assert self.repository.get("SAVE10").current_usage == 1

    def test_checkout_gives_up_after_max_attempts(self):
        repository = ConflictingRepository(self.repository, conflicts=10)
        engine = PricingEngine(repository, clock=lambda: FIXED_NOW, max_attempts=3, retry_wait_seconds=0)

        quote = engine.checkout(self.pricing, self._request(promo_code="SAVE10"), "user_1", "bk_1")

        assert repository.attempts == 3
        assert quote.promo_application_failed is True
        assert quote.promo_code_applied is None
        assert quote.final_price == 1000
        assert self.repository.get("SAVE10").current_usage == 0
