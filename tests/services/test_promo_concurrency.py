from concurrent.futures import ThreadPoolExecutor

from booking_pricing.services.pricing_engine import PricingEngine, QuoteRequest
from booking_pricing.services.promotions.domain import RejectionReason
from booking_pricing.services.promotions.repository import InMemoryPromoCodeRepository
from tests.utils.factories import FIXED_NOW, WEDNESDAY, make_pricing, make_promo

PARALLEL_BOOKINGS = 16


def _checkout_all(engine, code):
    pricing = make_pricing(base_price=500)
    request = QuoteRequest(
        booking_date=WEDNESDAY, start_time="10:00", end_time="12:00", promo_code=code
    )
    with ThreadPoolExecutor(max_workers=PARALLEL_BOOKINGS) as pool:
        futures = [
            pool.submit(engine.checkout, pricing, request, f"user_{i}", f"bk_{i}")
            for i in range(PARALLEL_BOOKINGS)
        ]
        return [future.result() for future in futures]


def test_last_unit_is_consumed_exactly_once():
    repository = InMemoryPromoCodeRepository([make_promo(code="LASTONE", usage_limit=1)])
    engine = PricingEngine(repository, clock=lambda: FIXED_NOW, retry_wait_seconds=0)

    quotes = _checkout_all(engine, "LASTONE")

    applied = [q for q in quotes if q.promo_code_applied is not None]
    rejected = [q for q in quotes if q.promo_rejection is not None]
    assert len(applied) == 1
    assert len(rejected) == PARALLEL_BOOKINGS - 1
    assert all(q.promo_rejection == RejectionReason.EXHAUSTED for q in rejected)

    stored = repository.get("LASTONE")
    assert stored.current_usage == 1
    assert len(stored.usage_history) == 1
    assert stored.analytics.failed_uses == PARALLEL_BOOKINGS - 1


def test_distinct_codes_do_not_interfere():
    repository = InMemoryPromoCodeRepository(
        [make_promo(code="ALPHA", usage_limit=100), make_promo(code="BETA", usage_limit=100)]
    )
    engine = PricingEngine(repository, clock=lambda: FIXED_NOW, retry_wait_seconds=0)

    alpha = _checkout_all(engine, "ALPHA")
    beta = _checkout_all(engine, "BETA")

    assert all(q.promo_code_applied is not None for q in alpha + beta)
    assert repository.get("ALPHA").current_usage == PARALLEL_BOOKINGS
    assert repository.get("BETA").current_usage == PARALLEL_BOOKINGS
