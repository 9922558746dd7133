# booking_pricing/services/pricing/strategy_resolver.py
import logging
from typing import Iterable, Optional

from booking_pricing.services.pricing.domain import (
    PriceBreakdown,
    PriceResolution,
    PriceType,
    PricingStrategy,
    RuleContext,
    SpecialEventPrice,
    TimeBlock,
    TimeBlockMatch,
)
from booking_pricing.services.pricing.multipliers import calculate_regular_price
from booking_pricing.services.pricing.validation import (
    usable_special_event_prices,
    usable_time_blocks,
)

logger = logging.getLogger(__name__)


def find_special_event_price(context: RuleContext) -> Optional[SpecialEventPrice]:
    """Special event entry for the booking's calendar day, if any."""
    for event in usable_special_event_prices(context.pricing):
        if event.date == context.date:
            return event
    return None


def select_time_block(blocks: Iterable[TimeBlock], duration_hours: float) -> Optional[TimeBlock]:
    """
    Exact duration match first, otherwise the shortest block that still
    covers the requested duration. None when no block covers it.
    """
    blocks = list(blocks)
    for block in blocks:
        if block.duration_hours == duration_hours:
            return block
    covering = [block for block in blocks if block.duration_hours >= duration_hours]
    if not covering:
        return None
    return min(covering, key=lambda block: block.duration_hours)


def resolve_price(context: RuleContext) -> PriceResolution:
    """
    Pick exactly one pricing strategy, first match wins:
    free, special event, cheaper time block, regular.
    """
    pricing = context.pricing

    if pricing.price_type == PriceType.FREE:
        return PriceResolution(
            strategy=PricingStrategy.FREE,
            base_price=0,
            adjusted_price=0,
            breakdown=PriceBreakdown(base=0),
            applied_multipliers=("free",),
        )

    special = find_special_event_price(context)
    if special is not None:
        return PriceResolution(
            strategy=PricingStrategy.SPECIAL_EVENT,
            base_price=pricing.base_price,
            adjusted_price=special.price,
            breakdown=PriceBreakdown(
                base=pricing.base_price,
                special_event_adjustment=special.price - pricing.base_price,
            ),
            applied_multipliers=("special-event",),
        )

    regular = calculate_regular_price(context)

    block = select_time_block(usable_time_blocks(pricing), context.duration_hours)
    if block is not None and block.price < regular.adjusted_price:
        logger.debug(
            f"Time block '{block.title}' undercuts regular price "
            f"({block.price} < {regular.adjusted_price})"
        )
        return PriceResolution(
            strategy=PricingStrategy.TIME_BLOCK,
            base_price=pricing.base_price,
            adjusted_price=block.price,
            breakdown=PriceBreakdown(base=block.price),
            applied_multipliers=("time-block",),
            time_block_match=TimeBlockMatch(
                title=block.title,
                duration_hours=block.duration_hours,
                price=block.price,
                savings=regular.adjusted_price - block.price,
            ),
        )

    return PriceResolution(
        strategy=PricingStrategy.REGULAR,
        base_price=pricing.base_price,
        adjusted_price=regular.adjusted_price,
        breakdown=regular.breakdown,
        applied_multipliers=regular.applied_multipliers,
    )
