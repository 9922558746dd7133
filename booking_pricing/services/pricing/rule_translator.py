"""
Translate the legacy ordered pricing-rule list into a PricingConfig.

Spaces created before strategy-based pricing carry a list of generic rules
keyed by type and conditions. The strategy model is authoritative; rules are
folded into it as follows:

- inactive rules are dropped
- the first hourly/daily rule without day, time-slot or date conditions
  gives the base price and price type
- bundle rules with a minimum duration become time blocks
- a daily rule whose date range covers one day becomes a special event price
- a rule with a peak multiplier and a time slot gives the peak window
- a rule with a peak multiplier restricted to Saturday/Sunday gives the
  weekend multiplier
- promo and monthly rules have no strategy counterpart and are ignored
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence, Tuple

from booking_pricing.services.pricing.domain import (
    PeakWindow,
    PriceType,
    PricingConfig,
    SpecialEventPrice,
    TimeBlock,
)

logger = logging.getLogger(__name__)

WEEKEND_DAYS = frozenset({0, 6})


@dataclass(frozen=True)
class RuleConditions:
    time_slots: Tuple[str, ...] = ()
    day_of_week: Tuple[int, ...] = ()
    date_range: Optional[Tuple[date, date]] = None
    min_duration: Optional[float] = None
    max_duration: Optional[float] = None
    peak_multiplier: Optional[float] = None


@dataclass(frozen=True)
class PricingRule:
    name: str
    type: str               # hourly | daily | monthly | bundle | promo
    base_price: int
    conditions: RuleConditions = field(default_factory=RuleConditions)
    is_active: bool = True


def _is_unconditioned(rule: PricingRule) -> bool:
    c = rule.conditions
    return not c.time_slots and not c.day_of_week and c.date_range is None


def _base_rule(rules: Sequence[PricingRule]) -> Optional[PricingRule]:
    metered = [r for r in rules if r.type in ("hourly", "daily")]
    for rule in metered:
        if _is_unconditioned(rule):
            return rule
    for rule in metered:
        if rule.conditions.date_range is None:
            return rule
    return None


def _parse_slot(slot: str) -> Optional[Tuple[str, str]]:
    parts = slot.split("-")
    if len(parts) != 2:
        return None
    return parts[0].strip(), parts[1].strip()


def translate_pricing_rules(rules: Sequence[PricingRule]) -> PricingConfig:
    active = [rule for rule in rules if rule.is_active]
    if not active:
        return PricingConfig(base_price=0, price_type=PriceType.FREE)

    base = _base_rule(active)
    if base is None:
        logger.warning("No hourly or daily rule to derive a base price from; treating space as free")
        return PricingConfig(base_price=0, price_type=PriceType.FREE)

    time_blocks: List[TimeBlock] = []
    special_events: List[SpecialEventPrice] = []
    peak_window: Optional[PeakWindow] = None
    weekend_multiplier = 1.0

    for rule in active:
        c = rule.conditions
        if rule.type in ("promo", "monthly"):
            logger.info(f"Pricing rule '{rule.name}' ({rule.type}) has no strategy equivalent; ignored")
            continue

        if rule.type == "bundle":
            if c.min_duration and c.min_duration > 0:
                time_blocks.append(
                    TimeBlock(duration_hours=int(c.min_duration), price=rule.base_price, title=rule.name)
                )
            else:
                logger.warning(f"Bundle rule '{rule.name}' has no minimum duration; ignored")
            continue

        if rule.type in ("hourly", "daily") and c.date_range is not None and c.date_range[0] == c.date_range[1]:
            special_events.append(SpecialEventPrice(date=c.date_range[0], price=rule.base_price))
            continue

        if c.peak_multiplier:
            if c.time_slots and peak_window is None:
                slot = _parse_slot(c.time_slots[0])
                if slot is None:
                    logger.warning(f"Rule '{rule.name}' has malformed time slot {c.time_slots[0]!r}")
                else:
                    peak_window = PeakWindow(start=slot[0], end=slot[1], multiplier=c.peak_multiplier)
            elif c.day_of_week and set(c.day_of_week) <= WEEKEND_DAYS and not c.time_slots:
                weekend_multiplier = c.peak_multiplier

    return PricingConfig(
        base_price=base.base_price,
        price_type=PriceType(base.type),
        peak_window=peak_window,
        weekend_multiplier=weekend_multiplier,
        time_blocks=tuple(time_blocks),
        special_event_prices=tuple(special_events),
    )
