"""
Stacking helpers for callers that hold more than one candidate promo.

The engine itself applies one promo per request; checkout flows that
collect several eligible codes use these to decide which survive.
"""

from typing import List, Sequence, Tuple

from booking_pricing.services.promotions.domain import (
    DiscountResult,
    PromoCode,
    StackingStrategy,
)

Candidate = Tuple[PromoCode, DiscountResult]


def can_stack_with(promo: PromoCode, other_code: str) -> bool:
    """Deny list wins over allow list; allow list wins over the general flag."""
    rules = promo.stacking_rules
    other_code = other_code.upper()
    if other_code in rules.non_stackable_promocodes:
        return False
    if other_code in rules.stackable_promocodes:
        return True
    return rules.can_stack_with_other_promocodes


def are_stackable(first: PromoCode, second: PromoCode) -> bool:
    return can_stack_with(first, second.code) and can_stack_with(second, first.code)


def choose_by_strategy(candidates: Sequence[Candidate], strategy: StackingStrategy) -> List[Candidate]:
    if not candidates:
        return []
    if strategy == StackingStrategy.FIRST:
        return [candidates[0]]
    if strategy == StackingStrategy.LAST:
        return [candidates[-1]]
    if strategy == StackingStrategy.STACK:
        chosen: List[Candidate] = []
        for candidate in candidates:
            if all(are_stackable(candidate[0], kept[0]) for kept in chosen):
                chosen.append(candidate)
        return chosen
    return [max(candidates, key=lambda candidate: candidate[1].discount_amount)]
