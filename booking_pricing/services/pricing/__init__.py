from .context import build_rule_context, parse_time_of_day
from .domain import PricingConfig, PriceResolution, PricingStrategy, RuleContext
from .strategy_resolver import resolve_price

__all__ = [
    "build_rule_context",
    "parse_time_of_day",
    "PricingConfig",
    "PriceResolution",
    "PricingStrategy",
    "RuleContext",
    "resolve_price",
]
