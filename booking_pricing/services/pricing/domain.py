"""
Pricing value types.

These are plain, permissive dataclasses: a config read back from storage may
violate its invariants, and the engine decides what to skip (see
multipliers.py and strategy_resolver.py). Strict validation lives in the
pydantic schemas used on write.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional, Tuple


class PriceType(str, Enum):
    HOURLY = "hourly"
    DAILY = "daily"
    FREE = "free"


class PricingStrategy(str, Enum):
    FREE = "free"
    SPECIAL_EVENT = "special-event"
    TIME_BLOCK = "time-block"
    REGULAR = "regular"


# Inclusive bounds per multiplier kind
PEAK_MULTIPLIER_BOUNDS = (0.1, 10.0)
OFF_PEAK_MULTIPLIER_BOUNDS = (0.1, 2.0)
WEEKEND_MULTIPLIER_BOUNDS = (0.1, 3.0)


@dataclass(frozen=True)
class PeakWindow:
    start: str          # "HH:MM"
    end: str            # "HH:MM"
    multiplier: float


@dataclass(frozen=True)
class TimeBlock:
    duration_hours: int
    price: int          # minor units
    title: str


@dataclass(frozen=True)
class SpecialEventPrice:
    date: date
    price: int          # minor units


@dataclass(frozen=True)
class PricingConfig:
    base_price: int
    price_type: PriceType = PriceType.HOURLY
    peak_window: Optional[PeakWindow] = None
    off_peak_multiplier: float = 1.0
    weekend_multiplier: float = 1.0
    time_blocks: Tuple[TimeBlock, ...] = ()
    special_event_prices: Tuple[SpecialEventPrice, ...] = ()


@dataclass(frozen=True)
class RuleContext:
    date: date
    start_minutes: int
    end_minutes: int
    duration_hours: float
    is_weekend: bool
    pricing: PricingConfig
    promo_code: Optional[str] = None

    @property
    def day_of_week(self) -> int:
        """0 = Sunday ... 6 = Saturday."""
        return self.date.isoweekday() % 7

    @property
    def total_minutes(self) -> int:
        return self.end_minutes - self.start_minutes


@dataclass
class PriceBreakdown:
    base: float
    peak_adjustment: Optional[float] = None
    weekend_adjustment: Optional[float] = None
    special_event_adjustment: Optional[float] = None
    promo_discount: Optional[int] = None

    def as_dict(self) -> dict:
        data = {"base": self.base}
        if self.peak_adjustment is not None:
            data["peak_adjustment"] = self.peak_adjustment
        if self.weekend_adjustment is not None:
            data["weekend_adjustment"] = self.weekend_adjustment
        if self.special_event_adjustment is not None:
            data["special_event_adjustment"] = self.special_event_adjustment
        if self.promo_discount is not None:
            data["promo_discount"] = self.promo_discount
        return data


@dataclass(frozen=True)
class TimeBlockMatch:
    title: str
    duration_hours: int
    price: int
    savings: int


@dataclass(frozen=True)
class RegularPrice:
    """Output of the multiplier calculator."""
    exact_price: float                  # unrounded, for audit
    adjusted_price: int                 # round-half-up of exact_price
    breakdown: PriceBreakdown
    applied_multipliers: Tuple[str, ...]
    effective_multiplier: float = 1.0


@dataclass(frozen=True)
class PriceResolution:
    strategy: PricingStrategy
    base_price: int
    adjusted_price: int
    breakdown: PriceBreakdown
    applied_multipliers: Tuple[str, ...] = field(default_factory=tuple)
    time_block_match: Optional[TimeBlockMatch] = None
