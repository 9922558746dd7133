# booking_pricing/schemas/pricing.py
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from booking_pricing.services.pricing.domain import (
    PeakWindow,
    PriceType,
    PricingConfig,
    SpecialEventPrice,
    TimeBlock,
)
from booking_pricing.services.pricing.rule_translator import (
    PricingRule,
    RuleConditions,
    translate_pricing_rules,
)
from booking_pricing.services.pricing.validation import validate_pricing_config
from booking_pricing.services.pricing_engine import PriceQuote, QuoteRequest
from booking_pricing.utils.money import format_minor_units


# --- Strategy configuration ---

class PeakWindowSchema(BaseModel):
    start: str = Field(..., examples=["09:00"])
    end: str = Field(..., examples=["17:00"])
    multiplier: float


class TimeBlockSchema(BaseModel):
    duration_hours: int
    price: int
    title: str


class SpecialEventPriceSchema(BaseModel):
    date: date
    price: int


class PricingConfigSchema(BaseModel):
    base_price: int
    price_type: PriceType = PriceType.HOURLY
    peak_window: Optional[PeakWindowSchema] = None
    off_peak_multiplier: float = 1.0
    weekend_multiplier: float = 1.0
    time_blocks: List[TimeBlockSchema] = []
    special_event_prices: List[SpecialEventPriceSchema] = []

    model_config = {"from_attributes": True}

    def to_domain(self) -> PricingConfig:
        peak = self.peak_window
        return PricingConfig(
            base_price=self.base_price,
            price_type=self.price_type,
            peak_window=PeakWindow(peak.start, peak.end, peak.multiplier) if peak else None,
            off_peak_multiplier=self.off_peak_multiplier,
            weekend_multiplier=self.weekend_multiplier,
            time_blocks=tuple(
                TimeBlock(b.duration_hours, b.price, b.title) for b in self.time_blocks
            ),
            special_event_prices=tuple(
                SpecialEventPrice(e.date, e.price) for e in self.special_event_prices
            ),
        )

    @classmethod
    def from_domain(cls, config: PricingConfig) -> "PricingConfigSchema":
        peak = config.peak_window
        return cls(
            base_price=config.base_price,
            price_type=config.price_type,
            peak_window=(
                PeakWindowSchema(start=peak.start, end=peak.end, multiplier=peak.multiplier)
                if peak
                else None
            ),
            off_peak_multiplier=config.off_peak_multiplier,
            weekend_multiplier=config.weekend_multiplier,
            time_blocks=[
                TimeBlockSchema(duration_hours=b.duration_hours, price=b.price, title=b.title)
                for b in config.time_blocks
            ],
            special_event_prices=[
                SpecialEventPriceSchema(date=e.date, price=e.price)
                for e in config.special_event_prices
            ],
        )


# --- Legacy rule list (camelCase, as older clients send it) ---

class DateRangeSchema(BaseModel):
    start: date
    end: date


class RuleConditionsSchema(BaseModel):
    time_slots: List[str] = Field(default=[], alias="timeSlots")
    day_of_week: List[int] = Field(default=[], alias="dayOfWeek")
    date_range: Optional[DateRangeSchema] = Field(default=None, alias="dateRange")
    min_duration: Optional[float] = Field(default=None, alias="minDuration")
    max_duration: Optional[float] = Field(default=None, alias="maxDuration")
    peak_multiplier: Optional[float] = Field(default=None, alias="peakMultiplier")

    model_config = {"populate_by_name": True}


class PricingRuleSchema(BaseModel):
    name: str
    type: Literal["hourly", "daily", "monthly", "bundle", "promo"]
    base_price: int = Field(..., alias="basePrice")
    conditions: RuleConditionsSchema = RuleConditionsSchema()
    is_active: bool = Field(default=True, alias="isActive")

    model_config = {"populate_by_name": True}

    def to_domain(self) -> PricingRule:
        c = self.conditions
        return PricingRule(
            name=self.name,
            type=self.type,
            base_price=self.base_price,
            conditions=RuleConditions(
                time_slots=tuple(c.time_slots),
                day_of_week=tuple(c.day_of_week),
                date_range=(c.date_range.start, c.date_range.end) if c.date_range else None,
                min_duration=c.min_duration,
                max_duration=c.max_duration,
                peak_multiplier=c.peak_multiplier,
            ),
            is_active=self.is_active,
        )


class SpacePricingSet(BaseModel):
    """Either a strategy config or a legacy rule list; never both."""
    pricing: Optional[PricingConfigSchema] = None
    pricing_rules: Optional[List[PricingRuleSchema]] = None

    @model_validator(mode="after")
    def check_config(self) -> "SpacePricingSet":
        if (self.pricing is None) == (self.pricing_rules is None):
            raise ValueError("Provide exactly one of 'pricing' or 'pricing_rules'")
        violations = validate_pricing_config(self.to_domain())
        if violations:
            raise ValueError("; ".join(violations))
        return self

    def to_domain(self) -> PricingConfig:
        if self.pricing is not None:
            return self.pricing.to_domain()
        return translate_pricing_rules([rule.to_domain() for rule in self.pricing_rules])


class SpacePricingOut(BaseModel):
    space_id: str
    pricing: PricingConfigSchema
    updated_at: Optional[datetime] = None


# --- Quotes ---

class QuoteRequestSchema(BaseModel):
    booking_date: date
    start_time: str = Field(..., examples=["10:00"])
    end_time: str = Field(..., examples=["13:00"])
    duration_hours: Optional[float] = None
    promo_code: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    quantity: int = Field(default=1, ge=1)
    hourly_rate: Optional[int] = None
    is_first_booking: bool = False
    is_new_user: bool = False

    def to_domain(self, space_id: str) -> QuoteRequest:
        return QuoteRequest(
            booking_date=self.booking_date,
            start_time=self.start_time,
            end_time=self.end_time,
            duration_hours=self.duration_hours,
            promo_code=self.promo_code,
            category=self.category,
            space_id=space_id,
            location=self.location,
            quantity=self.quantity,
            hourly_rate=self.hourly_rate,
            is_first_booking=self.is_first_booking,
            is_new_user=self.is_new_user,
        )


class CheckoutRequestSchema(QuoteRequestSchema):
    booking_id: str
    metadata: Optional[Dict[str, Any]] = None


class TimeBlockMatchOut(BaseModel):
    title: str
    duration_hours: int
    price: int
    savings: int


class PromoApplicationOut(BaseModel):
    code: str
    discount: int
    type: str


class PriceQuoteOut(BaseModel):
    strategy: str
    base_price: int
    adjusted_price: int
    final_price: int
    currency: str
    final_price_formatted: str
    breakdown: Dict[str, float]
    applied_multipliers: List[str] = []
    time_block_match: Optional[TimeBlockMatchOut] = None
    promo_code_applied: Optional[PromoApplicationOut] = None
    promo_rejection: Optional[str] = None
    promo_application_failed: bool = False

    @classmethod
    def from_quote(cls, quote: PriceQuote, currency: str) -> "PriceQuoteOut":
        match = quote.time_block_match
        applied = quote.promo_code_applied
        return cls(
            strategy=quote.strategy.value,
            base_price=quote.base_price,
            adjusted_price=quote.adjusted_price,
            final_price=quote.final_price,
            currency=currency,
            final_price_formatted=format_minor_units(quote.final_price, currency),
            breakdown=quote.breakdown.as_dict(),
            applied_multipliers=list(quote.applied_multipliers),
            time_block_match=(
                TimeBlockMatchOut(
                    title=match.title,
                    duration_hours=match.duration_hours,
                    price=match.price,
                    savings=match.savings,
                )
                if match
                else None
            ),
            promo_code_applied=(
                PromoApplicationOut(code=applied.code, discount=applied.discount, type=applied.type)
                if applied
                else None
            ),
            promo_rejection=quote.promo_rejection.value if quote.promo_rejection else None,
            promo_application_failed=quote.promo_application_failed,
        )


class PricingOptionsOut(BaseModel):
    base_price: int
    price_type: str
    has_peak_pricing: bool
    has_weekend_pricing: bool
    has_time_blocks: bool
    has_special_event_pricing: bool
    peak_window: Optional[PeakWindowSchema] = None
    time_blocks: List[TimeBlockSchema] = []
