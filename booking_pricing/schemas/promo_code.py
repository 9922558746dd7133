# booking_pricing/schemas/promo_code.py
import re
from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from booking_pricing.services.promotions import status as promo_status
from booking_pricing.services.promotions.domain import (
    BookingDetails,
    DiscountScope,
    PromoCode,
    PromoCodeStatus,
    PromoCodeType,
    Restrictions,
    StackingRules,
    StackingStrategy,
)
from booking_pricing.utils.clock import ensure_aware


class RestrictionsSchema(BaseModel):
    min_order_amount: Optional[int] = Field(default=None, ge=0)
    max_order_amount: Optional[int] = Field(default=None, ge=0)
    max_discount_amount: Optional[int] = Field(default=None, ge=0)
    min_booking_duration: Optional[float] = Field(default=None, ge=0)
    max_booking_duration: Optional[float] = Field(default=None, ge=0)
    applicable_categories: List[str] = []
    applicable_spaces: List[str] = []
    applicable_users: List[str] = []
    excluded_users: List[str] = []
    applicable_locations: List[str] = []
    excluded_locations: List[str] = []
    applicable_days_of_week: List[int] = []
    applicable_time_slots: List[str] = []
    first_booking_only: bool = False
    new_users_only: bool = False
    max_uses_per_user: Optional[int] = Field(default=None, ge=1)
    max_uses_per_day: Optional[int] = Field(default=None, ge=1)
    cooldown_period_hours: Optional[float] = Field(default=None, ge=0)

    model_config = {"from_attributes": True}

    @field_validator("applicable_days_of_week")
    @classmethod
    def validate_days(cls, v: List[int]) -> List[int]:
        for day in v:
            if day < 0 or day > 6:
                raise ValueError("days of week must be between 0 (Sunday) and 6 (Saturday)")
        return v

    @model_validator(mode="after")
    def check_bounds(self) -> "RestrictionsSchema":
        if (
            self.min_order_amount is not None
            and self.max_order_amount is not None
            and self.min_order_amount > self.max_order_amount
        ):
            raise ValueError("min_order_amount must not exceed max_order_amount")
        if (
            self.min_booking_duration is not None
            and self.max_booking_duration is not None
            and self.min_booking_duration > self.max_booking_duration
        ):
            raise ValueError("min_booking_duration must not exceed max_booking_duration")
        return self

    def to_domain(self) -> Restrictions:
        data = self.model_dump()
        for key, value in data.items():
            if isinstance(value, list):
                data[key] = tuple(value)
        return Restrictions(**data)


class StackingRulesSchema(BaseModel):
    can_stack_with_other_promocodes: bool = False
    can_stack_with_platform_discounts: bool = True
    can_stack_with_space_discounts: bool = True
    stackable_promocodes: List[str] = []
    non_stackable_promocodes: List[str] = []
    stacking_strategy: StackingStrategy = StackingStrategy.BEST

    model_config = {"from_attributes": True}

    def to_domain(self) -> StackingRules:
        return StackingRules(
            can_stack_with_other_promocodes=self.can_stack_with_other_promocodes,
            can_stack_with_platform_discounts=self.can_stack_with_platform_discounts,
            can_stack_with_space_discounts=self.can_stack_with_space_discounts,
            stackable_promocodes=tuple(c.upper() for c in self.stackable_promocodes),
            non_stackable_promocodes=tuple(c.upper() for c in self.non_stackable_promocodes),
            stacking_strategy=self.stacking_strategy,
        )


class PromoCodeCreate(BaseModel):
    code: str = Field(..., min_length=3, max_length=20)
    type: PromoCodeType
    value: float = Field(..., gt=0)
    valid_from: datetime
    valid_until: datetime
    scope: DiscountScope = DiscountScope.GLOBAL
    description: str = ""
    usage_limit: Optional[int] = Field(default=None, ge=1)
    restrictions: RestrictionsSchema = RestrictionsSchema()
    stacking_rules: StackingRulesSchema = StackingRulesSchema()

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        v = v.strip().upper()
        if not re.fullmatch(r"[A-Z0-9_]{3,20}", v):
            raise ValueError("code must be 3-20 characters of A-Z, 0-9 or _")
        return v

    @model_validator(mode="after")
    def check_promo(self) -> "PromoCodeCreate":
        if ensure_aware(self.valid_until) <= ensure_aware(self.valid_from):
            raise ValueError("valid_until must be after valid_from")
        if self.type == PromoCodeType.PERCENTAGE and self.value > 100:
            raise ValueError("percentage discounts cannot exceed 100")
        return self

    def to_domain(self) -> PromoCode:
        return PromoCode(
            code=self.code,
            type=self.type,
            value=self.value,
            valid_from=ensure_aware(self.valid_from),
            valid_until=ensure_aware(self.valid_until),
            scope=self.scope,
            description=self.description,
            usage_limit=self.usage_limit,
            restrictions=self.restrictions.to_domain(),
            stacking_rules=self.stacking_rules.to_domain(),
        )


class PromoAnalyticsOut(BaseModel):
    total_views: int = 0
    total_attempts: int = 0
    successful_uses: int = 0
    failed_uses: int = 0
    total_discount_given: int = 0
    total_revenue_generated: int = 0
    average_discount_amount: float = 0.0
    conversion_rate: float = 0.0
    usage_by_category: Dict[str, int] = {}
    usage_by_location: Dict[str, int] = {}
    usage_by_time_slot: Dict[str, int] = {}
    failure_reasons: Dict[str, int] = {}

    model_config = {"from_attributes": True}


class PromoCodeOut(BaseModel):
    code: str
    type: PromoCodeType
    value: float
    status: PromoCodeStatus
    scope: DiscountScope
    description: str = ""
    valid_from: datetime
    valid_until: datetime
    usage_limit: Optional[int] = None
    current_usage: int = 0
    remaining_uses: Optional[int] = None
    usage_percentage: float = 0.0
    days_until_expiry: int = 0
    is_valid: bool = False
    restrictions: RestrictionsSchema
    stacking_rules: StackingRulesSchema
    analytics: PromoAnalyticsOut
    last_used_at: Optional[datetime] = None
    paused_at: Optional[datetime] = None
    pause_reason: Optional[str] = None

    @classmethod
    def from_domain(cls, promo: PromoCode, now: datetime) -> "PromoCodeOut":
        return cls(
            code=promo.code,
            type=promo.type,
            value=promo.value,
            status=promo.status,
            scope=promo.scope,
            description=promo.description,
            valid_from=promo.valid_from,
            valid_until=promo.valid_until,
            usage_limit=promo.usage_limit,
            current_usage=promo.current_usage,
            remaining_uses=promo_status.remaining_uses(promo),
            usage_percentage=promo_status.usage_percentage(promo),
            days_until_expiry=promo_status.days_until_expiry(promo, now),
            is_valid=promo_status.is_valid(promo, now),
            restrictions=RestrictionsSchema.model_validate(promo.restrictions),
            stacking_rules=StackingRulesSchema.model_validate(promo.stacking_rules),
            analytics=PromoAnalyticsOut.model_validate(promo.analytics),
            last_used_at=promo.last_used_at,
            paused_at=promo.paused_at,
            pause_reason=promo.pause_reason,
        )


class PromoValidateRequest(BaseModel):
    """Booking facts for an eligibility preview; all optional."""
    amount: Optional[int] = Field(default=None, ge=0)
    booking_date: Optional[date] = None
    duration_hours: Optional[float] = Field(default=None, gt=0)
    category: Optional[str] = None
    space_id: Optional[str] = None
    location: Optional[str] = None
    start_time: Optional[str] = None
    quantity: int = Field(default=1, ge=1)
    hourly_rate: Optional[int] = None
    is_first_booking: bool = False
    is_new_user: bool = False

    def to_booking(self) -> Optional[BookingDetails]:
        """Booking-specific checks only run when amount, date and duration are all known."""
        if self.amount is None or self.booking_date is None or self.duration_hours is None:
            return None
        return BookingDetails(
            amount=self.amount,
            booking_date=self.booking_date,
            duration_hours=self.duration_hours,
            category=self.category,
            space_id=self.space_id,
            location=self.location,
            start_time=self.start_time,
            quantity=self.quantity,
            hourly_rate=self.hourly_rate,
            is_first_booking=self.is_first_booking,
            is_new_user=self.is_new_user,
        )


class PromoValidateResponse(BaseModel):
    code: str
    is_eligible: bool
    reason: Optional[str] = None
    discount_amount: Optional[int] = None
    final_amount: Optional[int] = None


class PromoPauseRequest(BaseModel):
    reason: Optional[str] = None
