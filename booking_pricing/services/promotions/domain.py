"""
Promo code value types.

A PromoCode is an immutable value. Every state change (usage, failure,
pause, resume, delete) is a function that returns a new PromoCode, so a
caller can write the new state back under a version check.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union


class PromoCodeType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    FREE_HOURS = "free_hours"
    BUY_ONE_GET_ONE = "buy_one_get_one"


class PromoCodeStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    PAUSED = "paused"


class DiscountScope(str, Enum):
    GLOBAL = "global"
    CATEGORY = "category"
    SPACE = "space"
    USER = "user"
    FIRST_TIME_USER = "first_time_user"


class StackingStrategy(str, Enum):
    BEST = "best"
    FIRST = "first"
    LAST = "last"
    STACK = "stack"


class RejectionReason(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    EXPIRED = "EXPIRED"
    EXHAUSTED = "EXHAUSTED"
    INACTIVE = "INACTIVE"
    INVALID = "INVALID"
    USER_NOT_ELIGIBLE = "USER_NOT_ELIGIBLE"
    USER_EXCLUDED = "USER_EXCLUDED"
    USER_LIMIT_EXCEEDED = "USER_LIMIT_EXCEEDED"
    COOLDOWN_ACTIVE = "COOLDOWN_ACTIVE"
    MIN_ORDER_NOT_MET = "MIN_ORDER_NOT_MET"
    MAX_ORDER_EXCEEDED = "MAX_ORDER_EXCEEDED"
    CATEGORY_NOT_APPLICABLE = "CATEGORY_NOT_APPLICABLE"
    SPACE_NOT_APPLICABLE = "SPACE_NOT_APPLICABLE"
    LOCATION_NOT_APPLICABLE = "LOCATION_NOT_APPLICABLE"
    LOCATION_EXCLUDED = "LOCATION_EXCLUDED"
    DAY_NOT_APPLICABLE = "DAY_NOT_APPLICABLE"
    MIN_DURATION_NOT_MET = "MIN_DURATION_NOT_MET"
    MAX_DURATION_EXCEEDED = "MAX_DURATION_EXCEEDED"
    TIME_SLOT_NOT_APPLICABLE = "TIME_SLOT_NOT_APPLICABLE"
    DAILY_LIMIT_EXCEEDED = "DAILY_LIMIT_EXCEEDED"
    FIRST_BOOKING_ONLY = "FIRST_BOOKING_ONLY"
    NEW_USERS_ONLY = "NEW_USERS_ONLY"


@dataclass(frozen=True)
class Restrictions:
    min_order_amount: Optional[int] = None
    max_order_amount: Optional[int] = None
    max_discount_amount: Optional[int] = None
    min_booking_duration: Optional[float] = None
    max_booking_duration: Optional[float] = None
    applicable_categories: Tuple[str, ...] = ()
    applicable_spaces: Tuple[str, ...] = ()
    applicable_users: Tuple[str, ...] = ()
    excluded_users: Tuple[str, ...] = ()
    applicable_locations: Tuple[str, ...] = ()
    excluded_locations: Tuple[str, ...] = ()
    applicable_days_of_week: Tuple[int, ...] = ()     # 0 = Sunday
    applicable_time_slots: Tuple[str, ...] = ()       # "09:00-12:00"
    first_booking_only: bool = False
    new_users_only: bool = False
    max_uses_per_user: Optional[int] = None
    max_uses_per_day: Optional[int] = None
    cooldown_period_hours: Optional[float] = None


@dataclass(frozen=True)
class StackingRules:
    can_stack_with_other_promocodes: bool = False
    can_stack_with_platform_discounts: bool = True
    can_stack_with_space_discounts: bool = True
    stackable_promocodes: Tuple[str, ...] = ()
    non_stackable_promocodes: Tuple[str, ...] = ()
    stacking_strategy: StackingStrategy = StackingStrategy.BEST


@dataclass(frozen=True)
class UsageRecord:
    user_id: str
    booking_id: str
    discount_amount: int
    original_amount: int
    final_amount: int
    used_at: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class PromoAnalytics:
    total_views: int = 0
    total_attempts: int = 0
    successful_uses: int = 0
    failed_uses: int = 0
    total_discount_given: int = 0
    total_revenue_generated: int = 0
    average_discount_amount: float = 0.0
    conversion_rate: float = 0.0
    usage_by_category: Dict[str, int] = field(default_factory=dict)
    usage_by_location: Dict[str, int] = field(default_factory=dict)
    usage_by_time_slot: Dict[str, int] = field(default_factory=dict)
    failure_reasons: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class PromoCode:
    code: str
    type: PromoCodeType
    value: float
    valid_from: datetime
    valid_until: datetime
    scope: DiscountScope = DiscountScope.GLOBAL
    status: PromoCodeStatus = PromoCodeStatus.ACTIVE
    description: str = ""
    usage_limit: Optional[int] = None
    current_usage: int = 0
    restrictions: Restrictions = field(default_factory=Restrictions)
    stacking_rules: StackingRules = field(default_factory=StackingRules)
    usage_history: Tuple[UsageRecord, ...] = ()
    analytics: PromoAnalytics = field(default_factory=PromoAnalytics)
    last_used_at: Optional[datetime] = None
    paused_at: Optional[datetime] = None
    pause_reason: Optional[str] = None
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[str] = None
    version: int = 0


@dataclass(frozen=True)
class BookingDetails:
    """What the checkout flow knows about the booking a promo is applied to."""
    amount: int
    booking_date: date
    duration_hours: float
    category: Optional[str] = None
    space_id: Optional[str] = None
    location: Optional[str] = None
    start_time: Optional[str] = None        # "HH:MM"
    quantity: int = 1
    hourly_rate: Optional[int] = None
    is_first_booking: bool = False
    is_new_user: bool = False

    @property
    def day_of_week(self) -> int:
        return self.booking_date.isoweekday() % 7


@dataclass(frozen=True)
class Eligible:
    is_eligible = True
    reason = None


@dataclass(frozen=True)
class Rejected:
    reason: RejectionReason
    is_eligible = False


EligibilityResult = Union[Eligible, Rejected]


@dataclass(frozen=True)
class DiscountResult:
    discount_amount: int
    final_amount: int
