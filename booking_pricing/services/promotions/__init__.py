from .discounts import calculate_discount
from .domain import (
    BookingDetails,
    DiscountResult,
    Eligible,
    PromoCode,
    PromoCodeStatus,
    PromoCodeType,
    Rejected,
    RejectionReason,
)
from .eligibility import evaluate_eligibility
from .repository import InMemoryPromoCodeRepository, PromoCodeRepository
from .status import pause, reconcile_status, resume, soft_delete
from .usage_ledger import record_failure, record_success, record_view

__all__ = [
    "calculate_discount",
    "BookingDetails",
    "DiscountResult",
    "Eligible",
    "PromoCode",
    "PromoCodeStatus",
    "PromoCodeType",
    "Rejected",
    "RejectionReason",
    "evaluate_eligibility",
    "InMemoryPromoCodeRepository",
    "PromoCodeRepository",
    "pause",
    "reconcile_status",
    "resume",
    "soft_delete",
    "record_failure",
    "record_success",
    "record_view",
]
