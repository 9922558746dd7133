"""
Pricing engine error taxonomy.

- Input validation errors (InvalidTimeFormat, InvalidTimeRange) are fatal to
  the request and never retried.
- Promo rejections are NOT exceptions; see services.promotions.domain.Rejected.
- Configuration invariant violations are logged and skipped by the engine,
  so they have no exception class here.
- Concurrent-update conflicts are retried; once retries run out the caller
  sees PromoApplicationFailed and proceeds without the promo.
"""

from typing import Optional


class ErrorCategory:
    """Error categories for structured error responses"""
    VALIDATION = "validation_error"
    NOT_FOUND = "not_found_error"
    CONFLICT = "conflict_error"
    INTERNAL = "internal_error"


class PricingError(Exception):
    """Base application error with structured information"""

    def __init__(
        self,
        message: str,
        category: str = ErrorCategory.INTERNAL,
        status_code: int = 500,
        details: Optional[dict] = None,
    ):
        self.message = message
        self.category = category
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class InvalidTimeFormat(PricingError):
    def __init__(self, value: str, field: Optional[str] = None):
        details = {"value": value}
        if field:
            details["field"] = field
        super().__init__(
            message=f"Invalid time '{value}': expected HH:MM between 00:00 and 23:59",
            category=ErrorCategory.VALIDATION,
            status_code=400,
            details=details,
        )


class InvalidTimeRange(PricingError):
    def __init__(self, start_time: str, end_time: str):
        super().__init__(
            message="End time must be after start time",
            category=ErrorCategory.VALIDATION,
            status_code=400,
            details={"start_time": start_time, "end_time": end_time},
        )


class PricingConfigNotFound(PricingError):
    def __init__(self, space_id: str):
        super().__init__(
            message="Pricing configuration not found",
            category=ErrorCategory.NOT_FOUND,
            status_code=404,
            details={"space_id": space_id},
        )


class PromoCodeNotFound(PricingError):
    def __init__(self, code: str):
        super().__init__(
            message="Promo code not found",
            category=ErrorCategory.NOT_FOUND,
            status_code=404,
            details={"code": code},
        )


class ConcurrentUpdateError(PricingError):
    """The promo code changed between read and write-back."""

    def __init__(self, code: str, expected_version: int, actual_version: Optional[int] = None):
        super().__init__(
            message=f"Promo code {code} was modified concurrently",
            category=ErrorCategory.CONFLICT,
            status_code=409,
            details={
                "code": code,
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )


class PromoApplicationFailed(PricingError):
    """Applying a promo code kept conflicting; caller should proceed without it."""

    def __init__(self, code: str, attempts: int):
        super().__init__(
            message=f"Could not apply promo code {code} after {attempts} attempts",
            category=ErrorCategory.CONFLICT,
            status_code=409,
            details={"code": code, "attempts": attempts},
        )
