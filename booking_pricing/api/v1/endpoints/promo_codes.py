# booking_pricing/api/v1/endpoints/promo_codes.py
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from booking_pricing.api import deps
from booking_pricing.core.exceptions import PromoCodeNotFound
from booking_pricing.crud.crud_promo_code import SqlPromoCodeRepository, promo_code as crud_promo
from booking_pricing.crud.crud_promo_code import to_domain
from booking_pricing.schemas.promo_code import (
    PromoCodeCreate,
    PromoCodeOut,
    PromoPauseRequest,
    PromoValidateRequest,
    PromoValidateResponse,
)
from booking_pricing.schemas.token import TokenPayload
from booking_pricing.services.promotions import status as promo_status
from booking_pricing.services.promotions.discounts import calculate_discount
from booking_pricing.services.promotions.domain import PromoCode
from booking_pricing.services.promotions.eligibility import evaluate_eligibility
from booking_pricing.services.promotions.usage_ledger import record_view
from booking_pricing.utils.clock import Clock

router = APIRouter(prefix="/promo-codes", tags=["Promo Codes"])


def _update(
    repository: SqlPromoCodeRepository, code: str, change: Callable[[PromoCode], PromoCode]
) -> PromoCode:
    """Apply change to the locked promo code and write it back."""
    with repository.transaction(code) as tx:
        if tx.promo is None:
            raise PromoCodeNotFound(code)
        return tx.save(change(tx.promo))


@router.post("", response_model=PromoCodeOut, status_code=status.HTTP_201_CREATED)
def create_promo_code(
    promo_in: PromoCodeCreate,
    db: Session = Depends(deps.get_db),
    clock: Clock = Depends(deps.get_clock),
    current_user: TokenPayload = Depends(deps.require_admin),
):
    if crud_promo.get_by_code(db, code=promo_in.code, include_deleted=True):
        raise HTTPException(status_code=409, detail="Promo code already exists")
    row = crud_promo.create(db, obj_in=promo_in, created_by=current_user.sub)
    return PromoCodeOut.from_domain(to_domain(row), clock())


@router.get("/{code}", response_model=PromoCodeOut)
def get_promo_code(
    code: str,
    repository: SqlPromoCodeRepository = Depends(deps.get_promo_repository),
    clock: Clock = Depends(deps.get_clock),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    promo = repository.get(code)
    if promo is None:
        raise PromoCodeNotFound(code)
    now = clock()
    return PromoCodeOut.from_domain(promo_status.reconcile_status(promo, now), now)


@router.post("/{code}/validate", response_model=PromoValidateResponse)
def validate_promo_code(
    code: str,
    validate_in: PromoValidateRequest,
    repository: SqlPromoCodeRepository = Depends(deps.get_promo_repository),
    clock: Clock = Depends(deps.get_clock),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """
    Check whether the caller could use a code, and preview its discount.

    Counts as a view in the code's analytics; nothing else is recorded.
    """
    now = clock()
    promo = _update(repository, code, lambda p: promo_status.reconcile_status(record_view(p), now))

    booking = validate_in.to_booking()
    verdict = evaluate_eligibility(promo, current_user.sub, booking, now)
    response = PromoValidateResponse(
        code=promo.code,
        is_eligible=verdict.is_eligible,
        reason=verdict.reason.value if verdict.reason else None,
    )
    if verdict.is_eligible and validate_in.amount is not None:
        discount = calculate_discount(promo, validate_in.amount, booking)
        response.discount_amount = discount.discount_amount
        response.final_amount = discount.final_amount
    return response


@router.post("/{code}/pause", response_model=PromoCodeOut)
def pause_promo_code(
    code: str,
    pause_in: PromoPauseRequest,
    repository: SqlPromoCodeRepository = Depends(deps.get_promo_repository),
    clock: Clock = Depends(deps.get_clock),
    current_user: TokenPayload = Depends(deps.require_admin),
):
    now = clock()
    promo = _update(repository, code, lambda p: promo_status.pause(p, now, pause_in.reason))
    return PromoCodeOut.from_domain(promo, now)


@router.post("/{code}/resume", response_model=PromoCodeOut)
def resume_promo_code(
    code: str,
    repository: SqlPromoCodeRepository = Depends(deps.get_promo_repository),
    clock: Clock = Depends(deps.get_clock),
    current_user: TokenPayload = Depends(deps.require_admin),
):
    now = clock()
    promo = _update(repository, code, lambda p: promo_status.resume(p, now))
    return PromoCodeOut.from_domain(promo, now)


@router.delete("/{code}", status_code=status.HTTP_204_NO_CONTENT)
def delete_promo_code(
    code: str,
    repository: SqlPromoCodeRepository = Depends(deps.get_promo_repository),
    clock: Clock = Depends(deps.get_clock),
    current_user: TokenPayload = Depends(deps.require_admin),
):
    """Soft delete; the code stops resolving but its history is kept."""
    now = clock()
    _update(repository, code, lambda p: promo_status.soft_delete(p, now, current_user.sub))
