# booking_pricing/api/v1/endpoints/pricing.py
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from booking_pricing.api import deps
from booking_pricing.core.config import settings
from booking_pricing.crud.crud_space_pricing import config_from_json, space_pricing as crud_pricing
from booking_pricing.schemas.pricing import (
    CheckoutRequestSchema,
    PriceQuoteOut,
    PricingConfigSchema,
    PricingOptionsOut,
    QuoteRequestSchema,
    SpacePricingOut,
    SpacePricingSet,
)
from booking_pricing.schemas.token import TokenPayload
from booking_pricing.services.pricing.options import describe_pricing_options
from booking_pricing.services.pricing_engine import PricingEngine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Space Pricing"])


@router.put("/spaces/{spaceId}/pricing", response_model=SpacePricingOut)
def set_space_pricing(
    spaceId: str,
    pricing_in: SpacePricingSet,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Store a strategy config, or a legacy rule list translated into one."""
    row = crud_pricing.set(
        db, space_id=spaceId, config=pricing_in.to_domain(), updated_by=current_user.sub
    )
    return SpacePricingOut(
        space_id=row.space_id,
        pricing=PricingConfigSchema.from_domain(config_from_json(row.config)),
        updated_at=row.updated_at,
    )


@router.get("/spaces/{spaceId}/pricing", response_model=SpacePricingOut)
def get_space_pricing(
    spaceId: str,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    config = crud_pricing.get_config(db, space_id=spaceId)
    return SpacePricingOut(space_id=spaceId, pricing=PricingConfigSchema.from_domain(config))


@router.get("/spaces/{spaceId}/pricing/options", response_model=PricingOptionsOut)
def get_pricing_options(
    spaceId: str,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Which pricing features the space offers."""
    config = crud_pricing.get_config(db, space_id=spaceId)
    return describe_pricing_options(config)


@router.post("/spaces/{spaceId}/pricing/quote", response_model=PriceQuoteOut)
def quote_booking(
    spaceId: str,
    quote_in: QuoteRequestSchema,
    db: Session = Depends(deps.get_db),
    engine: PricingEngine = Depends(deps.get_pricing_engine),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Price a booking. A promo code is previewed, not consumed."""
    config = crud_pricing.get_config(db, space_id=spaceId)
    quote = engine.quote(config, quote_in.to_domain(spaceId), user_id=current_user.sub)
    return PriceQuoteOut.from_quote(quote, settings.CURRENCY)


@router.post("/spaces/{spaceId}/pricing/checkout", response_model=PriceQuoteOut)
def checkout_booking(
    spaceId: str,
    checkout_in: CheckoutRequestSchema,
    request: Request,
    db: Session = Depends(deps.get_db),
    engine: PricingEngine = Depends(deps.get_pricing_engine),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Price a booking and consume its promo code."""
    config = crud_pricing.get_config(db, space_id=spaceId)
    quote = engine.checkout(
        config,
        checkout_in.to_domain(spaceId),
        user_id=current_user.sub,
        booking_id=checkout_in.booking_id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        metadata=checkout_in.metadata,
    )
    if quote.promo_application_failed:
        logger.warning(
            f"Booking {checkout_in.booking_id} checked out without its promo code",
            extra={"space_id": spaceId, "promo_code": checkout_in.promo_code},
        )
    return PriceQuoteOut.from_quote(quote, settings.CURRENCY)
