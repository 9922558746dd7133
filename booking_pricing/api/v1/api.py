# booking_pricing/api/v1/api.py

from fastapi import APIRouter
from booking_pricing.api.v1.endpoints import pricing, promo_codes

# Main router for the v1 API.
api_router = APIRouter()

api_router.include_router(pricing.router)
api_router.include_router(promo_codes.router)
