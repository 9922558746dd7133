# booking_pricing/crud/__init__.py

from .crud_promo_code import promo_code, SqlPromoCodeRepository
from .crud_space_pricing import space_pricing
