# booking_pricing/models/__init__.py
# Import all models so Base.metadata knows every table

from booking_pricing.db.base_class import Base
from booking_pricing.models.space_pricing import SpacePricing
from booking_pricing.models.promo_code import PromoCode
from booking_pricing.models.promo_code_usage import PromoCodeUsage
