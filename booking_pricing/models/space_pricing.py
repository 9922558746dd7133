# booking_pricing/models/space_pricing.py
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func
from booking_pricing.db.base_class import Base


class SpacePricing(Base):
    """Strategy pricing configuration of one bookable space."""
    __tablename__ = "space_pricing"

    space_id = Column(String, primary_key=True)
    price_type = Column(String(10), nullable=False)  # "hourly" | "daily" | "free"

    # Serialized PricingConfig; see crud_space_pricing for the shape
    config = Column(JSON, nullable=False)

    updated_by = Column(String, nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
