# booking_pricing/models/promo_code_usage.py
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, JSON
from sqlalchemy.orm import relationship
from booking_pricing.db.base_class import Base
import uuid


class PromoCodeUsage(Base):
    """One successful application of a promo code to a booking."""
    __tablename__ = "promo_code_usages"

    id = Column(
        String, primary_key=True, default=lambda: f"pcu_{uuid.uuid4().hex[:12]}"
    )
    promo_code_id = Column(
        String,
        ForeignKey("promo_codes.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id = Column(String, nullable=False, index=True)
    booking_id = Column(String, nullable=False, index=True)
    discount_amount = Column(Integer, nullable=False)  # minor units
    original_amount = Column(Integer, nullable=False)
    final_amount = Column(Integer, nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=False)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String, nullable=True)
    # "metadata" is reserved on declarative classes
    usage_metadata = Column("metadata", JSON, nullable=True)

    # Relationships
    promo_code = relationship("PromoCode", back_populates="usages")
