# booking_pricing/models/promo_code.py
from sqlalchemy import Column, String, Boolean, DateTime, Float, Integer, JSON, Text, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from booking_pricing.db.base_class import Base
import uuid


class PromoCode(Base):
    __tablename__ = "promo_codes"

    id = Column(
        String, primary_key=True, default=lambda: f"promo_{uuid.uuid4().hex[:12]}"
    )
    code = Column(String(50), nullable=False, unique=True, index=True)  # stored upper-case
    description = Column(Text, nullable=True)
    discount_type = Column(String(20), nullable=False)  # PromoCodeType value
    discount_value = Column(Float, nullable=False)  # percent, minor units, or hours
    scope = Column(String(20), server_default="global", nullable=False)
    status = Column(String(20), server_default="active", nullable=False)

    # Validity period
    valid_from = Column(DateTime(timezone=True), nullable=False)
    valid_until = Column(DateTime(timezone=True), nullable=False)

    # Usage limits
    usage_limit = Column(Integer, nullable=True)  # NULL = unlimited
    current_usage = Column(Integer, server_default="0", nullable=False)

    restrictions = Column(JSON, nullable=False, default=dict)
    stacking_rules = Column(JSON, nullable=False, default=dict)
    analytics = Column(JSON, nullable=False, default=dict)

    last_used_at = Column(DateTime(timezone=True), nullable=True)
    paused_at = Column(DateTime(timezone=True), nullable=True)
    pause_reason = Column(String, nullable=True)

    # Soft delete
    is_deleted = Column(Boolean, server_default=text("false"), nullable=False, default=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by = Column(String, nullable=True)

    # Bumped on every write-back; saves compare against it
    version = Column(Integer, nullable=False, default=0, server_default="0")

    created_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    usages = relationship(
        "PromoCodeUsage",
        back_populates="promo_code",
        order_by="PromoCodeUsage.used_at",
        cascade="all, delete-orphan",
    )
