# booking_pricing/crud/crud_space_pricing.py
import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from booking_pricing.core.exceptions import PricingConfigNotFound
from booking_pricing.models.space_pricing import SpacePricing
from booking_pricing.services.pricing.domain import (
    PeakWindow,
    PriceType,
    PricingConfig,
    SpecialEventPrice,
    TimeBlock,
)

logger = logging.getLogger(__name__)


def config_to_json(config: PricingConfig) -> dict:
    peak = config.peak_window
    return {
        "base_price": config.base_price,
        "price_type": config.price_type.value,
        "peak_window": (
            {"start": peak.start, "end": peak.end, "multiplier": peak.multiplier} if peak else None
        ),
        "off_peak_multiplier": config.off_peak_multiplier,
        "weekend_multiplier": config.weekend_multiplier,
        "time_blocks": [
            {"duration_hours": b.duration_hours, "price": b.price, "title": b.title}
            for b in config.time_blocks
        ],
        "special_event_prices": [
            {"date": e.date.isoformat(), "price": e.price} for e in config.special_event_prices
        ],
    }


def config_from_json(data: dict) -> PricingConfig:
    """
    Rebuild a PricingConfig from its stored form.

    No invariant checks here: the engine skips whatever is out of range.
    """
    peak = data.get("peak_window")
    return PricingConfig(
        base_price=data.get("base_price", 0),
        price_type=PriceType(data.get("price_type", PriceType.HOURLY.value)),
        peak_window=PeakWindow(peak["start"], peak["end"], peak["multiplier"]) if peak else None,
        off_peak_multiplier=data.get("off_peak_multiplier", 1.0),
        weekend_multiplier=data.get("weekend_multiplier", 1.0),
        time_blocks=tuple(
            TimeBlock(b["duration_hours"], b["price"], b.get("title", ""))
            for b in data.get("time_blocks", [])
        ),
        special_event_prices=tuple(
            SpecialEventPrice(date.fromisoformat(e["date"]), e["price"])
            for e in data.get("special_event_prices", [])
        ),
    )


class CRUDSpacePricing:
    """Stores one pricing config per space."""

    def get(self, db: Session, *, space_id: str) -> Optional[SpacePricing]:
        return db.query(SpacePricing).filter(SpacePricing.space_id == space_id).first()

    def get_config(self, db: Session, *, space_id: str) -> PricingConfig:
        row = self.get(db, space_id=space_id)
        if row is None:
            raise PricingConfigNotFound(space_id)
        return config_from_json(row.config)

    def set(
        self,
        db: Session,
        *,
        space_id: str,
        config: PricingConfig,
        updated_by: Optional[str] = None,
    ) -> SpacePricing:
        """Create or replace the pricing of a space."""
        row = self.get(db, space_id=space_id)
        if row is None:
            row = SpacePricing(space_id=space_id)
        row.price_type = config.price_type.value
        row.config = config_to_json(config)
        row.updated_by = updated_by
        db.add(row)
        db.commit()
        db.refresh(row)
        logger.info(f"Pricing for space {space_id} set to {config.price_type.value} by {updated_by}")
        return row


space_pricing = CRUDSpacePricing()
