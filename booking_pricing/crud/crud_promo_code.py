# booking_pricing/crud/crud_promo_code.py
"""
Promo code persistence.

Rows are mapped to and from the immutable domain PromoCode. Write-back goes
through SqlPromoCodeRepository.transaction(), which locks the row
(SELECT ... FOR UPDATE) and only saves when the stored version is still the
one that was read.
"""
import logging
from contextlib import contextmanager
from dataclasses import asdict, replace
from typing import Iterator, Optional

from sqlalchemy.orm import Session

from booking_pricing.core.exceptions import ConcurrentUpdateError
from booking_pricing.models.promo_code import PromoCode
from booking_pricing.models.promo_code_usage import PromoCodeUsage
from booking_pricing.schemas.promo_code import PromoCodeCreate
from booking_pricing.services.promotions import domain
from booking_pricing.utils.clock import ensure_aware

logger = logging.getLogger(__name__)


def _restrictions_from_json(data: dict) -> domain.Restrictions:
    known = domain.Restrictions.__dataclass_fields__
    values = {}
    for key, value in (data or {}).items():
        if key not in known:
            continue
        values[key] = tuple(value) if isinstance(value, list) else value
    return domain.Restrictions(**values)


def _stacking_from_json(data: dict) -> domain.StackingRules:
    data = data or {}
    return domain.StackingRules(
        can_stack_with_other_promocodes=data.get("can_stack_with_other_promocodes", False),
        can_stack_with_platform_discounts=data.get("can_stack_with_platform_discounts", True),
        can_stack_with_space_discounts=data.get("can_stack_with_space_discounts", True),
        stackable_promocodes=tuple(data.get("stackable_promocodes", [])),
        non_stackable_promocodes=tuple(data.get("non_stackable_promocodes", [])),
        stacking_strategy=domain.StackingStrategy(
            data.get("stacking_strategy", domain.StackingStrategy.BEST.value)
        ),
    )


def _stacking_to_json(rules: domain.StackingRules) -> dict:
    data = asdict(rules)
    data["stacking_strategy"] = rules.stacking_strategy.value
    data["stackable_promocodes"] = list(rules.stackable_promocodes)
    data["non_stackable_promocodes"] = list(rules.non_stackable_promocodes)
    return data


def _restrictions_to_json(restrictions: domain.Restrictions) -> dict:
    return {
        key: list(value) if isinstance(value, tuple) else value
        for key, value in asdict(restrictions).items()
    }


def _analytics_from_json(data: dict) -> domain.PromoAnalytics:
    known = domain.PromoAnalytics.__dataclass_fields__
    return domain.PromoAnalytics(**{k: v for k, v in (data or {}).items() if k in known})


def _usage_to_domain(usage: PromoCodeUsage) -> domain.UsageRecord:
    return domain.UsageRecord(
        user_id=usage.user_id,
        booking_id=usage.booking_id,
        discount_amount=usage.discount_amount,
        original_amount=usage.original_amount,
        final_amount=usage.final_amount,
        used_at=ensure_aware(usage.used_at),
        ip_address=usage.ip_address,
        user_agent=usage.user_agent,
        metadata=usage.usage_metadata,
    )


def to_domain(row: PromoCode) -> domain.PromoCode:
    return domain.PromoCode(
        code=row.code,
        type=domain.PromoCodeType(row.discount_type),
        value=row.discount_value,
        valid_from=ensure_aware(row.valid_from),
        valid_until=ensure_aware(row.valid_until),
        scope=domain.DiscountScope(row.scope),
        status=domain.PromoCodeStatus(row.status),
        description=row.description or "",
        usage_limit=row.usage_limit,
        current_usage=row.current_usage,
        restrictions=_restrictions_from_json(row.restrictions),
        stacking_rules=_stacking_from_json(row.stacking_rules),
        usage_history=tuple(_usage_to_domain(u) for u in row.usages),
        analytics=_analytics_from_json(row.analytics),
        last_used_at=ensure_aware(row.last_used_at),
        paused_at=ensure_aware(row.paused_at),
        pause_reason=row.pause_reason,
        is_deleted=row.is_deleted,
        deleted_at=ensure_aware(row.deleted_at),
        deleted_by=row.deleted_by,
        version=row.version,
    )


def _mutable_columns(promo: domain.PromoCode) -> dict:
    """Columns that change after creation."""
    return {
        "status": promo.status.value,
        "current_usage": promo.current_usage,
        "analytics": asdict(promo.analytics),
        "last_used_at": promo.last_used_at,
        "paused_at": promo.paused_at,
        "pause_reason": promo.pause_reason,
        "is_deleted": promo.is_deleted,
        "deleted_at": promo.deleted_at,
        "deleted_by": promo.deleted_by,
    }


class SqlPromoTransaction:
    def __init__(self, db: Session, row: Optional[PromoCode]):
        self._db = db
        self._row = row
        self.promo = to_domain(row) if row is not None else None

    def save(self, promo: domain.PromoCode) -> domain.PromoCode:
        if self._row is None or self.promo is None:
            raise ConcurrentUpdateError(promo.code, None)

        expected = self.promo.version
        values = _mutable_columns(promo)
        values["version"] = expected + 1
        updated = (
            self._db.query(PromoCode)
            .filter(PromoCode.id == self._row.id, PromoCode.version == expected)
            .update(values, synchronize_session=False)
        )
        if updated != 1:
            self._db.rollback()
            raise ConcurrentUpdateError(promo.code, expected)

        for record in promo.usage_history[len(self.promo.usage_history):]:
            self._db.add(
                PromoCodeUsage(
                    promo_code_id=self._row.id,
                    user_id=record.user_id,
                    booking_id=record.booking_id,
                    discount_amount=record.discount_amount,
                    original_amount=record.original_amount,
                    final_amount=record.final_amount,
                    used_at=record.used_at,
                    ip_address=record.ip_address,
                    user_agent=record.user_agent,
                    usage_metadata=record.metadata,
                )
            )
        self._db.commit()

        self.promo = replace(promo, version=expected + 1)
        return self.promo


class SqlPromoCodeRepository:
    """PromoCodeRepository backed by a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, code: str) -> Optional[domain.PromoCode]:
        row = promo_code.get_by_code(self.db, code=code)
        return to_domain(row) if row is not None else None

    @contextmanager
    def transaction(self, code: str) -> Iterator[SqlPromoTransaction]:
        row = (
            self.db.query(PromoCode)
            .filter(PromoCode.code == code.upper(), PromoCode.is_deleted.is_(False))
            .with_for_update()
            .first()
        )
        tx = SqlPromoTransaction(self.db, row)
        try:
            yield tx
        except Exception:
            self.db.rollback()
            raise
        else:
            # Nothing saved: release the row lock.
            if self.db.in_transaction():
                self.db.rollback()


class CRUDPromoCode:
    """CRUD operations for the PromoCode model."""

    def get_by_code(
        self, db: Session, *, code: str, include_deleted: bool = False
    ) -> Optional[PromoCode]:
        query = db.query(PromoCode).filter(PromoCode.code == code.upper())
        if not include_deleted:
            query = query.filter(PromoCode.is_deleted.is_(False))
        return query.first()

    def create(
        self, db: Session, *, obj_in: PromoCodeCreate, created_by: Optional[str] = None
    ) -> PromoCode:
        promo = obj_in.to_domain()
        db_obj = PromoCode(
            code=promo.code,
            description=promo.description,
            discount_type=promo.type.value,
            discount_value=promo.value,
            scope=promo.scope.value,
            status=promo.status.value,
            valid_from=promo.valid_from,
            valid_until=promo.valid_until,
            usage_limit=promo.usage_limit,
            current_usage=0,
            restrictions=_restrictions_to_json(promo.restrictions),
            stacking_rules=_stacking_to_json(promo.stacking_rules),
            analytics=asdict(promo.analytics),
            is_deleted=False,
            version=0,
            created_by=created_by,
        )
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        logger.info(f"Promo code {db_obj.code} created by {created_by}")
        return db_obj


promo_code = CRUDPromoCode()
