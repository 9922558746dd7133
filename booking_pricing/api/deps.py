# booking_pricing/api/deps.py
from typing import Generator
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from booking_pricing.core.config import settings
from booking_pricing.crud.crud_promo_code import SqlPromoCodeRepository
from booking_pricing.db.session import SessionLocal
from booking_pricing.schemas.token import TokenPayload
from booking_pricing.services.pricing_engine import PricingEngine
from booking_pricing.utils.clock import Clock, utc_now


def get_db() -> Generator:
    """Dependency to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# `tokenUrl` is only used by the OpenAPI docs; tokens are issued elsewhere.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")


def get_current_user(token: str = Depends(oauth2_scheme)) -> TokenPayload:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        token_data = TokenPayload(**payload)
    except (JWTError, ValueError):
        # Catches any error from jose or Pydantic validation
        raise credentials_exception

    return token_data


def require_admin(current_user: TokenPayload = Depends(get_current_user)) -> TokenPayload:
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return current_user


def get_clock() -> Clock:
    return utc_now


def get_promo_repository(db: Session = Depends(get_db)) -> SqlPromoCodeRepository:
    return SqlPromoCodeRepository(db)


def get_pricing_engine(
    repository: SqlPromoCodeRepository = Depends(get_promo_repository),
    clock: Clock = Depends(get_clock),
) -> PricingEngine:
    return PricingEngine(repository, clock=clock)
