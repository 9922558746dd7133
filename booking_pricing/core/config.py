# booking_pricing/core/config.py

from functools import lru_cache
from typing import List, Optional
import json

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # The environment mode: 'local' or 'prod'
    ENV: str = "local"

    # --- Database URLs ---
    DATABASE_URL_LOCAL: str = "sqlite:///./booking_pricing.db"
    DATABASE_URL_PROD: Optional[str] = None

    # JWT Secret for validating tokens
    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"

    # CORS - Stored as string, parsed via get_cors_origins() method
    CORS_ORIGINS: Optional[str] = None

    LOG_LEVEL: str = "INFO"

    # All amounts are integer minor units of this currency
    CURRENCY: str = "INR"

    # Promo application under concurrent writers
    PROMO_APPLY_MAX_ATTEMPTS: int = 3
    PROMO_APPLY_RETRY_WAIT_SECONDS: float = 0.05

    @field_validator("ENV")
    @classmethod
    def validate_env(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("local", "prod"):
            raise ValueError("ENV must be 'local' or 'prod'")
        return v

    @field_validator("PROMO_APPLY_MAX_ATTEMPTS")
    @classmethod
    def validate_max_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("PROMO_APPLY_MAX_ATTEMPTS must be at least 1")
        return v

    def get_cors_origins(self) -> List[str]:
        """Parse CORS_ORIGINS from comma-separated string or JSON array"""
        if not self.CORS_ORIGINS:
            return []
        v = self.CORS_ORIGINS.strip()
        if not v:
            return []
        if v.startswith("["):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        return [origin.strip() for origin in v.split(",") if origin.strip()]

    # --- Dynamic Properties ---
    @property
    def DATABASE_URL(self) -> str:
        if self.ENV == "local":
            return self.DATABASE_URL_LOCAL
        if not self.DATABASE_URL_PROD:
            raise ValueError("DATABASE_URL_PROD is required when ENV=prod")
        return self.DATABASE_URL_PROD


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Singleton instance for direct imports
settings = get_settings()
