# booking_pricing/core/logging_config.py
import logging

from booking_pricing.core.config import settings


def configure_logging(level: str = None) -> None:
    """Configure root logging once for the service process."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
