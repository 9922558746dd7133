# booking_pricing/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from booking_pricing.api.v1.api import api_router
from booking_pricing.core.config import settings
from booking_pricing.core.error_handlers import register_error_handlers
from booking_pricing.core.logging_config import configure_logging
from booking_pricing.db.base_class import Base
from booking_pricing.db.session import engine
import booking_pricing.models  # noqa: F401  registers every table on Base.metadata

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Booking pricing service starting up...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables checked and created if necessary.")
    yield
    logger.info("Booking pricing service shutting down...")


app = FastAPI(
    title="Booking Pricing Service",
    version="1.0.0",
    description="""
        Prices space bookings and applies promo codes.

        ## Features

        * **Strategy pricing**: free, special-event, time-block and regular (peak, off-peak, weekend) pricing
        * **Quotes**: preview a booking's price and promo discount
        * **Checkout**: consume a promo code and record its usage
        * **Promo codes**: create, validate, pause, resume and delete

        ## Authentication

        Every endpoint requires a JWT via the `Authorization: Bearer <token>` header.
        Promo code administration requires the `admin` role.
        """,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(api_router, prefix="/api/v1")


@app.get("/")
def read_root():
    return {"status": "Booking pricing service is running"}
