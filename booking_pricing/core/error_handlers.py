# booking_pricing/core/error_handlers.py
"""
Exception handlers that turn errors into the service's JSON error shape:

    {"error": {"category", "message", "timestamp", "path", ...details}}
"""
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from booking_pricing.core.exceptions import ErrorCategory, PricingError

logger = logging.getLogger(__name__)


def _error_body(category: str, message: str, request: Request, **details) -> dict:
    return {
        "error": {
            "category": category,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "path": request.url.path,
            **details,
        }
    }


def handle_pricing_error(request: Request, error: PricingError) -> JSONResponse:
    """Handle structured application errors"""
    log = logger.error if error.status_code >= 500 else logger.info
    log(
        f"Pricing error: {error.category}",
        extra={
            "category": error.category,
            "error_message": error.message,
            "status_code": error.status_code,
            "path": request.url.path,
            "method": request.method,
            "details": error.details,
        },
    )
    return JSONResponse(
        status_code=error.status_code,
        content=_error_body(error.category, error.message, request, **error.details),
    )


def handle_database_error(request: Request, error: SQLAlchemyError) -> JSONResponse:
    is_integrity_error = isinstance(error, IntegrityError)
    logger.error(
        f"Database error: {type(error).__name__}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=True,
    )
    if is_integrity_error:
        return JSONResponse(
            status_code=409,
            content=_error_body(
                ErrorCategory.CONFLICT, "Database constraint violation", request
            ),
        )
    return JSONResponse(
        status_code=500,
        content=_error_body(
            ErrorCategory.INTERNAL, "Database operation failed. Please try again.", request
        ),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PricingError, handle_pricing_error)
    app.add_exception_handler(SQLAlchemyError, handle_database_error)
