"""Custom exception hierarchy and handlers."""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    status_code = 400
    code = "app_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundException(AppException):
    """Raised when entity is not found."""

    status_code = 404
    code = "not_found"


class ConflictException(AppException):
    """Raised when entity conflicts with current state."""

    status_code = 409
    code = "conflict"


class BusinessRuleException(AppException):
    """Raised when business rule validation fails."""

    status_code = 422
    code = "business_rule_violation"


class StoreClosedException(BusinessRuleException):
    """Requested date is not a working day of the store or branch."""

    code = "store_closed"


class BookingRuleViolation(BusinessRuleException):
    """Base class for advance-window and booking-enabled rule failures."""

    code = "booking_rule_violation"


class TooSoonException(BookingRuleViolation):
    """Slot starts earlier than the minimum advance-booking window allows."""

    code = "too_soon"


class TooFarException(BookingRuleViolation):
    """Slot starts later than the maximum advance-booking window allows."""

    code = "too_far"


class BookingDisabledException(BookingRuleViolation):
    """Entity is not currently accepting bookings; retrying will not help."""

    code = "booking_disabled"


class NotSlotBookableException(BusinessRuleException):
    """Entity has no fixed duration and is booked through consultation."""

    code = "not_slot_bookable"


class InvalidSlotException(BusinessRuleException):
    """Requested start does not match any generated slot."""

    code = "invalid_slot"


class SlotNoLongerAvailableException(ConflictException):
    """Slot was taken between the availability query and the admission."""

    code = "slot_no_longer_available"


class InvalidStatusTransitionException(ConflictException):
    """Booking cannot move from its current status to the requested one."""

    code = "invalid_status_transition"


class DatastoreUnavailableException(AppException):
    """Transient datastore failure or timeout; safe to retry with backoff."""

    status_code = 503
    code = "datastore_unavailable"


async def app_exception_handler(_: Request, exc: AppException) -> JSONResponse:
    """Handle custom domain exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": exc.code, "message": exc.message}},
    )


async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions in unified shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": "http_error", "message": str(exc.detail)}},
    )


async def datastore_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    """Render connection failures and timeouts as retryable 503 responses."""
    logger.warning("Datastore unavailable: %s", exc)
    return JSONResponse(
        status_code=DatastoreUnavailableException.status_code,
        content={
            "error": {
                "code": DatastoreUnavailableException.code,
                "message": "Datastore is temporarily unavailable, retry later",
            },
        },
    )


async def unhandled_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "internal_error", "message": "Internal server error"}},
    )


def register_exception_handlers(app) -> None:
    """Register global exception handlers."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(OperationalError, datastore_exception_handler)
    app.add_exception_handler(InterfaceError, datastore_exception_handler)
    app.add_exception_handler(TimeoutError, datastore_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
