"""Booking rules applied to a slot relative to the current time."""

from __future__ import annotations

from datetime import datetime

from marketplace.core.enums import ServiceStatusEnum
from marketplace.modules.catalog.schemas import BookableEntity
from marketplace.shared.exceptions import (
    BookingDisabledException,
    NotSlotBookableException,
    TooFarException,
    TooSoonException,
)
from marketplace.shared.utils import ensure_utc


def _ensure_enabled(entity: BookableEntity, now: datetime | None) -> None:
    if not entity.booking_enabled or entity.status != ServiceStatusEnum.ACTIVE:
        raise BookingDisabledException("Online booking is not enabled for this service")
    if now is not None and entity.expiration_date is not None and now > ensure_utc(entity.expiration_date):
        raise BookingDisabledException("This offer has expired")


def ensure_bookable(entity: BookableEntity, now: datetime | None = None) -> None:
    """Fail fast for entities that cannot be booked through slots at all."""
    if entity.is_dynamic:
        raise NotSlotBookableException(
            "This service has no fixed duration and requires a consultation instead of a time slot",
        )
    _ensure_enabled(entity, now)


def advance_minutes(slot_start: datetime, now: datetime) -> float:
    return (slot_start - now).total_seconds() / 60


def validate_slot(slot_start: datetime, entity: BookableEntity, now: datetime) -> None:
    """Raise a BookingRuleViolation if slot_start may not be booked at now."""
    _ensure_enabled(entity, now)

    advance = advance_minutes(slot_start, now)
    if advance < entity.min_advance_booking:
        raise TooSoonException(
            f"Bookings must be made at least {entity.min_advance_booking} minutes in advance",
        )
    if advance > entity.max_advance_booking:
        raise TooFarException(
            f"Bookings cannot be made more than {entity.max_advance_booking} minutes in advance",
        )
