"""Scheduling schemas."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from marketplace.core.enums import EntityTypeEnum
from marketplace.modules.catalog.schemas import BookableEntity
from marketplace.modules.scheduling.slots import SlotAvailability


class SlotRead(BaseModel):
    """Bookable slot."""

    start_time: datetime
    end_time: datetime
    remaining_capacity: int
    booked: int

    @classmethod
    def from_availability(cls, item: SlotAvailability) -> SlotRead:
        return cls(
            start_time=item.slot.start,
            end_time=item.slot.end,
            remaining_capacity=item.remaining,
            booked=item.booked,
        )


class BookingRulesRead(BaseModel):
    """Rules the client needs to render a booking form."""

    duration: int | None
    slot_interval: int | None
    buffer_time: int
    min_advance_booking: int
    max_advance_booking: int
    max_concurrent_bookings: int
    allow_overbooking: bool
    auto_confirm_bookings: bool
    expiration_date: datetime | None = None

    @classmethod
    def from_entity(cls, entity: BookableEntity) -> BookingRulesRead:
        return cls(
            duration=entity.duration,
            slot_interval=entity.slot_interval,
            buffer_time=entity.buffer_time,
            min_advance_booking=entity.min_advance_booking,
            max_advance_booking=entity.max_advance_booking,
            max_concurrent_bookings=entity.capacity,
            allow_overbooking=entity.allow_overbooking,
            auto_confirm_bookings=entity.auto_confirm_bookings,
            expiration_date=entity.expiration_date,
        )


class AvailabilityRead(BaseModel):
    """Availability response schema."""

    model_config = ConfigDict(populate_by_name=True)

    entity_id: UUID
    entity_type: EntityTypeEnum
    day: date = Field(alias="date")
    timezone: str | None
    staff_id: UUID | None
    available_slots: list[SlotRead]
    closed_reason: str | None
    booking_rules: BookingRulesRead
