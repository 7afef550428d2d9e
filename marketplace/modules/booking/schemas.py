"""Booking schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from marketplace.core.enums import BookingStatusEnum, EntityTypeEnum


class BookingCreateRequest(BaseModel):
    """Create booking request.

    A naive start_time is read in the store's local timezone.
    """

    entity_type: EntityTypeEnum
    entity_id: UUID
    start_time: datetime
    customer_id: UUID
    staff_id: UUID | None = None
    notes: str | None = Field(default=None, max_length=2000)
    client_info: dict | None = None


class BookingCancelRequest(BaseModel):
    """Cancel booking request."""

    reason: str | None = Field(default=None, max_length=512)


class BookingRescheduleRequest(BaseModel):
    """Move booking to another slot; a naive start_time is read in store time."""

    start_time: datetime
    staff_id: UUID | None = None
    reason: str | None = Field(default=None, max_length=512)


class BookingFulfillRequest(BaseModel):
    """Fulfill booking request."""

    verification_code: str = Field(min_length=1, max_length=20)


class BookingRead(BaseModel):
    """Booking response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    entity_type: EntityTypeEnum
    service_id: UUID
    offer_id: UUID | None
    customer_id: UUID
    store_id: UUID
    branch_id: UUID | None
    staff_id: UUID | None
    start_time: datetime
    end_time: datetime
    status: BookingStatusEnum
    verification_code: str
    notes: str | None
    client_info: dict | None
    auto_confirmed: bool
    confirmed_at: datetime | None
    started_at: datetime | None
    completed_at: datetime | None
    cancelled_at: datetime | None
    cancellation_reason: str | None
    no_show_marked_at: datetime | None
    rescheduled_at: datetime | None
    reschedule_reason: str | None
    fulfilled_at: datetime | None
    created_at: datetime
    updated_at: datetime
