"""Catalog read models consumed by scheduling and booking."""

from __future__ import annotations

from datetime import datetime, time
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from marketplace.core.enums import EntityTypeEnum, ServiceStatusEnum, ServiceTypeEnum


class BookableEntity(BaseModel):
    """Service, or offer over a service, flattened to its scheduling parameters."""

    model_config = ConfigDict(frozen=True)

    entity_id: UUID
    entity_type: EntityTypeEnum
    service_id: UUID
    store_id: UUID
    merchant_id: UUID | None = None
    branch_id: UUID | None = None
    staff_id: UUID | None = None
    name: str = ""

    service_type: ServiceTypeEnum = ServiceTypeEnum.FIXED
    duration: int | None = None
    slot_interval: int | None = None
    buffer_time: int = 0
    max_concurrent_bookings: int = 1
    allow_overbooking: bool = False
    min_advance_booking: int = 30
    max_advance_booking: int = 10080
    booking_enabled: bool = True
    auto_confirm_bookings: bool = False
    status: ServiceStatusEnum = ServiceStatusEnum.ACTIVE
    expiration_date: datetime | None = None

    @property
    def is_dynamic(self) -> bool:
        return self.service_type == ServiceTypeEnum.DYNAMIC or not self.duration

    @property
    def capacity(self) -> int:
        return max(self.max_concurrent_bookings, 1)


class OperatingProfile(BaseModel):
    """Effective working days and hours; working_days is kept as stored."""

    model_config = ConfigDict(frozen=True)

    working_days: list[str | int] | str | None
    opening_time: time
    closing_time: time
    timezone: str | None = None
