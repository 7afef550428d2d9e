"""Availability API router."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from marketplace.core.enums import EntityTypeEnum
from marketplace.modules.scheduling.schemas import AvailabilityRead, BookingRulesRead, SlotRead
from marketplace.modules.scheduling.service import AvailabilityService, get_availability_service

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("", response_model=AvailabilityRead)
async def get_availability(
    entity_id: UUID = Query(...),
    entity_type: EntityTypeEnum = Query(...),
    day: date = Query(..., alias="date"),
    staff_id: UUID | None = Query(default=None),
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityRead:
    """List bookable slots of an offer or service on a date."""
    result = await service.get_available_slots(entity_id, entity_type, day, staff_id)
    return AvailabilityRead(
        entity_id=result.entity.entity_id,
        entity_type=result.entity.entity_type,
        day=result.day,
        timezone=result.timezone,
        staff_id=result.staff_id,
        available_slots=[SlotRead.from_availability(item) for item in result.slots],
        closed_reason=result.closed_reason,
        booking_rules=BookingRulesRead.from_entity(result.entity),
    )
