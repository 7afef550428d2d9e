"""Availability query: which slots of an entity can be booked on a date."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from time import perf_counter
from uuid import UUID
from zoneinfo import ZoneInfo

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.database import get_db_session
from marketplace.core.enums import EntityTypeEnum
from marketplace.core.metrics import record_availability_query
from marketplace.modules.booking.repository import BookingRepository
from marketplace.modules.catalog.repository import CatalogRepository
from marketplace.modules.catalog.schemas import BookableEntity, OperatingProfile
from marketplace.modules.scheduling.calendar import OperatingWindow, get_operating_window, resolve_timezone
from marketplace.modules.scheduling.rules import ensure_bookable, validate_slot
from marketplace.modules.scheduling.slots import (
    BookedInterval,
    Slot,
    SlotAvailability,
    build_candidate_slots,
    filter_available,
    resolve_slot_interval,
)
from marketplace.shared.exceptions import (
    BookingRuleViolation,
    BusinessRuleException,
    NotFoundException,
    StoreClosedException,
)
from marketplace.shared.utils import utc_now

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DaySchedule:
    tz: ZoneInfo
    window: OperatingWindow
    candidates: list[Slot]


@dataclass(slots=True)
class DayAvailability:
    entity: BookableEntity
    day: date
    slots: list[SlotAvailability] = field(default_factory=list)
    staff_id: UUID | None = None
    timezone: str | None = None
    closed_reason: str | None = None


class AvailabilityService:
    """Read-only slot computation shared by the query endpoint and booking admission."""

    def __init__(
        self,
        catalog_repository: CatalogRepository,
        booking_repository: BookingRepository,
        *,
        now_provider=utc_now,
    ) -> None:
        self.catalog_repository = catalog_repository
        self.booking_repository = booking_repository
        self.now_provider = now_provider

    async def load_entity(self, entity_id: UUID, entity_type: EntityTypeEnum) -> BookableEntity:
        """Return entity that can be booked through slots, or raise."""
        entity = await self.catalog_repository.get_bookable_entity(entity_id, entity_type)
        if entity is None:
            raise NotFoundException(f"{entity_type.value.capitalize()} not found")
        ensure_bookable(entity, self.now_provider())
        return entity

    async def resolve_staff_id(self, entity: BookableEntity, requested_staff_id: UUID | None) -> UUID | None:
        """Dedicated staff wins; a requested one must work at the location and do the service."""
        if entity.staff_id is not None or requested_staff_id is None:
            return entity.staff_id

        staff = await self.catalog_repository.get_staff_for_service(requested_staff_id, entity.service_id)
        if staff is None:
            raise NotFoundException("Staff member not found or not assigned to this service")
        if staff.store_id != entity.store_id:
            raise BusinessRuleException("Staff member does not work at this store")
        if entity.branch_id is not None and staff.branch_id not in (None, entity.branch_id):
            raise BusinessRuleException("Staff member does not work at this branch")
        return staff.id

    async def load_profile(self, entity: BookableEntity) -> OperatingProfile:
        profile = await self.catalog_repository.get_operating_profile(entity.store_id, entity.branch_id)
        if profile is None:
            raise NotFoundException("Store not found")
        return profile

    async def get_day_schedule(self, entity: BookableEntity, day: date) -> DaySchedule:
        """Candidate slots for day; raises StoreClosedException on non-working days."""
        profile = await self.load_profile(entity)
        return self.build_day_schedule(entity, profile, day)

    def build_day_schedule(self, entity: BookableEntity, profile: OperatingProfile, day: date) -> DaySchedule:
        window = get_operating_window(profile, day)
        tz = resolve_timezone(profile)
        candidates = build_candidate_slots(
            day,
            window,
            duration=int(entity.duration),
            interval=resolve_slot_interval(entity),
            tz=tz,
        )
        return DaySchedule(tz=tz, window=window, candidates=candidates)

    async def load_conflicting_bookings(
        self,
        entity: BookableEntity,
        staff_id: UUID | None,
        slots: list[Slot],
    ) -> list[BookedInterval]:
        """Active bookings that could overlap any of slots once buffer time is applied."""
        window_start = min(slot.start for slot in slots) - timedelta(minutes=entity.buffer_time)
        window_end = max(slot.end for slot in slots)
        return await self.booking_repository.find_active_bookings(
            entity.service_id,
            staff_id,
            window_start,
            window_end,
        )

    def _within_rules(self, slots: list[Slot], entity: BookableEntity, now: datetime) -> list[Slot]:
        allowed: list[Slot] = []
        for slot in slots:
            try:
                validate_slot(slot.start, entity, now)
            except BookingRuleViolation:
                continue
            allowed.append(slot)
        return allowed

    async def get_available_slots(
        self,
        entity_id: UUID,
        entity_type: EntityTypeEnum,
        day: date,
        staff_id: UUID | None = None,
    ) -> DayAvailability:
        """Compute bookable slots; closed and fully booked days yield an empty list."""
        started_at = perf_counter()
        entity = await self.load_entity(entity_id, entity_type)
        resolved_staff_id = await self.resolve_staff_id(entity, staff_id)
        result = DayAvailability(entity=entity, day=day, staff_id=resolved_staff_id)

        try:
            schedule = await self.get_day_schedule(entity, day)
        except StoreClosedException as exc:
            result.closed_reason = exc.message
            record_availability_query("closed", perf_counter() - started_at)
            return result

        result.timezone = schedule.tz.key
        candidates = self._within_rules(schedule.candidates, entity, self.now_provider())
        if candidates:
            bookings = await self.load_conflicting_bookings(entity, resolved_staff_id, candidates)
            result.slots = filter_available(candidates, bookings, entity)

        logger.debug(
            "Availability for %s %s on %s: %d of %d slots",
            entity.entity_type,
            entity.entity_id,
            day,
            len(result.slots),
            len(schedule.candidates),
        )
        record_availability_query("ok" if result.slots else "empty", perf_counter() - started_at)
        return result


async def get_availability_service(session: AsyncSession = Depends(get_db_session)) -> AvailabilityService:
    """Dependency provider for availability service."""
    return AvailabilityService(
        catalog_repository=CatalogRepository(session),
        booking_repository=BookingRepository(session),
    )
