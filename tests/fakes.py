"""In-memory stand-ins for catalog, booking and outbox repositories."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime, time
from uuid import UUID, uuid4

from marketplace.core.enums import BookingStatusEnum, EntityTypeEnum
from marketplace.modules.booking.service import BookingService
from marketplace.modules.catalog.schemas import BookableEntity, OperatingProfile
from marketplace.modules.scheduling.service import AvailabilityService

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday"]

# Monday 2026-03-02 08:00 in Nairobi (UTC+3).
NOW = datetime(2026, 3, 2, 5, 0, tzinfo=UTC)


def make_entity(**overrides) -> BookableEntity:
    values = {
        "entity_id": uuid4(),
        "entity_type": EntityTypeEnum.SERVICE,
        "service_id": None,
        "store_id": uuid4(),
        "merchant_id": uuid4(),
        "name": "Haircut",
        "duration": 60,
        "slot_interval": 60,
        "min_advance_booking": 30,
        "max_advance_booking": 10080,
    }
    values.update(overrides)
    if values["service_id"] is None:
        values["service_id"] = values["entity_id"]
    return BookableEntity(**values)


def make_profile(**overrides) -> OperatingProfile:
    values = {
        "working_days": WEEKDAYS,
        "opening_time": time(9, 0),
        "closing_time": time(17, 0),
        "timezone": "Africa/Nairobi",
    }
    values.update(overrides)
    return OperatingProfile(**values)


@dataclass
class FakeStaff:
    id: UUID
    store_id: UUID
    branch_id: UUID | None = None


@dataclass
class FakeBooking:
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
    verification_code: str = "ABC123"
    notes: str | None = None
    client_info: dict | None = None
    auto_confirmed: bool = False
    confirmed_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    no_show_marked_at: datetime | None = None
    rescheduled_at: datetime | None = None
    reschedule_reason: str | None = None
    fulfilled_at: datetime | None = None
    created_at: datetime = NOW
    updated_at: datetime = NOW


class FakeCatalogRepository:
    def __init__(
        self,
        entities: list[BookableEntity],
        profile: OperatingProfile | None,
        staff: list[tuple[FakeStaff, UUID]] | None = None,
    ) -> None:
        self._entities = {(entity.entity_id, entity.entity_type): entity for entity in entities}
        self._profile = profile
        self._assignments = {(member.id, service_id): member for member, service_id in staff or []}
        self.profile_requests: list[tuple[UUID, UUID | None]] = []

    async def get_bookable_entity(self, entity_id: UUID, entity_type: EntityTypeEnum) -> BookableEntity | None:
        return self._entities.get((entity_id, entity_type))

    async def get_operating_profile(self, store_id: UUID, branch_id: UUID | None = None) -> OperatingProfile | None:
        self.profile_requests.append((store_id, branch_id))
        return self._profile

    async def get_staff_for_service(self, staff_id: UUID, service_id: UUID) -> FakeStaff | None:
        return self._assignments.get((staff_id, service_id))


class FakeBookingStore:
    """Shared table of bookings with per-service locks held for a fake transaction."""

    def __init__(self, bookings: list[FakeBooking] | None = None) -> None:
        self.bookings: dict[UUID, FakeBooking] = {booking.id: booking for booking in bookings or []}
        self._locks: dict[UUID, asyncio.Lock] = {}

    def lock_for(self, key: UUID) -> asyncio.Lock:
        return self._locks.setdefault(key, asyncio.Lock())


class FakeBookingRepository:
    def __init__(self, store: FakeBookingStore) -> None:
        self.store = store
        self.held: list[asyncio.Lock] = []
        self.lock_calls: list[tuple[UUID, UUID | None]] = []

    async def find_active_bookings(
        self,
        service_id: UUID,
        staff_id: UUID | None,
        window_start: datetime,
        window_end: datetime,
    ) -> list[FakeBooking]:
        await asyncio.sleep(0)
        return [
            booking
            for booking in self.store.bookings.values()
            if (booking.service_id == service_id or (staff_id is not None and booking.staff_id == staff_id))
            and booking.status != BookingStatusEnum.CANCELLED
            and booking.start_time < window_end
            and booking.end_time > window_start
        ]

    async def lock_schedule(self, service_id: UUID, staff_id: UUID | None) -> None:
        self.lock_calls.append((service_id, staff_id))
        for key in (service_id, staff_id):
            if key is None:
                continue
            lock = self.store.lock_for(key)
            if lock in self.held:
                continue
            await lock.acquire()
            self.held.append(lock)

    def release(self) -> None:
        while self.held:
            self.held.pop().release()

    async def create_booking(self, **values) -> FakeBooking:
        await asyncio.sleep(0)
        confirmed_at = values.pop("confirmed_at", None)
        booking = FakeBooking(
            id=uuid4(),
            auto_confirmed=confirmed_at is not None,
            confirmed_at=confirmed_at,
            **values,
        )
        self.store.bookings[booking.id] = booking
        return booking

    async def get_booking_by_id(self, booking_id: UUID) -> FakeBooking | None:
        return self.store.bookings.get(booking_id)

    async def get_booking_for_update(self, booking_id: UUID) -> FakeBooking | None:
        return self.store.bookings.get(booking_id)

    async def save(self, booking: FakeBooking) -> FakeBooking:
        self.store.bookings[booking.id] = booking
        return booking


class FakeAuditRepository:
    def __init__(self, error: Exception | None = None) -> None:
        self.events: list[dict] = []
        self.error = error

    async def create_outbox_event(
        self,
        aggregate_type: str,
        aggregate_id: str,
        event_type: str,
        payload: dict,
    ) -> dict:
        if self.error is not None:
            raise self.error
        event = {
            "aggregate_type": aggregate_type,
            "aggregate_id": aggregate_id,
            "event_type": event_type,
            "payload": payload,
        }
        self.events.append(event)
        return event


@dataclass
class BookingHarness:
    catalog: FakeCatalogRepository
    store: FakeBookingStore
    audit: FakeAuditRepository = field(default_factory=FakeAuditRepository)
    now: datetime = NOW

    def availability_service(self, repository: FakeBookingRepository | None = None) -> AvailabilityService:
        return AvailabilityService(
            self.catalog,
            repository or FakeBookingRepository(self.store),
            now_provider=lambda: self.now,
        )

    def booking_service(self, repository: FakeBookingRepository | None = None) -> BookingService:
        repository = repository or FakeBookingRepository(self.store)
        return BookingService(
            availability_service=self.availability_service(repository),
            catalog_repository=self.catalog,
            booking_repository=repository,
            audit_repository=self.audit,
            now_provider=lambda: self.now,
        )

    @asynccontextmanager
    async def transaction(self):
        """One request: a fresh repository whose locks are released on exit."""
        repository = FakeBookingRepository(self.store)
        try:
            yield self.booking_service(repository)
        finally:
            repository.release()


def make_harness(
    entities: list[BookableEntity],
    profile: OperatingProfile | None = None,
    *,
    bookings: list[FakeBooking] | None = None,
    staff: list[tuple[FakeStaff, UUID]] | None = None,
    audit: FakeAuditRepository | None = None,
) -> BookingHarness:
    return BookingHarness(
        catalog=FakeCatalogRepository(entities, profile or make_profile(), staff),
        store=FakeBookingStore(bookings),
        audit=audit or FakeAuditRepository(),
    )


def make_booking(
    entity: BookableEntity,
    start_time: datetime,
    end_time: datetime,
    *,
    status: BookingStatusEnum = BookingStatusEnum.CONFIRMED,
    staff_id: UUID | None = None,
    service_id: UUID | None = None,
) -> FakeBooking:
    return FakeBooking(
        id=uuid4(),
        entity_type=entity.entity_type,
        service_id=service_id or entity.service_id,
        offer_id=None,
        customer_id=uuid4(),
        store_id=entity.store_id,
        branch_id=entity.branch_id,
        staff_id=staff_id,
        start_time=start_time,
        end_time=end_time,
        status=status,
    )
