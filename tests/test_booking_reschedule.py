from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from marketplace.core.enums import BookingStatusEnum, EntityTypeEnum
from marketplace.shared.exceptions import (
    BookingDisabledException,
    BusinessRuleException,
    InvalidSlotException,
    InvalidStatusTransitionException,
    NotFoundException,
    SlotNoLongerAvailableException,
)

from fakes import NOW, FakeBookingRepository, FakeStaff, make_booking, make_entity, make_harness

# Tuesday 2026-03-03 10:00 in Nairobi.
START = datetime(2026, 3, 3, 7, 0, tzinfo=UTC)
TUESDAY_14_LOCAL = datetime(2026, 3, 3, 14, 0)
TUESDAY_14_UTC = datetime(2026, 3, 3, 11, 0, tzinfo=UTC)


def _setup(status: BookingStatusEnum = BookingStatusEnum.CONFIRMED, start_time: datetime = START, **entity_overrides):
    entity = make_entity(**entity_overrides)
    booking = make_booking(entity, start_time, start_time + timedelta(hours=1), status=status)
    harness = make_harness([entity], bookings=[booking])
    return harness, booking, entity


@pytest.mark.asyncio
async def test_booking_moves_to_free_slot_keeping_identity() -> None:
    harness, booking, _ = _setup()

    result = await harness.booking_service().reschedule_booking(booking.id, TUESDAY_14_LOCAL, reason="Traffic")

    assert result.id == booking.id
    assert result.verification_code == "ABC123"
    assert result.status == BookingStatusEnum.CONFIRMED
    assert result.start_time == TUESDAY_14_UTC
    assert result.end_time == TUESDAY_14_UTC + timedelta(hours=1)
    assert result.rescheduled_at == NOW
    assert result.reschedule_reason == "Traffic"
    assert len(harness.store.bookings) == 1

    event = harness.audit.events[-1]
    assert event["event_type"] == "booking.rescheduled"
    assert event["payload"]["start_time"] == TUESDAY_14_UTC.isoformat()
    assert event["payload"]["previous_start_time"] == START.isoformat()


@pytest.mark.asyncio
async def test_move_onto_taken_slot_is_rejected_and_leaves_booking_unchanged() -> None:
    harness, booking, entity = _setup()
    other = make_booking(entity, TUESDAY_14_UTC, TUESDAY_14_UTC + timedelta(hours=1))
    harness.store.bookings[other.id] = other

    with pytest.raises(SlotNoLongerAvailableException):
        await harness.booking_service().reschedule_booking(booking.id, TUESDAY_14_LOCAL)

    assert booking.start_time == START
    assert booking.rescheduled_at is None
    assert harness.audit.events == []


@pytest.mark.asyncio
async def test_move_blocked_by_buffer_of_earlier_booking() -> None:
    harness, booking, entity = _setup(buffer_time=15)
    earlier = make_booking(entity, TUESDAY_14_UTC - timedelta(hours=1), TUESDAY_14_UTC)
    harness.store.bookings[earlier.id] = earlier

    with pytest.raises(SlotNoLongerAvailableException):
        await harness.booking_service().reschedule_booking(booking.id, TUESDAY_14_LOCAL)


@pytest.mark.asyncio
async def test_booking_does_not_conflict_with_itself_when_shifted() -> None:
    harness, booking, _ = _setup(slot_interval=30, buffer_time=15)

    result = await harness.booking_service().reschedule_booking(booking.id, datetime(2026, 3, 3, 10, 30))

    assert result.start_time == START + timedelta(minutes=30)


@pytest.mark.asyncio
async def test_move_to_another_assigned_staff_member_locks_their_schedule() -> None:
    entity = make_entity()
    booking = make_booking(entity, START, START + timedelta(hours=1))
    member = FakeStaff(id=uuid4(), store_id=entity.store_id)
    harness = make_harness([entity], bookings=[booking], staff=[(member, entity.service_id)])
    repository = FakeBookingRepository(harness.store)

    result = await harness.booking_service(repository).reschedule_booking(
        booking.id,
        TUESDAY_14_LOCAL,
        staff_id=member.id,
    )

    assert result.staff_id == member.id
    assert repository.lock_calls == [(entity.service_id, member.id)]


@pytest.mark.asyncio
async def test_target_off_the_slot_grid_is_invalid() -> None:
    harness, booking, _ = _setup()

    with pytest.raises(InvalidSlotException):
        await harness.booking_service().reschedule_booking(booking.id, datetime(2026, 3, 3, 14, 15))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status",
    [
        BookingStatusEnum.IN_PROGRESS,
        BookingStatusEnum.CANCELLED,
        BookingStatusEnum.COMPLETED,
        BookingStatusEnum.NO_SHOW,
        BookingStatusEnum.FULFILLED,
    ],
)
async def test_only_pending_or_confirmed_bookings_can_move(status: BookingStatusEnum) -> None:
    harness, booking, _ = _setup(status)

    with pytest.raises(InvalidStatusTransitionException):
        await harness.booking_service().reschedule_booking(booking.id, TUESDAY_14_LOCAL)


@pytest.mark.asyncio
async def test_booking_that_already_started_cannot_move() -> None:
    harness, booking, _ = _setup(start_time=NOW - timedelta(minutes=10))

    with pytest.raises(BusinessRuleException):
        await harness.booking_service().reschedule_booking(booking.id, TUESDAY_14_LOCAL)


@pytest.mark.asyncio
async def test_unknown_booking_is_not_found() -> None:
    harness, _, _ = _setup()

    with pytest.raises(NotFoundException):
        await harness.booking_service().reschedule_booking(uuid4(), TUESDAY_14_LOCAL)


@pytest.mark.asyncio
async def test_booking_of_expired_offer_cannot_move() -> None:
    offer = make_entity(entity_type=EntityTypeEnum.OFFER, expiration_date=NOW - timedelta(hours=1))
    booking = make_booking(offer, START, START + timedelta(hours=1))
    booking.offer_id = offer.entity_id
    harness = make_harness([offer], bookings=[booking])

    with pytest.raises(BookingDisabledException):
        await harness.booking_service().reschedule_booking(booking.id, TUESDAY_14_LOCAL)
