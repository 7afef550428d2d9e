from __future__ import annotations

import asyncio
from datetime import datetime
from uuid import uuid4

import pytest

from marketplace.core.enums import EntityTypeEnum
from marketplace.modules.booking.schemas import BookingCreateRequest
from marketplace.shared.exceptions import SlotNoLongerAvailableException

from fakes import FakeStaff, make_entity, make_harness


async def _attempt(harness, payload: BookingCreateRequest):
    async with harness.transaction() as service:
        try:
            return await service.create_booking(payload)
        except SlotNoLongerAvailableException as exc:
            return exc


def _payload(entity, **overrides) -> BookingCreateRequest:
    values = {
        "entity_type": entity.entity_type,
        "entity_id": entity.entity_id,
        "start_time": datetime(2026, 3, 3, 11, 0),
        "customer_id": uuid4(),
    }
    values.update(overrides)
    return BookingCreateRequest(**values)


@pytest.mark.asyncio
@pytest.mark.parametrize("attempts", [2, 10])
async def test_concurrent_admissions_for_last_seat_admit_exactly_one(attempts: int) -> None:
    entity = make_entity()
    harness = make_harness([entity])

    results = await asyncio.gather(*(_attempt(harness, _payload(entity)) for _ in range(attempts)))

    rejections = [item for item in results if isinstance(item, SlotNoLongerAvailableException)]
    assert len(rejections) == attempts - 1
    assert len(harness.store.bookings) == 1


@pytest.mark.asyncio
async def test_concurrent_offer_and_service_admissions_share_one_seat() -> None:
    service_entity = make_entity()
    offer = make_entity(
        entity_id=uuid4(),
        entity_type=EntityTypeEnum.OFFER,
        service_id=service_entity.service_id,
        store_id=service_entity.store_id,
    )
    harness = make_harness([service_entity, offer])

    results = await asyncio.gather(
        _attempt(harness, _payload(service_entity)),
        _attempt(harness, _payload(offer)),
        _attempt(harness, _payload(offer)),
    )

    assert sum(isinstance(item, SlotNoLongerAvailableException) for item in results) == 2
    assert len(harness.store.bookings) == 1


@pytest.mark.asyncio
async def test_concurrent_admissions_respect_capacity() -> None:
    entity = make_entity(max_concurrent_bookings=3)
    harness = make_harness([entity])

    results = await asyncio.gather(*(_attempt(harness, _payload(entity)) for _ in range(8)))

    assert sum(isinstance(item, SlotNoLongerAvailableException) for item in results) == 5
    assert len(harness.store.bookings) == 3


@pytest.mark.asyncio
async def test_shared_staff_member_serializes_two_services() -> None:
    store_id = uuid4()
    first = make_entity(store_id=store_id)
    second = make_entity(store_id=store_id)
    staff = FakeStaff(id=uuid4(), store_id=store_id)
    harness = make_harness(
        [first, second],
        staff=[(staff, first.service_id), (staff, second.service_id)],
    )

    results = await asyncio.gather(
        _attempt(harness, _payload(first, staff_id=staff.id)),
        _attempt(harness, _payload(second, staff_id=staff.id)),
    )

    assert sum(isinstance(item, SlotNoLongerAvailableException) for item in results) == 1
    assert len(harness.store.bookings) == 1
