"""Slot generation and conflict filtering.

Everything here is pure: candidate slots depend only on the operating window,
and availability only on the bookings handed in, so both can be tested
without a database.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import Protocol
from zoneinfo import ZoneInfo

from marketplace.core.config import get_settings
from marketplace.core.enums import BookingStatusEnum
from marketplace.modules.catalog.schemas import BookableEntity
from marketplace.modules.scheduling.calendar import OperatingWindow


class BookedInterval(Protocol):
    start_time: datetime
    end_time: datetime
    status: BookingStatusEnum


@dataclass(frozen=True, slots=True)
class Slot:
    start: datetime
    end: datetime


@dataclass(frozen=True, slots=True)
class SlotAvailability:
    slot: Slot
    capacity: int
    booked: int = 0

    @property
    def remaining(self) -> int:
        return max(self.capacity - self.booked, 0)


def _minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open interval overlap: touching endpoints do not overlap."""
    return a_start < b_end and b_start < a_end


def resolve_slot_interval(entity: BookableEntity) -> int:
    """Slot step in minutes: explicit interval, else duration, else configured fallback."""
    if entity.slot_interval and entity.slot_interval > 0:
        return entity.slot_interval
    if entity.duration and entity.duration > 0:
        return entity.duration
    return get_settings().default_slot_interval_minutes


def generate_slot_starts(opening_time: time, closing_time: time, interval: int) -> list[time]:
    """Return floor(window / interval) start times; the last one ends at or before closing."""
    if interval <= 0:
        raise ValueError("Slot interval must be positive")

    opening = _minutes(opening_time)
    closing = _minutes(closing_time)
    starts: list[time] = []
    current = opening
    while current + interval <= closing:
        starts.append(time(hour=current // 60, minute=current % 60))
        current += interval
    return starts


def build_candidate_slots(
    day: date,
    window: OperatingWindow,
    *,
    duration: int,
    interval: int,
    tz: ZoneInfo,
) -> list[Slot]:
    """Materialize slot starts for day as UTC slots of length duration inside the window."""
    closing = _minutes(window.closing_time)
    slots: list[Slot] = []
    for start_time in generate_slot_starts(window.opening_time, window.closing_time, interval):
        if _minutes(start_time) + duration > closing:
            continue
        local_start = datetime.combine(day, start_time, tzinfo=tz)
        start = local_start.astimezone(UTC)
        # Wall-clock times skipped by a DST jump resolve onto a real slot; drop them.
        if start.astimezone(tz).replace(tzinfo=None) != local_start.replace(tzinfo=None):
            continue
        slots.append(Slot(start=start, end=start + timedelta(minutes=duration)))
    return slots


def _active(bookings: Iterable[BookedInterval]) -> list[BookedInterval]:
    return [booking for booking in bookings if booking.status != BookingStatusEnum.CANCELLED]


def count_conflicts(slot: Slot, bookings: Sequence[BookedInterval], buffer_time: int) -> int:
    """Count bookings whose busy window [start, end + buffer) overlaps slot."""
    buffer = timedelta(minutes=buffer_time)
    return sum(
        1
        for booking in bookings
        if overlaps(slot.start, slot.end, booking.start_time, booking.end_time + buffer)
    )


def filter_available(
    candidates: Sequence[Slot],
    bookings: Iterable[BookedInterval],
    entity: BookableEntity,
) -> list[SlotAvailability]:
    """Keep candidates with spare capacity (or all of them when overbooking is allowed)."""
    capacity = entity.capacity
    active = _active(bookings)
    if not active:
        return [SlotAvailability(slot=slot, capacity=capacity) for slot in candidates]

    available: list[SlotAvailability] = []
    for slot in candidates:
        booked = count_conflicts(slot, active, entity.buffer_time)
        if entity.allow_overbooking or booked < capacity:
            available.append(SlotAvailability(slot=slot, capacity=capacity, booked=booked))
    return available
