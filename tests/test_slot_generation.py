from __future__ import annotations

from datetime import UTC, date, datetime, time
from zoneinfo import ZoneInfo

import pytest

from marketplace.modules.scheduling.calendar import OperatingWindow
from marketplace.modules.scheduling.slots import build_candidate_slots, generate_slot_starts, resolve_slot_interval

from fakes import make_entity

NAIROBI = ZoneInfo("Africa/Nairobi")


@pytest.mark.parametrize(
    ("opening", "closing", "interval"),
    [
        (time(9, 0), time(17, 0), 60),
        (time(9, 0), time(17, 0), 45),
        (time(8, 30), time(12, 10), 20),
        (time(0, 0), time(23, 59), 90),
        (time(9, 0), time(9, 59), 60),
    ],
)
def test_slot_count_is_floor_of_window_over_interval(opening: time, closing: time, interval: int) -> None:
    window_minutes = (closing.hour * 60 + closing.minute) - (opening.hour * 60 + opening.minute)

    starts = generate_slot_starts(opening, closing, interval)

    assert len(starts) == window_minutes // interval
    for start in starts:
        start_minutes = start.hour * 60 + start.minute
        assert start >= opening
        assert start_minutes + interval <= closing.hour * 60 + closing.minute


def test_business_day_hourly_slots() -> None:
    starts = generate_slot_starts(time(9, 0), time(17, 0), 60)

    assert starts == [time(hour, 0) for hour in range(9, 17)]


def test_closing_before_opening_yields_no_slots() -> None:
    assert generate_slot_starts(time(17, 0), time(9, 0), 60) == []
    assert generate_slot_starts(time(9, 0), time(9, 0), 30) == []


@pytest.mark.parametrize("interval", [0, -15])
def test_non_positive_interval_is_rejected(interval: int) -> None:
    with pytest.raises(ValueError):
        generate_slot_starts(time(9, 0), time(17, 0), interval)


def test_slot_interval_resolution_order() -> None:
    assert resolve_slot_interval(make_entity(duration=45, slot_interval=15)) == 15
    assert resolve_slot_interval(make_entity(duration=45, slot_interval=None)) == 45
    assert resolve_slot_interval(make_entity(duration=None, slot_interval=None)) == 60


def test_candidate_slots_are_converted_from_store_time_to_utc() -> None:
    window = OperatingWindow(opening_time=time(9, 0), closing_time=time(11, 0))

    slots = build_candidate_slots(date(2026, 3, 3), window, duration=60, interval=60, tz=NAIROBI)

    assert [(slot.start, slot.end) for slot in slots] == [
        (datetime(2026, 3, 3, 6, 0, tzinfo=UTC), datetime(2026, 3, 3, 7, 0, tzinfo=UTC)),
        (datetime(2026, 3, 3, 7, 0, tzinfo=UTC), datetime(2026, 3, 3, 8, 0, tzinfo=UTC)),
    ]


def test_candidates_longer_than_interval_must_end_before_closing() -> None:
    window = OperatingWindow(opening_time=time(9, 0), closing_time=time(12, 0))

    slots = build_candidate_slots(date(2026, 3, 3), window, duration=90, interval=30, tz=NAIROBI)

    local_starts = [slot.start.astimezone(NAIROBI).time() for slot in slots]
    assert local_starts == [time(9, 0), time(9, 30), time(10, 0), time(10, 30)]
    assert all(slot.end.astimezone(NAIROBI).time() <= time(12, 0) for slot in slots)


def test_wall_clock_times_skipped_by_dst_are_not_offered() -> None:
    new_york = ZoneInfo("America/New_York")
    window = OperatingWindow(opening_time=time(1, 0), closing_time=time(5, 0))

    slots = build_candidate_slots(date(2026, 3, 8), window, duration=60, interval=60, tz=new_york)

    assert [slot.start for slot in slots] == [
        datetime(2026, 3, 8, 6, 0, tzinfo=UTC),
        datetime(2026, 3, 8, 7, 0, tzinfo=UTC),
        datetime(2026, 3, 8, 8, 0, tzinfo=UTC),
    ]
    assert [slot.start.astimezone(new_york).time() for slot in slots] == [time(1, 0), time(3, 0), time(4, 0)]


def test_repeated_hour_on_dst_fall_back_yields_distinct_slots() -> None:
    new_york = ZoneInfo("America/New_York")
    window = OperatingWindow(opening_time=time(0, 0), closing_time=time(3, 0))

    slots = build_candidate_slots(date(2026, 11, 1), window, duration=60, interval=60, tz=new_york)

    starts = [slot.start for slot in slots]
    assert len(starts) == 3
    assert len(set(starts)) == 3
