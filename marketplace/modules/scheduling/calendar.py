"""Operating calendar: working days and hours for a calendar date."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, time
from zoneinfo import ZoneInfo

from marketplace.core.config import get_settings
from marketplace.modules.catalog.schemas import OperatingProfile
from marketplace.shared.exceptions import StoreClosedException

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
_WEEKDAY_ALIASES = {name[:3]: name for name in WEEKDAY_NAMES} | {
    "tues": "tuesday",
    "thur": "thursday",
    "thurs": "thursday",
}


@dataclass(frozen=True, slots=True)
class OperatingWindow:
    opening_time: time
    closing_time: time


def _weekday(item: object) -> str | None:
    """Full weekday name for a name, abbreviation or ISO weekday number (1 is Monday)."""
    if isinstance(item, bool):
        return None
    if isinstance(item, int):
        return WEEKDAY_NAMES[item - 1] if 1 <= item <= 7 else None
    if not isinstance(item, str):
        return None

    token = item.strip().lower().rstrip(".")
    if token.isdigit():
        return _weekday(int(token))
    if token in WEEKDAY_NAMES:
        return token
    return _WEEKDAY_ALIASES.get(token)


def normalize_working_days(value: object) -> frozenset[str]:
    """Return lower-case weekday names from a list, JSON array or CSV string.

    Entries may be full names, abbreviations ("Mon", "Thurs") or ISO weekday
    numbers; anything else is ignored.
    """
    if value is None:
        return frozenset()

    items: list[object]
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return frozenset()
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            items = parsed
        else:
            items = raw.split(",")
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = list(value)
    else:
        return frozenset()

    return frozenset(name for name in map(_weekday, items) if name is not None)


def weekday_name(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()]


def resolve_timezone(profile: OperatingProfile) -> ZoneInfo:
    return ZoneInfo(profile.timezone or get_settings().default_store_timezone)


def get_operating_window(profile: OperatingProfile, day: date) -> OperatingWindow:
    """Return opening/closing hours for day or raise StoreClosedException."""
    working_days = normalize_working_days(profile.working_days)
    if not working_days:
        raise StoreClosedException("Store working days not configured")

    day_name = weekday_name(day)
    if day_name not in working_days:
        open_days = ", ".join(name.capitalize() for name in WEEKDAY_NAMES if name in working_days)
        raise StoreClosedException(f"Store is closed on {day_name.capitalize()}. Open days: {open_days}")

    return OperatingWindow(opening_time=profile.opening_time, closing_time=profile.closing_time)
