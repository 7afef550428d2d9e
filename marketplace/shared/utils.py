"""Shared utility functions."""

from __future__ import annotations

import secrets
import string
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

_VERIFICATION_ALPHABET = string.ascii_uppercase + string.digits


def utc_now() -> datetime:
    """Return aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Normalize datetime to UTC timezone."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def localize(dt: datetime, tz: ZoneInfo) -> datetime:
    """Attach tz to naive datetime, convert aware datetime to tz."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def generate_verification_code(length: int = 6) -> str:
    """Return random upper-case alphanumeric code shown to the customer."""
    return "".join(secrets.choice(_VERIFICATION_ALPHABET) for _ in range(length))
