"""Core enums used across modules."""

from enum import StrEnum


class EntityTypeEnum(StrEnum):
    """Kind of bookable entity."""

    OFFER = "offer"
    SERVICE = "service"


class ServiceTypeEnum(StrEnum):
    """Service pricing/duration model."""

    FIXED = "fixed"
    DYNAMIC = "dynamic"


class ServiceStatusEnum(StrEnum):
    """Service and offer availability status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class StaffStatusEnum(StrEnum):
    """Staff member status."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class BookingStatusEnum(StrEnum):
    """Booking lifecycle status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"
    FULFILLED = "fulfilled"


class NotificationStatusEnum(StrEnum):
    """Notification delivery status."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class OutboxStatusEnum(StrEnum):
    """Outbox event status for integration publishing."""

    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"
