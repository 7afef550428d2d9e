"""Outbox consumer that materializes booking events into notifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from marketplace.modules.audit.models import OutboxEvent
from marketplace.modules.audit.repository import AuditRepository
from marketplace.modules.notifications.repository import NotificationsRepository
from marketplace.shared.utils import utc_now

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class NotificationMessage:
    user_id: UUID
    title: str
    body: str
    channel: str = "email"


_CUSTOMER_TITLES = {
    "booking.created": "Booking received",
    "booking.confirmed": "Booking confirmed",
    "booking.started": "Your appointment has started",
    "booking.completed": "Booking completed",
    "booking.no_show": "Booking marked as no-show",
    "booking.fulfilled": "Booking fulfilled",
    "booking.cancelled": "Booking cancelled",
    "booking.rescheduled": "Booking rescheduled",
}

_MERCHANT_TITLES = {
    "booking.created": "New booking",
    "booking.cancelled": "Booking cancelled by customer or staff",
    "booking.rescheduled": "Booking moved to a new time",
}


class NotificationsOutboxWorker:
    """Process outbox events and create customer/merchant notifications."""

    def __init__(
        self,
        audit_repository: AuditRepository,
        notifications_repository: NotificationsRepository,
        *,
        batch_size: int = 100,
        max_retries: int = 5,
        base_backoff_seconds: int = 30,
        max_backoff_seconds: int = 300,
        now_provider=utc_now,
    ) -> None:
        self.audit_repository = audit_repository
        self.notifications_repository = notifications_repository
        self.batch_size = batch_size
        self.max_retries = max_retries
        self.base_backoff_seconds = base_backoff_seconds
        self.max_backoff_seconds = max_backoff_seconds
        self.now_provider = now_provider

    async def run_once(self) -> dict[str, int]:
        """Requeue failed events whose backoff has elapsed, then dispatch one pending batch."""
        stats = {"requeued": 0, "processed": 0, "failed": 0, "dispatched": 0}
        stats["requeued"] = await self._requeue_due(self.now_provider())

        for event in await self.audit_repository.list_pending_outbox(limit=self.batch_size):
            try:
                dispatched = await self._dispatch(event)
            except Exception as exc:
                logger.warning("Outbox event %s (%s) failed: %s", event.id, event.event_type, exc)
                await self.audit_repository.mark_outbox_failed(event, str(exc))
                stats["failed"] += 1
                continue

            await self.audit_repository.mark_outbox_processed(event, self.now_provider())
            stats["processed"] += 1
            stats["dispatched"] += dispatched
        return stats

    async def _dispatch(self, event: OutboxEvent) -> int:
        messages = self._build_messages(event)
        for message in messages:
            await self.notifications_repository.record_sent_notification(
                user_id=message.user_id,
                channel=message.channel,
                title=message.title,
                body=message.body,
                sent_at=self.now_provider(),
            )
        return len(messages)

    async def _requeue_due(self, now: datetime) -> int:
        failed = await self.audit_repository.list_failed_outbox(limit=self.batch_size, max_retries=self.max_retries)
        due = [event for event in failed if now >= self._retry_due_at(event)]
        for event in due:
            await self.audit_repository.mark_outbox_pending(event)
        return len(due)

    def _retry_due_at(self, event: OutboxEvent) -> datetime:
        """Exponential backoff from the last attempt, capped at max_backoff_seconds."""
        attempt = max(event.retries, 1)
        delay = min(self.max_backoff_seconds, self.base_backoff_seconds * 2 ** (attempt - 1))
        return (event.updated_at or event.occurred_at) + timedelta(seconds=delay)

    def _build_messages(self, event: OutboxEvent) -> list[NotificationMessage]:
        payload = event.payload or {}
        event_type = event.event_type

        customer_title = _CUSTOMER_TITLES.get(event_type)
        if customer_title is None:
            return []

        booking_id = payload.get("booking_id", "unknown")
        start_time = payload.get("start_time", "unknown time")
        messages = [
            NotificationMessage(
                user_id=self._required_uuid(payload, "customer_id"),
                title=customer_title,
                body=f"Booking {booking_id} at {start_time} is now {payload.get('status', 'updated')}.",
            ),
        ]

        merchant_title = _MERCHANT_TITLES.get(event_type)
        merchant_id = self._optional_uuid(payload, "merchant_id")
        if merchant_title is not None and merchant_id is not None and merchant_id != messages[0].user_id:
            messages.append(
                NotificationMessage(
                    user_id=merchant_id,
                    title=merchant_title,
                    body=f"Booking {booking_id} for {payload.get('entity_name', 'a service')} at {start_time}.",
                ),
            )

        return messages

    @staticmethod
    def _required_uuid(payload: dict, key: str) -> UUID:
        value = payload.get(key)
        if value is None:
            raise ValueError(f"Missing required key: {key}")
        return UUID(str(value))

    @staticmethod
    def _optional_uuid(payload: dict, key: str) -> UUID | None:
        value = payload.get(key)
        if value is None:
            return None
        return UUID(str(value))
