"""Notifications repository layer."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.enums import NotificationStatusEnum
from marketplace.modules.notifications.models import Notification


class NotificationsRepository:
    """Writes notification rows materialized from booking events."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def record_sent_notification(
        self,
        *,
        user_id: UUID,
        channel: str,
        title: str,
        body: str,
        sent_at: datetime,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            channel=channel,
            title=title,
            body=body,
            status=NotificationStatusEnum.SENT,
            sent_at=sent_at,
        )
        self.session.add(notification)
        await self.session.flush()
        return notification
