"""Booking repository layer."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import or_, select, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.config import get_settings
from marketplace.core.enums import BookingStatusEnum, EntityTypeEnum
from marketplace.modules.booking.models import Booking
from marketplace.modules.catalog.models import Service, Staff
from marketplace.shared.exceptions import DatastoreUnavailableException


class BookingRepository:
    """DB operations for booking domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_active_bookings(
        self,
        service_id: UUID,
        staff_id: UUID | None,
        window_start: datetime,
        window_end: datetime,
    ) -> list[Booking]:
        """Non-cancelled bookings of the service or staff member intersecting the window."""
        scope = Booking.service_id == service_id
        if staff_id is not None:
            scope = or_(scope, Booking.staff_id == staff_id)

        stmt = (
            select(Booking)
            .where(
                scope,
                Booking.status != BookingStatusEnum.CANCELLED,
                Booking.start_time < window_end,
                Booking.end_time > window_start,
            )
            .order_by(Booking.start_time.asc())
        )
        return (await self.session.scalars(stmt)).all()

    async def lock_schedule(self, service_id: UUID, staff_id: UUID | None) -> None:
        """Row-lock the service (then staff) until the surrounding transaction ends.

        Lock order is fixed so two admissions sharing a staff member cannot deadlock.
        """
        lock_timeout_ms = int(get_settings().booking_lock_timeout_ms)
        try:
            await self.session.execute(text(f"SET LOCAL lock_timeout = '{lock_timeout_ms}ms'"))
            await self.session.execute(select(Service.id).where(Service.id == service_id).with_for_update())
            if staff_id is not None:
                await self.session.execute(select(Staff.id).where(Staff.id == staff_id).with_for_update())
        except DBAPIError as exc:
            raise DatastoreUnavailableException("Timed out waiting for the booking schedule lock") from exc

    async def create_booking(
        self,
        *,
        entity_type: EntityTypeEnum,
        service_id: UUID,
        offer_id: UUID | None,
        customer_id: UUID,
        store_id: UUID,
        branch_id: UUID | None,
        staff_id: UUID | None,
        start_time: datetime,
        end_time: datetime,
        status: BookingStatusEnum,
        verification_code: str,
        notes: str | None = None,
        client_info: dict | None = None,
        confirmed_at: datetime | None = None,
    ) -> Booking:
        booking = Booking(
            entity_type=entity_type,
            service_id=service_id,
            offer_id=offer_id,
            customer_id=customer_id,
            store_id=store_id,
            branch_id=branch_id,
            staff_id=staff_id,
            start_time=start_time,
            end_time=end_time,
            status=status,
            verification_code=verification_code,
            notes=notes,
            client_info=client_info,
            auto_confirmed=confirmed_at is not None,
            confirmed_at=confirmed_at,
        )
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def get_booking_by_id(self, booking_id: UUID) -> Booking | None:
        stmt = select(Booking).where(Booking.id == booking_id)
        return await self.session.scalar(stmt)

    async def get_booking_for_update(self, booking_id: UUID) -> Booking | None:
        stmt = select(Booking).where(Booking.id == booking_id).with_for_update()
        return await self.session.scalar(stmt)

    async def save(self, booking: Booking) -> Booking:
        await self.session.flush()
        return booking
