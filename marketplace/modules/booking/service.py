"""Booking admission and lifecycle."""

from __future__ import annotations

import logging
import secrets
from datetime import datetime
from uuid import UUID

from fastapi import Depends
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.config import get_settings
from marketplace.core.database import get_db_session
from marketplace.core.enums import BookingStatusEnum, EntityTypeEnum
from marketplace.core.metrics import record_booking_admission
from marketplace.modules.audit.repository import AuditRepository
from marketplace.modules.booking.models import Booking
from marketplace.modules.booking.repository import BookingRepository
from marketplace.modules.booking.schemas import BookingCreateRequest
from marketplace.modules.catalog.repository import CatalogRepository
from marketplace.modules.catalog.schemas import BookableEntity
from marketplace.modules.scheduling.calendar import resolve_timezone
from marketplace.modules.scheduling.rules import validate_slot
from marketplace.modules.scheduling.service import AvailabilityService
from marketplace.modules.scheduling.slots import Slot, filter_available
from marketplace.shared.exceptions import (
    AppException,
    BusinessRuleException,
    DatastoreUnavailableException,
    InvalidSlotException,
    InvalidStatusTransitionException,
    NotFoundException,
    SlotNoLongerAvailableException,
)
from marketplace.shared.utils import ensure_utc, generate_verification_code, localize, utc_now

logger = logging.getLogger(__name__)
settings = get_settings()

ALLOWED_TRANSITIONS: dict[BookingStatusEnum, frozenset[BookingStatusEnum]] = {
    BookingStatusEnum.PENDING: frozenset({BookingStatusEnum.CONFIRMED, BookingStatusEnum.CANCELLED}),
    BookingStatusEnum.CONFIRMED: frozenset(
        {
            BookingStatusEnum.IN_PROGRESS,
            BookingStatusEnum.CANCELLED,
            BookingStatusEnum.NO_SHOW,
            BookingStatusEnum.FULFILLED,
        },
    ),
    BookingStatusEnum.IN_PROGRESS: frozenset({BookingStatusEnum.COMPLETED, BookingStatusEnum.FULFILLED}),
}
RESCHEDULABLE_STATUSES = frozenset({BookingStatusEnum.PENDING, BookingStatusEnum.CONFIRMED})


class BookingService:
    """Booking domain service: atomic admission plus status transitions."""

    def __init__(
        self,
        availability_service: AvailabilityService,
        catalog_repository: CatalogRepository,
        booking_repository: BookingRepository,
        audit_repository: AuditRepository,
        *,
        now_provider=utc_now,
    ) -> None:
        self.availability_service = availability_service
        self.catalog_repository = catalog_repository
        self.booking_repository = booking_repository
        self.audit_repository = audit_repository
        self.now_provider = now_provider

    async def create_booking(self, payload: BookingCreateRequest) -> Booking:
        """Admit a booking for one slot, or raise without writing anything."""
        try:
            booking = await self._admit(payload)
        except SlotNoLongerAvailableException:
            record_booking_admission("conflict")
            raise
        except (DatastoreUnavailableException, OperationalError, InterfaceError):
            record_booking_admission("unavailable")
            raise
        except AppException:
            record_booking_admission("rejected")
            raise
        record_booking_admission("created")
        return booking

    async def _admit(self, payload: BookingCreateRequest) -> Booking:
        entity = await self.availability_service.load_entity(payload.entity_id, payload.entity_type)
        staff_id = await self.availability_service.resolve_staff_id(entity, payload.staff_id)
        slot = await self._reserve_slot(entity, staff_id, payload.start_time)

        now = self.now_provider()
        auto_confirm = entity.auto_confirm_bookings
        booking = await self.booking_repository.create_booking(
            entity_type=entity.entity_type,
            service_id=entity.service_id,
            offer_id=entity.entity_id if entity.entity_type == EntityTypeEnum.OFFER else None,
            customer_id=payload.customer_id,
            store_id=entity.store_id,
            branch_id=entity.branch_id,
            staff_id=staff_id,
            start_time=slot.start,
            end_time=slot.end,
            status=BookingStatusEnum.CONFIRMED if auto_confirm else BookingStatusEnum.PENDING,
            verification_code=generate_verification_code(settings.verification_code_length),
            notes=payload.notes,
            client_info=payload.client_info,
            confirmed_at=now if auto_confirm else None,
        )
        await self._publish("booking.created", booking, entity)

        logger.info(
            "Booking %s created for %s %s at %s (%s)",
            booking.id,
            entity.entity_type.value,
            entity.entity_id,
            booking.start_time.isoformat(),
            booking.status.value,
        )
        return booking

    async def _reserve_slot(
        self,
        entity: BookableEntity,
        staff_id: UUID | None,
        start_time: datetime,
        *,
        moving: Booking | None = None,
    ) -> Slot:
        """Match start_time to a slot of entity, lock its schedule and check capacity.

        The booking being moved, if any, does not count against the new slot.
        """
        profile = await self.availability_service.load_profile(entity)
        local_start = localize(start_time, resolve_timezone(profile))
        schedule = self.availability_service.build_day_schedule(entity, profile, local_start.date())

        start = ensure_utc(local_start)
        slot = next((candidate for candidate in schedule.candidates if candidate.start == start), None)
        if slot is None:
            raise InvalidSlotException("Requested start time does not match any slot of this service")

        validate_slot(slot.start, entity, self.now_provider())

        # Held until the request transaction commits or rolls back.
        await self.booking_repository.lock_schedule(entity.service_id, staff_id)
        bookings = await self.availability_service.load_conflicting_bookings(entity, staff_id, [slot])
        if moving is not None:
            bookings = [booking for booking in bookings if booking.id != moving.id]
        if not filter_available([slot], bookings, entity):
            logger.warning(
                "Slot %s of service %s already at capacity, rejecting booking",
                slot.start.isoformat(),
                entity.service_id,
            )
            raise SlotNoLongerAvailableException("This time slot is no longer available")
        return slot

    async def _publish(
        self,
        event_type: str,
        booking: Booking,
        entity: BookableEntity | None = None,
        extra: dict | None = None,
    ) -> None:
        """Record lifecycle event; a failed write is logged and never undoes the booking."""
        if entity is None:
            entity = await self._lookup_entity(booking)

        payload = {
            "booking_id": str(booking.id),
            "customer_id": str(booking.customer_id),
            "merchant_id": str(entity.merchant_id) if entity and entity.merchant_id else None,
            "service_id": str(booking.service_id),
            "offer_id": str(booking.offer_id) if booking.offer_id else None,
            "entity_name": entity.name if entity else None,
            "start_time": ensure_utc(booking.start_time).isoformat(),
            "status": booking.status.value,
        }
        payload.update(extra or {})
        try:
            await self.audit_repository.create_outbox_event(
                aggregate_type="booking",
                aggregate_id=str(booking.id),
                event_type=event_type,
                payload=payload,
            )
        except SQLAlchemyError:
            logger.warning("Failed to record %s event for booking %s", event_type, booking.id, exc_info=True)

    async def _lookup_entity(self, booking: Booking) -> BookableEntity | None:
        if booking.entity_type == EntityTypeEnum.OFFER and booking.offer_id is not None:
            return await self.catalog_repository.get_bookable_entity(booking.offer_id, EntityTypeEnum.OFFER)
        return await self.catalog_repository.get_bookable_entity(booking.service_id, EntityTypeEnum.SERVICE)

    async def get_booking(self, booking_id: UUID) -> Booking:
        booking = await self.booking_repository.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        return booking

    async def _load_for_transition(self, booking_id: UUID, target: BookingStatusEnum) -> Booking:
        booking = await self.booking_repository.get_booking_for_update(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        if target not in ALLOWED_TRANSITIONS.get(booking.status, frozenset()):
            raise InvalidStatusTransitionException(
                f"Cannot change booking status from {booking.status.value} to {target.value}",
            )
        return booking

    async def _commit_transition(self, booking: Booking, target: BookingStatusEnum, event_type: str) -> Booking:
        booking.status = target
        await self.booking_repository.save(booking)
        await self._publish(event_type, booking)
        logger.info("Booking %s moved to %s", booking.id, target.value)
        return booking

    async def confirm_booking(self, booking_id: UUID) -> Booking:
        booking = await self._load_for_transition(booking_id, BookingStatusEnum.CONFIRMED)
        booking.confirmed_at = self.now_provider()
        return await self._commit_transition(booking, BookingStatusEnum.CONFIRMED, "booking.confirmed")

    async def start_booking(self, booking_id: UUID) -> Booking:
        booking = await self._load_for_transition(booking_id, BookingStatusEnum.IN_PROGRESS)
        booking.started_at = self.now_provider()
        return await self._commit_transition(booking, BookingStatusEnum.IN_PROGRESS, "booking.started")

    async def complete_booking(self, booking_id: UUID) -> Booking:
        booking = await self._load_for_transition(booking_id, BookingStatusEnum.COMPLETED)
        booking.completed_at = self.now_provider()
        return await self._commit_transition(booking, BookingStatusEnum.COMPLETED, "booking.completed")

    async def mark_no_show(self, booking_id: UUID) -> Booking:
        booking = await self._load_for_transition(booking_id, BookingStatusEnum.NO_SHOW)
        booking.no_show_marked_at = self.now_provider()
        return await self._commit_transition(booking, BookingStatusEnum.NO_SHOW, "booking.no_show")

    async def cancel_booking(self, booking_id: UUID, reason: str | None = None) -> Booking:
        """Cancel a booking that has not started yet; the slot becomes available again."""
        booking = await self._load_for_transition(booking_id, BookingStatusEnum.CANCELLED)
        now = self.now_provider()
        if ensure_utc(booking.start_time) <= now:
            raise BusinessRuleException("Only upcoming bookings can be cancelled")

        booking.cancelled_at = now
        booking.cancellation_reason = reason
        return await self._commit_transition(booking, BookingStatusEnum.CANCELLED, "booking.cancelled")

    async def reschedule_booking(
        self,
        booking_id: UUID,
        start_time: datetime,
        staff_id: UUID | None = None,
        reason: str | None = None,
    ) -> Booking:
        """Move an upcoming booking to another free slot of the same entity, keeping its id and code."""
        booking = await self.booking_repository.get_booking_for_update(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        if booking.status not in RESCHEDULABLE_STATUSES:
            raise InvalidStatusTransitionException(f"Cannot reschedule a booking in status {booking.status.value}")
        if ensure_utc(booking.start_time) <= self.now_provider():
            raise BusinessRuleException("Only upcoming bookings can be rescheduled")

        if booking.entity_type == EntityTypeEnum.OFFER and booking.offer_id is not None:
            entity = await self.availability_service.load_entity(booking.offer_id, EntityTypeEnum.OFFER)
        else:
            entity = await self.availability_service.load_entity(booking.service_id, EntityTypeEnum.SERVICE)
        requested_staff_id = staff_id if staff_id is not None else booking.staff_id
        new_staff_id = await self.availability_service.resolve_staff_id(entity, requested_staff_id)
        slot = await self._reserve_slot(entity, new_staff_id, start_time, moving=booking)

        previous_start = ensure_utc(booking.start_time)
        booking.start_time = slot.start
        booking.end_time = slot.end
        booking.staff_id = new_staff_id
        booking.rescheduled_at = self.now_provider()
        booking.reschedule_reason = reason
        await self.booking_repository.save(booking)
        await self._publish(
            "booking.rescheduled",
            booking,
            entity,
            extra={"previous_start_time": previous_start.isoformat()},
        )

        logger.info(
            "Booking %s rescheduled from %s to %s",
            booking.id,
            previous_start.isoformat(),
            slot.start.isoformat(),
        )
        return booking

    async def fulfill_booking(self, booking_id: UUID, verification_code: str) -> Booking:
        """Mark booking fulfilled after the customer presents their verification code."""
        booking = await self._load_for_transition(booking_id, BookingStatusEnum.FULFILLED)
        presented = verification_code.strip().upper()
        if not secrets.compare_digest(presented.encode(), booking.verification_code.upper().encode()):
            raise BusinessRuleException("Verification code does not match")

        booking.fulfilled_at = self.now_provider()
        return await self._commit_transition(booking, BookingStatusEnum.FULFILLED, "booking.fulfilled")


async def get_booking_service(session: AsyncSession = Depends(get_db_session)) -> BookingService:
    """Dependency provider for booking service."""
    catalog_repository = CatalogRepository(session)
    booking_repository = BookingRepository(session)
    return BookingService(
        availability_service=AvailabilityService(catalog_repository, booking_repository),
        catalog_repository=catalog_repository,
        booking_repository=booking_repository,
        audit_repository=AuditRepository(session),
    )
