"""Catalog repository layer."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from marketplace.core.config import get_settings
from marketplace.core.enums import EntityTypeEnum, ServiceStatusEnum, StaffStatusEnum
from marketplace.modules.catalog.models import Branch, Offer, Service, Staff, StaffServiceAssignment, Store
from marketplace.modules.catalog.schemas import BookableEntity, OperatingProfile

settings = get_settings()


def _or_default(value: int | None, default: int) -> int:
    return default if value is None else value


def _entity_from_service(
    service: Service,
    *,
    entity_id: UUID,
    entity_type: EntityTypeEnum,
    name: str,
    status: ServiceStatusEnum,
    expiration_date: datetime | None = None,
) -> BookableEntity:
    return BookableEntity(
        entity_id=entity_id,
        entity_type=entity_type,
        service_id=service.id,
        store_id=service.store_id,
        merchant_id=service.store.merchant_id if service.store is not None else None,
        branch_id=service.branch_id,
        staff_id=service.staff_id,
        name=name,
        service_type=service.service_type,
        duration=service.duration,
        slot_interval=service.slot_interval,
        buffer_time=service.buffer_time or 0,
        max_concurrent_bookings=service.max_concurrent_bookings or 1,
        allow_overbooking=service.allow_overbooking,
        min_advance_booking=_or_default(service.min_advance_booking, settings.default_min_advance_booking),
        max_advance_booking=_or_default(service.max_advance_booking, settings.default_max_advance_booking),
        booking_enabled=service.booking_enabled,
        auto_confirm_bookings=service.auto_confirm_bookings,
        status=status,
        expiration_date=expiration_date,
    )


class CatalogRepository:
    """Read access to bookable entities, operating hours and staff."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_bookable_entity(self, entity_id: UUID, entity_type: EntityTypeEnum) -> BookableEntity | None:
        if entity_type == EntityTypeEnum.OFFER:
            stmt = (
                select(Offer)
                .options(selectinload(Offer.service).selectinload(Service.store))
                .where(Offer.id == entity_id)
            )
            offer = await self.session.scalar(stmt)
            if offer is None or offer.service is None:
                return None
            # an offer is only as available as the service behind it
            status = offer.status
            if offer.service.status != ServiceStatusEnum.ACTIVE:
                status = offer.service.status
            return _entity_from_service(
                offer.service,
                entity_id=offer.id,
                entity_type=EntityTypeEnum.OFFER,
                name=offer.title,
                status=status,
                expiration_date=offer.expiration_date,
            )

        stmt = select(Service).options(selectinload(Service.store)).where(Service.id == entity_id)
        service = await self.session.scalar(stmt)
        if service is None:
            return None
        return _entity_from_service(
            service,
            entity_id=service.id,
            entity_type=EntityTypeEnum.SERVICE,
            name=service.name,
            status=service.status,
        )

    async def get_operating_profile(self, store_id: UUID, branch_id: UUID | None = None) -> OperatingProfile | None:
        store = await self.session.scalar(select(Store).where(Store.id == store_id))
        if store is None:
            return None

        branch = None
        if branch_id is not None:
            branch = await self.session.scalar(
                select(Branch).where(Branch.id == branch_id, Branch.store_id == store_id),
            )

        if branch is None:
            return OperatingProfile(
                working_days=store.working_days,
                opening_time=store.opening_time,
                closing_time=store.closing_time,
                timezone=store.timezone,
            )
        return OperatingProfile(
            working_days=branch.working_days if branch.working_days else store.working_days,
            opening_time=branch.opening_time or store.opening_time,
            closing_time=branch.closing_time or store.closing_time,
            timezone=store.timezone,
        )

    async def get_staff_for_service(self, staff_id: UUID, service_id: UUID) -> Staff | None:
        """Return active staff member only if actively assigned to the service."""
        stmt = (
            select(Staff)
            .join(StaffServiceAssignment, StaffServiceAssignment.staff_id == Staff.id)
            .where(
                Staff.id == staff_id,
                Staff.status == StaffStatusEnum.ACTIVE,
                StaffServiceAssignment.service_id == service_id,
                StaffServiceAssignment.is_active.is_(True),
            )
        )
        return await self.session.scalar(stmt)
