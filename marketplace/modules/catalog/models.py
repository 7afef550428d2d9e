"""Catalog ORM models: stores, branches, staff, services and offers.

The catalog is managed elsewhere; the booking core only reads these rows
(and row-locks services and staff during admission).
"""

from __future__ import annotations

from datetime import datetime, time
from uuid import UUID

from sqlalchemy import JSON, Boolean, DateTime, Enum as SAEnum, ForeignKey, Integer, String, Time, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace.core.database import Base, BaseModelMixin
from marketplace.core.enums import ServiceStatusEnum, ServiceTypeEnum, StaffStatusEnum


class Store(BaseModelMixin, Base):
    """Merchant store with default operating hours."""

    __tablename__ = "stores"

    merchant_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    opening_time: Mapped[time] = mapped_column(Time, nullable=False)
    closing_time: Mapped[time] = mapped_column(Time, nullable=False)
    # list of weekday names or legacy comma-separated string
    working_days: Mapped[list | str] = mapped_column(JSON, default=list, nullable=False)
    timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)

    branches: Mapped[list["Branch"]] = relationship(back_populates="store")
    services: Mapped[list["Service"]] = relationship(back_populates="store")


class Branch(BaseModelMixin, Base):
    """Store branch; overrides store hours when its own are set."""

    __tablename__ = "branches"

    store_id: Mapped[UUID] = mapped_column(ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    opening_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    closing_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    working_days: Mapped[list | str | None] = mapped_column(JSON, nullable=True)

    store: Mapped[Store] = relationship(back_populates="branches")


class Staff(BaseModelMixin, Base):
    """Staff member working at a store or one of its branches."""

    __tablename__ = "staff"

    store_id: Mapped[UUID] = mapped_column(ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    branch_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("branches.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[StaffStatusEnum] = mapped_column(
        SAEnum(StaffStatusEnum, name="staff_status_enum", native_enum=False),
        default=StaffStatusEnum.ACTIVE,
        nullable=False,
    )


class StaffServiceAssignment(BaseModelMixin, Base):
    """Which staff members may perform which services."""

    __tablename__ = "staff_service_assignments"
    __table_args__ = (UniqueConstraint("staff_id", "service_id", name="uq_staff_service_assignments_staff_service"),)

    staff_id: Mapped[UUID] = mapped_column(ForeignKey("staff.id", ondelete="CASCADE"), nullable=False, index=True)
    service_id: Mapped[UUID] = mapped_column(ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class Service(BaseModelMixin, Base):
    """Bookable service with its scheduling parameters."""

    __tablename__ = "services"

    store_id: Mapped[UUID] = mapped_column(ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    branch_id: Mapped[UUID | None] = mapped_column(ForeignKey("branches.id", ondelete="SET NULL"), nullable=True)
    staff_id: Mapped[UUID | None] = mapped_column(ForeignKey("staff.id", ondelete="SET NULL"), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    service_type: Mapped[ServiceTypeEnum] = mapped_column(
        SAEnum(ServiceTypeEnum, name="service_type_enum", native_enum=False),
        default=ServiceTypeEnum.FIXED,
        nullable=False,
    )
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    slot_interval: Mapped[int | None] = mapped_column(Integer, nullable=True)
    buffer_time: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    max_concurrent_bookings: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    allow_overbooking: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # null means the platform default from settings
    min_advance_booking: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_advance_booking: Mapped[int | None] = mapped_column(Integer, nullable=True)
    booking_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    auto_confirm_bookings: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    status: Mapped[ServiceStatusEnum] = mapped_column(
        SAEnum(ServiceStatusEnum, name="service_status_enum", native_enum=False),
        default=ServiceStatusEnum.ACTIVE,
        nullable=False,
        index=True,
    )

    store: Mapped[Store] = relationship(back_populates="services")
    offers: Mapped[list["Offer"]] = relationship(back_populates="service")


class Offer(BaseModelMixin, Base):
    """Promotional offer wrapping a service."""

    __tablename__ = "offers"

    service_id: Mapped[UUID] = mapped_column(ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[ServiceStatusEnum] = mapped_column(
        SAEnum(ServiceStatusEnum, name="offer_status_enum", native_enum=False),
        default=ServiceStatusEnum.ACTIVE,
        nullable=False,
    )
    # null means the offer never expires
    expiration_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    service: Mapped[Service] = relationship(back_populates="offers")
