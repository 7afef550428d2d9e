"""Initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


entity_type_enum = sa.Enum("offer", "service", name="entity_type_enum", native_enum=False)
service_type_enum = sa.Enum("fixed", "dynamic", name="service_type_enum", native_enum=False)
service_status_enum = sa.Enum("active", "inactive", "suspended", name="service_status_enum", native_enum=False)
offer_status_enum = sa.Enum("active", "inactive", "suspended", name="offer_status_enum", native_enum=False)
staff_status_enum = sa.Enum("active", "inactive", name="staff_status_enum", native_enum=False)
booking_status_enum = sa.Enum(
    "pending",
    "confirmed",
    "in_progress",
    "completed",
    "cancelled",
    "no_show",
    "fulfilled",
    name="booking_status_enum",
    native_enum=False,
)
notification_status_enum = sa.Enum("pending", "sent", "failed", name="notification_status_enum", native_enum=False)
outbox_status_enum = sa.Enum("pending", "processed", "failed", name="outbox_status_enum", native_enum=False)


def _id_col() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _created_col() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def _updated_col() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False)


def _uuid_col(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, postgresql.UUID(as_uuid=True), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "stores",
        _id_col(),
        _created_col(),
        _updated_col(),
        _uuid_col("merchant_id"),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("opening_time", sa.Time(), nullable=False),
        sa.Column("closing_time", sa.Time(), nullable=False),
        sa.Column("working_days", sa.JSON(), nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=True),
    )
    op.create_index("ix_stores_merchant_id", "stores", ["merchant_id"], unique=False)

    op.create_table(
        "branches",
        _id_col(),
        _created_col(),
        _updated_col(),
        _uuid_col("store_id"),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("opening_time", sa.Time(), nullable=True),
        sa.Column("closing_time", sa.Time(), nullable=True),
        sa.Column("working_days", sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(["store_id"], ["stores.id"], name="fk_branches_store_id_stores", ondelete="CASCADE"),
    )
    op.create_index("ix_branches_store_id", "branches", ["store_id"], unique=False)

    op.create_table(
        "staff",
        _id_col(),
        _created_col(),
        _updated_col(),
        _uuid_col("store_id"),
        _uuid_col("branch_id", nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("status", staff_status_enum, nullable=False),
        sa.ForeignKeyConstraint(["store_id"], ["stores.id"], name="fk_staff_store_id_stores", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["branch_id"],
            ["branches.id"],
            name="fk_staff_branch_id_branches",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_staff_store_id", "staff", ["store_id"], unique=False)
    op.create_index("ix_staff_branch_id", "staff", ["branch_id"], unique=False)

    op.create_table(
        "services",
        _id_col(),
        _created_col(),
        _updated_col(),
        _uuid_col("store_id"),
        _uuid_col("branch_id", nullable=True),
        _uuid_col("staff_id", nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("service_type", service_type_enum, nullable=False),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("slot_interval", sa.Integer(), nullable=True),
        sa.Column("buffer_time", sa.Integer(), nullable=False),
        sa.Column("max_concurrent_bookings", sa.Integer(), nullable=False),
        sa.Column("allow_overbooking", sa.Boolean(), nullable=False),
        sa.Column("min_advance_booking", sa.Integer(), nullable=True),
        sa.Column("max_advance_booking", sa.Integer(), nullable=True),
        sa.Column("booking_enabled", sa.Boolean(), nullable=False),
        sa.Column("auto_confirm_bookings", sa.Boolean(), nullable=False),
        sa.Column("status", service_status_enum, nullable=False),
        sa.ForeignKeyConstraint(["store_id"], ["stores.id"], name="fk_services_store_id_stores", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["branch_id"],
            ["branches.id"],
            name="fk_services_branch_id_branches",
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(["staff_id"], ["staff.id"], name="fk_services_staff_id_staff", ondelete="SET NULL"),
    )
    op.create_index("ix_services_store_id", "services", ["store_id"], unique=False)
    op.create_index("ix_services_booking_enabled", "services", ["booking_enabled"], unique=False)
    op.create_index("ix_services_status", "services", ["status"], unique=False)

    op.create_table(
        "staff_service_assignments",
        _id_col(),
        _created_col(),
        _updated_col(),
        _uuid_col("staff_id"),
        _uuid_col("service_id"),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(
            ["staff_id"],
            ["staff.id"],
            name="fk_staff_service_assignments_staff_id_staff",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["service_id"],
            ["services.id"],
            name="fk_staff_service_assignments_service_id_services",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("staff_id", "service_id", name="uq_staff_service_assignments_staff_service"),
    )
    op.create_index(
        "ix_staff_service_assignments_staff_id",
        "staff_service_assignments",
        ["staff_id"],
        unique=False,
    )
    op.create_index(
        "ix_staff_service_assignments_service_id",
        "staff_service_assignments",
        ["service_id"],
        unique=False,
    )

    op.create_table(
        "offers",
        _id_col(),
        _created_col(),
        _updated_col(),
        _uuid_col("service_id"),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("status", offer_status_enum, nullable=False),
        sa.Column("expiration_date", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["service_id"],
            ["services.id"],
            name="fk_offers_service_id_services",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_offers_service_id", "offers", ["service_id"], unique=False)

    op.create_table(
        "bookings",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("entity_type", entity_type_enum, nullable=False),
        _uuid_col("service_id"),
        _uuid_col("offer_id", nullable=True),
        _uuid_col("customer_id"),
        _uuid_col("store_id"),
        _uuid_col("branch_id", nullable=True),
        _uuid_col("staff_id", nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", booking_status_enum, nullable=False),
        sa.Column("verification_code", sa.String(length=20), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("client_info", sa.JSON(), nullable=True),
        sa.Column("auto_confirmed", sa.Boolean(), nullable=False),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.String(length=512), nullable=True),
        sa.Column("no_show_marked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rescheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reschedule_reason", sa.String(length=512), nullable=True),
        sa.Column("fulfilled_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["service_id"],
            ["services.id"],
            name="fk_bookings_service_id_services",
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(["offer_id"], ["offers.id"], name="fk_bookings_offer_id_offers", ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["store_id"], ["stores.id"], name="fk_bookings_store_id_stores", ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(
            ["branch_id"],
            ["branches.id"],
            name="fk_bookings_branch_id_branches",
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(["staff_id"], ["staff.id"], name="fk_bookings_staff_id_staff", ondelete="SET NULL"),
    )
    op.create_index("ix_bookings_offer_id", "bookings", ["offer_id"], unique=False)
    op.create_index("ix_bookings_customer_id", "bookings", ["customer_id"], unique=False)
    op.create_index("ix_bookings_store_id", "bookings", ["store_id"], unique=False)
    op.create_index("ix_bookings_status", "bookings", ["status"], unique=False)
    op.create_index("ix_bookings_verification_code", "bookings", ["verification_code"], unique=False)
    op.create_index(
        "ix_bookings_service_schedule",
        "bookings",
        ["service_id", "start_time", "end_time"],
        unique=False,
    )
    op.create_index(
        "ix_bookings_staff_schedule",
        "bookings",
        ["staff_id", "start_time", "end_time"],
        unique=False,
    )

    op.create_table(
        "notifications",
        _id_col(),
        _created_col(),
        _updated_col(),
        _uuid_col("user_id"),
        sa.Column("channel", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("status", notification_status_enum, nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"], unique=False)
    op.create_index("ix_notifications_status", "notifications", ["status"], unique=False)

    op.create_table(
        "outbox_events",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("aggregate_type", sa.String(length=128), nullable=False),
        sa.Column("aggregate_id", sa.String(length=128), nullable=False),
        sa.Column("event_type", sa.String(length=128), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("status", outbox_status_enum, nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("retries", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
    )
    op.create_index("ix_outbox_events_aggregate_type", "outbox_events", ["aggregate_type"], unique=False)
    op.create_index("ix_outbox_events_aggregate_id", "outbox_events", ["aggregate_id"], unique=False)
    op.create_index("ix_outbox_events_event_type", "outbox_events", ["event_type"], unique=False)
    op.create_index("ix_outbox_events_status", "outbox_events", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_outbox_events_status", table_name="outbox_events")
    op.drop_index("ix_outbox_events_event_type", table_name="outbox_events")
    op.drop_index("ix_outbox_events_aggregate_id", table_name="outbox_events")
    op.drop_index("ix_outbox_events_aggregate_type", table_name="outbox_events")
    op.drop_table("outbox_events")

    op.drop_index("ix_notifications_status", table_name="notifications")
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("ix_bookings_staff_schedule", table_name="bookings")
    op.drop_index("ix_bookings_service_schedule", table_name="bookings")
    op.drop_index("ix_bookings_verification_code", table_name="bookings")
    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_store_id", table_name="bookings")
    op.drop_index("ix_bookings_customer_id", table_name="bookings")
    op.drop_index("ix_bookings_offer_id", table_name="bookings")
    op.drop_table("bookings")

    op.drop_index("ix_offers_service_id", table_name="offers")
    op.drop_table("offers")

    op.drop_index("ix_staff_service_assignments_service_id", table_name="staff_service_assignments")
    op.drop_index("ix_staff_service_assignments_staff_id", table_name="staff_service_assignments")
    op.drop_table("staff_service_assignments")

    op.drop_index("ix_services_status", table_name="services")
    op.drop_index("ix_services_booking_enabled", table_name="services")
    op.drop_index("ix_services_store_id", table_name="services")
    op.drop_table("services")

    op.drop_index("ix_staff_branch_id", table_name="staff")
    op.drop_index("ix_staff_store_id", table_name="staff")
    op.drop_table("staff")

    op.drop_index("ix_branches_store_id", table_name="branches")
    op.drop_table("branches")

    op.drop_index("ix_stores_merchant_id", table_name="stores")
    op.drop_table("stores")
