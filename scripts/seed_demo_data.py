"""Seed idempotent demo catalog data for local/non-production environments."""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass
from datetime import time, timedelta
from uuid import NAMESPACE_URL, UUID, uuid5

from sqlalchemy.ext.asyncio import AsyncSession

import marketplace.modules  # noqa: F401
from marketplace.core.config import get_settings
from marketplace.core.database import SessionLocal, close_engine
from marketplace.core.enums import ServiceStatusEnum, ServiceTypeEnum, StaffStatusEnum
from marketplace.modules.catalog.models import Branch, Offer, Service, Staff, StaffServiceAssignment, Store
from marketplace.shared.utils import utc_now


def _demo_id(name: str) -> UUID:
    return uuid5(NAMESPACE_URL, f"https://marketplace.demo/{name}")


DEMO_MERCHANT_ID = _demo_id("merchant")
DEMO_STORE_ID = _demo_id("store")
DEMO_BRANCH_ID = _demo_id("branch/westlands")
DEMO_STAFF_ID = _demo_id("staff/amina")
DEMO_ASSIGNMENT_ID = _demo_id("assignment/amina/haircut")
DEMO_SERVICE_ID = _demo_id("service/haircut")
DEMO_CONSULTATION_ID = _demo_id("service/consultation")
DEMO_OFFER_ID = _demo_id("offer/haircut-weekday")

DEMO_WORKING_DAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]
DEMO_OFFER_VALID_DAYS = 90


@dataclass(slots=True)
class SeedStats:
    created: int = 0
    updated: int = 0


async def _upsert(session: AsyncSession, model, row_id: UUID, stats: SeedStats, **fields) -> None:
    row = await session.get(model, row_id)
    if row is None:
        session.add(model(id=row_id, **fields))
        stats.created += 1
    else:
        for name, value in fields.items():
            setattr(row, name, value)
        stats.updated += 1
    await session.flush()


async def _run_seed(*, allow_production: bool) -> SeedStats:
    settings = get_settings()
    app_env = settings.app_env.strip().lower()
    if app_env in {"production", "prod"} and not allow_production:
        raise RuntimeError(
            "Refusing to seed demo data in production. "
            "Re-run with --allow-production only if you are absolutely sure.",
        )

    stats = SeedStats()
    async with SessionLocal() as session:
        try:
            await _upsert(
                session,
                Store,
                DEMO_STORE_ID,
                stats,
                merchant_id=DEMO_MERCHANT_ID,
                name="Demo Barbershop",
                opening_time=time(9, 0),
                closing_time=time(17, 0),
                working_days=DEMO_WORKING_DAYS,
                timezone=settings.default_store_timezone,
            )
            await _upsert(
                session,
                Branch,
                DEMO_BRANCH_ID,
                stats,
                store_id=DEMO_STORE_ID,
                name="Westlands",
                opening_time=time(10, 0),
                closing_time=time(19, 0),
                working_days=None,
            )
            await _upsert(
                session,
                Staff,
                DEMO_STAFF_ID,
                stats,
                store_id=DEMO_STORE_ID,
                branch_id=DEMO_BRANCH_ID,
                name="Amina",
                email="amina@marketplace.demo",
                status=StaffStatusEnum.ACTIVE,
            )
            await _upsert(
                session,
                Service,
                DEMO_SERVICE_ID,
                stats,
                store_id=DEMO_STORE_ID,
                branch_id=DEMO_BRANCH_ID,
                name="Haircut",
                service_type=ServiceTypeEnum.FIXED,
                duration=45,
                slot_interval=60,
                buffer_time=15,
                max_concurrent_bookings=1,
                booking_enabled=True,
                status=ServiceStatusEnum.ACTIVE,
            )
            await _upsert(
                session,
                Service,
                DEMO_CONSULTATION_ID,
                stats,
                store_id=DEMO_STORE_ID,
                name="Style consultation",
                service_type=ServiceTypeEnum.DYNAMIC,
                duration=None,
                booking_enabled=True,
                status=ServiceStatusEnum.ACTIVE,
            )
            await _upsert(
                session,
                StaffServiceAssignment,
                DEMO_ASSIGNMENT_ID,
                stats,
                staff_id=DEMO_STAFF_ID,
                service_id=DEMO_SERVICE_ID,
                is_active=True,
            )
            await _upsert(
                session,
                Offer,
                DEMO_OFFER_ID,
                stats,
                service_id=DEMO_SERVICE_ID,
                title="Weekday haircut special",
                status=ServiceStatusEnum.ACTIVE,
                expiration_date=utc_now() + timedelta(days=DEMO_OFFER_VALID_DAYS),
            )
            await session.commit()
        except Exception:
            await session.rollback()
            raise

    return stats


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Seed idempotent demo catalog data (store, branch, staff, services, offer).",
    )
    parser.add_argument(
        "--allow-production",
        action="store_true",
        help="Allow seeding even when APP_ENV is production/prod.",
    )
    return parser


def _print_summary(stats: SeedStats) -> None:
    print("Demo seed completed.")
    print(f"- Rows created: {stats.created}")
    print(f"- Rows updated: {stats.updated}")
    print("")
    print("Bookable demo entities:")
    print(f"- service: {DEMO_SERVICE_ID}")
    print(f"- offer:   {DEMO_OFFER_ID}")
    print(f"- staff:   {DEMO_STAFF_ID}")
    print(f"- dynamic service (consultation only): {DEMO_CONSULTATION_ID}")


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    try:
        stats = asyncio.run(_run_seed(allow_production=args.allow_production))
    except Exception as exc:
        print(f"Demo seed failed: {exc}")
        return 1
    finally:
        asyncio.run(close_engine())

    _print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
