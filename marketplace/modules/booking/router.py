"""Booking API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from marketplace.modules.booking.schemas import (
    BookingCancelRequest,
    BookingCreateRequest,
    BookingFulfillRequest,
    BookingRead,
    BookingRescheduleRequest,
)
from marketplace.modules.booking.service import BookingService, get_booking_service

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreateRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingRead:
    """Book a slot of an offer or service."""
    booking = await service.create_booking(payload)
    return BookingRead.model_validate(booking)


@router.get("/{booking_id}", response_model=BookingRead)
async def get_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
) -> BookingRead:
    booking = await service.get_booking(booking_id)
    return BookingRead.model_validate(booking)


@router.post("/{booking_id}/confirm", response_model=BookingRead)
async def confirm_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
) -> BookingRead:
    """Confirm pending booking."""
    booking = await service.confirm_booking(booking_id)
    return BookingRead.model_validate(booking)


@router.post("/{booking_id}/start", response_model=BookingRead)
async def start_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
) -> BookingRead:
    booking = await service.start_booking(booking_id)
    return BookingRead.model_validate(booking)


@router.post("/{booking_id}/complete", response_model=BookingRead)
async def complete_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
) -> BookingRead:
    booking = await service.complete_booking(booking_id)
    return BookingRead.model_validate(booking)


@router.post("/{booking_id}/no-show", response_model=BookingRead)
async def mark_no_show(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
) -> BookingRead:
    """Mark confirmed booking as no-show."""
    booking = await service.mark_no_show(booking_id)
    return BookingRead.model_validate(booking)


@router.post("/{booking_id}/cancel", response_model=BookingRead)
async def cancel_booking(
    booking_id: UUID,
    payload: BookingCancelRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingRead:
    """Cancel upcoming booking."""
    booking = await service.cancel_booking(booking_id, payload.reason)
    return BookingRead.model_validate(booking)


@router.post("/{booking_id}/reschedule", response_model=BookingRead)
async def reschedule_booking(
    booking_id: UUID,
    payload: BookingRescheduleRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingRead:
    """Move booking to another free slot."""
    booking = await service.reschedule_booking(booking_id, payload.start_time, payload.staff_id, payload.reason)
    return BookingRead.model_validate(booking)


@router.post("/{booking_id}/fulfill", response_model=BookingRead)
async def fulfill_booking(
    booking_id: UUID,
    payload: BookingFulfillRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingRead:
    """Fulfill booking with the customer's verification code."""
    booking = await service.fulfill_booking(booking_id, payload.verification_code)
    return BookingRead.model_validate(booking)
