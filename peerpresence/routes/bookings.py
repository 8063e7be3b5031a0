"""
bookings.py
-----------
Mock checkout for tutoring sessions.

Usage:
    1. POST /api/bookings/confirm - price and store a booking
    2. GET /api/bookings - my bookings, newest first
    3. PATCH /api/bookings/{id} - reschedule (date, time, timezone)
    4. DELETE /api/bookings/{id} - cancel
"""

from fastapi import APIRouter, Depends

from peerpresence.auth.verify import get_current_person_id
from peerpresence.models.api.base import OkResponse
from peerpresence.models.api.booking_request import (
    BookingConfirmRequest,
    BookingRescheduleRequest,
)
from peerpresence.models.api.booking_response import (
    BookingConfirmResponse,
    BookingRescheduleResponse,
    BookingResponse,
)
from peerpresence.services import booking_service

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("", response_model=list[BookingResponse])
async def my_bookings(person_id: str = Depends(get_current_person_id)):
    return [BookingResponse.from_domain(b) for b in await booking_service.list_bookings(person_id)]


@router.post("/confirm", response_model=BookingConfirmResponse)
async def confirm_booking(
    request: BookingConfirmRequest,
    person_id: str = Depends(get_current_person_id),
):
    # CVC is accepted from the form but never passed on
    booking, tutor = await booking_service.confirm_booking(
        person_id, **request.model_dump(exclude={"cvc"})
    )
    return BookingConfirmResponse.from_domain(booking, tutor)


@router.patch("/{booking_id}", response_model=BookingRescheduleResponse)
async def reschedule_booking(
    booking_id: str,
    request: BookingRescheduleRequest,
    person_id: str = Depends(get_current_person_id),
):
    booking = await booking_service.reschedule_booking(
        person_id, booking_id, date=request.date, time=request.time, timezone=request.timezone
    )
    return BookingRescheduleResponse(booking=BookingResponse.from_domain(booking))


@router.delete("/{booking_id}", response_model=OkResponse)
async def cancel_booking(booking_id: str, person_id: str = Depends(get_current_person_id)):
    await booking_service.cancel_booking(person_id, booking_id)
    return OkResponse(message="Booking cancelled. Refund will be processed shortly.")
