"""
Booking endpoints (authenticated).
"""

from fastapi import APIRouter, Request, status

from courtbook.dependencies import CurrentUser
from courtbook.models import Booking, BookingCreate, BookingView, CancellationResult
from courtbook.rate_limit import WRITE, limiter
from courtbook.services.registry import registry

router = APIRouter(prefix="/api/bookings", tags=["bookings"])


@router.post(
    "",
    response_model=Booking,
    status_code=status.HTTP_201_CREATED,
    operation_id="createBooking",
    summary="Book contiguous slots of one court",
)
@limiter.limit(WRITE)
async def create_booking(request: Request, body: BookingCreate, current_user: CurrentUser) -> Booking:
    return await registry.booking_engine.create_booking(
        current_user.id, body.court_id, body.slots, body.day
    )


@router.get(
    "",
    response_model=list[BookingView],
    operation_id="listMyBookings",
    summary="List the authenticated user's bookings, newest first",
)
async def list_my_bookings(current_user: CurrentUser) -> list[BookingView]:
    return await registry.booking_engine.list_user_bookings(current_user.id)


@router.post(
    "/{booking_id}/cancel",
    response_model=CancellationResult,
    operation_id="cancelBooking",
    summary="Cancel a booking, or ask the club to when it starts soon",
)
@limiter.limit(WRITE)
async def cancel_booking(request: Request, booking_id: str, current_user: CurrentUser) -> CancellationResult:
    return await registry.cancellations.request_cancellation(booking_id, current_user.id)
