"""
Club administration endpoints.

Every route needs an ADMIN of the club concerned, or a SUPER_ADMIN.
"""

from fastapi import APIRouter, status

from courtbook.dependencies import CurrentUser, require_club_admin, require_super_admin
from courtbook.models import Booking, BookingView, Club, Court
from courtbook.services.registry import registry

router = APIRouter(prefix="/api/admin", tags=["admin"])


# ── Cancellation decisions ────────────────────────────────────────────────


@router.post(
    "/bookings/{booking_id}/approve-cancellation",
    response_model=Booking,
    operation_id="approveCancellation",
    summary="Approve a pending cancellation",
)
async def approve_cancellation(booking_id: str, current_user: CurrentUser) -> Booking:
    booking = await registry.booking_engine.get_booking(booking_id)
    require_club_admin(current_user, booking.club_id)
    return await registry.cancellations.approve_cancellation(booking_id)


@router.post(
    "/bookings/{booking_id}/reject-cancellation",
    response_model=Booking,
    operation_id="rejectCancellation",
    summary="Reject a pending cancellation; the booking stays confirmed",
)
async def reject_cancellation(booking_id: str, current_user: CurrentUser) -> Booking:
    booking = await registry.booking_engine.get_booking(booking_id)
    require_club_admin(current_user, booking.club_id)
    return await registry.cancellations.reject_cancellation(booking_id)


@router.get(
    "/clubs/{club_id}/bookings",
    response_model=list[BookingView],
    operation_id="listClubBookings",
    summary="Every booking of a club, in chronological order",
)
async def list_club_bookings(club_id: str, current_user: CurrentUser) -> list[BookingView]:
    require_club_admin(current_user, club_id)
    return await registry.booking_engine.list_club_bookings(club_id)


# ── Catalog ───────────────────────────────────────────────────────────────


@router.put(
    "/clubs",
    response_model=Club,
    operation_id="upsertClub",
    summary="Create or replace a club",
)
async def upsert_club(body: Club, current_user: CurrentUser) -> Club:
    require_super_admin(current_user)
    return await registry.catalog.upsert_club(body)


@router.delete(
    "/clubs/{club_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    operation_id="deleteClub",
    summary="Delete a club, its courts, and cancel their future bookings",
)
async def delete_club(club_id: str, current_user: CurrentUser) -> None:
    require_club_admin(current_user, club_id)
    await registry.catalog.delete_club(club_id)
    registry.scanner.unwatch_club(club_id)


@router.put(
    "/courts",
    response_model=Court,
    operation_id="upsertCourt",
    summary="Create or replace a court",
)
async def upsert_court(body: Court, current_user: CurrentUser) -> Court:
    require_club_admin(current_user, body.club_id)
    return await registry.catalog.upsert_court(body)


@router.delete(
    "/courts/{court_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    operation_id="deleteCourt",
    summary="Delete a court and cancel its future bookings",
)
async def delete_court(court_id: str, current_user: CurrentUser) -> None:
    court = await registry.catalog.get_court(court_id)
    require_club_admin(current_user, court.club_id)
    await registry.catalog.delete_court(court_id)
