"""
Booking engine.

Turns a selection of contiguous half-hour slots on one court into a
CONFIRMED booking. Input is validated before the repository is touched;
the overlap check itself happens inside ``insert_if_no_overlap`` at
write time, which is the only thing that prevents double booking.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection
from datetime import date, datetime
from uuid import uuid4

from courtbook.errors import NotFoundError, ValidationError
from courtbook.models import Booking, BookingStatus, BookingView, Club, Court
from courtbook.repositories import guard
from courtbook.repositories.base import BookingRepo, ClubRepo, CourtRepo
from courtbook.services import pricing, time_grid

logger = logging.getLogger(__name__)


def normalize_selection(slot_times: Collection[str]) -> list[str]:
    """
    Return the selection sorted and de-duplicated, or raise ValidationError
    if it is empty, malformed or not contiguous.
    """
    if not slot_times:
        raise ValidationError("Select at least one slot")

    ordered = sorted({time_grid.format_time(time_grid.parse_time(t)) for t in slot_times})
    if not time_grid.is_contiguous(ordered):
        raise ValidationError("Slots must be contiguous", details={"slots": ordered})
    return ordered


def ensure_on_grid(court: Court, ordered: list[str]) -> None:
    grid = set(time_grid.slots(court.opening_time, court.closing_time))
    outside = [t for t in ordered if t not in grid]
    if outside:
        raise ValidationError(
            f"Slots outside the court's operating hours: {', '.join(outside)}",
            details={"slots": outside},
        )


class BookingEngine:
    def __init__(
        self,
        clubs: ClubRepo,
        courts: CourtRepo,
        bookings: BookingRepo,
        *,
        clock: Callable[[], datetime] = time_grid.utcnow,
    ) -> None:
        self._clubs = clubs
        self._courts = courts
        self._bookings = bookings
        self._clock = clock

    async def _get_court(self, court_id: str) -> Court:
        court = await guard.read(lambda: self._courts.get(court_id), what="get court")
        if court is None:
            raise NotFoundError(f"Court {court_id} not found")
        return court

    async def _get_club(self, club_id: str) -> Club:
        club = await guard.read(lambda: self._clubs.get(club_id), what="get club")
        if club is None:
            raise NotFoundError(f"Club {club_id} not found")
        return club

    async def create_booking(
        self,
        user_id: str,
        court_id: str,
        slot_times: Collection[str],
        day: date,
    ) -> Booking:
        """
        Book *slot_times* of *court_id* on *day* for *user_id*.

        The total price is the sum of the slot prices right now and is
        never recomputed. Raises ConflictError when another booking took
        part of the range after the caller read availability.
        """
        ordered = normalize_selection(slot_times)

        court = await self._get_court(court_id)
        club = await self._get_club(court.club_id)
        ensure_on_grid(court, ordered)

        zone = time_grid.club_zone(club.timezone)
        start_time = time_grid.slot_start(day, ordered[0], zone)
        _, end_time = time_grid.slot_interval(day, ordered[-1], zone)

        now = self._clock()
        if start_time < now:
            raise ValidationError("Cannot book slots that have already started")

        booking = Booking(
            id=str(uuid4()),
            user_id=user_id,
            court_id=court.id,
            club_id=court.club_id,
            start_time=start_time,
            end_time=end_time,
            total_price=pricing.total_price(court, ordered),
            status=BookingStatus.CONFIRMED,
            created_at=now,
        )
        created = await guard.write(
            lambda: self._bookings.insert_if_no_overlap(booking), what="insert booking"
        )
        logger.info(
            "Booking %s created: court %s, %s-%s, %s slots, total %.2f",
            created.id, court.id, ordered[0], time_grid.format_time(end_time.astimezone(zone).time()),
            len(ordered), created.total_price,
        )
        return created

    async def get_booking(self, booking_id: str) -> Booking:
        booking = await guard.read(lambda: self._bookings.get(booking_id), what="get booking")
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        return booking

    # ── Read-side projections ─────────────────────────────────────────

    async def list_user_bookings(self, user_id: str) -> list[BookingView]:
        """A player's bookings, newest first."""
        bookings = await guard.read(lambda: self._bookings.list_by_user(user_id), what="list bookings")
        views = await self.enrich(bookings)
        return sorted(views, key=lambda b: b.start_time, reverse=True)

    async def list_club_bookings(self, club_id: str) -> list[BookingView]:
        """Every booking of a club in chronological order."""
        await self._get_club(club_id)
        bookings = await guard.read(lambda: self._bookings.list_by_club(club_id), what="list bookings")
        views = await self.enrich(bookings)
        return sorted(views, key=lambda b: b.start_time)

    async def enrich(self, bookings: list[Booking]) -> list[BookingView]:
        """Join bookings with court and club names. Deleted courts keep their id as name."""
        clubs: dict[str, Club | None] = {}
        courts: dict[str, Court | None] = {}
        views: list[BookingView] = []
        for booking in bookings:
            if booking.club_id not in clubs:
                clubs[booking.club_id] = await guard.read(
                    lambda: self._clubs.get(booking.club_id), what="get club"
                )
            if booking.court_id not in courts:
                courts[booking.court_id] = await guard.read(
                    lambda: self._courts.get(booking.court_id), what="get court"
                )
            club = clubs[booking.club_id]
            court = courts[booking.court_id]
            views.append(
                BookingView(
                    **booking.model_dump(),
                    court_name=court.name if court else booking.court_id,
                    sport=court.sport if court else "",
                    club_name=club.name if club else booking.club_id,
                )
            )
        return views
