"""
Availability calculator.

Builds the bookable grid for every court of a club that offers a sport
on a given day: the court's half-hour grid, minus anything overlapping a
non-cancelled booking, minus slots that already started when the day is
today. Read-only, so results can be stale relative to concurrent
bookings; booking creation re-checks overlap at write time.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime

from courtbook.errors import NotFoundError
from courtbook.models import (
    ACTIVE_STATUSES,
    Booking,
    Club,
    ClubAvailability,
    Court,
    CourtAvailability,
    TimeSlot,
)
from courtbook.repositories import guard
from courtbook.repositories.base import BookingRepo, ClubRepo, CourtRepo
from courtbook.services import pricing, time_grid

logger = logging.getLogger(__name__)


def build_court_slots(
    court: Court,
    day: date,
    bookings: list[Booking],
    *,
    now: datetime,
    zone,
) -> list[TimeSlot]:
    """Grid of *court* on *day*, given the court's bookings for that day."""
    is_today = time_grid.local_date(now, zone) == day
    busy = [b for b in bookings if b.status in ACTIVE_STATUSES]

    slots: list[TimeSlot] = []
    for slot_time in time_grid.slots(court.opening_time, court.closing_time):
        start, end = time_grid.slot_interval(day, slot_time, zone)
        booked = any(b.overlaps(start, end) for b in busy)
        past = is_today and start < now
        slots.append(
            TimeSlot(
                time=slot_time,
                available=not (booked or past),
                price=pricing.price_for(court, slot_time),
            )
        )
    return slots


class AvailabilityCalculator:
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

    async def availability(self, club_id: str, sport: str, day: date) -> list[CourtAvailability]:
        """Per-court slot grids for the courts of *club_id* playing *sport*."""
        club = await guard.read(lambda: self._clubs.get(club_id), what="get club")
        if club is None:
            raise NotFoundError(f"Club {club_id} not found")
        return await self._club_availability(club, sport, day)

    async def global_availability(self, sport: str, day: date) -> list[ClubAvailability]:
        """Availability across every club offering *sport*, skipping clubs with no courts."""
        clubs = await guard.read(self._clubs.list_all, what="list clubs")
        results: list[ClubAvailability] = []
        for club in clubs:
            if sport not in club.sports:
                continue
            courts = await self._club_availability(club, sport, day)
            if courts:
                results.append(ClubAvailability(club=club, courts=courts))
        return results

    async def _club_availability(self, club: Club, sport: str, day: date) -> list[CourtAvailability]:
        zone = time_grid.club_zone(club.timezone)
        now = self._clock()
        courts = await guard.read(
            lambda: self._courts.list_by_club(club.id), what="list courts"
        )

        result: list[CourtAvailability] = []
        for court in sorted((c for c in courts if c.sport == sport), key=lambda c: c.name):
            day_bookings = await guard.read(
                lambda: self._bookings.list_by_court_and_date(court.id, day, zone),
                what="list bookings",
            )
            result.append(
                CourtAvailability(
                    court=court,
                    slots=build_court_slots(court, day, day_bookings, now=now, zone=zone),
                )
            )
        logger.debug(
            "Availability for club %s, sport %s on %s: %d courts",
            club.id, sport, day, len(result),
        )
        return result
