"""
Club and court catalog.

Admin-side lifecycle of the entities the engine books against. Removing
a court cancels its future bookings first, so no CONFIRMED booking is
left pointing at a court that no longer exists.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from courtbook.errors import InvalidStateError, NotFoundError, ValidationError
from courtbook.models import BookingStatus, Club, Court
from courtbook.repositories import guard
from courtbook.repositories.base import BookingRepo, ClubRepo, CourtRepo
from courtbook.services import time_grid

logger = logging.getLogger(__name__)


def validate_court(court: Court) -> None:
    """Raise ValidationError unless *court* describes a bookable grid."""
    opening = time_grid.parse_time(court.opening_time)
    closing = time_grid.parse_time(court.closing_time)
    if opening >= closing:
        raise ValidationError(
            "Opening time must be before closing time",
            details={"opening_time": court.opening_time, "closing_time": court.closing_time},
        )

    grid = set(time_grid.slots(court.opening_time, court.closing_time))
    seen: set[str] = set()
    for override in court.slot_prices:
        if override.time in seen:
            raise ValidationError(f"Duplicate price override for {override.time}")
        if override.time not in grid:
            raise ValidationError(
                f"Price override {override.time} is not a slot of this court",
                details={"time": override.time},
            )
        seen.add(override.time)


class CatalogService:
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

    # ── Reads ──────────────────────────────────────────────────────────

    async def list_clubs(self) -> list[Club]:
        clubs = await guard.read(self._clubs.list_all, what="list clubs")
        return sorted(clubs, key=lambda c: c.name)

    async def get_club(self, club_id: str) -> Club:
        club = await guard.read(lambda: self._clubs.get(club_id), what="get club")
        if club is None:
            raise NotFoundError(f"Club {club_id} not found")
        return club

    async def list_courts(self, club_id: str) -> list[Court]:
        await self.get_club(club_id)
        courts = await guard.read(lambda: self._courts.list_by_club(club_id), what="list courts")
        return sorted(courts, key=lambda c: c.name)

    async def get_court(self, court_id: str) -> Court:
        court = await guard.read(lambda: self._courts.get(court_id), what="get court")
        if court is None:
            raise NotFoundError(f"Court {court_id} not found")
        return court

    # ── Writes ─────────────────────────────────────────────────────────

    async def upsert_club(self, club: Club) -> Club:
        time_grid.club_zone(club.timezone)
        return await guard.write(lambda: self._clubs.upsert(club), what="upsert club")

    async def upsert_court(self, court: Court) -> Court:
        """Create or replace *court*; its sport is added to the club's sports."""
        validate_court(court)
        club = await self.get_club(court.club_id)

        existing = await guard.read(lambda: self._courts.get(court.id), what="get court")
        if existing is not None and existing.club_id != court.club_id:
            raise ValidationError("A court can't be moved to another club")

        saved = await guard.write(lambda: self._courts.upsert(court), what="upsert court")
        if court.sport not in club.sports:
            await guard.write(
                lambda: self._clubs.add_sport(club.id, court.sport), what="add club sport"
            )
            logger.info("Club %s now offers %s", club.id, court.sport)

        logger.info("Court %s %s", court.id, "updated" if existing else "created")
        return saved

    async def delete_court(self, court_id: str) -> int:
        """Delete a court, cancelling its future bookings. Returns how many were cancelled."""
        await self.get_court(court_id)

        now = self._clock()
        bookings = await guard.read(
            lambda: self._bookings.list_by_court(court_id), what="list bookings"
        )
        cancelled = 0
        for booking in bookings:
            if booking.status == BookingStatus.CANCELLED or booking.start_time <= now:
                continue
            try:
                await guard.write(
                    lambda: self._bookings.update_status(
                        booking.id,
                        BookingStatus.CANCELLED,
                        expected={BookingStatus.CONFIRMED, BookingStatus.PENDING_CANCELLATION},
                    ),
                    what="update booking status",
                )
            except InvalidStateError:
                # Cancelled concurrently.
                continue
            cancelled += 1

        await guard.write(lambda: self._courts.delete(court_id), what="delete court")
        logger.info("Court %s deleted, %d future bookings cancelled", court_id, cancelled)
        return cancelled

    async def delete_club(self, club_id: str) -> int:
        """Delete a club and all of its courts. Returns the cancelled booking count."""
        await self.get_club(club_id)
        courts = await guard.read(lambda: self._courts.list_by_club(club_id), what="list courts")
        cancelled = 0
        for court in courts:
            cancelled += await self.delete_court(court.id)
        await guard.write(lambda: self._clubs.delete(club_id), what="delete club")
        logger.info("Club %s deleted with %d courts", club_id, len(courts))
        return cancelled
