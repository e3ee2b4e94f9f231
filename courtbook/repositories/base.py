"""
Repository interfaces consumed by the engine.

Every storage backend implements these protocols so the services are
decoupled from how clubs, courts and bookings are persisted. All
methods return detached copies: mutating a returned model never
changes stored state.
"""

from __future__ import annotations

from collections.abc import Callable, Collection
from datetime import date, datetime, timedelta
from typing import Protocol
from zoneinfo import ZoneInfo

from courtbook.models import Booking, BookingStatus, Club, Court
from courtbook.services.time_grid import slot_start

# Receives a copy of the stored booking and returns the updated copy.
# Raising aborts the update and leaves the stored booking untouched.
ForumMutation = Callable[[Booking], Booking]


class ClubRepo(Protocol):
    async def get(self, club_id: str) -> Club | None:
        ...

    async def list_by_ids(self, club_ids: Collection[str]) -> list[Club]:
        ...

    async def list_all(self) -> list[Club]:
        ...

    async def upsert(self, club: Club) -> Club:
        ...

    async def add_sport(self, club_id: str, sport: str) -> Club:
        """Add *sport* to the club's sports if missing, as one atomic step."""
        ...

    async def delete(self, club_id: str) -> bool:
        ...


class CourtRepo(Protocol):
    async def list_by_club(self, club_id: str) -> list[Court]:
        ...

    async def get(self, court_id: str) -> Court | None:
        ...

    async def upsert(self, court: Court) -> Court:
        ...

    async def delete(self, court_id: str) -> bool:
        ...


class BookingRepo(Protocol):
    async def list_by_court_and_date(
        self, court_id: str, day: date, zone: ZoneInfo
    ) -> list[Booking]:
        """Bookings of a court whose start falls on *day* in *zone*, any status."""
        ...

    async def list_by_court(self, court_id: str) -> list[Booking]:
        ...

    async def list_by_club(self, club_id: str) -> list[Booking]:
        ...

    async def list_by_user(self, user_id: str) -> list[Booking]:
        ...

    async def get(self, booking_id: str) -> Booking | None:
        ...

    async def insert_if_no_overlap(self, booking: Booking) -> Booking:
        """
        Insert *booking* unless a non-cancelled booking of the same court
        overlaps its [start_time, end_time). Check and insert are one
        atomic step. Raises ConflictError on overlap.
        """
        ...

    async def update_status(
        self,
        booking_id: str,
        new_status: BookingStatus,
        *,
        expected: Collection[BookingStatus] | None = None,
    ) -> Booking:
        """
        Set the status atomically. When *expected* is given the current
        status must be one of them, else InvalidStateError. Raises
        NotFoundError for unknown ids.
        """
        ...

    async def update_forum_fields(self, booking_id: str, mutation: ForumMutation) -> Booking:
        """
        Apply *mutation* atomically per booking and persist only the forum
        fields of its result. Raises NotFoundError for unknown ids.
        """
        ...


def day_bounds(day: date, zone: ZoneInfo) -> tuple[datetime, datetime]:
    """[start, end) instants of a local calendar day."""
    start = slot_start(day, "00:00", zone)
    end = slot_start(day + timedelta(days=1), "00:00", zone)
    return start, end
