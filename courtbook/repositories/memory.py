"""
In-process repositories.

Dict-backed stores guarded by asyncio locks: one lock per court for the
overlap check-and-insert, one per booking for status and forum
mutations. Models are copied on the way in and out so callers never
share state with the store.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Collection
from datetime import date
from zoneinfo import ZoneInfo

from courtbook.errors import ConflictError, InvalidStateError, NotFoundError
from courtbook.models import ACTIVE_STATUSES, Booking, BookingStatus, Club, Court
from courtbook.repositories.base import ForumMutation, day_bounds

_FORUM_FIELDS = ("players_needed", "skill_level", "joined_player_ids", "pending_player_ids")


class InMemoryClubRepo:
    def __init__(self) -> None:
        self._clubs: dict[str, Club] = {}

    async def get(self, club_id: str) -> Club | None:
        club = self._clubs.get(club_id)
        return club.model_copy(deep=True) if club else None

    async def list_by_ids(self, club_ids: Collection[str]) -> list[Club]:
        wanted = set(club_ids)
        return [c.model_copy(deep=True) for c in self._clubs.values() if c.id in wanted]

    async def list_all(self) -> list[Club]:
        return [c.model_copy(deep=True) for c in self._clubs.values()]

    async def upsert(self, club: Club) -> Club:
        self._clubs[club.id] = club.model_copy(deep=True)
        return club.model_copy(deep=True)

    async def add_sport(self, club_id: str, sport: str) -> Club:
        club = self._clubs.get(club_id)
        if club is None:
            raise NotFoundError(f"Club {club_id} not found")
        if sport not in club.sports:
            club.sports.append(sport)
        return club.model_copy(deep=True)

    async def delete(self, club_id: str) -> bool:
        return self._clubs.pop(club_id, None) is not None


class InMemoryCourtRepo:
    def __init__(self) -> None:
        self._courts: dict[str, Court] = {}

    async def list_by_club(self, club_id: str) -> list[Court]:
        return [c.model_copy(deep=True) for c in self._courts.values() if c.club_id == club_id]

    async def get(self, court_id: str) -> Court | None:
        court = self._courts.get(court_id)
        return court.model_copy(deep=True) if court else None

    async def upsert(self, court: Court) -> Court:
        self._courts[court.id] = court.model_copy(deep=True)
        return court.model_copy(deep=True)

    async def delete(self, court_id: str) -> bool:
        return self._courts.pop(court_id, None) is not None


class InMemoryBookingRepo:
    def __init__(self) -> None:
        self._bookings: dict[str, Booking] = {}
        self._court_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._booking_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def _booking_lock(self, booking_id: str) -> asyncio.Lock:
        # Bookings are never removed, so a known id keeps its lock for good.
        if booking_id not in self._bookings:
            raise NotFoundError(f"Booking {booking_id} not found")
        return self._booking_locks[booking_id]

    def _select(self, predicate) -> list[Booking]:
        return [b.model_copy(deep=True) for b in self._bookings.values() if predicate(b)]

    # ── Read ───────────────────────────────────────────────────────────

    async def list_by_court_and_date(
        self, court_id: str, day: date, zone: ZoneInfo
    ) -> list[Booking]:
        start, end = day_bounds(day, zone)
        return self._select(
            lambda b: b.court_id == court_id and start <= b.start_time < end
        )

    async def list_by_court(self, court_id: str) -> list[Booking]:
        return self._select(lambda b: b.court_id == court_id)

    async def list_by_club(self, club_id: str) -> list[Booking]:
        return self._select(lambda b: b.club_id == club_id)

    async def list_by_user(self, user_id: str) -> list[Booking]:
        return self._select(lambda b: b.user_id == user_id)

    async def get(self, booking_id: str) -> Booking | None:
        booking = self._bookings.get(booking_id)
        return booking.model_copy(deep=True) if booking else None

    # ── Write ──────────────────────────────────────────────────────────

    async def insert_if_no_overlap(self, booking: Booking) -> Booking:
        async with self._court_locks[booking.court_id]:
            for existing in self._bookings.values():
                if (
                    existing.court_id == booking.court_id
                    and existing.status in ACTIVE_STATUSES
                    and existing.overlaps(booking.start_time, booking.end_time)
                ):
                    raise ConflictError(
                        "Court is already booked for part of the selected time",
                        details={"conflicting_booking_id": existing.id},
                    )
            self._bookings[booking.id] = booking.model_copy(deep=True)
        return booking.model_copy(deep=True)

    async def update_status(
        self,
        booking_id: str,
        new_status: BookingStatus,
        *,
        expected: Collection[BookingStatus] | None = None,
    ) -> Booking:
        async with self._booking_lock(booking_id):
            booking = self._bookings[booking_id]
            if expected is not None and booking.status not in expected:
                raise InvalidStateError(
                    f"Booking {booking_id} is {booking.status.value}",
                    details={"status": booking.status.value},
                )
            updated = booking.model_copy(update={"status": new_status}, deep=True)
            self._bookings[booking_id] = updated
        return updated.model_copy(deep=True)

    async def update_forum_fields(self, booking_id: str, mutation: ForumMutation) -> Booking:
        async with self._booking_lock(booking_id):
            booking = self._bookings[booking_id]
            result = mutation(booking.model_copy(deep=True))
            updated = booking.model_copy(
                update={field: getattr(result, field) for field in _FORUM_FIELDS},
                deep=True,
            )
            self._bookings[booking_id] = updated
        return updated.model_copy(deep=True)
