"""
Forum match engine.

A CONFIRMED future booking can be published as an open game asking for
extra players. Players ask to join, the owner accepts or rejects them.
Each operation is a mutation applied by the booking repository
atomically per booking, so the capacity check and the write it guards
can't interleave with another request for the same game.

Capacity at request time counts accepted *and* pending players: with
one place left, two simultaneous requests yield one pending request and
one "game full" rejection.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime

from courtbook.errors import (
    ConflictError,
    InvalidStateError,
    PermissionDeniedError,
    ValidationError,
)
from courtbook.models import Booking, BookingStatus, Club, Court, ForumGame
from courtbook.repositories import guard
from courtbook.repositories.base import BookingRepo, ClubRepo, CourtRepo
from courtbook.services import time_grid

logger = logging.getLogger(__name__)

MIN_SKILL_LEVEL = 1
MAX_SKILL_LEVEL = 5


class ForumMatchEngine:
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

    # ── Guards (run inside the repository's atomic step) ──────────────

    def _ensure_open(self, booking: Booking) -> None:
        if booking.status != BookingStatus.CONFIRMED:
            raise InvalidStateError(
                f"Booking {booking.id} is {booking.status.value}",
                details={"status": booking.status.value},
            )
        if booking.start_time <= self._clock():
            raise InvalidStateError(f"Booking {booking.id} has already started")

    def _ensure_published(self, booking: Booking) -> None:
        self._ensure_open(booking)
        if not booking.is_published:
            raise InvalidStateError(f"Booking {booking.id} is not published on the forum")

    @staticmethod
    def _ensure_owner(booking: Booking, actor_id: str) -> None:
        if booking.user_id != actor_id:
            raise PermissionDeniedError("Only the booking owner can manage its forum post")

    async def _mutate(self, booking_id: str, mutation: Callable[[Booking], Booking]) -> Booking:
        return await guard.write(
            lambda: self._bookings.update_forum_fields(booking_id, mutation),
            what="update forum fields",
        )

    # ── Owner actions ──────────────────────────────────────────────────

    async def publish(
        self,
        booking_id: str,
        actor_id: str,
        players_needed: int,
        skill_level: int,
    ) -> Booking:
        """Open the booking to other players. Clears any earlier requests."""
        if players_needed < 1:
            raise ValidationError("players_needed must be at least 1")
        if not MIN_SKILL_LEVEL <= skill_level <= MAX_SKILL_LEVEL:
            raise ValidationError(
                f"skill_level must be between {MIN_SKILL_LEVEL} and {MAX_SKILL_LEVEL}"
            )

        def mutation(booking: Booking) -> Booking:
            self._ensure_owner(booking, actor_id)
            self._ensure_open(booking)
            booking.players_needed = players_needed
            booking.skill_level = skill_level
            booking.joined_player_ids = []
            booking.pending_player_ids = []
            return booking

        published = await self._mutate(booking_id, mutation)
        logger.info(
            "Booking %s published: %d players needed, level %d",
            booking_id, players_needed, skill_level,
        )
        return published

    async def accept_join(self, booking_id: str, actor_id: str, user_id: str) -> Booking:
        def mutation(booking: Booking) -> Booking:
            self._ensure_owner(booking, actor_id)
            self._ensure_published(booking)
            if user_id not in booking.pending_player_ids:
                raise InvalidStateError(f"User {user_id} has no pending request")
            if len(booking.joined_player_ids) >= booking.players_needed:
                raise ConflictError("Game is full")
            booking.pending_player_ids = [p for p in booking.pending_player_ids if p != user_id]
            booking.joined_player_ids = [*booking.joined_player_ids, user_id]
            return booking

        updated = await self._mutate(booking_id, mutation)
        logger.info("User %s joined game %s (%d open)", user_id, booking_id, updated.open_slots)
        return updated

    async def reject_join(self, booking_id: str, actor_id: str, user_id: str) -> Booking:
        def mutation(booking: Booking) -> Booking:
            self._ensure_owner(booking, actor_id)
            self._ensure_published(booking)
            if user_id not in booking.pending_player_ids:
                raise InvalidStateError(f"User {user_id} has no pending request")
            booking.pending_player_ids = [p for p in booking.pending_player_ids if p != user_id]
            return booking

        updated = await self._mutate(booking_id, mutation)
        logger.info("Join request of user %s for game %s rejected", user_id, booking_id)
        return updated

    # ── Player actions ─────────────────────────────────────────────────

    async def request_to_join(self, booking_id: str, user_id: str) -> Booking:
        """
        Ask to join a published game.

        Raises ValidationError for the owner, InvalidStateError when the
        user already joined or asked, ConflictError when the game is full.

        A game counts as full once joined plus pending players reach
        ``players_needed``: a pending request holds its place until the
        owner accepts or rejects it, so two requests racing for the last
        place can't both be accepted later.
        """

        def mutation(booking: Booking) -> Booking:
            self._ensure_published(booking)
            if booking.user_id == user_id:
                raise ValidationError("You can't join your own game")
            if user_id in booking.joined_player_ids:
                raise InvalidStateError("Already joined this game")
            if user_id in booking.pending_player_ids:
                raise InvalidStateError("Join request already sent")
            taken = len(booking.joined_player_ids) + len(booking.pending_player_ids)
            if taken >= booking.players_needed:
                raise ConflictError("Game is full")
            booking.pending_player_ids = [*booking.pending_player_ids, user_id]
            return booking

        updated = await self._mutate(booking_id, mutation)
        logger.info("User %s asked to join game %s", user_id, booking_id)
        return updated

    # ── Listing ────────────────────────────────────────────────────────

    async def list_open_games(
        self,
        sport: str | None = None,
        day: date | None = None,
        skill_level: int | None = None,
    ) -> list[ForumGame]:
        """
        Published CONFIRMED games that haven't started.

        Unfiltered listings are grouped by sport name then time; any
        filter switches to plain chronological order. *day* is matched
        in each club's timezone.
        """
        now = self._clock()
        clubs = await guard.read(self._clubs.list_all, what="list clubs")

        games: list[ForumGame] = []
        for club in clubs:
            zone = time_grid.club_zone(club.timezone)
            courts = {
                c.id: c
                for c in await guard.read(
                    lambda: self._courts.list_by_club(club.id), what="list courts"
                )
            }
            bookings = await guard.read(
                lambda: self._bookings.list_by_club(club.id), what="list bookings"
            )
            for booking in bookings:
                if not (
                    booking.status == BookingStatus.CONFIRMED
                    and booking.is_published
                    and booking.start_time > now
                ):
                    continue
                court = courts.get(booking.court_id)
                if court is None:
                    continue
                if sport and court.sport != sport:
                    continue
                if day and time_grid.local_date(booking.start_time, zone) != day:
                    continue
                if skill_level and booking.skill_level != skill_level:
                    continue
                games.append(_to_game(booking, court, club))

        if sport or day or skill_level:
            games.sort(key=lambda g: g.start_time)
        else:
            games.sort(key=lambda g: (g.sport, g.start_time))
        return games


def _to_game(booking: Booking, court: Court, club: Club) -> ForumGame:
    return ForumGame(
        **booking.model_dump(),
        court_name=court.name,
        sport=court.sport,
        club_name=club.name,
        open_slots_count=booking.open_slots,
    )
