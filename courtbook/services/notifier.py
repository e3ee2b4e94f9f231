"""
Notification scanner: polls bookings and emits advisory notifications.

Runs as a background asyncio task on a fixed interval. On each tick it
scans every watched subject:

1.  Watched users: one reminder per booking starting 23-25 hours from
    now, and one notice per (hosted game, requester) pending join request.
2.  Watched clubs: one notice per booking waiting for a cancellation
    decision.

"Already notified" keys are kept in memory only; a restart may repeat a
notification, which is acceptable for advisory messages. A failing
subject is logged and skipped, never propagated to booking operations.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

from courtbook import config
from courtbook.models import (
    Booking,
    BookingStatus,
    Notification,
    NotificationKind,
)
from courtbook.repositories import guard
from courtbook.repositories.base import BookingRepo, ClubRepo, CourtRepo
from courtbook.services import time_grid
from courtbook.services.dedup import SentKeys
from courtbook.services.inbox import NotificationInbox, club_recipient, user_recipient

logger = logging.getLogger(__name__)


class NotificationScanner:
    """
    Periodically scans bookings of watched users and clubs and drops
    notifications into the inbox, at most once per condition and entity.
    """

    def __init__(
        self,
        clubs: ClubRepo,
        courts: CourtRepo,
        bookings: BookingRepo,
        inbox: NotificationInbox,
        *,
        interval: float = config.NOTIFIER_INTERVAL,
        clock: Callable[[], datetime] = time_grid.utcnow,
        dedup_capacity: int = config.NOTIFIER_DEDUP_CAPACITY,
    ) -> None:
        self._clubs = clubs
        self._courts = courts
        self._bookings = bookings
        self._inbox = inbox
        self._interval = interval
        self._clock = clock
        self._reminder_from = timedelta(hours=config.REMINDER_WINDOW_START_HOURS)
        self._reminder_to = timedelta(hours=config.REMINDER_WINDOW_END_HOURS)

        self._watched_users: set[str] = set()
        self._watched_clubs: set[str] = set()
        self._notified_upcoming = SentKeys(dedup_capacity)
        self._notified_join_requests = SentKeys(dedup_capacity)
        self._notified_cancellations = SentKeys(dedup_capacity)
        self._task: asyncio.Task[None] | None = None

    # ── Subjects ───────────────────────────────────────────────────────

    def watch_user(self, user_id: str) -> None:
        self._watched_users.add(user_id)

    def watch_club(self, club_id: str) -> None:
        self._watched_clubs.add(club_id)

    def unwatch_club(self, club_id: str) -> None:
        self._watched_clubs.discard(club_id)

    # ── Lifecycle ──────────────────────────────────────────────────────

    async def start(self) -> None:
        """Start the background loop."""
        self._task = asyncio.create_task(self._loop(), name="notification-scanner")
        logger.info("Notification scanner started (every %ds)", self._interval)

    async def stop(self) -> None:
        """Cancel the background loop."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Notification scanner stopped")

    # ── Background loop ───────────────────────────────────────────────

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.scan_all()
            except Exception:
                logger.exception("Notification scan failed, will retry")

    async def scan_all(self) -> list[Notification]:
        """One scanning cycle over every watched user and club."""
        emitted: list[Notification] = []
        for user_id in sorted(self._watched_users):
            try:
                emitted += await self.scan_user(user_id)
            except Exception:
                logger.exception("Scanning notifications for user %s failed", user_id)
        for club_id in sorted(self._watched_clubs):
            try:
                emitted += await self.scan_club(club_id)
            except Exception:
                logger.exception("Scanning notifications for club %s failed", club_id)
        if emitted:
            logger.info("Emitted %d notifications", len(emitted))
        return emitted

    # ── Scans ──────────────────────────────────────────────────────────

    async def scan_user(self, user_id: str) -> list[Notification]:
        """Reminders and join requests for one player."""
        now = self._clock()
        bookings = await guard.read(
            lambda: self._bookings.list_by_user(user_id), what="list bookings"
        )
        recipient = user_recipient(user_id)
        emitted: list[Notification] = []

        for booking in bookings:
            if booking.status == BookingStatus.CANCELLED:
                continue
            until_start = booking.start_time - now
            if self._reminder_from <= until_start < self._reminder_to:
                if booking.id not in self._notified_upcoming:
                    emitted.append(
                        self._emit(
                            NotificationKind.UPCOMING_REMINDER,
                            recipient,
                            booking,
                            await self._reminder_text(booking),
                        )
                    )
                    self._notified_upcoming.add(booking.id)

        for booking in bookings:
            if not (
                booking.status == BookingStatus.CONFIRMED
                and booking.user_id == user_id
                and booking.is_published
            ):
                continue
            for requester_id in booking.pending_player_ids:
                key = (booking.id, requester_id)
                if key in self._notified_join_requests:
                    continue
                emitted.append(
                    self._emit(
                        NotificationKind.JOIN_REQUEST,
                        recipient,
                        booking,
                        await self._join_text(booking, requester_id),
                        requester_id=requester_id,
                    )
                )
                self._notified_join_requests.add(key)
        return emitted

    async def scan_club(self, club_id: str) -> list[Notification]:
        """Pending cancellation notices for a club's admins."""
        bookings = await guard.read(
            lambda: self._bookings.list_by_club(club_id), what="list bookings"
        )
        recipient = club_recipient(club_id)
        emitted: list[Notification] = []
        for booking in bookings:
            if booking.status != BookingStatus.PENDING_CANCELLATION:
                continue
            if booking.id in self._notified_cancellations:
                continue
            emitted.append(
                self._emit(
                    NotificationKind.PENDING_CANCELLATION,
                    recipient,
                    booking,
                    f"User {booking.user_id} asked to cancel a booking starting within "
                    f"{config.CANCELLATION_NOTICE_HOURS:g} hours.",
                )
            )
            self._notified_cancellations.add(booking.id)
        return emitted

    # ── Helpers ────────────────────────────────────────────────────────

    def _emit(
        self,
        kind: NotificationKind,
        recipient: str,
        booking: Booking,
        message: str,
        *,
        requester_id: str | None = None,
    ) -> Notification:
        notification = Notification(
            id=str(uuid4()),
            kind=kind,
            recipient=recipient,
            booking_id=booking.id,
            requester_id=requester_id,
            message=message,
            created_at=self._clock(),
        )
        self._inbox.deliver(notification)
        return notification

    async def _reminder_text(self, booking: Booking) -> str:
        club = await guard.read(lambda: self._clubs.get(booking.club_id), what="get club")
        zone = time_grid.club_zone(club.timezone if club else None)
        start = time_grid.format_time(booking.start_time.astimezone(zone).time())
        where = club.name if club else "your club"
        return f"You have a booking at {where} tomorrow at {start}."

    async def _join_text(self, booking: Booking, requester_id: str) -> str:
        court = await guard.read(lambda: self._courts.get(booking.court_id), what="get court")
        sport = court.sport if court else "your"
        return f"User {requester_id} wants to join your {sport} game."

    def get_stats(self) -> dict[str, Any]:
        return {
            "watched_users": len(self._watched_users),
            "watched_clubs": len(self._watched_clubs),
            "upcoming": self._notified_upcoming.get_stats(),
            "join_requests": self._notified_join_requests.get_stats(),
            "cancellations": self._notified_cancellations.get_stats(),
        }
