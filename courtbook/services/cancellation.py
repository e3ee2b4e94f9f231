"""
Cancellation policy.

A player's cancellation is applied straight away when the booking starts
more than CANCELLATION_NOTICE_HOURS from now; otherwise it waits for a
club admin. Bookings that already started follow the late path too.
Every transition is a compare-and-set on the booking's status.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from courtbook import config
from courtbook.errors import NotFoundError, PermissionDeniedError
from courtbook.models import Booking, BookingStatus, CancellationResult
from courtbook.repositories import guard
from courtbook.repositories.base import BookingRepo
from courtbook.services import time_grid

logger = logging.getLogger(__name__)

MESSAGE_CANCELLED = "Booking cancelled"
MESSAGE_PENDING = "Cancellation pending admin approval"


class CancellationPolicy:
    def __init__(
        self,
        bookings: BookingRepo,
        *,
        clock: Callable[[], datetime] = time_grid.utcnow,
        notice_hours: float | None = None,
    ) -> None:
        self._bookings = bookings
        self._clock = clock
        self._notice = timedelta(
            hours=config.CANCELLATION_NOTICE_HOURS if notice_hours is None else notice_hours
        )

    async def _get(self, booking_id: str) -> Booking:
        booking = await guard.read(lambda: self._bookings.get(booking_id), what="get booking")
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        return booking

    def decide(self, booking: Booking) -> BookingStatus:
        """Status a cancellation request moves *booking* to."""
        if booking.start_time - self._clock() > self._notice:
            return BookingStatus.CANCELLED
        return BookingStatus.PENDING_CANCELLATION

    async def request_cancellation(
        self, booking_id: str, actor_id: str | None = None
    ) -> CancellationResult:
        """
        Cancel or ask to cancel a CONFIRMED booking.

        Raises InvalidStateError if the booking is already cancelled or
        awaiting a decision, PermissionDeniedError if *actor_id* is given
        and isn't the owner.
        """
        booking = await self._get(booking_id)
        if actor_id is not None and booking.user_id != actor_id:
            raise PermissionDeniedError("Only the booking owner can cancel it")

        target = self.decide(booking)
        await guard.write(
            lambda: self._bookings.update_status(
                booking_id, target, expected={BookingStatus.CONFIRMED}
            ),
            what="update booking status",
        )
        message = MESSAGE_CANCELLED if target == BookingStatus.CANCELLED else MESSAGE_PENDING
        logger.info("Cancellation of booking %s: %s", booking_id, target.value)
        return CancellationResult(status=target, message=message)

    async def approve_cancellation(self, booking_id: str) -> Booking:
        booking = await guard.write(
            lambda: self._bookings.update_status(
                booking_id,
                BookingStatus.CANCELLED,
                expected={BookingStatus.PENDING_CANCELLATION},
            ),
            what="update booking status",
        )
        logger.info("Cancellation of booking %s approved", booking_id)
        return booking

    async def reject_cancellation(self, booking_id: str) -> Booking:
        booking = await guard.write(
            lambda: self._bookings.update_status(
                booking_id,
                BookingStatus.CONFIRMED,
                expected={BookingStatus.PENDING_CANCELLATION},
            ),
            what="update booking status",
        )
        logger.info("Cancellation of booking %s rejected, booking stays confirmed", booking_id)
        return booking
