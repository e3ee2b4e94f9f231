"""Tests for the cancellation policy."""

from datetime import timedelta

import pytest

from courtbook.errors import InvalidStateError, NotFoundError, PermissionDeniedError
from courtbook.models import BookingStatus
from courtbook.services.cancellation import MESSAGE_CANCELLED, MESSAGE_PENDING
from tests.mocks.models import MOCK_PLAYER, MOCK_PLAYER_2, NOW, make_booking


async def _insert(engine, hours_ahead: float, **overrides):
    start = NOW + timedelta(hours=hours_ahead)
    booking = make_booking(start_time=start, end_time=start + timedelta(hours=1), **overrides)
    return await engine.bookings.insert_if_no_overlap(booking)


class TestRequestCancellation:
    async def test_far_ahead_cancels_immediately(self, engine):
        await _insert(engine, 30)
        result = await engine.cancellations.request_cancellation("booking-1")
        assert result.status == BookingStatus.CANCELLED
        assert result.message == MESSAGE_CANCELLED
        assert (await engine.bookings.get("booking-1")).status == BookingStatus.CANCELLED

    async def test_close_start_needs_approval(self, engine):
        await _insert(engine, 10)
        result = await engine.cancellations.request_cancellation("booking-1")
        assert result.status == BookingStatus.PENDING_CANCELLATION
        assert result.message == MESSAGE_PENDING

    async def test_exactly_at_notice_boundary_is_late(self, engine):
        await _insert(engine, 24)
        result = await engine.cancellations.request_cancellation("booking-1")
        assert result.status == BookingStatus.PENDING_CANCELLATION

    async def test_started_booking_goes_pending(self, engine):
        await _insert(engine, -1)
        result = await engine.cancellations.request_cancellation("booking-1")
        assert result.status == BookingStatus.PENDING_CANCELLATION

    async def test_already_cancelled(self, engine):
        await _insert(engine, 30, status=BookingStatus.CANCELLED)
        with pytest.raises(InvalidStateError):
            await engine.cancellations.request_cancellation("booking-1")

    async def test_already_pending(self, engine):
        await _insert(engine, 10, status=BookingStatus.PENDING_CANCELLATION)
        with pytest.raises(InvalidStateError):
            await engine.cancellations.request_cancellation("booking-1")

    async def test_only_owner(self, engine):
        await _insert(engine, 30)
        with pytest.raises(PermissionDeniedError):
            await engine.cancellations.request_cancellation("booking-1", MOCK_PLAYER_2.id)
        result = await engine.cancellations.request_cancellation("booking-1", MOCK_PLAYER.id)
        assert result.status == BookingStatus.CANCELLED

    async def test_unknown_booking(self, engine):
        with pytest.raises(NotFoundError):
            await engine.cancellations.request_cancellation("missing")


class TestAdminDecision:
    async def test_approve(self, engine):
        await _insert(engine, 10, status=BookingStatus.PENDING_CANCELLATION)
        booking = await engine.cancellations.approve_cancellation("booking-1")
        assert booking.status == BookingStatus.CANCELLED

    async def test_reject_restores_confirmed(self, engine):
        await _insert(engine, 10, status=BookingStatus.PENDING_CANCELLATION)
        booking = await engine.cancellations.reject_cancellation("booking-1")
        assert booking.status == BookingStatus.CONFIRMED

    async def test_approve_requires_pending(self, engine):
        await _insert(engine, 10)
        with pytest.raises(InvalidStateError):
            await engine.cancellations.approve_cancellation("booking-1")

    async def test_reject_requires_pending(self, engine):
        await _insert(engine, 10, status=BookingStatus.CANCELLED)
        with pytest.raises(InvalidStateError):
            await engine.cancellations.reject_cancellation("booking-1")

    async def test_second_approval_fails(self, engine):
        await _insert(engine, 10, status=BookingStatus.PENDING_CANCELLATION)
        await engine.cancellations.approve_cancellation("booking-1")
        with pytest.raises(InvalidStateError):
            await engine.cancellations.approve_cancellation("booking-1")


class TestDecide:
    def test_custom_notice(self, engine, clock):
        from courtbook.services.cancellation import CancellationPolicy

        policy = CancellationPolicy(engine.bookings, clock=clock, notice_hours=2)
        start = NOW + timedelta(hours=3)
        booking = make_booking(start_time=start, end_time=start + timedelta(hours=1))
        assert policy.decide(booking) == BookingStatus.CANCELLED
