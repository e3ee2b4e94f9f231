"""
End-to-end booking flow on the sqlite backend with the demo catalog.

Covers one booking's whole life: availability, booking, a competing
request, a forum game, notifications, a late cancellation and a restart
that reloads state from disk.
"""

from __future__ import annotations

from datetime import UTC, date, datetime

import pytest

from courtbook.errors import ConflictError
from courtbook.models import BookingStatus, NotificationKind
from courtbook.services.inbox import club_recipient, user_recipient
from courtbook.services.registry import EngineRegistry
from tests.mocks.models import FixedClock

# Madrid is UTC+2 in July
_DAY = date(2026, 7, 2)
_HOST = "user-1"
_GUEST = "user-4"


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 7, 1, 8, 0, tzinfo=UTC))


@pytest.fixture()
async def engine(clock, tmp_path):
    registry = EngineRegistry("sqlite", clock=clock, seed=True, db_path=str(tmp_path / "e2e.db"))
    await registry.start()
    yield registry
    await registry.stop()


def _free(availability, court_id):
    court = next(c for c in availability if c.court.id == court_id)
    return {s.time: s.available for s in court.slots}


async def test_full_booking_lifecycle(engine, clock, tmp_path):
    clubs = await engine.catalog.list_clubs()
    assert {c.id for c in clubs} == {"club-1", "club-2"}

    # ── Book the evening slots of the first padel court ───────────────
    before = await engine.availability.availability("club-1", "Pádel", _DAY)
    assert all(_free(before, "court-1").values())

    booking = await engine.booking_engine.create_booking(
        _HOST, "court-1", ["19:30", "20:00", "20:30"], _DAY
    )
    assert booking.total_price == 55
    assert booking.start_time == datetime(2026, 7, 2, 17, 30, tzinfo=UTC)
    assert booking.end_time == datetime(2026, 7, 2, 19, 0, tzinfo=UTC)

    after = await engine.availability.availability("club-1", "Pádel", _DAY)
    free = _free(after, "court-1")
    assert not free["19:30"] and not free["20:30"]
    assert free["19:00"] and free["21:00"]
    assert all(_free(after, "court-2").values())

    with pytest.raises(ConflictError):
        await engine.booking_engine.create_booking(_GUEST, "court-1", ["20:30", "21:00"], _DAY)

    # ── Open the game to one more player ──────────────────────────────
    await engine.forum.publish(booking.id, _HOST, players_needed=1, skill_level=3)
    await engine.forum.request_to_join(booking.id, _GUEST)

    engine.scanner.watch_user(_HOST)
    engine.scanner.watch_club("club-1")
    emitted = await engine.scanner.scan_all()
    assert [n.kind for n in emitted] == [NotificationKind.JOIN_REQUEST]

    game = await engine.forum.accept_join(booking.id, _HOST, _GUEST)
    assert game.joined_player_ids == [_GUEST]
    assert (await engine.forum.list_open_games(sport="Pádel"))[0].open_slots_count == 0

    # ── The evening before: reminder, then a late cancellation ────────
    clock.now = datetime(2026, 7, 1, 18, 0, tzinfo=UTC)
    result = await engine.cancellations.request_cancellation(booking.id, _HOST)
    assert result.status == BookingStatus.PENDING_CANCELLATION

    emitted = await engine.scanner.scan_all()
    kinds = sorted(n.kind.value for n in emitted)
    assert kinds == ["pending_cancellation", "upcoming_reminder"]
    reminder = engine.inbox.drain(user_recipient(_HOST))[-1]
    assert "19:30" in reminder.message
    assert len(engine.inbox.drain(club_recipient("club-1"))) == 1

    await engine.cancellations.approve_cancellation(booking.id)
    freed = await engine.availability.availability("club-1", "Pádel", _DAY)
    assert _free(freed, "court-1")["20:00"]

    # ── State survives a restart ──────────────────────────────────────
    await engine.stop()
    reopened = EngineRegistry("sqlite", clock=clock, seed=True, db_path=str(tmp_path / "e2e.db"))
    await reopened.start()
    try:
        stored = await reopened.booking_engine.get_booking(booking.id)
        assert stored.status == BookingStatus.CANCELLED
        assert stored.joined_player_ids == [_GUEST]
        assert len(await reopened.catalog.list_courts("club-1")) == 3
    finally:
        await reopened.stop()
    await engine.start()


async def test_deleting_a_court_cancels_future_bookings(engine):
    booking = await engine.booking_engine.create_booking(_HOST, "court-4", ["10:00"], _DAY)
    await engine.catalog.delete_court("court-4")

    stored = await engine.booking_engine.get_booking(booking.id)
    assert stored.status == BookingStatus.CANCELLED
    views = await engine.booking_engine.list_user_bookings(_HOST)
    assert views[0].court_name == "court-4"
