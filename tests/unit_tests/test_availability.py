"""Tests for the availability calculator."""

import pytest

from courtbook.errors import NotFoundError
from courtbook.models import BookingStatus
from tests.mocks.models import (
    MOCK_CLUB,
    MOCK_CLUB_2,
    MOCK_COURT,
    TODAY,
    TOMORROW,
    at,
    make_booking,
)


def _slots_of(result, court_id):
    for court_availability in result:
        if court_availability.court.id == court_id:
            return {s.time: s for s in court_availability.slots}
    raise AssertionError(f"{court_id} missing")


class TestClubAvailability:
    async def test_courts_filtered_by_sport(self, engine):
        result = await engine.availability.availability(MOCK_CLUB.id, "Pádel", TOMORROW)
        assert [c.court.name for c in result] == ["Pista 1", "Pista 2"]

    async def test_empty_day_is_all_free(self, engine):
        result = await engine.availability.availability(MOCK_CLUB.id, "Pádel", TOMORROW)
        slots = _slots_of(result, MOCK_COURT.id)
        assert len(slots) == 28
        assert all(s.available for s in slots.values())
        assert slots["09:00"].price == 15
        assert slots["20:00"].price == 20

    async def test_booking_blocks_overlapping_slots(self, engine):
        await engine.bookings.insert_if_no_overlap(
            make_booking(start_time=at(TOMORROW, "18:00"), end_time=at(TOMORROW, "19:00"))
        )
        result = await engine.availability.availability(MOCK_CLUB.id, "Pádel", TOMORROW)
        slots = _slots_of(result, MOCK_COURT.id)
        assert not slots["18:00"].available
        assert not slots["18:30"].available
        # touching endpoints don't overlap
        assert slots["17:30"].available
        assert slots["19:00"].available

    async def test_other_court_unaffected(self, engine):
        await engine.bookings.insert_if_no_overlap(make_booking())
        result = await engine.availability.availability(MOCK_CLUB.id, "Pádel", TOMORROW)
        assert all(s.available for s in _slots_of(result, "court-b").values())

    async def test_pending_cancellation_still_blocks(self, engine):
        await engine.bookings.insert_if_no_overlap(
            make_booking(status=BookingStatus.PENDING_CANCELLATION)
        )
        result = await engine.availability.availability(MOCK_CLUB.id, "Pádel", TOMORROW)
        assert not _slots_of(result, MOCK_COURT.id)["18:00"].available

    async def test_cancelled_booking_frees_slots(self, engine):
        await engine.bookings.insert_if_no_overlap(make_booking())
        await engine.bookings.update_status("booking-1", BookingStatus.CANCELLED)
        result = await engine.availability.availability(MOCK_CLUB.id, "Pádel", TOMORROW)
        assert _slots_of(result, MOCK_COURT.id)["18:00"].available

    async def test_past_slots_today_unavailable(self, engine, clock):
        clock.now = at(TODAY, "10:15")
        result = await engine.availability.availability(MOCK_CLUB.id, "Pádel", TODAY)
        slots = _slots_of(result, MOCK_COURT.id)
        assert not slots["09:00"].available
        assert not slots["10:00"].available
        assert slots["10:30"].available

    async def test_idempotent(self, engine):
        await engine.bookings.insert_if_no_overlap(make_booking())
        first = await engine.availability.availability(MOCK_CLUB.id, "Pádel", TOMORROW)
        second = await engine.availability.availability(MOCK_CLUB.id, "Pádel", TOMORROW)
        assert first == second

    async def test_unknown_sport_is_empty(self, engine):
        assert await engine.availability.availability(MOCK_CLUB.id, "Golf", TOMORROW) == []

    async def test_unknown_club(self, engine):
        with pytest.raises(NotFoundError):
            await engine.availability.availability("no-such-club", "Pádel", TOMORROW)


class TestGlobalAvailability:
    async def test_every_club_with_the_sport(self, engine):
        result = await engine.availability.global_availability("Pádel", TOMORROW)
        assert {r.club.id for r in result} == {MOCK_CLUB.id, MOCK_CLUB_2.id}

    async def test_clubs_without_sport_skipped(self, engine):
        result = await engine.availability.global_availability("Tenis", TOMORROW)
        assert [r.club.id for r in result] == [MOCK_CLUB.id]
        assert [c.court.id for c in result[0].courts] == ["court-t"]

    async def test_club_listing_sport_without_courts_skipped(self, engine):
        await engine.clubs.upsert(MOCK_CLUB_2.model_copy(update={"sports": ["Pádel", "Tenis"]}))
        result = await engine.availability.global_availability("Tenis", TOMORROW)
        assert [r.club.id for r in result] == [MOCK_CLUB.id]
