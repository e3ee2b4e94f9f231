"""Tests for the /api/bookings endpoints."""

from tests.mocks.models import MOCK_PLAYER, MOCK_PLAYER_2, NEXT_WEEK, TODAY, TOMORROW


def _book(client, slots, day=TOMORROW, court_id="court-a"):
    return client.post(
        "/api/bookings",
        json={"court_id": court_id, "day": day.isoformat(), "slots": slots},
    )


class TestCreateBooking:
    def test_create(self, client):
        resp = _book(client, ["09:00", "09:30", "10:00"])
        assert resp.status_code == 201
        data = resp.json()
        assert data["user_id"] == MOCK_PLAYER.id
        assert data["status"] == "CONFIRMED"
        assert data["total_price"] == 45
        assert data["start_time"].startswith("2026-03-11T09:00:00")
        assert data["end_time"].startswith("2026-03-11T10:30:00")

    def test_non_contiguous(self, client):
        resp = _book(client, ["09:00", "10:00"])
        assert resp.status_code == 400
        data = resp.json()
        assert data["error"] == "validation"
        assert "contiguous" in data["message"]

    def test_empty_selection(self, client):
        assert _book(client, []).status_code == 422

    def test_conflict(self, client, act_as):
        assert _book(client, ["18:00", "18:30"]).status_code == 201
        act_as(MOCK_PLAYER_2)
        resp = _book(client, ["18:30"])
        assert resp.status_code == 409
        assert resp.json()["error"] == "conflict"

    def test_unknown_court(self, client):
        assert _book(client, ["09:00"], court_id="missing").status_code == 404

    def test_requires_auth(self, unauthed_client):
        assert _book(unauthed_client, ["09:00"]).status_code == 401


class TestMyBookings:
    def test_newest_first_and_own_only(self, client, act_as):
        _book(client, ["09:00"])
        _book(client, ["09:00"], day=NEXT_WEEK)
        act_as(MOCK_PLAYER_2)
        _book(client, ["12:00"])
        act_as(MOCK_PLAYER)

        resp = client.get("/api/bookings")
        assert resp.status_code == 200
        data = resp.json()
        assert [b["start_time"][:10] for b in data] == [NEXT_WEEK.isoformat(), TOMORROW.isoformat()]
        assert data[0]["court_name"] == "Pista 1"
        assert data[0]["club_name"] == "Test Club"


class TestCancel:
    def test_cancel_far_ahead(self, client):
        booking_id = _book(client, ["09:00"], day=NEXT_WEEK).json()["id"]
        resp = client.post(f"/api/bookings/{booking_id}/cancel")
        assert resp.status_code == 200
        assert resp.json() == {"status": "CANCELLED", "message": "Booking cancelled"}

    def test_cancel_close_to_start(self, client):
        booking_id = _book(client, ["18:00"], day=TODAY).json()["id"]
        resp = client.post(f"/api/bookings/{booking_id}/cancel")
        assert resp.status_code == 200
        assert resp.json() == {
            "status": "PENDING_CANCELLATION",
            "message": "Cancellation pending admin approval",
        }

    def test_cancel_twice(self, client):
        booking_id = _book(client, ["09:00"], day=NEXT_WEEK).json()["id"]
        client.post(f"/api/bookings/{booking_id}/cancel")
        resp = client.post(f"/api/bookings/{booking_id}/cancel")
        assert resp.status_code == 409
        assert resp.json()["error"] == "invalid_state"

    def test_not_owner(self, client, act_as):
        booking_id = _book(client, ["09:00"], day=NEXT_WEEK).json()["id"]
        act_as(MOCK_PLAYER_2)
        resp = client.post(f"/api/bookings/{booking_id}/cancel")
        assert resp.status_code == 403
        assert resp.json()["error"] == "forbidden"
