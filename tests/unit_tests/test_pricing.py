"""Tests for slot price resolution."""

from courtbook.models import SlotPrice
from courtbook.services.pricing import price_for, total_price
from tests.mocks.models import MOCK_COURT, make_court


class TestPriceFor:
    def test_default_price(self):
        assert price_for(MOCK_COURT, "09:00") == 15

    def test_override_wins(self):
        assert price_for(MOCK_COURT, "20:00") == 20
        assert price_for(MOCK_COURT, "20:30") == 20

    def test_override_needs_exact_match(self):
        court = make_court(slot_prices=[SlotPrice(time="20:00", price=20)])
        assert price_for(court, "20:15") == 15

    def test_free_override(self):
        court = make_court(slot_prices=[SlotPrice(time="09:00", price=0)])
        assert price_for(court, "09:00") == 0


class TestTotalPrice:
    def test_sums_mixed_slots(self):
        assert total_price(MOCK_COURT, ["19:30", "20:00", "20:30"]) == 15 + 20 + 20

    def test_empty(self):
        assert total_price(MOCK_COURT, []) == 0
