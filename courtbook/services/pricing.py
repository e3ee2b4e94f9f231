"""Slot price resolution: per-slot overrides win over the court default."""

from __future__ import annotations

from collections.abc import Iterable

from courtbook.models import Court


def price_for(court: Court, time_of_day: str) -> float:
    """Price of the slot starting at *time_of_day*. Exact match only."""
    for override in court.slot_prices:
        if override.time == time_of_day:
            return override.price
    return court.default_price


def total_price(court: Court, times: Iterable[str]) -> float:
    return sum(price_for(court, t) for t in times)
