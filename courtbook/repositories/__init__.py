"""Storage backends for clubs, courts and bookings."""

from courtbook.repositories.base import BookingRepo, ClubRepo, CourtRepo
from courtbook.repositories.memory import (
    InMemoryBookingRepo,
    InMemoryClubRepo,
    InMemoryCourtRepo,
)

__all__ = [
    "BookingRepo",
    "ClubRepo",
    "CourtRepo",
    "InMemoryBookingRepo",
    "InMemoryClubRepo",
    "InMemoryCourtRepo",
]
