"""Demo clubs and courts loaded on startup when the store is empty."""

from __future__ import annotations

import logging

from courtbook.models import Club, Court, SlotPrice
from courtbook.repositories.base import ClubRepo, CourtRepo

logger = logging.getLogger(__name__)


def get_demo_clubs() -> list[Club]:
    return [
        Club(
            id="club-1",
            name="Club de Tenis y Pádel Montecarlo",
            sports=["Tenis", "Pádel"],
            timezone="Europe/Madrid",
        ),
        Club(
            id="club-2",
            name="Polideportivo La Estación",
            sports=["Pádel", "Baloncesto"],
            timezone="Europe/Madrid",
        ),
    ]


def get_demo_courts() -> list[Court]:
    return [
        Court(
            id="court-1",
            club_id="club-1",
            name="Pista de Pádel 1",
            sport="Pádel",
            features=["Cristal", "Exterior"],
            opening_time="09:00",
            closing_time="23:00",
            default_price=15,
            slot_prices=[SlotPrice(time="20:00", price=20), SlotPrice(time="20:30", price=20)],
        ),
        Court(
            id="court-2",
            club_id="club-1",
            name="Pista de Pádel 2",
            sport="Pádel",
            features=["Muro", "Exterior"],
            opening_time="09:00",
            closing_time="23:00",
            default_price=12,
        ),
        Court(
            id="court-3",
            club_id="club-1",
            name="Pista de Tenis Central",
            sport="Tenis",
            features=["Tierra Batida", "Iluminación LED"],
            opening_time="09:00",
            closing_time="22:00",
            default_price=25,
        ),
        Court(
            id="court-4",
            club_id="club-2",
            name="Pista de Pádel Indoor",
            sport="Pádel",
            features=["Cristal", "Indoor"],
            opening_time="10:00",
            closing_time="22:00",
            default_price=18,
        ),
        Court(
            id="court-5",
            club_id="club-2",
            name="Cancha de Baloncesto",
            sport="Baloncesto",
            features=["Parquet", "Indoor"],
            opening_time="10:00",
            closing_time="21:00",
            default_price=30,
        ),
    ]


async def seed_demo_data(clubs: ClubRepo, courts: CourtRepo) -> bool:
    """Insert the demo catalog unless some club already exists."""
    if await clubs.list_all():
        return False
    for club in get_demo_clubs():
        await clubs.upsert(club)
    for court in get_demo_courts():
        await courts.upsert(court)
    logger.info("Seeded demo data: %d clubs, %d courts", len(get_demo_clubs()), len(get_demo_courts()))
    return True
