"""
Club, court and availability endpoints (public).
"""

from datetime import date

from fastapi import APIRouter, Query

from courtbook.models import Club, ClubAvailability, Court, CourtAvailability
from courtbook.services.registry import registry

router = APIRouter(prefix="/api", tags=["clubs"])


@router.get(
    "/clubs",
    response_model=list[Club],
    operation_id="listClubs",
    summary="List all clubs",
)
async def list_clubs() -> list[Club]:
    return await registry.catalog.list_clubs()


@router.get(
    "/clubs/{club_id}",
    response_model=Club,
    operation_id="getClub",
    summary="Get details of a specific club",
)
async def get_club(club_id: str) -> Club:
    return await registry.catalog.get_club(club_id)


@router.get(
    "/clubs/{club_id}/courts",
    response_model=list[Court],
    operation_id="listCourts",
    summary="List the courts of a club",
)
async def list_courts(club_id: str) -> list[Court]:
    return await registry.catalog.list_courts(club_id)


@router.get(
    "/clubs/{club_id}/availability",
    response_model=list[CourtAvailability],
    operation_id="getClubAvailability",
    summary="Slot availability of a club's courts for one sport and day",
)
async def get_club_availability(
    club_id: str,
    sport: str = Query(..., description="Sport to show courts for"),
    day: date = Query(..., alias="date", description="Calendar day (YYYY-MM-DD)"),
) -> list[CourtAvailability]:
    return await registry.availability.availability(club_id, sport, day)


@router.get(
    "/availability",
    response_model=list[ClubAvailability],
    operation_id="getGlobalAvailability",
    summary="Slot availability across every club offering a sport",
)
async def get_global_availability(
    sport: str = Query(..., description="Sport to show courts for"),
    day: date = Query(..., alias="date", description="Calendar day (YYYY-MM-DD)"),
) -> list[ClubAvailability]:
    return await registry.availability.global_availability(sport, day)
