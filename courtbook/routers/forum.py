"""
Forum endpoints: open games looking for players.
"""

from datetime import date

from fastapi import APIRouter, Query, Request

from courtbook.dependencies import CurrentUser
from courtbook.models import Booking, ForumGame, ForumPublishRequest
from courtbook.rate_limit import WRITE, limiter
from courtbook.services.registry import registry

router = APIRouter(prefix="/api/forum", tags=["forum"])


@router.get(
    "",
    response_model=list[ForumGame],
    operation_id="listOpenGames",
    summary="List published games that haven't started",
)
async def list_open_games(
    sport: str | None = Query(None, description="Filter by sport"),
    day: date | None = Query(None, alias="date", description="Filter by calendar day (YYYY-MM-DD)"),
    skill_level: int | None = Query(None, ge=1, le=5, description="Filter by skill level"),
) -> list[ForumGame]:
    return await registry.forum.list_open_games(sport=sport, day=day, skill_level=skill_level)


@router.post(
    "/{booking_id}/publish",
    response_model=Booking,
    operation_id="publishGame",
    summary="Publish an owned booking to the forum",
)
async def publish_game(booking_id: str, body: ForumPublishRequest, current_user: CurrentUser) -> Booking:
    return await registry.forum.publish(
        booking_id, current_user.id, body.players_needed, body.skill_level
    )


@router.post(
    "/{booking_id}/join",
    response_model=Booking,
    operation_id="requestToJoin",
    summary="Ask to join a published game",
)
@limiter.limit(WRITE)
async def request_to_join(request: Request, booking_id: str, current_user: CurrentUser) -> Booking:
    return await registry.forum.request_to_join(booking_id, current_user.id)


@router.post(
    "/{booking_id}/requests/{user_id}/accept",
    response_model=Booking,
    operation_id="acceptJoinRequest",
    summary="Accept a pending join request",
)
async def accept_join(booking_id: str, user_id: str, current_user: CurrentUser) -> Booking:
    return await registry.forum.accept_join(booking_id, current_user.id, user_id)


@router.post(
    "/{booking_id}/requests/{user_id}/reject",
    response_model=Booking,
    operation_id="rejectJoinRequest",
    summary="Reject a pending join request",
)
async def reject_join(booking_id: str, user_id: str, current_user: CurrentUser) -> Booking:
    return await registry.forum.reject_join(booking_id, current_user.id, user_id)
