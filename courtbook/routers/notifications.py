"""
Notification inbox endpoint (authenticated).

Polling subscribes the caller to the scanner: the first call starts
watching, later calls collect what the scanner found in between.
"""

from fastapi import APIRouter, Query

from courtbook.dependencies import CurrentUser, require_club_admin
from courtbook.models import Notification
from courtbook.services.inbox import club_recipient, user_recipient
from courtbook.services.registry import registry

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get(
    "",
    response_model=list[Notification],
    operation_id="pollNotifications",
    summary="Collect pending notifications for the user and, optionally, a managed club",
)
async def poll_notifications(
    current_user: CurrentUser,
    club_id: str | None = Query(None, description="Also collect this club's admin notifications"),
) -> list[Notification]:
    if club_id is not None:
        require_club_admin(current_user, club_id)
        await registry.catalog.get_club(club_id)

    registry.scanner.watch_user(current_user.id)
    notifications = registry.inbox.drain(user_recipient(current_user.id))
    if club_id is not None:
        registry.scanner.watch_club(club_id)
        notifications += registry.inbox.drain(club_recipient(club_id))

    return sorted(notifications, key=lambda n: n.created_at)
