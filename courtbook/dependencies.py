import logging
from typing import Annotated

import jwt
from fastapi import Cookie, Depends, HTTPException, status

from courtbook.config import JWT_ALGORITHM, JWT_SECRET
from courtbook.errors import PermissionDeniedError
from courtbook.models import UserInfo, UserRole

logger = logging.getLogger(__name__)


# ── JWT / Session ──────────────────────────────────────────────────────────


async def get_current_user(
    session: Annotated[str | None, Cookie()] = None,
) -> UserInfo:
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required.",
        )

    try:
        payload = jwt.decode(session, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired. Please log in again.",
        ) from None
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session. Please log in again.",
        ) from None

    user_id: str | None = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload.",
        )

    try:
        role = UserRole(payload.get("role", UserRole.PLAYER.value))
    except ValueError:
        logger.warning("Session for %s carries unknown role %r", user_id, payload.get("role"))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload.",
        ) from None

    return UserInfo(id=user_id, role=role, club_ids=list(payload.get("club_ids") or []))


CurrentUser = Annotated[UserInfo, Depends(get_current_user)]


# ── Authorization ──────────────────────────────────────────────────────────


def require_club_admin(user: UserInfo, club_id: str) -> None:
    """Raise PermissionDeniedError unless *user* may administer *club_id*."""
    if not user.manages_club(club_id):
        raise PermissionDeniedError(
            f"User {user.id} can't manage club {club_id}",
            details={"club_id": club_id},
        )


def require_super_admin(user: UserInfo) -> None:
    if user.role != UserRole.SUPER_ADMIN:
        raise PermissionDeniedError("Super admin role required")
