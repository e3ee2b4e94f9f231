"""
Notification inbox.

Delivery channels (push, desktop, email) live outside the engine. The
scanner drops its notifications here and clients collect them by
polling; each recipient keeps at most NOTIFICATION_INBOX_SIZE entries.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque

from courtbook.config import NOTIFICATION_INBOX_SIZE
from courtbook.models import Notification

logger = logging.getLogger(__name__)


def user_recipient(user_id: str) -> str:
    return f"user:{user_id}"


def club_recipient(club_id: str) -> str:
    return f"club:{club_id}"


class NotificationInbox:
    def __init__(self, max_per_recipient: int = NOTIFICATION_INBOX_SIZE) -> None:
        self._queues: defaultdict[str, deque[Notification]] = defaultdict(
            lambda: deque(maxlen=max_per_recipient)
        )

    def deliver(self, notification: Notification) -> None:
        self._queues[notification.recipient].append(notification)
        logger.info(
            "Notification %s for %s: %s",
            notification.kind.value, notification.recipient, notification.message,
        )

    def drain(self, recipient: str) -> list[Notification]:
        """Return and forget everything queued for *recipient*."""
        queue = self._queues.pop(recipient, None)
        return list(queue) if queue else []

    def pending_count(self, recipient: str) -> int:
        queue = self._queues.get(recipient)
        return len(queue) if queue else 0
