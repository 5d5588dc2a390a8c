"""Per-user notification list (the bell)."""

from __future__ import annotations

from enum import Enum

import structlog

from learning.api.client import ApiError
from learning.api.endpoints import LmsApi
from learning.models import Notification, NotificationType

logger = structlog.get_logger(__name__)

BADGE_LIMIT = 9


class NotificationCenter:
    """Loads a user's notifications and tracks their read state."""

    def __init__(self, api: LmsApi, user_id: int):
        self.api = api
        self.user_id = user_id
        self.notifications: list[Notification] = []

    def load(self) -> bool:
        """Fetch notifications. On failure the current list is kept."""
        try:
            self.notifications = self.api.notifications.get_for_user(self.user_id)
        except ApiError as e:
            logger.warning("notifications_load_failed", user_id=self.user_id, error=e.message)
            return False
        return True

    @property
    def unread(self) -> list[Notification]:
        return [n for n in self.notifications if not n.read]

    @property
    def unread_count(self) -> int:
        return len(self.unread)

    @property
    def badge(self) -> str:
        """Counter text for the bell; empty when nothing is unread."""
        count = self.unread_count
        if count == 0:
            return ""
        return f"{BADGE_LIMIT}+" if count > BADGE_LIMIT else str(count)

    def mark_as_read(self, notification_id: int) -> bool:
        """Mark one notification read. The local flag changes only on success."""
        try:
            self.api.notifications.mark_as_read(notification_id)
        except ApiError as e:
            logger.warning(
                "notification_mark_read_failed",
                notification_id=notification_id,
                error=e.message,
            )
            return False

        for notification in self.notifications:
            if notification.id == notification_id:
                notification.read = True
        return True


def target_for(notification: Notification) -> str:
    kind = notification.type.value if isinstance(notification.type, Enum) else notification.type
    if kind == NotificationType.NEW_TOPIC.value and notification.related_id:
        return f"/topics/{notification.related_id}"
    if kind == NotificationType.NEW_QUIZ.value and notification.related_id:
        return f"/quiz/{notification.related_id}"
    return "/dashboard"
