"""
services/notification_service.py
--------------------------------
A user's notification inbox plus admin broadcasts.
"""

from typing import Optional

from db.connection import Database
from models.notification import Notification
from notifications.hub import NotificationHub
from repositories.notification_repo import NotificationRepository
from repositories.user_repo import UserRepository
from services.errors import AuthorizationError, NotFoundError
from utils.logger import get_logger

logger = get_logger(__name__)


class NotificationService:
    """Reads and acknowledges persisted notifications."""

    def __init__(self, db: Database, hub: NotificationHub):
        self.repo = NotificationRepository(db)
        self.user_repo = UserRepository(db)
        self.hub = hub

    def get_notifications(self, user_id: int, unread_only: bool = False,
                          limit: Optional[int] = None, skip: Optional[int] = None) -> list[dict]:
        return self.repo.find_by_user(user_id, unread_only=unread_only, limit=limit, skip=skip)

    def mark_as_read(self, notification_id: int, user_id: int) -> dict:
        notification = self.repo.find_by_id(notification_id)
        if not notification:
            raise NotFoundError("Notification")
        if notification["userId"] != int(user_id):
            raise AuthorizationError("You can only update your own notifications")
        return self.repo.mark_as_read(notification["id"])

    def mark_all_as_read(self, user_id: int) -> int:
        return self.repo.mark_all_as_read(user_id)

    def get_unread_count(self, user_id: int) -> int:
        return self.repo.count_unread(user_id)

    def broadcast(self, title: str, message: str, type_: str = "announcement") -> dict:
        """
        Send the same notification to every user.

        Returns:
            {'sent': successful deliveries, 'total': users targeted}
        """
        users = self.user_repo.find()
        sent = 0
        for user in users:
            delivered = self.hub.notify(Notification(
                user_id=user["id"],
                type=type_,
                title=title,
                message=message,
            ))
            if delivered:
                sent += 1
        logger.info(f"Broadcast '{title}' delivered to {sent}/{len(users)} users")
        return {"sent": sent, "total": len(users)}
