"""
repositories/notification_repo.py
----------------------------------
Data access layer for persisted notifications.
Notifications are immutable apart from their `read` flag and have no
updated_at column.
"""

from typing import Optional

from repositories.base import BaseRepository


class NotificationRepository(BaseRepository):
    """Repository for the notifications table."""

    table = "notifications"
    CREATE_TIMESTAMPS = ("createdAt",)
    UPDATE_TIMESTAMP = None

    def find_by_user(self, user_id: int, unread_only: bool = False,
                     limit: Optional[int] = None, skip: Optional[int] = None) -> list[dict]:
        """Notifications addressed to a user, newest first."""
        filter_: dict = {"userId": int(user_id)}
        if unread_only:
            filter_["read"] = False
        return self.find(filter_, sort={"createdAt": -1}, limit=limit, skip=skip)

    def mark_as_read(self, notification_id: int) -> Optional[dict]:
        return self.update_by_id(notification_id, {"read": True})

    def mark_all_as_read(self, user_id: int) -> int:
        """
        Flag every unread notification of a user as read.

        Returns:
            Number of notifications updated.
        """
        sql = 'UPDATE notifications SET "read" = TRUE WHERE user_id = %s AND "read" = FALSE'
        result = self.db.query(sql, [int(user_id)])
        return result.rowcount

    def count_unread(self, user_id: int) -> int:
        return self.count({"userId": int(user_id), "read": False})
