"""
repositories/user_repo.py
--------------------------
Data access layer for user accounts.
"""

from typing import Optional

from repositories.base import BaseRepository
from utils.logger import get_logger

logger = get_logger(__name__)


class UserRepository(BaseRepository):
    """Repository for the users table."""

    table = "users"

    def find_by_email(self, email: str) -> Optional[dict]:
        """Emails are stored lower-cased; lookups are normalized the same way."""
        return self.find_one({"email": email.strip().lower()})

    def exists_by_email(self, email: str) -> bool:
        return self.count({"email": email.strip().lower()}) > 0

    def find_by_telegram_id(self, telegram_id: int) -> Optional[dict]:
        """
        Fetch the account linked to a Telegram user.

        Returns:
            User dict or None.
        """
        return self.find_one({"telegramId": int(telegram_id)})

    def link_telegram(self, user_id: int, telegram_id: int) -> Optional[dict]:
        """Attach a Telegram account, detaching it from any other user first."""
        previous = self.find_by_telegram_id(telegram_id)
        if previous and previous["id"] != user_id:
            self.update_by_id(previous["id"], {"telegramId": None})
            logger.info(f"Telegram {telegram_id} moved from user {previous['id']} to {user_id}")
        return self.update_by_id(user_id, {"telegramId": int(telegram_id)})
