"""
notifications/sinks.py
----------------------
Delivery targets for the notification hub.

A sink is any object with a ``deliver(notification)`` method. Sinks run
on hub worker threads, so each one must be safe to call concurrently.
"""

import asyncio
from typing import Optional, Protocol

from telegram import Bot
from telegram.error import TelegramError

from models.notification import Notification
from repositories.notification_repo import NotificationRepository
from repositories.user_repo import UserRepository
from utils.logger import get_logger

logger = get_logger(__name__)


class Sink(Protocol):
    def deliver(self, notification: Notification) -> None: ...


class DatabaseSink:
    """Persists every notification so users can list and acknowledge it."""

    name = "database"

    def __init__(self, repo: NotificationRepository):
        self.repo = repo

    def deliver(self, notification: Notification) -> None:
        self.repo.create({
            "userId": notification.user_id,
            "type": notification.type,
            "title": notification.title,
            "message": notification.message,
            "relatedEventId": notification.related_event_id,
            "read": False,
        })


class TelegramSink:
    """
    Pushes notifications to Telegram.

    Recipients with a linked Telegram account get a direct message;
    broadcasts and unlinked recipients go to the fallback chat when one
    is configured, and are skipped otherwise.
    """

    name = "telegram"

    def __init__(self, token: str, user_repo: UserRepository,
                 fallback_chat_id: Optional[str] = None):
        self.token = token
        self.user_repo = user_repo
        self.fallback_chat_id = fallback_chat_id or None

    def _resolve_chat(self, notification: Notification) -> Optional[int | str]:
        if notification.user_id is not None:
            user = self.user_repo.find_by_id(notification.user_id)
            if user and user.get("telegramId"):
                return user["telegramId"]
        return self.fallback_chat_id

    async def _send(self, chat_id: int | str, text: str) -> None:
        async with Bot(self.token) as bot:
            await bot.send_message(chat_id=chat_id, text=text)

    def deliver(self, notification: Notification) -> None:
        chat_id = self._resolve_chat(notification)
        if chat_id is None:
            logger.debug(f"No Telegram chat for {notification}, skipped.")
            return
        text = f"🔔 {notification.title}\n\n{notification.message}"
        try:
            # Hub workers run outside the bot's event loop
            asyncio.run(self._send(chat_id, text))
        except TelegramError as e:
            logger.error(f"Telegram delivery to {chat_id} failed: {e}")
            raise


class LogSink:
    """External channel placeholder used when no bot token is configured."""

    name = "log"

    def deliver(self, notification: Notification) -> None:
        logger.info(f"📧 {notification}: {notification.message}")
