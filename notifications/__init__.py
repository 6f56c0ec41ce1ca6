"""
notifications/ - Notification Fan-out
=====================================
Every domain state change is published once through the hub and
delivered to all sinks: the notifications table and an external channel.
"""

from config import TELEGRAM_BOT_TOKEN, TELEGRAM_NOTIFY_CHAT_ID
from db.connection import Database
from notifications.hub import NotificationHub
from notifications.sinks import DatabaseSink, LogSink, TelegramSink
from repositories.notification_repo import NotificationRepository
from repositories.user_repo import UserRepository


def build_notification_hub(db: Database) -> NotificationHub:
    """Create the hub with the sinks used in production."""
    sinks = [DatabaseSink(NotificationRepository(db))]
    if TELEGRAM_BOT_TOKEN:
        sinks.append(TelegramSink(TELEGRAM_BOT_TOKEN, UserRepository(db), TELEGRAM_NOTIFY_CHAT_ID))
    else:
        sinks.append(LogSink())
    return NotificationHub(sinks)
