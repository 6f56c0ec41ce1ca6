"""
models/notification.py
----------------------
Domain model for a notification travelling through the fan-out hub.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Notification:
    """
    A single message to deliver to every sink.

    Attributes:
        user_id: Recipient user ID, or None for a broadcast.
        type: One of the NOTIFY_* constants.
        title: Short headline.
        message: Human-readable body.
        related_event_id: Event the notification is about, if any.
    """
    user_id: Optional[int]
    type: str
    title: str
    message: str
    related_event_id: Optional[int] = None

    def is_broadcast(self) -> bool:
        return self.user_id is None

    def __str__(self) -> str:
        target = "everyone" if self.is_broadcast() else f"user {self.user_id}"
        return f"[{self.type}] {self.title} -> {target}"
