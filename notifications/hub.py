"""
notifications/hub.py
--------------------
One-to-many notification fan-out.

`NotificationHub.notify` hands the same Notification to every registered
sink on a worker thread and returns once all of them have finished.
A failing sink is logged and never affects the other sinks or the caller.
Delivery is at-most-once: nothing is retried.
"""

import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Optional

from models.constants import (
    NOTIFY_EVENT_APPROVED,
    NOTIFY_EVENT_REJECTED,
    NOTIFY_EVENT_REMINDER,
    NOTIFY_EVENT_SUBMITTED,
    NOTIFY_EVENT_UPDATED,
    NOTIFY_GUEST_INVITED,
    NOTIFY_NEW_REGISTRATION,
    NOTIFY_REGISTRATION_CANCELLED,
    NOTIFY_REGISTRATION_CONFIRMED,
)
from models.notification import Notification
from notifications.sinks import Sink
from utils.logger import get_logger

logger = get_logger(__name__)


def _sink_name(sink: Sink) -> str:
    return getattr(sink, "name", type(sink).__name__)


class NotificationHub:
    """Registry of sinks plus the fan-out itself."""

    def __init__(self, sinks: Optional[list[Sink]] = None, max_workers: int = 4):
        self._sinks: list[Sink] = list(sinks or [])
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="notify")

    # ── Registry ──────────────────────────────────────────

    def attach(self, sink: Sink) -> None:
        with self._lock:
            if sink not in self._sinks:
                self._sinks.append(sink)
        logger.info(f"Notification sink attached: {_sink_name(sink)}")

    def detach(self, sink: Sink) -> None:
        with self._lock:
            if sink in self._sinks:
                self._sinks.remove(sink)
        logger.info(f"Notification sink detached: {_sink_name(sink)}")

    @property
    def sinks(self) -> tuple:
        with self._lock:
            return tuple(self._sinks)

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    # ── Fan-out ───────────────────────────────────────────

    @staticmethod
    def _deliver(sink: Sink, notification: Notification) -> bool:
        try:
            sink.deliver(notification)
            return True
        except Exception as e:
            logger.error(f"Sink '{_sink_name(sink)}' failed for {notification}: {e}")
            return False

    def notify(self, notification: Notification) -> int:
        """
        Deliver a notification to every sink and wait for all of them.

        Args:
            notification: The payload to deliver.

        Returns:
            Number of sinks that delivered successfully.
        """
        futures = [
            self._executor.submit(self._deliver, sink, notification)
            for sink in self.sinks
        ]
        done, _ = wait(futures)
        delivered = sum(1 for f in done if f.result())
        logger.debug(f"{notification} delivered by {delivered}/{len(futures)} sinks")
        return delivered

    # ── Domain publishers ─────────────────────────────────

    def notify_event_submitted(self, event: dict, user_id: int) -> int:
        return self.notify(Notification(
            user_id=user_id,
            type=NOTIFY_EVENT_SUBMITTED,
            title="Event Submitted",
            message=f'Your event "{event["title"]}" has been submitted for approval.',
            related_event_id=event["id"],
        ))

    def notify_event_approved(self, event: dict, user_id: int) -> int:
        return self.notify(Notification(
            user_id=user_id,
            type=NOTIFY_EVENT_APPROVED,
            title="Event Approved",
            message=f'Your event "{event["title"]}" has been approved and is now live.',
            related_event_id=event["id"],
        ))

    def notify_event_rejected(self, event: dict, user_id: int, reason: Optional[str] = None) -> int:
        return self.notify(Notification(
            user_id=user_id,
            type=NOTIFY_EVENT_REJECTED,
            title="Event Rejected",
            message=(
                f'Your event "{event["title"]}" has been rejected. '
                f'Reason: {reason or "No reason provided"}'
            ),
            related_event_id=event["id"],
        ))

    def notify_event_updated(self, event: dict, user_id: int) -> int:
        return self.notify(Notification(
            user_id=user_id,
            type=NOTIFY_EVENT_UPDATED,
            title="Event Updated",
            message=f'Your event "{event["title"]}" has been updated.',
            related_event_id=event["id"],
        ))

    def notify_new_registration(self, event: dict, organizer_id: int) -> int:
        return self.notify(Notification(
            user_id=organizer_id,
            type=NOTIFY_NEW_REGISTRATION,
            title="New Registration",
            message=f'A new student has registered for your event "{event["title"]}".',
            related_event_id=event["id"],
        ))

    def notify_registration_confirmed(self, event: dict, student_id: int) -> int:
        return self.notify(Notification(
            user_id=student_id,
            type=NOTIFY_REGISTRATION_CONFIRMED,
            title="Registration Confirmed",
            message=f'Your registration for "{event["title"]}" has been confirmed.',
            related_event_id=event["id"],
        ))

    def notify_registration_cancelled(self, event: dict, user_id: int) -> int:
        return self.notify(Notification(
            user_id=user_id,
            type=NOTIFY_REGISTRATION_CANCELLED,
            title="Registration Cancelled",
            message=f'Your registration for "{event["title"]}" has been cancelled.',
            related_event_id=event["id"],
        ))

    def notify_event_reminder(self, event: dict, user_id: int) -> int:
        return self.notify(Notification(
            user_id=user_id,
            type=NOTIFY_EVENT_REMINDER,
            title="Event Reminder",
            message=f'Reminder: "{event["title"]}" is happening soon!',
            related_event_id=event["id"],
        ))

    def notify_guest_invited(self, event: dict, guest: dict) -> int:
        return self.notify(Notification(
            user_id=None,
            type=NOTIFY_GUEST_INVITED,
            title="Guest Invited",
            message=f'{guest["name"]} ({guest["email"]}) has been invited to "{event["title"]}".',
            related_event_id=event["id"],
        ))
