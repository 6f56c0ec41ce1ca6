"""
Tests for the notification fan-out hub.

Tests sink registration, delivery to every sink, isolation of failing
sinks and the domain publishers.
"""

import threading

from conftest import FailingSink, RecordingSink
from models.constants import NOTIFY_EVENT_REJECTED, NOTIFY_GUEST_INVITED, NOTIFY_NEW_REGISTRATION
from models.notification import Notification
from notifications.hub import NotificationHub
from notifications.sinks import DatabaseSink, LogSink
from repositories.notification_repo import NotificationRepository

EVENT = {"id": 1, "title": "Open Mic"}


def _note(user_id=1):
    return Notification(user_id=user_id, type="test", title="Hello", message="World")


class TestRegistry:

    def test_attach_detach(self):
        hub = NotificationHub()
        sink = RecordingSink()
        hub.attach(sink)
        hub.attach(sink)
        assert hub.sinks == (sink,)
        hub.detach(sink)
        assert hub.sinks == ()
        hub.close()

    def test_notify_without_sinks(self):
        hub = NotificationHub()
        assert hub.notify(_note()) == 0
        hub.close()


class TestFanOut:

    def test_every_sink_receives_the_same_notification(self):
        first, second = RecordingSink("a"), RecordingSink("b")
        hub = NotificationHub([first, second])
        note = _note()
        assert hub.notify(note) == 2
        assert first.received == [note]
        assert second.received == [note]
        hub.close()

    def test_failing_sink_does_not_affect_others(self):
        failing, healthy = FailingSink(), RecordingSink()
        hub = NotificationHub([failing, healthy])
        assert hub.notify(_note()) == 1
        assert failing.calls == 1
        assert len(healthy.received) == 1
        hub.close()

    def test_sinks_run_concurrently(self):
        barrier = threading.Barrier(2, timeout=5)

        class BarrierSink:
            def __init__(self):
                self.passed = False

            def deliver(self, notification):
                barrier.wait()
                self.passed = True

        sinks = [BarrierSink(), BarrierSink()]
        hub = NotificationHub(sinks, max_workers=2)
        assert hub.notify(_note()) == 2
        assert all(s.passed for s in sinks)
        hub.close()

    def test_database_sink_persists(self, db, student):
        repo = NotificationRepository(db)
        hub = NotificationHub([DatabaseSink(repo), LogSink()])
        assert hub.notify(_note(student["id"])) == 2
        stored = repo.find_by_user(student["id"])
        assert len(stored) == 1
        assert stored[0]["title"] == "Hello"
        assert not stored[0]["read"]
        hub.close()


class TestPublishers:

    def test_rejection_carries_reason(self, sink):
        hub = NotificationHub([sink])
        hub.notify_event_rejected(EVENT, 5, "Room unavailable")
        note = sink.received[0]
        assert note.type == NOTIFY_EVENT_REJECTED
        assert note.user_id == 5
        assert note.related_event_id == 1
        assert "Room unavailable" in note.message
        hub.close()

    def test_rejection_without_reason(self, sink):
        hub = NotificationHub([sink])
        hub.notify_event_rejected(EVENT, 5)
        assert "No reason provided" in sink.received[0].message
        hub.close()

    def test_new_registration_goes_to_organizer(self, sink):
        hub = NotificationHub([sink])
        hub.notify_new_registration(EVENT, organizer_id=9)
        assert sink.received[0].type == NOTIFY_NEW_REGISTRATION
        assert sink.received[0].user_id == 9
        hub.close()

    def test_guest_invitation_is_a_broadcast(self, sink):
        hub = NotificationHub([sink])
        hub.notify_guest_invited(EVENT, {"name": "Kim", "email": "kim@example.org"})
        note = sink.received[0]
        assert note.type == NOTIFY_GUEST_INVITED
        assert note.is_broadcast()
        assert "kim@example.org" in note.message
        hub.close()
