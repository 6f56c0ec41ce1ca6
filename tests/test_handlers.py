"""
Tests for the Telegram command handlers with stand-in Update/Context objects.

Handlers are coroutines; they are driven with asyncio.run.
"""

import asyncio
from types import SimpleNamespace

import pytest

from handlers import event_handler, notification_handler, registration_handler, start_handler
from models.constants import EVENT_APPROVED, EVENT_PENDING
from services.container import build_services


class FakeMessage:
    def __init__(self):
        self.replies = []
        self.deleted = False

    async def reply_text(self, text, **kwargs):
        self.replies.append(text)

    async def delete(self):
        self.deleted = True


class FakeChat:
    def __init__(self):
        self.sent = []

    async def send_message(self, text, **kwargs):
        self.sent.append(text)


@pytest.fixture
def services(db, hub, tmp_path):
    built = build_services(db, hub)
    built.backups.backup_dir = str(tmp_path)
    return built


@pytest.fixture
def run(services):
    """Invoke a handler as Telegram user ``telegram_id`` with the given arguments."""

    def _run(handler, telegram_id, *args):
        update = SimpleNamespace(
            effective_user=SimpleNamespace(id=telegram_id, first_name="Tester"),
            message=FakeMessage(),
            effective_chat=FakeChat(),
        )
        context = SimpleNamespace(args=list(args), bot_data={"services": services})
        asyncio.run(handler(update, context))
        return update

    return _run


def test_unlinked_sender_is_told_to_sign_up(run):
    update = run(event_handler.events_command, 1001)
    assert "not linked" in update.message.replies[0]


def test_signup_links_chat_and_hides_credentials(run, services):
    update = run(start_handler.signup_command, 1002, "amy@campus.test", "Secret123", "Amy", "Lee")
    assert update.message.deleted
    assert "Account created" in update.effective_chat.sent[0]
    assert services.users.get_by_telegram_id(1002)["name"] == "Amy Lee"


def test_signup_errors_are_reported(run):
    update = run(start_handler.signup_command, 1003, "amy@campus.test", "weak", "Amy")
    assert "8 characters" in update.effective_chat.sent[0]


def test_role_guard(run, make_user):
    make_user(telegramId=2001)
    update = run(event_handler.approve_command, 2001, "1")
    assert "not allowed" in update.message.replies[0]


def test_propose_and_approve_flow(run, services, make_user):
    make_user("club_representative", telegramId=3001)
    make_user("admin", telegramId=3002)

    proposal = "Robot Wars | Build and fight small robots | 2099-01-10 18:00 | Lab | Block B | 20 | tech"
    update = run(event_handler.propose_command, 3001, *proposal.split(" "))
    assert "submitted for approval" in update.message.replies[0]

    event = services.events.get_pending_events()[0]
    assert event["status"] == EVENT_PENDING
    assert event["maxSeats"] == 20

    update = run(event_handler.approve_command, 3002, str(event["id"]))
    assert "approved" in update.message.replies[0]
    assert services.events.get_event_by_id(event["id"])["status"] == EVENT_APPROVED


def test_propose_usage(run, make_user):
    make_user("club_representative", telegramId=3003)
    update = run(event_handler.propose_command, 3003, "only", "a", "title")
    assert "Usage" in update.message.replies[0]


def test_join_and_notifications(run, services, make_user, make_event):
    make_user(telegramId=4001)
    event = make_event(title="Movie Night")

    update = run(registration_handler.join_command, 4001, str(event["id"]))
    assert "registered" in update.message.replies[0]

    update = run(registration_handler.join_command, 4001, str(event["id"]))
    assert "already registered" in update.effective_chat.sent[0]

    update = run(notification_handler.notifications_command, 4001)
    assert "Registration Confirmed" in update.message.replies[0]

    update = run(notification_handler.read_all_command, 4001)
    assert "1 notifications" in update.message.replies[0]


def test_missing_event_is_reported(run, make_user):
    make_user(telegramId=5001)
    update = run(event_handler.event_command, 5001, "424242")
    assert "Event not found" in update.effective_chat.sent[0]


def test_edit_event_unknown_field(run, make_user, make_event):
    organizer = make_user("club_representative", telegramId=6001)
    event = make_event(created_by=organizer["id"])
    update = run(event_handler.edit_event_command, 6001, str(event["id"]), "color=red")
    assert "Unknown field" in update.message.replies[0]


def test_attend_requires_organizer(run, make_user, make_event):
    make_user("club_representative", telegramId=7001)
    event = make_event()
    update = run(registration_handler.attend_command, 7001, str(event["id"]), "1")
    assert "organizer" in update.effective_chat.sent[0]


def test_non_ascii_digits_get_the_usage_message(run, make_user, make_event):
    make_user(telegramId=8001)
    event = make_event()

    update = run(event_handler.event_command, 8001, "²")
    assert "Usage" in update.message.replies[0]

    update = run(registration_handler.feedback_command, 8001, str(event["id"]), "³")
    assert "Usage" in update.message.replies[0]
