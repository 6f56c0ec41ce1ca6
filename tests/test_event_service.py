"""Tests for the event lifecycle: proposal, edition, moderation, deletion and reminders."""

from datetime import datetime, timedelta

import pytest

from models.constants import (
    EVENT_APPROVED,
    EVENT_PENDING,
    EVENT_REJECTED,
    LOG_EVENT_CREATED,
    NOTIFY_EVENT_APPROVED,
    NOTIFY_EVENT_REMINDER,
    NOTIFY_EVENT_SUBMITTED,
)
from repositories.log_repo import LogRepository
from repositories.registration_repo import RegistrationRepository
from services.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from services.event_service import EventService


@pytest.fixture
def service(db, hub):
    return EventService(db, hub)


class TestCreate:

    def test_creates_pending_event(self, db, service, organizer, sink, event_payload):
        event = service.create_event(event_payload(), organizer)
        assert event["status"] == EVENT_PENDING
        assert event["createdBy"] == organizer["id"]
        assert event["maxSeats"] == 100
        assert isinstance(event["date"], datetime)
        assert event["location"] == {"name": "Auditorium", "address": "2 Campus Road"}
        assert [n.type for n in sink.received] == [NOTIFY_EVENT_SUBMITTED]
        assert LogRepository(db).find_by_action(LOG_EVENT_CREATED)[0]["resourceId"] == str(event["id"])

    def test_default_category(self, service, organizer, event_payload):
        payload = event_payload()
        del payload["category"]
        assert service.create_event(payload, organizer)["category"] == "general"

    def test_invalid_payload_lists_every_problem(self, service, organizer, event_payload):
        with pytest.raises(ValidationError) as exc:
            service.create_event(event_payload(title="ab", maxSeats=0), organizer)
        assert "Title must be at least 3 characters long" in exc.value.message
        assert "Maximum seats must be at least 1" in exc.value.message

    def test_past_date_rejected(self, service, organizer, event_payload):
        past = (datetime.now() - timedelta(days=1)).isoformat()
        with pytest.raises(ValidationError, match="cannot be in the past"):
            service.create_event(event_payload(date=past), organizer)

    def test_duplicate_title(self, service, organizer, event_payload):
        service.create_event(event_payload(), organizer)
        with pytest.raises(ConflictError):
            service.create_event(event_payload(), organizer)

    def test_operator_keys_are_stripped(self, service, organizer, event_payload):
        event = service.create_event(event_payload(**{"$where": "1=1"}), organizer)
        assert "$where" not in event


class TestUpdate:

    def test_owner_can_edit(self, service, organizer, make_event):
        event = make_event(status=EVENT_PENDING)
        updated = service.update_event(event["id"], {"title": "Renamed Event", "maxSeats": "20"}, organizer)
        assert updated["title"] == "Renamed Event"
        assert updated["maxSeats"] == 20

    def test_other_organizer_cannot_edit(self, service, make_user, make_event):
        event = make_event()
        stranger = make_user("club_representative")
        with pytest.raises(AuthorizationError):
            service.update_event(event["id"], {"title": "Hijacked"}, stranger)

    def test_edit_of_approved_event_returns_to_moderation(self, service, organizer, make_event):
        event = make_event(status=EVENT_APPROVED)
        assert service.update_event(event["id"], {"category": "sport"}, organizer)["status"] == EVENT_PENDING

    def test_admin_edit_keeps_status(self, service, admin, make_event):
        event = make_event(status=EVENT_APPROVED)
        assert service.update_event(event["id"], {"category": "sport"}, admin)["status"] == EVENT_APPROVED

    def test_location_update(self, service, organizer, make_event):
        event = make_event()
        updated = service.update_event(event["id"], {"location": {"name": "Lab", "address": "B2"}}, organizer)
        assert updated["location"] == {"name": "Lab", "address": "B2"}

    def test_location_without_name_is_rejected(self, service, organizer, make_event):
        event = make_event()
        with pytest.raises(ValidationError, match="Location name is required"):
            service.update_event(event["id"], {"location": {"address": "Back door"}}, organizer)
        assert service.get_event_by_id(event["id"])["location"]["name"] == "Main Hall"

    def test_location_must_be_a_mapping(self, service, organizer, make_event):
        event = make_event()
        with pytest.raises(ValidationError, match="Location name is required"):
            service.update_event(event["id"], {"location": "Hall"}, organizer)

    def test_invalid_edit(self, service, organizer, make_event):
        event = make_event()
        with pytest.raises(ValidationError):
            service.update_event(event["id"], {"maxSeats": -1}, organizer)

    def test_unknown_event(self, service, organizer):
        with pytest.raises(NotFoundError):
            service.update_event(404, {"title": "Nothing"}, organizer)


class TestModeration:

    def test_approve(self, service, admin, organizer, make_event, sink):
        event = make_event(status=EVENT_PENDING)
        approved = service.approve_event(event["id"], admin)
        assert approved["status"] == EVENT_APPROVED
        assert sink.received[-1].type == NOTIFY_EVENT_APPROVED
        assert sink.received[-1].user_id == organizer["id"]

    def test_approve_twice(self, service, admin, make_event):
        event = make_event(status=EVENT_PENDING)
        service.approve_event(event["id"], admin)
        with pytest.raises(ValidationError):
            service.approve_event(event["id"], admin)

    def test_reject_stores_reason(self, service, admin, make_event):
        event = make_event(status=EVENT_PENDING)
        rejected = service.reject_event(event["id"], admin, "Clashes with exams")
        assert rejected["status"] == EVENT_REJECTED
        assert rejected["rejectionReason"] == "Clashes with exams"

    def test_reject_without_reason(self, service, admin, make_event):
        event = make_event(status=EVENT_PENDING)
        assert service.reject_event(event["id"], admin)["rejectionReason"] == "No reason provided"

    def test_pending_listing(self, service, make_event):
        make_event(status=EVENT_PENDING)
        make_event()
        assert len(service.get_pending_events()) == 1


class TestDelete:

    def test_owner_deletes_empty_event(self, service, organizer, make_event):
        event = make_event()
        assert service.delete_event(event["id"], organizer) is True
        with pytest.raises(NotFoundError):
            service.get_event_by_id(event["id"])

    def test_registrations_block_owner_delete(self, db, service, organizer, student, make_event):
        event = make_event()
        RegistrationRepository(db).create({"userId": student["id"], "eventId": event["id"]})
        with pytest.raises(ConflictError):
            service.delete_event(event["id"], organizer)

    def test_admin_deletes_and_registrations_cascade(self, db, service, admin, student, make_event):
        event = make_event()
        registrations = RegistrationRepository(db)
        registrations.create({"userId": student["id"], "eventId": event["id"]})
        assert service.delete_event(event["id"], admin) is True
        assert registrations.count_by_event(event["id"]) == 0


class TestReads:

    def test_event_by_id_has_seat_figures(self, db, service, student, make_event):
        event = make_event(maxSeats=10)
        RegistrationRepository(db).create({"userId": student["id"], "eventId": event["id"]})
        found = service.get_event_by_id(event["id"])
        assert found["registrationCount"] == 1
        assert found["availableSeats"] == 9

    def test_get_events_filters(self, service, make_event):
        make_event(category="music", title="Choir")
        make_event(category="sport", title="Football")
        make_event(status=EVENT_PENDING, category="music", title="Draft")
        titles = [e["title"] for e in service.get_events(status=EVENT_APPROVED, category="music")]
        assert titles == ["Choir"]

    def test_events_by_creator(self, service, organizer, make_event):
        make_event()
        make_event()
        assert len(service.get_events_by_creator(organizer["id"])) == 2


def test_send_reminders(db, service, make_event, make_user, sink):
    soon = make_event(days_ahead=0.5)
    later = make_event(days_ahead=5)
    registrations = RegistrationRepository(db)
    attendees = [make_user() for _ in range(2)]
    for user in attendees:
        registrations.create({"userId": user["id"], "eventId": soon["id"]})
    registrations.create({"userId": attendees[0]["id"], "eventId": later["id"]})

    assert service.send_reminders(24) == 2
    reminders = [n for n in sink.received if n.type == NOTIFY_EVENT_REMINDER]
    assert sorted(n.user_id for n in reminders) == sorted(u["id"] for u in attendees)
    assert all(n.related_event_id == soon["id"] for n in reminders)
