"""Tests for EventRepository: location mapping, time windows and the registration join."""

from datetime import datetime, timedelta

from models.constants import EVENT_APPROVED, EVENT_PENDING
from repositories.event_repo import EventRepository
from repositories.registration_repo import RegistrationRepository


def test_location_is_split_and_rebuilt(db, make_event):
    event = make_event(location={"name": "Gym", "address": "Block C"})
    assert event["location"] == {"name": "Gym", "address": "Block C"}
    assert "locationName" not in event

    row = db.query('SELECT location_name, location_address FROM events WHERE id = %s', [event["id"]]).rows[0]
    assert row == {"location_name": "Gym", "location_address": "Block C"}


def test_status_queries(db, make_event):
    make_event(status=EVENT_PENDING)
    approved_late = make_event(days_ahead=10)
    approved_soon = make_event(days_ahead=2)
    repo = EventRepository(db)

    assert len(repo.find_by_status(EVENT_PENDING)) == 1
    assert [e["id"] for e in repo.find_approved_events()] == [approved_soon["id"], approved_late["id"]]
    assert len(repo.find_pending_events()) == 1


def test_find_starting_between(db, make_event):
    soon = make_event(days_ahead=0.5)
    make_event(days_ahead=3)
    make_event(days_ahead=0.5, status=EVENT_PENDING)
    now = datetime.now()
    found = EventRepository(db).find_starting_between(now, now + timedelta(hours=24))
    assert [e["id"] for e in found] == [soon["id"]]


def test_title_exists(db, make_event):
    event = make_event(title="Chess Night")
    repo = EventRepository(db)
    assert repo.title_exists("  Chess Night ")
    assert not repo.title_exists("Chess Night", exclude_id=event["id"])
    assert not repo.title_exists("Poker Night")


def test_registration_counts(db, make_event, make_user):
    busy = make_event(maxSeats=3)
    empty = make_event(days_ahead=9)
    registrations = RegistrationRepository(db)
    for _ in range(2):
        registrations.create({"userId": make_user()["id"], "eventId": busy["id"]})

    events = {e["id"]: e for e in EventRepository(db).find_with_registration_count({"status": EVENT_APPROVED})}
    assert events[busy["id"]]["registrationCount"] == 2
    assert events[busy["id"]]["availableSeats"] == 1
    assert events[empty["id"]]["registrationCount"] == 0
    assert events[empty["id"]]["availableSeats"] == 50
    assert events[busy["id"]]["location"]["name"] == "Main Hall"


def test_registration_count_search_and_page(db, make_event):
    make_event(title="Jazz Evening", days_ahead=1)
    make_event(title="Rock Show", description="Loud JAZZ-free guitars", days_ahead=2)
    make_event(title="Book Club", days_ahead=3)
    repo = EventRepository(db)

    found = repo.find_with_registration_count(search="jazz", sort={"date": 1})
    assert [e["title"] for e in found] == ["Jazz Evening", "Rock Show"]

    page = repo.find_with_registration_count(sort={"date": 1}, limit=1, skip=1)
    assert [e["title"] for e in page] == ["Rock Show"]
