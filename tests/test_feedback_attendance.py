"""Tests for FeedbackService and AttendanceService."""

import pytest

from models.constants import ATTENDANCE_ABSENT, ATTENDANCE_PRESENT
from repositories.registration_repo import RegistrationRepository
from services.attendance_service import AttendanceService
from services.errors import ConflictError, NotFoundError, ValidationError
from services.feedback_service import FeedbackService


@pytest.fixture
def register(db):
    repo = RegistrationRepository(db)

    def _register(user, event):
        return repo.create({"userId": user["id"], "eventId": event["id"]})

    return _register


class TestFeedback:

    @pytest.fixture
    def service(self, db):
        return FeedbackService(db)

    def test_submit_after_event(self, service, student, make_event, register):
        event = make_event(days_ahead=-1)
        register(student, event)
        feedback = service.submit_feedback(event["id"], student["id"], rating=4, comment="  Great  ")
        assert feedback["rating"] == 4
        assert feedback["comment"] == "Great"

    def test_not_registered(self, service, student, make_event):
        event = make_event(days_ahead=-1)
        with pytest.raises(ValidationError, match="registered for"):
            service.submit_feedback(event["id"], student["id"], rating=5)

    def test_event_not_over(self, service, student, make_event, register):
        event = make_event(days_ahead=3)
        register(student, event)
        with pytest.raises(ValidationError, match="after the event"):
            service.submit_feedback(event["id"], student["id"], rating=5)

    @pytest.mark.parametrize("rating", [0, 6, True, "5", 2.5])
    def test_rating_bounds(self, service, student, make_event, register, rating):
        event = make_event(days_ahead=-1)
        register(student, event)
        with pytest.raises(ValidationError, match="between 1 and 5"):
            service.submit_feedback(event["id"], student["id"], rating=rating)

    def test_comment_only(self, service, student, make_event, register):
        event = make_event(days_ahead=-1)
        register(student, event)
        assert service.submit_feedback(event["id"], student["id"], comment="Nice")["rating"] is None

    def test_single_feedback_per_event(self, service, student, make_event, register):
        event = make_event(days_ahead=-1)
        register(student, event)
        service.submit_feedback(event["id"], student["id"], rating=3)
        with pytest.raises(ConflictError):
            service.submit_feedback(event["id"], student["id"], rating=4)

    def test_stats(self, service, make_user, make_event, register):
        event = make_event(days_ahead=-1)
        for rating in (5, 4, 4, None):
            user = make_user()
            register(user, event)
            service.submit_feedback(event["id"], user["id"], rating=rating, comment="ok")

        stats = service.get_event_feedback_stats(event["id"])
        assert stats["totalFeedbacks"] == 4
        assert stats["averageRating"] == pytest.approx(4.33)
        assert stats["ratingDistribution"] == {1: 0, 2: 0, 3: 0, 4: 2, 5: 1}

    def test_stats_without_feedback(self, service, make_event):
        event = make_event(days_ahead=-1)
        stats = service.get_event_feedback_stats(event["id"])
        assert stats["averageRating"] == 0.0
        assert stats["totalFeedbacks"] == 0

    def test_unknown_event(self, service):
        with pytest.raises(NotFoundError):
            service.get_event_feedbacks(77)


class TestAttendance:

    @pytest.fixture
    def service(self, db):
        return AttendanceService(db)

    def test_mark_registered_user(self, service, student, organizer, make_event, register):
        event = make_event()
        register(student, event)
        attendance = service.mark_attendance(event["id"], student["id"], organizer["id"])
        assert attendance["status"] == ATTENDANCE_PRESENT
        assert attendance["markedBy"] == organizer["id"]
        assert attendance["markedAt"] is not None

    def test_unregistered_user(self, service, student, organizer, make_event):
        event = make_event()
        with pytest.raises(ValidationError, match="must be registered"):
            service.mark_attendance(event["id"], student["id"], organizer["id"])

    def test_mark_twice(self, service, student, organizer, make_event, register):
        event = make_event()
        register(student, event)
        service.mark_attendance(event["id"], student["id"], organizer["id"])
        with pytest.raises(ConflictError):
            service.mark_attendance(event["id"], student["id"], organizer["id"], ATTENDANCE_ABSENT)

    def test_invalid_status(self, service, student, organizer, make_event, register):
        event = make_event()
        register(student, event)
        with pytest.raises(ValidationError):
            service.mark_attendance(event["id"], student["id"], organizer["id"], "late")

    def test_bulk_collects_errors(self, service, make_user, organizer, make_event, register):
        event = make_event()
        registered = [make_user() for _ in range(2)]
        for user in registered:
            register(user, event)
        outsider = make_user()

        result = service.mark_bulk_attendance(
            event["id"], [u["id"] for u in registered] + [outsider["id"]], organizer["id"]
        )
        assert len(result["success"]) == 2
        assert result["errors"] == [{
            "userId": outsider["id"],
            "error": "User must be registered for the event to mark attendance",
        }]

    def test_stats(self, service, make_user, organizer, make_event, register):
        event = make_event()
        users = [make_user() for _ in range(4)]
        for user in users:
            register(user, event)
        service.mark_attendance(event["id"], users[0]["id"], organizer["id"], ATTENDANCE_PRESENT)
        service.mark_attendance(event["id"], users[1]["id"], organizer["id"], ATTENDANCE_PRESENT)
        service.mark_attendance(event["id"], users[2]["id"], organizer["id"], ATTENDANCE_ABSENT)

        stats = service.get_event_attendance_stats(event["id"])
        assert stats == {
            "total": 3,
            "present": 2,
            "absent": 1,
            "attendanceRate": 66.67,
            "totalRegistrations": 4,
            "notMarked": 1,
        }

    def test_stats_for_unmarked_event(self, service, make_event):
        stats = service.get_event_attendance_stats(make_event()["id"])
        assert stats["total"] == 0
        assert stats["attendanceRate"] == 0.0
