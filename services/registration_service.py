"""
services/registration_service.py
--------------------------------
Registering students for events and cancelling registrations.
"""

from datetime import datetime

from db.connection import ConstraintViolation, Database
from models.constants import EVENT_APPROVED, LOG_REGISTRATION_CANCELLED, LOG_REGISTRATION_CREATED
from notifications.hub import NotificationHub
from repositories.event_repo import EventRepository
from repositories.registration_repo import RegistrationRepository
from repositories.user_repo import UserRepository
from services.audit_service import AuditService
from services.auth_service import strip_password
from services.errors import ConflictError, NotFoundError, ValidationError, conflict_from
from utils.logger import get_logger

logger = get_logger(__name__)


class RegistrationService:
    """Seat reservations for approved events."""

    def __init__(self, db: Database, hub: NotificationHub):
        self.registration_repo = RegistrationRepository(db)
        self.event_repo = EventRepository(db)
        self.user_repo = UserRepository(db)
        self.audit = AuditService(db)
        self.hub = hub

    def register_for_event(self, event_id: int, user_id: int) -> dict:
        """
        Register a user for an event.

        Raises:
            NotFoundError: Unknown event.
            ValidationError: Event not approved, or already past.
            ConflictError: Already registered (including a concurrent
                duplicate caught by the unique constraint) or no seats left.
        """
        event = self.event_repo.find_by_id(event_id)
        if not event:
            raise NotFoundError("Event")
        if event["status"] != EVENT_APPROVED:
            raise ValidationError("You can only register for approved events")
        if event["date"] < datetime.now():
            raise ValidationError("Cannot register for past events")
        if self.registration_repo.is_registered(user_id, event["id"]):
            raise ConflictError("You are already registered for this event")
        if self.registration_repo.count_by_event(event["id"]) >= event["maxSeats"]:
            raise ConflictError("Event is full. No seats available")

        try:
            registration = self.registration_repo.create({
                "userId": int(user_id),
                "eventId": event["id"],
            })
        except ConstraintViolation as e:
            raise conflict_from(e, "You are already registered for this event") from e

        self.audit.create_log(user_id, LOG_REGISTRATION_CREATED, "registration", registration["id"],
                              details={"eventId": event["id"]})
        self.hub.notify_new_registration(event, event["createdBy"])
        self.hub.notify_registration_confirmed(event, int(user_id))
        return registration

    def cancel_registration(self, event_id: int, user_id: int) -> bool:
        event = self.event_repo.find_by_id(event_id)
        if not event:
            raise NotFoundError("Event")
        registration = self.registration_repo.find_by_user_and_event(user_id, event["id"])
        if not registration:
            raise NotFoundError("Registration")
        if event["date"] < datetime.now():
            raise ValidationError("Cannot cancel registration for past events")

        deleted = self.registration_repo.delete_by_id(registration["id"])
        if deleted:
            self.audit.create_log(user_id, LOG_REGISTRATION_CANCELLED, "registration", registration["id"],
                                  details={"eventId": event["id"]})
            self.hub.notify_registration_cancelled(event, int(user_id))
        return deleted

    def get_user_registrations(self, user_id: int) -> list[dict]:
        """A user's registrations, each with its event attached."""
        registrations = self.registration_repo.find_by_user(user_id)
        for registration in registrations:
            registration["event"] = self.event_repo.find_by_id(registration["eventId"])
        return registrations

    def get_event_registrations(self, event_id: int) -> list[dict]:
        """An event's registrations, each with its user attached."""
        if not self.event_repo.find_by_id(event_id):
            raise NotFoundError("Event")
        registrations = self.registration_repo.find_by_event(event_id)
        for registration in registrations:
            registration["user"] = strip_password(self.user_repo.find_by_id(registration["userId"]))
        return registrations

    def is_registered(self, event_id: int, user_id: int) -> bool:
        return self.registration_repo.is_registered(user_id, event_id)
