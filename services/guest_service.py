"""
services/guest_service.py
-------------------------
Invitations for people without an account.
"""

from db.connection import ConstraintViolation, Database
from models.constants import (
    EVENT_APPROVED,
    GUEST_CANCELLED,
    GUEST_CONFIRMED,
    GUEST_INVITED,
    LOG_GUEST_INVITED,
    NOTIFY_GUEST_INVITED,
)
from models.notification import Notification
from notifications.hub import NotificationHub
from repositories.event_repo import EventRepository
from repositories.guest_repo import GuestRepository
from services.audit_service import AuditService
from services.errors import ConflictError, NotFoundError, ValidationError, conflict_from
from utils.logger import get_logger
from utils.validators import is_valid_email

logger = get_logger(__name__)


class GuestService:
    """Invites guests and tracks their answer."""

    def __init__(self, db: Database, hub: NotificationHub):
        self.guest_repo = GuestRepository(db)
        self.event_repo = EventRepository(db)
        self.audit = AuditService(db)
        self.hub = hub

    def invite_guest(self, event_id: int, name: str, email: str, inviter_id: int) -> dict:
        event = self.event_repo.find_by_id(event_id)
        if not event:
            raise NotFoundError("Event")
        if event["status"] != EVENT_APPROVED:
            raise ValidationError("You can only invite guests to approved events")
        if not email or not is_valid_email(email.strip()):
            raise ValidationError("Valid email is required")
        email = email.strip().lower()
        if self.guest_repo.find_by_email_and_event(email, event["id"]):
            raise ConflictError("This guest has already been invited to this event")

        try:
            guest = self.guest_repo.create({
                "name": (name or "").strip(),
                "email": email,
                "eventId": event["id"],
                "invitedBy": int(inviter_id),
                "status": GUEST_INVITED,
            })
        except ConstraintViolation as e:
            raise conflict_from(e, "This guest has already been invited to this event") from e

        self.audit.create_log(inviter_id, LOG_GUEST_INVITED, "guest", guest["id"],
                              details={"eventId": event["id"], "guestEmail": email})
        self.hub.notify_guest_invited(event, guest)
        return guest

    def _answer(self, guest_id: int, status: str, verb: str) -> dict:
        guest = self.guest_repo.find_by_id(guest_id)
        if not guest:
            raise NotFoundError("Guest invitation")
        if guest["status"] != GUEST_INVITED:
            raise ValidationError("Invitation has already been processed")

        updated = self.guest_repo.update_status(guest["id"], status)
        event = self.event_repo.find_by_id(guest["eventId"])
        self.hub.notify(Notification(
            user_id=guest["invitedBy"],
            type=NOTIFY_GUEST_INVITED,
            title=f"Guest {verb.capitalize()}",
            message=f'{guest["name"] or guest["email"]} has {verb} the invitation for "{event["title"]}"',
            related_event_id=guest["eventId"],
        ))
        return updated

    def accept_invitation(self, guest_id: int) -> dict:
        return self._answer(guest_id, GUEST_CONFIRMED, "confirmed")

    def decline_invitation(self, guest_id: int) -> dict:
        return self._answer(guest_id, GUEST_CANCELLED, "declined")

    def get_event_guests(self, event_id: int) -> list[dict]:
        if not self.event_repo.find_by_id(event_id):
            raise NotFoundError("Event")
        return self.guest_repo.find_by_event(event_id)

    def get_guest_by_id(self, guest_id: int) -> dict:
        guest = self.guest_repo.find_by_id(guest_id)
        if not guest:
            raise NotFoundError("Guest")
        return guest
