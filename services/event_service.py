"""
services/event_service.py
-------------------------
Business logic for the event lifecycle: proposal, edition, moderation
(approve / reject), deletion, listing and reminders.
"""

from datetime import datetime, timedelta
from typing import Optional

from db.connection import Database
from models.constants import (
    EVENT_APPROVED,
    EVENT_PENDING,
    EVENT_REJECTED,
    LOG_EVENT_APPROVED,
    LOG_EVENT_CREATED,
    LOG_EVENT_DELETED,
    LOG_EVENT_REJECTED,
    LOG_EVENT_UPDATED,
    ROLE_ADMIN,
)
from notifications.hub import NotificationHub
from repositories.event_repo import EventRepository
from repositories.registration_repo import RegistrationRepository
from services.audit_service import AuditService
from services.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from utils.logger import get_logger
from utils.validators import parse_datetime, sanitize_input, validate_event_data

logger = get_logger(__name__)

_EDITABLE = ("title", "description", "date", "location", "maxSeats", "category")


class EventService:
    """Manages events on behalf of organizers and admins."""

    def __init__(self, db: Database, hub: NotificationHub):
        self.event_repo = EventRepository(db)
        self.registration_repo = RegistrationRepository(db)
        self.audit = AuditService(db)
        self.hub = hub

    def _get_or_404(self, event_id: int) -> dict:
        event = self.event_repo.find_by_id(event_id)
        if not event:
            raise NotFoundError("Event")
        return event

    @staticmethod
    def _check_owner(event: dict, user: dict, action: str) -> None:
        if user["role"] != ROLE_ADMIN and event["createdBy"] != user["id"]:
            raise AuthorizationError(f"You can only {action} your own events")

    # ── CREATE ────────────────────────────────────────────

    def create_event(self, data: dict, user: dict) -> dict:
        """
        Submit a new event for approval.

        Args:
            data: {'title', 'description', 'date', 'location': {'name', 'address'},
                   'maxSeats', 'category'}
            user: The submitting user.

        Returns:
            The stored event, status 'pending'.
        """
        data = sanitize_input(data)
        errors = validate_event_data(data)
        if errors:
            raise ValidationError(", ".join(errors))
        if self.event_repo.title_exists(data["title"]):
            raise ConflictError("An event with this title already exists")

        location = data["location"]
        event = self.event_repo.create({
            "title": data["title"].strip(),
            "description": data["description"].strip(),
            "date": parse_datetime(data["date"]),
            "location": {
                "name": str(location["name"]).strip(),
                "address": str(location.get("address") or "").strip(),
            },
            "maxSeats": int(data["maxSeats"]),
            "status": EVENT_PENDING,
            "createdBy": user["id"],
            "category": data.get("category") or "general",
        })

        self.audit.create_log(user["id"], LOG_EVENT_CREATED, "event", event["id"])
        self.hub.notify_event_submitted(event, user["id"])
        return event

    # ── UPDATE ────────────────────────────────────────────

    def update_event(self, event_id: int, data: dict, user: dict) -> dict:
        """
        Edit an event. Organizers may only edit their own events; a
        non-admin edit of an approved event sends it back to moderation.
        """
        event = self._get_or_404(event_id)
        self._check_owner(event, user, "update")

        data = {k: v for k, v in sanitize_input(data).items() if k in _EDITABLE and v not in (None, "")}

        if any(k in data for k in ("title", "description", "date", "location", "maxSeats")):
            merged = {field: data.get(field, event.get(field)) for field in _EDITABLE}
            errors = validate_event_data(merged)
            if errors:
                raise ValidationError(", ".join(errors))

        if "title" in data and data["title"].strip() != event["title"]:
            if self.event_repo.title_exists(data["title"], exclude_id=event["id"]):
                raise ConflictError("An event with this title already exists")

        update: dict = {}
        if "title" in data:
            update["title"] = data["title"].strip()
        if "description" in data:
            update["description"] = data["description"].strip()
        if "date" in data:
            update["date"] = parse_datetime(data["date"])
        if "location" in data:
            location = data["location"]
            update["location"] = {
                "name": str(location["name"]).strip(),
                "address": str(location.get("address") or "").strip(),
            }
        if "maxSeats" in data:
            update["maxSeats"] = int(data["maxSeats"])
        if "category" in data:
            update["category"] = data["category"]

        if event["status"] == EVENT_APPROVED and user["role"] != ROLE_ADMIN:
            update["status"] = EVENT_PENDING

        updated = self.event_repo.update_by_id(event["id"], update)
        if updated is None:
            raise NotFoundError("Event")

        self.audit.create_log(user["id"], LOG_EVENT_UPDATED, "event", event["id"])
        self.hub.notify_event_updated(updated, event["createdBy"])
        return updated

    # ── DELETE ────────────────────────────────────────────

    def delete_event(self, event_id: int, user: dict) -> bool:
        event = self._get_or_404(event_id)
        self._check_owner(event, user, "delete")

        if user["role"] != ROLE_ADMIN and self.registration_repo.count_by_event(event["id"]) > 0:
            raise ConflictError("Cannot delete event with existing registrations")

        deleted = self.event_repo.delete_by_id(event["id"])
        if deleted:
            self.audit.create_log(user["id"], LOG_EVENT_DELETED, "event", event["id"],
                                  details={"title": event["title"]})
        return deleted

    # ── MODERATION ────────────────────────────────────────

    def approve_event(self, event_id: int, admin: dict) -> dict:
        event = self._get_or_404(event_id)
        if event["status"] != EVENT_PENDING:
            raise ValidationError("Only pending events can be approved")

        updated = self.event_repo.update_by_id(event["id"], {"status": EVENT_APPROVED})
        self.audit.create_log(admin["id"], LOG_EVENT_APPROVED, "event", event["id"])
        self.hub.notify_event_approved(updated, event["createdBy"])
        return updated

    def reject_event(self, event_id: int, admin: dict, reason: Optional[str] = None) -> dict:
        event = self._get_or_404(event_id)
        if event["status"] != EVENT_PENDING:
            raise ValidationError("Only pending events can be rejected")

        updated = self.event_repo.update_by_id(event["id"], {
            "status": EVENT_REJECTED,
            "rejectionReason": reason or "No reason provided",
        })
        self.audit.create_log(admin["id"], LOG_EVENT_REJECTED, "event", event["id"],
                              details={"reason": reason})
        self.hub.notify_event_rejected(updated, event["createdBy"], reason)
        return updated

    # ── READ ──────────────────────────────────────────────

    def get_events(self, status: Optional[str] = None, category: Optional[str] = None,
                   search: Optional[str] = None, limit: Optional[int] = None,
                   skip: Optional[int] = None) -> list[dict]:
        """Events with live registration counts, soonest first."""
        filter_: dict = {}
        if status:
            filter_["status"] = status
        if category:
            filter_["category"] = category
        return self.event_repo.find_with_registration_count(
            filter_, sort={"date": 1}, limit=limit, skip=skip, search=search,
        )

    def get_event_by_id(self, event_id: int) -> dict:
        event = self._get_or_404(event_id)
        registrations = self.registration_repo.count_by_event(event["id"])
        event["registrationCount"] = registrations
        event["availableSeats"] = event["maxSeats"] - registrations
        return event

    def get_pending_events(self) -> list[dict]:
        return self.event_repo.find_pending_events()

    def get_events_by_creator(self, user_id: int) -> list[dict]:
        return self.event_repo.find_by_creator(user_id)

    # ── REMINDERS ─────────────────────────────────────────

    def send_reminders(self, hours_ahead: int = 24, now: Optional[datetime] = None) -> int:
        """
        Remind every registered user of approved events starting soon.

        Returns:
            Number of reminders published.
        """
        start = now or datetime.now()
        events = self.event_repo.find_starting_between(start, start + timedelta(hours=hours_ahead))
        sent = 0
        for event in events:
            for registration in self.registration_repo.find_by_event(event["id"]):
                self.hub.notify_event_reminder(event, registration["userId"])
                sent += 1
        logger.info(f"Sent {sent} reminders for {len(events)} upcoming events")
        return sent
