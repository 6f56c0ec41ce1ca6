"""
services/attendance_service.py
------------------------------
Check-in tracking for registered participants.
"""

from db.connection import ConstraintViolation, Database
from models.constants import ATTENDANCE_PRESENT, ATTENDANCE_STATUSES, LOG_ATTENDANCE_MARKED
from repositories.attendance_repo import AttendanceRepository
from repositories.event_repo import EventRepository
from repositories.registration_repo import RegistrationRepository
from services.audit_service import AuditService
from services.errors import AppError, ConflictError, NotFoundError, ValidationError, conflict_from
from utils.logger import get_logger

logger = get_logger(__name__)


class AttendanceService:
    """Marks and reports attendance."""

    def __init__(self, db: Database):
        self.attendance_repo = AttendanceRepository(db)
        self.event_repo = EventRepository(db)
        self.registration_repo = RegistrationRepository(db)
        self.audit = AuditService(db)

    def _get_event(self, event_id: int) -> dict:
        event = self.event_repo.find_by_id(event_id)
        if not event:
            raise NotFoundError("Event")
        return event

    def mark_attendance(self, event_id: int, user_id: int, marker_id: int,
                        status: str = ATTENDANCE_PRESENT) -> dict:
        event = self._get_event(event_id)
        if not self.registration_repo.is_registered(user_id, event["id"]):
            raise ValidationError("User must be registered for the event to mark attendance")
        if self.attendance_repo.find_by_user_and_event(user_id, event["id"]):
            raise ConflictError("Attendance has already been marked for this user")
        if status not in ATTENDANCE_STATUSES:
            raise ValidationError('Status must be "present" or "absent"')

        try:
            attendance = self.attendance_repo.mark_attendance(event["id"], user_id, marker_id, status)
        except ConstraintViolation as e:
            raise conflict_from(e, "Attendance has already been marked for this user") from e

        self.audit.create_log(marker_id, LOG_ATTENDANCE_MARKED, "attendance", attendance["id"],
                              details={"eventId": event["id"], "userId": int(user_id), "status": status})
        return attendance

    def mark_bulk_attendance(self, event_id: int, user_ids: list[int], marker_id: int,
                             status: str = ATTENDANCE_PRESENT) -> dict:
        """
        Mark several users at once; per-user failures are collected, not raised.

        Returns:
            {'success': [attendance, ...], 'errors': [{'userId', 'error'}, ...]}
        """
        self._get_event(event_id)
        results: dict = {"success": [], "errors": []}
        for user_id in user_ids:
            try:
                results["success"].append(self.mark_attendance(event_id, user_id, marker_id, status))
            except AppError as e:
                results["errors"].append({"userId": user_id, "error": e.message})
        logger.info(
            f"Bulk attendance for event {event_id}: "
            f"{len(results['success'])} marked, {len(results['errors'])} failed"
        )
        return results

    def get_event_attendance(self, event_id: int) -> list[dict]:
        self._get_event(event_id)
        return self.attendance_repo.find_by_event(event_id)

    def get_event_attendance_stats(self, event_id: int) -> dict:
        """Attendance counts plus how many registered users were never marked."""
        event = self._get_event(event_id)
        stats = self.attendance_repo.get_event_attendance_stats(event["id"])
        registrations = self.registration_repo.count_by_event(event["id"])
        stats["totalRegistrations"] = registrations
        stats["notMarked"] = registrations - stats["total"]
        return stats
