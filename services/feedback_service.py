"""
services/feedback_service.py
----------------------------
Post-event ratings and comments.
"""

from datetime import datetime
from typing import Optional

from db.connection import ConstraintViolation, Database
from models.constants import LOG_FEEDBACK_SUBMITTED
from repositories.event_repo import EventRepository
from repositories.feedback_repo import FeedbackRepository
from repositories.registration_repo import RegistrationRepository
from services.audit_service import AuditService
from services.errors import ConflictError, NotFoundError, ValidationError, conflict_from
from utils.logger import get_logger

logger = get_logger(__name__)


class FeedbackService:
    """Collects and summarizes participant feedback."""

    def __init__(self, db: Database):
        self.feedback_repo = FeedbackRepository(db)
        self.event_repo = EventRepository(db)
        self.registration_repo = RegistrationRepository(db)
        self.audit = AuditService(db)

    def _get_event(self, event_id: int) -> dict:
        event = self.event_repo.find_by_id(event_id)
        if not event:
            raise NotFoundError("Event")
        return event

    def submit_feedback(self, event_id: int, user_id: int, rating: Optional[int] = None,
                        comment: Optional[str] = None) -> dict:
        """
        Leave feedback on an event the user registered for, once it happened.

        Raises:
            NotFoundError: Unknown event.
            ValidationError: Not registered, event not over yet, or rating out of 1..5.
            ConflictError: Feedback already submitted.
        """
        event = self._get_event(event_id)
        if not self.registration_repo.is_registered(user_id, event["id"]):
            raise ValidationError("You can only provide feedback for events you registered for")
        if event["date"] > datetime.now():
            raise ValidationError("You can only provide feedback after the event has occurred")
        if self.feedback_repo.find_by_user_and_event(user_id, event["id"]):
            raise ConflictError("You have already submitted feedback for this event")
        if rating is not None and (
            isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5
        ):
            raise ValidationError("Rating must be between 1 and 5")

        try:
            feedback = self.feedback_repo.create({
                "userId": int(user_id),
                "eventId": event["id"],
                "rating": rating,
                "comment": (comment or "").strip() or None,
            })
        except ConstraintViolation as e:
            raise conflict_from(e, "You have already submitted feedback for this event") from e

        self.audit.create_log(user_id, LOG_FEEDBACK_SUBMITTED, "feedback", feedback["id"],
                              details={"eventId": event["id"], "rating": rating})
        return feedback

    def get_event_feedbacks(self, event_id: int) -> list[dict]:
        self._get_event(event_id)
        return self.feedback_repo.find_by_event(event_id)

    def get_user_feedbacks(self, user_id: int) -> list[dict]:
        return self.feedback_repo.find_by_user(user_id)

    def get_event_feedback_stats(self, event_id: int) -> dict:
        """
        Returns:
            {'totalFeedbacks': int, 'averageRating': float,
             'ratingDistribution': {1: n, 2: n, 3: n, 4: n, 5: n}}
        """
        self._get_event(event_id)
        feedbacks = self.feedback_repo.find_by_event(event_id)
        distribution = {rating: 0 for rating in range(1, 6)}
        for feedback in feedbacks:
            if feedback.get("rating"):
                distribution[feedback["rating"]] += 1
        return {
            "totalFeedbacks": len(feedbacks),
            "averageRating": self.feedback_repo.get_average_rating(event_id),
            "ratingDistribution": distribution,
        }
