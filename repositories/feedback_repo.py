"""
repositories/feedback_repo.py
------------------------------
Data access layer for event feedback (rating + comment).
"""

from typing import Optional

from repositories.base import BaseRepository


class FeedbackRepository(BaseRepository):
    """Repository for the feedbacks table."""

    table = "feedbacks"

    def find_by_event(self, event_id: int) -> list[dict]:
        return self.find({"eventId": int(event_id)}, sort={"createdAt": -1})

    def find_by_user(self, user_id: int) -> list[dict]:
        return self.find({"userId": int(user_id)}, sort={"createdAt": -1})

    def find_by_user_and_event(self, user_id: int, event_id: int) -> Optional[dict]:
        return self.find_one({"userId": int(user_id), "eventId": int(event_id)})

    def get_average_rating(self, event_id: int) -> float:
        """Mean of the non-null ratings of an event, 0.0 when there are none."""
        sql = """
            SELECT AVG(rating) AS avg_rating
            FROM feedbacks
            WHERE event_id = %s AND rating IS NOT NULL
        """
        result = self.db.query(sql, [int(event_id)])
        avg = result.rows[0]["avg_rating"] if result.rows else None
        return round(float(avg), 2) if avg is not None else 0.0
