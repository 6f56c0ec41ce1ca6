"""
repositories/registration_repo.py
----------------------------------
Data access layer for event registrations.
One registration per (user, event) is guaranteed by a unique constraint.
"""

from typing import Optional

from repositories.base import BaseRepository


class RegistrationRepository(BaseRepository):
    """Repository for the registrations table."""

    table = "registrations"
    CREATE_TIMESTAMPS = ("registeredAt", "createdAt", "updatedAt")

    def find_by_user(self, user_id: int) -> list[dict]:
        return self.find({"userId": int(user_id)}, sort={"registeredAt": -1})

    def find_by_event(self, event_id: int) -> list[dict]:
        return self.find({"eventId": int(event_id)}, sort={"registeredAt": 1})

    def find_by_user_and_event(self, user_id: int, event_id: int) -> Optional[dict]:
        return self.find_one({"userId": int(user_id), "eventId": int(event_id)})

    def count_by_event(self, event_id: int) -> int:
        return self.count({"eventId": int(event_id)})

    def is_registered(self, user_id: int, event_id: int) -> bool:
        return self.find_by_user_and_event(user_id, event_id) is not None
