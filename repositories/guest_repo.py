"""
repositories/guest_repo.py
---------------------------
Data access layer for guest invitations.
"""

from typing import Optional

from repositories.base import BaseRepository


class GuestRepository(BaseRepository):
    """Repository for the guests table."""

    table = "guests"

    def find_by_event(self, event_id: int) -> list[dict]:
        return self.find({"eventId": int(event_id)}, sort={"createdAt": 1})

    def find_by_email_and_event(self, email: str, event_id: int) -> Optional[dict]:
        return self.find_one({"email": email.strip().lower(), "eventId": int(event_id)})

    def find_by_status(self, status: str) -> list[dict]:
        return self.find({"status": status})

    def update_status(self, guest_id: int, status: str) -> Optional[dict]:
        return self.update_by_id(guest_id, {"status": status})
