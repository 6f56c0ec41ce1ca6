"""
services/analytics_service.py
-----------------------------
Admin dashboard figures: users per role, events per status, seat usage.
"""

from datetime import datetime

from db.connection import Database
from models.constants import EVENT_APPROVED, EVENT_STATUSES, ROLE_ADMIN, ROLE_CLUB_REPRESENTATIVE, ROLE_STUDENT, ROLES
from repositories.event_repo import EventRepository
from repositories.registration_repo import RegistrationRepository
from repositories.user_repo import UserRepository


class AnalyticsService:
    """Aggregated statistics across users, events and registrations."""

    def __init__(self, db: Database):
        self.user_repo = UserRepository(db)
        self.event_repo = EventRepository(db)
        self.registration_repo = RegistrationRepository(db)

    def get_dashboard_stats(self) -> dict:
        users_by_role = {role: self.user_repo.count({"role": role}) for role in ROLES}
        events_by_status = {status: self.event_repo.count({"status": status}) for status in EVENT_STATUSES}

        approved = self.event_repo.find_with_registration_count({"status": EVENT_APPROVED})
        total_seats = sum(e["maxSeats"] for e in approved)
        total_registered = sum(e["registrationCount"] for e in approved)

        return {
            "users": {
                "total": self.user_repo.count(),
                "byRole": users_by_role,
                "breakdown": {
                    "students": users_by_role[ROLE_STUDENT],
                    "clubRepresentatives": users_by_role[ROLE_CLUB_REPRESENTATIVE],
                    "admins": users_by_role[ROLE_ADMIN],
                },
            },
            "events": {
                "total": self.event_repo.count(),
                "byStatus": events_by_status,
            },
            "registrations": {"total": self.registration_repo.count()},
            "participation": {
                "totalSeats": total_seats,
                "totalRegistered": total_registered,
                "participationRate": round(total_registered / total_seats * 100, 2) if total_seats else 0.0,
            },
        }

    def get_events_stats(self) -> dict:
        events = self.event_repo.find()
        now = datetime.now()
        stats: dict = {"total": len(events), "byStatus": {}, "byCategory": {}, "upcoming": 0, "past": 0}
        for event in events:
            stats["byStatus"][event["status"]] = stats["byStatus"].get(event["status"], 0) + 1
            category = event.get("category") or "general"
            stats["byCategory"][category] = stats["byCategory"].get(category, 0) + 1
            if event["date"] > now:
                stats["upcoming"] += 1
            else:
                stats["past"] += 1
        return stats

    def get_participation_stats(self, top: int = 5) -> dict:
        """Seat usage over approved events and the ``top`` most popular ones."""
        events = self.event_repo.find_with_registration_count({"status": EVENT_APPROVED})
        total_registrations = sum(e["registrationCount"] for e in events)
        popular = sorted(events, key=lambda e: e["registrationCount"], reverse=True)[:top]
        return {
            "totalEvents": len(events),
            "totalSeats": sum(e["maxSeats"] for e in events),
            "totalRegistrations": total_registrations,
            "averageRegistrationsPerEvent": round(total_registrations / len(events), 2) if events else 0.0,
            "mostPopularEvents": [
                {
                    "eventId": e["id"],
                    "title": e["title"],
                    "registrations": e["registrationCount"],
                    "maxSeats": e["maxSeats"],
                }
                for e in popular
            ],
        }
