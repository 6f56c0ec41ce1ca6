"""
services/export_service.py
---------------------------
Generates CSV and Excel participation reports.
"""

import io
from typing import Optional

import pandas as pd

from db.connection import Database
from repositories.attendance_repo import AttendanceRepository
from repositories.event_repo import EventRepository
from repositories.feedback_repo import FeedbackRepository
from repositories.registration_repo import RegistrationRepository
from repositories.user_repo import UserRepository
from services.errors import NotFoundError
from utils.logger import get_logger

logger = get_logger(__name__)


class ExportService:
    """Builds downloadable reports over events and their participants."""

    def __init__(self, db: Database):
        self.event_repo = EventRepository(db)
        self.registration_repo = RegistrationRepository(db)
        self.attendance_repo = AttendanceRepository(db)
        self.feedback_repo = FeedbackRepository(db)
        self.user_repo = UserRepository(db)

    def participation_frame(self, status: Optional[str] = None) -> pd.DataFrame:
        """One row per event with seats, registrations, attendance and rating."""
        filter_ = {"status": status} if status else None
        events = self.event_repo.find_with_registration_count(filter_, sort={"date": 1})

        data = []
        for e in events:
            attendance = self.attendance_repo.get_event_attendance_stats(e["id"])
            data.append({
                "ID": e["id"],
                "Title": e["title"],
                "Date": e["date"].strftime("%Y-%m-%d %H:%M"),
                "Status": e["status"],
                "Category": e.get("category") or "general",
                "Location": e["location"]["name"] if e.get("location") else "",
                "Seats": e["maxSeats"],
                "Registrations": e["registrationCount"],
                "Available": e["availableSeats"],
                "Present": attendance["present"],
                "Absent": attendance["absent"],
                "Average rating": self.feedback_repo.get_average_rating(e["id"]),
            })
        return pd.DataFrame(data)

    def export_participation_csv(self, status: Optional[str] = None) -> io.BytesIO:
        """
        Export the participation report as CSV.

        Args:
            status: Only events with this status (all events when None).

        Returns:
            A BytesIO buffer containing the CSV data.
        """
        df = self.participation_frame(status)
        buffer = io.BytesIO()
        df.to_csv(buffer, index=False, encoding="utf-8-sig")
        buffer.seek(0)
        logger.info(f"Exported {len(df)} events as CSV")
        return buffer

    def export_participation_excel(self, status: Optional[str] = None) -> io.BytesIO:
        """
        Export the participation report as an Excel (.xlsx) file,
        with a per-status summary sheet.
        """
        df = self.participation_frame(status)

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name="Events", index=False)

            if not df.empty:
                summary = (
                    df.groupby("Status")
                    .agg(Events=("ID", "count"), Seats=("Seats", "sum"),
                         Registrations=("Registrations", "sum"))
                    .reset_index()
                )
                summary.to_excel(writer, sheet_name="Summary", index=False)

        buffer.seek(0)
        logger.info(f"Exported {len(df)} events as Excel")
        return buffer

    def export_event_participants_csv(self, event_id: int) -> io.BytesIO:
        """Registered participants of one event with their attendance status."""
        event = self.event_repo.find_by_id(event_id)
        if not event:
            raise NotFoundError("Event")

        attendance = {a["userId"]: a["status"] for a in self.attendance_repo.find_by_event(event["id"])}
        data = []
        for r in self.registration_repo.find_by_event(event["id"]):
            user = self.user_repo.find_by_id(r["userId"]) or {}
            data.append({
                "Name": user.get("name", ""),
                "Email": user.get("email", ""),
                "Registered at": r["registeredAt"].strftime("%Y-%m-%d %H:%M"),
                "Attendance": attendance.get(r["userId"], "not marked"),
            })

        df = pd.DataFrame(data, columns=["Name", "Email", "Registered at", "Attendance"])
        buffer = io.BytesIO()
        df.to_csv(buffer, index=False, encoding="utf-8-sig")
        buffer.seek(0)
        logger.info(f"Exported {len(df)} participants of event {event_id}")
        return buffer
