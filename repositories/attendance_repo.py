"""
repositories/attendance_repo.py
--------------------------------
Data access layer for attendance records.
"""

from typing import Optional

from models.constants import ATTENDANCE_ABSENT, ATTENDANCE_PRESENT
from repositories.base import BaseRepository, now


class AttendanceRepository(BaseRepository):
    """Repository for the attendances table."""

    table = "attendances"
    CREATE_TIMESTAMPS = ("markedAt", "createdAt", "updatedAt")

    def find_by_event(self, event_id: int) -> list[dict]:
        return self.find({"eventId": int(event_id)}, sort={"markedAt": 1})

    def find_by_user_and_event(self, user_id: int, event_id: int) -> Optional[dict]:
        return self.find_one({"userId": int(user_id), "eventId": int(event_id)})

    def mark_attendance(self, event_id: int, user_id: int, marked_by: int,
                        status: str = ATTENDANCE_PRESENT) -> dict:
        return self.create({
            "userId": int(user_id),
            "eventId": int(event_id),
            "status": status,
            "markedBy": int(marked_by),
            "markedAt": now(),
        })

    def get_event_attendance_stats(self, event_id: int) -> dict:
        """
        Present/absent counts for an event.

        Returns:
            {'total': int, 'present': int, 'absent': int, 'attendanceRate': float}
            where attendanceRate is a percentage rounded to 2 decimals.
        """
        sql = """
            SELECT
                COUNT(*) AS total,
                SUM(CASE WHEN status = %s THEN 1 ELSE 0 END) AS present,
                SUM(CASE WHEN status = %s THEN 1 ELSE 0 END) AS absent
            FROM attendances
            WHERE event_id = %s
        """
        result = self.db.query(sql, [ATTENDANCE_PRESENT, ATTENDANCE_ABSENT, int(event_id)])
        row = result.rows[0] if result.rows else {}
        total = int(row.get("total") or 0)
        present = int(row.get("present") or 0)
        absent = int(row.get("absent") or 0)
        return {
            "total": total,
            "present": present,
            "absent": absent,
            "attendanceRate": round(present / total * 100, 2) if total else 0.0,
        }
