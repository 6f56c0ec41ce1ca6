"""
repositories/event_repo.py
---------------------------
Data access layer for events.

The domain `location` field ({"name", "address"}) is stored in two
columns, location_name and location_address.
"""

from datetime import datetime
from typing import Any, Mapping, Optional

from db.query import Like, Or, compile_page, compile_sort, compile_where, quote_identifier
from models.constants import EVENT_APPROVED, EVENT_PENDING
from repositories.base import BaseRepository
from utils.logger import get_logger

logger = get_logger(__name__)


class EventRepository(BaseRepository):
    """Repository for the events table."""

    table = "events"

    def _to_storage(self, data: Mapping[str, Any]) -> dict:
        data = dict(data)
        location = data.pop("location", None)
        row = super()._to_storage(data)
        if location:
            row["location_name"] = location.get("name", "")
            row["location_address"] = location.get("address") or ""
        return row

    def _from_storage(self, row: Mapping[str, Any]) -> dict:
        record = super()._from_storage(row)
        if "locationName" in record:
            record["location"] = {
                "name": record.pop("locationName"),
                "address": record.pop("locationAddress", None) or "",
            }
        return record

    # ── READ ──────────────────────────────────────────────

    def find_by_creator(self, user_id: int) -> list[dict]:
        return self.find({"createdBy": int(user_id)})

    def find_by_status(self, status: str) -> list[dict]:
        return self.find({"status": status})

    def find_approved_events(self, limit: Optional[int] = None, skip: Optional[int] = None) -> list[dict]:
        """Approved events, soonest first."""
        return self.find({"status": EVENT_APPROVED}, sort={"date": 1}, limit=limit, skip=skip)

    def find_pending_events(self) -> list[dict]:
        """Events awaiting moderation, newest submission first."""
        return self.find({"status": EVENT_PENDING}, sort={"createdAt": -1})

    def find_starting_between(self, start: datetime, end: datetime) -> list[dict]:
        """Approved events whose date falls within [start, end]."""
        return self.find(
            {"status": EVENT_APPROVED, "date": {"$gte": start, "$lte": end}},
            sort={"date": 1},
        )

    def title_exists(self, title: str, exclude_id: Optional[int] = None) -> bool:
        """
        Check whether another event already uses this title.

        Args:
            title: Title to look for (surrounding whitespace ignored).
            exclude_id: Event to leave out, used when renaming an event.
        """
        filter_: dict = {"title": title.strip()}
        if exclude_id:
            filter_["id"] = {"$ne": int(exclude_id)}
        return self.find_one(filter_) is not None

    def find_with_registration_count(
        self,
        filter_: Optional[Mapping[str, Any]] = None,
        sort: Optional[Mapping[str, int]] = None,
        limit: Optional[int] = None,
        skip: Optional[int] = None,
        search: Optional[str] = None,
    ) -> list[dict]:
        """
        Events joined with their live registration count.

        Each record carries ``registrationCount`` and ``availableSeats``.
        ``search`` matches title or description, case-insensitively.
        """
        params: list = []
        conditions = []
        where = compile_where(filter_, params, alias="e")
        if where:
            conditions.append(where)
        if search:
            search_node = Or((
                Like("title", search, case_insensitive=True),
                Like("description", search, case_insensitive=True),
            ))
            conditions.append(compile_where(search_node, params, alias="e"))

        sql = (
            f"SELECT e.*, COUNT(r.\"id\") AS registration_count, "
            f"(e.\"max_seats\" - COUNT(r.\"id\")) AS available_seats "
            f"FROM {quote_identifier(self.table)} e "
            f"LEFT JOIN {quote_identifier('registrations')} r ON e.\"id\" = r.\"event_id\""
        )
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        sql += ' GROUP BY e."id"'
        order = compile_sort(sort, alias="e")
        if order:
            sql += " " + order
        page = compile_page(limit, skip, params)
        if page:
            sql += " " + page

        result = self.db.query(sql, params)
        events = []
        for row in result.rows:
            event = self._from_storage(row)
            event["registrationCount"] = int(event.get("registrationCount") or 0)
            event["availableSeats"] = int(event.get("availableSeats") or 0)
            events.append(event)
        return events
