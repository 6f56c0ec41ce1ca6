"""
repositories/log_repo.py
-------------------------
Data access layer for the audit trail.
"""

import json
from typing import Any, Mapping, Optional

from repositories.base import BaseRepository
from utils.logger import get_logger

logger = get_logger(__name__)


class LogRepository(BaseRepository):
    """Repository for the logs table. Entries are append-only."""

    table = "logs"
    CREATE_TIMESTAMPS = ("timestamp",)
    UPDATE_TIMESTAMP = None

    def _to_storage(self, data: Mapping[str, Any]) -> dict:
        row = super()._to_storage(data)
        if "details" in row and row["details"] is not None:
            row["details"] = json.dumps(row["details"], default=str)
        return row

    def _from_storage(self, row: Mapping[str, Any]) -> dict:
        record = super()._from_storage(row)
        details = record.get("details")
        if isinstance(details, str):
            try:
                details = json.loads(details)
            except ValueError:
                logger.warning(f"Unreadable details on log #{record.get('id')}")
                details = {}
        record["details"] = details if details is not None else {}
        return record

    def find_by_user(self, user_id: int, limit: Optional[int] = None,
                     skip: Optional[int] = None) -> list[dict]:
        return self.find({"userId": int(user_id)}, sort={"timestamp": -1}, limit=limit, skip=skip)

    def find_by_action(self, action: str, limit: Optional[int] = None,
                       skip: Optional[int] = None) -> list[dict]:
        return self.find({"action": action}, sort={"timestamp": -1}, limit=limit, skip=skip)
