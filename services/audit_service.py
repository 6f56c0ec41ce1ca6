"""
services/audit_service.py
-------------------------
Audit trail: records sensitive actions and lets admins query them.
"""

from typing import Any, Optional

from db.connection import Database
from repositories.log_repo import LogRepository
from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_LOG_LIMIT = 100


class AuditService:
    """Writes and reads audit log entries."""

    def __init__(self, db: Database):
        self.repo = LogRepository(db)

    def create_log(
        self,
        user_id: Optional[int],
        action: str,
        resource: Optional[str] = None,
        resource_id: Any = None,
        details: Optional[dict] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = "telegram",
    ) -> dict:
        entry = self.repo.create({
            "userId": user_id,
            "action": action,
            "resource": resource,
            "resourceId": str(resource_id) if resource_id is not None else None,
            "details": details,
            "ipAddress": ip_address,
            "userAgent": user_agent,
        })
        logger.info(f"Audit: user={user_id} action={action} {resource or ''} {resource_id or ''}".rstrip())
        return entry

    def get_logs(
        self,
        user_id: Optional[int] = None,
        action: Optional[str] = None,
        limit: int = DEFAULT_LOG_LIMIT,
        skip: int = 0,
    ) -> list[dict]:
        """
        Most recent log entries, optionally filtered by user and/or action.

        Args:
            user_id: Only entries made by this user.
            action: Only entries with this action (see LOG_* constants).
            limit: Maximum entries returned (default 100).
            skip: Entries to skip for pagination.
        """
        filter_: dict = {}
        if user_id:
            filter_["userId"] = int(user_id)
        if action:
            filter_["action"] = action
        return self.repo.find(filter_, sort={"timestamp": -1}, limit=limit or DEFAULT_LOG_LIMIT, skip=skip)

    def get_logs_by_user(self, user_id: int, limit: int = DEFAULT_LOG_LIMIT) -> list[dict]:
        return self.repo.find_by_user(user_id, limit=limit)

    def get_logs_by_action(self, action: str, limit: int = DEFAULT_LOG_LIMIT) -> list[dict]:
        return self.repo.find_by_action(action, limit=limit)
