"""
services/user_service.py
------------------------
User administration: listing, searching, role changes and deletion.
"""

from typing import Optional

from db.connection import Database
from models.constants import ROLES
from repositories.event_repo import EventRepository
from repositories.user_repo import UserRepository
from services.auth_service import strip_password
from services.errors import NotFoundError, ValidationError
from utils.logger import get_logger

logger = get_logger(__name__)


class UserService:
    """Manages user accounts on behalf of admins."""

    def __init__(self, db: Database):
        self.user_repo = UserRepository(db)
        self.event_repo = EventRepository(db)

    def list_users(self, role: Optional[str] = None, search: Optional[str] = None,
                   limit: Optional[int] = None, skip: Optional[int] = None) -> dict:
        """
        List users, optionally filtered by role and a name/email search.

        Returns:
            {'users': [...], 'count': len(users), 'total': matching users overall}
        """
        filter_: dict = {}
        if role:
            filter_["role"] = role
        if search:
            filter_["$or"] = [
                {"name": {"$regex": search, "$options": "i"}},
                {"email": {"$regex": search, "$options": "i"}},
            ]
        users = self.user_repo.find(filter_, sort={"createdAt": -1}, limit=limit, skip=skip)
        total = self.user_repo.count(filter_)
        return {
            "users": [strip_password(u) for u in users],
            "count": len(users),
            "total": total,
        }

    def get_user(self, user_id: int) -> dict:
        user = self.user_repo.find_by_id(user_id)
        if not user:
            raise NotFoundError("User")
        return strip_password(user)

    def get_by_telegram_id(self, telegram_id: int) -> Optional[dict]:
        return strip_password(self.user_repo.find_by_telegram_id(telegram_id))

    def update_user(self, user_id: int, name: Optional[str] = None,
                    role: Optional[str] = None) -> dict:
        """Change a user's display name and/or role."""
        if not self.user_repo.find_by_id(user_id):
            raise NotFoundError("User")

        data: dict = {}
        if name is not None:
            if not name.strip():
                raise ValidationError("Name cannot be empty")
            data["name"] = name.strip()
        if role is not None:
            if role not in ROLES:
                raise ValidationError(f"Role must be one of: {', '.join(ROLES)}")
            data["role"] = role

        user = self.user_repo.update_by_id(user_id, data)
        if data.get("role"):
            logger.info(f"User #{user_id} role set to {data['role']}")
        return strip_password(user)

    def delete_user(self, user_id: int) -> bool:
        """
        Delete a user account.

        Raises:
            NotFoundError: Unknown user.
            ValidationError: The user still owns events.
        """
        if not self.user_repo.find_by_id(user_id):
            raise NotFoundError("User")
        if self.event_repo.count({"createdBy": int(user_id)}) > 0:
            raise ValidationError("Cannot delete a user who has created events")
        return self.user_repo.delete_by_id(user_id)
