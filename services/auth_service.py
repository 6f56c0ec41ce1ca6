"""
services/auth_service.py
------------------------
Account registration and login.
Passwords are stored as bcrypt hashes and never leave this service.
"""

from typing import Optional

import bcrypt

from config import ADMIN_EMAILS, BCRYPT_ROUNDS
from db.connection import ConstraintViolation, Database
from models.constants import LOG_LOGIN, ROLE_ADMIN, ROLE_CLUB_REPRESENTATIVE, ROLE_STUDENT, ROLES
from repositories.user_repo import UserRepository
from services.audit_service import AuditService
from services.errors import AuthenticationError, ConflictError, ValidationError, conflict_from
from utils.logger import get_logger
from utils.validators import is_valid_email, validate_password

logger = get_logger(__name__)

SELF_SERVICE_ROLES = (ROLE_STUDENT, ROLE_CLUB_REPRESENTATIVE)


def strip_password(user: Optional[dict]) -> Optional[dict]:
    """Copy of a user record without its password hash."""
    if user is None:
        return None
    return {k: v for k, v in user.items() if k != "password"}


class AuthService:
    """Handles sign-up, credential checks and Telegram account linking."""

    def __init__(self, db: Database, rounds: int = BCRYPT_ROUNDS,
                 admin_emails: Optional[list[str]] = None):
        self.user_repo = UserRepository(db)
        self.audit = AuditService(db)
        self.rounds = rounds
        self.admin_emails = ADMIN_EMAILS if admin_emails is None else admin_emails

    def hash_password(self, password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(self.rounds)).decode("utf-8")

    @staticmethod
    def check_password(password: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            # Malformed hash in storage
            return False

    def register(self, email: str, password: str, name: str = "",
                 role: str = ROLE_STUDENT, telegram_id: Optional[int] = None) -> dict:
        """
        Create a new account.

        Args:
            email: Login email (stored lower-cased).
            password: Plain password, checked against the strength rules.
            name: Display name.
            role: Requested role; emails listed in ADMIN_EMAILS become admins.
            telegram_id: Telegram account to link right away.

        Returns:
            The created user without its password.

        Raises:
            ValidationError: Bad email, weak password or unknown role.
            ConflictError: The email is already registered.
        """
        if not email or not is_valid_email(email.strip()):
            raise ValidationError("Valid email is required")
        problem = validate_password(password)
        if problem:
            raise ValidationError(problem)
        if role not in ROLES:
            raise ValidationError(f"Role must be one of: {', '.join(ROLES)}")

        email = email.strip().lower()
        if email in self.admin_emails:
            role = ROLE_ADMIN
        if self.user_repo.exists_by_email(email):
            raise ConflictError("User with this email already exists")

        data = {
            "email": email,
            "password": self.hash_password(password),
            "name": (name or "").strip(),
            "role": role,
        }
        if telegram_id is not None:
            previous = self.user_repo.find_by_telegram_id(telegram_id)
            if previous:
                self.user_repo.update_by_id(previous["id"], {"telegramId": None})
            data["telegramId"] = int(telegram_id)

        try:
            user = self.user_repo.create(data)
        except ConstraintViolation as e:
            raise conflict_from(e, "User with this email already exists") from e

        logger.info(f"Registered user #{user['id']} ({role})")
        return strip_password(user)

    def login(self, email: str, password: str, telegram_id: Optional[int] = None) -> dict:
        """
        Verify credentials; optionally link the Telegram account used to log in.

        Raises:
            ValidationError: Missing email or password.
            AuthenticationError: Unknown email or wrong password.
        """
        if not email or not is_valid_email(email.strip()):
            raise ValidationError("Valid email is required")
        if not password:
            raise ValidationError("Password is required")

        user = self.user_repo.find_by_email(email)
        if not user or not self.check_password(password, user["password"]):
            logger.warning(f"Failed login for {email.strip().lower()}")
            raise AuthenticationError("Invalid email or password")

        if telegram_id is not None and user.get("telegramId") != telegram_id:
            user = self.user_repo.link_telegram(user["id"], telegram_id)

        self.audit.create_log(user["id"], LOG_LOGIN)
        return strip_password(user)

    def get_user_by_id(self, user_id: int) -> Optional[dict]:
        return strip_password(self.user_repo.find_by_id(user_id))
