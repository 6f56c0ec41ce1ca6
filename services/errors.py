"""
services/errors.py
------------------
Application error taxonomy. Each error carries the HTTP-style status
code of the category it belongs to; the bot surface replies with the
message of any AppError it catches.
"""

from db.connection import ConstraintViolation


class AppError(Exception):
    """Base class for expected, user-facing failures."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    status_code = 400


class AuthenticationError(AppError):
    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message)


class AuthorizationError(AppError):
    status_code = 403

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")
        self.resource = resource


class ConflictError(AppError):
    status_code = 409


def conflict_from(exc: ConstraintViolation, message: str) -> AppError:
    """
    Translate a storage constraint violation into an application error.

    Unique violations become ConflictError with ``message``; a missing
    referenced row becomes a ValidationError.
    """
    if exc.kind == "unique":
        return ConflictError(message)
    if exc.kind == "foreign_key":
        return ValidationError("Referenced record does not exist")
    if exc.kind in ("check", "not_null"):
        return ValidationError("Invalid data")
    return AppError(str(exc))
