"""
utils/validators.py
-------------------
Business validation rules shared by the services: email format,
password strength, event payloads and date parsing.
"""

import re
from datetime import datetime
from typing import Any, Optional

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def sanitize_input(value: Any) -> Any:
    """Drop operator keys (``$...``) from user-supplied mappings, recursively."""
    if isinstance(value, dict):
        return {
            k: sanitize_input(v) for k, v in value.items()
            if not str(k).startswith("$")
        }
    if isinstance(value, list):
        return [sanitize_input(v) for v in value]
    return value


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and bool(_EMAIL_RE.match(email))


def validate_password(password: Optional[str]) -> Optional[str]:
    """
    Check password strength.

    Returns:
        None when the password is acceptable, otherwise the reason.
    """
    if not password or len(password) < 8:
        return "Password must be at least 8 characters long"
    if not re.search(r"[A-Z]", password):
        return "Password must contain at least one uppercase letter"
    if not re.search(r"[a-z]", password):
        return "Password must contain at least one lowercase letter"
    if not re.search(r"[0-9]", password):
        return "Password must contain at least one number"
    return None


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Accept a datetime or an ISO-8601 string ("2026-05-01 18:30", "2026-05-01T18:30:00Z").
    Aware values are converted to naive local time. Returns None if unparseable.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _to_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and re.fullmatch(r"\s*-?\d+\s*", value):
        return int(value)
    return None


def validate_event_data(data: dict, now: Optional[datetime] = None) -> list[str]:
    """
    Validate an event payload.

    Args:
        data: {'title', 'description', 'date', 'location': {'name', ...}, 'maxSeats'}
        now: Reference time for the "not in the past" rule.

    Returns:
        List of error messages; empty when the payload is valid.
    """
    errors = []
    now = now or datetime.now()

    title = (data.get("title") or "").strip()
    if len(title) < 3:
        errors.append("Title must be at least 3 characters long")

    description = (data.get("description") or "").strip()
    if len(description) < 10:
        errors.append("Description must be at least 10 characters long")

    date = parse_datetime(data.get("date"))
    if date is None:
        errors.append("Valid date is required")
    elif date < now:
        errors.append("Event date cannot be in the past")

    location = data.get("location") or {}
    if not isinstance(location, dict) or not str(location.get("name") or "").strip():
        errors.append("Location name is required")

    seats = data.get("maxSeats")
    seats_int = _to_int(seats)
    if seats in (None, "") or (seats_int is not None and seats_int < 1):
        errors.append("Maximum seats must be at least 1")
    elif seats_int is None:
        errors.append("Maximum seats must be an integer")

    return errors
