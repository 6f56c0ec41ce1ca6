"""
handlers/common.py
------------------
Helpers shared by the command handlers: error replies, argument
parsing and message formatting.
"""

from datetime import datetime
from functools import wraps
from typing import Callable, Optional

from telegram import Update
from telegram.ext import ContextTypes

from services.container import Services
from services.errors import AppError
from utils.logger import get_logger

logger = get_logger(__name__)

_STATUS_ICONS = {
    "pending": "⏳",
    "approved": "✅",
    "rejected": "❌",
    "cancelled": "🚫",
}


def services_of(context: ContextTypes.DEFAULT_TYPE) -> Services:
    return context.bot_data["services"]


def reports_errors(func: Callable):
    """
    Reply with the message of any AppError raised by the handler; log
    anything else and reply with a generic apology.
    """
    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
        try:
            return await func(update, context, *args, **kwargs)
        except AppError as e:
            await update.effective_chat.send_message(f"⚠️ {e.message}")
        except Exception as e:
            logger.exception(f"{func.__name__} failed: {e}")
            await update.effective_chat.send_message("❌ Something went wrong. Please try again later.")

    return wrapper


def arg_id(context: ContextTypes.DEFAULT_TYPE, index: int = 0) -> Optional[int]:
    """Positive integer from the command arguments, or None."""
    if not context.args or len(context.args) <= index:
        return None
    value = context.args[index].lstrip("#")
    return int(value) if value.isascii() and value.isdigit() and int(value) > 0 else None


def rest_of(context: ContextTypes.DEFAULT_TYPE, start: int = 0) -> str:
    """Arguments from ``start`` on, joined back into one string."""
    return " ".join((context.args or [])[start:]).strip()


def format_dt(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


def format_event_line(event: dict) -> str:
    icon = _STATUS_ICONS.get(event["status"], "•")
    line = f"{icon} #{event['id']} {event['title']} | {format_dt(event['date'])}"
    if "availableSeats" in event:
        line += f" | {event['availableSeats']}/{event['maxSeats']} seats left"
    return line


def format_event(event: dict) -> str:
    location = event.get("location") or {}
    lines = [
        f"{_STATUS_ICONS.get(event['status'], '•')} #{event['id']} {event['title']}",
        "",
        event["description"],
        "",
        f"📅 {format_dt(event['date'])}",
        f"📍 {location.get('name', '-')}" + (f", {location['address']}" if location.get("address") else ""),
        f"🏷️ {event.get('category') or 'general'}",
        f"🪑 {event['maxSeats']} seats",
    ]
    if "registrationCount" in event:
        lines.append(f"👥 {event['registrationCount']} registered, {event['availableSeats']} left")
    if event["status"] == "rejected" and event.get("rejectionReason"):
        lines.append(f"📝 Rejected: {event['rejectionReason']}")
    return "\n".join(lines)
