"""
handlers/event_handler.py
--------------------------
Event browsing, proposal, edition and moderation commands.
Delegates all logic to EventService.
"""

from telegram import Update
from telegram.ext import ContextTypes

from handlers.common import (
    arg_id,
    format_event,
    format_event_line,
    reports_errors,
    rest_of,
    services_of,
)
from models.constants import EVENT_APPROVED, ROLE_ADMIN, ROLE_CLUB_REPRESENTATIVE
from security.auth import requires_role
from security.rate_limiter import rate_limited
from utils.logger import get_logger

logger = get_logger(__name__)

PAGE_SIZE = 10

# Short names accepted by /edit_event
_EDIT_FIELDS = {
    "title": "title",
    "description": "description",
    "date": "date",
    "seats": "maxSeats",
    "category": "category",
    "place": "location",
}


def _parse_proposal(text: str) -> dict | None:
    """'Title | Description | Date | Place | Address | Seats [| Category]' -> event data."""
    parts = [p.strip() for p in text.split("|")]
    if len(parts) < 6:
        return None
    data = {
        "title": parts[0],
        "description": parts[1],
        "date": parts[2],
        "location": {"name": parts[3], "address": parts[4]},
        "maxSeats": parts[5],
    }
    if len(parts) > 6 and parts[6]:
        data["category"] = parts[6]
    return data


@requires_role()
@rate_limited
@reports_errors
async def events_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /events [search] - list upcoming approved events."""
    search = rest_of(context) or None
    events = services_of(context).events.get_events(status=EVENT_APPROVED, search=search, limit=PAGE_SIZE)
    if not events:
        await update.message.reply_text("📭 No events found.")
        return
    lines = ["📅 Upcoming events\n"] + [format_event_line(e) for e in events]
    lines.append("\nUse /event <id> for details and /join <id> to register.")
    await update.message.reply_text("\n".join(lines))


@requires_role()
@rate_limited
@reports_errors
async def event_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /event <id> - show one event."""
    event_id = arg_id(context)
    if event_id is None:
        await update.message.reply_text("⚠️ Usage: /event <id>")
        return
    event = services_of(context).events.get_event_by_id(event_id)
    await update.message.reply_text(format_event(event))


@requires_role(ROLE_CLUB_REPRESENTATIVE, ROLE_ADMIN)
@rate_limited
@reports_errors
async def propose_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """
    Handle /propose - submit an event for approval.

    Format:
        /propose Title | Description | 2026-05-01 18:00 | Place | Address | 50 | music
    """
    data = _parse_proposal(rest_of(context))
    if data is None:
        await update.message.reply_text(
            "⚠️ Usage:\n/propose Title | Description | YYYY-MM-DD HH:MM | Place | Address | Seats | Category"
        )
        return
    event = services_of(context).events.create_event(data, user)
    await update.message.reply_text(f"📨 Event #{event['id']} \"{event['title']}\" submitted for approval.")


@requires_role(ROLE_CLUB_REPRESENTATIVE, ROLE_ADMIN)
@rate_limited
@reports_errors
async def edit_event_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """
    Handle /edit_event <id> field=value | field=value

    Fields: title, description, date, seats, category, place (name; address).
    """
    event_id = arg_id(context)
    if event_id is None or len(context.args) < 2:
        await update.message.reply_text(
            "⚠️ Usage: /edit_event <id> field=value | field=value\n"
            "Fields: title, description, date, seats, category, place"
        )
        return

    data: dict = {}
    for pair in rest_of(context, 1).split("|"):
        key, sep, value = pair.partition("=")
        field = _EDIT_FIELDS.get(key.strip().lower())
        if not sep or not field:
            await update.message.reply_text(f"⚠️ Unknown field: {key.strip()}")
            return
        if field == "location":
            name, _, address = value.partition(";")
            data[field] = {"name": name.strip(), "address": address.strip()}
        else:
            data[field] = value.strip()

    event = services_of(context).events.update_event(event_id, data, user)
    await update.message.reply_text(f"✏️ Event updated.\n\n{format_event(event)}")


@requires_role(ROLE_CLUB_REPRESENTATIVE, ROLE_ADMIN)
@rate_limited
@reports_errors
async def delete_event_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /delete_event <id>."""
    event_id = arg_id(context)
    if event_id is None:
        await update.message.reply_text("⚠️ Usage: /delete_event <id>")
        return
    services_of(context).events.delete_event(event_id, user)
    await update.message.reply_text(f"🗑️ Event #{event_id} deleted.")


@requires_role(ROLE_ADMIN)
@rate_limited
@reports_errors
async def pending_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /pending - events awaiting moderation."""
    events = services_of(context).events.get_pending_events()
    if not events:
        await update.message.reply_text("🎉 Nothing to moderate.")
        return
    lines = ["⏳ Pending events\n"] + [format_event_line(e) for e in events]
    lines.append("\n/approve <id> or /reject <id> [reason]")
    await update.message.reply_text("\n".join(lines))


@requires_role(ROLE_ADMIN)
@rate_limited
@reports_errors
async def approve_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /approve <id>."""
    event_id = arg_id(context)
    if event_id is None:
        await update.message.reply_text("⚠️ Usage: /approve <id>")
        return
    event = services_of(context).events.approve_event(event_id, user)
    await update.message.reply_text(f"✅ \"{event['title']}\" approved.")


@requires_role(ROLE_ADMIN)
@rate_limited
@reports_errors
async def reject_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /reject <id> [reason]."""
    event_id = arg_id(context)
    if event_id is None:
        await update.message.reply_text("⚠️ Usage: /reject <id> [reason]")
        return
    event = services_of(context).events.reject_event(event_id, user, rest_of(context, 1) or None)
    await update.message.reply_text(f"❌ \"{event['title']}\" rejected.")
