"""
handlers/registration_handler.py
---------------------------------
Participation commands: registering, cancelling, feedback, attendance
and guest invitations.
"""

from telegram import Update
from telegram.ext import ContextTypes

from handlers.common import arg_id, format_dt, reports_errors, rest_of, services_of
from models.constants import ATTENDANCE_PRESENT, ATTENDANCE_STATUSES, ROLE_ADMIN, ROLE_CLUB_REPRESENTATIVE
from security.auth import requires_role
from security.rate_limiter import rate_limited
from services.errors import AuthorizationError
from utils.logger import get_logger

logger = get_logger(__name__)


def _check_organizer(event: dict, user: dict) -> None:
    if user["role"] != ROLE_ADMIN and event["createdBy"] != user["id"]:
        raise AuthorizationError("Only the organizer of this event can do that")


@requires_role()
@rate_limited
@reports_errors
async def join_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /join <id> - register for an event."""
    event_id = arg_id(context)
    if event_id is None:
        await update.message.reply_text("⚠️ Usage: /join <event id>")
        return
    services_of(context).registrations.register_for_event(event_id, user["id"])
    await update.message.reply_text(f"🎟️ You are registered for event #{event_id}.")


@requires_role()
@rate_limited
@reports_errors
async def leave_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /leave <id> - cancel a registration."""
    event_id = arg_id(context)
    if event_id is None:
        await update.message.reply_text("⚠️ Usage: /leave <event id>")
        return
    services_of(context).registrations.cancel_registration(event_id, user["id"])
    await update.message.reply_text(f"👋 Registration for event #{event_id} cancelled.")


@requires_role()
@rate_limited
@reports_errors
async def my_events_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /my_events - the user's registrations."""
    registrations = services_of(context).registrations.get_user_registrations(user["id"])
    if not registrations:
        await update.message.reply_text("📭 You are not registered for any event.")
        return
    lines = ["🎟️ Your registrations\n"]
    for r in registrations:
        event = r.get("event")
        if event:
            lines.append(f"• #{event['id']} {event['title']} | {format_dt(event['date'])}")
    await update.message.reply_text("\n".join(lines))


@requires_role()
@rate_limited
@reports_errors
async def feedback_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /feedback <id> <1-5> [comment]."""
    event_id = arg_id(context)
    if event_id is None or len(context.args) < 2 or not (context.args[1].isascii() and context.args[1].isdigit()):
        await update.message.reply_text("⚠️ Usage: /feedback <event id> <1-5> [comment]")
        return
    services_of(context).feedback.submit_feedback(
        event_id, user["id"], rating=int(context.args[1]), comment=rest_of(context, 2) or None
    )
    await update.message.reply_text("⭐ Thanks for your feedback!")


@requires_role(ROLE_CLUB_REPRESENTATIVE, ROLE_ADMIN)
@rate_limited
@reports_errors
async def attend_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """
    Handle /attend <event id> <user id>[,<user id>...] [present|absent].
    Several users are marked at once when separated by commas.
    """
    event_id = arg_id(context)
    if event_id is None or len(context.args) < 2:
        await update.message.reply_text("⚠️ Usage: /attend <event id> <user id>[,<user id>] [present|absent]")
        return
    status = context.args[2].lower() if len(context.args) > 2 else ATTENDANCE_PRESENT
    if status not in ATTENDANCE_STATUSES:
        await update.message.reply_text("⚠️ Status must be present or absent.")
        return
    user_ids = [int(u) for u in context.args[1].split(",") if u.strip().isascii() and u.strip().isdigit()]
    if not user_ids:
        await update.message.reply_text("⚠️ No valid user id given.")
        return

    services = services_of(context)
    _check_organizer(services.events.get_event_by_id(event_id), user)
    result = services.attendance.mark_bulk_attendance(event_id, user_ids, user["id"], status)

    lines = [f"📋 {len(result['success'])} marked {status}."]
    for error in result["errors"]:
        lines.append(f"• user {error['userId']}: {error['error']}")
    await update.message.reply_text("\n".join(lines))


@requires_role(ROLE_CLUB_REPRESENTATIVE, ROLE_ADMIN)
@rate_limited
@reports_errors
async def event_stats_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /event_stats <id> - registrations, attendance and ratings."""
    event_id = arg_id(context)
    if event_id is None:
        await update.message.reply_text("⚠️ Usage: /event_stats <event id>")
        return
    services = services_of(context)
    event = services.events.get_event_by_id(event_id)
    _check_organizer(event, user)
    attendance = services.attendance.get_event_attendance_stats(event_id)
    feedback = services.feedback.get_event_feedback_stats(event_id)
    distribution = " ".join(f"{k}★:{v}" for k, v in feedback["ratingDistribution"].items())
    await update.message.reply_text(
        f"📊 #{event['id']} {event['title']}\n\n"
        f"👥 Registered: {event['registrationCount']}/{event['maxSeats']}\n"
        f"✅ Present: {attendance['present']}  ❌ Absent: {attendance['absent']}  "
        f"❔ Not marked: {attendance['notMarked']}\n"
        f"📈 Attendance rate: {attendance['attendanceRate']}%\n"
        f"⭐ Average rating: {feedback['averageRating']} ({feedback['totalFeedbacks']} reviews)\n"
        f"{distribution}"
    )


@requires_role(ROLE_CLUB_REPRESENTATIVE, ROLE_ADMIN)
@rate_limited
@reports_errors
async def invite_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /invite <event id> <email> <name>."""
    event_id = arg_id(context)
    if event_id is None or len(context.args) < 3:
        await update.message.reply_text("⚠️ Usage: /invite <event id> <email> <name>")
        return
    guest = services_of(context).guests.invite_guest(
        event_id, rest_of(context, 2), context.args[1], user["id"]
    )
    await update.message.reply_text(f"✉️ {guest['email']} invited (guest #{guest['id']}).")


@requires_role(ROLE_CLUB_REPRESENTATIVE, ROLE_ADMIN)
@rate_limited
@reports_errors
async def guests_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /guests <event id> - invitations and their status."""
    event_id = arg_id(context)
    if event_id is None:
        await update.message.reply_text("⚠️ Usage: /guests <event id>")
        return
    guests = services_of(context).guests.get_event_guests(event_id)
    if not guests:
        await update.message.reply_text("📭 No guests invited yet.")
        return
    lines = [f"✉️ Guests of event #{event_id}\n"]
    lines += [f"• #{g['id']} {g['name'] or '-'} <{g['email']}> {g['status']}" for g in guests]
    await update.message.reply_text("\n".join(lines))
