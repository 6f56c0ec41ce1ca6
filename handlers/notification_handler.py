"""
handlers/notification_handler.py
---------------------------------
Inbox commands (/notifications, /read_all) and admin /broadcast.
"""

from telegram import Update
from telegram.ext import ContextTypes

from handlers.common import format_dt, reports_errors, rest_of, services_of
from models.constants import ROLE_ADMIN
from security.auth import requires_role
from security.rate_limiter import rate_limited

INBOX_SIZE = 10


@requires_role()
@rate_limited
@reports_errors
async def notifications_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /notifications - latest notifications, unread ones flagged."""
    service = services_of(context).notifications
    items = service.get_notifications(user["id"], limit=INBOX_SIZE)
    if not items:
        await update.message.reply_text("📭 No notifications.")
        return
    unread = service.get_unread_count(user["id"])
    lines = [f"🔔 Notifications ({unread} unread)\n"]
    for n in items:
        marker = "🆕" if not n["read"] else "•"
        lines.append(f"{marker} {format_dt(n['createdAt'])} {n['title']}\n   {n['message']}")
    lines.append("\n/read_all to mark everything as read")
    await update.message.reply_text("\n".join(lines))


@requires_role()
@rate_limited
@reports_errors
async def read_all_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /read_all."""
    count = services_of(context).notifications.mark_all_as_read(user["id"])
    await update.message.reply_text(f"✅ {count} notifications marked as read.")


@requires_role(ROLE_ADMIN)
@rate_limited
@reports_errors
async def broadcast_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /broadcast <title> | <message>."""
    title, sep, message = rest_of(context).partition("|")
    if not sep or not title.strip() or not message.strip():
        await update.message.reply_text("⚠️ Usage: /broadcast <title> | <message>")
        return
    result = services_of(context).notifications.broadcast(title.strip(), message.strip())
    await update.message.reply_text(f"📣 Sent to {result['sent']}/{result['total']} users.")
