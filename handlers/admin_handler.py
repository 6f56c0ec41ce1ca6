"""
handlers/admin_handler.py
--------------------------
Admin-only commands: user management, dashboard, charts, exports,
audit logs and database backups.
"""

from datetime import date

from telegram import Update
from telegram.ext import ContextTypes

from handlers.common import arg_id, format_dt, reports_errors, rest_of, services_of
from models.constants import ROLE_ADMIN, ROLES
from security.auth import requires_role
from security.rate_limiter import rate_limited
from utils.logger import get_logger

logger = get_logger(__name__)

PAGE_SIZE = 20


# ── Users ─────────────────────────────────────────────────

@requires_role(ROLE_ADMIN)
@rate_limited
@reports_errors
async def users_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /users [search] - list accounts, newest first."""
    result = services_of(context).users.list_users(search=rest_of(context) or None, limit=PAGE_SIZE)
    if not result["users"]:
        await update.message.reply_text("📭 No users found.")
        return
    lines = [f"👥 Users ({result['count']} of {result['total']})\n"]
    for u in result["users"]:
        linked = "🔗" if u.get("telegramId") else "  "
        lines.append(f"{linked} #{u['id']} {u['name'] or '-'} <{u['email']}> {u['role']}")
    await update.message.reply_text("\n".join(lines))


@requires_role(ROLE_ADMIN)
@rate_limited
@reports_errors
async def set_role_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /set_role <user id> <role>."""
    user_id = arg_id(context)
    if user_id is None or len(context.args) < 2:
        await update.message.reply_text(f"⚠️ Usage: /set_role <user id> <{'|'.join(ROLES)}>")
        return
    updated = services_of(context).users.update_user(user_id, role=context.args[1].lower())
    await update.message.reply_text(f"✅ {updated['email']} is now {updated['role']}.")


# ── Dashboard ─────────────────────────────────────────────

@requires_role(ROLE_ADMIN)
@rate_limited
@reports_errors
async def stats_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /stats - dashboard figures."""
    analytics = services_of(context).analytics
    stats = analytics.get_dashboard_stats()
    participation = analytics.get_participation_stats()

    by_role = "\n".join(f"   • {role}: {n}" for role, n in stats["users"]["byRole"].items())
    by_status = "\n".join(f"   • {status}: {n}" for status, n in stats["events"]["byStatus"].items())
    popular = "\n".join(
        f"   {i}. {e['title']} ({e['registrations']}/{e['maxSeats']})"
        for i, e in enumerate(participation["mostPopularEvents"], 1)
    ) or "   -"

    await update.message.reply_text(
        f"📊 Dashboard\n\n"
        f"👥 Users: {stats['users']['total']}\n{by_role}\n\n"
        f"📅 Events: {stats['events']['total']}\n{by_status}\n\n"
        f"🎟️ Registrations: {stats['registrations']['total']}\n"
        f"🪑 Seats used: {stats['participation']['totalRegistered']}/{stats['participation']['totalSeats']} "
        f"({stats['participation']['participationRate']}%)\n\n"
        f"🔥 Most popular\n{popular}"
    )


@requires_role(ROLE_ADMIN)
@rate_limited
@reports_errors
async def chart_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /chart - events by status and users by role."""
    charts = services_of(context).charts
    await update.message.reply_text("📊 Generating charts...")

    sent = False
    pie = charts.events_by_status_pie()
    if pie:
        await update.message.reply_photo(photo=pie, caption="📊 Events by status")
        sent = True
    bar = charts.users_by_role_bar()
    if bar:
        await update.message.reply_photo(photo=bar, caption="👥 Users by role")
        sent = True
    if not sent:
        await update.message.reply_text("📭 Nothing to chart yet.")


@requires_role(ROLE_ADMIN)
@rate_limited
@reports_errors
async def export_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """
    Handle /export [csv|excel] - participation report per event.
    /export <event id> sends the participant list of one event.
    """
    export = services_of(context).export
    stamp = date.today().isoformat()

    event_id = arg_id(context)
    if event_id is not None:
        buffer = export.export_event_participants_csv(event_id)
        await update.message.reply_document(
            document=buffer, filename=f"event_{event_id}_participants.csv",
            caption=f"🎟️ Participants of event #{event_id}",
        )
        return

    fmt = (context.args[0].lower() if context.args else "excel")
    if fmt not in ("csv", "excel"):
        await update.message.reply_text("⚠️ Usage: /export [csv|excel|<event id>]")
        return

    await update.message.reply_text(f"📄 Preparing {fmt.upper()} report...")
    if fmt == "csv":
        buffer = export.export_participation_csv()
        filename = f"participation_{stamp}.csv"
    else:
        buffer = export.export_participation_excel()
        filename = f"participation_{stamp}.xlsx"
    await update.message.reply_document(document=buffer, filename=filename, caption="📊 Participation report")


@requires_role(ROLE_ADMIN)
@rate_limited
@reports_errors
async def logs_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /logs [action] - latest audit entries."""
    action = context.args[0] if context.args else None
    logs = services_of(context).audit.get_logs(action=action, limit=PAGE_SIZE)
    if not logs:
        await update.message.reply_text("📭 No log entries.")
        return
    lines = ["🧾 Audit log\n"]
    for entry in logs:
        who = f"user #{entry['userId']}" if entry.get("userId") else "system"
        target = f"{entry['resource']} {entry['resourceId']}" if entry.get("resourceId") else entry["resource"]
        lines.append(f"• {format_dt(entry['timestamp'])} {entry['action']} {target} ({who})")
    await update.message.reply_text("\n".join(lines))


# ── Backups ───────────────────────────────────────────────

@requires_role(ROLE_ADMIN)
@rate_limited
@reports_errors
async def backup_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /backup - dump the database now."""
    await update.message.reply_text("💾 Creating backup...")
    backup = services_of(context).backups.create_backup(user["id"])
    await update.message.reply_text(
        f"✅ Backup saved: {backup['fileName']} ({backup['size'] // 1024} KB, {backup['method']})"
    )


@requires_role(ROLE_ADMIN)
@rate_limited
@reports_errors
async def backups_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /backups - list available backup files."""
    backups = services_of(context).backups.list_backups()
    if not backups:
        await update.message.reply_text("📭 No backups yet. Use /backup to create one.")
        return
    lines = ["💾 Backups\n"]
    lines += [f"• {b['fileName']} ({b['size'] // 1024} KB)" for b in backups[:PAGE_SIZE]]
    lines.append("\n/restore <file> to restore one")
    await update.message.reply_text("\n".join(lines))


@requires_role(ROLE_ADMIN)
@rate_limited
@reports_errors
async def restore_command(update: Update, context: ContextTypes.DEFAULT_TYPE, user: dict) -> None:
    """Handle /restore <file> - replace the database content with a backup."""
    name = rest_of(context)
    if not name:
        await update.message.reply_text("⚠️ Usage: /restore <file>")
        return
    await update.message.reply_text(f"♻️ Restoring {name}...")
    result = services_of(context).backups.restore_backup(name, user["id"])
    await update.message.reply_text(f"✅ Database restored from {result['fileName']} ({result['method']}).")
