"""
main.py
-------
Entry point for the Student Activities Telegram bot.

Responsibilities:
    - Initialize the database connection pool and schema.
    - Build the notification hub and the services around them.
    - Configure and start the Telegram bot with all handlers.
    - Schedule event reminders and the weekly database backup.
"""

from datetime import time as dt_time

from telegram import BotCommand
from telegram.ext import Application, CommandHandler, ContextTypes

from config import (
    BACKUP_HOUR,
    BACKUP_WEEKDAY,
    DATABASE_URL,
    DB_POOL_MAX,
    DB_POOL_MIN,
    EVENT_REMINDER_HOUR,
    EVENT_REMINDER_HOURS,
    TELEGRAM_BOT_TOKEN,
)
from db.connection import Database
from db.init_db import create_tables
from handlers import admin_handler, event_handler, notification_handler, registration_handler, start_handler
from notifications import build_notification_hub
from services.container import build_services
from utils.logger import get_logger

logger = get_logger(__name__)

COMMANDS = {
    "start": start_handler.start_command,
    "help": start_handler.help_command,
    "myid": start_handler.myid_command,
    "signup": start_handler.signup_command,
    "signup_club": start_handler.signup_club_command,
    "link": start_handler.link_command,
    "events": event_handler.events_command,
    "event": event_handler.event_command,
    "propose": event_handler.propose_command,
    "edit_event": event_handler.edit_event_command,
    "delete_event": event_handler.delete_event_command,
    "pending": event_handler.pending_command,
    "approve": event_handler.approve_command,
    "reject": event_handler.reject_command,
    "join": registration_handler.join_command,
    "leave": registration_handler.leave_command,
    "my_events": registration_handler.my_events_command,
    "feedback": registration_handler.feedback_command,
    "attend": registration_handler.attend_command,
    "event_stats": registration_handler.event_stats_command,
    "invite": registration_handler.invite_command,
    "guests": registration_handler.guests_command,
    "notifications": notification_handler.notifications_command,
    "read_all": notification_handler.read_all_command,
    "broadcast": notification_handler.broadcast_command,
    "users": admin_handler.users_command,
    "set_role": admin_handler.set_role_command,
    "stats": admin_handler.stats_command,
    "chart": admin_handler.chart_command,
    "export": admin_handler.export_command,
    "logs": admin_handler.logs_command,
    "backup": admin_handler.backup_command,
    "backups": admin_handler.backups_command,
    "restore": admin_handler.restore_command,
}


async def send_event_reminders(context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Scheduled job: remind registered users of events starting soon.
    Runs daily at EVENT_REMINDER_HOUR.
    """
    try:
        context.bot_data["services"].events.send_reminders(EVENT_REMINDER_HOURS)
    except Exception as e:
        logger.error(f"Event reminders failed: {e}")


async def weekly_backup(context: ContextTypes.DEFAULT_TYPE) -> None:
    """Scheduled job: dump the database once a week."""
    try:
        backup = context.bot_data["services"].backups.create_backup()
        logger.info(f"Weekly backup written to {backup['path']}")
    except Exception as e:
        logger.error(f"Weekly backup failed: {e}")


async def set_bot_commands(application: Application) -> None:
    """Register bot commands menu in Telegram on startup."""
    commands = [
        BotCommand("start", "🚀 Start the bot"),
        BotCommand("help", "📖 Show help"),
        BotCommand("events", "📅 Upcoming events"),
        BotCommand("event", "🔎 Event details"),
        BotCommand("join", "🎟️ Register for an event"),
        BotCommand("leave", "👋 Cancel a registration"),
        BotCommand("my_events", "🗓️ My registrations"),
        BotCommand("feedback", "⭐ Rate an event"),
        BotCommand("notifications", "🔔 My notifications"),
        BotCommand("propose", "📨 Propose an event"),
        BotCommand("signup", "📝 Create an account"),
        BotCommand("link", "🔗 Link your account"),
        BotCommand("myid", "🆔 Your Telegram ID"),
    ]
    await application.bot.set_my_commands(commands)
    logger.info("Bot commands menu registered successfully.")


def main() -> None:
    """Initialize and run the bot."""

    # ── 1. Database setup ─────────────────────────────────
    logger.info("Initializing database...")
    db = Database(DATABASE_URL, DB_POOL_MIN, DB_POOL_MAX).open()
    create_tables(db)

    # ── 2. Services ───────────────────────────────────────
    hub = build_notification_hub(db)
    services = build_services(db, hub)

    # ── 3. Build the Telegram application ─────────────────
    logger.info("Starting Telegram bot...")
    app = Application.builder().token(TELEGRAM_BOT_TOKEN).post_init(set_bot_commands).build()
    app.bot_data["services"] = services

    # ── 4. Register command handlers ──────────────────────
    for name, callback in COMMANDS.items():
        app.add_handler(CommandHandler(name, callback))

    # ── 5. Schedule jobs ──────────────────────────────────
    job_queue = app.job_queue
    if job_queue:
        job_queue.run_daily(
            send_event_reminders,
            time=dt_time(hour=EVENT_REMINDER_HOUR, minute=0),
            name="event_reminders",
        )
        # The job queue counts days from Sunday = 0
        job_queue.run_daily(
            weekly_backup,
            time=dt_time(hour=BACKUP_HOUR, minute=0),
            days=((BACKUP_WEEKDAY + 1) % 7,),
            name="weekly_backup",
        )
        logger.info(
            f"Scheduled reminders ({EVENT_REMINDER_HOUR:02d}:00) + weekly backup "
            f"(weekday {BACKUP_WEEKDAY}, {BACKUP_HOUR:02d}:00)"
        )
    else:
        logger.warning("Job queue unavailable; reminders and backups are not scheduled.")

    # ── 6. Start polling ──────────────────────────────────
    logger.info("🚀 Student Activities bot is running! Press Ctrl+C to stop.")
    try:
        app.run_polling(drop_pending_updates=True, allowed_updates=["message"])
    finally:
        # ── 7. Cleanup on shutdown ────────────────────────
        hub.close()
        db.close()
        logger.info("Student Activities bot stopped.")


if __name__ == "__main__":
    main()
