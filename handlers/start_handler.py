"""
handlers/start_handler.py
--------------------------
Handles /start, /help, /myid and account commands (/signup, /link).
"""

from telegram import Update
from telegram.error import TelegramError
from telegram.ext import ContextTypes

from handlers.common import reports_errors, services_of
from models.constants import ROLE_CLUB_REPRESENTATIVE, ROLE_STUDENT
from security.rate_limiter import rate_limited
from utils.logger import get_logger

logger = get_logger(__name__)

HELP_TEXT = """
🎓 *Student Activities Bot*

*Account*
/signup <email> <password> <name> - create a student account
/signup\\_club <email> <password> <name> - create a club account
/link <email> <password> - link this chat to your account
/myid - show your Telegram ID

*Events*
/events [search] - upcoming approved events
/event <id> - event details
/join <id> - register for an event
/leave <id> - cancel your registration
/my\\_events - your registrations
/feedback <id> <1-5> [comment] - rate a past event
/notifications - your latest notifications
/read\\_all - mark all notifications as read

*Clubs*
/propose Title | Description | YYYY-MM-DD HH:MM | Place | Address | Seats | Category
/edit\\_event <id> field=value | field=value
/delete\\_event <id>
/attend <id> <user id>[,<user id>] [present|absent]
/invite <id> <email> <name>
/guests <id>
/event\\_stats <id>

*Admins*
/pending, /approve <id>, /reject <id> [reason]
/users [search], /set\\_role <user id> <role>
/broadcast <title> | <message>
/stats, /chart, /export [csv|excel|<event id>], /logs [action]
/backup, /backups, /restore <file>
"""


@rate_limited
async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command - greet and show help."""
    user = update.effective_user
    logger.info(f"Telegram user {user.id} ({user.first_name}) started the bot.")
    account = services_of(context).users.get_by_telegram_id(user.id)
    greeting = (
        f"👋 Welcome back, {account['name'] or account['email']}!"
        if account else
        f"👋 Hello {user.first_name}!"
    )
    await update.message.reply_text(greeting + "\n" + HELP_TEXT, parse_mode="Markdown")


@rate_limited
async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command."""
    await update.message.reply_text(HELP_TEXT, parse_mode="Markdown")


@rate_limited
async def myid_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /myid command - show the user's Telegram ID."""
    user = update.effective_user
    await update.message.reply_text(f"🆔 Your Telegram ID: `{user.id}`", parse_mode="Markdown")


async def _forget_credentials(update: Update) -> None:
    # The command text contains a password
    try:
        await update.message.delete()
    except TelegramError as e:
        logger.debug(f"Could not delete credentials message: {e}")


async def _signup(update: Update, context: ContextTypes.DEFAULT_TYPE, role: str) -> None:
    if not context.args or len(context.args) < 3:
        await update.message.reply_text("⚠️ Usage: /signup <email> <password> <name>")
        return

    email, password = context.args[0], context.args[1]
    name = " ".join(context.args[2:])
    await _forget_credentials(update)

    user = services_of(context).auth.register(
        email, password, name, role=role, telegram_id=update.effective_user.id
    )
    await update.effective_chat.send_message(
        f"✅ Account created for {user['email']} ({user['role']}).\nThis chat is now linked to it."
    )


@rate_limited
@reports_errors
async def signup_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /signup <email> <password> <name> - create a student account."""
    await _signup(update, context, ROLE_STUDENT)


@rate_limited
@reports_errors
async def signup_club_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /signup_club - create a club representative account."""
    await _signup(update, context, ROLE_CLUB_REPRESENTATIVE)


@rate_limited
@reports_errors
async def link_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /link <email> <password> - log in and link this Telegram account."""
    if not context.args or len(context.args) < 2:
        await update.message.reply_text("⚠️ Usage: /link <email> <password>")
        return

    email, password = context.args[0], context.args[1]
    await _forget_credentials(update)

    user = services_of(context).auth.login(email, password, telegram_id=update.effective_user.id)
    await update.effective_chat.send_message(
        f"🔗 Linked to {user['email']} ({user['role']})."
    )
