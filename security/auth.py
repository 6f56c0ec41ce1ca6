"""
security/auth.py
-----------------
Role guard for the Telegram bot.
Resolves the account linked to the sender and blocks commands the
account's role is not allowed to run.
"""

from functools import wraps
from typing import Callable

from telegram import Update
from telegram.ext import ContextTypes

from utils.logger import get_logger

logger = get_logger(__name__)


def requires_role(*roles: str):
    """
    Decorator that restricts a handler to linked accounts, optionally of
    specific roles. The resolved user record is passed as a third argument.

    Usage:
        @requires_role("admin")
        async def approve_command(update, context, user):
            ...

    Behavior:
        - Senders without a linked account are told to /signup or /link.
        - With no roles given, any linked account is accepted.
        - Refused attempts are logged.
    """
    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
            sender = update.effective_user
            if not sender:
                return

            services = context.bot_data["services"]
            user = services.users.get_by_telegram_id(sender.id)
            if not user:
                await update.message.reply_text(
                    "🔐 Your Telegram account is not linked yet.\n"
                    "Use /signup to create an account or /link to log in."
                )
                return

            if roles and user["role"] not in roles:
                logger.warning(
                    f"🚫 {func.__name__} refused: user #{user['id']} "
                    f"(role={user['role']}, telegram_id={sender.id})"
                )
                await update.message.reply_text("⛔ You are not allowed to use this command.")
                return

            return await func(update, context, user, *args, **kwargs)

        return wrapper

    return decorator
