"""
config.py
---------
Central configuration module. Loads all environment variables
from the .env file and exposes them as typed constants.
"""

import os
from dotenv import load_dotenv

load_dotenv()


# ── Telegram ──────────────────────────────────────────────
TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")
# Chat that receives broadcasts and notifications for users without a linked account
TELEGRAM_NOTIFY_CHAT_ID: str = os.getenv("TELEGRAM_NOTIFY_CHAT_ID", "")

# ── PostgreSQL ────────────────────────────────────────────
DB_HOST: str = os.getenv("DB_HOST", "localhost")
DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
DB_NAME: str = os.getenv("DB_NAME", "student_activities")
DB_USER: str = os.getenv("DB_USER", "activities_user")
DB_PASS: str = os.getenv("DB_PASS", "")

DATABASE_URL: str = os.getenv(
    "DATABASE_URL",
    f"postgresql://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)

DB_POOL_MIN: int = int(os.getenv("DB_POOL_MIN", "1"))
DB_POOL_MAX: int = int(os.getenv("DB_POOL_MAX", "10"))

# ── Security ──────────────────────────────────────────────
BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "10"))

# Accounts registered with one of these emails are created as admins
_raw_admins = os.getenv("ADMIN_EMAILS", "")
ADMIN_EMAILS: list[str] = (
    [e.strip().lower() for e in _raw_admins.split(",") if e.strip()]
    if _raw_admins
    else []
)

# ── Rate Limiting ─────────────────────────────────────────
RATE_LIMIT_MESSAGES: int = int(os.getenv("RATE_LIMIT_MESSAGES", "30"))
RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

# ── Backups ───────────────────────────────────────────────
BACKUP_DIR: str = os.getenv(
    "BACKUP_DIR", os.path.join(os.path.dirname(os.path.abspath(__file__)), "backups")
)
# 0 = Monday ... 6 = Sunday
BACKUP_WEEKDAY: int = int(os.getenv("BACKUP_WEEKDAY", "6"))
BACKUP_HOUR: int = int(os.getenv("BACKUP_HOUR", "0"))

# ── Scheduling ────────────────────────────────────────────
EVENT_REMINDER_HOURS: int = int(os.getenv("EVENT_REMINDER_HOURS", "24"))
EVENT_REMINDER_HOUR: int = int(os.getenv("EVENT_REMINDER_HOUR", "9"))

# ── Logging ───────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
