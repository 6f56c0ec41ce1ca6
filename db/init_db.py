"""
db/init_db.py
-------------
Creates the database schema (tables) if they do not already exist.
Run this module directly to initialize a fresh database:
    python -m db.init_db

Uniqueness (one registration / attendance / feedback per user and event,
one invitation per email and event) and referential rules are enforced
here, by the storage engine, not by application code.
"""

from config import DATABASE_URL
from db.connection import Database
from utils.logger import get_logger

logger = get_logger(__name__)

# Order matters: referenced tables first, and `TABLES` is also the order
# used by backups when rows are dumped and reloaded.
TABLES: tuple[str, ...] = (
    "users",
    "events",
    "registrations",
    "attendances",
    "feedbacks",
    "guests",
    "notifications",
    "logs",
)

SCHEMA_SQL = """
-- Users: students, club representatives, admins and guests
CREATE TABLE IF NOT EXISTS users (
    id              SERIAL PRIMARY KEY,
    email           VARCHAR(255) NOT NULL UNIQUE,
    password        VARCHAR(255) NOT NULL,
    name            VARCHAR(255) NOT NULL,
    role            VARCHAR(30) NOT NULL DEFAULT 'student'
                    CHECK (role IN ('student', 'club_representative', 'admin', 'guest')),
    telegram_id     BIGINT UNIQUE,
    created_at      TIMESTAMP NOT NULL DEFAULT NOW(),
    updated_at      TIMESTAMP NOT NULL DEFAULT NOW()
);

-- Events: proposed by club representatives, moderated by admins
CREATE TABLE IF NOT EXISTS events (
    id                  SERIAL PRIMARY KEY,
    title               VARCHAR(255) NOT NULL,
    description         TEXT NOT NULL,
    date                TIMESTAMP NOT NULL,
    location_name       VARCHAR(255) NOT NULL,
    location_address    VARCHAR(500) DEFAULT '',
    max_seats           INT NOT NULL CHECK (max_seats >= 1),
    status              VARCHAR(20) NOT NULL DEFAULT 'pending'
                        CHECK (status IN ('pending', 'approved', 'rejected', 'cancelled')),
    category            VARCHAR(50) DEFAULT 'general',
    rejection_reason    TEXT,
    created_by          INT NOT NULL REFERENCES users(id) ON DELETE RESTRICT,
    created_at          TIMESTAMP NOT NULL DEFAULT NOW(),
    updated_at          TIMESTAMP NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS idx_events_status ON events(status);
CREATE INDEX IF NOT EXISTS idx_events_date ON events(date);

-- Registrations: one per user and event
CREATE TABLE IF NOT EXISTS registrations (
    id              SERIAL PRIMARY KEY,
    user_id         INT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    event_id        INT NOT NULL REFERENCES events(id) ON DELETE CASCADE,
    registered_at   TIMESTAMP NOT NULL DEFAULT NOW(),
    created_at      TIMESTAMP NOT NULL DEFAULT NOW(),
    updated_at      TIMESTAMP NOT NULL DEFAULT NOW(),
    UNIQUE (user_id, event_id)
);

-- Attendances: marked by the organizer after check-in
CREATE TABLE IF NOT EXISTS attendances (
    id              SERIAL PRIMARY KEY,
    user_id         INT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    event_id        INT NOT NULL REFERENCES events(id) ON DELETE CASCADE,
    status          VARCHAR(10) NOT NULL DEFAULT 'present'
                    CHECK (status IN ('present', 'absent')),
    marked_by       INT NOT NULL REFERENCES users(id) ON DELETE RESTRICT,
    marked_at       TIMESTAMP NOT NULL DEFAULT NOW(),
    created_at      TIMESTAMP NOT NULL DEFAULT NOW(),
    updated_at      TIMESTAMP NOT NULL DEFAULT NOW(),
    UNIQUE (user_id, event_id)
);

-- Feedbacks: one rating/comment per user and event
CREATE TABLE IF NOT EXISTS feedbacks (
    id              SERIAL PRIMARY KEY,
    user_id         INT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    event_id        INT NOT NULL REFERENCES events(id) ON DELETE CASCADE,
    rating          INT CHECK (rating IS NULL OR rating BETWEEN 1 AND 5),
    comment         TEXT,
    created_at      TIMESTAMP NOT NULL DEFAULT NOW(),
    updated_at      TIMESTAMP NOT NULL DEFAULT NOW(),
    UNIQUE (user_id, event_id)
);

-- Guests: external people invited to an approved event
CREATE TABLE IF NOT EXISTS guests (
    id              SERIAL PRIMARY KEY,
    name            VARCHAR(255) NOT NULL,
    email           VARCHAR(255) NOT NULL,
    event_id        INT NOT NULL REFERENCES events(id) ON DELETE CASCADE,
    invited_by      INT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    status          VARCHAR(20) NOT NULL DEFAULT 'invited'
                    CHECK (status IN ('invited', 'confirmed', 'cancelled')),
    created_at      TIMESTAMP NOT NULL DEFAULT NOW(),
    updated_at      TIMESTAMP NOT NULL DEFAULT NOW(),
    UNIQUE (email, event_id)
);

-- Notifications: persisted copy of every fan-out
CREATE TABLE IF NOT EXISTS notifications (
    id                  SERIAL PRIMARY KEY,
    user_id             INT REFERENCES users(id) ON DELETE CASCADE,
    type                VARCHAR(50) NOT NULL,
    title               VARCHAR(255) NOT NULL,
    message             TEXT NOT NULL,
    related_event_id    INT REFERENCES events(id) ON DELETE SET NULL,
    "read"              BOOLEAN NOT NULL DEFAULT FALSE,
    created_at          TIMESTAMP NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS idx_notifications_user ON notifications(user_id, "read");

-- Logs: audit trail of sensitive actions
CREATE TABLE IF NOT EXISTS logs (
    id              SERIAL PRIMARY KEY,
    user_id         INT REFERENCES users(id) ON DELETE SET NULL,
    action          VARCHAR(50) NOT NULL,
    resource        VARCHAR(50),
    resource_id     VARCHAR(50),
    details         JSONB,
    ip_address      VARCHAR(64),
    user_agent      TEXT,
    "timestamp"     TIMESTAMP NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS idx_logs_action ON logs(action);
"""


def create_tables(db: Database) -> None:
    """Execute the schema SQL to create all tables."""
    try:
        db.query(SCHEMA_SQL)
        logger.info("Database tables created/verified successfully.")
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise


if __name__ == "__main__":
    database = Database(DATABASE_URL).open()
    try:
        create_tables(database)
    finally:
        database.close()
