"""
Pytest configuration and shared fixtures.

This module provides:
- Environment variable setup for tests
- An in-memory SQLite database speaking the same interface as db.connection.Database
- Recording notification sinks and a hub wired to them
- Factories for users and events
"""

import os
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta

import pytest

# Set test environment variables BEFORE any imports
os.environ["TELEGRAM_BOT_TOKEN"] = ""
os.environ["ADMIN_EMAILS"] = ""
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"

from db.connection import ConstraintViolation, QueryResult  # noqa: E402
from db.init_db import SCHEMA_SQL  # noqa: E402
from models.constants import EVENT_APPROVED, ROLE_ADMIN, ROLE_CLUB_REPRESENTATIVE, ROLE_STUDENT  # noqa: E402
from notifications.hub import NotificationHub  # noqa: E402
from notifications.sinks import DatabaseSink  # noqa: E402
from repositories.event_repo import EventRepository  # noqa: E402
from repositories.notification_repo import NotificationRepository  # noqa: E402
from repositories.user_repo import UserRepository  # noqa: E402

sqlite3.register_adapter(datetime, lambda value: value.isoformat(" "))
sqlite3.register_converter("TIMESTAMP", lambda raw: datetime.fromisoformat(raw.decode()))
sqlite3.register_converter("BOOLEAN", lambda raw: raw not in (b"0", b""))

SQLITE_SCHEMA = (
    SCHEMA_SQL
    .replace("SERIAL PRIMARY KEY", "INTEGER PRIMARY KEY AUTOINCREMENT")
    .replace("NOW()", "CURRENT_TIMESTAMP")
    .replace("JSONB", "TEXT")
)


def _violation_kind(message: str) -> str:
    for marker, kind in (
        ("UNIQUE", "unique"),
        ("FOREIGN KEY", "foreign_key"),
        ("CHECK", "check"),
        ("NOT NULL", "not_null"),
    ):
        if marker in message:
            return kind
    return "other"


class SqliteSession:
    def __init__(self, db: "SqliteDatabase"):
        self.db = db

    def query(self, sql, params=None):
        return self.db._run(sql, params)

    def execute_script(self, script):
        self.db.conn.executescript(script)


class SqliteDatabase:
    """
    Same surface as db.connection.Database (query / transaction / close)
    backed by one in-memory SQLite connection shared across threads.
    """

    def __init__(self):
        self.conn = sqlite3.connect(
            ":memory:", detect_types=sqlite3.PARSE_DECLTYPES, check_same_thread=False
        )
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self.conn.executescript(SQLITE_SCHEMA)
        self.lock = threading.RLock()
        self.statements: list[tuple[str, list]] = []

    def _run(self, sql, params=None) -> QueryResult:
        params = list(params or [])
        self.statements.append((sql, params))
        try:
            cur = self.conn.execute(sql.replace("%s", "?"), params)
            rows = [dict(r) for r in cur.fetchall()] if cur.description else []
            return QueryResult(rows=rows, rowcount=cur.rowcount)
        except sqlite3.IntegrityError as e:
            raise ConstraintViolation(str(e), kind=_violation_kind(str(e))) from e

    def query(self, sql, params=None) -> QueryResult:
        with self.lock:
            try:
                result = self._run(sql, params)
                self.conn.commit()
                return result
            except Exception:
                self.conn.rollback()
                raise

    @contextmanager
    def transaction(self):
        with self.lock:
            try:
                yield SqliteSession(self)
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise

    def close(self):
        self.conn.close()


class RecordingSink:
    """Sink that keeps every notification it receives."""

    def __init__(self, name="recording"):
        self.name = name
        self.received = []
        self._lock = threading.Lock()

    def deliver(self, notification):
        with self._lock:
            self.received.append(notification)


class FailingSink:
    name = "failing"

    def __init__(self):
        self.calls = 0

    def deliver(self, notification):
        self.calls += 1
        raise RuntimeError("channel down")


@pytest.fixture
def db():
    database = SqliteDatabase()
    yield database
    database.close()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def hub(db, sink):
    """Hub persisting to the database plus a recording external channel."""
    notification_hub = NotificationHub([DatabaseSink(NotificationRepository(db)), sink])
    yield notification_hub
    notification_hub.close()


@pytest.fixture
def make_user(db):
    repo = UserRepository(db)
    counter = iter(range(1, 10_000))

    def _make(role=ROLE_STUDENT, **fields):
        n = next(counter)
        data = {
            "email": f"user{n}@campus.test",
            "password": "not-a-real-hash",
            "name": f"User {n}",
            "role": role,
        }
        data.update(fields)
        return repo.create(data)

    return _make


@pytest.fixture
def student(make_user):
    return make_user(ROLE_STUDENT)


@pytest.fixture
def organizer(make_user):
    return make_user(ROLE_CLUB_REPRESENTATIVE)


@pytest.fixture
def admin(make_user):
    return make_user(ROLE_ADMIN)


@pytest.fixture
def make_event(db, organizer):
    """Insert an event directly, bypassing validation (past dates allowed)."""
    repo = EventRepository(db)
    counter = iter(range(1, 10_000))

    def _make(status=EVENT_APPROVED, days_ahead=7, created_by=None, **fields):
        n = next(counter)
        data = {
            "title": f"Event {n}",
            "description": "A gathering for everyone on campus",
            "date": datetime.now() + timedelta(days=days_ahead),
            "location": {"name": "Main Hall", "address": "1 Campus Road"},
            "maxSeats": 50,
            "status": status,
            "category": "general",
            "createdBy": created_by or organizer["id"],
        }
        data.update(fields)
        return repo.create(data)

    return _make


@pytest.fixture
def event_payload():
    """Factory of valid proposal payloads for EventService.create_event."""

    def _payload(**overrides):
        data = {
            "title": "Spring Concert",
            "description": "Live music by the student orchestra",
            "date": (datetime.now() + timedelta(days=30)).isoformat(),
            "location": {"name": "Auditorium", "address": "2 Campus Road"},
            "maxSeats": 100,
            "category": "music",
        }
        data.update(overrides)
        return data

    return _payload
