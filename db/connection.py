"""
db/connection.py
----------------
Manages the PostgreSQL connection pool.

`Database` wraps psycopg2's ThreadedConnectionPool and exposes the single
primitive the rest of the application builds on: ``query(sql, params)``.
One instance is created at startup and handed to every repository.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, Sequence

import psycopg2
from psycopg2 import errorcodes, extras, pool

from utils.logger import get_logger

logger = get_logger(__name__)

_CONSTRAINT_KINDS = {
    errorcodes.UNIQUE_VIOLATION: "unique",
    errorcodes.FOREIGN_KEY_VIOLATION: "foreign_key",
    errorcodes.CHECK_VIOLATION: "check",
    errorcodes.NOT_NULL_VIOLATION: "not_null",
}


class ConstraintViolation(Exception):
    """
    Raised when the storage engine rejects a write because of a
    schema constraint (unique key, foreign key, check, not null).

    Attributes:
        kind: One of 'unique', 'foreign_key', 'check', 'not_null', 'other'.
        constraint: Name of the violated constraint, when the driver reports it.
    """

    def __init__(self, message: str, kind: str = "other", constraint: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.constraint = constraint

    @classmethod
    def from_driver(cls, exc: psycopg2.IntegrityError) -> "ConstraintViolation":
        kind = _CONSTRAINT_KINDS.get(exc.pgcode, "other")
        constraint = getattr(exc.diag, "constraint_name", None)
        return cls(str(exc).strip(), kind=kind, constraint=constraint)


@dataclass
class QueryResult:
    """Rows returned by a statement plus the driver's affected-row count."""

    rows: list[dict] = field(default_factory=list)
    rowcount: int = 0

    @property
    def inserted_id(self) -> Optional[int]:
        """Identity of the inserted row, read from a ``RETURNING "id"`` clause."""
        if self.rows and "id" in self.rows[0]:
            return self.rows[0]["id"]
        return None


def _execute(conn, sql: str, params: Optional[Sequence[Any]]) -> QueryResult:
    with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
        cur.execute(sql, params)
        rows = [dict(r) for r in cur.fetchall()] if cur.description else []
        return QueryResult(rows=rows, rowcount=cur.rowcount)


class Session:
    """A connection held for the duration of a `Database.transaction()` block."""

    def __init__(self, conn):
        self.conn = conn

    def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        try:
            return _execute(self.conn, sql, params)
        except psycopg2.IntegrityError as e:
            raise ConstraintViolation.from_driver(e) from e

    def execute_script(self, script: str) -> None:
        """Run a multi-statement SQL script without parameters."""
        with self.conn.cursor() as cur:
            cur.execute(script)

    def mogrify(self, sql: str, params: Sequence[Any]) -> str:
        """Render a statement with its parameters inlined, driver-escaped."""
        with self.conn.cursor() as cur:
            return cur.mogrify(sql, params).decode("utf-8")


class Database:
    """Bounded pool of PostgreSQL connections."""

    def __init__(self, dsn: str, min_conn: int = 1, max_conn: int = 10):
        self.dsn = dsn
        self.min_conn = min_conn
        self.max_conn = max_conn
        self._pool: pool.ThreadedConnectionPool | None = None

    def open(self) -> "Database":
        """
        Initialize the connection pool.

        Raises:
            psycopg2.OperationalError: If the database is unreachable.
        """
        if self._pool is not None:
            return self
        try:
            self._pool = pool.ThreadedConnectionPool(self.min_conn, self.max_conn, self.dsn)
            logger.info(
                f"Database connection pool initialized ({self.min_conn}..{self.max_conn} connections)."
            )
        except psycopg2.OperationalError as e:
            logger.error(f"Failed to initialize database pool: {e}")
            raise
        return self

    def get_connection(self):
        """
        Get a connection from the pool.

        Raises:
            RuntimeError: If the pool has not been initialized.
        """
        if self._pool is None:
            raise RuntimeError("Database pool not initialized. Call open() first.")
        return self._pool.getconn()

    def release_connection(self, conn) -> None:
        """Return a connection back to the pool."""
        if self._pool is not None:
            self._pool.putconn(conn)

    def close(self) -> None:
        """Close all connections in the pool."""
        if self._pool is not None:
            self._pool.closeall()
            self._pool = None
            logger.info("Database connection pool closed.")

    # ── Primitives ────────────────────────────────────────

    def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        """
        Execute one parameterized statement on a pooled connection.

        The statement is committed on success and rolled back on failure.

        Args:
            sql: SQL text using ``%s`` placeholders.
            params: Values bound to the placeholders, in order.

        Returns:
            QueryResult with the fetched rows (empty for statements
            without a result set) and the affected-row count.

        Raises:
            ConstraintViolation: On unique / foreign key / check violations.
        """
        conn = self.get_connection()
        try:
            result = _execute(conn, sql, params)
            conn.commit()
            return result
        except psycopg2.IntegrityError as e:
            conn.rollback()
            violation = ConstraintViolation.from_driver(e)
            logger.warning(f"Constraint violation ({violation.kind}): {violation}")
            raise violation from e
        except Exception as e:
            conn.rollback()
            logger.error(f"Query failed: {e}")
            raise
        finally:
            self.release_connection(conn)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Hold a single connection for several statements.

        Commits when the block exits normally, rolls back otherwise.

        Usage:
            with db.transaction() as session:
                session.query("UPDATE ...", [...])
                session.query("DELETE ...", [...])
        """
        conn = self.get_connection()
        try:
            yield Session(conn)
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Transaction rolled back: {e}")
            raise
        finally:
            self.release_connection(conn)
