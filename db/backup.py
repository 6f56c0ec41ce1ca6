"""
db/backup.py
------------
Dump and reload the whole database as a plain SQL file.

The PostgreSQL client tools (pg_dump / psql) are used when they are on
the PATH. Without them a programmatic dump is produced over the pool:
schema DDL, a TRUNCATE of every table, INSERTs rendered by the driver
and a sequence reset. Both formats can be restored by either path.
"""

import os
import subprocess
from datetime import datetime

from psycopg2.extensions import parse_dsn
from psycopg2.extras import Json

from db.connection import Database
from db.init_db import SCHEMA_SQL, TABLES
from db.query import quote_identifier
from utils.logger import get_logger

logger = get_logger(__name__)


class BackupError(RuntimeError):
    """Raised when neither the client tools nor the fallback succeed."""


def _client_env(dsn: str) -> tuple[list[str], dict]:
    """Connection arguments for pg_dump/psql; the password travels in PGPASSWORD."""
    params = parse_dsn(dsn)
    args = []
    if params.get("host"):
        args += ["-h", params["host"]]
    if params.get("port"):
        args += ["-p", str(params["port"])]
    if params.get("user"):
        args += ["-U", params["user"]]
    args += ["-d", params.get("dbname", "")]
    env = dict(os.environ)
    if params.get("password"):
        env["PGPASSWORD"] = params["password"]
    return args, env


# ── Dump ──────────────────────────────────────────────────

def _pg_dump(dsn: str, path: str) -> None:
    args, env = _client_env(dsn)
    subprocess.run(
        ["pg_dump", *args, "--inserts", "--clean", "--if-exists",
         "--no-owner", "--no-privileges", "-f", path],
        env=env, check=True, capture_output=True, text=True,
    )


def _adapt(value):
    return Json(value) if isinstance(value, (dict, list)) else value


def programmatic_dump(db: Database) -> str:
    """Render every table of the schema as a replayable SQL script."""
    lines = [
        f"-- Backup generated without pg_dump at {datetime.now().isoformat(timespec='seconds')}",
        SCHEMA_SQL.strip(),
        "TRUNCATE " + ", ".join(quote_identifier(t) for t in TABLES) + " RESTART IDENTITY CASCADE;",
    ]
    with db.transaction() as session:
        for table in TABLES:
            rows = session.query(f"SELECT * FROM {quote_identifier(table)} ORDER BY \"id\"").rows
            lines.append(f"\n-- {table}: {len(rows)} rows")
            for row in rows:
                columns = ", ".join(quote_identifier(c) for c in row)
                placeholders = ", ".join(["%s"] * len(row))
                lines.append(session.mogrify(
                    f"INSERT INTO {quote_identifier(table)} ({columns}) VALUES ({placeholders});",
                    [_adapt(v) for v in row.values()],
                ))
            lines.append(
                f"SELECT setval(pg_get_serial_sequence('{table}', 'id'), "
                f"COALESCE(MAX(\"id\"), 1), MAX(\"id\") IS NOT NULL) FROM {quote_identifier(table)};"
            )
    return "\n".join(lines) + "\n"


def dump_database(db: Database, dsn: str, path: str) -> str:
    """
    Write a full SQL dump to ``path``.

    Returns:
        'pg_dump' or 'programmatic', depending on which method produced the file.
    """
    try:
        _pg_dump(dsn, path)
        return "pg_dump"
    except (FileNotFoundError, subprocess.CalledProcessError) as e:
        detail = getattr(e, "stderr", None) or e
        logger.warning(f"pg_dump unavailable or failed ({detail}); using programmatic dump")

    try:
        script = programmatic_dump(db)
        with open(path, "w", encoding="utf-8") as f:
            f.write(script)
        return "programmatic"
    except Exception as e:
        logger.error(f"Programmatic dump failed: {e}")
        raise BackupError(f"Backup failed: {e}") from e


# ── Restore ───────────────────────────────────────────────

def _psql(dsn: str, path: str) -> None:
    args, env = _client_env(dsn)
    subprocess.run(
        ["psql", *args, "-v", "ON_ERROR_STOP=1", "--single-transaction", "-f", path],
        env=env, check=True, capture_output=True, text=True,
    )


def strip_meta_commands(script: str) -> str:
    """Drop psql meta-commands (\\connect, \\restrict ...), which are not SQL."""
    return "".join(
        line for line in script.splitlines(keepends=True)
        if not line.lstrip().startswith("\\")
    )


def programmatic_restore(db: Database, path: str) -> None:
    """Replay a dump over one held connection, in a single transaction."""
    with open(path, encoding="utf-8") as f:
        script = strip_meta_commands(f.read())
    with db.transaction() as session:
        session.execute_script(script)
        # pg_dump scripts clear search_path; the connection goes back to the pool
        session.execute_script("RESET ALL;")


def load_database(db: Database, dsn: str, path: str) -> str:
    """
    Restore the database from a dump file.

    Returns:
        'psql' or 'programmatic'.
    """
    try:
        _psql(dsn, path)
        return "psql"
    except (FileNotFoundError, subprocess.CalledProcessError) as e:
        detail = getattr(e, "stderr", None) or e
        logger.warning(f"psql unavailable or failed ({detail}); using programmatic restore")

    try:
        programmatic_restore(db, path)
        return "programmatic"
    except Exception as e:
        logger.error(f"Programmatic restore failed: {e}")
        raise BackupError("Failed to restore backup with both psql and the programmatic method") from e
