"""
repositories/base.py
--------------------
Generic repository bound to one table.

Callers speak in domain records (camelCase dicts) and Mongo-style filters;
this class turns them into SQL through `db.query` and maps rows back.
Entity repositories subclass it to set the table, their timestamp
columns and, where a field does not map 1:1 onto a column, the
`_to_storage` / `_from_storage` hooks.
"""

from datetime import datetime
from typing import Any, Mapping, Optional

from db.connection import Database
from db.mapper import map_row, unmap_record
from db.query import (
    UNSET,
    Filter,
    build_count,
    build_delete,
    build_insert,
    build_select,
    build_update,
)
from utils.logger import get_logger

logger = get_logger(__name__)

_IDENTITY_FIELDS = ("id", "_id")


def now() -> datetime:
    """Current local time as stored in TIMESTAMP columns."""
    return datetime.now()


class BaseRepository:
    """Repository for CRUD operations on a single table."""

    table: str = ""
    # Fields filled on create when the caller did not provide them
    CREATE_TIMESTAMPS: tuple[str, ...] = ("createdAt", "updatedAt")
    # Field refreshed on every update (None: the table has no such column)
    UPDATE_TIMESTAMP: Optional[str] = "updatedAt"

    def __init__(self, db: Database):
        self.db = db

    # ── Helpers ───────────────────────────────────────────

    @staticmethod
    def is_valid_id(value: Any) -> bool:
        """True for positive integers and their decimal string form."""
        if isinstance(value, bool):
            return False
        if isinstance(value, int):
            return value > 0
        if isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
            return int(value) > 0
        return False

    def _to_storage(self, data: Mapping[str, Any]) -> dict:
        """Domain record -> column dict. Override for compound fields."""
        return unmap_record(data)

    def _from_storage(self, row: Mapping[str, Any]) -> dict:
        """Column dict -> domain record. Override for compound fields."""
        return map_row(row)

    @staticmethod
    def _writable(data: Mapping[str, Any]) -> dict:
        return {
            k: v for k, v in data.items()
            if k not in _IDENTITY_FIELDS and v is not UNSET
        }

    # ── READ ──────────────────────────────────────────────

    def find(
        self,
        filter_: Filter = None,
        sort: Optional[Mapping[str, int]] = None,
        limit: Optional[int] = None,
        skip: Optional[int] = None,
    ) -> list[dict]:
        """
        Fetch every record matching a filter.

        Args:
            filter_: Filter document (see db.query) or condition node.
            sort: {"field": 1 | -1}, applied in key order.
            limit: Maximum number of records.
            skip: Records to skip; only honored together with ``limit``.

        Returns:
            List of records, empty when nothing matches.
        """
        sql, params = build_select(self.table, filter_, sort, limit, skip)
        result = self.db.query(sql, params)
        return [self._from_storage(row) for row in result.rows]

    def find_one(self, filter_: Filter = None, sort: Optional[Mapping[str, int]] = None) -> Optional[dict]:
        """First matching record or None."""
        records = self.find(filter_, sort=sort, limit=1)
        return records[0] if records else None

    def find_by_id(self, record_id: Any) -> Optional[dict]:
        """Record by identity; None when missing or when the id is invalid."""
        if not self.is_valid_id(record_id):
            return None
        return self.find_one({"id": int(record_id)})

    def count(self, filter_: Filter = None) -> int:
        sql, params = build_count(self.table, filter_)
        result = self.db.query(sql, params)
        return int(result.rows[0]["count"]) if result.rows else 0

    # ── CREATE ────────────────────────────────────────────

    def create(self, data: Mapping[str, Any]) -> dict:
        """
        Insert a record and return it as stored.

        Any client-supplied identity is discarded; missing timestamps
        are filled in.
        """
        record = self._writable(data)
        stamp = now()
        for field in self.CREATE_TIMESTAMPS:
            if record.get(field) is None:
                record[field] = stamp

        sql, params = build_insert(self.table, self._to_storage(record))
        result = self.db.query(sql, params)
        new_id = result.inserted_id
        logger.info(f"Created {self.table} #{new_id}")
        return self.find_by_id(new_id)

    # ── UPDATE ────────────────────────────────────────────

    def update_by_id(self, record_id: Any, data: Mapping[str, Any]) -> Optional[dict]:
        """
        Update a record in place.

        Returns:
            The updated record, or None for an invalid id or when no
            row matched.
        """
        if not self.is_valid_id(record_id):
            return None
        record_id = int(record_id)

        record = self._writable(data)
        if self.UPDATE_TIMESTAMP:
            record[self.UPDATE_TIMESTAMP] = now()
        row = self._to_storage(record)
        if not row:
            return self.find_by_id(record_id)

        sql, params = build_update(self.table, row, {"id": record_id})
        result = self.db.query(sql, params)
        if result.rowcount == 0:
            return None
        return self.find_by_id(record_id)

    # ── DELETE ────────────────────────────────────────────

    def delete_by_id(self, record_id: Any) -> bool:
        """Physically delete a record. False when the id is invalid or unknown."""
        if not self.is_valid_id(record_id):
            return False
        sql, params = build_delete(self.table, {"id": int(record_id)})
        result = self.db.query(sql, params)
        deleted = result.rowcount > 0
        if deleted:
            logger.info(f"Deleted {self.table} #{record_id}")
        return deleted
