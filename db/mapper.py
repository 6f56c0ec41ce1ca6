"""
db/mapper.py
------------
Converts between domain field names (camelCase, as services and the bot
use them) and storage column names (snake_case).

Identity and timestamp fields are the only irregular names; everything
else follows the mechanical camelCase <-> snake_case rule.
"""

import re

_FIELD_TO_COLUMN = {
    "_id": "id",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

_COLUMN_TO_FIELD = {
    "id": "id",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}

_UPPER = re.compile(r"[A-Z]")
_UNDERSCORE_LETTER = re.compile(r"_([a-z])")


def to_column(name: str) -> str:
    """
    Domain field name -> storage column name.

    >>> to_column("maxSeats")
    'max_seats'
    >>> to_column("_id")
    'id'
    """
    if name in _FIELD_TO_COLUMN:
        return _FIELD_TO_COLUMN[name]
    return _UPPER.sub(lambda m: "_" + m.group(0).lower(), name)


def to_field(column: str) -> str:
    """
    Storage column name -> domain field name.

    >>> to_field("related_event_id")
    'relatedEventId'
    """
    if column in _COLUMN_TO_FIELD:
        return _COLUMN_TO_FIELD[column]
    return _UNDERSCORE_LETTER.sub(lambda m: m.group(1).upper(), column)


def map_row(row: dict) -> dict:
    """
    Map a storage row to a domain record.

    Records that carry an ``id`` also expose it as the legacy ``_id`` alias.
    """
    record = {to_field(col): value for col, value in row.items()}
    if "id" in record:
        record["_id"] = record["id"]
    return record


def unmap_record(record: dict) -> dict:
    """Map a domain record to storage columns."""
    return {to_column(name): value for name, value in record.items()}
