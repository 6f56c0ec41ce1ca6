"""
db/query.py
-----------
Translates Mongo-style filter documents into parameterized PostgreSQL.

A filter such as::

    {"status": "approved", "maxSeats": {"$gte": 10}, "category": ["music", "sport"]}

is first parsed into condition nodes (Eq, In, Cmp, Like, IsNull, Or, And)
and the nodes are then compiled to SQL text with ``%s`` placeholders plus
the ordered list of values bound to them. User values never end up in
the SQL text; only column and table names are interpolated, and only
through `quote_identifier`.

Supported per-field shapes:
    None                    -> "col" IS NULL
    UNSET                   -> skipped
    list / tuple            -> "col" IN (%s, ...)   (empty list -> FALSE)
    {"$ne": v}              -> "col" != %s          (v None -> IS NOT NULL)
    {"$gt"|"$gte"|"$lt"|"$lte": v}
    {"$regex": p, "$options": "i"}
                            -> substring LIKE, case-insensitive with "i"
    {"$or": [filter, ...]}  -> (... OR ...)
    scalar                  -> "col" = %s

Several operators in one object are ANDed, so ``{"$gte": a, "$lt": b}``
is a range. An object without any recognized operator is compared as its
canonical JSON text (deprecated, logged).
"""

import json
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from db.mapper import to_column
from utils.logger import get_logger

logger = get_logger(__name__)


class _Unset:
    """Marker for a filter value that must not produce a clause."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()

_COMPARISONS = {
    "$ne": "!=",
    "$gt": ">",
    "$gte": ">=",
    "$lt": "<",
    "$lte": "<=",
}
_OPERATORS = (*_COMPARISONS, "$regex", "$or")


def quote_identifier(name: str) -> str:
    """
    Quote a column or table name for PostgreSQL.

    >>> quote_identifier('max_seats')
    '"max_seats"'
    >>> quote_identifier('we"ird')
    '"we""ird"'
    """
    return '"' + str(name).replace('"', '""') + '"'


def escape_like(pattern: str) -> str:
    """Escape LIKE wildcards so the pattern matches literally."""
    return (
        pattern.replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )


# ── Condition nodes ───────────────────────────────────────

@dataclass(frozen=True)
class IsNull:
    field: str
    negated: bool = False


@dataclass(frozen=True)
class Eq:
    field: str
    value: Any


@dataclass(frozen=True)
class In:
    field: str
    values: tuple


@dataclass(frozen=True)
class Cmp:
    field: str
    op: str
    value: Any


@dataclass(frozen=True)
class Like:
    field: str
    pattern: str
    case_insensitive: bool = False


@dataclass(frozen=True)
class Or:
    children: tuple


@dataclass(frozen=True)
class And:
    children: tuple


Condition = Union[IsNull, Eq, In, Cmp, Like, Or, And]
Filter = Union[Mapping[str, Any], Condition, None]


# ── Parsing ───────────────────────────────────────────────

def parse_filter(filter_: Filter) -> And:
    """
    Parse a filter document into an And node.

    Top-level ``$or`` groups come first, followed by the field conditions
    in document order.
    """
    if filter_ is None:
        return And(())
    if isinstance(filter_, And):
        return filter_
    if isinstance(filter_, (IsNull, Eq, In, Cmp, Like, Or)):
        return And((filter_,))

    or_groups: list[Condition] = []
    fields: list[Condition] = []
    for key, value in filter_.items():
        if key == "$or":
            group = _parse_or(value)
            if group is not None:
                or_groups.append(group)
            continue
        node = _parse_field(key, value)
        if node is not None:
            fields.append(node)
    return And(tuple(or_groups + fields))


def _parse_or(value: Any) -> Optional[Or]:
    if not isinstance(value, (list, tuple)):
        logger.warning(f"Ignoring $or with non-list value: {value!r}")
        return None
    return Or(tuple(parse_filter(sub) for sub in value))


def _parse_field(field: str, value: Any) -> Optional[Condition]:
    if value is UNSET:
        return None
    if value is None:
        return IsNull(field)
    if isinstance(value, (list, tuple)):
        return In(field, tuple(value))
    if isinstance(value, Mapping):
        return _parse_operators(field, value)
    return Eq(field, value)


def _parse_operators(field: str, ops: Mapping[str, Any]) -> Optional[Condition]:
    if not any(key in ops for key in _OPERATORS):
        logger.warning(
            f"Filter on '{field}' has no recognized operator; "
            f"comparing against its JSON text (deprecated)"
        )
        return Eq(field, json.dumps(ops, sort_keys=True, default=str))

    nodes: list[Condition] = []
    for key, value in ops.items():
        if value is UNSET:
            continue
        if key == "$ne" and value is None:
            nodes.append(IsNull(field, negated=True))
        elif key in _COMPARISONS:
            nodes.append(Cmp(field, _COMPARISONS[key], value))
        elif key == "$regex":
            options = str(ops.get("$options") or "")
            nodes.append(Like(field, str(value), case_insensitive="i" in options))
        elif key == "$or":
            group = _parse_or(value)
            if group is not None:
                nodes.append(group)
        # $options and unknown keys contribute nothing on their own

    if not nodes:
        return None
    if len(nodes) == 1:
        return nodes[0]
    return And(tuple(nodes))


# ── Compilation ───────────────────────────────────────────

def _column(field: str, alias: Optional[str]) -> str:
    column = quote_identifier(to_column(field))
    return f"{alias}.{column}" if alias else column


def compile_condition(node: Condition, params: list, alias: Optional[str] = None) -> str:
    """
    Compile one condition node, appending its bound values to ``params``.

    Returns an empty string when the node restricts nothing.
    """
    if isinstance(node, IsNull):
        return f"{_column(node.field, alias)} IS {'NOT ' if node.negated else ''}NULL"

    if isinstance(node, Eq):
        params.append(node.value)
        return f"{_column(node.field, alias)} = %s"

    if isinstance(node, In):
        if not node.values:
            return "FALSE"
        params.extend(node.values)
        placeholders = ", ".join(["%s"] * len(node.values))
        return f"{_column(node.field, alias)} IN ({placeholders})"

    if isinstance(node, Cmp):
        params.append(node.value)
        return f"{_column(node.field, alias)} {node.op} %s"

    if isinstance(node, Like):
        params.append(f"%{escape_like(node.pattern)}%")
        if node.case_insensitive:
            return f"LOWER({_column(node.field, alias)}) LIKE LOWER(%s) ESCAPE '\\'"
        return f"{_column(node.field, alias)} LIKE %s ESCAPE '\\'"

    if isinstance(node, Or):
        # Branches that restrict nothing are dropped; an empty group restricts nothing
        parts = [p for p in (compile_condition(child, params, alias) for child in node.children) if p]
        if not parts:
            return ""
        return "(" + " OR ".join(f"({p})" for p in parts) + ")"

    if isinstance(node, And):
        parts = [compile_condition(child, params, alias) for child in node.children]
        return " AND ".join(p for p in parts if p)

    raise TypeError(f"Unsupported condition node: {node!r}")


def compile_where(filter_: Filter, params: list, alias: Optional[str] = None) -> str:
    """
    Compile a filter into a WHERE body (without the keyword).

    Args:
        filter_: Filter document or condition node.
        params: List that receives the bound values, in placeholder order.
        alias: Optional table alias used to qualify every column.

    Returns:
        The SQL condition, or "" when the filter restricts nothing.
    """
    return compile_condition(parse_filter(filter_), params, alias)


def compile_sort(sort: Optional[Mapping[str, Any]], alias: Optional[str] = None) -> str:
    """Compile ``{"field": 1 | -1}`` into an ORDER BY clause ("" when empty)."""
    if not sort:
        return ""
    parts = [
        f"{_column(field, alias)} {'ASC' if direction == 1 else 'DESC'}"
        for field, direction in sort.items()
    ]
    return "ORDER BY " + ", ".join(parts)


def compile_page(limit: Optional[int], skip: Optional[int], params: list) -> str:
    """LIMIT/OFFSET clause; OFFSET is only emitted together with LIMIT."""
    if limit is None:
        return ""
    params.append(limit)
    clause = "LIMIT %s"
    if skip:
        params.append(skip)
        clause += " OFFSET %s"
    return clause


def _join(*parts: str) -> str:
    return " ".join(p for p in parts if p)


# ── Statement builders ────────────────────────────────────

def build_select(
    table: str,
    filter_: Filter = None,
    sort: Optional[Mapping[str, Any]] = None,
    limit: Optional[int] = None,
    skip: Optional[int] = None,
) -> tuple[str, list]:
    """SELECT * with optional filter, ordering and pagination."""
    params: list = []
    where = compile_where(filter_, params)
    sql = _join(
        f"SELECT * FROM {quote_identifier(table)}",
        f"WHERE {where}" if where else "",
        compile_sort(sort),
        compile_page(limit, skip, params),
    )
    return sql, params


def build_count(table: str, filter_: Filter = None) -> tuple[str, list]:
    params: list = []
    where = compile_where(filter_, params)
    sql = _join(
        f'SELECT COUNT(*) AS "count" FROM {quote_identifier(table)}',
        f"WHERE {where}" if where else "",
    )
    return sql, params


def build_insert(table: str, row: Mapping[str, Any]) -> tuple[str, list]:
    """INSERT of storage columns returning the generated identity."""
    columns = ", ".join(quote_identifier(c) for c in row)
    placeholders = ", ".join(["%s"] * len(row))
    sql = (
        f"INSERT INTO {quote_identifier(table)} ({columns}) "
        f'VALUES ({placeholders}) RETURNING "id"'
    )
    return sql, list(row.values())


def build_update(table: str, row: Mapping[str, Any], filter_: Filter) -> tuple[str, list]:
    params: list = list(row.values())
    assignments = ", ".join(f"{quote_identifier(c)} = %s" for c in row)
    where = compile_where(filter_, params)
    sql = _join(
        f"UPDATE {quote_identifier(table)} SET {assignments}",
        f"WHERE {where}" if where else "",
    )
    return sql, params


def build_delete(table: str, filter_: Filter) -> tuple[str, list]:
    params: list = []
    where = compile_where(filter_, params)
    sql = _join(
        f"DELETE FROM {quote_identifier(table)}",
        f"WHERE {where}" if where else "",
    )
    return sql, params

