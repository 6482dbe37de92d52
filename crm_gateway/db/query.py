from __future__ import annotations

from typing import Any

from crm_gateway.models.dynamic_row import DynamicRow, DynamicValue, NullValue, OpaqueValue, TextValue

"""Ad-hoc read query execution with schema-less row serialization.

The select-only check is a shallow prefix test, not a SQL parser: it does not
stop multi-statement strings or writes hidden in CTEs. Callers run the query
on a read-only session. Values are projected best-effort: NULL -> null, text
-> text, anything that cannot be read as text -> a fixed placeholder.
"""

__all__ = [
    "QueryExecutionError",
    "QueryRejected",
    "coerce_value",
    "ensure_select",
    "execute_query",
    "is_select_query",
]


class QueryRejected(Exception):
    pass


class QueryExecutionError(Exception):
    pass


def is_select_query(query: str) -> bool:
    return query.strip().lower().startswith("select")


def ensure_select(query: str) -> str:
    if not is_select_query(query):
        raise QueryRejected("Only SELECT queries are allowed")
    return query


def coerce_value(raw: Any) -> DynamicValue:
    if raw is None:
        return NullValue()
    if isinstance(raw, str):
        return TextValue(raw)
    if isinstance(raw, (bytes, bytearray, memoryview)):
        try:
            return TextValue(bytes(raw).decode("utf-8"))
        except UnicodeDecodeError:
            return OpaqueValue()
    return OpaqueValue()


def execute_query(cursor: Any, query: str) -> list[DynamicRow]:
    """Run `query` and return every result row as a DynamicRow.

    Raises:
        QueryExecutionError: the store rejected or failed the query; no
            partial rows are returned
    """
    try:
        cursor.execute(query)
        description = cursor.description or []
        raw_rows = cursor.fetchall() if description else []
    except Exception as e:
        raise QueryExecutionError(str(e)) from e

    names = [d[0] for d in description]
    rows: list[DynamicRow] = []
    for raw in raw_rows:
        row = DynamicRow()
        for name, value in zip(names, raw):
            row.set(name, coerce_value(value))
        rows.append(row)
    return rows
