from __future__ import annotations

import re
import time
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from crm_gateway.models.project_record import PersistedProject

"""Single-row project inserts.

Imports write one row per statement (no batch, no spanning transaction) so a
constraint violation on one record cannot take the others down with it.
Driver errors are wrapped in RowPersistError.

The target table name comes from the request, so it is checked against a
plain identifier pattern and double-quoted before being put into SQL. Values
are always bound as parameters.
"""

__all__ = [
    "InvalidTableName",
    "PROJECT_COLUMNS",
    "RowPersistError",
    "build_insert_sql",
    "create_project",
    "insert_project",
]

PROJECT_COLUMNS: tuple[str, ...] = (
    "id",
    "name",
    "description",
    "status",
    "priority",
    "date_entered",
    "date_modified",
    "created_by",
    "modified_user_id",
)

MANUAL_PROJECT_COLUMNS: tuple[str, ...] = (
    "id",
    "name",
    "description",
    "status",
    "estimated_start_date",
    "estimated_end_date",
    "date_entered",
    "date_modified",
    "created_by",
    "modified_user_id",
)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class RowPersistError(Exception):
    pass


class InvalidTableName(ValueError):
    pass


def validate_table_name(table: str) -> str:
    if not _IDENTIFIER.match(table or ""):
        raise InvalidTableName(f"invalid table name: {table!r}")
    return table


def build_insert_sql(table: str, columns: Sequence[str]) -> str:
    validate_table_name(table)
    cols_sql = ", ".join(f'"{c}"' for c in columns)
    placeholders = ", ".join(["%s"] * len(columns))
    return f'INSERT INTO "{table}" ({cols_sql}) VALUES ({placeholders})'


def insert_project(
    cursor: Any,
    project: PersistedProject,
    table: str = "projects",
    timing_callback: Callable[[float], None] | None = None,
) -> None:
    """Insert one imported project row.

    Parameters
    ----------
    cursor: psycopg2 cursor (autocommit connection for per-row units of work)
    project: record with id and audit stamps already assigned
    table: target table (validated identifier)
    timing_callback: receives the elapsed seconds of the execute call
    """
    sql_text = build_insert_sql(table, PROJECT_COLUMNS)
    start_time = time.perf_counter()
    try:
        cursor.execute(sql_text, project.insert_params())
    except Exception as e:
        raise RowPersistError(str(e)) from e
    finally:
        if timing_callback is not None:
            timing_callback(time.perf_counter() - start_time)


def create_project(
    cursor: Any,
    fields: Mapping[str, Any],
    created_by: str = "1",
    table: str = "projects",
) -> UUID:
    """Insert a manually entered project and return its new id."""
    project_id = uuid4()
    now = datetime.now(UTC)
    params = (
        str(project_id),
        fields["name"],
        fields.get("description"),
        fields.get("status"),
        fields.get("estimated_start_date"),
        fields.get("estimated_end_date"),
        now,
        now,
        created_by,
        created_by,
    )
    try:
        cursor.execute(build_insert_sql(table, MANUAL_PROJECT_COLUMNS), params)
    except Exception as e:
        raise RowPersistError(str(e)) from e
    return project_id
