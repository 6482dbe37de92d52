from __future__ import annotations

import logging
from typing import Any

"""Database introspection helpers for the admin endpoints.

All functions take a cursor and return plain dicts/lists ready for JSON.
Estimated row counts come from pg_class.reltuples (cheap, approximate).
"""

logger = logging.getLogger(__name__)

# Tables reported by GET /api/tables, in display order.
CRM_TABLE_NAMES: tuple[str, ...] = (
    "users", "accounts", "contacts", "opportunities", "activities",
    "campaigns", "documents", "events", "roles", "projects",
    "products", "prospects", "calls", "leads", "surveyquestionoptions",
    "tags", "taggables",
)

TABLE_DESCRIPTIONS: dict[str, str] = {
    "accounts": "Customer accounts and organizations",
    "contacts": "Individual contact records",
    "users": "System users and administrators",
    "opportunities": "Sales opportunities and deals",
    "cases": "Customer support cases",
    "leads": "Sales leads and prospects",
    "campaigns": "Marketing campaigns",
    "meetings": "Scheduled meetings and appointments",
    "calls": "Phone calls and communications",
    "tasks": "Tasks and activities",
    "projects": "Project management records",
    "project_task": "Individual project tasks",
    "documents": "Document attachments and files",
    "emails": "Email communications",
    "notes": "Notes and comments",
    "activities": "Activities and tasks",
    "surveyquestionoptions": "Survey question options",
    "tags": "Tags for categorization",
    "taggables": "Polymorphic tag relationships",
    "roles": "User roles and permissions",
}

NO_DESCRIPTION = "No description available"


def table_description(table_name: str) -> str | None:
    return TABLE_DESCRIPTIONS.get(table_name)


def check_connection(cursor: Any) -> dict[str, Any]:
    cursor.execute(
        """
        SELECT
            version() AS server_version,
            current_database() AS database_name,
            current_user AS current_user,
            (SELECT count(*) FROM pg_stat_activity) AS connection_count
        """
    )
    server_version, database_name, current_user, connection_count = cursor.fetchone()
    return {
        "server_version": server_version,
        "database_name": database_name,
        "current_user": current_user,
        "connection_count": int(connection_count),
    }


def list_tables(cursor: Any, limit: int | None = None) -> list[dict[str, Any]]:
    """Public base tables with estimated row counts; LIMIT NULL means no limit."""
    cursor.execute(
        """
        SELECT
            table_name,
            (SELECT reltuples::bigint FROM pg_class WHERE relname = table_name) AS estimated_rows
        FROM information_schema.tables
        WHERE table_schema = 'public'
            AND table_type = 'BASE TABLE'
        ORDER BY table_name
        LIMIT %s
        """,
        (limit,),
    )
    return [
        {
            "name": name,
            "rows": None if estimated is None else int(estimated),
            "description": table_description(name),
        }
        for name, estimated in cursor.fetchall()
    ]


def table_details(cursor: Any, table_name: str) -> dict[str, Any]:
    cursor.execute(
        """
        SELECT
            (SELECT reltuples::bigint FROM pg_class WHERE relname = %(t)s) AS estimated_rows,
            (SELECT count(*) FROM information_schema.columns WHERE table_name = %(t)s) AS column_count
        """,
        {"t": table_name},
    )
    estimated_rows, column_count = cursor.fetchone()
    return {
        "table_name": table_name,
        "estimated_rows": None if estimated_rows is None else int(estimated_rows),
        "column_count": int(column_count),
        "description": table_description(table_name) or NO_DESCRIPTION,
    }


def table_row_counts(cursor: Any) -> list[dict[str, Any]]:
    """Exact row counts for the CRM tables; a table that cannot be counted reports 0.

    Expects an autocommit cursor so one missing table does not abort the rest.
    """
    counts: list[dict[str, Any]] = []
    for name in CRM_TABLE_NAMES:
        try:
            cursor.execute(f'SELECT COUNT(*) FROM "{name}"')
            (count,) = cursor.fetchone()
        except Exception as e:
            logger.debug("row count unavailable for %s: %s", name, e)
            count = 0
        counts.append({"name": name, "row_count": int(count)})
    return counts
