from __future__ import annotations

import logging
from typing import Any

import psycopg2
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from crm_gateway.api.deps import get_database
from crm_gateway.api.schemas import QueryRequest
from crm_gateway.db.introspection import check_connection, list_tables, table_details
from crm_gateway.db.pool import Database, DatabaseUnavailable
from crm_gateway.db.query import QueryExecutionError, QueryRejected, ensure_select, execute_query

"""Database admin endpoints.

Every response uses the same envelope: {success, message, error, data}.
"""

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/db")


def envelope(
    success: bool,
    message: str | None = None,
    error: str | None = None,
    data: Any = None,
) -> dict[str, Any]:
    return {"success": success, "message": message, "error": error, "data": data}


def failure(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=envelope(False, error=error))


def _parse_limit(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


@router.get("/test-connection")
def db_test_connection(database: Database = Depends(get_database)) -> Any:
    try:
        with database.cursor(readonly=True) as cur:
            info = check_connection(cur)
    except (psycopg2.Error, DatabaseUnavailable) as e:
        return failure(500, f"Connection failed: {e}")
    return envelope(True, message="Database connection successful", data=info)


@router.get("/tables")
def tables(limit: str | None = None, database: Database = Depends(get_database)) -> Any:
    try:
        with database.cursor(readonly=True) as cur:
            found = list_tables(cur, _parse_limit(limit))
    except (psycopg2.Error, DatabaseUnavailable) as e:
        return failure(500, f"Failed to list tables: {e}")
    return envelope(True, message=f"Found {len(found)} tables", data={"tables": found})


@router.get("/table/{table_name}")
def table(table_name: str, database: Database = Depends(get_database)) -> Any:
    try:
        with database.cursor(readonly=True) as cur:
            info = table_details(cur, table_name)
    except (psycopg2.Error, DatabaseUnavailable) as e:
        return failure(500, f"Failed to get table info: {e}")
    return envelope(True, message=f"Table {table_name} found", data=info)


@router.post("/query")
def query(body: QueryRequest, database: Database = Depends(get_database)) -> Any:
    # Rejected before any connection is checked out.
    try:
        sql_text = ensure_select(body.query)
    except QueryRejected as e:
        return failure(400, str(e))

    try:
        with database.cursor(readonly=True) as cur:
            rows = execute_query(cur, sql_text)
    except (QueryExecutionError, DatabaseUnavailable) as e:
        logger.info("ad-hoc query failed: %s", e)
        return failure(500, f"Query failed: {e}")
    return envelope(True, message="Query executed successfully", data=[row.to_json() for row in rows])
