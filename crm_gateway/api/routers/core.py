from __future__ import annotations

import logging
from typing import Any

import psycopg2
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from crm_gateway.api.deps import get_database
from crm_gateway.api.schemas import CreateProjectRequest
from crm_gateway.db.introspection import table_row_counts
from crm_gateway.db.pool import Database, DatabaseUnavailable
from crm_gateway.db.project_insert import RowPersistError, create_project

logger = logging.getLogger(__name__)

# Mounted both under /api and at the root.
health_router = APIRouter()
router = APIRouter()


@health_router.get("/health")
def health(database: Database = Depends(get_database)) -> dict[str, Any]:
    try:
        with database.cursor(readonly=True) as cur:
            cur.execute("SELECT 1")
            cur.fetchone()
    except (psycopg2.Error, DatabaseUnavailable) as e:
        logger.warning("health check failed: %s", e)
        return {"status": "unhealthy", "database_connected": False, "error": str(e)}
    return {"status": "healthy", "database_connected": True}


@router.get("/tables")
def tables(database: Database = Depends(get_database)) -> dict[str, Any]:
    with database.cursor(autocommit=True, readonly=True) as cur:
        return {"tables": table_row_counts(cur)}


@router.post("/projects", status_code=201)
def new_project(body: CreateProjectRequest, database: Database = Depends(get_database)) -> Any:
    try:
        with database.cursor() as cur:
            project_id = create_project(cur, body.model_dump())
    except RowPersistError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    logger.info("project created id=%s", project_id)
    return {"id": str(project_id), "message": "Project created successfully"}
