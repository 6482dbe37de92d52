from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx
import psycopg2
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from crm_gateway.api.routers import ai as ai_routes
from crm_gateway.api.routers import config as config_routes
from crm_gateway.api.routers import core as core_routes
from crm_gateway.api.routers import db as db_routes
from crm_gateway.api.routers import imports as import_routes
from crm_gateway.db.pool import Database, DatabaseUnavailable
from crm_gateway.models.config_models import GatewayConfig

"""FastAPI application factory.

Handlers are plain `def` functions, so FastAPI runs them on its threadpool and
each request checks out its own pooled connection. The AI routes are `async`
because they only wait on outbound HTTP.
"""

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def create_app(
    config: GatewayConfig,
    database: Database | None = None,
    ai_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the app; the database pool is opened on startup and closed on shutdown."""
    database = database or Database(config.database)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        database.open()
        try:
            yield
        finally:
            database.close()

    app = FastAPI(title="CRM gateway", lifespan=lifespan)
    app.state.config = config
    app.state.database = database
    app.state.ai_transport = ai_transport

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.server.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=3600,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next: Any) -> Any:
        start = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "%s %s -> %d (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - start) * 1000,
        )
        return response

    @app.exception_handler(DatabaseUnavailable)
    async def database_unavailable(_: Request, exc: DatabaseUnavailable) -> JSONResponse:
        return JSONResponse(status_code=503, content={"success": False, "error": str(exc)})

    @app.exception_handler(psycopg2.Error)
    async def database_error(_: Request, exc: psycopg2.Error) -> JSONResponse:
        logger.error("database error: %s", exc)
        return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})

    app.include_router(core_routes.health_router)
    for module in (core_routes, db_routes, import_routes, config_routes, ai_routes):
        app.include_router(module.router, prefix=API_PREFIX)
    app.include_router(core_routes.health_router, prefix=API_PREFIX)

    return app
