from __future__ import annotations

from fastapi import Request

from crm_gateway.db.pool import Database
from crm_gateway.models.config_models import GatewayConfig


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_config(request: Request) -> GatewayConfig:
    return request.app.state.config
