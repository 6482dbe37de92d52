from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from crm_gateway.api.deps import get_config
from crm_gateway.models.config_models import GatewayConfig

router = APIRouter(prefix="/config")


@router.get("/env")
def env(config: GatewayConfig = Depends(get_config)) -> dict[str, Any]:
    """Connection summary without secrets."""
    db = config.database
    configured = bool(db.dsn or db.host)
    return {
        "database": db.describe() if configured else None,
        "gemini_api_key_present": config.ai.key_present,
    }
