from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from crm_gateway.api.deps import get_config
from crm_gateway.api.schemas import AnalysisRequest
from crm_gateway.models.config_models import GatewayConfig
from crm_gateway.services.ai_analysis import AIServiceError, generate_analysis, verify_api_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai")


@router.get("/test")
async def check_key(request: Request, config: GatewayConfig = Depends(get_config)) -> dict[str, Any]:
    ai = config.ai
    error = None
    if not ai.key_present:
        success, message = False, "Gemini API key not configured or is dummy value"
    else:
        try:
            await verify_api_key(ai, transport=request.app.state.ai_transport)
            success, message = True, "Gemini API key is valid and working"
        except AIServiceError as e:
            success, message, error = False, "Gemini API key present but test failed", str(e)
    return {
        "success": success,
        "message": message,
        "api_key_present": ai.key_present,
        "api_key_preview": ai.key_preview,
        "error": error,
    }


@router.post("/analyze")
async def analyze(body: AnalysisRequest, request: Request, config: GatewayConfig = Depends(get_config)) -> Any:
    if not config.ai.key_present:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "analysis": None,
                "error": "Gemini API key not configured",
                "error_details": None,
            },
        )
    try:
        analysis = await generate_analysis(config.ai, body.prompt, transport=request.app.state.ai_transport)
    except AIServiceError as e:
        logger.error("AI analysis failed: %s", e)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "analysis": None,
                "error": str(e),
                "error_details": e.details.to_dict() if e.details else None,
            },
        )
    return {"success": True, "analysis": analysis, "error": None, "error_details": None}
