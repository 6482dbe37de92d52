from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from crm_gateway.api.deps import get_config, get_database
from crm_gateway.api.schemas import ImportExcelRequest
from crm_gateway.db.pool import Database
from crm_gateway.db.project_insert import InvalidTableName
from crm_gateway.excel.reader import SheetNotFound, SourceUnreadable, list_sheet_names
from crm_gateway.models.config_models import GatewayConfig
from crm_gateway.services.importer import ImportRequest, preview_excel, run_excel_import

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/import")

READ_ERRORS = (SourceUnreadable, SheetNotFound)


def _rejected(message: str, error: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "message": message,
            "records_processed": None,
            "records_inserted": None,
            "errors": [str(error)],
        },
    )


@router.post("/excel")
def import_excel(
    body: ImportExcelRequest,
    database: Database = Depends(get_database),
    config: GatewayConfig = Depends(get_config),
) -> Any:
    request = ImportRequest(
        file_path=body.file_path,
        table_name=body.table_name or config.imports.default_table,
        sheet_name=body.sheet_name,
        column_mappings=body.column_mappings,
    )
    try:
        outcome = run_excel_import(database, request, config.imports)
    except READ_ERRORS as e:
        return _rejected(f"Failed to read Excel file: {e}", e)
    except InvalidTableName as e:
        return _rejected(f"Invalid table name: {request.table_name}", e)

    logger.info("import of %s finished: %s", body.file_path, outcome.message)
    return {
        "success": outcome.success,
        "message": outcome.message,
        "records_processed": outcome.total,
        "records_inserted": outcome.succeeded,
        "errors": outcome.rendered_errors(),
    }


@router.post("/excel/preview")
def preview(body: ImportExcelRequest, config: GatewayConfig = Depends(get_config)) -> Any:
    limit = config.imports.preview_limit
    try:
        result = preview_excel(body.file_path, body.sheet_name, body.column_mappings, limit)
    except READ_ERRORS as e:
        return _rejected(f"Failed to read Excel file: {e}", e)
    return {
        "success": True,
        "message": f"Preview of {result['total_records']} records (showing first {limit})",
        "total_records": result["total_records"],
        "preview": result["preview"],
    }


@router.post("/excel/sheets")
def sheets(payload: dict[str, Any] = Body(...)) -> Any:
    file_path = payload.get("file_path")
    if not isinstance(file_path, str):
        return JSONResponse(status_code=400, content={"success": False, "message": "file_path is required"})
    try:
        names = list_sheet_names(file_path)
    except SourceUnreadable as e:
        return JSONResponse(status_code=400, content={"success": False, "message": f"Failed to read Excel file: {e}"})
    return {"success": True, "sheets": names}
