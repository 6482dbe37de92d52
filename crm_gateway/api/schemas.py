from __future__ import annotations

from pydantic import BaseModel

"""Request bodies accepted by the HTTP API."""


class CreateProjectRequest(BaseModel):
    name: str
    description: str | None = None
    status: str | None = None
    estimated_start_date: str | None = None
    estimated_end_date: str | None = None


class QueryRequest(BaseModel):
    query: str


class ImportExcelRequest(BaseModel):
    file_path: str
    sheet_name: str | None = None
    # Falls back to imports.default_table when omitted.
    table_name: str | None = None
    column_mappings: dict[str, str] | None = None


class AnalysisRequest(BaseModel):
    prompt: str
    # Accepted for client compatibility; not forwarded to the AI API.
    data_context: str | None = None
