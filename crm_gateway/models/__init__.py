"""Domain models for the CRM gateway.

Configuration objects, ingestion records, import outcomes and the schema-less
query result rows all live here.
"""

from .config_models import AIConfig, DatabaseConfig, GatewayConfig, ImportSettings, ServerConfig
from .dynamic_row import DynamicRow, NullValue, OpaqueValue, TextValue
from .import_outcome import ImportOutcome, RowError
from .project_record import NormalizedRecord, PersistedProject, ProjectRecord
from .source_row import SheetData, SourceRow

__all__ = [
    # Configuration models
    "AIConfig",
    "DatabaseConfig",
    "GatewayConfig",
    "ImportSettings",
    "ServerConfig",
    # Ingestion models
    "NormalizedRecord",
    "PersistedProject",
    "ProjectRecord",
    "SheetData",
    "SourceRow",
    "ImportOutcome",
    "RowError",
    # Query models
    "DynamicRow",
    "NullValue",
    "OpaqueValue",
    "TextValue",
]
