from __future__ import annotations

import dataclasses
import logging
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from functools import partial
from pathlib import Path
from typing import Any
from uuid import UUID, uuid4

from psycopg2 import errorcodes

from crm_gateway.db.project_insert import InvalidTableName, insert_project, validate_table_name
from crm_gateway.excel.field_map import normalize_record
from crm_gateway.excel.reader import read_project_records
from crm_gateway.logging.error_log import ErrorLogBuffer
from crm_gateway.models.config_models import ImportSettings
from crm_gateway.models.error_record import ErrorRecord
from crm_gateway.models.import_outcome import ImportOutcome, InsertTimingAccumulator, RowError
from crm_gateway.models.project_record import NormalizedRecord, PersistedProject
from crm_gateway.services.progress import ProgressTracker

"""Record importer: spreadsheet -> field mapper -> one insert per record.

Batch contract:
- records are attempted in input order, each as its own unit of work
- a failing row appends (1-based row, message) and the loop moves on; no
  retries, nothing aborts the batch
- the batch is successful unless there were errors and zero inserts

Read failures (SourceUnreadable / SheetNotFound) happen before any insert and
propagate to the caller untouched.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "ImportRequest",
    "import_records",
    "preview_excel",
    "run_excel_import",
]

DEFAULT_SENTINEL_USER = "excel-import"


@dataclass(frozen=True)
class ImportRequest:
    file_path: str
    table_name: str = "projects"
    sheet_name: str | None = None
    column_mappings: Mapping[str, str] | None = None


def _utcnow() -> datetime:
    return datetime.now(UTC)


def import_records(
    records: Iterable[NormalizedRecord],
    insert: Callable[[PersistedProject], Any],
    *,
    sentinel_user: str = DEFAULT_SENTINEL_USER,
    clock: Callable[[], datetime] = _utcnow,
    id_factory: Callable[[], UUID] = uuid4,
    on_error: Callable[[int, Exception], None] | None = None,
    progress: ProgressTracker | None = None,
) -> ImportOutcome:
    """Insert each record independently and tally the outcome.

    Args:
        records: normalized records, in sheet order
        insert: persists one PersistedProject; any exception marks the row failed
        sentinel_user: audit identity stamped into created_by / modified_user_id
        clock: timestamp source for date_entered / date_modified
        id_factory: synthetic unique id per record
        on_error: called with (row, exception) for each failed row
        progress: optional progress display

    Returns:
        ImportOutcome with total == succeeded + len(errors)
    """
    start = time.perf_counter()
    total = 0
    succeeded = 0
    errors: list[RowError] = []

    for row, record in enumerate(records, start=1):
        total += 1
        now = clock()
        project = PersistedProject(
            id=id_factory(),
            record=record,
            date_entered=now,
            date_modified=now,
            created_by=sentinel_user,
            modified_user_id=sentinel_user,
        )
        ok = False
        try:
            insert(project)
        except Exception as e:
            errors.append(RowError(row=row, message=str(e)))
            logger.warning("row %d not imported: %s", row, e)
            if on_error is not None:
                on_error(row, e)
        else:
            succeeded += 1
            ok = True

        if progress is not None:
            progress.advance(success=ok)
            progress.set_postfix(inserted=succeeded, failed=len(errors))

    return ImportOutcome(
        total=total,
        succeeded=succeeded,
        errors=tuple(errors),
        elapsed_seconds=time.perf_counter() - start,
    )


def classify_error(exc: Exception) -> str:
    """UPPER_SNAKE error type for the error log, from the PostgreSQL SQLSTATE when available."""
    pgcode = getattr(exc.__cause__, "pgcode", None) or getattr(exc, "pgcode", None)
    if pgcode:
        try:
            return errorcodes.lookup(pgcode)
        except KeyError:
            return f"SQLSTATE_{pgcode}"
    return "DATABASE_INSERT_ERROR"


def run_excel_import(
    database: Any,
    request: ImportRequest,
    settings: ImportSettings | None = None,
    *,
    show_progress: bool = False,
) -> ImportOutcome:
    """Read, map and import one sheet.

    Raises:
        SourceUnreadable, SheetNotFound: the sheet could not be read (nothing imported)
        InvalidTableName: table_name is not a plain identifier, or is neither
            the default table nor listed in allowed_tables
    """
    settings = settings or ImportSettings()
    table = validate_table_name(request.table_name)
    if not settings.accepts_table(table):
        raise InvalidTableName(f"table {table!r} is not enabled for imports")
    records = read_project_records(request.file_path, request.sheet_name, request.column_mappings)
    normalized = [normalize_record(r) for r in records]
    logger.info(
        "importing %d records from %s (sheet=%s) into %s",
        len(normalized),
        request.file_path,
        request.sheet_name or "<first>",
        table,
    )

    error_log = ErrorLogBuffer(settings.error_log_dir)
    timings = InsertTimingAccumulator()
    file_name = Path(request.file_path).name
    sheet_label = request.sheet_name or "<FIRST_SHEET>"

    def record_error(row: int, exc: Exception) -> None:
        error_log.append(
            ErrorRecord.create(
                file=file_name,
                sheet=sheet_label,
                row=row,
                error_type=classify_error(exc),
                db_message=str(exc),
            )
        )

    with database.cursor(autocommit=True) as cur:
        with ProgressTracker(len(normalized), enabled=show_progress) as tracker:
            outcome = import_records(
                normalized,
                partial(insert_project, cur, table=table, timing_callback=timings.add),
                sentinel_user=settings.sentinel_user,
                on_error=record_error,
                progress=tracker,
            )

    try:
        log_path = error_log.flush()
        if log_path is not None:
            logger.info("row errors written to %s", log_path)
    except OSError as e:
        logger.warning("failed to write import error log: %s", e)

    _, avg, p95 = timings.get_stats()
    return dataclasses.replace(outcome, avg_insert_seconds=avg, p95_insert_seconds=p95)


def preview_excel(
    file_path: str,
    sheet_name: str | None = None,
    column_mappings: Mapping[str, str] | None = None,
    limit: int = 10,
) -> dict[str, Any]:
    """Mapped records of a sheet without importing: total count plus the first `limit`."""
    records = read_project_records(file_path, sheet_name, column_mappings)
    return {
        "total_records": len(records),
        "preview": [r.to_dict() for r in records[:limit]],
    }
