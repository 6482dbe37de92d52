from __future__ import annotations

import logging
import math
import numbers
from collections.abc import Mapping
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from crm_gateway.excel.field_map import build_header_fields, canonical_header, map_row
from crm_gateway.models.project_record import ProjectRecord
from crm_gateway.models.source_row import SheetData, SourceRow

"""Spreadsheet reader for the import pipeline.

- Row 1 of the chosen sheet is the header row; headers are trimmed and
  lower-cased and keyed by column index.
- Rows 2+ become SourceRows. Empty cells are None; every other cell is turned
  into text with a fixed, locale-independent representation so the field
  mapper only ever sees strings.
- Any failure to open or parse the workbook aborts the whole read
  (SourceUnreadable); a missing sheet aborts it as well (SheetNotFound).
"""

logger = logging.getLogger(__name__)

__all__ = [
    "SheetNotFound",
    "SourceUnreadable",
    "format_cell",
    "list_sheet_names",
    "read_project_records",
    "read_sheet",
]


class SourceUnreadable(Exception):
    """Raised when the spreadsheet container cannot be opened or parsed."""


class SheetNotFound(Exception):
    """Raised when the requested sheet does not exist in the workbook."""


def format_cell(value: Any) -> str | None:
    """Return the canonical text of one cell, or None for an empty cell.

    bool -> "true"/"false"; integral numbers -> "1234"; other floats use the
    shortest round-trip repr; dates/times -> ISO 8601; strings are trimmed.
    """
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    if isinstance(value, (bool, np.bool_)):
        return "true" if value else "false"
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, numbers.Integral):
        return str(int(value))
    if isinstance(value, numbers.Real):
        f = float(value)
        if math.isnan(f):
            return None
        if f.is_integer():
            return str(int(f))
        return repr(f)
    return str(value)


def _open_workbook(path: Path | str) -> pd.ExcelFile:
    try:
        return pd.ExcelFile(Path(path))
    except Exception as e:
        raise SourceUnreadable(f"cannot open spreadsheet '{path}': {e}") from e


def list_sheet_names(path: Path | str) -> list[str]:
    """Return sheet names in workbook order."""
    with _open_workbook(path) as xls:
        return [str(name) for name in xls.sheet_names]


def read_sheet(path: Path | str, sheet_name: str | None = None) -> SheetData:
    """Read one sheet (first sheet when sheet_name is None) into SourceRows.

    Fully blank rows are skipped; row numbers still count them so they line
    up with the data-row position in the sheet.
    """
    with _open_workbook(path) as xls:
        names = [str(name) for name in xls.sheet_names]
        if sheet_name is None:
            if not names:
                raise SheetNotFound(f"workbook '{path}' has no sheets")
            target = names[0]
        elif sheet_name in names:
            target = sheet_name
        else:
            raise SheetNotFound(f"sheet '{sheet_name}' not found in '{path}' (available: {names})")

        try:
            # No header inference and no NA-string conversion: "NA" in a cell stays "NA".
            df = xls.parse(target, header=None, dtype=object, keep_default_na=False, na_values=[])
        except Exception as e:
            raise SourceUnreadable(f"cannot parse sheet '{target}' of '{path}': {e}") from e

    if df.shape[0] == 0:
        return SheetData(sheet_name=target, headers={}, rows=[])

    headers: dict[int, str] = {}
    for col_idx, cell in enumerate(df.iloc[0].tolist()):
        headers[col_idx] = canonical_header(format_cell(cell) or "")

    rows: list[SourceRow] = []
    for offset, raw in enumerate(df.iloc[1:].itertuples(index=False, name=None), start=1):
        row = SourceRow(row_number=offset, cells=tuple(format_cell(v) for v in raw))
        if row.is_blank:
            continue
        rows.append(row)

    return SheetData(sheet_name=target, headers=headers, rows=rows)


def read_project_records(
    path: Path | str,
    sheet_name: str | None = None,
    column_mappings: Mapping[str, str] | None = None,
) -> list[ProjectRecord]:
    """Read a sheet and map its rows to ProjectRecords.

    Rows without a project name are not candidate records: they are dropped
    here and never reported as errors.
    """
    sheet = read_sheet(path, sheet_name)
    header_fields = build_header_fields(column_mappings)

    records: list[ProjectRecord] = []
    dropped = 0
    for row in sheet.rows:
        record = map_row(sheet.headers, row, header_fields)
        if not record.has_primary_field:
            dropped += 1
            continue
        records.append(record)

    logger.debug(
        "sheet=%s rows=%d records=%d dropped_without_name=%d",
        sheet.sheet_name,
        len(sheet.rows),
        len(records),
        dropped,
    )
    return records
