from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from crm_gateway.models.project_record import NormalizedRecord, ProjectRecord
from crm_gateway.models.source_row import SourceRow

"""Header -> field mapping and record normalization.

Pure functions only: no I/O, no database. The header table maps canonical
(trimmed, lower-cased) sheet headers to ProjectRecord fields; unknown headers
are ignored. Priority, status and description are derived from other fields
by fixed rules.
"""

logger = logging.getLogger(__name__)

HEADER_FIELDS: dict[str, str] = {
    "fiscal year": "fiscal_year",
    "project number": "project_number",
    "project type": "project_type",
    "region": "region",
    "country": "country",
    "department": "department",
    "framework": "framework",
    "project name": "project_name",
    "committed": "committed",
    "naics sector": "naics_sector",
    "project description": "project_description",
    "project profile url": "project_profile_url",
}

PRIMARY_FIELD = "project_name"
AMOUNT_FIELD = "committed"

HIGH_PRIORITY_AMOUNT = 10_000_000.0
MEDIUM_PRIORITY_AMOUNT = 1_000_000.0

# Checked in order; first substring hit wins.
STATUS_RULES: tuple[tuple[str, str], ...] = (
    ("active", "Active"),
    ("planned", "Planning"),
    ("completed", "Completed"),
)
DEFAULT_STATUS = "Active"

# (field, label) in output order; None label = unlabeled line
DESCRIPTION_PARTS: tuple[tuple[str, str | None], ...] = (
    ("project_description", None),
    ("department", "Department"),
    ("region", "Region"),
    ("country", "Country"),
    ("framework", "Framework"),
    ("naics_sector", "NAICS Sector"),
    ("project_profile_url", "Profile URL"),
)


def canonical_header(text: Any) -> str:
    return str(text).strip().lower()


def build_header_fields(column_mappings: Mapping[str, str] | None = None) -> dict[str, str]:
    """Return the header table, extended by per-request column mappings.

    column_mappings maps a source header to a target field name; entries
    naming an unknown field are ignored.
    """
    fields = dict(HEADER_FIELDS)
    if not column_mappings:
        return fields
    known = set(HEADER_FIELDS.values())
    for source, target in column_mappings.items():
        target_field = canonical_header(target)
        if target_field not in known:
            logger.debug("ignoring column mapping %r -> %r (unknown field)", source, target)
            continue
        fields[canonical_header(source)] = target_field
    return fields


def parse_amount(text: str | None) -> float | None:
    """Parse the monetary cell; anything unparsable or non-finite is absent."""
    if text is None or "_" in text:
        return None
    try:
        amount = float(text)
    except ValueError:
        return None
    if not math.isfinite(amount):
        return None
    return amount


def map_row(
    headers: Mapping[int, str],
    row: SourceRow,
    header_fields: Mapping[str, str] = HEADER_FIELDS,
) -> ProjectRecord:
    """Map one SourceRow to a ProjectRecord.

    When two columns map to the same field the later column wins, empty or not.
    """
    values: dict[str, Any] = {}
    for col_idx in sorted(headers):
        field_name = header_fields.get(headers[col_idx])
        if field_name is None:
            continue
        cell = row.cell(col_idx)
        if field_name == AMOUNT_FIELD:
            values[field_name] = parse_amount(cell)
        else:
            values[field_name] = cell
    return ProjectRecord(**values)


def derive_priority(amount: float | None) -> str | None:
    if amount is None:
        return None
    if amount >= HIGH_PRIORITY_AMOUNT:
        return "High"
    if amount >= MEDIUM_PRIORITY_AMOUNT:
        return "Medium"
    return "Low"


def derive_status(project_type: str | None) -> str:
    if project_type:
        lowered = project_type.lower()
        for needle, status in STATUS_RULES:
            if needle in lowered:
                return status
    return DEFAULT_STATUS


def build_description(record: ProjectRecord) -> str | None:
    parts: list[str] = []
    for field_name, label in DESCRIPTION_PARTS:
        value = getattr(record, field_name)
        if value is None:
            continue
        parts.append(value if label is None else f"{label}: {value}")
    if not parts:
        return None
    return "\n\n".join(parts)


def normalize_record(record: ProjectRecord) -> NormalizedRecord:
    """Produce the insertable view of a mapped record."""
    if not record.has_primary_field:
        raise ValueError("record has no project name")
    return NormalizedRecord(
        name=record.project_name,  # type: ignore[arg-type]
        description=build_description(record),
        status=derive_status(record.project_type),
        priority=derive_priority(record.committed),
    )
