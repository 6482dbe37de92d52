from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

"""Project record models.

ProjectRecord is the mapped view of one spreadsheet row (every field optional,
absent when the sheet had no value). NormalizedRecord is what gets written:
the primary field plus the derived description, status and priority.
PersistedProject adds the identity and audit stamps assigned at insert time.
"""

__all__ = [
    "NormalizedRecord",
    "PersistedProject",
    "ProjectRecord",
]


@dataclass(frozen=True)
class ProjectRecord:
    fiscal_year: str | None = None
    project_number: str | None = None
    project_type: str | None = None
    region: str | None = None
    country: str | None = None
    department: str | None = None
    framework: str | None = None
    project_name: str | None = None
    committed: float | None = None
    naics_sector: str | None = None
    project_description: str | None = None
    project_profile_url: str | None = None

    @property
    def has_primary_field(self) -> bool:
        return bool(self.project_name and self.project_name.strip())

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class NormalizedRecord:
    name: str
    description: str | None
    status: str | None
    priority: str | None


@dataclass(frozen=True)
class PersistedProject:
    id: UUID
    record: NormalizedRecord
    date_entered: datetime
    date_modified: datetime
    created_by: str
    modified_user_id: str

    def insert_params(self) -> tuple[Any, ...]:
        """Values in `projects` column order (see db.project_insert.PROJECT_COLUMNS)."""
        return (
            str(self.id),
            self.record.name,
            self.record.description,
            self.record.status,
            self.record.priority,
            self.date_entered,
            self.date_modified,
            self.created_by,
            self.modified_user_id,
        )
