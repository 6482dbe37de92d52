from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the import error log.

One JSON Lines entry per failed insert. The key set is fixed: timestamp, file,
sheet, row, error_type, db_message.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Spreadsheet filename being imported
        sheet: Sheet name within the file
        row: Row number (1-based)
        error_type: Error classification in UPPER_SNAKE_CASE format
        db_message: Database error message or description
    """
    timestamp: str
    file: str
    sheet: str
    row: int
    error_type: str
    db_message: str

    @staticmethod
    def create(
        file: str,
        sheet: str,
        row: int,
        error_type: str,
        db_message: str,
        now: datetime | None = None,
    ) -> ErrorRecord:
        """Create a new ErrorRecord stamped with `now` (default: current UTC time)."""
        ts = (now or datetime.now(UTC)).astimezone(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            sheet=sheet,
            row=row,
            error_type=error_type,
            db_message=db_message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
