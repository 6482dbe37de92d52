from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from crm_gateway.models.error_record import ErrorRecord

"""Import error log buffering.

Row failures are buffered in memory while a batch runs and written once at the
end as JSON Lines to `<logs_dir>/import-errors-YYYYMMDD-HHMMSS-ffffff.log` (UTC). The
file is created lazily, so a clean batch leaves nothing on disk.
"""

__all__ = [
    "ErrorLogBuffer",
    "ErrorRecord",
]

TIMESTAMP_FMT = "%Y%m%d-%H%M%S-%f"


class ErrorLogBuffer:
    """In-memory buffer for error records. Flush appends JSON Lines.

    One buffer belongs to one import call; it is never shared between requests.
    """

    def __init__(self, logs_dir: Path | str = "logs") -> None:
        self.logs_dir = Path(logs_dir)
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self.logs_dir / f"import-errors-{stamp}.log"
        return self._file_path

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered records; returns the log path, or None when nothing was buffered."""
        if not self._records:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
