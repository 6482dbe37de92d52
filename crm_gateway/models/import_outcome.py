from __future__ import annotations

import statistics
from dataclasses import dataclass, field

"""Import result models for the record importer.

ImportOutcome is the per-batch result handed back to the HTTP layer and the
CLI. Every row either succeeds or contributes exactly one RowError, so
`total == succeeded + len(errors)` always holds.
"""

__all__ = [
    "ImportOutcome",
    "InsertTimingAccumulator",
    "RowError",
]


@dataclass(frozen=True)
class RowError:
    """One failed row: 1-based position in the batch and the stringified error."""
    row: int
    message: str

    def render(self) -> str:
        return f"Row {self.row}: {self.message}"


@dataclass(frozen=True)
class ImportOutcome:
    total: int
    succeeded: int
    errors: tuple[RowError, ...] = ()
    elapsed_seconds: float = 0.0
    avg_insert_seconds: float = 0.0
    p95_insert_seconds: float = 0.0

    @property
    def success(self) -> bool:
        # Partial success still counts as success; only "errors and nothing inserted" fails.
        return not self.errors or self.succeeded > 0

    @property
    def failed_rows(self) -> list[int]:
        return [e.row for e in self.errors]

    @property
    def message(self) -> str:
        if not self.errors:
            return f"Successfully imported {self.succeeded} records"
        return (
            f"Imported {self.succeeded} of {self.total} records "
            f"with {len(self.errors)} errors"
        )

    def rendered_errors(self) -> list[str]:
        return [e.render() for e in self.errors]


@dataclass
class InsertTimingAccumulator:
    """Collects per-row insert timings and summarizes them for the SUMMARY line."""
    insert_times: list[float] = field(default_factory=list)

    def add(self, elapsed_seconds: float) -> None:
        self.insert_times.append(elapsed_seconds)

    def get_stats(self) -> tuple[int, float, float]:
        """Return (count, avg_seconds, p95_seconds)."""
        if not self.insert_times:
            return (0, 0.0, 0.0)

        count = len(self.insert_times)
        avg = statistics.mean(self.insert_times)
        if count == 1:
            p95 = self.insert_times[0]
        else:
            # 19th of 20 inclusive quantiles = 95th percentile
            p95 = statistics.quantiles(self.insert_times, n=20, method="inclusive")[18]
        return (count, avg, p95)
