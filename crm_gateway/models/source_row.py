from __future__ import annotations

from dataclasses import dataclass

"""SourceRow model for the spreadsheet ingestion path.

A SourceRow is one data row of a sheet after cell stringification, held only
for the duration of a single sheet scan. Cell positions line up with the
sheet's header mapping (column index -> canonical header).
"""

__all__ = [
    "SheetData",
    "SourceRow",
]


@dataclass(frozen=True)
class SourceRow:
    """Logical representation of one sheet row before field mapping.

    The row_number is the 1-based position among data rows (the header row
    is not counted).
    """
    row_number: int
    cells: tuple[str | None, ...]  # None = empty cell

    def cell(self, index: int) -> str | None:
        if 0 <= index < len(self.cells):
            return self.cells[index]
        return None

    @property
    def is_blank(self) -> bool:
        return all(c is None for c in self.cells)


@dataclass(frozen=True)
class SheetData:
    sheet_name: str
    headers: dict[int, str]  # column index -> canonical (trimmed, lower-cased) header
    rows: list[SourceRow]
