from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Row progress display with tqdm (TTY only).

Used by the CLI import command. The HTTP import path passes enabled=False, and
in non-TTY environments (CI, redirected output) the bar is never created so no
ANSI control sequences end up in logs.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    """Progress bar over the rows of one import batch."""

    def __init__(
        self,
        total_rows: int,
        *,
        description: str = "Importing rows",
        enabled: bool | None = None,
    ) -> None:
        """
        Args:
            total_rows: number of records in the batch
            description: bar label
            enabled: force on/off; None follows TTY detection
        """
        self.total_rows = total_rows
        self.description = description
        self.processed = 0
        self.failed = 0

        self.enabled = is_tty_enabled() if enabled is None else (enabled and is_tty_enabled())
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_rows,
                desc=description,
                unit="row",
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def advance(self, success: bool = True) -> None:
        self.processed += 1
        if not success:
            self.failed += 1
        if self.pbar is not None:
            self.pbar.update(1)

    def set_postfix(self, **kwargs: Any) -> None:
        if self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
