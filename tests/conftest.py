# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable, Iterable
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import pandas as pd
import psycopg2
import pytest

from crm_gateway.logging.init import reset_logging


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """database:
  host: db.internal
  port: 5433
  user: crm
  password: secret
  database: crm
  max_connections: 3
server:
  host: 0.0.0.0
  port: 9000
ai:
  model: gemini-test
imports:
  sentinel_user: nightly-import
  error_log_dir: logs
  allowed_tables: [crm_projects]
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "gateway.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def clean_logging():
    reset_logging()
    yield
    reset_logging()


PROJECT_HEADERS = ["Fiscal Year", "Project Number", "Project Type", "Region", "Country", "Project Name", "Committed"]


def _write_excel(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
    with pd.ExcelWriter(path) as writer:
        for sheet, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return path


@pytest.fixture()
def make_excel(temp_workdir: Path) -> Callable[..., Path]:
    """Write an .xlsx under data/; each sheet is a list of rows (row 1 = headers)."""
    def _make(name: str, sheets: dict[str, list[list[object]]]) -> Path:
        return _write_excel(temp_workdir / "data" / name, sheets)
    return _make


@pytest.fixture()
def projects_excel(make_excel) -> Path:
    return make_excel(
        "projects.xlsx",
        {
            "Projects": [
                PROJECT_HEADERS,
                ["2024", "P-001", "Active", "Asia", "Japan", "Harbor Upgrade", 12_000_000],
                ["2024", "P-002", "Planned", "Europe", "France", "Rail Link", 2_500_000],
                ["2023", "P-003", "Completed", "Africa", "Kenya", "Water Works", 500_000],
                ["2024", "P-004", "Study", "Asia", "Vietnam", "Grid Survey", "n/a"],
                ["2025", "P-005", "Active", "Americas", "Peru", "Road Repair", 1_000_000],
            ],
            "Notes": [["Note"], ["internal"]],
        },
    )


class FakeCursor:
    """In-memory stand-in for a psycopg2 cursor.

    fail_on: 1-based execute() call numbers that raise psycopg2.DataError.
    results: queued (description, rows) pairs consumed by each execute().
    """

    def __init__(
        self,
        fail_on: Iterable[int] = (),
        results: list[tuple[list[tuple] | None, list[tuple]]] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.fail_on = set(fail_on)
        self.results = list(results or [])
        self.error = error
        self.executed: list[tuple[str, Any]] = []
        self.description: list[tuple] | None = None
        self._rows: list[tuple] = []

    def execute(self, sql: str, params: Any = None) -> None:
        self.executed.append((sql, params))
        if self.error is not None:
            raise self.error
        if len(self.executed) in self.fail_on:
            raise psycopg2.DataError(f"simulated failure on call {len(self.executed)}")
        if self.results:
            self.description, self._rows = self.results.pop(0)
        else:
            self.description, self._rows = None, []

    def fetchone(self) -> tuple | None:
        return self._rows[0] if self._rows else None

    def fetchall(self) -> list[tuple]:
        return list(self._rows)

    def close(self) -> None:
        pass


class FakeDatabase:
    """Duck-typed crm_gateway.db.pool.Database handing out one FakeCursor."""

    def __init__(self, cursor: FakeCursor | None = None) -> None:
        self.cursor_obj = cursor or FakeCursor()
        self.opened = False
        self.closed = False
        self.sessions: list[dict[str, bool]] = []

    @property
    def is_open(self) -> bool:
        return self.opened and not self.closed

    def open(self) -> None:
        self.opened = True

    def close(self) -> None:
        self.closed = True

    @contextmanager
    def cursor(self, *, autocommit: bool = False, readonly: bool = False):
        self.sessions.append({"autocommit": autocommit, "readonly": readonly})
        yield self.cursor_obj


@pytest.fixture()
def make_cursor() -> Callable[..., FakeCursor]:
    return FakeCursor


@pytest.fixture()
def make_database() -> Callable[..., FakeDatabase]:
    return FakeDatabase
