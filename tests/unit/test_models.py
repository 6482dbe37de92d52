from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

import pytest

from crm_gateway.models import (
    DynamicRow,
    ImportOutcome,
    NormalizedRecord,
    NullValue,
    OpaqueValue,
    PersistedProject,
    ProjectRecord,
    RowError,
    SourceRow,
    TextValue,
)
from crm_gateway.models.import_outcome import InsertTimingAccumulator


class TestSourceRow:
    def test_cell_out_of_range_is_absent(self):
        row = SourceRow(row_number=1, cells=("a",))
        assert row.cell(0) == "a"
        assert row.cell(3) is None
        assert row.cell(-1) is None

    def test_is_blank(self):
        assert SourceRow(row_number=1, cells=(None, None)).is_blank
        assert SourceRow(row_number=1, cells=()).is_blank
        assert not SourceRow(row_number=1, cells=(None, "x")).is_blank


def test_project_record_primary_field():
    assert not ProjectRecord().has_primary_field
    assert not ProjectRecord(project_name="  ").has_primary_field
    assert ProjectRecord(project_name="Harbor").to_dict()["project_name"] == "Harbor"


def test_persisted_project_insert_params():
    now = datetime(2024, 1, 1, tzinfo=UTC)
    pid = uuid4()
    project = PersistedProject(
        id=pid,
        record=NormalizedRecord(name="N", description=None, status="Active", priority="Low"),
        date_entered=now,
        date_modified=now,
        created_by="u",
        modified_user_id="u",
    )
    assert project.insert_params() == (str(pid), "N", None, "Active", "Low", now, now, "u", "u")


class TestImportOutcome:
    def test_counts_and_message(self):
        outcome = ImportOutcome(total=4, succeeded=3, errors=(RowError(2, "bad"),))
        assert outcome.total == outcome.succeeded + len(outcome.errors)
        assert outcome.success
        assert outcome.message == "Imported 3 of 4 records with 1 errors"
        assert outcome.rendered_errors() == ["Row 2: bad"]

    def test_nothing_inserted_with_errors_is_failure(self):
        assert not ImportOutcome(total=1, succeeded=0, errors=(RowError(1, "bad"),)).success


class TestInsertTimingAccumulator:
    def test_empty(self):
        assert InsertTimingAccumulator().get_stats() == (0, 0.0, 0.0)

    def test_single(self):
        acc = InsertTimingAccumulator()
        acc.add(0.5)
        assert acc.get_stats() == (1, 0.5, 0.5)

    def test_p95(self):
        acc = InsertTimingAccumulator()
        for i in range(1, 101):
            acc.add(i / 1000)
        count, avg, p95 = acc.get_stats()
        assert count == 100
        assert avg == pytest.approx(0.0505)
        assert p95 == pytest.approx(0.09505)


class TestDynamicRow:
    def test_variants_to_json(self):
        assert NullValue().to_json() is None
        assert TextValue("x").to_json() == "x"
        assert OpaqueValue().to_json() == "Non-string value"

    def test_last_write_wins_keeps_first_position(self):
        row = DynamicRow()
        row.set("a", TextValue("1"))
        row.set("b", NullValue())
        row.set("a", TextValue("2"))
        assert row.columns() == ["a", "b"]
        assert row.to_json() == {"a": "2", "b": None}
