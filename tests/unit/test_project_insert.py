from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID, uuid4

import psycopg2
import pytest

from crm_gateway.db.project_insert import (
    PROJECT_COLUMNS,
    InvalidTableName,
    RowPersistError,
    build_insert_sql,
    create_project,
    insert_project,
    validate_table_name,
)
from crm_gateway.models.project_record import NormalizedRecord, PersistedProject

NOW = datetime(2024, 5, 1, tzinfo=UTC)


def _project() -> PersistedProject:
    return PersistedProject(
        id=uuid4(),
        record=NormalizedRecord(name="Harbor", description="Region: Asia", status="Active", priority="High"),
        date_entered=NOW,
        date_modified=NOW,
        created_by="excel-import",
        modified_user_id="excel-import",
    )


def test_build_insert_sql():
    sql = build_insert_sql("projects", ("id", "name"))
    assert sql == 'INSERT INTO "projects" ("id", "name") VALUES (%s, %s)'


@pytest.mark.parametrize("name", ["projects; drop table users", "", "1abc", 'pro"jects', "a b"])
def test_validate_table_name_rejects(name):
    with pytest.raises(InvalidTableName):
        validate_table_name(name)


def test_validate_table_name_accepts_identifier():
    assert validate_table_name("crm_projects_2024") == "crm_projects_2024"


def test_insert_project_binds_all_columns(make_cursor):
    cursor = make_cursor()
    project = _project()
    timings: list[float] = []
    insert_project(cursor, project, timing_callback=timings.append)

    (sql, params), = cursor.executed
    assert sql == build_insert_sql("projects", PROJECT_COLUMNS)
    assert len(params) == len(PROJECT_COLUMNS)
    assert params[0] == str(project.id)
    assert params[1:5] == ("Harbor", "Region: Asia", "Active", "High")
    assert params[5] == params[6] == NOW
    assert len(timings) == 1


def test_insert_project_wraps_driver_error_and_still_times(make_cursor):
    cursor = make_cursor(error=psycopg2.IntegrityError("duplicate key value"))
    timings: list[float] = []
    with pytest.raises(RowPersistError, match="duplicate key value") as exc_info:
        insert_project(cursor, _project(), timing_callback=timings.append)
    assert isinstance(exc_info.value.__cause__, psycopg2.IntegrityError)
    assert len(timings) == 1


def test_create_project(make_cursor):
    cursor = make_cursor()
    project_id = create_project(cursor, {"name": "Manual", "status": "Planning", "estimated_start_date": "2024-06-01"})
    assert isinstance(project_id, UUID)
    (sql, params), = cursor.executed
    assert '"estimated_start_date"' in sql
    assert params[0] == str(project_id)
    assert params[1:6] == ("Manual", None, "Planning", "2024-06-01", None)
    assert params[8:] == ("1", "1")


def test_create_project_error(make_cursor):
    cursor = make_cursor(error=psycopg2.DataError("invalid input syntax for type date"))
    with pytest.raises(RowPersistError):
        create_project(cursor, {"name": "Manual", "estimated_start_date": "soon"})
