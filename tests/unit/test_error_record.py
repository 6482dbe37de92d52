from __future__ import annotations

import json

from crm_gateway.models.error_record import ErrorRecord


def test_create_stamps_utc_with_z_suffix():
    rec = ErrorRecord.create(file="f.xlsx", sheet="S", row=3, error_type="X", db_message="m")
    assert rec.timestamp.endswith("Z")
    assert "+00:00" not in rec.timestamp


def test_json_line_has_fixed_keys_and_keeps_unicode():
    rec = ErrorRecord.create(file="案件.xlsx", sheet="S", row=-1, error_type="READ_ERROR", db_message="ü")
    data = json.loads(rec.to_json_line())
    assert list(data) == ["timestamp", "file", "sheet", "row", "error_type", "db_message"]
    assert "案件.xlsx" in rec.to_json_line()
    assert data["row"] == -1


def test_create_with_explicit_time():
    from datetime import datetime, timedelta, timezone

    tokyo = timezone(timedelta(hours=9))
    rec = ErrorRecord.create(
        file="f.xlsx", sheet="S", row=1, error_type="X", db_message="m",
        now=datetime(2024, 5, 1, 21, 0, tzinfo=tokyo),
    )
    assert rec.timestamp == "2024-05-01T12:00:00Z"
