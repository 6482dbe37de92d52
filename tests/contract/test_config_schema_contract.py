from __future__ import annotations

import json
from pathlib import Path

import jsonschema
import pytest
import yaml
from jsonschema.exceptions import ValidationError

from crm_gateway.config.loader import SCHEMA_PATH, ConfigError, load_config

"""Bundled config schema contract."""


@pytest.fixture(scope="module")
def schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_sample_config_is_valid(schema, sample_config_yaml: str):
    jsonschema.validate(yaml.safe_load(sample_config_yaml), schema)


def test_unknown_top_level_key_rejected(schema):
    with pytest.raises(ValidationError):
        jsonschema.validate({"source_directory": "./data"}, schema)


def test_unknown_nested_key_rejected(schema):
    with pytest.raises(ValidationError):
        jsonschema.validate({"database": {"hostname": "db"}}, schema)


@pytest.mark.parametrize(
    "config",
    [
        {"database": {"port": "5432"}},
        {"database": {"max_connections": 0}},
        {"server": {"port": 70000}},
        {"ai": {"timeout_seconds": 0}},
        {"imports": {"default_table": "projects; drop"}},
        {"imports": {"preview_limit": 0}},
        {"imports": {"allowed_tables": ["ok", "bad name"]}},
    ],
)
def test_invalid_values_rejected(schema, config):
    with pytest.raises(ValidationError):
        jsonschema.validate(config, schema)


def test_loader_reports_validation_failure(temp_workdir: Path):
    p = temp_workdir / "config" / "gateway.yml"
    p.write_text("server:\n  port: not-a-number\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(p, env={})
