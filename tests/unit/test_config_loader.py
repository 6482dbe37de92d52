from __future__ import annotations

from pathlib import Path

import pytest

from crm_gateway.config.loader import ConfigError, load_config, load_env_file


def test_load_config_from_yaml(write_config: Path):
    cfg = load_config(write_config, env={})
    assert cfg.database.host == "db.internal"
    assert cfg.database.port == 5433
    assert cfg.database.max_connections == 3
    assert cfg.server.host == "0.0.0.0"
    assert cfg.server.port == 9000
    assert cfg.ai.model == "gemini-test"
    assert cfg.imports.sentinel_user == "nightly-import"
    assert cfg.imports.default_table == "projects"
    assert cfg.imports.allowed_tables == ("crm_projects",)


def test_defaults_without_file():
    cfg = load_config(None, env={})
    assert cfg.database.max_connections == 5
    assert cfg.server.host == "127.0.0.1"
    assert cfg.server.port == 8081
    assert cfg.server.cors_origins == ("*",)
    assert cfg.ai.api_key is None
    assert cfg.imports.preview_limit == 10


def test_environment_wins_over_file(write_config: Path):
    env = {
        "DATABASE_URL": "postgresql://app:pw@pg.example:6543/crm?sslmode=require",
        "PGHOST": "env-host",
        "GEMINI_API_KEY": "AIzaTESTKEY1234",
        "SERVER_HOST": "10.0.0.5",
        "SERVER_PORT": "8181",
    }
    cfg = load_config(write_config, env=env)
    assert cfg.database.dsn == env["DATABASE_URL"]
    assert cfg.database.to_dsn() == env["DATABASE_URL"]
    assert cfg.database.host == "env-host"
    assert cfg.ai.api_key == "AIzaTESTKEY1234"
    assert cfg.server.host == "10.0.0.5"
    assert cfg.server.port == 8181


def test_pgdsn_used_when_database_url_absent():
    cfg = load_config(None, env={"PGDSN": "host=a dbname=b"})
    assert cfg.database.to_dsn() == "host=a dbname=b"


@pytest.mark.parametrize("raw", ["not-a-port", "", "  "])
def test_unparsable_server_port_falls_back(raw):
    assert load_config(None, env={"SERVER_PORT": raw}).server.port == 8081


def test_missing_config_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="config file not found"):
        load_config(temp_workdir / "config" / "absent.yml", env={})


def test_invalid_yaml(temp_workdir: Path):
    p = temp_workdir / "config" / "gateway.yml"
    p.write_text("database: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(p, env={})


def test_empty_yaml_means_defaults(temp_workdir: Path):
    p = temp_workdir / "config" / "gateway.yml"
    p.write_text("", encoding="utf-8")
    assert load_config(p, env={}).server.port == 8081


def test_load_env_file(temp_workdir: Path, monkeypatch):
    monkeypatch.delenv("CRM_GATEWAY_TEST_VAR", raising=False)
    env_file = temp_workdir / ".env"
    env_file.write_text("CRM_GATEWAY_TEST_VAR=from-dotenv\n", encoding="utf-8")
    assert load_env_file(env_file) is True
    import os

    assert os.environ["CRM_GATEWAY_TEST_VAR"] == "from-dotenv"
    monkeypatch.delenv("CRM_GATEWAY_TEST_VAR")


def test_load_env_file_missing(temp_workdir: Path):
    assert load_env_file(temp_workdir / ".env") is False
