from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from dotenv import load_dotenv
from jsonschema.exceptions import ValidationError

from crm_gateway.models.config_models import (
    AIConfig,
    DatabaseConfig,
    GatewayConfig,
    ImportSettings,
    ServerConfig,
)

"""Config loader.

Responsibilities:
- Load the optional YAML file (config/gateway.yml by default)
- Validate it against the bundled JSON schema
- Overlay connection/server/API-key settings from the environment
- Return one immutable GatewayConfig

Resolution order per setting: environment > YAML > built-in default.
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/gateway.yml")
DEFAULT_SERVER_PORT = 8081

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "load_config",
    "load_env_file",
]


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or invalid, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top-level value must be a mapping")
    _validate_config_schema(data)
    return data


def _int_or(value: str | None, fallback: int | None) -> int | None:
    if value is None or value.strip() == "":
        return fallback
    try:
        return int(value)
    except ValueError:
        return fallback


def load_config(path: Path | None = None, env: Mapping[str, str] | None = None) -> GatewayConfig:
    """Build the process-wide GatewayConfig.

    Args:
        path: YAML config file; None means defaults + environment only
        env: environment mapping (defaults to os.environ)
    """
    env = os.environ if env is None else env
    data = _read_yaml(path) if path is not None else {}

    db_raw = data.get("database", {})
    database = DatabaseConfig(
        host=env.get("PGHOST") or db_raw.get("host"),
        port=_int_or(env.get("PGPORT"), db_raw.get("port")),
        user=env.get("PGUSER") or db_raw.get("user"),
        password=env.get("PGPASSWORD") or db_raw.get("password"),
        database=env.get("PGDATABASE") or db_raw.get("database"),
        dsn=env.get("DATABASE_URL") or env.get("PGDSN") or db_raw.get("dsn"),
        max_connections=db_raw.get("max_connections", 5),
    )

    srv_raw = data.get("server", {})
    server = ServerConfig(
        host=env.get("SERVER_HOST") or srv_raw.get("host", "127.0.0.1"),
        port=_int_or(env.get("SERVER_PORT"), srv_raw.get("port", DEFAULT_SERVER_PORT)) or DEFAULT_SERVER_PORT,
        cors_origins=tuple(srv_raw.get("cors_origins", ["*"])),
    )

    ai_raw = data.get("ai", {})
    ai_defaults = AIConfig()
    ai = AIConfig(
        api_key=env.get("GEMINI_API_KEY") or ai_raw.get("api_key"),
        base_url=ai_raw.get("base_url", ai_defaults.base_url),
        model=ai_raw.get("model", ai_defaults.model),
        timeout_seconds=float(ai_raw.get("timeout_seconds", ai_defaults.timeout_seconds)),
    )

    imp_raw = data.get("imports", {})
    imp_defaults = ImportSettings()
    imports = ImportSettings(
        default_table=imp_raw.get("default_table", imp_defaults.default_table),
        sentinel_user=imp_raw.get("sentinel_user", imp_defaults.sentinel_user),
        preview_limit=imp_raw.get("preview_limit", imp_defaults.preview_limit),
        error_log_dir=imp_raw.get("error_log_dir", imp_defaults.error_log_dir),
        allowed_tables=tuple(imp_raw.get("allowed_tables", imp_defaults.allowed_tables)),
    )

    return GatewayConfig(database=database, server=server, ai=ai, imports=imports)


def load_env_file(path: Path, override: bool = True) -> bool:
    """Load a .env file with python-dotenv.

    override=True lets .env values win over variables already in the process.
    Returns True when a file was loaded.
    """
    if not path.exists():
        return False
    return load_dotenv(dotenv_path=path, override=override)
