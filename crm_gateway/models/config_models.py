from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import urlsplit

from psycopg2.extensions import make_dsn

"""Config dataclasses for the CRM gateway.

These are the typed, immutable settings objects built once at process start by
`crm_gateway.config.loader.load_config()` and handed by reference to the
components that need them. Nothing below reads the environment.
"""

__all__ = [
    "AIConfig",
    "DatabaseConfig",
    "GatewayConfig",
    "ImportSettings",
    "ServerConfig",
]

# Placeholder keys shipped in sample .env files; treated as "not configured".
PLACEHOLDER_API_KEYS = frozenset({"dummy_key", "get-key-at-aistudio.google.com"})


@dataclass(frozen=True)
class DatabaseConfig:
    """PostgreSQL connection settings.

    A full DSN (`DATABASE_URL` style) wins over the individual fields.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None
    max_connections: int = 5  # pool cap; excess requests wait for a free connection

    def to_dsn(self) -> str:
        """Return a libpq connection string (DSN or keyword form)."""
        if self.dsn:
            return self.dsn
        return make_dsn(
            host=self.host or "localhost",
            port=self.port or 5432,
            user=self.user or "postgres",
            dbname=self.database or "postgres",
            password=self.password or None,
        )

    def describe(self) -> dict[str, object]:
        """Connection summary safe to expose over HTTP (never the password)."""
        if self.dsn and "://" in self.dsn:
            parts = urlsplit(self.dsn)
            port = parts.port or 5432
            return {
                "server": f"{parts.hostname or 'unknown'}:{port}",
                "database": parts.path.lstrip("/"),
                "username": parts.username or "",
                "port": port,
                "ssl": "sslmode=require" in self.dsn,
            }
        port = self.port or 5432
        return {
            "server": f"{self.host or 'localhost'}:{port}",
            "database": self.database or "",
            "username": self.user or "",
            "port": port,
            "ssl": bool(self.dsn and "sslmode=require" in self.dsn),
        }


@dataclass(frozen=True)
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8081
    cors_origins: tuple[str, ...] = ("*",)


@dataclass(frozen=True)
class AIConfig:
    """Generative-AI HTTP API settings (analysis proxy)."""
    api_key: str | None = None
    base_url: str = "https://generativelanguage.googleapis.com"
    model: str = "gemini-1.5-flash-latest"
    timeout_seconds: float = 30.0

    @property
    def key_present(self) -> bool:
        return bool(self.api_key) and self.api_key not in PLACEHOLDER_API_KEYS

    @property
    def key_preview(self) -> str | None:
        if not self.key_present:
            return None
        key = self.api_key or ""
        if len(key) > 8:
            return f"{key[:4]}...{key[-4:]}"
        return "***"


@dataclass(frozen=True)
class ImportSettings:
    default_table: str = "projects"
    sentinel_user: str = "excel-import"  # created_by / modified_user_id for imported rows
    preview_limit: int = 10
    error_log_dir: str = "logs"
    allowed_tables: tuple[str, ...] = ()  # import targets besides default_table

    def accepts_table(self, table: str) -> bool:
        return table == self.default_table or table in self.allowed_tables


@dataclass(frozen=True)
class GatewayConfig:
    """Root configuration object."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    imports: ImportSettings = field(default_factory=ImportSettings)
