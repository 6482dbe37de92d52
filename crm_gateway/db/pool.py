from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import psycopg2
from psycopg2.pool import ThreadedConnectionPool

from crm_gateway.models.config_models import DatabaseConfig

"""Connection pool wrapper.

The pool is the only resource shared between concurrent requests. Each
request checks out its own connection; when all `max_connections` are in use
further callers wait on a semaphore instead of failing, so contention shows up
as latency only.

The pool is created once per process (API lifespan / CLI command) and closed
on shutdown.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "Database",
    "DatabaseUnavailable",
]


class DatabaseUnavailable(Exception):
    """Raised when the pool cannot be created or is used before open()."""


class Database:
    def __init__(self, config: DatabaseConfig) -> None:
        self.config = config
        self._pool: ThreadedConnectionPool | None = None
        self._slots = threading.BoundedSemaphore(config.max_connections)

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    def open(self) -> None:
        if self._pool is not None:
            return
        try:
            self._pool = ThreadedConnectionPool(
                minconn=1,
                maxconn=self.config.max_connections,
                dsn=self.config.to_dsn(),
            )
        except psycopg2.Error as e:
            raise DatabaseUnavailable(f"failed to connect to database: {e}") from e
        logger.info("database pool opened (max_connections=%d)", self.config.max_connections)

    def close(self) -> None:
        if self._pool is None:
            return
        self._pool.closeall()
        self._pool = None
        logger.info("database pool closed")

    def _require_pool(self) -> ThreadedConnectionPool:
        if self._pool is None:
            raise DatabaseUnavailable("database pool is not open")
        return self._pool

    @contextmanager
    def connection(self) -> Iterator[Any]:
        """Check out one pooled connection for the duration of the block."""
        pool = self._require_pool()
        with self._slots:
            conn = pool.getconn()
            try:
                yield conn
            except Exception:
                if not conn.closed:
                    conn.rollback()
                raise
            finally:
                pool.putconn(conn)

    @contextmanager
    def cursor(self, *, autocommit: bool = False, readonly: bool = False) -> Iterator[Any]:
        """Yield a cursor on a pooled connection.

        autocommit=True makes every statement its own unit of work (used by the
        importer so one failing row never poisons the next). Otherwise the
        block is one transaction, committed on normal exit.
        """
        with self.connection() as conn:
            conn.set_session(readonly=readonly, autocommit=autocommit)
            cur = conn.cursor()
            try:
                yield cur
                if not autocommit:
                    conn.commit()
            finally:
                cur.close()
