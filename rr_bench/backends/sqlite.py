"""
SQLite adapter.

The "primary" and the "replica" are the same database file; every capability
instance still opens its own WAL-mode connection so readers and the writer
contend the way separate clients would.

Backend flags
-------------
db-path : str
    Database file. Defaults to ``SQLITE_PATH``.
init-schema : bool
    Create tables and views before the run (``true``/``false``, default false).
"""

from __future__ import annotations

import sqlite3
from typing import Any, Mapping, Optional, Sequence, Tuple

from rr_bench.backends.base import SqlPrimary, SqlReplica
from rr_bench.config import get_settings
from rr_bench.infrastructure.db_factory import apply_schema, get_sqlite_connection
from rr_bench.utils.logging import get_logger

log = get_logger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


class SqlitePrimary(SqlPrimary):
    placeholder = "?"

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def _fetch_one(self, sql: str) -> Optional[Sequence[Any]]:
        return self._conn.execute(sql).fetchone()

    def _execute(self, sql: str, params: Tuple[Any, ...]) -> None:
        self._conn.execute(sql, params)

    def close(self) -> None:
        self._conn.close()


class SqliteReplica(SqlReplica):
    placeholder = "?"

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def _query(self, sql: str, params: Tuple[Any, ...]) -> None:
        self._conn.execute(sql, params).fetchall()

    def close(self) -> None:
        self._conn.close()


class SqliteBenchmark:
    name: str = "sqlite"
    description: str = "Single SQLite file (WAL) acting as both primary and replica."

    def __init__(self, config: Mapping[str, str]) -> None:
        self.db_path = config.get("db-path") or get_settings().sqlite_path
        self._init_schema = str(config.get("init-schema", "false")).lower() in _TRUTHY
        self._schema_ready = False

    def _connect(self) -> sqlite3.Connection:
        conn = get_sqlite_connection(self.db_path)
        if self._init_schema and not self._schema_ready:
            apply_schema(conn, self.name)
            self._schema_ready = True
            log.info("Schema applied", extra={"backend": self.name, "db_path": self.db_path})
        return conn

    def primary_database(self) -> SqlitePrimary:
        return SqlitePrimary(self._connect())

    def read_replica(self) -> SqliteReplica:
        return SqliteReplica(self._connect())

    def close(self) -> None:
        # Connections are owned and closed by the capability instances.
        pass


__all__ = ["SqliteBenchmark", "SqlitePrimary", "SqliteReplica"]
