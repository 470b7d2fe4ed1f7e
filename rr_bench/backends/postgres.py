"""
Postgres primary/replica adapter.

The primary side is backed by a `psycopg_pool.ConnectionPool` on the writer URL,
shared by the write simulator and by every reader's key lookups. Each replica
client gets its own dedicated connection on the reader URL.

Backend flags
-------------
writer-url : str
    DSN of the primary. Defaults to the DSN built from settings.
reader-url : str
    DSN of the replica. Defaults to the DSN built from settings.
pool-max-size : int
    Upper bound of the primary pool. Defaults to ``DB_POOL_MAX_SIZE``.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence, Tuple

from psycopg import Connection
from psycopg_pool import ConnectionPool

from rr_bench.backends.base import SqlPrimary, SqlReplica
from rr_bench.config import build_dsn, get_settings
from rr_bench.domain.operations import UpdateMarketData
from rr_bench.infrastructure.db_factory import get_sync_connection, open_sync_pool
from rr_bench.utils.logging import get_logger

log = get_logger(__name__)


class PostgresPrimary(SqlPrimary):
    placeholder = "%s"
    # Market data rows are append-only on this backend.
    skipped_operations = (UpdateMarketData,)

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def _fetch_one(self, sql: str) -> Optional[Sequence[Any]]:
        with self._pool.connection() as conn:
            return conn.execute(sql).fetchone()

    def _execute(self, sql: str, params: Tuple[Any, ...]) -> None:
        with self._pool.connection() as conn:
            conn.execute(sql, params)

    def close(self) -> None:
        # The pool belongs to the benchmark and is closed there.
        pass


class PostgresReplica(SqlReplica):
    placeholder = "%s"

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def _query(self, sql: str, params: Tuple[Any, ...]) -> None:
        with self._conn.cursor() as cur:
            cur.execute(sql, params or None)
            cur.fetchall()

    def close(self) -> None:
        self._conn.close()


class PostgresBenchmark:
    name: str = "postgres"
    description: str = "Postgres primary (pooled psycopg) + streaming read replica."

    def __init__(self, config: Mapping[str, str]) -> None:
        settings = get_settings()
        self.writer_url = config.get("writer-url") or build_dsn(settings)
        self.reader_url = config.get("reader-url") or build_dsn(settings)
        self.pool_max_size = int(config.get("pool-max-size", settings.db_pool_max_size))
        self._pool: Optional[ConnectionPool] = None

    def _primary_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = open_sync_pool(self.writer_url, min_size=1, max_size=self.pool_max_size)
            log.info("Primary pool opened", extra={"backend": self.name, "max_size": self.pool_max_size})
        return self._pool

    def primary_database(self) -> PostgresPrimary:
        return PostgresPrimary(self._primary_pool())

    def read_replica(self) -> PostgresReplica:
        return PostgresReplica(get_sync_connection(self.reader_url, autocommit=True))

    def close(self) -> None:
        if self._pool is not None:
            self._pool.close()
            self._pool = None


__all__ = ["PostgresBenchmark", "PostgresPrimary", "PostgresReplica"]
