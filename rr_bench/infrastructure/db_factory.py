"""
Database connection factory utilities for the read-replica benchmark.

Centralizes how Postgres connections/pools and SQLite connections are opened.
Connection *establishment* retries transient failures with tenacity; once a
connection exists nothing in the benchmark retries an operation.
"""

from __future__ import annotations

import sqlite3
from importlib import resources
from typing import Any

import psycopg
from psycopg import Connection
from psycopg_pool import ConnectionPool, PoolTimeout
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from rr_bench.config import get_settings
from rr_bench.utils.logging import get_logger

log = get_logger(__name__)

SCHEMA_DIR = "schema"


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_sync_connection(dsn: str, autocommit: bool = True) -> Connection:
    """
    Open a dedicated synchronous Postgres connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    timeout = get_settings().db_connect_timeout
    return psycopg.connect(dsn, autocommit=autocommit, connect_timeout=timeout)


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(PoolTimeout),
    reraise=True,
)
def open_sync_pool(dsn: str, min_size: int = 1, max_size: int = 10) -> ConnectionPool:
    """
    Create a synchronous pool and block until its first connections are ready.

    Parameters
    ----------
    dsn : str
        Connection string of the primary.
    min_size : int
        Minimum number of idle connections to keep.
    max_size : int
        Maximum total connections in the pool.
    """
    settings = get_settings()
    pool = ConnectionPool(
        conninfo=dsn,
        min_size=min_size,
        max_size=max(min_size, max_size),
        kwargs={"autocommit": True},
        open=False,
    )
    try:
        pool.open(wait=True, timeout=float(settings.db_connect_timeout))
    except PoolTimeout:
        pool.close()
        raise
    log.debug("Connection pool ready", extra={"min_size": min_size, "max_size": max_size})
    return pool


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(sqlite3.OperationalError),
    reraise=True,
)
def get_sqlite_connection(path: str) -> sqlite3.Connection:
    """
    Open a SQLite connection in WAL mode with autocommit semantics.

    The connection may be handed to a worker thread other than the one that
    opened it; each connection is still used by exactly one worker.
    """
    conn = sqlite3.connect(path, check_same_thread=False, isolation_level=None, timeout=30.0)
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA foreign_keys=ON;")
    return conn


def load_schema(backend: str) -> str:
    """Return the DDL (tables + read views) shipped for a backend."""
    schema = resources.files("rr_bench").joinpath(SCHEMA_DIR).joinpath(f"{backend}.sql")
    return schema.read_text(encoding="utf-8")


def apply_schema(conn: Any, backend: str) -> None:
    """Create tables and views on an open connection."""
    ddl = load_schema(backend)
    if isinstance(conn, sqlite3.Connection):
        conn.executescript(ddl)
        return
    with conn.cursor() as cur:
        cur.execute(ddl)
    if not conn.autocommit:
        conn.commit()


__all__ = [
    "apply_schema",
    "get_sqlite_connection",
    "get_sync_connection",
    "load_schema",
    "open_sync_pool",
]
