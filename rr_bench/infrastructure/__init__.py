"""
Infrastructure package for the read-replica benchmark.

Centralizes database connectivity concerns (Postgres connections and pools,
SQLite connections, schema loading). Keep this layer focused on I/O and resource
management, decoupled from simulator/orchestrator logic.
"""

from rr_bench.infrastructure.db_factory import (
    apply_schema,
    get_sqlite_connection,
    get_sync_connection,
    load_schema,
    open_sync_pool,
)

__all__ = [
    "apply_schema",
    "get_sqlite_connection",
    "get_sync_connection",
    "load_schema",
    "open_sync_pool",
]
