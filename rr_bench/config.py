"""
Configuration settings for the read-replica benchmark.

Uses Pydantic Settings to load environment variables for database connections,
logging, and benchmark defaults. Command-line values always win over these; the
settings only provide defaults.

Also hosts the duration helpers used by the CLI (`parse_duration`,
`format_duration`) and the passthrough `BackendConfig` that carries
backend-specific flags to the adapter factories untouched.
"""
from __future__ import annotations

import re
from datetime import timedelta
from functools import lru_cache
from typing import Dict, Iterable, Mapping, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DURATION_UNITS: Dict[str, timedelta] = {
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "sec": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "min": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "hr": timedelta(hours=1),
    "d": timedelta(days=1),
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)\s*([a-z]+)")


class Settings(BaseSettings):
    # Benchmark defaults
    backend: str = Field("sqlite", alias="BENCH_BACKEND")
    transactions_per_second: int = Field(10, alias="BENCH_TRANSACTIONS_PER_SECOND")
    concurrency: int = Field(1, alias="BENCH_CONCURRENCY")
    writer_seed: int = Field(42, alias="BENCH_WRITER_SEED")
    insert_percentage: int = Field(45, alias="BENCH_INSERT_PERCENTAGE")
    update_percentage: int = Field(45, alias="BENCH_UPDATE_PERCENTAGE")
    delete_percentage: int = Field(10, alias="BENCH_DELETE_PERCENTAGE")
    poll_interval_seconds: float = Field(1.0, alias="BENCH_POLL_INTERVAL_SECONDS")

    # Postgres
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("rr_bench", alias="DB_NAME")
    db_connect_timeout: int = Field(10, alias="DB_CONNECT_TIMEOUT")
    db_pool_max_size: int = Field(10, alias="DB_POOL_MAX_SIZE")

    # SQLite
    sqlite_path: str = Field("rr_bench.db", alias="SQLITE_PATH")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a Postgres DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def parse_duration(text: str) -> timedelta:
    """
    Parse a human-readable duration such as ``10s``, ``5m``, ``1h`` or ``1m30s``.

    Raises
    ------
    ValueError
        If the text is not a sequence of ``<number><unit>`` parts or is not positive.
    """
    cleaned = text.strip().lower()
    error = ValueError(f"Invalid duration {text}. Use formats like '10s', '5m', '1h'")
    if not cleaned:
        raise error

    total = timedelta()
    position = 0
    for match in _DURATION_PART.finditer(cleaned):
        if cleaned[position : match.start()].strip():
            raise error
        amount, unit = match.groups()
        if unit not in _DURATION_UNITS:
            raise error
        total += _DURATION_UNITS[unit] * float(amount)
        position = match.end()

    if position == 0 or cleaned[position:].strip() or total <= timedelta():
        raise error
    return total


def format_duration(value: timedelta) -> str:
    """Render a timedelta compactly, e.g. ``1h 5m 3s`` or ``250ms``."""
    millis = int(round(value.total_seconds() * 1000))
    if millis < 1000:
        return f"{millis}ms"

    parts = []
    seconds, millis = divmod(millis, 1000)
    for unit, size in (("d", 86_400), ("h", 3_600), ("m", 60), ("s", 1)):
        count, seconds = divmod(seconds, size)
        if count:
            parts.append(f"{count}{unit}")
    if millis:
        parts.append(f"{millis}ms")
    return " ".join(parts)


class BackendConfig(Mapping[str, str]):
    """
    Opaque key/value flags passed after ``--`` on the command line.

    The benchmark core never interprets these; adapter factories read the keys
    they understand (e.g. ``db-path`` or ``writer-url``).
    """

    def __init__(self, values: Optional[Mapping[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(values or {})

    @classmethod
    def from_args(cls, args: Iterable[str]) -> "BackendConfig":
        values: Dict[str, str] = {}
        tokens = list(args)
        index = 0
        while index < len(tokens):
            arg = tokens[index]
            index += 1
            if "=" in arg:
                key, value = arg.split("=", 1)
                values[key.lstrip("-")] = value
                continue
            flag = arg.lstrip("-")
            # A flag followed by another flag (or nothing) is a boolean switch.
            if index < len(tokens) and not tokens[index].startswith("--"):
                values[flag] = tokens[index]
                index += 1
            else:
                values[flag] = "true"
        return cls(values)

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self):
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"BackendConfig({self._values!r})"


__all__ = [
    "BackendConfig",
    "Settings",
    "build_dsn",
    "format_duration",
    "get_settings",
    "parse_duration",
]
