"""
Data generation and loading script for the read-replica benchmark.

Generates the six trading tables deterministically (per batch: customers 1x,
accounts 2x, securities 3x, trades 10x, orders 8x, market_data 10x of
``--batch-size``), writes one CSV per table, then loads them into Postgres with
COPY or into SQLite with executemany. Ids are assigned explicitly so every
foreign key points at an existing row.
"""

from __future__ import annotations

import csv
import random
import sys
import tempfile
import time
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import psycopg
import typer

from rr_bench.config import build_dsn, get_settings
from rr_bench.domain import fakes
from rr_bench.infrastructure.db_factory import apply_schema, get_sqlite_connection

app = typer.Typer(help="Generate synthetic trading data and load it into Postgres (COPY) or SQLite.")

BATCH_RATIOS: Dict[str, int] = {
    "customers": 1,
    "accounts": 2,
    "securities": 3,
    "trades": 10,
    "orders": 8,
    "market_data": 10,
}

COLUMNS: Dict[str, Tuple[str, ...]] = {
    "customers": ("customer_id", "name", "address", "created_at"),
    "accounts": ("account_id", "customer_id", "account_type", "balance", "created_at"),
    "securities": ("security_id", "ticker", "name", "sector", "created_at"),
    "trades": ("trade_id", "account_id", "security_id", "trade_type", "quantity", "price", "trade_date"),
    "orders": (
        "order_id",
        "account_id",
        "security_id",
        "order_type",
        "quantity",
        "limit_price",
        "status",
        "order_date",
    ),
    "market_data": ("market_data_id", "security_id", "price", "volume", "market_date"),
}

# Timestamps are spread over this window before generation time so the
# "recent" read views have rows to aggregate.
_TIME_WINDOW = timedelta(hours=24)


def table_sizes(batches: int, batch_size: int) -> Dict[str, int]:
    return {table: ratio * batch_size * batches for table, ratio in BATCH_RATIOS.items()}


def _timestamp(rng: random.Random, now: datetime) -> str:
    offset = timedelta(seconds=rng.uniform(0, _TIME_WINDOW.total_seconds()))
    return (now - offset).strftime("%Y-%m-%d %H:%M:%S")


def _rows(table: str, count: int, sizes: Dict[str, int], rng: random.Random, now: datetime) -> Iterator[list]:
    def ref(parent: str) -> int:
        return rng.randint(1, sizes[parent])

    for row_id in range(1, count + 1):
        if table == "customers":
            yield [row_id, fakes.person_name(rng), fakes.street_address(rng), _timestamp(rng, now)]
        elif table == "accounts":
            yield [
                row_id,
                ref("customers"),
                rng.choice(fakes.ACCOUNT_TYPES),
                f"{fakes.balance(rng):.2f}",
                _timestamp(rng, now),
            ]
        elif table == "securities":
            yield [row_id, fakes.ticker(rng), fakes.company_name(rng), fakes.sector(rng), _timestamp(rng, now)]
        elif table == "trades":
            yield [
                row_id,
                ref("accounts"),
                ref("securities"),
                rng.choice(fakes.SIDES),
                fakes.quantity(rng),
                f"{fakes.trade_price(rng):.4f}",
                _timestamp(rng, now),
            ]
        elif table == "orders":
            yield [
                row_id,
                ref("accounts"),
                ref("securities"),
                rng.choice(fakes.SIDES),
                fakes.quantity(rng),
                f"{rng.randrange(1, 1000):.4f}",
                rng.choice(fakes.ORDER_STATUSES),
                _timestamp(rng, now),
            ]
        else:
            yield [row_id, ref("securities"), f"{fakes.trade_price(rng):.4f}", fakes.volume(rng), _timestamp(rng, now)]


def generate_csvs(
    output_dir: Path,
    batches: int,
    batch_size: int,
    seed: int,
    now: Optional[datetime] = None,
) -> Dict[str, Path]:
    """
    Write one CSV (with header) per table and return their paths in load order.
    """
    if batches < 1 or batch_size < 1:
        raise ValueError("batches and batch_size must be positive")

    rng = random.Random(seed)
    now = now or datetime.now(UTC)
    sizes = table_sizes(batches, batch_size)
    output_dir.mkdir(parents=True, exist_ok=True)

    paths: Dict[str, Path] = {}
    for table in BATCH_RATIOS:
        path = output_dir / f"{table}.csv"
        with path.open("w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(COLUMNS[table])
            writer.writerows(_rows(table, sizes[table], sizes, rng, now))
        paths[table] = path
    return paths


def _read_csv(path: Path) -> Tuple[List[str], List[Sequence[str]]]:
    with path.open("r", newline="", encoding="utf-8") as f:
        reader = csv.reader(f)
        header = next(reader)
        return header, list(reader)


def load_postgres(dsn: str, paths: Dict[str, Path], init_schema: bool = False) -> None:
    with psycopg.connect(dsn) as conn:
        if init_schema:
            apply_schema(conn, "postgres")
        with conn.cursor() as cur:
            for table, path in paths.items():
                columns = ", ".join(COLUMNS[table])
                with cur.copy(f"COPY {table} ({columns}) FROM STDIN WITH (FORMAT csv, HEADER TRUE)") as copy:
                    with path.open("r", encoding="utf-8") as f:
                        for line in f:
                            copy.write(line)
                # Explicit ids bypass the serial sequences; move them past the data.
                key = COLUMNS[table][0]
                cur.execute(
                    f"SELECT setval(pg_get_serial_sequence('{table}', '{key}'), "
                    f"(SELECT MAX({key}) FROM {table}))"
                )
        conn.commit()


def load_sqlite(db_path: str, paths: Dict[str, Path], init_schema: bool = False) -> None:
    conn = get_sqlite_connection(db_path)
    try:
        if init_schema:
            apply_schema(conn, "sqlite")
        conn.execute("BEGIN")
        for table, path in paths.items():
            header, rows = _read_csv(path)
            marks = ", ".join("?" * len(header))
            conn.executemany(f"INSERT INTO {table} ({', '.join(header)}) VALUES ({marks})", rows)
        conn.execute("COMMIT")
    finally:
        conn.close()


@app.command()
def main(
    batches: int = typer.Option(1, "--batches", "-n", min=1, help="Number of batches to generate."),
    batch_size: int = typer.Option(
        1_000,
        "--batch-size",
        "-b",
        min=1,
        help="Customers per batch; the other tables scale from it.",
    ),
    seed: int = typer.Option(42, "--seed", help="Deterministic RNG seed."),
    output: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory for the CSV files (if omitted, a temp dir will be used).",
    ),
    backend: str = typer.Option("postgres", "--backend", help="Load target: postgres or sqlite."),
    dsn: Optional[str] = typer.Option(None, "--dsn", help="Optional DSN override for Postgres."),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="SQLite database file."),
    init_schema: bool = typer.Option(False, "--init-schema", help="Create tables and views before loading."),
    no_load: bool = typer.Option(False, "--no-load", help="Only generate CSVs; skip loading."),
) -> None:
    """
    Generate synthetic trading data and optionally load it.
    """
    if backend not in ("postgres", "sqlite"):
        raise typer.BadParameter(f"unknown backend '{backend}'", param_hint="--backend")

    start = time.perf_counter()
    output_dir = output or Path(tempfile.mkdtemp(prefix="rr_bench_csv_"))
    sizes = table_sizes(batches, batch_size)
    total_rows = sum(sizes.values())

    typer.echo(f"Generating {total_rows:,} rows -> {output_dir} (batches={batches}, seed={seed})")
    paths = generate_csvs(output_dir, batches=batches, batch_size=batch_size, seed=seed)
    gen_duration = time.perf_counter() - start
    typer.echo(f"CSV generation completed in {gen_duration:.2f}s ({total_rows / gen_duration:,.0f} rows/s)")

    if no_load:
        typer.echo("Skipping load (no-load flag set).")
        return

    load_start = time.perf_counter()
    if backend == "postgres":
        typer.echo("Loading CSVs into Postgres via COPY...")
        load_postgres(dsn or build_dsn(), paths, init_schema=init_schema)
    else:
        target = db_path or get_settings().sqlite_path
        typer.echo(f"Loading CSVs into SQLite at {target}...")
        load_sqlite(target, paths, init_schema=init_schema)
    load_duration = time.perf_counter() - load_start

    total_duration = time.perf_counter() - start
    typer.echo(
        f"Load completed in {load_duration:.2f}s. Total time {total_duration:.2f}s "
        f"({total_rows / total_duration:,.0f} rows/s overall)."
    )


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
