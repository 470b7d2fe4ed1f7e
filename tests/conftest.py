"""
Pytest configuration for the read-replica benchmark.

Provides fixtures for:
- Fake primary/replica capabilities driven by a fake nanosecond clock
- A fake `Benchmark` that records every connection it hands out
- Settings cache isolation
- A small SQLite database seeded by the data generator
"""

from __future__ import annotations

from pathlib import Path

import pytest

from rr_bench.config import get_settings
from tests.fakes import FakeBenchmark, FakeClock, FakePrimary

SEED_BATCH_SIZE = 20


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Each test sees settings built from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_primary() -> FakePrimary:
    return FakePrimary()


@pytest.fixture
def fake_benchmark(fake_clock: FakeClock) -> FakeBenchmark:
    return FakeBenchmark(fake_clock)


@pytest.fixture
def seeded_sqlite_db(tmp_path: Path) -> str:
    """
    SQLite file with schema applied and one small generated batch loaded.

    Returns the database path.
    """
    from scripts.generate_data import generate_csvs, load_sqlite

    db_path = str(tmp_path / "bench.db")
    paths = generate_csvs(tmp_path / "csv", batches=1, batch_size=SEED_BATCH_SIZE, seed=42)
    load_sqlite(db_path, paths, init_schema=True)
    return db_path
