from __future__ import annotations

import logging

import pytest
from typer.testing import CliRunner

from rr_bench import main, orchestrator
from tests.fakes import FakeBenchmark, FakeClock

runner = CliRunner()


@pytest.fixture(autouse=True)
def _reset_root_handlers():
    # The CLI binds a handler to the runner's stderr; drop it once the test ends.
    yield
    logging.getLogger().handlers.clear()


@pytest.fixture
def wired_cli(monkeypatch: pytest.MonkeyPatch):
    clock = FakeClock()
    captured = {}

    def _resolve(name, config):
        captured["backend"] = name
        captured["flags"] = dict(config)
        benchmark = FakeBenchmark(clock, replica_fail_after=captured.get("fail_after"))
        captured["benchmark"] = benchmark
        return benchmark

    def _run(config, benchmark):
        captured["config"] = config
        return orchestrator.run_benchmark(config, benchmark, clock=clock, sleep=lambda _: None)

    monkeypatch.setattr(main, "resolve_backend", _resolve)
    monkeypatch.setattr(main, "run_benchmark", _run)
    return captured


def test_run_prints_plain_report(wired_cli) -> None:
    result = runner.invoke(
        main.app,
        ["run", "--duration", "2s", "-t", "0", "--plain", "--no-progress", "--", "--db-path", "bench.db"],
    )

    assert result.exit_code == 0, result.output
    assert "Total Transactions: 20" in result.stdout
    assert "Transactions per Second (TPS): 10.00" in result.stdout
    assert "Max Latency: 100.000000 ms" in result.stdout
    assert "99th Percentile Latency: 100.000000 ms" in result.stdout
    assert "Standard Deviation: 0.000000 ms" in result.stdout
    assert wired_cli["backend"] == "sqlite"
    assert wired_cli["flags"] == {"db-path": "bench.db"}


def test_run_uses_cli_values_over_settings(wired_cli, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BENCH_CONCURRENCY", "5")

    result = runner.invoke(
        main.app,
        ["run", "-d", "1s", "-c", "2", "-t", "0", "-b", "postgres", "--no-progress", "--plain"],
    )

    assert result.exit_code == 0, result.output
    assert wired_cli["config"].concurrency == 2
    assert wired_cli["backend"] == "postgres"
    assert "Total Transactions: 20" in result.stdout


def test_rich_report_renders(wired_cli) -> None:
    result = runner.invoke(main.app, ["run", "--duration", "2s", "-t", "0", "--no-progress"])

    assert result.exit_code == 0, result.output
    assert "Read Replica Benchmark" in result.stdout
    assert "95th Percentile Latency" in result.stdout


def test_invalid_duration_is_rejected(wired_cli) -> None:
    result = runner.invoke(main.app, ["run", "--duration", "soon"])

    assert result.exit_code != 0
    assert "config" not in wired_cli


def test_invalid_write_mix_exits_with_error(wired_cli, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BENCH_UPDATE_PERCENTAGE", "0")
    monkeypatch.setenv("BENCH_INSERT_PERCENTAGE", "90")

    result = runner.invoke(main.app, ["run", "--duration", "1s"])

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_worker_failure_exits_non_zero(wired_cli) -> None:
    wired_cli["fail_after"] = 2

    result = runner.invoke(main.app, ["run", "--duration", "2s", "-t", "0", "--no-progress", "--plain"])

    assert result.exit_code == 1
    assert "Benchmark failed" in result.output
    assert "Total Transactions" not in result.output


def test_info_lists_backends() -> None:
    result = runner.invoke(main.app, ["info"])

    assert result.exit_code == 0
    assert "postgres" in result.stdout
    assert "sqlite" in result.stdout
