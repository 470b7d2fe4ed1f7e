from __future__ import annotations

import sys
from typing import Optional

import typer
from pydantic import ValidationError

from rr_bench.backends import available_backends, resolve_backend
from rr_bench.config import BackendConfig, get_settings, parse_duration
from rr_bench.core.primary_simulator import OperationMix
from rr_bench.errors import BenchmarkError
from rr_bench.orchestrator import RunConfig, run_benchmark
from rr_bench.reporter import format_report, print_report
from rr_bench.utils.logging import configure_logging, get_logger

app = typer.Typer(help="Read-replica benchmark CLI.")
log = get_logger(__name__)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"backend={settings.backend} (available: {', '.join(available_backends())}) | "
        f"tps={settings.transactions_per_second} concurrency={settings.concurrency} "
        f"mix={settings.insert_percentage}/{settings.update_percentage}/{settings.delete_percentage}"
    )
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"sqlite={settings.sqlite_path}"
    )


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def run(
    ctx: typer.Context,
    duration: str = typer.Option(
        ...,
        "--duration",
        "-d",
        help="Experiment time per client, e.g. 10s, 5m, 1h.",
    ),
    transactions_per_second: Optional[int] = typer.Option(
        None,
        "--transactions-per-second",
        "-t",
        min=0,
        help="Write operations per second against the primary (0 disables writes).",
    ),
    concurrency: Optional[int] = typer.Option(
        None,
        "--concurrency",
        "-c",
        min=1,
        help="Number of concurrent read clients.",
    ),
    backend: Optional[str] = typer.Option(
        None,
        "--backend",
        "-b",
        help="Backend to benchmark (postgres, sqlite).",
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed of the write generator."),
    plain: bool = typer.Option(False, "--plain", help="Print the plain-text report instead of tables."),
    json_logs: Optional[bool] = typer.Option(None, "--json-logs/--text-logs", help="Log format on stderr."),
    no_progress: bool = typer.Option(False, "--no-progress", help="Hide per-client progress bars."),
) -> None:
    """
    Run the benchmark. Backend flags follow ``--``, e.g. ``-- --db-path bench.db``.
    """
    settings = get_settings()
    configure_logging(
        level=settings.log_level,
        json_logs=settings.log_json if json_logs is None else json_logs,
    )

    try:
        experiment = parse_duration(duration)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--duration") from exc

    backend_name = backend or settings.backend
    backend_config = BackendConfig.from_args(ctx.args)

    try:
        config = RunConfig(
            duration=experiment,
            transactions_per_second=(
                settings.transactions_per_second
                if transactions_per_second is None
                else transactions_per_second
            ),
            concurrency=concurrency or settings.concurrency,
            seed=settings.writer_seed if seed is None else seed,
            mix=OperationMix(
                insert_percentage=settings.insert_percentage,
                update_percentage=settings.update_percentage,
                delete_percentage=settings.delete_percentage,
            ),
            poll_interval_seconds=settings.poll_interval_seconds,
            show_progress=not no_progress,
        )
        benchmark = resolve_backend(backend_name, backend_config)
    except (ValidationError, ValueError) as exc:
        typer.echo(f"Invalid configuration: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    log.info(
        "Benchmark configured",
        extra={"backend": backend_name, "backend_flags": sorted(backend_config)},
    )
    try:
        result = run_benchmark(config, benchmark)
    except BenchmarkError as exc:
        typer.echo(f"Benchmark failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if plain:
        typer.echo(format_report(result))
    else:
        print_report(result)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
