from __future__ import annotations

from typing import List, Optional, Tuple

from rich import box
from rich.console import Console
from rich.table import Table

from rr_bench.config import format_duration
from rr_bench.orchestrator import BenchmarkResult

_LATENCY_ROWS: Tuple[Tuple[str, str], ...] = (
    ("Max Latency", "max_ms"),
    ("Min Latency", "min_ms"),
    ("Average Latency", "average_ms"),
    ("Median Latency", "median_ms"),
    ("95th Percentile Latency", "p95_ms"),
    ("99th Percentile Latency", "p99_ms"),
    ("Standard Deviation", "stddev_ms"),
)


def format_report(result: BenchmarkResult) -> str:
    """
    Plain-text report, one statistic per line.

    Latencies are printed in milliseconds with microsecond precision.
    """
    summary = result.measurements.summary()
    lines: List[str] = [
        f"Total Transactions: {summary['total_transactions']}",
        f"Transactions per Second (TPS): {summary['throughput_tps']:.2f}",
    ]
    for label, key in _LATENCY_ROWS:
        lines.append(f"{label}: {summary[key]:.6f} ms")
    return "\n".join(lines)


def print_report(result: BenchmarkResult, console: Optional[Console] = None) -> None:
    """
    Render the statistics, write-traffic counters and harness profile as rich tables.
    """
    console = console or Console()
    summary = result.measurements.summary()
    config = result.config

    title = (
        f"Read Replica Benchmark: {result.backend}\n"
        f"[dim]duration={format_duration(config.duration)} │ "
        f"writes={config.transactions_per_second}/s │ clients={config.concurrency}[/dim]"
    )
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right", style="bold green")

    table.add_row("Total Transactions", f"{summary['total_transactions']:,}")
    table.add_row("Transactions per Second (TPS)", f"{summary['throughput_tps']:,.2f}")
    for label, key in _LATENCY_ROWS:
        table.add_row(label, f"{summary[key]:.6f} ms")
    console.print(table)

    writes = Table(title="Write Traffic", box=box.ROUNDED)
    writes.add_column("Operation", style="cyan")
    writes.add_column("Count", justify="right", style="magenta")
    for name, count in sorted(result.writer.by_type.items()):
        writes.add_row(name, f"{count:,}")
    writes.add_row("[bold]Applied[/bold]", f"{result.writer.applied:,}")
    writes.add_row("[bold]Skipped[/bold]", f"{result.writer.skipped:,}")
    console.print(writes)

    profile = result.profile
    if profile is not None:
        mem_mb = (profile.peak_rss_bytes or 0) / (1024 * 1024)
        cpu = profile.cpu_percent or 0.0
        console.print(
            f"[dim]Harness: wall {profile.duration_seconds:.1f}s │ "
            f"peak RSS {mem_mb:.2f} MB │ CPU {cpu:.1f}% │ threads {profile.thread_count}[/dim]"
        )


__all__ = ["format_report", "print_report"]
