"""
Backends package for the read-replica benchmark.

Each backend exposes a factory taking the passthrough `BackendConfig` and
returning a `Benchmark`. The registry below is what the CLI and orchestrator
resolve names against.
"""

from __future__ import annotations

from typing import Dict, List, Mapping

from rr_bench.backends.postgres import PostgresBenchmark
from rr_bench.backends.sqlite import SqliteBenchmark
from rr_bench.core.abstract import Benchmark, BenchmarkFactory


def _backend_factories() -> Dict[str, BenchmarkFactory]:
    """Registry of available backends."""
    return {
        "postgres": PostgresBenchmark,
        "sqlite": SqliteBenchmark,
    }


def available_backends() -> List[str]:
    """List available backend names."""
    return sorted(_backend_factories().keys())


def resolve_backend(name: str, config: Mapping[str, str]) -> Benchmark:
    factories = _backend_factories()
    if name not in factories:
        raise ValueError(f"Unknown backend '{name}'. Available: {', '.join(sorted(factories))}")
    return factories[name](config)


__all__ = [
    "PostgresBenchmark",
    "SqliteBenchmark",
    "available_backends",
    "resolve_backend",
]
