"""
Domain package for the read-replica benchmark.

Exports the operation vocabulary and the latency aggregate used across the
simulators, orchestrator, and adapters. Keep this package focused on data
definitions; no I/O happens here.
"""

from rr_bench.domain.measurements import Measurements
from rr_bench.domain.operations import (
    Entity,
    Intent,
    ParameterKind,
    ReadOperation,
    WriteOperation,
    WriteOutcome,
)

__all__ = [
    "Entity",
    "Intent",
    "Measurements",
    "ParameterKind",
    "ReadOperation",
    "WriteOperation",
    "WriteOutcome",
]
