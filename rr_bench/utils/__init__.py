"""Logging and profiling helpers shared across the benchmark."""

from rr_bench.utils.logging import configure_logging, get_logger
from rr_bench.utils.profiler import ProfileStats, profile_block

__all__ = ["ProfileStats", "configure_logging", "get_logger", "profile_block"]
