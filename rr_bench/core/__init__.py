"""
Load-generation core: capability protocols, lifecycle primitives, and the
write/read simulators. Nothing in this package depends on a storage engine.
"""

from rr_bench.core.abstract import Benchmark, PrimaryDatabase, ReadReplica
from rr_bench.core.channel import ChannelClosed, SampleReceiver, SampleSender, sample_channel
from rr_bench.core.completion import CompletionTracker, TaskHandle, new_task_handles
from rr_bench.core.primary_simulator import OperationMix, PrimarySimulator, WriterStats
from rr_bench.core.read_simulator import ReaderSimulator, read_cycle

__all__ = [
    "Benchmark",
    "ChannelClosed",
    "CompletionTracker",
    "OperationMix",
    "PrimaryDatabase",
    "PrimarySimulator",
    "ReadReplica",
    "ReaderSimulator",
    "SampleReceiver",
    "SampleSender",
    "TaskHandle",
    "WriterStats",
    "new_task_handles",
    "read_cycle",
    "sample_channel",
]
