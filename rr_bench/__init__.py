"""
Read-replica benchmark.

Drives a fixed-rate write workload against a primary database while N clients
run a round-robin catalogue of analytical queries against a replica, then
reports latency statistics of the replica reads.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
