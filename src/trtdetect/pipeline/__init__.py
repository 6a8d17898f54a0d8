"""
Pipeline module: the batched inference and benchmarking loop.
"""

from .runner import BatchRunner, RunnerConfig, RunStats, iter_batches

__all__ = [
    "BatchRunner",
    "RunnerConfig",
    "RunStats",
    "iter_batches",
]
