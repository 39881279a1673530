"""Partition search driver and its result container.

Public API:
    find_partitions: Main entry point
    PartitionSampler: Stateful driver behind find_partitions
    Results: Final chains and volume estimates
"""

from parspace.sampling.results import Results
from parspace.sampling.sampler import PartitionSampler, find_partitions

__all__ = ["find_partitions", "PartitionSampler", "Results"]
