"""parspace: Parameter Space Partitioning
=======================================

Discovers how a continuous parameter space splits into regions that share a
qualitative pattern. A random-walk chain is grown inside every region, new
chains are spawned when a proposal crosses into another pattern, and chains
that turn out to explore the same region are merged.

Core Pieces:
- find_partitions: adaptive region-growing sampler
- intersects: hyperellipsoid overlap test between two chains' samples
- make_unique: pattern + overlap based chain deduplication
- estimate_volume / bias_correction: per-region volume estimates

Quick Start:
    >>> from parspace import Options, find_partitions
    >>>
    >>> def classify(p):
    ...     return "low" if p[0] + p[1] < 1 else "high"
    >>>
    >>> options = Options(init_parms=[(0.2, 0.2)], bounds=[(0, 1), (0, 1)])
    >>> results = find_partitions(classify, options, estimate_volumes=True)
    >>> for chain in results.chains:
    ...     print(chain.pattern, results.volumes[chain.chain_id].volume)
"""

__version__ = "0.3.0"

from parspace.config import Options
from parspace.core import (
    Chain,
    DegenerateCovarianceError,
    OptionsError,
    PartitionError,
    VolumeEstimate,
    adapt,
    bias_correction,
    chains_intersect,
    ellipsoids_intersect,
    estimate_volume,
    get_group_indices,
    group_by_pattern,
    intersects,
    make_unique,
    merge_chains,
    no_adaption,
    normalize_volumes,
    remove_redundant_chains,
)
from parspace.sampling import PartitionSampler, Results, find_partitions

__all__ = [
    "__version__",
    # Sampling
    "find_partitions",
    "PartitionSampler",
    "Options",
    "Results",
    "Chain",
    # Adaptation
    "adapt",
    "no_adaption",
    # Intersection and deduplication
    "intersects",
    "ellipsoids_intersect",
    "chains_intersect",
    "group_by_pattern",
    "get_group_indices",
    "merge_chains",
    "remove_redundant_chains",
    "make_unique",
    # Volume
    "estimate_volume",
    "bias_correction",
    "normalize_volumes",
    "VolumeEstimate",
    # Errors
    "PartitionError",
    "DegenerateCovarianceError",
    "OptionsError",
]
