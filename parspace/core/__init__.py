"""Core partitioning algorithms: chains, intersection test, deduplication,
radius adaptation and volume estimation."""

from parspace.core.adaptation import adapt, no_adaption, resolve_adaptation
from parspace.core.chain import Chain
from parspace.core.deduplication import (
    get_group_indices,
    group_by_pattern,
    make_unique,
    merge_chains,
    remove_redundant_chains,
)
from parspace.core.exceptions import (
    DegenerateCovarianceError,
    OptionsError,
    PartitionError,
)
from parspace.core.intersection import (
    chain_moments,
    chains_intersect,
    ellipsoids_intersect,
    intersects,
)
from parspace.core.volume import (
    VolumeEstimate,
    bias_correction,
    ellipsoid_volume,
    estimate_volume,
    normalize_volumes,
)

__all__ = [
    "Chain",
    "adapt",
    "no_adaption",
    "resolve_adaptation",
    "intersects",
    "ellipsoids_intersect",
    "chains_intersect",
    "chain_moments",
    "group_by_pattern",
    "get_group_indices",
    "merge_chains",
    "remove_redundant_chains",
    "make_unique",
    "VolumeEstimate",
    "ellipsoid_volume",
    "estimate_volume",
    "bias_correction",
    "normalize_volumes",
    "PartitionError",
    "DegenerateCovarianceError",
    "OptionsError",
]
