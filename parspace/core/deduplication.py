"""Chain deduplication.

Chains that explore the same region are collapsed into one representative:
chains are grouped by pattern, then each pattern group is split by
hyperellipsoid overlap, redundant chains are merged into the first chain of
their group and finally removed from the collection.

The collection passed in is mutated in place; callers must not advance any
chain while a deduplication pass is running.
"""

from __future__ import annotations

import numbers
from collections.abc import Callable

from parspace.core.chain import Chain
from parspace.core.exceptions import OptionsError
from parspace.core.intersection import chains_intersect
from parspace.utils.logging import get_logger

logger = get_logger(__name__)


def group_by_pattern(chains: list[Chain]) -> list[list[int]]:
    """Partition chain indices by pattern, in first-seen pattern order."""
    groups: dict = {}
    for i, chain in enumerate(chains):
        groups.setdefault(chain.pattern, []).append(i)
    return list(groups.values())


def get_group_indices(
    chains: list[Chain],
    chain_indices: list[int],
    scale: float = 2.0,
    warn: Callable[[str], None] | None = None,
) -> list[list[int]]:
    """Sort chains of the same pattern into non-overlapping groups.

    Each chain is compared against the *first* member of every existing
    group, in group creation order, and joins the first group it
    intersects; otherwise it starts a new group. The result therefore
    depends on the order of ``chain_indices``: ``[[1, 2], [3, 4]]`` means
    chains 1 and 2 share one region and chains 3 and 4 another.

    Parameters
    ----------
    chains : list[Chain]
        All chains.
    chain_indices : list[int]
        Indices of chains sharing one pattern.
    scale : float
        Ellipsoid scalar passed to the intersection test.
    warn : callable, optional
        Diagnostic sink passed to the intersection test.
    """
    groups: list[list[int]] = []
    for c in chain_indices:
        for group in groups:
            if chains_intersect(chains[group[0]], chains[c], scale=scale, warn=warn):
                group.append(c)
                break
        else:
            groups.append([c])
    return groups


def _check_max_merge(max_merge) -> int:
    if (
        isinstance(max_merge, bool)
        or not isinstance(max_merge, numbers.Integral)
        or max_merge < 0
    ):
        message = f"max_merge must be non-negative int, got: {max_merge!r}"
        raise OptionsError(message, errors=[message])
    return int(max_merge)


def merge_chains(chains: list[Chain], groups: list[list[int]], max_merge) -> None:
    """Merge up to ``max_merge`` members of each group into its first member.

    ``max_merge`` may be an int or an object with a ``max_merge`` attribute
    such as :class:`~parspace.config.options.Options`. Members beyond the
    cap are left unmerged; :func:`remove_redundant_chains` still discards
    them.
    """
    if hasattr(max_merge, "max_merge"):
        max_merge = max_merge.max_merge
    max_merge = _check_max_merge(max_merge)
    if max_merge == 0:
        return

    for group in groups:
        if len(group) == 1:
            continue
        representative = chains[group[0]]
        for c in group[1 : max_merge + 1]:
            representative.merge(chains[c])


def remove_redundant_chains(chains: list[Chain], groups: list[list[int]]) -> None:
    """Delete every chain except the first member of each group."""
    keep = {group[0] for group in groups}
    remove = sorted({i for group in groups for i in group} - keep)
    # delete from the back so pending indices stay valid
    for i in reversed(remove):
        del chains[i]


def make_unique(
    chains: list[Chain],
    options,
    scale: float | None = None,
    warn: Callable[[str], None] | None = None,
) -> list[list[int]]:
    """Keep exactly one chain per (pattern, region).

    Parameters
    ----------
    chains : list[Chain]
        Chain collection, modified in place.
    options : Options or int
        Options object (``max_merge`` and ``scale`` are read) or a bare
        ``max_merge`` value.
    scale : float, optional
        Overrides the ellipsoid scalar; defaults to ``options.scale`` or 2.
    warn : callable, optional
        Diagnostic sink for the intersection test.

    Returns
    -------
    list[list[int]]
        Region groups as indices into ``chains`` before removal.

    Raises
    ------
    DegenerateCovarianceError
        If a chain with a same-pattern sibling has too few samples for a
        covariance.
    OptionsError
        If ``max_merge`` is invalid.
    """
    if hasattr(options, "max_merge"):
        max_merge = options.max_merge
        if scale is None:
            scale = options.scale
    else:
        max_merge = options
    if scale is None:
        scale = 2.0
    _check_max_merge(max_merge)

    n_before = len(chains)
    all_groups: list[list[int]] = []
    for pattern_indices in group_by_pattern(chains):
        all_groups.extend(get_group_indices(chains, pattern_indices, scale=scale, warn=warn))

    merge_chains(chains, all_groups, max_merge)
    remove_redundant_chains(chains, all_groups)

    if len(chains) < n_before:
        logger.debug(
            f"Deduplicated chains: {n_before} -> {len(chains)} "
            f"({len(all_groups)} regions)"
        )
    return all_groups
