"""Partition search driver.

:func:`find_partitions` grows one random-walk chain per region of parameter
space. Each iteration advances every chain by one step:

1. Propose a point uniformly inside the ball of the chain's current radius.
2. Reject proposals outside the bounds without classifying them.
3. Classify the proposal; accept it iff its pattern matches the chain's
   (the Metropolis rule for a uniform target over the region). A rejected
   step re-records the point the chain stayed at.
4. Let the adaptation policy update the chain's radius.

A proposal landing on another pattern is a spawn candidate. After all
chains have stepped, candidates are handled in chain order: a new chain is
seeded at the first candidate of a pattern no live chain carries. Further
regions of a known pattern are reached from additional starting points.

Every ``dedup_interval`` iterations, and once at the end, mature chains are
deduplicated with :func:`~parspace.core.deduplication.make_unique`.
Chains that cannot yet form a covariance are held back from these passes.
At the end, a held-back chain lying inside the ellipsoid of a mature chain
of its pattern is folded into that chain.

With ``options.parallel`` chains are stepped on a thread pool. Each chain
draws from its own generator spawned from the master seed, so parallel and
serial runs with one seed produce identical chains. Spawning and
deduplication always run on the calling thread, between sweeps.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Hashable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import numpy as np

from parspace.config.options import Options
from parspace.core.adaptation import resolve_adaptation
from parspace.core.chain import Chain, as_pattern
from parspace.core.deduplication import make_unique
from parspace.core.intersection import chain_moments, point_in_ellipsoid
from parspace.core.volume import estimate_volume
from parspace.sampling.proposals import in_bounds, sample_hypersphere
from parspace.sampling.results import Results
from parspace.utils.logging import get_logger, log_operation
from parspace.utils.progress import SamplingProgress

logger = get_logger(__name__)

SpawnCandidate = tuple[np.ndarray, Hashable]


class PartitionSampler:
    """Stateful driver behind :func:`find_partitions`.

    The sampler owns the chain collection for the whole run. Worker threads
    only ever touch the chain they were handed.
    """

    def __init__(
        self,
        classify: Callable[..., Any],
        options: Options,
        args: tuple = (),
        kwargs: dict | None = None,
    ):
        options.raise_if_invalid()
        self.classify = classify
        self.options = options
        self.args = args
        self.kwargs = kwargs or {}
        self.adaptation = resolve_adaptation(options)
        self.n_dims = options.n_dims

        self.chains: list[Chain] = []
        self._rngs: dict[int, np.random.Generator] = {}
        self._seed_sequence = np.random.SeedSequence(options.seed)
        self._next_id = 0

    def _classify(self, parms) -> Hashable:
        return as_pattern(self.classify(parms, *self.args, **self.kwargs))

    def _add_chain(self, parms, pattern: Hashable) -> Chain:
        chain = Chain.seed(parms, pattern, self.options.radius, chain_id=self._next_id)
        self._rngs[chain.chain_id] = np.random.default_rng(self._seed_sequence.spawn(1)[0])
        self._next_id += 1
        self.chains.append(chain)
        return chain

    def _is_mature(self, chain: Chain) -> bool:
        # seed plus n_dims accepted moves span the space almost surely
        return chain.n_accepted > self.n_dims

    def _step(self, chain: Chain) -> SpawnCandidate | None:
        rng = self._rngs[chain.chain_id]
        radius = chain.radius
        proposal = sample_hypersphere(chain.current_parms, radius, rng)

        candidate = None
        accepted = False
        if in_bounds(proposal, self.options.bounds):
            pattern = self._classify(proposal)
            if pattern == chain.pattern:
                accepted = True
            else:
                candidate = (proposal, pattern)

        chain.add(proposal if accepted else chain.current_parms, accepted, radius)
        self.adaptation(chain, self.options)
        return candidate

    def _advance(self, executor: ThreadPoolExecutor | None) -> list[SpawnCandidate | None]:
        chains = list(self.chains)
        if executor is None:
            return [self._step(chain) for chain in chains]
        return list(executor.map(self._step, chains))

    def _should_spawn(self, pattern: Hashable) -> bool:
        return not any(chain.pattern == pattern for chain in self.chains)

    def _spawn(self, candidates: list[SpawnCandidate | None]) -> None:
        for candidate in candidates:
            if candidate is None:
                continue
            point, pattern = candidate
            if self._should_spawn(pattern):
                chain = self._add_chain(point, pattern)
                logger.debug(f"New chain {chain.chain_id} for pattern {pattern!r}")

    def _deduplicate(self) -> None:
        held = {id(chain) for chain in self.chains if not self._is_mature(chain)}
        mature = [chain for chain in self.chains if id(chain) not in held]
        make_unique(mature, self.options)

        keep = held | {id(chain) for chain in mature}
        self.chains = [chain for chain in self.chains if id(chain) in keep]
        self._prune_rngs()
        if held:
            logger.debug(f"{len(held)} immature chain(s) held back from deduplication")

    def _absorb_immature(self) -> None:
        """Fold immature chains into a mature chain of their region.

        An immature chain whose points all lie inside the ellipsoid of a
        mature chain with the same pattern explores that chain's region; it
        is merged into the first such chain (unless ``max_merge`` is 0) and
        dropped. Immature chains with no containing region are kept.
        """
        immature = [chain for chain in self.chains if not self._is_mature(chain)]
        if not immature:
            return
        mature = [chain for chain in self.chains if self._is_mature(chain)]
        moments = {id(chain): chain_moments(chain) for chain in mature}
        absorbed = set()
        for chain in immature:
            for host in mature:
                if host.pattern != chain.pattern:
                    continue
                mean, cov = moments[id(host)]
                if all(
                    point_in_ellipsoid(p, mean, cov, self.options.scale)
                    for p in chain.all_parms
                ):
                    if self.options.max_merge > 0:
                        host.merge(chain)
                    absorbed.add(id(chain))
                    logger.debug(
                        f"Immature chain {chain.chain_id} absorbed by chain {host.chain_id}"
                    )
                    break

        if absorbed:
            self.chains = [chain for chain in self.chains if id(chain) not in absorbed]
            self._prune_rngs()

    def _prune_rngs(self) -> None:
        alive = {chain.chain_id for chain in self.chains}
        self._rngs = {k: v for k, v in self._rngs.items() if k in alive}

    def _estimate_volumes(self, n_sim: int) -> dict:
        volumes = {}
        rng = np.random.default_rng(self._seed_sequence.spawn(1)[0])
        for chain in self.chains:
            if not self._is_mature(chain):
                logger.warning(
                    f"Skipping volume of chain {chain.chain_id} ({chain.pattern!r}): "
                    f"only {chain.n_accepted} accepted samples"
                )
                continue
            volumes[chain.chain_id] = estimate_volume(
                chain,
                self.classify,
                *self.args,
                bounds=self.options.bounds,
                n_sim=n_sim,
                scale=self.options.scale,
                rng=rng,
                **self.kwargs,
            )
        return volumes

    def run(self, estimate_volumes: bool = False, n_sim: int = 10_000) -> Results:
        options = self.options
        start = time.perf_counter()

        for parms in options.init_parms:
            self._add_chain(parms, self._classify(parms))

        progress = SamplingProgress(options.n_iters, verbose=options.show_progress)
        executor = (
            ThreadPoolExecutor(max_workers=options.n_workers) if options.parallel else None
        )
        stop_reason = "n_iters"
        iteration = 0
        try:
            for iteration in range(1, options.n_iters + 1):
                self._spawn(self._advance(executor))

                deduplicated = iteration % options.dedup_interval == 0
                if deduplicated:
                    self._deduplicate()

                n_patterns = len({chain.pattern for chain in self.chains})
                progress.update(len(self.chains), n_patterns)

                if (
                    options.max_time is not None
                    and time.perf_counter() - start >= options.max_time
                ):
                    stop_reason = "max_time"
                    break
                if (
                    deduplicated
                    and options.max_regions is not None
                    and len(self.chains) >= options.max_regions
                ):
                    stop_reason = "max_regions"
                    break
        finally:
            progress.close()
            if executor is not None:
                executor.shutdown(wait=True)

        self._deduplicate()
        self._absorb_immature()

        volumes = self._estimate_volumes(n_sim) if estimate_volumes else {}
        results = Results(
            chains=self.chains,
            volumes=volumes,
            n_iters=iteration,
            elapsed=time.perf_counter() - start,
            stop_reason=stop_reason,
        )
        # hand the collection over to the caller
        self.chains = []
        self._rngs = {}
        return results


def find_partitions(
    classify: Callable[..., Any],
    options: Options,
    *args,
    estimate_volumes: bool = False,
    n_sim: int = 10_000,
    **kwargs,
) -> Results:
    """Discover the pattern regions of a parameter space.

    Parameters
    ----------
    classify : callable
        Pattern function ``classify(params, *args, **kwargs) -> label``.
        Labels must be hashable; arrays and lists are converted to tuples.
        Exceptions raised here propagate unchanged.
    options : Options
        Sampler configuration.
    *args, **kwargs
        Extra arguments forwarded to ``classify``.
    estimate_volumes : bool
        Estimate every final region's volume.
    n_sim : int
        Ellipsoid samples per volume estimate.

    Returns
    -------
    Results
        Final deduplicated chains and, if requested, volume estimates.

    Raises
    ------
    OptionsError
        If ``options`` are invalid.
    DegenerateCovarianceError
        If a deduplication pass meets a covariance it cannot factor.

    Examples
    --------
    >>> def classify(p):
    ...     return "left" if p[0] < 0.5 else "right"
    >>> options = Options(init_parms=[(0.25, 0.5)], bounds=[(0, 1), (0, 1)])
    >>> results = find_partitions(classify, options)
    >>> results.patterns
    ['left', 'right']
    """
    sampler = PartitionSampler(classify, options, args, kwargs)
    with log_operation("find_partitions", logger) as details:
        results = sampler.run(estimate_volumes=estimate_volumes, n_sim=n_sim)
        details.update(
            regions=results.n_regions,
            patterns=len(results.patterns),
            iterations=results.n_iters,
            stop=results.stop_reason,
        )
    return results
