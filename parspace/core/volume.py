"""Region volume estimation.

A region's volume is estimated in two parts. The chain's sample covariance
defines the same ``scale``-sigma hyperellipsoid used by the intersection
test; its volume is

    V = pi^(d/2) / Gamma(d/2 + 1) * scale^d * sqrt(det(cov))

Uniform points drawn inside the ellipsoid are then classified, and the
fraction carrying the chain's pattern (the hit rate) scales ``V`` down to
the part of the ellipsoid that actually belongs to the region.

The sample covariance determinant is biased low for finite samples,
``E[det S] = det(Sigma) * prod_{i=1..d} (n - i) / (n - 1)``, which
:func:`bias_correction` undoes.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy import linalg
from scipy.special import gammaln

from parspace.core.chain import Chain, as_pattern
from parspace.core.exceptions import DegenerateCovarianceError
from parspace.core.intersection import chain_moments
from parspace.utils.logging import get_logger, log_performance

logger = get_logger(__name__)


@dataclass
class VolumeEstimate:
    """Volume estimate of one region.

    Attributes
    ----------
    chain_id : int
        Chain the estimate was computed from.
    pattern : Hashable
        Pattern label of the region.
    volume : float
        Ellipsoid volume times hit rate.
    corrected_volume : float
        ``volume`` after the finite-sample bias correction.
    ellipsoid_volume : float
        Volume of the ``scale``-sigma ellipsoid.
    hit_rate : float
        Fraction of ellipsoid samples classified with the region's pattern.
    n_sim : int
        Number of ellipsoid samples classified.
    n_samples : int
        Number of chain samples behind the covariance.
    """

    chain_id: int
    pattern: object
    volume: float
    corrected_volume: float
    ellipsoid_volume: float
    hit_rate: float
    n_sim: int
    n_samples: int


def unit_ball_volume(n_dims: int) -> float:
    return float(np.exp(n_dims / 2 * np.log(np.pi) - gammaln(n_dims / 2 + 1)))


def ellipsoid_volume(cov, scale: float = 2.0) -> float:
    """Volume of ``{x : x^T cov^-1 x <= scale^2}``."""
    cov = np.atleast_2d(np.asarray(cov, dtype=float))
    n_dims = cov.shape[0]
    sign, logdet = np.linalg.slogdet(cov)
    if sign <= 0:
        raise DegenerateCovarianceError(
            "covariance is not positive definite", n_dims=n_dims
        )
    return unit_ball_volume(n_dims) * scale**n_dims * float(np.exp(0.5 * logdet))


def bounds_volume(bounds) -> float:
    """Volume of the hyperrectangle spanned by ``(low, high)`` pairs."""
    bounds = np.asarray(bounds, dtype=float)
    return float(np.prod(bounds[:, 1] - bounds[:, 0]))


def sample_ellipsoid(center, cov, n: int, scale: float = 2.0, rng=None) -> np.ndarray:
    """Draw ``n`` points uniformly inside the ``scale``-sigma ellipsoid."""
    rng = np.random.default_rng(rng)
    center = np.asarray(center, dtype=float)
    n_dims = len(center)
    try:
        lower = linalg.cholesky(np.atleast_2d(cov), lower=True)
    except linalg.LinAlgError as e:
        raise DegenerateCovarianceError(
            f"covariance is not positive definite: {e}", n_dims=n_dims
        ) from e

    z = rng.standard_normal((n, n_dims))
    z /= np.linalg.norm(z, axis=1, keepdims=True)
    z *= rng.uniform(size=(n, 1)) ** (1.0 / n_dims)
    return center + scale * z @ lower.T


def bias_correction(volume: float, n_samples: int, n_dims: int) -> float:
    """Correct a sample-covariance volume for finite-sample bias.

    Raises
    ------
    DegenerateCovarianceError
        If ``n_samples <= n_dims``; the correction factor is undefined.
    """
    if n_samples <= n_dims:
        raise DegenerateCovarianceError(
            "too few samples for bias correction",
            n_samples=n_samples,
            n_dims=n_dims,
        )
    i = np.arange(1, n_dims + 1)
    log_factor = np.sum(np.log((n_samples - i) / (n_samples - 1)))
    return float(volume * np.exp(-0.5 * log_factor))


def normalize_volumes(volumes: dict, total_volume: float) -> dict:
    """Rescale region volumes so they sum to ``total_volume``.

    Applies when the discovered regions are known to partition a bounded
    space of volume ``total_volume``.
    """
    total = sum(volumes.values())
    if total <= 0:
        raise ValueError(f"volumes must sum to a positive value, got: {total}")
    return {k: v * total_volume / total for k, v in volumes.items()}


@log_performance(threshold=1.0)
def estimate_volume(
    chain: Chain,
    classify,
    *args,
    bounds=None,
    n_sim: int = 10_000,
    scale: float = 2.0,
    rng=None,
    **kwargs,
) -> VolumeEstimate:
    """Estimate the volume of the region explored by ``chain``.

    Parameters
    ----------
    chain : Chain
        Chain whose samples define the region's ellipsoid.
    classify : callable
        Pattern function, called as ``classify(params, *args, **kwargs)``.
    bounds : sequence of (low, high), optional
        Points outside the bounds count as misses.
    n_sim : int
        Number of uniform ellipsoid points to classify.
    scale : float
        Ellipsoid scalar.
    rng : numpy.random.Generator or int, optional
        Random source.

    Returns
    -------
    VolumeEstimate

    Raises
    ------
    DegenerateCovarianceError
        If the chain has no more samples than dimensions.
    """
    mean, cov = chain_moments(chain)
    v_ellipsoid = ellipsoid_volume(cov, scale)
    points = sample_ellipsoid(mean, cov, n_sim, scale=scale, rng=rng)

    if bounds is not None:
        low, high = np.asarray(bounds, dtype=float).T
        in_bounds = np.all((points >= low) & (points <= high), axis=1)
    else:
        in_bounds = np.ones(n_sim, dtype=bool)

    hits = 0
    for point, inside in zip(points, in_bounds):
        if inside and as_pattern(classify(point, *args, **kwargs)) == chain.pattern:
            hits += 1

    hit_rate = hits / n_sim
    volume = v_ellipsoid * hit_rate
    corrected = bias_correction(volume, chain.n_samples, chain.n_dims)
    logger.debug(
        f"Volume of chain {chain.chain_id} ({chain.pattern!r}): "
        f"{volume:.4g} (corrected {corrected:.4g}, hit rate {hit_rate:.3f})"
    )
    return VolumeEstimate(
        chain_id=chain.chain_id,
        pattern=chain.pattern,
        volume=volume,
        corrected_volume=corrected,
        ellipsoid_volume=v_ellipsoid,
        hit_rate=hit_rate,
        n_sim=n_sim,
        n_samples=chain.n_samples,
    )
