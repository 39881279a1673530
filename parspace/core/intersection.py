"""Hyperellipsoid intersection test.

A chain's point cloud is summarised by the hyperellipsoid
``{x : (x - mu)^T cov^-1 (x - mu) <= scale^2}``. Two chains are considered
to explore the same region when their ellipsoids overlap.

The test works in the whitened frame of ellipsoid 1, where ellipsoid 1 is
the unit ball centred at the origin:

1. Absorb ``scale^2`` into both covariance matrices.
2. Factor ``cov1 = U^T U`` and whiten ellipsoid 2 with ``U^-1``.
3. Factor the whitened ``Q2b = V^T V`` and find the point on ellipsoid 2's
   boundary along the line from its centre towards the origin.
4. The ellipsoids intersect when that boundary point lies inside the unit
   ball, or when it sits on the opposite side of the origin from ellipsoid
   2's centre along every axis.

The second rule is an axis-wise heuristic rather than an exact separating
hyperplane argument; grouping in :mod:`parspace.core.deduplication`
depends on its exact behaviour.
"""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
from scipy import linalg

from parspace.core.chain import Chain
from parspace.core.exceptions import DegenerateCovarianceError
from parspace.utils.logging import get_logger

logger = get_logger(__name__)

# Zero-variance dimensions are raised to this floor before factoring
VARIANCE_FLOOR = np.finfo(float).eps

# Mean absolute asymmetry of the whitened covariance tolerated silently
SYMMETRY_TOLERANCE = 1e-10


def _upper_cholesky(cov: np.ndarray, label: str) -> np.ndarray:
    try:
        return linalg.cholesky(cov, lower=False)
    except linalg.LinAlgError as e:
        raise DegenerateCovarianceError(
            f"{label} is not positive definite: {e}",
            n_dims=cov.shape[0],
        ) from e


def ellipsoids_intersect(
    center1,
    center2,
    cov1,
    cov2,
    scale: float = 2.0,
    warn: Callable[[str], None] | None = None,
) -> bool:
    """Test whether two hyperellipsoids intersect.

    Parameters
    ----------
    center1, center2 : array_like, shape (d,)
        Centroids of ellipsoid 1 and 2.
    cov1, cov2 : array_like, shape (d, d)
        Covariance matrices of ellipsoid 1 and 2. Not modified.
    scale : float
        Ellipsoid scalar; the ellipsoid is the ``scale``-sigma contour.
    warn : callable, optional
        Sink for the non-fatal asymmetry diagnostic. Defaults to the module
        logger's ``warning``.

    Returns
    -------
    bool
        True if the ellipsoids intersect.

    Raises
    ------
    DegenerateCovarianceError
        If either covariance is not positive definite.
    """
    if warn is None:
        warn = logger.warning

    center1 = np.asarray(center1, dtype=float)
    center2 = np.asarray(center2, dtype=float)
    cov1 = np.array(cov1, dtype=float) * scale**2
    cov2 = np.array(cov2, dtype=float) * scale**2

    upper1 = _upper_cholesky(cov1, "cov1")
    inv1 = linalg.solve_triangular(upper1, np.eye(len(upper1)), lower=False)

    raw_q2b = inv1.T @ cov2 @ inv1
    asymmetry = np.mean(np.abs(raw_q2b - raw_q2b.T))
    if asymmetry > SYMMETRY_TOLERANCE:
        warn(f"Q2b is not symmetric: eps = {asymmetry:.3e}. Q2b = {raw_q2b}")
    # symmetrise from the upper triangle
    q2b = np.triu(raw_q2b) + np.triu(raw_q2b, 1).T

    c2b = inv1.T @ (center2 - center1)
    upper2 = _upper_cholesky(q2b, "whitened cov2")
    c2c = linalg.solve_triangular(upper2, c2b, trans="T", lower=False)
    norm = np.sqrt(c2c @ c2c)
    if norm == 0:
        # coincident centres
        return True
    v2c = -c2c / norm

    test_point = upper2.T @ v2c + c2b
    if test_point @ test_point < 1:
        return True
    if np.all(np.sign(test_point) != np.sign(c2b)):
        return True
    return False


def add_variance(cov: np.ndarray, floor: float = VARIANCE_FLOOR) -> np.ndarray:
    """Raise zero variances on the diagonal of ``cov`` to ``floor`` in place."""
    diag = np.diag(cov)
    zero = np.isclose(diag, 0.0, rtol=0.0, atol=floor)
    if np.any(zero):
        idx = np.flatnonzero(zero)
        cov[idx, idx] = floor
    return cov


def chain_moments(chain: Chain) -> tuple[np.ndarray, np.ndarray]:
    """Sample mean and covariance of a chain's visited points.

    Raises
    ------
    DegenerateCovarianceError
        If the chain has no more samples than dimensions, in which case the
        sample covariance is singular, or if its samples are collinear.
    """
    n_samples, n_dims = chain.n_samples, chain.n_dims
    if n_samples <= n_dims:
        raise DegenerateCovarianceError(
            f"chain {chain.chain_id} has too few samples for a covariance",
            n_samples=n_samples,
            n_dims=n_dims,
        )
    mat = chain.to_matrix()
    mean = mat.mean(axis=0)
    cov = np.atleast_2d(np.cov(mat, rowvar=False))

    # constant dimensions are floored below; any other rank loss is fatal
    varying = ~np.isclose(np.diag(cov), 0.0, rtol=0.0, atol=VARIANCE_FLOOR)
    n_varying = int(np.count_nonzero(varying))
    if n_varying and np.linalg.matrix_rank(mat[:, varying] - mean[varying]) < n_varying:
        raise DegenerateCovarianceError(
            f"samples of chain {chain.chain_id} are collinear",
            n_samples=n_samples,
            n_dims=n_dims,
        )
    return mean, add_variance(cov)


def chains_intersect(
    chain1: Chain,
    chain2: Chain,
    scale: float = 2.0,
    warn: Callable[[str], None] | None = None,
) -> bool:
    """Test whether the ellipsoids of two chains' samples intersect."""
    mu1, cov1 = chain_moments(chain1)
    mu2, cov2 = chain_moments(chain2)
    try:
        return ellipsoids_intersect(mu1, mu2, cov1, cov2, scale=scale, warn=warn)
    except DegenerateCovarianceError as e:
        e.error_context.update(chain1=chain1.chain_id, chain2=chain2.chain_id)
        raise


def intersects(first, second, *args, **kwargs) -> bool:
    """Intersection test for either two chains or two explicit ellipsoids.

    ``intersects(chain1, chain2, scale=2)`` or
    ``intersects(center1, center2, cov1, cov2, scale=2)``.
    """
    if isinstance(first, Chain) and isinstance(second, Chain):
        return chains_intersect(first, second, *args, **kwargs)
    return ellipsoids_intersect(first, second, *args, **kwargs)


def point_in_ellipsoid(point, center, cov, scale: float = 2.0) -> bool:
    """True if ``point`` lies inside the ``scale``-sigma ellipsoid."""
    diff = np.asarray(point, dtype=float) - np.asarray(center, dtype=float)
    upper = _upper_cholesky(np.asarray(cov, dtype=float), "cov")
    z = linalg.solve_triangular(upper, diff, trans="T", lower=False)
    return bool(z @ z <= scale**2)
