"""Random-walk proposals for region exploration."""

from __future__ import annotations

import numpy as np


def sample_hypersphere(center, radius: float, rng: np.random.Generator) -> np.ndarray:
    """Draw one point uniformly inside the ball of ``radius`` around ``center``.

    The direction is an isotropic Gaussian draw normalised to unit length,
    and the distance ``radius * u^(1/d)`` makes the density uniform in volume.
    """
    center = np.asarray(center, dtype=float)
    n_dims = len(center)
    direction = rng.standard_normal(n_dims)
    direction /= np.linalg.norm(direction)
    distance = radius * rng.uniform() ** (1.0 / n_dims)
    return center + distance * direction


def in_bounds(point, bounds) -> bool:
    """True if ``point`` lies inside the closed hyperrectangle ``bounds``."""
    if bounds is None:
        return True
    low, high = np.asarray(bounds, dtype=float).T
    point = np.asarray(point, dtype=float)
    return bool(np.all(point >= low) and np.all(point <= high))
